from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


class Direction(Enum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]

    @property
    def opposite(self) -> "Direction":
        return {
            Direction.UP: Direction.DOWN,
            Direction.DOWN: Direction.UP,
            Direction.RIGHT: Direction.LEFT,
            Direction.LEFT: Direction.RIGHT,
        }[self]

    @classmethod
    def parse(cls, token: str | None) -> "Direction | None":
        if token is None:
            return None
        return _DIRECTION_ALIASES.get(token.strip().lower())


# (dx, dy); y grows downward.
_DELTAS = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
}

_DIRECTION_ALIASES = {
    "up": Direction.UP,
    "u": Direction.UP,
    "north": Direction.UP,
    "n": Direction.UP,
    "right": Direction.RIGHT,
    "r": Direction.RIGHT,
    "east": Direction.RIGHT,
    "e": Direction.RIGHT,
    "down": Direction.DOWN,
    "d": Direction.DOWN,
    "south": Direction.DOWN,
    "s": Direction.DOWN,
    "left": Direction.LEFT,
    "l": Direction.LEFT,
    "west": Direction.LEFT,
    "w": Direction.LEFT,
}


class Difficulty(Enum):
    EASY = 15
    MEDIUM = 20
    HARD = 25

    @property
    def size(self) -> int:
        return self.value

    @classmethod
    def parse(cls, token: str | None) -> "Difficulty | None":
        if token is None:
            return None
        return cls.__members__.get(token.strip().upper())


@dataclass(frozen=True)
class Position:
    x: int
    y: int

    def step(self, direction: Direction) -> "Position":
        dx, dy = direction.delta
        return Position(x=self.x + dx, y=self.y + dy)


ALL_WALLS = (True, True, True, True)


@dataclass(frozen=True)
class Cell:
    walls: tuple[bool, bool, bool, bool] = ALL_WALLS

    def has_wall(self, direction: Direction) -> bool:
        return self.walls[direction.value]


@dataclass(frozen=True)
class Grid:
    size: int
    cells: tuple[tuple[Cell, ...], ...]

    def __post_init__(self) -> None:
        _check_size(self.size)
        if len(self.cells) != self.size or any(len(row) != self.size for row in self.cells):
            raise ValueError(f"Cells do not form a {self.size}x{self.size} grid")
        for y, row in enumerate(self.cells):
            for x, cell in enumerate(row):
                pos = Position(x, y)
                for d in (Direction.RIGHT, Direction.DOWN):
                    other = pos.step(d)
                    if other.x >= self.size or other.y >= self.size:
                        continue
                    if cell.has_wall(d) != self.cells[other.y][other.x].has_wall(d.opposite):
                        raise ValueError(f"Asymmetric wall between {pos} and {other}")

    @classmethod
    def closed(cls, size: int) -> "Grid":
        return build_grid(size, ())

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.size and 0 <= pos.y < self.size

    def cell(self, pos: Position) -> Cell:
        if not self.in_bounds(pos):
            raise ValueError(f"Out of bounds position: {pos}")
        return self.cells[pos.y][pos.x]

    def has_wall(self, pos: Position, direction: Direction) -> bool:
        return self.cell(pos).has_wall(direction)

    def next_pos(self, pos: Position, direction: Direction) -> Position | None:
        if not self.in_bounds(pos) or self.has_wall(pos, direction):
            return None
        nxt = pos.step(direction)
        if not self.in_bounds(nxt):
            return None
        return nxt

    def open_directions(self, pos: Position) -> list[Direction]:
        return [d for d in Direction if self.next_pos(pos, d) is not None]

    def passages(self) -> Iterator[tuple[Position, Direction]]:
        """Yield every open internal edge once, from its upper/left cell."""
        for y in range(self.size):
            for x in range(self.size):
                pos = Position(x, y)
                for direction in (Direction.RIGHT, Direction.DOWN):
                    if self.next_pos(pos, direction) is not None:
                        yield pos, direction

    def wall_bytes(self) -> bytes:
        out = bytearray()
        for row in self.cells:
            for cell in row:
                bits = 0
                for direction in Direction:
                    if cell.has_wall(direction):
                        bits |= 1 << direction.value
                out.append(bits)
        return bytes(out)


def _check_size(size: int) -> None:
    if isinstance(size, bool) or not isinstance(size, int):
        raise ValueError(f"Maze size must be an int, got {type(size).__name__}")
    if size < 1:
        raise ValueError(f"Maze size must be >= 1, got {size}")


def _make_walls(size: int) -> list[list[list[bool]]]:
    return [[list(ALL_WALLS) for _ in range(size)] for _ in range(size)]


def _carve(walls: list[list[list[bool]]], pos: Position, direction: Direction) -> None:
    # Both sides of the shared wall change together.
    other = pos.step(direction)
    walls[pos.y][pos.x][direction.value] = False
    walls[other.y][other.x][direction.opposite.value] = False


def _freeze(size: int, walls: list[list[list[bool]]]) -> Grid:
    cells = tuple(tuple(Cell(walls=tuple(w)) for w in row) for row in walls)
    return Grid(size=size, cells=cells)


def build_grid(size: int, passages: Iterable[tuple[Position, Direction]]) -> Grid:
    """Build a grid with only the given passages open.

    Each ``(pos, direction)`` opens the wall between ``pos`` and its neighbour
    on both sides. Openings that would leave the grid raise ``ValueError``.
    """
    _check_size(size)
    walls = _make_walls(size)
    for pos, direction in passages:
        other = pos.step(direction)
        for p in (pos, other):
            if not (0 <= p.x < size and 0 <= p.y < size):
                raise ValueError(f"Passage {pos} -> {direction.name} leaves the {size}x{size} grid")
        _carve(walls, pos, direction)
    return _freeze(size, walls)


def _as_rng(seed: int | str | random.Random | None) -> random.Random:
    if isinstance(seed, random.Random):
        return seed
    return random.Random(seed)


def generate(size: int, seed: int | str | random.Random | None = None) -> Grid:
    """Generate a perfect ``size`` x ``size`` maze with a seeded iterative backtracker.

    ``seed`` is either a seed for a fresh ``random.Random`` or an already
    constructed generator, which is used as-is.
    """
    _check_size(size)
    rng = _as_rng(seed)

    walls = _make_walls(size)

    # Iterative backtracker: the top of the stack is peeked, and popped only at a dead end.
    start = Position(0, 0)
    visited: set[Position] = {start}
    stack: list[Position] = [start]
    while stack:
        pos = stack[-1]
        unvisited_neighbors: list[tuple[Position, Direction]] = []
        for d in Direction:
            npos = pos.step(d)
            if 0 <= npos.x < size and 0 <= npos.y < size and npos not in visited:
                unvisited_neighbors.append((npos, d))
        if unvisited_neighbors:
            npos, d = rng.choice(unvisited_neighbors)
            _carve(walls, pos, d)
            visited.add(npos)
            stack.append(npos)
        else:
            stack.pop()

    logger.debug("Generated %dx%d maze, %d cells carved", size, size, len(visited))
    return _freeze(size, walls)
