from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from maze import Difficulty, Direction, Grid, Position, generate
from solver import path_directions, solve

logger = logging.getLogger(__name__)


class GameState(Enum):
    MENU = "menu"
    DIFFICULTY_SELECT = "difficulty_select"
    PLAYING = "playing"


@dataclass(frozen=True)
class Command:
    """
    Normalized command object consumed by the engine.
    """

    verb: str
    args: list[str] = field(default_factory=list)


@dataclass
class GameConfig:
    hint_seconds: float = 3.0
    seed: int | str | None = None
    player: str = "player"


@dataclass
class GameView:
    """
    UI-agnostic state projection returned by the engine.
    """

    state: str
    size: int | None
    pos: dict[str, int] | None
    goal: dict[str, int] | None
    available_moves: list[str]
    hint: list[dict[str, int]]
    elapsed_seconds: int
    move_count: int = 0
    hints_used: int = 0
    is_complete: bool = False


@dataclass
class GameOutput:
    """
    Wrapper for state + user-facing messages from engine commands.
    """

    view: GameView
    messages: list[str] = field(default_factory=list)


def _pos_dict(pos: Position | None) -> dict[str, int] | None:
    if pos is None:
        return None
    return {"x": pos.x, "y": pos.y}


class GameEngine:
    def __init__(
        self,
        *,
        config: GameConfig | None = None,
        repo: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or GameConfig()
        self.repo = repo
        self.clock = clock
        self.state = GameState.MENU
        self.difficulty: Difficulty | None = None
        self.grid: Grid | None = None
        self._pos: Position | None = None
        self._goal: Position | None = None
        self._started_at = 0.0
        self._finished_at: float | None = None
        self._move_count = 0
        self._hints_used = 0
        self._hint: list[Position] = []
        self._hint_expires_at = 0.0
        self._is_complete = False

    # Session lifecycle
    def new_maze(self, difficulty: Difficulty) -> None:
        # The grid is built completely before it replaces the current one.
        grid = generate(difficulty.size, self.config.seed)
        self.grid = grid
        self.difficulty = difficulty
        self._pos = Position(0, 0)
        self._goal = Position(grid.size - 1, grid.size - 1)
        self._started_at = self.clock()
        self._finished_at = None
        self._move_count = 0
        self._hints_used = 0
        self._hint = []
        self._is_complete = False
        self.state = GameState.PLAYING
        logger.debug("New %s maze (%dx%d)", difficulty.name, grid.size, grid.size)

    def _elapsed_seconds(self) -> int:
        if self.grid is None:
            return 0
        end = self._finished_at if self._finished_at is not None else self.clock()
        return max(0, int(end - self._started_at))

    def _visible_hint(self) -> list[Position]:
        if self._hint and self.clock() > self._hint_expires_at:
            self._hint = []
        return self._hint

    def _request_hint(self, grid: Grid, pos: Position, goal: Position) -> list[str]:
        path = solve(grid, pos, goal)
        if not path:
            self._hint = []
            return ["No hint available."]
        self._hint = path
        self._hint_expires_at = self.clock() + self.config.hint_seconds
        self._hints_used += 1
        logger.debug("Hint of %d steps from %s", len(path), pos)
        first = path_directions(pos, path[:1])[0]
        return [f"Hint: {len(path)} steps to the goal, next {first.name.lower()}."]

    def _maybe_finish(self) -> bool:
        if self._pos != self._goal:
            return False
        self._finished_at = self.clock()
        self._is_complete = True
        self._hint = []
        self.state = GameState.MENU

        if self.repo is not None and self.difficulty is not None:
            metrics = {
                "elapsed_seconds": self._elapsed_seconds(),
                "moves": self._move_count,
                "hints": self._hints_used,
            }
            self.repo.record_score(
                player=self.config.player,
                difficulty=self.difficulty.name,
                maze_size=self.difficulty.size,
                metrics=metrics,
            )
        return True

    def _make_view(self) -> GameView:
        playing = self.state == GameState.PLAYING
        moves: list[str] = []
        if playing and self.grid is not None and self._pos is not None:
            moves = [d.name for d in self.grid.open_directions(self._pos)]
        return GameView(
            state=self.state.value,
            size=self.grid.size if self.grid is not None else None,
            pos=_pos_dict(self._pos),
            goal=_pos_dict(self._goal),
            available_moves=moves,
            hint=[_pos_dict(p) for p in self._visible_hint()] if playing else [],
            elapsed_seconds=self._elapsed_seconds(),
            move_count=self._move_count,
            hints_used=self._hints_used,
            is_complete=self._is_complete,
        )

    def view(self) -> GameView:
        return self._make_view()

    def _output(self, *messages: str) -> GameOutput:
        return GameOutput(view=self._make_view(), messages=list(messages))

    def handle(self, command: Command) -> GameOutput:
        verb = (command.verb or "").strip().lower()
        args = command.args or []

        if verb == "look":
            return self._output()

        if verb in {"menu", "escape", "esc"}:
            self.state = GameState.MENU
            self._hint = []
            return self._output()

        if self.state == GameState.MENU:
            if verb == "play":
                self.state = GameState.DIFFICULTY_SELECT
                return self._output()

        difficulty: Difficulty | None = None
        if verb == "difficulty":
            difficulty = Difficulty.parse(args[0] if args else None)
            if difficulty is None:
                return self._output("Unknown difficulty.")
        else:
            difficulty = Difficulty.parse(verb)
        if difficulty is not None:
            if self.state == GameState.PLAYING:
                return self._output("Return to the menu to pick a new maze.")
            self.new_maze(difficulty)
            return self._output()

        grid, pos, goal = self.grid, self._pos, self._goal
        if self.state != GameState.PLAYING or grid is None or pos is None or goal is None:
            return self._output("Unknown command.")

        if verb == "hint":
            return self._output(*self._request_hint(grid, pos, goal))

        if verb == "go":
            direction = Direction.parse(args[0] if args else None)
            if direction is None:
                return self._output("Invalid direction.")
        else:
            direction = Direction.parse(verb)
            if direction is None:
                return self._output("Unknown command.")

        nxt = grid.next_pos(pos, direction)
        if nxt is None:
            return self._output("Blocked path.")

        self._pos = nxt
        self._move_count += 1
        if self._maybe_finish():
            return self._output(f"Maze solved in {self._move_count} moves.")
        return self._output()
