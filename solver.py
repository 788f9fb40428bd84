from __future__ import annotations

import logging
from collections import deque

from maze import Direction, Grid, Position

logger = logging.getLogger(__name__)


def solve(grid: Grid, start: Position, goal: Position) -> list[Position]:
    """Shortest path from ``start`` to ``goal`` by breadth-first search.

    The returned path excludes ``start`` and ends at ``goal``. An empty list
    means the goal is unreachable or ``start == goal``.
    """
    for label, pos in (("start", start), ("goal", goal)):
        if not grid.in_bounds(pos):
            raise ValueError(f"Out of bounds {label} position: {pos}")

    size = grid.size
    visited = [[False] * size for _ in range(size)]
    parent: list[list[Position | None]] = [[None] * size for _ in range(size)]

    q: deque[Position] = deque([start])
    visited[start.y][start.x] = True
    found = False
    while q:
        cur = q.popleft()
        if cur == goal:
            found = True
            break
        for d in Direction:
            nxt = grid.next_pos(cur, d)
            if nxt is None or visited[nxt.y][nxt.x]:
                continue
            visited[nxt.y][nxt.x] = True
            parent[nxt.y][nxt.x] = cur
            q.append(nxt)

    if not found:
        logger.debug("No path from %s to %s", start, goal)
        return []

    path: list[Position] = []
    cur = goal
    while cur != start:
        path.append(cur)
        cur = parent[cur.y][cur.x]  # type: ignore[assignment]
    path.reverse()
    return path


def path_directions(start: Position, path: list[Position]) -> list[Direction]:
    moves: list[Direction] = []
    prev = start
    for pos in path:
        for d in Direction:
            if prev.step(d) == pos:
                moves.append(d)
                break
        else:
            raise ValueError(f"Path step {prev} -> {pos} is not between adjacent cells")
        prev = pos
    return moves
