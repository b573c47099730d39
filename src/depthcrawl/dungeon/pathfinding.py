from __future__ import annotations

from collections import deque
from typing import Callable, Dict, List, Optional

from .geometry import DIRS4, DIRS8, Cell

WalkableFn = Callable[[Cell], bool]


def find_path(is_walkable: WalkableFn, start: Cell, goal: Cell, topology: int = 8) -> List[Cell]:
    """Breadth-first shortest path from start to goal, both ends included.

    Every step costs the same, so BFS yields a shortest path under the chosen
    4- or 8-connectivity. Neighbours are expanded in a fixed order, which makes the
    chosen path deterministic among equally short ones. The goal is always
    enterable (it usually holds the target actor); every other cell must satisfy
    ``is_walkable``. Returns an empty list when the goal is unreachable.
    """
    if topology == 4:
        dirs = DIRS4
    elif topology == 8:
        dirs = DIRS8
    else:
        raise ValueError(f"topology must be 4 or 8, got {topology}")

    if start == goal:
        return [start]

    came_from: Dict[Cell, Optional[Cell]] = {start: None}
    q = deque([start])
    while q:
        current = q.popleft()
        for dx, dy in dirs:
            nxt = (current[0] + dx, current[1] + dy)
            if nxt in came_from:
                continue
            if nxt != goal and not is_walkable(nxt):
                continue
            came_from[nxt] = current
            if nxt == goal:
                return _reconstruct(came_from, goal)
            q.append(nxt)
    return []


def _reconstruct(came_from: Dict[Cell, Optional[Cell]], goal: Cell) -> List[Cell]:
    path: List[Cell] = []
    node: Optional[Cell] = goal
    while node is not None:
        path.append(node)
        node = came_from[node]
    path.reverse()
    return path
