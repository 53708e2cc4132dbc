"""Edge extraction for sets of rooms.

Every room contributes its four boundary segments. Segments are grouped
by wall line (orientation and fixed coordinate) and a 1-D sweep over
start/end events splits each line into pieces covered by one room
(external edges) or by two rooms (internal edges, candidates for doors).

Edges are always recomputed from the current rooms; they are never
patched incrementally.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.model import Orientation, PerimeterEdge, Room
from .rect import pixel_rect

# Sort key for events at the same position: starts before ends
_START = 0
_END = 1


@dataclass(frozen=True)
class EdgeSet:
    """External and internal edges of a room set."""

    external: Tuple[PerimeterEdge, ...]
    internal: Tuple[PerimeterEdge, ...]

    @property
    def all(self) -> Tuple[PerimeterEdge, ...]:
        return self.external + self.internal


def room_boundaries(room: Room) -> List[Tuple[Orientation, float, float, float]]:
    """The four boundary segments of a room as (orientation, position, start, end)."""
    rect = pixel_rect(room)
    return [
        (Orientation.HORIZONTAL, rect.y, rect.x, rect.right),
        (Orientation.HORIZONTAL, rect.bottom, rect.x, rect.right),
        (Orientation.VERTICAL, rect.x, rect.y, rect.bottom),
        (Orientation.VERTICAL, rect.right, rect.y, rect.bottom),
    ]


def _make_edge(
    orientation: Orientation, position: float, start: float, end: float, owners: List[str]
) -> PerimeterEdge:
    if len(owners) == 1:
        return PerimeterEdge(orientation, position, start, end, False, owners[0])
    # More than two owners only happens in degenerate layouts; keep the first two
    room_a, room_b = owners[0], owners[1]
    return PerimeterEdge(orientation, position, start, end, True, room_a, room_b)


def _sweep_line(
    orientation: Orientation, position: float, segments: List[Tuple[float, float, str]]
) -> List[PerimeterEdge]:
    events = []
    for start, end, room_id in segments:
        events.append((start, _START, room_id))
        events.append((end, _END, room_id))
    events.sort()

    edges: List[PerimeterEdge] = []
    active: Counter = Counter()
    last_pos: Optional[float] = None

    for pos, kind, room_id in events:
        if last_pos is not None and pos > last_pos and active:
            owners = sorted(active)
            edges.append(_make_edge(orientation, position, last_pos, pos, owners))

        if kind == _START:
            active[room_id] += 1
        else:
            active[room_id] -= 1
            if active[room_id] <= 0:
                del active[room_id]

        last_pos = pos

    return edges


def extract_edges(rooms: Iterable[Room]) -> EdgeSet:
    """Split the boundaries of a room set into external and internal edges.

    Args:
        rooms: Rooms to analyse. Rooms from several wall groups may be mixed.

    Returns:
        EdgeSet whose edges cover every room boundary exactly once.
    """
    lines: Dict[Tuple[Orientation, float], List[Tuple[float, float, str]]] = defaultdict(list)
    for room in rooms:
        for orientation, position, start, end in room_boundaries(room):
            lines[(orientation, position)].append((start, end, room.id))

    external: List[PerimeterEdge] = []
    internal: List[PerimeterEdge] = []

    for (orientation, position) in sorted(lines, key=lambda key: (key[0].value, key[1])):
        for edge in _sweep_line(orientation, position, lines[(orientation, position)]):
            (internal if edge.is_internal else external).append(edge)

    return EdgeSet(tuple(external), tuple(internal))

