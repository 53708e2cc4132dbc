"""Door providers.

Three door models coexist: free-placement edge doors, legacy segment
states and the older room-pair doors. Callers get a provider and ask it for
pieces and door spans without caring which model is active. The first model
holding any door wins, in that order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Tuple, Union

from ..core.model import DoorSource, EdgeDoor, LayoutState, PerimeterEdge, RoomPairDoor, SegmentState
from .doors import door_spans
from .layout import EdgePiece, generate_edge_pieces, pack_wall_tiles
from .pair_doors import pair_door_spans
from .segments import PATTERN_PIECES, edge_segment_door_spans, segment_groups_for_edge


@dataclass(frozen=True)
class FreePlacement:
    doors: Mapping[str, Tuple[EdgeDoor, ...]]

    def door_spans(self, edge_id: str, edge: PerimeterEdge) -> List[Tuple[float, float]]:
        return door_spans(self.doors.get(edge_id, ()))

    def edge_pieces(self, edge_id: str, edge: PerimeterEdge) -> List[EdgePiece]:
        return generate_edge_pieces(edge.length, self.doors.get(edge_id, ()))


@dataclass(frozen=True)
class LegacySegments:
    states: Mapping[str, SegmentState]

    def door_spans(self, edge_id: str, edge: PerimeterEdge) -> List[Tuple[float, float]]:
        return edge_segment_door_spans(edge_id, edge, self.states)

    def edge_pieces(self, edge_id: str, edge: PerimeterEdge) -> List[EdgePiece]:
        pieces: List[EdgePiece] = []
        for group in segment_groups_for_edge(edge_id, edge):
            state = self.states.get(group.id)
            if state is None or not group.accepts_doors:
                pieces.extend(
                    EdgePiece("wall", group.offset_px + offset, size) for offset, size in pack_wall_tiles(group.length_px)
                )
                continue
            pieces.extend(
                EdgePiece(kind, group.offset_px + offset, size) for kind, offset, size in PATTERN_PIECES[state.pattern]
            )
        return pieces


@dataclass(frozen=True)
class RoomPairDoors:
    doors: Tuple[RoomPairDoor, ...]

    def door_spans(self, edge_id: str, edge: PerimeterEdge) -> List[Tuple[float, float]]:
        return pair_door_spans(self.doors, edge)

    def edge_pieces(self, edge_id: str, edge: PerimeterEdge) -> List[EdgePiece]:
        doors = [EdgeDoor(int(start), DoorSource.AUTO) for start, _ in self.door_spans(edge_id, edge)]
        return generate_edge_pieces(edge.length, doors)


DoorProvider = Union[FreePlacement, LegacySegments, RoomPairDoors]


def select_door_provider(state: LayoutState) -> DoorProvider:
    """Pick the active door model for a layout."""
    if state.edge_doors:
        return FreePlacement(state.edge_doors)
    if state.segment_states:
        return LegacySegments(state.segment_states)
    if state.room_doors:
        return RoomPairDoors(state.room_doors)
    return FreePlacement(state.edge_doors)
