"""Legacy segment-state doors.

Before free placement, walls were cut into 256px segments and each segment
carried one of five fixed patterns. Scenes saved in that format still load,
so the model is kept: segment groups are derived from the current edges,
states are keyed by the segment group id, and a state a person set by hand
is never overwritten by automatic placement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import DOOR_WIDTH_PX, HALF_TILE_PX, SEGMENT_PX, TILE_PX
from ..core.model import DoorSource, PerimeterEdge, Room, SegmentPattern, SegmentState
from ..geom.rect import tiles_to_pixels
from .doors import ROTATION_TABLES, external_edge_id, parse_external_edge_id, side_length_tiles

LOGGER = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"

# (kind, offset, size) pieces of each pattern inside a 256px segment
PATTERN_PIECES: Dict[SegmentPattern, Tuple[Tuple[str, int, int], ...]] = {
    SegmentPattern.SOLID_256: (("wall", 0, TILE_PX), ("wall", TILE_PX, TILE_PX)),
    SegmentPattern.DOOR_LEFT: (("door", 0, DOOR_WIDTH_PX), ("wall", TILE_PX, TILE_PX)),
    SegmentPattern.DOOR_RIGHT: (("wall", 0, TILE_PX), ("door", TILE_PX, DOOR_WIDTH_PX)),
    SegmentPattern.DOOR_BOTH: (("door", 0, DOOR_WIDTH_PX), ("door", TILE_PX, DOOR_WIDTH_PX)),
    SegmentPattern.DOOR_CENTER: (
        ("wall", 0, HALF_TILE_PX),
        ("door", HALF_TILE_PX, DOOR_WIDTH_PX),
        ("wall", HALF_TILE_PX + DOOR_WIDTH_PX, HALF_TILE_PX),
    ),
}


@dataclass(frozen=True)
class WallSegmentGroup:
    """One 256px chunk of an edge (the last chunk may be a 128px remainder).

    Attributes:
        id: Stable id, the edge id plus the chunk index.
        edge_id: Id of the edge the chunk belongs to.
        index: Position of the chunk along the edge.
        offset_px: Start of the chunk from the edge start.
        length_px: 256, or 128 for an odd-tile remainder.
        at_start_corner: Whether the chunk touches the edge start.
        at_end_corner: Whether the chunk touches the edge end.
    """

    id: str
    edge_id: str
    index: int
    offset_px: int
    length_px: int
    at_start_corner: bool
    at_end_corner: bool

    @property
    def accepts_doors(self) -> bool:
        return self.length_px == SEGMENT_PX


def segment_group_id(edge_id: str, index: int) -> str:
    return f"{edge_id}#{index}"


def segment_groups_for_edge(edge_id: str, edge: PerimeterEdge) -> List[WallSegmentGroup]:
    """Cut an edge into 256px segment groups from its start."""
    length = int(edge.length)
    groups: List[WallSegmentGroup] = []
    offset = 0
    index = 0
    while offset < length:
        size = SEGMENT_PX if length - offset >= SEGMENT_PX else length - offset
        groups.append(
            WallSegmentGroup(
                id=segment_group_id(edge_id, index),
                edge_id=edge_id,
                index=index,
                offset_px=offset,
                length_px=size,
                at_start_corner=offset == 0,
                at_end_corner=offset + size >= length,
            )
        )
        offset += size
        index += 1
    return groups


def segment_index(edge_index: Mapping[str, PerimeterEdge]) -> Dict[str, WallSegmentGroup]:
    """All segment groups of the current geometry keyed by id."""
    groups: Dict[str, WallSegmentGroup] = {}
    for edge_id, edge in edge_index.items():
        for group in segment_groups_for_edge(edge_id, edge):
            groups[group.id] = group
    return groups


def toggle_pattern(
    pattern: SegmentPattern, side: str, at_left_corner: bool = False, at_right_corner: bool = False
) -> SegmentPattern:
    """Next pattern after clicking one half of a segment.

    SOLID <-> single-side door <-> BOTH. A side door is never put against a
    corner pillar: clicking the corner half of a solid corner segment gives
    a centred door instead, and any click on a centred door clears it.
    """
    if side not in (LEFT, RIGHT):
        raise ValueError(f"Unknown segment side: {side!r}")

    if pattern is SegmentPattern.DOOR_CENTER:
        return SegmentPattern.SOLID_256

    if side == LEFT:
        own, other, at_corner = SegmentPattern.DOOR_LEFT, SegmentPattern.DOOR_RIGHT, at_left_corner
    else:
        own, other, at_corner = SegmentPattern.DOOR_RIGHT, SegmentPattern.DOOR_LEFT, at_right_corner

    if pattern is SegmentPattern.SOLID_256:
        return SegmentPattern.DOOR_CENTER if at_corner else own
    if pattern is own:
        return SegmentPattern.SOLID_256
    if pattern is other:
        return pattern if at_corner else SegmentPattern.DOOR_BOTH
    # DOOR_BOTH
    return other


def click_segment(
    segment_states: Mapping[str, SegmentState], group: WallSegmentGroup, side: str
) -> Dict[str, SegmentState]:
    """Apply a manual click to a segment group and return the new states."""
    updated = dict(segment_states)
    if not group.accepts_doors:
        LOGGER.debug("Segment %s is %spx and takes no doors", group.id, group.length_px)
        return updated

    current = updated.get(group.id)
    pattern = current.pattern if current else SegmentPattern.SOLID_256
    new_pattern = toggle_pattern(pattern, side, group.at_start_corner, group.at_end_corner)
    updated[group.id] = SegmentState(new_pattern, DoorSource.MANUAL)
    return updated


def pattern_door_spans(pattern: SegmentPattern) -> List[Tuple[int, int]]:
    return [(offset, offset + size) for kind, offset, size in PATTERN_PIECES[pattern] if kind == "door"]


def edge_segment_door_spans(
    edge_id: str, edge: PerimeterEdge, segment_states: Mapping[str, SegmentState]
) -> List[Tuple[float, float]]:
    """Door spans of an edge relative to its start, from segment states."""
    spans: List[Tuple[float, float]] = []
    for group in segment_groups_for_edge(edge_id, edge):
        state = segment_states.get(group.id)
        if state is None or not group.accepts_doors:
            continue
        spans.extend((group.offset_px + start, group.offset_px + end) for start, end in pattern_door_spans(state.pattern))
    return spans


def cleanup_segment_states(
    segment_states: Mapping[str, SegmentState], edge_index: Mapping[str, PerimeterEdge]
) -> Dict[str, SegmentState]:
    """Drop states whose segment group no longer exists."""
    groups = segment_index(edge_index)
    return {key: state for key, state in segment_states.items() if key in groups and groups[key].accepts_doors}


def _middle_segment(groups: List[WallSegmentGroup]) -> Optional[WallSegmentGroup]:
    full = [group for group in groups if group.accepts_doors]
    if not full:
        return None
    return full[(len(full) - 1) // 2]


def apply_auto_segment_states(
    segment_states: Mapping[str, SegmentState], edge_index: Mapping[str, PerimeterEdge]
) -> Dict[str, SegmentState]:
    """Give each internal edge without any state a centred auto door.

    Edges where someone set a segment by hand are left as they are, and
    auto states on edges that vanished are dropped.
    """
    updated = cleanup_segment_states(segment_states, edge_index)
    for edge_id, edge in edge_index.items():
        if not edge.is_internal:
            continue
        groups = segment_groups_for_edge(edge_id, edge)
        if any(group.id in updated for group in groups):
            continue
        middle = _middle_segment(groups)
        if middle is not None:
            updated[middle.id] = SegmentState(SegmentPattern.DOOR_CENTER, DoorSource.AUTO)
    return updated


MIRRORED_PATTERNS = {
    SegmentPattern.DOOR_LEFT: SegmentPattern.DOOR_RIGHT,
    SegmentPattern.DOOR_RIGHT: SegmentPattern.DOOR_LEFT,
}


def rotate_segment_states_for_room(
    segment_states: Mapping[str, SegmentState], room: Room, direction: str
) -> Dict[str, SegmentState]:
    """Re-key a room's external segment states for a quarter turn.

    States follow their wall to its new side. When the turn reverses the
    wall's direction the segment order and one-sided patterns are mirrored;
    a state whose segment no longer lines up with the 256px cut (walls with
    an odd tile remainder) is dropped.

    Args:
        segment_states: Current states keyed by segment group id.
        room: The room as it was before rotating.
        direction: ``"right"`` (clockwise) or ``"left"``.

    Returns:
        New state mapping; states on other rooms and internal edges are kept.
    """
    table = ROTATION_TABLES.get(direction)
    if table is None:
        raise ValueError(f"Unknown rotation direction: {direction!r}")

    rotated: Dict[str, SegmentState] = {}
    for key, state in segment_states.items():
        edge_id, _, index = key.rpartition("#")
        parsed = parse_external_edge_id(edge_id)
        if parsed is None or parsed[0] != room.id:
            rotated[key] = state
            continue

        _, side, offset_tiles, length_tiles = parsed
        new_side, inverted = table[side]
        new_index = int(index)
        new_offset_tiles = offset_tiles
        if inverted:
            length_px = int(tiles_to_pixels(length_tiles))
            if length_px % SEGMENT_PX:
                LOGGER.debug("Dropping segment state %s: wall no longer cuts evenly", key)
                continue
            new_index = length_px // SEGMENT_PX - 1 - new_index
            new_offset_tiles = side_length_tiles(room, side) - offset_tiles - length_tiles
            state = SegmentState(MIRRORED_PATTERNS.get(state.pattern, state.pattern), state.source)

        new_edge_id = external_edge_id(room.id, new_side, new_offset_tiles, length_tiles)
        rotated[segment_group_id(new_edge_id, new_index)] = state

    return rotated
