"""Post-apply validation functions for layout operations.

These run after every operation applied through :func:`engine.api.apply`
and guard the invariants every operation is expected to keep: wall groups
mirror room adjacency, rooms never overlap, and stored doors respect the
corner margins of the edge they sit on.
"""

from __future__ import annotations

from typing import Dict, List

from shapely.strtree import STRtree

from ..core.model import LayoutState
from ..core.topology import find_connected_components
from ..geom.rect import pixel_rect, rect_polygon, rects_overlap
from .doors import index_edges, is_valid_door_offset


class InvalidOperation(Exception):
    """Raised when an operation violates layout invariants."""

    pass


def validate_wall_groups(state: LayoutState) -> bool:
    """Validate group bookkeeping against the current geometry.

    Every ``room_count`` must equal the number of rooms pointing at the
    group, every room must point at an existing group, and the groups must
    be exactly the connected components of the adjacency graph.
    """
    counts: Dict[str, int] = {}
    for room in state.rooms:
        if room.wall_group_id is None or state.group(room.wall_group_id) is None:
            return False
        counts[room.wall_group_id] = counts.get(room.wall_group_id, 0) + 1

    for group in state.wall_groups:
        if counts.get(group.id, 0) != group.room_count:
            return False

    components = find_connected_components(state.rooms)
    for component in components:
        if len({room.wall_group_id for room in component}) != 1:
            return False
    return len(counts) == len(components)


def find_overlapping_rooms(state: LayoutState) -> List[tuple[str, str]]:
    """Pairs of room ids whose footprints overlap by more than the tolerance."""
    rects = [pixel_rect(room) for room in state.rooms]
    tree = STRtree([rect_polygon(rect) for rect in rects])

    pairs: List[tuple[str, str]] = []
    for index, rect in enumerate(rects):
        for other in tree.query(rect_polygon(rect)):
            other = int(other)
            if other <= index:
                continue
            if rects_overlap(rect, rects[other]):
                pairs.append((state.rooms[index].id, state.rooms[other].id))
    return pairs


def validate_no_overlap(state: LayoutState) -> bool:
    return not find_overlapping_rooms(state)


def validate_door_margins(state: LayoutState) -> bool:
    """Every stored free-placement door sits on a live edge within its margins."""
    edge_index = index_edges(state.rooms)
    for edge_id, doors in state.edge_doors.items():
        edge = edge_index.get(edge_id)
        if edge is None:
            return False
        if not all(is_valid_door_offset(door.offset_px, edge.length) for door in doors):
            return False
    return True


def validate_all(state: LayoutState) -> bool:
    """Run all validators on the layout.

    Returns:
        True if all validations pass.

    Raises:
        InvalidOperation: If any validation fails with details about the failure.
    """
    if not validate_wall_groups(state):
        raise InvalidOperation("Wall group validation failed: groups do not match room adjacency")

    overlapping = find_overlapping_rooms(state)
    if overlapping:
        raise InvalidOperation(f"Overlap validation failed: {overlapping}")

    if not validate_door_margins(state):
        raise InvalidOperation("Door validation failed: door outside its edge margins")

    return True
