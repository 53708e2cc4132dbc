"""Operations engine for room layouts.

Every user action on the map (placing, moving, rotating or deleting a
room, clicking a wall with the door tool, restyling a building) is an
operation registered under a string name. Operations never mutate the
state they receive; they return a new LayoutState with wall groups and
doors brought up to date.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Protocol

from ..config import DEFAULT_FLOOR_STYLE_ID, DEFAULT_WALL_STYLE_ID
from ..core.model import LayoutState, Room
from ..geom.rect import overlaps_any, pixel_rect
from .doors import (
    ROTATION_TABLES,
    auto_doors_for_room,
    cleanup_edge_doors_for_geometry,
    handle_edge_door_click,
    index_edges,
    rotate_edge_doors_for_room,
)
from .groups import (
    IdFactory,
    attach_room,
    detach_room,
    new_room_id,
    new_wall_group_id,
    recompute_wall_groups,
    regroup_after_geometry_change,
)
from .pair_doors import cleanup_room_doors, create_doors_for_new_room
from .segments import (
    apply_auto_segment_states,
    cleanup_segment_states,
    click_segment,
    rotate_segment_states_for_room,
    segment_index,
)
from .validators import InvalidOperation

LOGGER = logging.getLogger(__name__)


class Operation(Protocol):
    """Protocol for layout operations.

    All operations must implement this interface to be compatible
    with the operation registry and execution engine.
    """

    def precheck(self, state: LayoutState, **kwargs: Any) -> bool:
        """Validate that the operation can be applied to the layout.

        Raises:
            ValueError: If a parameter is malformed.
            UnknownRoomError: If a referenced room does not exist.
            InvalidOperation: If the operation would break the layout.
        """
        ...

    def apply(self, state: LayoutState, **kwargs: Any) -> LayoutState:
        """Apply the operation and return the new layout."""
        ...


def _replace_room(state: LayoutState, room: Room) -> LayoutState:
    return state.evolve(rooms=tuple(room if r.id == room.id else r for r in state.rooms))


def _check_free(state: LayoutState, room: Room) -> None:
    others = [other for other in state.rooms if other.id != room.id]
    if overlaps_any(pixel_rect(room), others):
        raise InvalidOperation(f"Room '{room.id}' would overlap another room")


def _rotated(room: Room, direction: str) -> Room:
    if direction not in ROTATION_TABLES:
        raise ValueError(f"Unknown rotation direction: {direction!r}")
    step = 90 if direction == "right" else 270
    return replace(room, rotation=(room.rotation + step) % 360)


def _refresh_doors(state: LayoutState, room_id: Optional[str] = None) -> LayoutState:
    """Drop doors the geometry no longer supports, then add auto doors.

    With legacy segment states in use, internal edges without any state get
    a centred auto segment. With room-pair doors in use, the given room gets
    a door towards each neighbour it has none with. Otherwise the given
    room's internal edges without a door get a centred auto door.
    """
    edge_index = index_edges(state.rooms)
    edge_doors = cleanup_edge_doors_for_geometry(state.edge_doors, state.rooms, edge_index)
    segment_states = cleanup_segment_states(state.segment_states, edge_index)
    room_doors = cleanup_room_doors(state.room_doors, edge_index)
    refresh_room = room_id is not None and state.has_room(room_id)

    if edge_doors or not (segment_states or room_doors):
        if refresh_room:
            edge_doors = auto_doors_for_room(edge_doors, room_id, edge_index)
    elif segment_states:
        segment_states = apply_auto_segment_states(segment_states, edge_index)
    elif refresh_room:
        unpaired = [other for other in state.rooms if not any(door.joins(room_id, other.id) for door in room_doors)]
        room_doors += tuple(create_doors_for_new_room(state.room(room_id), unpaired, room_doors))

    return state.evolve(edge_doors=edge_doors, segment_states=segment_states, room_doors=room_doors)


class PlaceRoomOp:
    """Put a new room on the map.

    The room joins the group of the rooms it touches (merging them if it
    touches several) or starts a new group with the requested wall style.
    """

    def precheck(
        self,
        state: LayoutState,
        x: float,
        y: float,
        tiles_w: int,
        tiles_h: int,
        room_id: Optional[str] = None,
        rotation: int = 0,
        **kwargs: Any,
    ) -> bool:
        if room_id is not None and state.has_room(room_id):
            raise ValueError(f"Room '{room_id}' already exists")
        candidate = Room(room_id or "<new>", x, y, tiles_w, tiles_h, rotation)
        _check_free(state, candidate)
        return True

    def apply(
        self,
        state: LayoutState,
        x: float,
        y: float,
        tiles_w: int,
        tiles_h: int,
        room_id: Optional[str] = None,
        rotation: int = 0,
        floor_style_id: str = DEFAULT_FLOOR_STYLE_ID,
        wall_style_id: str = DEFAULT_WALL_STYLE_ID,
        room_id_factory: IdFactory = new_room_id,
        id_factory: IdFactory = new_wall_group_id,
        **kwargs: Any,
    ) -> LayoutState:
        room = Room(room_id or room_id_factory(), x, y, tiles_w, tiles_h, rotation, floor_style_id)
        LOGGER.debug("Placing room %s at (%s, %s)", room.id, x, y)
        state = state.evolve(rooms=state.rooms + (room,))
        state = attach_room(state, room.id, wall_style_id, id_factory)
        return _refresh_doors(state, room.id)


class MoveRoomOp:
    """Move a room to a new pixel position."""

    def precheck(self, state: LayoutState, room_id: str, x: float, y: float, **kwargs: Any) -> bool:
        _check_free(state, state.room(room_id).moved_to(x, y))
        return True

    def apply(
        self,
        state: LayoutState,
        room_id: str,
        x: float,
        y: float,
        id_factory: IdFactory = new_wall_group_id,
        **kwargs: Any,
    ) -> LayoutState:
        state = _replace_room(state, state.room(room_id).moved_to(x, y))
        state = regroup_after_geometry_change(state, room_id, id_factory)
        return _refresh_doors(state, room_id)


class RotateRoomOp:
    """Rotate a room a quarter turn in place; its top-left corner stays put.

    Doors and legacy segment states on the room's own walls turn with it;
    those on shared walls are kept only if the shared wall survives the turn
    unchanged.
    """

    def precheck(self, state: LayoutState, room_id: str, direction: str = "right", **kwargs: Any) -> bool:
        _check_free(state, _rotated(state.room(room_id), direction))
        return True

    def apply(
        self,
        state: LayoutState,
        room_id: str,
        direction: str = "right",
        id_factory: IdFactory = new_wall_group_id,
        **kwargs: Any,
    ) -> LayoutState:
        before = state.room(room_id)
        edge_doors = rotate_edge_doors_for_room(state.edge_doors, before, direction)
        segment_states = rotate_segment_states_for_room(state.segment_states, before, direction)
        state = _replace_room(state, _rotated(before, direction)).evolve(
            edge_doors=edge_doors, segment_states=segment_states
        )
        state = regroup_after_geometry_change(state, room_id, id_factory)
        return _refresh_doors(state, room_id)


class DeleteRoomOp:
    """Remove a room; the group it leaves behind may split."""

    def precheck(self, state: LayoutState, room_id: str, **kwargs: Any) -> bool:
        state.room(room_id)
        return True

    def apply(
        self, state: LayoutState, room_id: str, id_factory: IdFactory = new_wall_group_id, **kwargs: Any
    ) -> LayoutState:
        LOGGER.debug("Deleting room %s", room_id)
        return _refresh_doors(detach_room(state, room_id, id_factory))


class EdgeDoorClickOp:
    """Door tool click on an edge, at a pixel offset from the edge start."""

    def precheck(self, state: LayoutState, edge_id: str, click_offset: float, **kwargs: Any) -> bool:
        return True

    def apply(self, state: LayoutState, edge_id: str, click_offset: float, **kwargs: Any) -> LayoutState:
        edge = index_edges(state.rooms).get(edge_id)
        if edge is None:
            LOGGER.debug("Ignoring door click on unknown edge %s", edge_id)
            return state
        return state.evolve(edge_doors=handle_edge_door_click(state.edge_doors, edge_id, edge.length, click_offset))


class SegmentClickOp:
    """Legacy door tool click on one half of a 256px segment."""

    def precheck(self, state: LayoutState, segment_id: str, side: str, **kwargs: Any) -> bool:
        if side not in ("left", "right"):
            raise ValueError(f"Unknown segment side: {side!r}")
        return True

    def apply(self, state: LayoutState, segment_id: str, side: str, **kwargs: Any) -> LayoutState:
        group = segment_index(index_edges(state.rooms)).get(segment_id)
        if group is None:
            LOGGER.debug("Ignoring click on unknown segment %s", segment_id)
            return state
        return state.evolve(segment_states=click_segment(state.segment_states, group, side))


class SetWallStyleOp:
    """Change the wall style of a whole building."""

    def precheck(self, state: LayoutState, group_id: str, wall_style_id: str, **kwargs: Any) -> bool:
        if state.group(group_id) is None:
            raise ValueError(f"Wall group '{group_id}' does not exist")
        return True

    def apply(self, state: LayoutState, group_id: str, wall_style_id: str, **kwargs: Any) -> LayoutState:
        groups = tuple(
            replace(group, wall_style_id=wall_style_id) if group.id == group_id else group
            for group in state.wall_groups
        )
        return state.evolve(wall_groups=groups)


class RecomputeGroupsOp:
    """Rebuild every wall group assignment from room adjacency."""

    def precheck(self, state: LayoutState, **kwargs: Any) -> bool:
        return True

    def apply(self, state: LayoutState, id_factory: IdFactory = new_wall_group_id, **kwargs: Any) -> LayoutState:
        return recompute_wall_groups(state, id_factory)


# Operation registry
_OPERATIONS: Dict[str, Operation] = {
    "place_room": PlaceRoomOp(),
    "move_room": MoveRoomOp(),
    "rotate_room": RotateRoomOp(),
    "delete_room": DeleteRoomOp(),
    "edge_door_click": EdgeDoorClickOp(),
    "segment_click": SegmentClickOp(),
    "set_wall_style": SetWallStyleOp(),
    "recompute_groups": RecomputeGroupsOp(),
}


def register_operation(name: str, operation: Operation) -> None:
    """Register a new operation in the registry.

    Args:
        name: Name of the operation.
        operation: Operation instance to register.
    """
    _OPERATIONS[name] = operation


def get_operation(name: str) -> Operation:
    """Get an operation by name.

    Raises:
        KeyError: If the operation is not registered.
    """
    if name not in _OPERATIONS:
        raise KeyError(f"Operation '{name}' is not registered")
    return _OPERATIONS[name]


def list_operations() -> list[str]:
    return list(_OPERATIONS.keys())
