"""Non-committing drop preview.

Answers "what happens if the room is released here?" while a drag is in
progress: which group it would join, which groups would be absorbed, which
doors would appear on new shared walls and which stored doors would be
dropped. The input state is never modified, so the preview can be
recomputed on every pointer move and simply discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.model import EdgeDoor, LayoutState
from .doors import cleanup_edge_doors_for_geometry, create_door_at_midpoint, index_edges
from .groups import IdFactory, find_adjacent_groups, get_dominant_group, new_wall_group_id, release_room
from .pair_doors import cleanup_room_doors


@dataclass(frozen=True)
class DropSimulation:
    """Preview of a room drop.

    Attributes:
        new_position: (x, y) the room would land at, in pixels.
        will_merge: True if the room would change group or join groups.
        target_group_id: Group the room would end up in, None if isolated.
        target_wall_style_id: Wall style of that group.
        merged_group_ids: Groups that would be absorbed into the target.
        new_doors: Auto doors that would be created, keyed by edge id.
        removed_door_keys: Edge ids whose stored doors would be dropped,
            followed by the ids of room-pair doors that would be dropped.
        affected_room_ids: Rooms whose group or walls would change.
    """

    new_position: Tuple[float, float]
    will_merge: bool = False
    target_group_id: Optional[str] = None
    target_wall_style_id: Optional[str] = None
    merged_group_ids: List[str] = field(default_factory=list)
    new_doors: Dict[str, EdgeDoor] = field(default_factory=dict)
    removed_door_keys: List[str] = field(default_factory=list)
    affected_room_ids: List[str] = field(default_factory=list)


def simulate_drop(
    state: LayoutState,
    room_id: str,
    new_x: float,
    new_y: float,
    id_factory: IdFactory = new_wall_group_id,
) -> DropSimulation:
    """Preview dropping ``room_id`` at ``(new_x, new_y)``.

    Args:
        state: Current layout; left untouched.
        room_id: Room being dragged.
        new_x: Proposed left edge in pixels.
        new_y: Proposed top edge in pixels.
        id_factory: Source of ids for groups split off the room's old group.

    Returns:
        The preview.

    Raises:
        UnknownRoomError: If the room is not in the layout.
    """
    room = state.room(room_id)
    moved = room.moved_to(new_x, new_y)
    others = [other for other in state.rooms if other.id != room_id]
    rooms_after = others + [moved]

    # Groups are judged the way move_room commits them: the room leaves its
    # old group first, then only groups reached through neighbours compete
    released = release_room(state.evolve(rooms=tuple(others) + (moved,)), room_id, id_factory)
    regrouped = {other.id: other.wall_group_id for other in released.rooms}
    touched = find_adjacent_groups(moved, [other for other in released.rooms if other.id != room_id])
    dominant = get_dominant_group(touched, released.wall_groups)

    edge_index = index_edges(rooms_after)
    cleaned = cleanup_edge_doors_for_geometry(state.edge_doors, rooms_after, edge_index)
    removed = sorted(set(state.edge_doors) - set(cleaned))
    kept_room_doors = cleanup_room_doors(state.room_doors, edge_index)
    removed += [door.id for door in state.room_doors if door not in kept_room_doors]

    new_doors: Dict[str, EdgeDoor] = {}
    for edge_id, edge in sorted(edge_index.items()):
        if not edge.is_internal or room_id not in (edge.room_a_id, edge.room_b_id):
            continue
        if cleaned.get(edge_id):
            continue
        door = create_door_at_midpoint(edge)
        if door is not None:
            new_doors[edge_id] = door

    # Rooms split off the old group change group too
    affected = {room_id} | {other.id for other in others if regrouped[other.id] != other.wall_group_id}

    if dominant is None:
        return DropSimulation(
            new_position=(new_x, new_y),
            new_doors=new_doors,
            removed_door_keys=removed,
            affected_room_ids=sorted(affected),
        )

    merged = sorted(set(touched) - {dominant.group_id})
    will_merge = bool(merged) or room.wall_group_id != dominant.group_id
    affected.update(other.id for other in others if regrouped[other.id] in merged)

    return DropSimulation(
        new_position=(new_x, new_y),
        will_merge=will_merge,
        target_group_id=dominant.group_id,
        target_wall_style_id=dominant.wall_style_id,
        merged_group_ids=merged,
        new_doors=new_doors,
        removed_door_keys=removed,
        affected_room_ids=sorted(affected),
    )
