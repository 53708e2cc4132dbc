"""Wall group management.

Rooms that touch form one building and share a wall style. This module
keeps ``Room.wall_group_id`` and ``WallGroup.room_count`` consistent as
rooms are placed, moved, rotated and deleted:

- split: when a group's rooms stop being connected, the largest
  component keeps the group id and the others get fresh ids;
- merge: when a room touches several groups, the dominant group absorbs
  the others.

Every function returns new collections; nothing is mutated in place.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_WALL_STYLE_ID, ROOM_ID_PREFIX, WALL_GROUP_ID_PREFIX
from ..core.model import LayoutState, Room, WallGroup
from ..core.topology import build_wall_groups, find_connected_components
from ..geom.rect import adjacent_rooms

LOGGER = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_wall_group_id() -> str:
    """Generate a unique wall group ID."""
    return f"{WALL_GROUP_ID_PREFIX}-{uuid.uuid4().hex}"


def new_room_id() -> str:
    """Generate a unique room ID."""
    return f"{ROOM_ID_PREFIX}-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class DominantGroup:
    group_id: str
    wall_style_id: str
    room_count: int


def recount_groups(rooms: Iterable[Room], groups: Iterable[WallGroup]) -> Tuple[WallGroup, ...]:
    """Recompute every group's room_count and drop groups left without rooms."""
    counts: Dict[str, int] = {}
    for room in rooms:
        if room.wall_group_id is not None:
            counts[room.wall_group_id] = counts.get(room.wall_group_id, 0) + 1
    return tuple(
        WallGroup(group.id, group.wall_style_id, counts[group.id]) for group in groups if counts.get(group.id)
    )


def get_dominant_group(group_ids: Iterable[str], groups: Sequence[WallGroup]) -> Optional[DominantGroup]:
    """Pick the group that absorbs the others in a merge.

    The group with the most rooms wins; ties go to the lexicographically
    smallest group id.
    """
    by_id = {group.id: group for group in groups}
    candidates = []
    for group_id in set(group_ids):
        group = by_id.get(group_id)
        candidates.append(
            DominantGroup(
                group_id,
                group.wall_style_id if group else DEFAULT_WALL_STYLE_ID,
                group.room_count if group else 0,
            )
        )
    if not candidates:
        return None
    return min(candidates, key=lambda candidate: (-candidate.room_count, candidate.group_id))


def find_adjacent_groups(room: Room, all_rooms: Iterable[Room]) -> List[str]:
    """Unique wall group ids of the rooms adjacent to ``room``, sorted."""
    return sorted({other.wall_group_id for other in adjacent_rooms(room, all_rooms) if other.wall_group_id})


def _order_components(components: List[List[Room]]) -> List[List[Room]]:
    # Largest first, then the component holding the smallest room id
    return sorted(components, key=lambda component: (-len(component), min(room.id for room in component)))


def split_group(
    state: LayoutState, group_id: str, id_factory: IdFactory = new_wall_group_id
) -> LayoutState:
    """Split a wall group whose rooms are no longer all connected.

    Args:
        state: Layout whose rooms already sit at their new positions.
        group_id: Group to check.
        id_factory: Source of ids for the new groups.

    Returns:
        A new state. Unchanged (apart from room counts) when the group is
        still connected.
    """
    members = state.rooms_in_group(group_id)
    original = state.group(group_id)
    wall_style_id = original.wall_style_id if original else DEFAULT_WALL_STYLE_ID

    if len(members) <= 1:
        return state.evolve(wall_groups=recount_groups(state.rooms, state.wall_groups))

    components = find_connected_components(members)
    if len(components) <= 1:
        return state.evolve(wall_groups=recount_groups(state.rooms, state.wall_groups))

    ordered = _order_components(components)
    reassign: Dict[str, str] = {}
    new_groups: List[WallGroup] = []
    for component in ordered[1:]:
        new_id = id_factory()
        new_groups.append(WallGroup(new_id, wall_style_id, len(component)))
        for room in component:
            reassign[room.id] = new_id

    LOGGER.debug(
        "Split group %s into %d components; %s keeps %d rooms",
        group_id,
        len(components),
        group_id,
        len(ordered[0]),
    )

    rooms = tuple(room.in_group(reassign[room.id]) if room.id in reassign else room for room in state.rooms)
    return state.evolve(rooms=rooms, wall_groups=recount_groups(rooms, tuple(state.wall_groups) + tuple(new_groups)))


def attach_room(
    state: LayoutState,
    room_id: str,
    wall_style_id: str = DEFAULT_WALL_STYLE_ID,
    id_factory: IdFactory = new_wall_group_id,
) -> LayoutState:
    """Join a room to the groups it touches, merging them if needed.

    Only groups reached through adjacent rooms take part in the dominance
    contest; the room is expected to carry no group yet. A room that
    touches nothing gets a new group with ``wall_style_id``.
    """
    room = state.room(room_id)
    touched = set(find_adjacent_groups(room, state.rooms))

    if not touched:
        group_id = id_factory()
        LOGGER.debug("Room %s starts new group %s", room_id, group_id)
        rooms = tuple(r.in_group(group_id) if r.id == room_id else r for r in state.rooms)
        groups = tuple(state.wall_groups) + (WallGroup(group_id, wall_style_id, 1),)
        return state.evolve(rooms=rooms, wall_groups=recount_groups(rooms, groups))

    groups = recount_groups(state.rooms, state.wall_groups)
    dominant = get_dominant_group(touched, groups)
    absorbed = touched - {dominant.group_id}
    if absorbed:
        LOGGER.debug("Merging groups %s into %s", sorted(absorbed), dominant.group_id)

    rooms = tuple(
        r.in_group(dominant.group_id) if r.id == room_id or r.wall_group_id in absorbed else r for r in state.rooms
    )
    return state.evolve(rooms=rooms, wall_groups=recount_groups(rooms, groups))


def release_room(state: LayoutState, room_id: str, id_factory: IdFactory = new_wall_group_id) -> LayoutState:
    """Take a room out of its wall group and split the rooms it leaves behind.

    The room stays on the map without a group. A group the room was the only
    member of disappears.
    """
    room = state.room(room_id)
    rooms = tuple(r.in_group(None) if r.id == room_id else r for r in state.rooms)
    released = state.evolve(rooms=rooms, wall_groups=recount_groups(rooms, state.wall_groups))
    if room.wall_group_id is None:
        return released
    return split_group(released, room.wall_group_id, id_factory)


def detach_room(state: LayoutState, room_id: str, id_factory: IdFactory = new_wall_group_id) -> LayoutState:
    """Remove a room from the layout and split the group it leaves behind."""
    released = release_room(state, room_id, id_factory)
    return released.evolve(rooms=tuple(r for r in released.rooms if r.id != room_id))


def regroup_after_geometry_change(
    state: LayoutState, room_id: str, id_factory: IdFactory = new_wall_group_id
) -> LayoutState:
    """Bring groups up to date after a room moved or rotated in place.

    The room leaves its previous group first, so the rooms left behind keep
    the group id (or split, if the room was a bridge). The room then joins
    whatever it touches at its new position. A room that was alone and
    still touches nothing keeps its group.
    """
    room = state.room(room_id)
    previous = state.group(room.wall_group_id) if room.wall_group_id else None
    if previous is not None and previous.room_count == 1 and not find_adjacent_groups(room, state.rooms):
        return state

    style = previous.wall_style_id if previous else DEFAULT_WALL_STYLE_ID
    state = release_room(state, room_id, id_factory)
    return attach_room(state, room_id, style, id_factory)


def recompute_wall_groups(state: LayoutState, id_factory: IdFactory = new_wall_group_id) -> LayoutState:
    """Rebuild every room's wall group from scratch with union-find.

    Existing group ids are reused: each component keeps the id held by most
    of its rooms (ties to the smallest id) unless a larger component
    already claimed it. Recomputing an already consistent state returns an
    equal state.
    """
    by_id = {room.id: room for room in state.rooms}
    styles = {group.id: group.wall_style_id for group in state.wall_groups}
    components = [[by_id[room_id] for room_id in ids] for ids in build_wall_groups(state.rooms)]

    claimed: Dict[str, str] = {}
    assignment: Dict[str, str] = {}
    new_groups: List[WallGroup] = []
    for component in _order_components(components):
        votes: Dict[str, int] = {}
        for room in component:
            if room.wall_group_id and room.wall_group_id not in claimed:
                votes[room.wall_group_id] = votes.get(room.wall_group_id, 0) + 1
        if votes:
            group_id = min(votes, key=lambda gid: (-votes[gid], gid))
        else:
            group_id = id_factory()
        claimed[group_id] = group_id
        style = styles.get(group_id)
        if style is None:
            inherited = [styles[room.wall_group_id] for room in component if room.wall_group_id in styles]
            style = inherited[0] if inherited else DEFAULT_WALL_STYLE_ID
        new_groups.append(WallGroup(group_id, style, len(component)))
        for room in component:
            assignment[room.id] = group_id

    rooms = tuple(room.in_group(assignment[room.id]) for room in state.rooms)
    kept = [group for group in state.wall_groups if group.id in claimed]
    kept_ids = {group.id for group in kept}
    ordered = kept + [group for group in new_groups if group.id not in kept_ids]
    return state.evolve(rooms=rooms, wall_groups=recount_groups(rooms, ordered))
