"""Room-pair doors.

Early scenes recorded a door as "the door between room A and room B"
together with the wall the two rooms shared when it was made. Such a door
is not keyed by an edge id: it follows the pair, so after either room moves
or turns it is drawn centred on whatever wall the two rooms share now, and
it disappears once they stop touching.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DOOR_ID_PREFIX
from ..core.model import DoorSource, PerimeterEdge, Room, RoomPairDoor, SharedEdge
from ..geom.rect import shared_edge
from .doors import centered_door_offset, format_number

LOGGER = logging.getLogger(__name__)

DoorIdFactory = Callable[[], str]


def new_door_id() -> str:
    """Generate a unique door ID."""
    return f"{DOOR_ID_PREFIX}-{uuid.uuid4().hex}"


def room_pair_key(room_a_id: str, room_b_id: str, edge: SharedEdge | PerimeterEdge) -> str:
    """Stable lookup key of a pair's shared wall; room order does not matter."""
    first, second = sorted((room_a_id, room_b_id))
    return (
        f"{first}|{second}|{edge.orientation.value}|{format_number(edge.position)}|"
        f"{format_number(edge.range_start)}|{format_number(edge.range_end)}"
    )


def _pair_edge(room_a_id: str, room_b_id: str, edge: SharedEdge) -> PerimeterEdge:
    first, second = sorted((room_a_id, room_b_id))
    return PerimeterEdge(edge.orientation, edge.position, edge.range_start, edge.range_end, True, first, second)


def _door_on(
    edge: PerimeterEdge, id_factory: DoorIdFactory, source: DoorSource = DoorSource.AUTO
) -> Optional[RoomPairDoor]:
    offset = centered_door_offset(edge.length)
    if offset is None:
        return None
    return RoomPairDoor(
        id=id_factory(),
        room_a_id=edge.room_a_id,
        room_b_id=edge.room_b_id,
        orientation=edge.orientation,
        position=edge.position,
        range_start=edge.range_start,
        range_end=edge.range_end,
        offset_px=offset,
        source=source,
    )


def find_doors_for_edge(doors: Iterable[RoomPairDoor], edge: SharedEdge | PerimeterEdge) -> List[RoomPairDoor]:
    """Doors recorded on exactly this wall."""
    return [
        door
        for door in doors
        if door.orientation is edge.orientation
        and door.position == edge.position
        and door.range_start == edge.range_start
        and door.range_end == edge.range_end
    ]


def create_door_for_shared_edge(
    edge: PerimeterEdge, existing_doors: Iterable[RoomPairDoor], id_factory: DoorIdFactory = new_door_id
) -> Optional[RoomPairDoor]:
    """Centred door for an internal edge, unless the pair already has one on that line.

    Returns None for external edges and for walls too short for a door.
    """
    if not edge.is_internal or edge.room_b_id is None:
        return None
    for door in existing_doors:
        same_line = door.orientation is edge.orientation and door.position == edge.position
        if same_line and door.joins(edge.room_a_id, edge.room_b_id):
            return None
    return _door_on(edge, id_factory)


def create_doors_for_new_room(
    room: Room,
    existing_rooms: Iterable[Room],
    existing_doors: Sequence[RoomPairDoor],
    id_factory: DoorIdFactory = new_door_id,
) -> List[RoomPairDoor]:
    """Doors for every wall a newly placed room shares with the rooms already there."""
    created: List[RoomPairDoor] = []
    for other in existing_rooms:
        if other.id == room.id:
            continue
        shared = shared_edge(room, other)
        if shared is None:
            continue
        door = create_door_for_shared_edge(
            _pair_edge(room.id, other.id, shared), tuple(existing_doors) + tuple(created), id_factory
        )
        if door is not None:
            created.append(door)
    return created


def recalculate_all_doors(rooms: Sequence[Room], id_factory: DoorIdFactory = new_door_id) -> Tuple[RoomPairDoor, ...]:
    """One centred door per adjacent pair, built from scratch."""
    doors: List[RoomPairDoor] = []
    for index, room_a in enumerate(rooms):
        for room_b in rooms[index + 1 :]:
            shared = shared_edge(room_a, room_b)
            if shared is None:
                continue
            door = _door_on(_pair_edge(room_a.id, room_b.id, shared), id_factory)
            if door is not None:
                doors.append(door)
    return tuple(doors)


def current_edge(door: RoomPairDoor, edge_index: Mapping[str, PerimeterEdge]) -> Optional[PerimeterEdge]:
    """The wall the door's two rooms share now, wherever it moved to."""
    for edge in edge_index.values():
        if edge.is_internal and door.joins(edge.room_a_id, edge.room_b_id):
            return edge
    return None


def cleanup_room_doors(
    doors: Iterable[RoomPairDoor], edge_index: Mapping[str, PerimeterEdge]
) -> Tuple[RoomPairDoor, ...]:
    """Drop doors whose rooms no longer share a wall."""
    kept = []
    for door in doors:
        if current_edge(door, edge_index) is None:
            LOGGER.debug("Dropping door %s: %s and %s no longer touch", door.id, door.room_a_id, door.room_b_id)
            continue
        kept.append(door)
    return tuple(kept)


def pair_door_spans(doors: Iterable[RoomPairDoor], edge: PerimeterEdge) -> List[Tuple[float, float]]:
    """(start, end) of the pair's doors on an edge, centred on it."""
    if not edge.is_internal:
        return []
    offset = centered_door_offset(edge.length)
    if offset is None:
        return []
    # Every door of a pair is centred on the same wall, so they share one opening
    for door in doors:
        if door.joins(edge.room_a_id, edge.room_b_id):
            return [(offset, offset + door.width_px)]
    return []
