"""Free-placement doors keyed by stable edge identity.

Doors are stored against an edge id computed fresh from the current
geometry every time it is needed:

- external edge (one room): ``orientation|roomId|side:offset+length`` with
  the offset and length in tiles relative to the room's own corner, so the
  id survives moving the room;
- internal edge (two rooms): ``orientation|roomA+roomB|position:start-end``
  in absolute pixels, valid while the two rooms stay put relative to each
  other.

Door offsets are pixels from the edge start (left end of horizontal
edges, top end of vertical ones). A door is 128px wide, snaps to a 64px
grid and keeps 64px clear of both edge ends, except on single-tile edges
where it starts at 0.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DOOR_CORNER_MARGIN_PX, DOOR_WIDTH_PX, HALF_TILE_PX, TILE_PX
from ..core.model import DoorSource, EdgeDoor, Orientation, PerimeterEdge, Room, Side
from ..geom.edges import EdgeSet, extract_edges
from ..geom.rect import tiles_to_pixels

LOGGER = logging.getLogger(__name__)

EdgeDoors = Mapping[str, Tuple[EdgeDoor, ...]]

# Clockwise turn: old side -> (new side, offsets inverted?)
# Offsets run left->right on N/S and top->bottom on E/W.
ROTATE_RIGHT: Dict[Side, Tuple[Side, bool]] = {
    Side.N: (Side.E, False),
    Side.E: (Side.S, True),
    Side.S: (Side.W, False),
    Side.W: (Side.N, True),
}

ROTATE_LEFT: Dict[Side, Tuple[Side, bool]] = {
    Side.N: (Side.W, True),
    Side.W: (Side.S, False),
    Side.S: (Side.E, True),
    Side.E: (Side.N, False),
}

ROTATION_TABLES = {"right": ROTATE_RIGHT, "left": ROTATE_LEFT}

SIDE_ORIENTATION = {
    Side.N: Orientation.HORIZONTAL,
    Side.S: Orientation.HORIZONTAL,
    Side.E: Orientation.VERTICAL,
    Side.W: Orientation.VERTICAL,
}


def format_number(value: float) -> str:
    """Render a coordinate for use in an id: integers without a decimal point."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


# ============================================
# EDGE IDENTITY
# ============================================


def edge_side(edge: PerimeterEdge, room: Room) -> Side:
    """Side of ``room`` the edge lies on."""
    if edge.orientation is Orientation.HORIZONTAL:
        return Side.N if edge.position == room.y else Side.S
    return Side.W if edge.position == room.x else Side.E


def side_length_tiles(room: Room, side: Side) -> int:
    """Length in tiles of the given side of a room as currently laid out."""
    if SIDE_ORIENTATION[side] is Orientation.HORIZONTAL:
        return room.effective_tiles_w
    return room.effective_tiles_h


def external_edge_id(room_id: str, side: Side, offset_tiles: float, length_tiles: float) -> str:
    orientation = SIDE_ORIENTATION[side]
    return f"{orientation.value}|{room_id}|{side.value}:{format_number(offset_tiles)}+{format_number(length_tiles)}"


def internal_edge_id(edge: PerimeterEdge) -> str:
    room_a, room_b = sorted((edge.room_a_id, edge.room_b_id))
    return (
        f"{edge.orientation.value}|{room_a}+{room_b}|"
        f"{format_number(edge.position)}:{format_number(edge.range_start)}-{format_number(edge.range_end)}"
    )


def compute_edge_id(edge: PerimeterEdge, rooms_by_id: Mapping[str, Room]) -> str:
    """Stable identity of an edge under the current geometry."""
    if edge.is_internal:
        return internal_edge_id(edge)

    room = rooms_by_id[edge.room_a_id]
    side = edge_side(edge, room)
    origin = room.x if edge.orientation is Orientation.HORIZONTAL else room.y
    offset_tiles = (edge.range_start - origin) / TILE_PX
    length_tiles = edge.length / TILE_PX
    return external_edge_id(room.id, side, offset_tiles, length_tiles)


def parse_external_edge_id(edge_id: str) -> Optional[Tuple[str, Side, float, float]]:
    """Split an external edge id into (room_id, side, offset_tiles, length_tiles)."""
    head, _, tail = edge_id.rpartition("|")
    _, _, room_id = head.partition("|")
    side_part, _, range_part = tail.partition(":")
    if not room_id or side_part not in Side.__members__ or "+" not in range_part:
        return None
    offset, _, length = range_part.partition("+")
    try:
        return room_id, Side(side_part), float(offset), float(length)
    except ValueError:
        return None


def index_edges(rooms: Sequence[Room], edge_set: Optional[EdgeSet] = None) -> Dict[str, PerimeterEdge]:
    """Map of edge id to edge for the current geometry."""
    if edge_set is None:
        edge_set = extract_edges(rooms)
    rooms_by_id = {room.id: room for room in rooms}
    return {compute_edge_id(edge, rooms_by_id): edge for edge in edge_set.all}


# ============================================
# PLACEMENT RULES
# ============================================


def is_single_tile_edge(edge_length: float) -> bool:
    return edge_length == TILE_PX


def is_valid_door_offset(offset: float, edge_length: float) -> bool:
    """Check the 64px grid and the corner margin for a door offset."""
    if offset % HALF_TILE_PX != 0:
        return False
    if is_single_tile_edge(edge_length):
        return offset == 0
    return DOOR_CORNER_MARGIN_PX <= offset and offset + DOOR_WIDTH_PX <= edge_length - DOOR_CORNER_MARGIN_PX


def doors_overlap(offset_a: float, offset_b: float) -> bool:
    return offset_a < offset_b + DOOR_WIDTH_PX and offset_b < offset_a + DOOR_WIDTH_PX


def snap_door_offset(click_offset: float, edge_length: float) -> Optional[int]:
    """Door start for a click along an edge, or None if no door fits.

    The door is centred on the click, snapped to the 64px grid and pushed
    inside the corner margins.
    """
    if is_single_tile_edge(edge_length):
        return 0

    lowest = DOOR_CORNER_MARGIN_PX
    highest = edge_length - DOOR_CORNER_MARGIN_PX - DOOR_WIDTH_PX
    if highest < lowest:
        return None

    snapped = round((click_offset - DOOR_WIDTH_PX / 2) / HALF_TILE_PX) * HALF_TILE_PX
    snapped = max(lowest, min(snapped, highest))
    # Keep on grid if the highest bound is not aligned
    snapped -= snapped % HALF_TILE_PX
    return int(snapped) if snapped >= lowest else None


def centered_door_offset(edge_length: float) -> Optional[int]:
    """Offset of a door centred on an edge, or None if it would break the margins."""
    offset = (edge_length - DOOR_WIDTH_PX) / 2
    offset -= offset % HALF_TILE_PX
    if offset < 0 or not is_valid_door_offset(offset, edge_length):
        return None
    return int(offset)


def sorted_doors(doors: Iterable[EdgeDoor]) -> Tuple[EdgeDoor, ...]:
    return tuple(sorted(doors, key=lambda door: door.offset_px))


def _with_doors(edge_doors: EdgeDoors, edge_id: str, doors: Iterable[EdgeDoor]) -> Dict[str, Tuple[EdgeDoor, ...]]:
    updated = dict(edge_doors)
    doors = sorted_doors(doors)
    if doors:
        updated[edge_id] = doors
    else:
        updated.pop(edge_id, None)
    return updated


def handle_edge_door_click(
    edge_doors: EdgeDoors, edge_id: str, edge_length: float, click_offset: float
) -> Dict[str, Tuple[EdgeDoor, ...]]:
    """Toggle a door on an edge at a clicked position.

    Args:
        edge_doors: Current doors keyed by edge id.
        edge_id: Edge that was clicked.
        edge_length: Length of the edge in pixels.
        click_offset: Click position in pixels from the edge start.

    Returns:
        New door mapping. Clicking inside an existing door removes it;
        a click whose door would overlap another door, or that cannot fit
        within the corner margins, leaves the doors unchanged.
    """
    existing = tuple(edge_doors.get(edge_id, ()))

    for door in existing:
        if door.offset_px <= click_offset < door.offset_px + DOOR_WIDTH_PX:
            LOGGER.debug("Removing door at %s on %s", door.offset_px, edge_id)
            return _with_doors(edge_doors, edge_id, [d for d in existing if d is not door])

    offset = snap_door_offset(click_offset, edge_length)
    if offset is None:
        LOGGER.debug("Edge %s is too short for a door (%spx)", edge_id, edge_length)
        return dict(edge_doors)

    if any(doors_overlap(offset, door.offset_px) for door in existing):
        LOGGER.debug("Door at %s would overlap an existing door on %s", offset, edge_id)
        return dict(edge_doors)

    return _with_doors(edge_doors, edge_id, existing + (EdgeDoor(offset, DoorSource.MANUAL),))


# ============================================
# GEOMETRY CHANGES
# ============================================


def cleanup_edge_doors_for_geometry(
    edge_doors: EdgeDoors, rooms: Sequence[Room], edge_index: Optional[Mapping[str, PerimeterEdge]] = None
) -> Dict[str, Tuple[EdgeDoor, ...]]:
    """Drop doors whose edge no longer exists or that no longer fit on it."""
    if edge_index is None:
        edge_index = index_edges(rooms)

    cleaned: Dict[str, Tuple[EdgeDoor, ...]] = {}
    for edge_id, doors in edge_doors.items():
        edge = edge_index.get(edge_id)
        if edge is None:
            LOGGER.debug("Dropping %d door(s) on vanished edge %s", len(doors), edge_id)
            continue
        kept: List[EdgeDoor] = []
        for door in sorted_doors(doors):
            if not is_valid_door_offset(door.offset_px, edge.length):
                LOGGER.debug("Dropping door at %s on %s: outside margins", door.offset_px, edge_id)
                continue
            if any(doors_overlap(door.offset_px, other.offset_px) for other in kept):
                continue
            kept.append(door)
        if kept:
            cleaned[edge_id] = tuple(kept)
    return cleaned


def rotate_edge_doors_for_room(
    edge_doors: EdgeDoors, room: Room, direction: str
) -> Dict[str, Tuple[EdgeDoor, ...]]:
    """Re-key and re-offset a room's external-edge doors for a quarter turn.

    Args:
        edge_doors: Current doors keyed by edge id.
        room: The room as it was before rotating.
        direction: ``"right"`` (clockwise) or ``"left"``.

    Returns:
        New door mapping. Doors on other rooms and on internal edges are
        left alone; internal ones are dropped later by geometry cleanup if
        the shared wall moved.
    """
    table = ROTATION_TABLES.get(direction)
    if table is None:
        raise ValueError(f"Unknown rotation direction: {direction!r}")

    rotated: Dict[str, Tuple[EdgeDoor, ...]] = {}
    for edge_id, doors in edge_doors.items():
        parsed = parse_external_edge_id(edge_id)
        if parsed is None or parsed[0] != room.id:
            rotated[edge_id] = doors
            continue

        _, side, offset_tiles, length_tiles = parsed
        new_side, inverted = table[side]
        side_tiles = side_length_tiles(room, side)
        edge_length = tiles_to_pixels(length_tiles)

        if inverted:
            new_offset_tiles = side_tiles - offset_tiles - length_tiles
            new_doors = [
                EdgeDoor(int(edge_length - door.offset_px - DOOR_WIDTH_PX), door.source) for door in doors
            ]
        else:
            new_offset_tiles = offset_tiles
            new_doors = list(doors)

        new_id = external_edge_id(room.id, new_side, new_offset_tiles, length_tiles)
        rotated[new_id] = sorted_doors(new_doors)

    return rotated


# ============================================
# AUTOMATIC DOORS
# ============================================


def create_door_at_midpoint(edge: PerimeterEdge) -> Optional[EdgeDoor]:
    """Auto door centred on an internal edge."""
    if not edge.is_internal:
        return None
    offset = centered_door_offset(edge.length)
    if offset is None:
        return None
    return EdgeDoor(offset, DoorSource.AUTO)


def auto_doors_for_room(
    edge_doors: EdgeDoors, room_id: str, edge_index: Mapping[str, PerimeterEdge]
) -> Dict[str, Tuple[EdgeDoor, ...]]:
    """Add a centred auto door to every internal edge of a room that has none."""
    updated = dict(edge_doors)
    for edge_id, edge in edge_index.items():
        if not edge.is_internal or room_id not in (edge.room_a_id, edge.room_b_id):
            continue
        if updated.get(edge_id):
            continue
        door = create_door_at_midpoint(edge)
        if door is not None:
            updated[edge_id] = (door,)
    return updated


def recalculate_auto_doors(
    edge_doors: EdgeDoors, rooms: Sequence[Room]
) -> Dict[str, Tuple[EdgeDoor, ...]]:
    """Ensure every pair of adjacent rooms has at least one door between them."""
    edge_index = index_edges(rooms)
    updated = cleanup_edge_doors_for_geometry(edge_doors, rooms, edge_index)

    connected = set()
    for edge_id in updated:
        edge = edge_index[edge_id]
        if edge.is_internal:
            connected.add((edge.room_a_id, edge.room_b_id))

    for edge_id, edge in sorted(edge_index.items()):
        if not edge.is_internal or (edge.room_a_id, edge.room_b_id) in connected:
            continue
        door = create_door_at_midpoint(edge)
        if door is not None:
            updated[edge_id] = (door,)
            connected.add((edge.room_a_id, edge.room_b_id))
    return updated


def door_spans(doors: Iterable[EdgeDoor]) -> List[Tuple[float, float]]:
    """(start, end) of each door relative to the edge start."""
    return [(door.offset_px, door.offset_px + DOOR_WIDTH_PX) for door in sorted_doors(doors)]
