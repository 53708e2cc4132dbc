"""Core data models for modular room layouts.

This module defines the fundamental data structures used to represent
a dungeon layout: rectangular rooms on a tile grid, the wall groups
(buildings) they belong to, the derived perimeter edges, and the
coexisting door representations.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType

from ..config import DEFAULT_FLOOR_STYLE_ID, DOOR_WIDTH_PX, TILE_PX

VALID_ROTATIONS = (0, 90, 180, 270)


class Orientation(str, Enum):
    """Direction a wall line runs along."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class Side(str, Enum):
    """Side of a room a wall lies on."""

    N = "N"
    E = "E"
    S = "S"
    W = "W"


class DoorSource(str, Enum):
    """Who created a door."""

    MANUAL = "manual"
    AUTO = "auto"


class SegmentPattern(str, Enum):
    """Fixed compositions of a 256px legacy wall segment."""

    SOLID_256 = "SOLID_256"
    DOOR_LEFT = "DOOR_LEFT"
    DOOR_RIGHT = "DOOR_RIGHT"
    DOOR_BOTH = "DOOR_BOTH"
    DOOR_CENTER = "DOOR_CENTER"


@dataclass(frozen=True)
class Room:
    """Represents a modular room placed on the grid.

    Attributes:
        id: Unique identifier for the room.
        x: Left edge in pixels.
        y: Top edge in pixels.
        tiles_w: Width in tiles before rotation (the floor image width).
        tiles_h: Height in tiles before rotation.
        rotation: Rotation in degrees, one of 0, 90, 180, 270.
        floor_style_id: Floor style used by the presentation layer.
        wall_group_id: ID of the wall group the room belongs to, if any.
    """

    id: str
    x: float
    y: float
    tiles_w: int
    tiles_h: int
    rotation: int = 0
    floor_style_id: str = DEFAULT_FLOOR_STYLE_ID
    wall_group_id: str | None = None

    def __post_init__(self) -> None:
        if self.rotation not in VALID_ROTATIONS:
            raise ValueError(f"Invalid rotation {self.rotation} for room '{self.id}'")
        if self.tiles_w <= 0 or self.tiles_h <= 0:
            raise ValueError(f"Room '{self.id}' must be at least one tile in each direction")

    @property
    def is_quarter_turned(self) -> bool:
        return self.rotation in (90, 270)

    @property
    def effective_tiles_w(self) -> int:
        """Width in tiles as currently laid out on the grid."""
        return self.tiles_h if self.is_quarter_turned else self.tiles_w

    @property
    def effective_tiles_h(self) -> int:
        """Height in tiles as currently laid out on the grid."""
        return self.tiles_w if self.is_quarter_turned else self.tiles_h

    @property
    def width_px(self) -> int:
        return self.effective_tiles_w * TILE_PX

    @property
    def height_px(self) -> int:
        return self.effective_tiles_h * TILE_PX

    def moved_to(self, x: float, y: float) -> Room:
        return replace(self, x=x, y=y)

    def in_group(self, wall_group_id: str | None) -> Room:
        return replace(self, wall_group_id=wall_group_id)


@dataclass(frozen=True)
class WallGroup:
    """Represents a connected component of adjacent rooms (a building).

    Attributes:
        id: Unique identifier for the wall group.
        wall_style_id: Wall style shared by every room of the group.
        room_count: Number of rooms whose wall_group_id equals this id.
    """

    id: str
    wall_style_id: str
    room_count: int


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size."""

    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.right, self.bottom)


@dataclass(frozen=True)
class SharedEdge:
    """Boundary segment shared by two touching rooms, in pixels.

    Attributes:
        orientation: Direction of the shared wall line.
        position: Fixed-axis coordinate of the line.
        range_start: Start of the overlap along the line.
        range_end: End of the overlap along the line.
    """

    orientation: Orientation
    position: float
    range_start: float
    range_end: float

    @property
    def length(self) -> float:
        return self.range_end - self.range_start


@dataclass(frozen=True)
class PerimeterEdge:
    """Derived wall edge, external (one room) or internal (two rooms).

    Coordinates are in pixels. For internal edges room_a_id and room_b_id
    are sorted so that room_a_id < room_b_id.
    """

    orientation: Orientation
    position: float
    range_start: float
    range_end: float
    is_internal: bool
    room_a_id: str
    room_b_id: str | None = None

    @property
    def length(self) -> float:
        return self.range_end - self.range_start

    def endpoints(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Pixel coordinates of both ends of the edge."""
        if self.orientation is Orientation.HORIZONTAL:
            return (self.range_start, self.position), (self.range_end, self.position)
        return (self.position, self.range_start), (self.position, self.range_end)

    def point_at(self, offset: float) -> tuple[float, float]:
        """Pixel coordinate at a distance from the edge start."""
        if self.orientation is Orientation.HORIZONTAL:
            return (self.range_start + offset, self.position)
        return (self.position, self.range_start + offset)


@dataclass(frozen=True)
class EdgeDoor:
    """Free-placement door on an edge.

    Attributes:
        offset_px: Distance from the edge start to the door's near side.
        source: Whether a person or the engine placed the door.
    """

    offset_px: int
    source: DoorSource = DoorSource.MANUAL


@dataclass(frozen=True)
class SegmentState:
    """Legacy door state of one 256px wall segment."""

    pattern: SegmentPattern
    source: DoorSource = DoorSource.MANUAL


@dataclass(frozen=True)
class RoomPairDoor:
    """Door tied to a pair of rooms rather than to an edge id.

    This is the door model of early scenes. The door follows whatever wall
    the two rooms currently share and is drawn centred on it; the recorded
    edge is the shared wall at the time the door was created.

    Attributes:
        id: Unique door id.
        room_a_id: The lexicographically smaller room id.
        room_b_id: The other room id.
        orientation: Orientation of the recorded edge.
        position: Fixed-axis coordinate of the recorded edge, in pixels.
        range_start: Start of the recorded edge, in pixels.
        range_end: End of the recorded edge, in pixels.
        offset_px: Door offset from the recorded edge start.
        width_px: Door width in pixels.
        source: Whether a person or the engine placed the door.
    """

    id: str
    room_a_id: str
    room_b_id: str
    orientation: Orientation
    position: float
    range_start: float
    range_end: float
    offset_px: int
    width_px: int = DOOR_WIDTH_PX
    source: DoorSource = DoorSource.AUTO

    def joins(self, room_a_id: str, room_b_id: str | None) -> bool:
        return {self.room_a_id, self.room_b_id} == {room_a_id, room_b_id}


def _frozen(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class LayoutState:
    """Immutable snapshot of a layout.

    Attributes:
        rooms: Rooms in z-order (last is topmost).
        wall_groups: Wall groups, one per connected component.
        edge_doors: Free-placement doors keyed by stable edge id.
        segment_states: Legacy segment states keyed by segment group id.
        room_doors: Legacy doors tied to room pairs.
    """

    rooms: tuple[Room, ...] = ()
    wall_groups: tuple[WallGroup, ...] = ()
    edge_doors: Mapping[str, tuple[EdgeDoor, ...]] = field(default_factory=dict)
    segment_states: Mapping[str, SegmentState] = field(default_factory=dict)
    room_doors: tuple[RoomPairDoor, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "rooms", tuple(self.rooms))
        object.__setattr__(self, "wall_groups", tuple(self.wall_groups))
        object.__setattr__(
            self,
            "edge_doors",
            _frozen({key: tuple(doors) for key, doors in (self.edge_doors or {}).items() if doors}),
        )
        object.__setattr__(self, "segment_states", _frozen(self.segment_states))
        object.__setattr__(self, "room_doors", tuple(self.room_doors))

    def room(self, room_id: str) -> Room:
        for room in self.rooms:
            if room.id == room_id:
                return room
        raise UnknownRoomError(room_id)

    def has_room(self, room_id: str) -> bool:
        return any(room.id == room_id for room in self.rooms)

    def group(self, group_id: str) -> WallGroup | None:
        for group in self.wall_groups:
            if group.id == group_id:
                return group
        return None

    def rooms_in_group(self, group_id: str) -> list[Room]:
        return [room for room in self.rooms if room.wall_group_id == group_id]

    def evolve(self, **changes) -> LayoutState:
        return replace(self, **changes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LayoutState):
            return NotImplemented
        return (
            self.rooms == other.rooms
            and self.wall_groups == other.wall_groups
            and dict(self.edge_doors) == dict(other.edge_doors)
            and dict(self.segment_states) == dict(other.segment_states)
            and self.room_doors == other.room_doors
        )

    def __hash__(self) -> int:
        return hash((self.rooms, self.wall_groups))


class UnknownRoomError(KeyError):
    """Raised when an operation references a room that is not in the layout."""

    def __init__(self, room_id: str):
        super().__init__(room_id)
        self.room_id = room_id

    def __str__(self) -> str:
        return f"Room '{self.room_id}' does not exist"
