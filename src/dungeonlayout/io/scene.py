"""Scene files.

A scene is a JSON document holding a whole layout:

    {
      "rooms": [{"id", "x", "y", "tilesW", "tilesH", "rotation",
                 "floorStyleId", "wallGroupId"}, ...],
      "wallGroups": [{"id", "wallStyleId", "roomCount"}, ...],
      "edgeDoors": {"<edge id>": [{"offsetPx", "source"}, ...]},
      "segmentStates": {"<segment id>": {"pattern", "source"}},
      "roomDoors": [{"id", "roomAId", "roomBId", "edgeOrientation",
                     "edgePosition", "edgeRangeStart", "edgeRangeEnd",
                     "offsetPx", "widthPx", "source"}, ...]
    }

Coordinates and door offsets are stored in pixels exactly as held in
memory, since edge ids depend on exact numeric equality.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from ..config import DEFAULT_FLOOR_STYLE_ID, DEFAULT_WALL_STYLE_ID, DOOR_WIDTH_PX
from ..core.model import (
    DoorSource,
    EdgeDoor,
    LayoutState,
    Orientation,
    Room,
    RoomPairDoor,
    SegmentPattern,
    SegmentState,
    WallGroup,
)


def state_to_dict(state: LayoutState) -> Dict[str, Any]:
    """Convert a layout to a JSON-serializable dictionary."""
    return {
        "rooms": [
            {
                "id": room.id,
                "x": room.x,
                "y": room.y,
                "tilesW": room.tiles_w,
                "tilesH": room.tiles_h,
                "rotation": room.rotation,
                "floorStyleId": room.floor_style_id,
                "wallGroupId": room.wall_group_id,
            }
            for room in state.rooms
        ],
        "wallGroups": [
            {"id": group.id, "wallStyleId": group.wall_style_id, "roomCount": group.room_count}
            for group in state.wall_groups
        ],
        "edgeDoors": {
            edge_id: [{"offsetPx": door.offset_px, "source": door.source.value} for door in doors]
            for edge_id, doors in state.edge_doors.items()
        },
        "segmentStates": {
            segment_id: {"pattern": segment.pattern.value, "source": segment.source.value}
            for segment_id, segment in state.segment_states.items()
        },
        "roomDoors": [
            {
                "id": door.id,
                "roomAId": door.room_a_id,
                "roomBId": door.room_b_id,
                "edgeOrientation": door.orientation.value,
                "edgePosition": door.position,
                "edgeRangeStart": door.range_start,
                "edgeRangeEnd": door.range_end,
                "offsetPx": door.offset_px,
                "widthPx": door.width_px,
                "source": door.source.value,
            }
            for door in state.room_doors
        ],
    }


def state_from_dict(data: Dict[str, Any]) -> LayoutState:
    """Build a layout from a scene dictionary.

    Raises:
        ValueError: If an entry is missing fields or holds invalid values.
    """
    rooms = []
    for index, room_data in enumerate(data.get("rooms", [])):
        try:
            rooms.append(
                Room(
                    id=room_data["id"],
                    x=room_data["x"],
                    y=room_data["y"],
                    tiles_w=int(room_data["tilesW"]),
                    tiles_h=int(room_data["tilesH"]),
                    rotation=int(room_data.get("rotation", 0)),
                    floor_style_id=room_data.get("floorStyleId", DEFAULT_FLOOR_STYLE_ID),
                    wall_group_id=room_data.get("wallGroupId"),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid room data at index {index}: {e}") from e

    groups = []
    for index, group_data in enumerate(data.get("wallGroups", [])):
        try:
            groups.append(
                WallGroup(
                    id=group_data["id"],
                    wall_style_id=group_data.get("wallStyleId", DEFAULT_WALL_STYLE_ID),
                    room_count=int(group_data.get("roomCount", 0)),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid wall group data at index {index}: {e}") from e

    edge_doors = {}
    for edge_id, doors in data.get("edgeDoors", {}).items():
        try:
            edge_doors[edge_id] = tuple(
                EdgeDoor(int(door["offsetPx"]), DoorSource(door.get("source", DoorSource.MANUAL.value)))
                for door in doors
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid doors for edge {edge_id}: {e}") from e

    segment_states = {}
    for segment_id, segment_data in data.get("segmentStates", {}).items():
        try:
            segment_states[segment_id] = SegmentState(
                SegmentPattern(segment_data["pattern"]),
                DoorSource(segment_data.get("source", DoorSource.MANUAL.value)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid segment state for {segment_id}: {e}") from e

    room_doors = []
    for index, door_data in enumerate(data.get("roomDoors", [])):
        try:
            room_a_id, room_b_id = sorted((door_data["roomAId"], door_data["roomBId"]))
            room_doors.append(
                RoomPairDoor(
                    id=door_data["id"],
                    room_a_id=room_a_id,
                    room_b_id=room_b_id,
                    orientation=Orientation(door_data["edgeOrientation"]),
                    position=door_data["edgePosition"],
                    range_start=door_data["edgeRangeStart"],
                    range_end=door_data["edgeRangeEnd"],
                    offset_px=int(door_data.get("offsetPx", 0)),
                    width_px=int(door_data.get("widthPx", DOOR_WIDTH_PX)),
                    source=DoorSource(door_data.get("source", DoorSource.AUTO.value)),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid room door data at index {index}: {e}") from e

    return LayoutState(
        rooms=tuple(rooms),
        wall_groups=tuple(groups),
        edge_doors=edge_doors,
        segment_states=segment_states,
        room_doors=tuple(room_doors),
    )


def load_scene(path: str | Path) -> LayoutState:
    """Load a layout from a JSON scene file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the JSON data is invalid or malformed.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Scene {path} must be a JSON object")
    return state_from_dict(data)


def save_scene(state: LayoutState, path: str | Path) -> Path:
    """Write a layout to a JSON scene file and return its path."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(state), f, indent=2)
    return file_path
