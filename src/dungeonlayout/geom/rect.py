"""Rectangle geometry for modular rooms.

This module converts rooms to tile-grid and pixel rectangles and
answers the adjacency questions the rest of the engine builds on.
All exact-equality tests are done on pixel coordinates so that
shared edges and edge ids are stable across save/load.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from shapely.geometry import box

from ..config import OVERLAP_EPSILON, TILE_PX
from ..core.model import Orientation, Rect, Room, SharedEdge

FLOOR_FILENAME_PATTERN = re.compile(r"floor_(\d+)x(\d+)\.png$", re.IGNORECASE)


def tiles_to_pixels(tiles: float) -> float:
    """Convert tile units to pixels."""
    return tiles * TILE_PX


def pixels_to_tiles(pixels: float) -> int:
    """Convert pixels to the nearest whole number of tiles."""
    return int(round(pixels / TILE_PX))


def snap_to_tile_grid(pixels: float, origin: float = 0) -> float:
    """Snap a pixel coordinate to the tile grid anchored at ``origin``."""
    return origin + round((pixels - origin) / TILE_PX) * TILE_PX


def tile_rect(room: Room) -> Rect:
    """Bounding rectangle of a room in tile units, rotation applied."""
    return Rect(room.x / TILE_PX, room.y / TILE_PX, room.effective_tiles_w, room.effective_tiles_h)


def pixel_rect(room: Room) -> Rect:
    """Bounding rectangle of a room in pixels, rotation applied."""
    return Rect(room.x, room.y, room.width_px, room.height_px)


def rect_polygon(rect: Rect):
    """Shapely polygon for a rectangle."""
    return box(*rect.bounds)


def _overlap(a_start: float, a_end: float, b_start: float, b_end: float) -> Tuple[float, float]:
    return max(a_start, b_start), min(a_end, b_end)


def shared_edge_between_rects(a: Rect, b: Rect) -> Optional[SharedEdge]:
    """Shared boundary segment of two touching rectangles.

    Args:
        a: First rectangle.
        b: Second rectangle.

    Returns:
        The shared edge, or None if the rectangles do not touch along a
        segment of positive length.
    """
    # Vertical wall between them: one's right edge is the other's left edge
    for left, right in ((a, b), (b, a)):
        if left.right == right.x:
            start, end = _overlap(a.y, a.bottom, b.y, b.bottom)
            if end > start:
                return SharedEdge(Orientation.VERTICAL, left.right, start, end)

    # Horizontal wall between them: one's bottom edge is the other's top edge
    for top, bottom in ((a, b), (b, a)):
        if top.bottom == bottom.y:
            start, end = _overlap(a.x, a.right, b.x, b.right)
            if end > start:
                return SharedEdge(Orientation.HORIZONTAL, top.bottom, start, end)

    return None


def shared_edge(room_a: Room, room_b: Room) -> Optional[SharedEdge]:
    """Shared edge between two rooms in pixels, or None if they are not adjacent."""
    return shared_edge_between_rects(pixel_rect(room_a), pixel_rect(room_b))


def are_rooms_adjacent(room_a: Room, room_b: Room) -> bool:
    """Check whether two rooms share a wall segment."""
    return shared_edge(room_a, room_b) is not None


def adjacent_rooms(room: Room, all_rooms: Iterable[Room]) -> List[Room]:
    """All rooms sharing a wall segment with ``room``."""
    return [other for other in all_rooms if other.id != room.id and are_rooms_adjacent(room, other)]


def rects_overlap(a: Rect, b: Rect, epsilon: float = OVERLAP_EPSILON) -> bool:
    """Check whether two rectangles overlap by more than ``epsilon`` on both axes."""
    return not (
        a.right <= b.x + epsilon
        or b.right <= a.x + epsilon
        or a.bottom <= b.y + epsilon
        or b.bottom <= a.y + epsilon
    )


def overlaps_any(rect: Rect, rooms: Iterable[Room]) -> bool:
    return any(rects_overlap(rect, pixel_rect(other)) for other in rooms)


def shared_boundary_length(room: Room, targets: Iterable[Room]) -> float:
    """Total length in pixels of wall shared between ``room`` and ``targets``.

    Uses the length of the polygon intersection, which is the shared
    segment for touching rectangles and zero for corner contact.
    """
    polygon = rect_polygon(pixel_rect(room))
    total = 0.0
    for target in targets:
        if target.id == room.id:
            continue
        contact = polygon.intersection(rect_polygon(pixel_rect(target)))
        if contact.is_empty or contact.area > 0:
            continue
        total += contact.length
    return total


def is_point_in_room(x: float, y: float, room: Room) -> bool:
    rect = pixel_rect(room)
    return rect.x <= x < rect.right and rect.y <= y < rect.bottom


def find_room_at_point(x: float, y: float, rooms: List[Room]) -> Optional[Room]:
    """Topmost room (last in z-order) containing the pixel point."""
    for room in reversed(rooms):
        if is_point_in_room(x, y, room):
            return room
    return None


def parse_floor_filename(filename: str) -> Optional[Tuple[int, int]]:
    """Extract (tiles_w, tiles_h) from a floor image name like ``floor_3x4.png``."""
    match = FLOOR_FILENAME_PATTERN.search(filename)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))
