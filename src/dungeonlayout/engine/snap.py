"""Magnetic snapping while dragging a room.

The dragged room follows the cursor freely until it comes within the snap
threshold of another room; it then docks against one of that room's sides,
aligned to that room's tile grid, provided the docked position overlaps
nothing. If the cursor position itself overlaps a room, the room is pushed
to the nearest free side of it instead of jumping back to where the drag
started.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config import SNAP_THRESHOLD_PX, SNAP_TIE_BAND_PX, TILE_PX
from ..core.model import Rect, Room
from ..geom.rect import (
    overlaps_any,
    pixel_rect,
    pixels_to_tiles,
    rects_overlap,
    shared_edge_between_rects,
    snap_to_tile_grid,
)


@dataclass(frozen=True)
class MagneticSnapResult:
    """Where a dragged room should be drawn.

    Attributes:
        x: Final left edge in pixels.
        y: Final top edge in pixels.
        snapped_to_room: Room docked against, or None for free placement.
        shared_edge_tiles: Tiles of wall shared with that room.
    """

    x: float
    y: float
    snapped_to_room: Optional[str] = None
    shared_edge_tiles: int = 0


@dataclass(frozen=True)
class _Candidate:
    x: float
    y: float
    distance: float


def _shared_tiles(a: Rect, b: Rect) -> int:
    edge = shared_edge_between_rects(a, b)
    if edge is None:
        return 0
    return pixels_to_tiles(edge.length)


def _clamp_along(cursor: float, target_start: float, target_end: float, dragged_size: float) -> float:
    # Keep at least one tile of contact with the target
    return max(target_start - dragged_size + TILE_PX, min(target_end - TILE_PX, cursor))


def _docking_candidates(
    cursor_x: float, cursor_y: float, dragged_w: float, dragged_h: float, target: Rect, threshold: float
) -> List[_Candidate]:
    candidates: List[_Candidate] = []

    aligned_y = snap_to_tile_grid(_clamp_along(cursor_y, target.y, target.bottom, dragged_h), target.y)
    aligned_x = snap_to_tile_grid(_clamp_along(cursor_x, target.x, target.right, dragged_w), target.x)

    # Dragged left side against target right side
    distance = abs(cursor_x - target.right)
    if distance < threshold:
        candidates.append(_Candidate(target.right, aligned_y, distance))

    # Dragged right side against target left side
    distance = abs(cursor_x + dragged_w - target.x)
    if distance < threshold:
        candidates.append(_Candidate(target.x - dragged_w, aligned_y, distance))

    # Dragged top against target bottom
    distance = abs(cursor_y - target.bottom)
    if distance < threshold:
        candidates.append(_Candidate(aligned_x, target.bottom, distance))

    # Dragged bottom against target top
    distance = abs(cursor_y + dragged_h - target.y)
    if distance < threshold:
        candidates.append(_Candidate(aligned_x, target.y - dragged_h, distance))

    return candidates


def _directional_fallback(
    cursor_x: float, cursor_y: float, dragged_w: float, dragged_h: float, target: Rect
) -> Rect:
    dx = (cursor_x + dragged_w / 2) - (target.x + target.w / 2)
    dy = (cursor_y + dragged_h / 2) - (target.y + target.h / 2)

    if abs(dx) / target.w > abs(dy) / target.h:
        snap_x = target.right if dx > 0 else target.x - dragged_w
        snap_y = snap_to_tile_grid(cursor_y, target.y)
        snap_y = snap_to_tile_grid(_clamp_along(snap_y, target.y, target.bottom, dragged_h), target.y)
    else:
        snap_y = target.bottom if dy > 0 else target.y - dragged_h
        snap_x = snap_to_tile_grid(cursor_x, target.x)
        snap_x = snap_to_tile_grid(_clamp_along(snap_x, target.x, target.right, dragged_w), target.x)
    return Rect(snap_x, snap_y, dragged_w, dragged_h)


def find_magnetic_snap_position(
    dragged_room: Room,
    cursor_x: float,
    cursor_y: float,
    other_rooms: Sequence[Room],
    threshold: float = SNAP_THRESHOLD_PX,
) -> MagneticSnapResult:
    """Find where a dragged room lands for a cursor position.

    Args:
        dragged_room: Room being dragged; its size and rotation are used.
        cursor_x: Proposed left edge in pixels.
        cursor_y: Proposed top edge in pixels.
        other_rooms: Rooms already on the map (the dragged room is ignored).
        threshold: Distance in pixels at which docking kicks in.

    Returns:
        The snapped (or free) position.
    """
    others = [room for room in other_rooms if room.id != dragged_room.id]
    if not others:
        return MagneticSnapResult(cursor_x, cursor_y)

    dragged_w = dragged_room.width_px
    dragged_h = dragged_room.height_px

    best: Optional[_Candidate] = None
    best_room: Optional[str] = None
    best_shared = 0

    for target_room in others:
        target = pixel_rect(target_room)

        # Skip rooms whose threshold-expanded box the dragged footprint does not reach
        if (
            cursor_x < target.x - threshold - dragged_w
            or cursor_x > target.right + threshold
            or cursor_y < target.y - threshold - dragged_h
            or cursor_y > target.bottom + threshold
        ):
            continue

        for candidate in _docking_candidates(cursor_x, cursor_y, dragged_w, dragged_h, target, threshold):
            candidate_rect = Rect(candidate.x, candidate.y, dragged_w, dragged_h)
            if overlaps_any(candidate_rect, others):
                continue

            shared = _shared_tiles(candidate_rect, target)
            if shared <= 0:
                continue

            better = (
                best is None
                or candidate.distance < best.distance - SNAP_TIE_BAND_PX
                or (abs(candidate.distance - best.distance) < SNAP_TIE_BAND_PX and shared > best_shared)
            )
            if better:
                best, best_room, best_shared = candidate, target_room.id, shared

    if best is not None:
        return MagneticSnapResult(best.x, best.y, best_room, best_shared)

    cursor_rect = Rect(cursor_x, cursor_y, dragged_w, dragged_h)
    for other in others:
        target = pixel_rect(other)
        if not rects_overlap(cursor_rect, target):
            continue
        proposed = _directional_fallback(cursor_x, cursor_y, dragged_w, dragged_h, target)
        if not overlaps_any(proposed, others):
            return MagneticSnapResult(proposed.x, proposed.y, other.id, _shared_tiles(proposed, target))

    return MagneticSnapResult(cursor_x, cursor_y)
