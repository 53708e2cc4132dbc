"""Wall and pillar layout.

Turns edges and door spans into the pieces the presentation layer draws:
wall runs packed greedily into 256/128/64px sprites, 128px doors, and
pillars at edge endpoints and at fixed fractions of long external walls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from ..config import DOOR_WIDTH_PX, SEGMENT_PX, WALL_SPRITE_WIDTHS
from ..core.model import EdgeDoor, Orientation, PerimeterEdge
from .doors import sorted_doors


@dataclass(frozen=True)
class EdgePiece:
    """A wall or door piece along an edge, offset from the edge start."""

    kind: str
    offset: float
    size: float


@dataclass
class Pillar:
    """A pillar centred on a wall line.

    Attributes:
        x: Centre x in pixels.
        y: Centre y in pixels.
        is_corner: True if the pillar sits at an edge endpoint.
        is_external: True if any external edge placed it.
    """

    x: float
    y: float
    is_corner: bool
    is_external: bool


def pack_wall_tiles(total_width: float) -> List[Tuple[float, int]]:
    """Break a wall run into sprite pieces, largest first.

    Args:
        total_width: Run length in pixels, a multiple of 64.

    Returns:
        List of (offset, size) pairs covering the run exactly.

    Raises:
        ValueError: If the run is not a multiple of the smallest sprite.
    """
    tiles: List[Tuple[float, int]] = []
    remaining = total_width
    offset = 0
    while remaining > 0:
        for size in WALL_SPRITE_WIDTHS:
            if remaining >= size:
                tiles.append((offset, size))
                offset += size
                remaining -= size
                break
        else:
            raise ValueError(f"Wall run of {total_width}px leaves a {remaining}px remainder")
    return tiles


def generate_edge_pieces(edge_length: float, doors: Iterable[EdgeDoor]) -> List[EdgePiece]:
    """Alternate wall runs and doors along an edge.

    Each gap before a door, and the gap after the last one, is packed with
    wall sprites; each door is a single 128px piece.
    """
    pieces: List[EdgePiece] = []
    cursor = 0
    for door in sorted_doors(doors):
        for offset, size in pack_wall_tiles(door.offset_px - cursor):
            pieces.append(EdgePiece("wall", cursor + offset, size))
        pieces.append(EdgePiece("door", door.offset_px, DOOR_WIDTH_PX))
        cursor = door.offset_px + DOOR_WIDTH_PX
    for offset, size in pack_wall_tiles(edge_length - cursor):
        pieces.append(EdgePiece("wall", cursor + offset, size))
    return pieces


def interior_pillar_ratios(edge_length: float) -> Tuple[float, ...]:
    """Fractions of an external edge where interior pillars stand."""
    segments = edge_length / SEGMENT_PX
    if segments >= 5:
        return (0.25, 0.5, 0.75)
    if segments >= 3:
        return (0.5,)
    return ()


def _along(edge: PerimeterEdge, x: float, y: float) -> float:
    return x if edge.orientation is Orientation.HORIZONTAL else y


def _on_line(edge: PerimeterEdge, x: float, y: float) -> bool:
    across = y if edge.orientation is Orientation.HORIZONTAL else x
    return across == edge.position


def generate_pillars(
    external_edges: Sequence[PerimeterEdge],
    internal_edges: Sequence[PerimeterEdge],
    door_spans: Mapping[PerimeterEdge, Sequence[Tuple[float, float]]] | None = None,
) -> List[Pillar]:
    """Place pillars for a set of edges.

    Every edge gets pillars at both endpoints; only external edges get
    interior pillars. A pillar lying on a door's wall line within the
    door's span, ends included, is left out.

    Args:
        external_edges: Edges owned by one room.
        internal_edges: Edges shared by two rooms.
        door_spans: Door (start, end) spans relative to each edge's start.

    Returns:
        Pillars in placement order, one per position.
    """
    door_spans = door_spans or {}
    absolute_spans: List[Tuple[PerimeterEdge, float, float]] = [
        (edge, edge.range_start + start, edge.range_start + end)
        for edge, spans in door_spans.items()
        for start, end in spans
    ]

    def in_door(x: float, y: float) -> bool:
        for edge, start, end in absolute_spans:
            if _on_line(edge, x, y) and start <= _along(edge, x, y) <= end:
                return True
        return False

    pillars: Dict[Tuple[float, float], Pillar] = {}

    def add(point: Tuple[float, float], is_corner: bool, is_external: bool) -> None:
        if in_door(*point):
            return
        existing = pillars.get(point)
        if existing is None:
            pillars[point] = Pillar(point[0], point[1], is_corner, is_external)
            return
        existing.is_corner = existing.is_corner or is_corner
        existing.is_external = existing.is_external or is_external

    for edge in external_edges:
        for point in edge.endpoints():
            add(point, True, True)
        for ratio in interior_pillar_ratios(edge.length):
            add(edge.point_at(edge.length * ratio), False, True)

    for edge in internal_edges:
        for point in edge.endpoints():
            add(point, True, False)

    return list(pillars.values())
