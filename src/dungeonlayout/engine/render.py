"""Render piece generation.

Runs the full pipeline per wall group (edges -> doors -> walls and
pillars) and returns flat, JSON-friendly piece records for the
presentation layer. Pieces are recomputed from scratch on every call.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from ..config import DEFAULT_WALL_STYLE_ID, PILLAR_SIZE_PX, WALL_THICKNESS_PX
from ..core.model import LayoutState, Orientation, PerimeterEdge
from ..geom.edges import extract_edges
from .doors import index_edges
from .layout import EdgePiece, generate_pillars
from .providers import DoorProvider, select_door_provider


@dataclass(frozen=True)
class RenderPiece:
    """A drawable piece; x and y are the top-left of its bounding box."""

    x: float
    y: float
    width_px: float
    height_px: float
    rotation: int
    kind: str
    style_id: str
    size_px: Optional[float] = None
    group_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


def _edge_piece_to_render(
    edge: PerimeterEdge, edge_id: str, piece: EdgePiece, style_id: str, group_id: str
) -> RenderPiece:
    half = WALL_THICKNESS_PX / 2
    if edge.orientation is Orientation.HORIZONTAL:
        return RenderPiece(
            x=edge.range_start + piece.offset,
            y=edge.position - half,
            width_px=piece.size,
            height_px=WALL_THICKNESS_PX,
            rotation=0,
            kind=piece.kind,
            style_id=style_id,
            size_px=piece.size,
            group_id=group_id,
            edge_id=edge_id,
        )
    return RenderPiece(
        x=edge.position - half,
        y=edge.range_start + piece.offset,
        width_px=WALL_THICKNESS_PX,
        height_px=piece.size,
        rotation=90,
        kind=piece.kind,
        style_id=style_id,
        size_px=piece.size,
        group_id=group_id,
        edge_id=edge_id,
    )


def build_group_pieces(
    state: LayoutState, group_id: str, provider: Optional[DoorProvider] = None
) -> List[RenderPiece]:
    """Walls, doors and pillars of one wall group."""
    group = state.group(group_id)
    style_id = group.wall_style_id if group else DEFAULT_WALL_STYLE_ID
    provider = provider or select_door_provider(state)

    rooms = state.rooms_in_group(group_id)
    edge_set = extract_edges(rooms)
    edge_ids = {edge: edge_id for edge_id, edge in index_edges(rooms, edge_set).items()}

    pieces: List[RenderPiece] = []
    spans = {}
    for edge in edge_set.all:
        edge_id = edge_ids[edge]
        for piece in provider.edge_pieces(edge_id, edge):
            pieces.append(_edge_piece_to_render(edge, edge_id, piece, style_id, group_id))
        spans[edge] = provider.door_spans(edge_id, edge)

    half = PILLAR_SIZE_PX / 2
    for pillar in generate_pillars(edge_set.external, edge_set.internal, spans):
        pieces.append(
            RenderPiece(
                x=pillar.x - half,
                y=pillar.y - half,
                width_px=PILLAR_SIZE_PX,
                height_px=PILLAR_SIZE_PX,
                rotation=0,
                kind="corner_pillar" if pillar.is_corner else "pillar",
                style_id=style_id,
                group_id=group_id,
            )
        )
    return pieces


def build_render_pieces(state: LayoutState) -> List[RenderPiece]:
    """Render pieces of every wall group, groups in state order."""
    provider = select_door_provider(state)
    pieces: List[RenderPiece] = []
    for group in state.wall_groups:
        pieces.extend(build_group_pieces(state, group.id, provider))
    return pieces
