import pytest

from dungeonlayout.core.model import EdgeDoor, LayoutState, Orientation, PerimeterEdge
from dungeonlayout.engine.layout import (
    EdgePiece,
    generate_edge_pieces,
    generate_pillars,
    interior_pillar_ratios,
    pack_wall_tiles,
)
from dungeonlayout.engine.render import build_render_pieces
from dungeonlayout.geom.edges import extract_edges


@pytest.mark.parametrize("length", range(64, 2048 + 64, 64))
def test_wall_packing_covers_run_exactly(length):
    tiles = pack_wall_tiles(length)
    assert sum(size for _, size in tiles) == length
    assert all(size in (256, 128, 64) for _, size in tiles)
    offsets = [offset for offset, _ in tiles]
    assert offsets == sorted(offsets)
    assert offsets[0] == 0


def test_wall_packing_prefers_large_sprites():
    assert pack_wall_tiles(448) == [(0, 256), (256, 128), (384, 64)]
    assert pack_wall_tiles(0) == []


def test_wall_packing_rejects_unaligned_runs():
    with pytest.raises(ValueError):
        pack_wall_tiles(100)


def test_edge_pieces_alternate_walls_and_doors():
    pieces = generate_edge_pieces(512, [EdgeDoor(192)])
    assert pieces == [
        EdgePiece("wall", 0, 128),
        EdgePiece("wall", 128, 64),
        EdgePiece("door", 192, 128),
        EdgePiece("wall", 320, 128),
        EdgePiece("wall", 448, 64),
    ]


def test_edge_pieces_with_adjacent_doors():
    pieces = generate_edge_pieces(512, [EdgeDoor(192), EdgeDoor(64)])
    assert [piece.kind for piece in pieces] == ["wall", "door", "door", "wall", "wall"]
    assert sum(piece.size for piece in pieces) == 512


@pytest.mark.parametrize(
    "length,ratios",
    [(256, ()), (512, ()), (768, (0.5,)), (1024, (0.5,)), (1280, (0.25, 0.5, 0.75)), (2048, (0.25, 0.5, 0.75))],
)
def test_interior_pillar_ratios(length, ratios):
    assert interior_pillar_ratios(length) == ratios


def test_six_by_two_room_gets_middle_pillars(make_room):
    edge_set = extract_edges([make_room("a", 0, 0, 6, 2)])
    assert not edge_set.internal

    pillars = generate_pillars(edge_set.external, edge_set.internal)
    interior = sorted((p.x, p.y) for p in pillars if not p.is_corner)
    corners = sorted((p.x, p.y) for p in pillars if p.is_corner)

    assert interior == [(384, 0), (384, 256)]
    assert corners == [(0, 0), (0, 256), (768, 0), (768, 256)]


def test_side_by_side_pillars(side_by_side):
    edge_set = extract_edges(side_by_side.rooms)
    internal = edge_set.internal[0]
    spans = {internal: [(192, 320)]}

    pillars = generate_pillars(edge_set.external, edge_set.internal, spans)
    positions = {(p.x, p.y) for p in pillars}

    assert all(p.is_corner for p in pillars)
    assert (512, 0) in positions and (512, 512) in positions
    assert len(pillars) == 6


def test_pillars_under_door_span_are_suppressed():
    edge = PerimeterEdge(Orientation.HORIZONTAL, 0, 0, 1280, False, "a")
    # Interior pillar at 640 sits inside the door, the one at 320 on its end
    spans = {edge: [(576, 704), (192, 320)]}
    pillars = generate_pillars([edge], [], spans)
    assert sorted(p.x for p in pillars) == [0, 960, 1280]


def test_single_tile_edge_door_hides_end_pillars():
    edge = PerimeterEdge(Orientation.VERTICAL, 0, 0, 128, False, "a")
    assert generate_pillars([edge], [], {edge: [(0, 128)]}) == []


def test_render_pieces_for_side_by_side(side_by_side):
    pieces = build_render_pieces(side_by_side)

    doors = [piece for piece in pieces if piece.kind == "door"]
    assert len(doors) == 1
    door = doors[0]
    assert (door.x, door.y, door.width_px, door.height_px, door.rotation) == (496, 192, 32, 128, 90)
    assert door.edge_id == "vertical|a+b|512:0-512"

    walls = [piece for piece in pieces if piece.kind == "wall"]
    # 6 external edges of 512px plus the shared wall minus its door
    assert sum(piece.size_px for piece in walls) == 6 * 512 + 384
    assert sum(1 for piece in pieces if piece.kind == "corner_pillar") == 6
    assert all(piece.style_id == "worn-castle" for piece in pieces)


def test_render_empty_state():
    assert build_render_pieces(LayoutState()) == []
