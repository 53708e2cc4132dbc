import itertools
import json

from dungeonlayout.core.model import (
    EdgeDoor,
    LayoutState,
    Orientation,
    PerimeterEdge,
    RoomPairDoor,
    SharedEdge,
    WallGroup,
)
from dungeonlayout.engine.api import apply
from dungeonlayout.engine.doors import index_edges
from dungeonlayout.engine.layout import generate_pillars
from dungeonlayout.engine.pair_doors import (
    cleanup_room_doors,
    create_door_for_shared_edge,
    create_doors_for_new_room,
    find_doors_for_edge,
    recalculate_all_doors,
    room_pair_key,
)
from dungeonlayout.engine.providers import FreePlacement, RoomPairDoors, select_door_provider
from dungeonlayout.engine.render import build_render_pieces
from dungeonlayout.engine.simulation import simulate_drop
from dungeonlayout.geom.edges import extract_edges
from dungeonlayout.io.scene import state_from_dict, state_to_dict

SHARED = PerimeterEdge(Orientation.VERTICAL, 512, 0, 512, True, "a", "b")


def door_ids():
    counter = itertools.count(1)
    return lambda: f"door-{next(counter)}"


def pair_door(room_a="a", room_b="b", door_id="door-1"):
    return RoomPairDoor(door_id, room_a, room_b, Orientation.VERTICAL, 512, 0, 512, 192)


def pair_state(make_room, *rooms, doors=()):
    return LayoutState(
        rooms=tuple(make_room(*room, group="g") for room in rooms),
        wall_groups=(WallGroup("g", "worn-castle", len(rooms)),),
        room_doors=doors,
    )


def test_recalculate_all_doors_one_per_adjacent_pair(make_room):
    rooms = [make_room("b", 512, 0, 4, 4), make_room("a", 0, 0, 4, 4), make_room("far", 4096, 0, 2, 2)]
    assert recalculate_all_doors(rooms, door_ids()) == (pair_door(),)


def test_room_pair_key_ignores_room_order():
    edge = SharedEdge(Orientation.VERTICAL, 512, 0, 512)
    assert room_pair_key("b", "a", edge) == room_pair_key("a", "b", edge) == "a|b|vertical|512|0|512"


def test_shared_edge_gets_one_door():
    assert create_door_for_shared_edge(SHARED, [], door_ids()) == pair_door()
    assert create_door_for_shared_edge(SHARED, [pair_door()], door_ids()) is None

    external = PerimeterEdge(Orientation.VERTICAL, 0, 0, 512, False, "a")
    assert create_door_for_shared_edge(external, [], door_ids()) is None


def test_new_room_gets_doors_towards_each_neighbour(make_room):
    existing = [make_room("a", 0, 0, 4, 4), make_room("c", 512, 512, 4, 4)]
    created = create_doors_for_new_room(make_room("b", 512, 0, 4, 4), existing, [], door_ids())

    assert [(door.room_a_id, door.room_b_id) for door in created] == [("a", "b"), ("b", "c")]
    assert find_doors_for_edge(created, SHARED) == [created[0]]


def test_pair_door_provider_pieces_and_pillars(make_room):
    state = pair_state(
        make_room,
        ("a", 0, 0, 1, 1),
        ("b", 128, 0, 1, 1),
        doors=(RoomPairDoor("door-1", "a", "b", Orientation.VERTICAL, 128, 0, 128, 0),),
    )
    provider = select_door_provider(state)
    assert isinstance(provider, RoomPairDoors)

    edge_set = extract_edges(state.rooms)
    internal = edge_set.internal[0]
    spans = {internal: provider.door_spans("", internal)}
    assert spans[internal] == [(0, 128)]

    positions = {(p.x, p.y) for p in generate_pillars(edge_set.external, edge_set.internal, spans)}
    assert (128, 0) not in positions and (128, 128) not in positions

    doors = [piece for piece in build_render_pieces(state) if piece.kind == "door"]
    assert [door.edge_id for door in doors] == ["vertical|a+b|128:0-128"]


def test_edge_doors_take_priority_over_pair_doors():
    state = LayoutState(edge_doors={"e": ()}, room_doors=(pair_door(),))
    assert isinstance(select_door_provider(state), RoomPairDoors)

    state = state.evolve(edge_doors={"e": (EdgeDoor(64),)})
    assert isinstance(select_door_provider(state), FreePlacement)


def test_pair_door_follows_rooms_and_is_dropped_when_they_part(make_room):
    state = pair_state(make_room, ("a", 0, 0, 4, 4), ("b", 512, 0, 4, 4), doors=(pair_door(),))

    below = apply(state, {"op": "move_room", "room_id": "b", "x": 0, "y": 512})
    assert below.room_doors == (pair_door(),)
    assert dict(below.edge_doors) == {}
    edge = index_edges(below.rooms)["horizontal|a+b|512:0-512"]
    assert select_door_provider(below).door_spans("", edge) == [(192, 320)]

    apart = apply(state, {"op": "move_room", "room_id": "b", "x": 2048, "y": 0})
    assert apart.room_doors == ()


def test_placed_room_gets_pair_doors(make_room):
    state = pair_state(make_room, ("a", 0, 0, 4, 4), ("b", 512, 0, 4, 4), doors=(pair_door(),))

    placed = apply(state, {"op": "place_room", "room_id": "c", "x": 1024, "y": 0, "tiles_w": 4, "tiles_h": 4})

    assert dict(placed.edge_doors) == {}
    assert placed.room_doors[0] == pair_door()
    added = placed.room_doors[1]
    assert (added.room_a_id, added.room_b_id, added.position, added.offset_px) == ("b", "c", 1024, 192)


def test_cleanup_keeps_only_touching_pairs(make_room):
    rooms = [make_room("a", 0, 0, 4, 4), make_room("b", 512, 0, 4, 4)]
    stale = pair_door("a", "z", "door-2")
    assert cleanup_room_doors([pair_door(), stale], index_edges(rooms)) == (pair_door(),)


def test_pair_doors_survive_scene_round_trip(make_room):
    state = pair_state(make_room, ("a", 0, 0, 4, 4), ("b", 512, 0, 4, 4), doors=(pair_door(),))

    data = json.loads(json.dumps(state_to_dict(state)))

    assert data["roomDoors"][0]["roomBId"] == "b"
    assert state_from_dict(data) == state


def test_drop_preview_lists_pair_doors_it_breaks(make_room):
    state = pair_state(make_room, ("a", 0, 0, 4, 4), ("b", 512, 0, 4, 4), doors=(pair_door(),))

    assert simulate_drop(state, "b", 2048, 0).removed_door_keys == ["door-1"]
    assert simulate_drop(state, "b", 0, 512).removed_door_keys == []
