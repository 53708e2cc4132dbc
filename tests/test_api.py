import pytest

from dungeonlayout.core.model import LayoutState, UnknownRoomError, WallGroup
from dungeonlayout.engine.api import apply, apply_operations
from dungeonlayout.engine.ops import get_operation, list_operations, register_operation
from dungeonlayout.engine.validators import InvalidOperation, validate_all, validate_no_overlap


def test_registry_lists_layout_operations():
    assert set(list_operations()) >= {
        "place_room",
        "move_room",
        "rotate_room",
        "delete_room",
        "edge_door_click",
        "segment_click",
        "set_wall_style",
        "recompute_groups",
    }
    with pytest.raises(KeyError):
        get_operation("teleport")


def test_unknown_or_missing_operation_raises(empty_state):
    with pytest.raises(ValueError):
        apply(empty_state, {"op": "teleport"})
    with pytest.raises(ValueError):
        apply(empty_state, {"room_id": "a"})


def test_unknown_room_raises(side_by_side):
    with pytest.raises(UnknownRoomError) as excinfo:
        apply(side_by_side, {"op": "move_room", "room_id": "zz", "x": 0, "y": 0})
    assert isinstance(excinfo.value, KeyError)
    assert str(excinfo.value) == "Room 'zz' does not exist"


def test_overlapping_placement_is_rejected(side_by_side):
    with pytest.raises(InvalidOperation):
        apply(side_by_side, {"op": "place_room", "room_id": "c", "x": 256, "y": 256, "tiles_w": 2, "tiles_h": 2})


def test_duplicate_room_id_is_rejected(side_by_side):
    with pytest.raises(ValueError):
        apply(side_by_side, {"op": "place_room", "room_id": "a", "x": 4096, "y": 0, "tiles_w": 1, "tiles_h": 1})


def test_rotation_into_neighbour_is_rejected(place, empty_state):
    state = place(empty_state, "r", 0, 0, 4, 2)
    state = place(state, "n", 0, 256, 2, 2)
    with pytest.raises(InvalidOperation):
        apply(state, {"op": "rotate_room", "room_id": "r", "direction": "right"})


def test_bad_rotation_direction_raises(side_by_side):
    with pytest.raises(ValueError):
        apply(side_by_side, {"op": "rotate_room", "room_id": "a", "direction": "up"})


def test_operations_do_not_mutate_input(side_by_side):
    before = LayoutState(
        side_by_side.rooms, side_by_side.wall_groups, side_by_side.edge_doors, side_by_side.segment_states
    )
    apply(side_by_side, {"op": "delete_room", "room_id": "b"})
    apply(side_by_side, {"op": "move_room", "room_id": "b", "x": 2048, "y": 0})
    assert side_by_side == before


def test_set_wall_style(side_by_side):
    state = apply(side_by_side, {"op": "set_wall_style", "group_id": "wg-1", "wall_style_id": "mossy"})
    assert state.wall_groups == (WallGroup("wg-1", "mossy", 2),)
    with pytest.raises(ValueError):
        apply(side_by_side, {"op": "set_wall_style", "group_id": "nope", "wall_style_id": "mossy"})


def test_apply_operations_runs_in_order(group_ids):
    state = apply_operations(
        LayoutState(),
        [
            {"op": "place_room", "room_id": "a", "x": 0, "y": 0, "tiles_w": 2, "tiles_h": 2, "id_factory": group_ids},
            {"op": "place_room", "room_id": "b", "x": 256, "y": 0, "tiles_w": 2, "tiles_h": 2, "id_factory": group_ids},
            {"op": "delete_room", "room_id": "a", "id_factory": group_ids},
        ],
    )
    assert [room.id for room in state.rooms] == ["b"]
    assert state.wall_groups == (WallGroup("wg-1", "worn-castle", 1),)


def test_placed_room_gets_generated_id(empty_state):
    state = apply(empty_state, {"op": "place_room", "x": 0, "y": 0, "tiles_w": 1, "tiles_h": 1})
    assert state.rooms[0].id.startswith("mr-")
    assert state.wall_groups[0].id.startswith("wg-")


def test_validate_all_flags_inconsistent_state(make_room):
    state = LayoutState(
        rooms=(make_room("a", 0, 0, 2, 2, group="g"), make_room("b", 128, 0, 2, 2, group="g")),
        wall_groups=(WallGroup("g", "worn-castle", 2),),
    )
    assert not validate_no_overlap(state)
    with pytest.raises(InvalidOperation):
        validate_all(state)


def test_registered_operation_is_applied(side_by_side):
    class NoopOp:
        def precheck(self, state, **kwargs):
            return True

        def apply(self, state, **kwargs):
            return state

    register_operation("noop", NoopOp())
    assert apply(side_by_side, {"op": "noop"}) == side_by_side
