from dungeonlayout.core.model import DoorSource, EdgeDoor, LayoutState, WallGroup
from dungeonlayout.engine.api import apply
from dungeonlayout.engine.simulation import simulate_drop
from dungeonlayout.engine.snap import MagneticSnapResult, find_magnetic_snap_position


def test_snap_without_other_rooms_is_free(make_room):
    dragged = make_room("d", 0, 0, 2, 2)
    assert find_magnetic_snap_position(dragged, 37, 91, [dragged]) == MagneticSnapResult(37, 91)


def test_snap_docks_against_nearby_room(make_room):
    target = make_room("t", 0, 0, 2, 2)
    dragged = make_room("d", 2000, 2000, 2, 2)
    result = find_magnetic_snap_position(dragged, 300, 10, [target, dragged])
    assert result == MagneticSnapResult(256, 0, "t", 2)


def test_snap_aligns_to_target_grid(make_room):
    target = make_room("t", 64, 32, 2, 2)
    dragged = make_room("d", 2000, 2000, 1, 1)
    result = find_magnetic_snap_position(dragged, 330, 170, [target])
    assert (result.x, result.y) == (320, 160)
    assert result.snapped_to_room == "t"


def test_far_cursor_places_freely(make_room):
    target = make_room("t", 0, 0, 2, 2)
    dragged = make_room("d", 2000, 2000, 2, 2)
    assert find_magnetic_snap_position(dragged, 1000, 1000, [target]) == MagneticSnapResult(1000, 1000)


def test_overlapping_cursor_falls_back_to_nearest_side(make_room):
    target = make_room("t", 0, 0, 2, 2)
    dragged = make_room("d", 2000, 2000, 2, 2)
    result = find_magnetic_snap_position(dragged, 100, 0, [target])
    assert result == MagneticSnapResult(256, 0, "t", 2)


def test_snap_skips_occupied_positions(make_room):
    target = make_room("t", 0, 0, 2, 2)
    blocker = make_room("b", 256, 0, 2, 2)
    dragged = make_room("d", 2000, 2000, 2, 2)
    result = find_magnetic_snap_position(dragged, 300, 10, [target, blocker])
    assert result.snapped_to_room == "b"
    assert (result.x, result.y) == (512, 0)


def test_simulate_drop_previews_join_without_changing_state(place, empty_state):
    state = place(empty_state, "a", 0, 0, 2, 2, wall_style_id="mossy")
    state = place(state, "b", 1024, 0, 2, 2)
    before = state

    preview = simulate_drop(state, "b", 256, 0)

    assert state == before
    assert preview.new_position == (256, 0)
    assert preview.will_merge
    assert preview.target_group_id == "wg-1"
    assert preview.target_wall_style_id == "mossy"
    assert preview.merged_group_ids == []
    assert preview.new_doors == {"vertical|a+b|256:0-256": EdgeDoor(64, DoorSource.AUTO)}
    assert preview.removed_door_keys == []
    assert preview.affected_room_ids == ["b"]


def test_simulate_drop_reports_broken_doors(side_by_side):
    preview = simulate_drop(side_by_side, "b", 2048, 0)

    assert not preview.will_merge
    assert preview.target_group_id is None
    assert preview.new_doors == {}
    assert preview.removed_door_keys == ["vertical|a+b|512:0-512"]
    assert preview.affected_room_ids == ["b"]


def test_simulate_drop_between_two_groups(place, empty_state):
    state = place(empty_state, "a", 0, 0, 2, 2)
    state = place(state, "c", 512, 0, 2, 2)
    state = place(state, "d", 768, 0, 2, 2)
    state = place(state, "b", 0, 1024, 2, 2)

    preview = simulate_drop(state, "b", 256, 0)

    assert preview.target_group_id == "wg-2"
    assert preview.merged_group_ids == ["wg-1"]
    assert preview.affected_room_ids == ["a", "b"]
    assert set(preview.new_doors) == {"vertical|a+b|256:0-256", "vertical|b+c|512:0-256"}

    committed = apply(state, {"op": "move_room", "room_id": "b", "x": 256, "y": 0})
    assert {room.wall_group_id for room in committed.rooms} == {"wg-2"}
    assert set(preview.new_doors) <= set(committed.edge_doors)


def test_simulate_drop_matches_commit_when_leaving_a_building(make_room):
    state = LayoutState(
        rooms=(
            make_room("m", 0, 0, 2, 2, group="g1"),
            make_room("s", 256, 0, 2, 2, group="g1"),
            make_room("t", 2048, 0, 2, 2, group="g2"),
        ),
        wall_groups=(WallGroup("g1", "brick", 2), WallGroup("g2", "marble", 1)),
    )

    preview = simulate_drop(state, "m", 1792, 0)
    committed = apply(state, {"op": "move_room", "room_id": "m", "x": 1792, "y": 0})

    assert preview.target_group_id == "g2"
    assert preview.target_wall_style_id == "marble"
    assert preview.merged_group_ids == []
    assert preview.affected_room_ids == ["m"]
    assert committed.room("m").wall_group_id == preview.target_group_id
    assert committed.room("s").wall_group_id == "g1"
    assert committed.group("g2").wall_style_id == "marble"


def test_simulate_drop_reports_rooms_split_off_a_bridge(chain):
    preview = simulate_drop(chain, "b", 0, 1024)

    assert preview.target_group_id is None
    assert preview.affected_room_ids == ["b", "c"]
