"""Shared fixtures for the layout engine tests."""

import itertools

import pytest

from dungeonlayout.core.model import LayoutState, Room
from dungeonlayout.engine.api import apply


def make_id_factory(prefix):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def group_ids():
    """Deterministic wall group ids: wg-1, wg-2, ..."""
    return make_id_factory("wg")


@pytest.fixture
def place(group_ids):
    """Place a room through the public API with deterministic group ids."""

    def _place(state, room_id, x, y, tiles_w, tiles_h, **extra):
        operation = {
            "op": "place_room",
            "room_id": room_id,
            "x": x,
            "y": y,
            "tiles_w": tiles_w,
            "tiles_h": tiles_h,
            "id_factory": group_ids,
        }
        operation.update(extra)
        return apply(state, operation)

    return _place


@pytest.fixture
def empty_state():
    return LayoutState()


@pytest.fixture
def side_by_side(place, empty_state):
    """Two 4x4 rooms sharing their full 512px wall at x=512."""
    state = place(empty_state, "a", 0, 0, 4, 4)
    return place(state, "b", 512, 0, 4, 4)


@pytest.fixture
def chain(place, empty_state):
    """Three 2x2 rooms in a row: a - b - c, b being the bridge."""
    state = place(empty_state, "a", 0, 0, 2, 2)
    state = place(state, "b", 256, 0, 2, 2)
    return place(state, "c", 512, 0, 2, 2)


@pytest.fixture
def make_room():
    def _make_room(room_id, x, y, tiles_w, tiles_h, rotation=0, group=None):
        return Room(room_id, x, y, tiles_w, tiles_h, rotation, wall_group_id=group)

    return _make_room
