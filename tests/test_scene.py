import json

import matplotlib.pyplot as plt
import pytest
from matplotlib.figure import Figure

from dungeonlayout.core.model import DoorSource, EdgeDoor, SegmentPattern, SegmentState
from dungeonlayout.engine.api import apply
from dungeonlayout.io.scene import load_scene, save_scene, state_from_dict, state_to_dict
from dungeonlayout.visualization.generator import generate_layout_image


def test_scene_round_trip(side_by_side, tmp_path):
    state = apply(side_by_side, {"op": "rotate_room", "room_id": "a", "direction": "right"})
    state = state.evolve(segment_states={"horizontal|a|N:0+4#0": SegmentState(SegmentPattern.DOOR_LEFT)})

    path = save_scene(state, tmp_path / "scenes" / "castle.json")

    assert load_scene(path) == state


def test_scene_document_layout(side_by_side):
    data = state_to_dict(side_by_side)
    assert data["rooms"][1] == {
        "id": "b",
        "x": 512,
        "y": 0,
        "tilesW": 4,
        "tilesH": 4,
        "rotation": 0,
        "floorStyleId": "stone",
        "wallGroupId": "wg-1",
    }
    assert data["wallGroups"] == [{"id": "wg-1", "wallStyleId": "worn-castle", "roomCount": 2}]
    assert data["edgeDoors"] == {"vertical|a+b|512:0-512": [{"offsetPx": 192, "source": "auto"}]}
    assert data["segmentStates"] == {}


def test_state_from_dict_defaults():
    state = state_from_dict(
        {"rooms": [{"id": "a", "x": 0, "y": 0, "tilesW": 2, "tilesH": 1}], "edgeDoors": {"e": [{"offsetPx": 64}]}}
    )
    assert state.room("a").rotation == 0
    assert state.room("a").wall_group_id is None
    assert state.edge_doors["e"] == (EdgeDoor(64, DoorSource.MANUAL),)


@pytest.mark.parametrize(
    "data",
    [
        {"rooms": [{"id": "a", "x": 0}]},
        {"rooms": [{"id": "a", "x": 0, "y": 0, "tilesW": 2, "tilesH": 2, "rotation": 45}]},
        {"segmentStates": {"s#0": {"pattern": "DOOR_SIDEWAYS"}}},
    ],
)
def test_state_from_dict_rejects_bad_entries(data):
    with pytest.raises(ValueError):
        state_from_dict(data)


def test_load_scene_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scene(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_scene(broken)

    listed = tmp_path / "list.json"
    listed.write_text(json.dumps([]), encoding="utf-8")
    with pytest.raises(ValueError):
        load_scene(listed)


def test_generate_layout_image(side_by_side, tmp_path):
    output = tmp_path / "images" / "layout.png"
    assert generate_layout_image(side_by_side, output)
    assert output.exists()


def test_failed_image_save_closes_figure(side_by_side, tmp_path, monkeypatch):
    def refuse(self, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Figure, "savefig", refuse)
    plt.close("all")

    assert not generate_layout_image(side_by_side, tmp_path / "layout.png")
    assert plt.get_fignums() == []
