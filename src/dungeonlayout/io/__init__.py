"""Scene file loading and saving."""

from .scene import load_scene, save_scene, state_from_dict, state_to_dict

__all__ = ["load_scene", "save_scene", "state_from_dict", "state_to_dict"]
