"""Dungeon Layout - wall groups, doors and wall pieces for modular room maps."""

__version__ = "0.1.0"

from .core.model import EdgeDoor, LayoutState, Room, SegmentState, WallGroup

__all__ = ["EdgeDoor", "LayoutState", "Room", "SegmentState", "WallGroup"]
