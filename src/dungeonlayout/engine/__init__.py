"""Engine module for layout operations.

This module provides the core API for applying operations to a layout,
previewing drops and building render pieces.
"""

from .api import apply, apply_operations
from .render import build_render_pieces
from .simulation import simulate_drop
from .snap import find_magnetic_snap_position

__all__ = ["apply", "apply_operations", "build_render_pieces", "simulate_drop", "find_magnetic_snap_position"]
