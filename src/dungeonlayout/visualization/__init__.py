"""Visualization module for layout debugging."""

from .generator import generate_layout_image

__all__ = ["generate_layout_image"]
