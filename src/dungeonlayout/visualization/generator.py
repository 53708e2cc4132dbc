"""Image generation for layout debugging.

Draws room floors, wall and door pieces and pillars to a PNG so the output
of the layout engine can be checked by eye.
"""

from __future__ import annotations

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.patches import Rectangle  # noqa: E402

from ..core.model import LayoutState  # noqa: E402
from ..engine.render import build_render_pieces  # noqa: E402

LOGGER = logging.getLogger(__name__)

PIECE_COLORS = {
    "wall": "#4a4a4a",
    "door": "#c98b3c",
    "pillar": "#202020",
    "corner_pillar": "#000000",
}
FLOOR_COLOR = "#e8e2d0"


def generate_layout_image(state: LayoutState, output_path: Path) -> bool:
    """Generate a PNG image of a layout.

    Args:
        state: The layout to draw.
        output_path: Path where to save the PNG image.

    Returns:
        True if the image was generated successfully, False otherwise.
    """
    output_path = Path(output_path)
    fig = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        fig, ax = plt.subplots(figsize=(12, 12))
        for room in state.rooms:
            ax.add_patch(
                Rectangle((room.x, room.y), room.width_px, room.height_px, facecolor=FLOOR_COLOR, edgecolor="none")
            )
            ax.text(
                room.x + room.width_px / 2,
                room.y + room.height_px / 2,
                room.id,
                ha="center",
                va="center",
                fontsize=8,
            )

        for piece in build_render_pieces(state):
            ax.add_patch(
                Rectangle(
                    (piece.x, piece.y),
                    piece.width_px,
                    piece.height_px,
                    facecolor=PIECE_COLORS.get(piece.kind, "red"),
                    edgecolor="none",
                    zorder=3 if "pillar" in piece.kind else 2,
                )
            )

        ax.autoscale_view()
        ax.set_aspect("equal", adjustable="box")
        # Screen coordinates: y grows downwards
        ax.invert_yaxis()
        ax.axis("off")
        fig.tight_layout()
        fig.savefig(output_path, dpi=140)
        return True

    except (OSError, ValueError) as e:
        LOGGER.error("Error in image generation: %s", e)
        return False

    finally:
        if fig is not None:
            plt.close(fig)
