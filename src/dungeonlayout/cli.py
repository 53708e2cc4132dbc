"""Command Line Interface for the dungeon layout engine.

This module provides a small CLI for inspecting scenes, applying
operations, previewing drops and snaps, and exporting render pieces.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.model import LayoutState, SharedEdge, UnknownRoomError
from .engine.api import apply_operations
from .engine.doors import format_number, index_edges
from .engine.pair_doors import current_edge, room_pair_key
from .engine.providers import select_door_provider
from .engine.render import build_render_pieces
from .engine.simulation import simulate_drop
from .engine.snap import find_magnetic_snap_position
from .engine.validators import InvalidOperation
from .io.scene import load_scene, save_scene

app = typer.Typer(
    name="dungeon-layout",
    help="A CLI tool for modular room layouts: wall groups, doors and wall pieces",
    no_args_is_help=True,
)
console = Console()

SCENE_OPTION = typer.Option(..., "--scene", "-s", help="Path to scene JSON file")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """Modular room layout tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(scene: Path) -> LayoutState:
    state = load_scene(str(scene))
    console.print(f"[green]✓[/green] Loaded scene from {scene}")
    return state


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


@app.command()
def inspect(scene: Path = SCENE_OPTION):
    """Show the wall groups, edges and doors of a scene."""
    try:
        state = _load(scene)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except ValueError as e:
        _fail(str(e))

    groups = Table(title="Wall groups")
    groups.add_column("Group", style="cyan")
    groups.add_column("Wall style")
    groups.add_column("Rooms", justify="right")
    for group in state.wall_groups:
        members = ", ".join(room.id for room in state.rooms_in_group(group.id))
        groups.add_row(group.id, group.wall_style_id, f"{group.room_count} ({members})")
    console.print(groups)

    provider = select_door_provider(state)
    edge_index = index_edges(state.rooms)
    edges = Table(title=f"Edges ({type(provider).__name__})")
    edges.add_column("Edge", style="cyan")
    edges.add_column("Kind")
    edges.add_column("Length", justify="right")
    edges.add_column("Doors")
    for edge_id, edge in sorted(edge_index.items()):
        spans = provider.door_spans(edge_id, edge)
        edges.add_row(
            edge_id,
            "internal" if edge.is_internal else "external",
            format_number(edge.length),
            ", ".join(f"{format_number(start)}-{format_number(end)}" for start, end in spans),
        )
    console.print(edges)

    if state.room_doors:
        edge_ids = {edge: edge_id for edge_id, edge in edge_index.items()}
        room_doors = Table(title="Room doors")
        room_doors.add_column("Door", style="cyan")
        room_doors.add_column("Recorded wall")
        room_doors.add_column("Current wall")
        for door in state.room_doors:
            recorded = SharedEdge(door.orientation, door.position, door.range_start, door.range_end)
            edge = current_edge(door, edge_index)
            room_doors.add_row(
                door.id,
                room_pair_key(door.room_a_id, door.room_b_id, recorded),
                edge_ids[edge] if edge else "-",
            )
        console.print(room_doors)


@app.command()
def apply(
    scene: Path = SCENE_OPTION,
    operation: Path = typer.Option(..., "--op", help="Path to operation JSON file (an object or a list)"),
    output: Path = typer.Option(..., "--out", help="Path to output scene JSON file"),
):
    """Apply one or more operations to a scene and save the result."""
    try:
        state = _load(scene)
        with open(operation, encoding="utf-8") as f:
            operation_data = json.load(f)
        operations = operation_data if isinstance(operation_data, list) else [operation_data]

        new_state = apply_operations(state, operations)
        save_scene(new_state, output)
        console.print(f"[green]✓[/green] Applied {len(operations)} operation(s)")
        console.print(f"[green]✓[/green] Modified scene saved to {output}")
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except UnknownRoomError as e:
        _fail(str(e))
    except (InvalidOperation, ValueError) as e:
        _fail(str(e))


@app.command()
def simulate(
    scene: Path = SCENE_OPTION,
    room: str = typer.Option(..., "--room", "-r", help="Room being dragged"),
    x: float = typer.Option(..., "--x", help="Drop x in pixels"),
    y: float = typer.Option(..., "--y", help="Drop y in pixels"),
):
    """Preview dropping a room at a position without changing the scene."""
    try:
        state = _load(scene)
        result = simulate_drop(state, room, x, y)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except UnknownRoomError as e:
        _fail(str(e))
    except ValueError as e:
        _fail(str(e))

    table = Table(title=f"Drop {room} at ({format_number(x)}, {format_number(y)})")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("will merge", str(result.will_merge))
    table.add_row("target group", result.target_group_id or "-")
    table.add_row("target wall style", result.target_wall_style_id or "-")
    table.add_row("merged groups", ", ".join(result.merged_group_ids) or "-")
    table.add_row("new doors", ", ".join(result.new_doors) or "-")
    table.add_row("removed doors", ", ".join(result.removed_door_keys) or "-")
    table.add_row("affected rooms", ", ".join(result.affected_room_ids))
    console.print(table)


@app.command()
def snap(
    scene: Path = SCENE_OPTION,
    room: str = typer.Option(..., "--room", "-r", help="Room being dragged"),
    x: float = typer.Option(..., "--x", help="Cursor x in pixels"),
    y: float = typer.Option(..., "--y", help="Cursor y in pixels"),
):
    """Show where a dragged room would snap for a cursor position."""
    try:
        state = _load(scene)
        result = find_magnetic_snap_position(state.room(room), x, y, state.rooms)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except UnknownRoomError as e:
        _fail(str(e))
    except ValueError as e:
        _fail(str(e))

    position = f"({format_number(result.x)}, {format_number(result.y)})"
    if result.snapped_to_room:
        console.print(
            f"Snapped to [cyan]{result.snapped_to_room}[/cyan] at {position}, "
            f"sharing {result.shared_edge_tiles} tile(s)"
        )
    else:
        console.print(f"Free placement at {position}")


@app.command()
def render(
    scene: Path = SCENE_OPTION,
    output: Path = typer.Option(..., "--out", help="Path to output render pieces JSON file"),
    image: Optional[Path] = typer.Option(None, "--image", help="Also draw the layout to this PNG"),
):
    """Export the render pieces of a scene, and optionally a debug image."""
    try:
        state = _load(scene)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except ValueError as e:
        _fail(str(e))

    pieces = [piece.to_dict() for piece in build_render_pieces(state)]
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(pieces, f, indent=2)
    console.print(f"[green]✓[/green] Wrote {len(pieces)} render pieces to {output}")

    if image is not None:
        from .visualization.generator import generate_layout_image

        if not generate_layout_image(state, image):
            _fail(f"Could not generate image {image}")
        console.print(f"[green]✓[/green] Image saved to {image}")


if __name__ == "__main__":
    app()
