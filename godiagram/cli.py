"""
Command-line interface for godiagram.

Usage:
    # Validate a diagram and print its state
    python -m godiagram diagram.txt

    # Drive a problem through a few inputs
    python -m godiagram problem.txt --input "click A3" --seed 1

    # Step a replay and print JSON
    python -m godiagram replay.txt --input next --input next --json
"""

import argparse
import json
import logging
import random
import sys
from typing import List, Optional, Tuple

from .base import InputAction, RenderState
from .board import GTP_COLUMNS, Coordinate, gtp_to_coords
from .config import load_config
from .diagrams import Diagram, create_diagram
from .errors import DiagramError
from .scheduler import ManualScheduler

logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="godiagram",
        description="Validate and play interactive Go diagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show a diagram
  %(prog)s diagram.txt

  # Play a problem (GTP vertex or row,col from the top-left)
  %(prog)s problem.txt --input "click C3" --input "click 0,1"

  # Replay navigation
  %(prog)s replay.txt --input last --input previous

  # Deterministic problem replies
  %(prog)s problem.txt --input "click A3" --seed 7 --json
        """
    )

    parser.add_argument(
        "file",
        help="Diagram source file ('-' for stdin)"
    )

    parser.add_argument(
        "--input", "-i",
        dest="inputs",
        action="append",
        default=[],
        metavar="ACTION",
        help='Input to apply: click <vertex>, undo, redo, pass, reset, first, previous, next, last'
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for problem replies"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to godiagram.yaml"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output state as JSON"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose (debug) logging"
    )

    return parser.parse_args(args)


def parse_input(text: str, board_size: int) -> Tuple[InputAction, Optional[Coordinate]]:
    """
    Parse an input such as 'click C3', 'click 0,2' or 'next'.

    Raises:
        ValueError: If the action or the vertex is invalid
    """
    parts = text.split()
    if not parts:
        raise ValueError("Empty input")

    try:
        action = InputAction(parts[0].lower())
    except ValueError:
        allowed = ", ".join(a.value for a in InputAction)
        raise ValueError(f"Unknown input '{parts[0]}'. Must be one of: {allowed}")

    if action is not InputAction.CLICK:
        if len(parts) > 1:
            raise ValueError(f"Input '{action.value}' takes no argument")
        return action, None

    if len(parts) != 2:
        raise ValueError("click requires one vertex, e.g. 'click C3' or 'click 0,2'")

    vertex = parts[1]
    if "," in vertex:
        try:
            row, col = (int(v) for v in vertex.split(","))
        except ValueError:
            raise ValueError(f"Invalid point '{vertex}'. Expected row,col")
        return action, Coordinate(row, col)

    return action, gtp_to_coords(vertex, board_size)


def format_state(render: RenderState) -> str:
    """
    Format a RenderState as a human-readable string.

    Args:
        render: Snapshot to format

    Returns:
        Formatted string
    """
    size = render.board.size
    lines = [
        "=" * 50,
        f"{render.diagram_type.capitalize()} diagram",
        "=" * 50,
        f"Board: {render.row_count}x{render.column_count} (size {size})",
        "",
        "    " + " ".join(GTP_COLUMNS[c] for c in range(render.column_count)),
    ]
    for number, row in enumerate(render.board.to_rows(render.row_count, render.column_count)):
        lines.append(f"{size - number:>3} {row}")

    if render.annotations:
        lines.append("")
        lines.append("Annotations:")
        for coord, annotation in sorted(render.annotations.items()):
            shape = "" if annotation.shape.value == "text" else f" ({annotation.shape.value})"
            lines.append(f"  {GTP_COLUMNS[coord.col]}{size - coord.row}: {annotation.label}{shape}")

    status = [f"Move: {render.move_number}" + (f"/{render.total_moves}" if render.total_moves is not None else "")]
    if render.turn is not None:
        status.append(f"To play: {render.turn.display_name}")
    if render.result is not None:
        status.append(f"Result: {render.result.value}")
    lines.extend([
        "",
        " | ".join(status),
        f"Captured: white {render.captures.white_captured} | black {render.captures.black_captured}",
    ])
    if render.controls:
        enabled = [name for name, on in render.controls.items() if on]
        lines.append(f"Controls: {', '.join(enabled) or 'none'}")
    lines.append("=" * 50)

    return "\n".join(lines)


def read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def run_inputs(diagram: Diagram, scheduler: ManualScheduler, inputs: List[str]) -> None:
    """Apply inputs in order, letting any reply play out after each one."""
    size = diagram.render_state().board.size
    for text in inputs:
        action, coordinate = parse_input(text, size)
        changed = diagram.apply_input(action, coordinate)
        scheduler.run_all()
        logger.debug("Input '%s' %s", text, "applied" if changed else "ignored")


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    # Load config
    try:
        config = load_config(parsed.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else config.logging.level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        source = read_source(parsed.file)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    scheduler = ManualScheduler()
    rng = random.Random(parsed.seed) if parsed.seed is not None else None

    try:
        diagram = create_diagram(
            source,
            rng=rng,
            scheduler=scheduler,
            reply_delay=config.diagrams.reply_delay,
        )
    except DiagramError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        run_inputs(diagram, scheduler, parsed.inputs)
    except ValueError as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2

    render = diagram.render_state()
    if parsed.json:
        print(json.dumps(render.to_dict(), indent=2))
    else:
        print(format_state(render))

    return 0


if __name__ == "__main__":
    sys.exit(main())
