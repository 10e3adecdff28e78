"""
Types shared by every diagram variant.

Provides:
- Annotation / AnnotationShape: labels drawn on points
- InputAction: the inputs a renderer forwards (clicks and buttons)
- RenderState: the snapshot a renderer pulls after every input
- DiagramBase: input dispatch and the named renderer hooks
- Option helpers for marks that become stones or shaped annotations
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple

from .board import Board, Color, Coordinate, IllegalMoveError
from .captures import CaptureCount
from .config import DiagramConfig, get_list
from .errors import MalformedBoardError, MarkError
from .parser import ParsedBoard
from .sequence_tree import ProblemResult

logger = logging.getLogger(__name__)


class AnnotationShape(str, Enum):
    """How an annotation is drawn."""
    TEXT = "text"
    TRIANGLE = "triangle"
    SQUARE = "square"
    CIRCLE = "circle"
    X = "x"


# Option name -> shape, in precedence order (later wins)
SHAPE_OPTIONS = (
    ("triangle", AnnotationShape.TRIANGLE),
    ("square", AnnotationShape.SQUARE),
    ("circle", AnnotationShape.CIRCLE),
    ("x", AnnotationShape.X),
)


@dataclass(frozen=True)
class Annotation:
    label: str
    shape: AnnotationShape = AnnotationShape.TEXT


class InputAction(str, Enum):
    """Inputs a renderer can forward to a diagram."""
    CLICK = "click"
    UNDO = "undo"
    REDO = "redo"
    PASS = "pass"
    RESET = "reset"
    FIRST = "first"
    PREVIOUS = "previous"
    NEXT = "next"
    LAST = "last"


@dataclass
class RenderState:
    """
    Everything a renderer needs to draw a diagram.

    Attributes:
        diagram_type: 'static', 'problem', 'freeplay' or 'replay'
        board: Current position
        row_count / column_count: Visible window
        annotations: coordinate -> label and shape
        area_prefixes / area_colors: Region tags and their colors
        last_move: Point to highlight, if any
        captures: Prisoner counts
        move_number: Moves played (or cursor position for replay)
        total_moves: Length of a replay, None otherwise
        controls: Button name -> enabled
        result: Problem result, None for other variants
        turn: Color to play next, None for static diagrams
        reply_pending: Whether a computer reply is scheduled
    """
    diagram_type: str
    board: Board
    row_count: int
    column_count: int
    annotations: Dict[Coordinate, Annotation] = field(default_factory=dict)
    area_prefixes: Dict[Coordinate, str] = field(default_factory=dict)
    area_colors: Dict[str, str] = field(default_factory=dict)
    last_move: Optional[Coordinate] = None
    captures: CaptureCount = field(default_factory=CaptureCount)
    move_number: int = 0
    total_moves: Optional[int] = None
    controls: Dict[str, bool] = field(default_factory=dict)
    result: Optional[ProblemResult] = None
    turn: Optional[Color] = None
    reply_pending: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'diagram_type': self.diagram_type,
            'size': self.board.size,
            'row_count': self.row_count,
            'column_count': self.column_count,
            'rows': self.board.to_rows(self.row_count, self.column_count),
            'annotations': [
                {'row': c.row, 'col': c.col, 'label': a.label, 'shape': a.shape.value}
                for c, a in sorted(self.annotations.items())
            ],
            'area_prefixes': [
                {'row': c.row, 'col': c.col, 'prefix': p}
                for c, p in sorted(self.area_prefixes.items())
            ],
            'area_colors': dict(self.area_colors),
            'last_move': list(self.last_move) if self.last_move is not None else None,
            'captures': self.captures.to_dict(),
            'move_number': self.move_number,
            'total_moves': self.total_moves,
            'controls': dict(self.controls),
            'result': self.result.value if self.result is not None else None,
            'turn': self.turn.display_name if self.turn is not None else None,
            'reply_pending': self.reply_pending,
        }


# ============================================================================
# Option Helpers
# ============================================================================

def parse_color(value: Optional[str], default: Optional[Color] = None) -> Optional[Color]:
    """Map 'black'/'white' (already validated) to a Color."""
    if value is None:
        return default
    return Color.WHITE if value == "white" else Color.BLACK


def shape_map(config: DiagramConfig) -> Dict[str, AnnotationShape]:
    """Build mark -> shape from the triangle/square/circle/x options."""
    shapes: Dict[str, AnnotationShape] = {}
    for option, shape in SHAPE_OPTIONS:
        for mark in get_list(config, option):
            shapes[mark] = shape
    return shapes


def mark_annotations(
    parsed: ParsedBoard,
    shapes: Dict[str, AnnotationShape],
    shaped_only: bool = False,
) -> Dict[Coordinate, Annotation]:
    """
    Turn board marks into annotations.

    Args:
        parsed: Parsed board
        shapes: mark -> shape overrides
        shaped_only: Skip marks without a shape (problem diagrams hide
            their plain labels)
    """
    annotations: Dict[Coordinate, Annotation] = {}
    for mark, coordinates in parsed.other_marks.items():
        shape = shapes.get(mark)
        if shape is None and shaped_only:
            continue
        for coord in coordinates:
            annotations[coord] = Annotation(label=mark, shape=shape or AnnotationShape.TEXT)
    return annotations


def stone_marks(
    config: DiagramConfig,
    parsed: ParsedBoard,
    require_present: bool = False,
) -> Tuple[List[str], List[str]]:
    """
    Read the 'black' and 'white' mark lists.

    Raises:
        MarkError: If a mark is in both lists, or (require_present) a mark
            is missing from the board
    """
    black = get_list(config, "black")
    white = get_list(config, "white")

    white_set = set(white)
    both = [mark for mark in black if mark in white_set]
    if both:
        raise MarkError(f"Marks cannot appear in both black and white: {', '.join(both)}")

    if require_present:
        for label, marks in (("Black", black), ("White", white)):
            for mark in marks:
                if mark not in parsed.other_marks:
                    raise MarkError(f"{label} mark '{mark}' does not appear in the board")

    return black, white


def add_mark_stones(
    parsed: ParsedBoard,
    black: List[str],
    white: List[str],
    ignore_rules: bool = False,
) -> Board:
    """
    Put stones on every point labelled by the black/white marks.

    Stones are played as moves (with captures) unless ignore_rules, in
    which case they are force-placed.

    Raises:
        MalformedBoardError: If a stone cannot be placed
    """
    stones = [
        (coord, color)
        for marks, color in ((black, Color.BLACK), (white, Color.WHITE))
        for mark in marks
        for coord in parsed.other_marks.get(mark, ())
    ]

    board = parsed.board
    if not stones:
        return board
    try:
        if ignore_rules:
            return board.place_stones(stones, ignore_rules=True)
        for coord, color in stones:
            board = board.add_move(coord, color)
    except IllegalMoveError as e:
        raise MalformedBoardError(f"Cannot place marked stones: {e}")
    return board


# ============================================================================
# Diagram Base
# ============================================================================

class DiagramBase:
    """
    Input dispatch shared by the four diagram variants.

    Subclasses list the inputs they accept in _input_handlers(); anything
    else is ignored. The on_* methods are the hooks a renderer wires to
    its own events.
    """

    diagram_type: ClassVar[str] = ""

    def _input_handlers(self) -> Dict[InputAction, Callable[..., bool]]:
        return {}

    def supported_inputs(self) -> List[InputAction]:
        return list(self._input_handlers())

    def apply_input(self, action: Any, coordinate: Optional[Coordinate] = None) -> bool:
        """
        Apply one renderer input.

        Args:
            action: InputAction or its string value
            coordinate: Point for CLICK inputs

        Returns:
            Whether the diagram state changed
        """
        action = InputAction(action)
        handler = self._input_handlers().get(action)
        if handler is None:
            logger.debug("%s diagram ignores %s", self.diagram_type, action.value)
            return False
        if action is InputAction.CLICK:
            if coordinate is None:
                return False
            return handler(Coordinate(*coordinate))
        return handler()

    def render_state(self) -> RenderState:
        raise NotImplementedError

    def on_board_click(self, coordinate: Coordinate) -> bool:
        return self.apply_input(InputAction.CLICK, coordinate)

    def on_undo(self) -> bool:
        return self.apply_input(InputAction.UNDO)

    def on_redo(self) -> bool:
        return self.apply_input(InputAction.REDO)

    def on_pass(self) -> bool:
        return self.apply_input(InputAction.PASS)

    def on_reset(self) -> bool:
        return self.apply_input(InputAction.RESET)

    def on_first(self) -> bool:
        return self.apply_input(InputAction.FIRST)

    def on_previous(self) -> bool:
        return self.apply_input(InputAction.PREVIOUS)

    def on_next(self) -> bool:
        return self.apply_input(InputAction.NEXT)

    def on_last(self) -> bool:
        return self.apply_input(InputAction.LAST)
