"""
Replay diagrams: step through a numbered game record.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .base import (
    Annotation,
    AnnotationShape,
    DiagramBase,
    InputAction,
    RenderState,
    parse_color,
    shape_map,
)
from .board import Board, Color, Coordinate
from .captures import CaptureCount, count_captures
from .config import get_bool, get_choice, get_int, get_mapping, load_diagram_config
from .errors import ReplayError
from .moves import ParsedMove, build_move_sequence, check_sequence_legal, parse_move_number
from .parser import BoardOptions, find_board_rows, parse_board, parse_size

logger = logging.getLogger(__name__)


class ReplayDiagram(DiagramBase):
    """
    Read-only move list with first / previous / next / last navigation.

    The cursor ranges from -1 (starting position) to len(moves) - 1 (all
    moves played). Every navigation step rebuilds the position from the
    initial board.
    """

    diagram_type = "replay"

    def __init__(self, lines: Sequence[str]):
        _, config_start = find_board_rows(lines)
        config = load_diagram_config(lines, config_start)

        self.parsed = parse_board(lines, BoardOptions(size=parse_size(config)))
        self.initial_board = self.parsed.board

        start_color = parse_color(get_choice(config, "start-color", ("black", "white")), Color.BLACK)
        self.show_numbers = get_bool(config, "show-numbers")

        self.moves: List[ParsedMove] = build_move_sequence(
            self.parsed, start_color, get_mapping(config, "moves")
        )
        check_sequence_legal(self.moves, self.initial_board)

        initial_move = get_int(config, "initial-move", default=0)
        if not 0 <= initial_move <= len(self.moves):
            raise ReplayError(
                f"initial-move {initial_move} must be between 0 and the number of moves ({len(self.moves)})"
            )

        # Numbered marks become moves; the rest stay as annotations
        shapes = shape_map(config)
        self.annotations: Dict[Coordinate, Annotation] = {}
        for mark, coordinates in self.parsed.other_marks.items():
            if parse_move_number(mark) is not None:
                continue
            for coord in coordinates:
                self.annotations[coord] = Annotation(mark, shapes.get(mark, AnnotationShape.TEXT))

        self.cursor = initial_move - 1
        self._rebuild()

        logger.info(
            "Created replay diagram (%dx%d, %d moves, starting at move %d)",
            self.parsed.row_count, self.parsed.column_count, len(self.moves), initial_move,
        )

    @property
    def total_moves(self) -> int:
        return len(self.moves)

    def _rebuild(self) -> None:
        board: Board = self.initial_board
        captures = CaptureCount()
        for move in self.moves[:self.cursor + 1]:
            after = board.add_move(move.coordinate, move.color)
            captures = captures + count_captures(board, after)
            board = after
        self.board = board
        self.captures = captures

    # ========================================================================
    # Navigation
    # ========================================================================

    def _input_handlers(self):
        return {
            InputAction.FIRST: self.first,
            InputAction.PREVIOUS: self.previous,
            InputAction.NEXT: self.next,
            InputAction.LAST: self.last,
        }

    def go_to_move(self, move_number: int) -> bool:
        """
        Show the position after move_number moves (0 is the start).

        Returns:
            False if move_number is out of range (nothing changes)
        """
        if not 0 <= move_number <= len(self.moves):
            logger.debug("Ignoring go_to_move(%d): %d moves", move_number, len(self.moves))
            return False
        self.cursor = move_number - 1
        self._rebuild()
        return True

    def first(self) -> bool:
        if self.cursor < 0:
            return False
        return self.go_to_move(0)

    def previous(self) -> bool:
        if self.cursor < 0:
            return False
        return self.go_to_move(self.cursor)

    def next(self) -> bool:
        if self.cursor >= len(self.moves) - 1:
            return False
        return self.go_to_move(self.cursor + 2)

    def last(self) -> bool:
        if self.cursor >= len(self.moves) - 1:
            return False
        return self.go_to_move(len(self.moves))

    # ========================================================================
    # Rendering
    # ========================================================================

    @property
    def turn(self) -> Color:
        """Color of the next move, or the opposite of the last one at the end."""
        if self.cursor < len(self.moves) - 1:
            return self.moves[self.cursor + 1].color
        return self.moves[self.cursor].color.opponent

    def _last_move(self) -> Optional[Coordinate]:
        if self.cursor < 0:
            return None
        return self.moves[self.cursor].coordinate

    def _visible_annotations(self) -> Dict[Coordinate, Annotation]:
        annotations = dict(self.annotations)
        if self.show_numbers:
            for move in self.moves[:self.cursor + 1]:
                annotations[move.coordinate] = Annotation(str(move.move_number), AnnotationShape.TEXT)
        return annotations

    def controls(self) -> Dict[str, bool]:
        at_start = self.cursor < 0
        at_end = self.cursor >= len(self.moves) - 1
        return {
            "first": not at_start,
            "previous": not at_start,
            "next": not at_end,
            "last": not at_end,
        }

    def render_state(self) -> RenderState:
        return RenderState(
            diagram_type=self.diagram_type,
            board=self.board,
            row_count=self.parsed.row_count,
            column_count=self.parsed.column_count,
            annotations=self._visible_annotations(),
            last_move=self._last_move(),
            captures=self.captures,
            move_number=self.cursor + 1,
            total_moves=len(self.moves),
            controls=self.controls(),
            turn=self.turn,
        )
