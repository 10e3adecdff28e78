"""
Freeplay diagrams: a board the reader can play on freely.

Moves and passes form a linear history with an undo/redo cursor. After
every action the position is rebuilt from the initial board, so captures,
ko and turn always agree with the history.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .base import (
    Annotation,
    AnnotationShape,
    DiagramBase,
    InputAction,
    RenderState,
    add_mark_stones,
    mark_annotations,
    parse_color,
    shape_map,
    stone_marks,
)
from .board import Color, Coordinate
from .captures import CaptureCount, play_move
from .config import get_bool, get_choice, load_diagram_config
from .parser import BoardOptions, find_board_rows, parse_board, parse_size

logger = logging.getLogger(__name__)

COLOR_MODES = ("black", "white", "alternate")


@dataclass(frozen=True)
class HistoryEntry:
    """A played move, or a pass when coordinate is None."""
    color: Color
    coordinate: Optional[Coordinate] = None

    @property
    def is_pass(self) -> bool:
        return self.coordinate is None


class FreeplayDiagram(DiagramBase):
    """
    Free play with undo, redo, pass and reset.

    Options:
        color: black | white | alternate (default alternate)
        to-play: Color of the first move (overrides the color mode)
        numbered: Label played moves 1..n
        ignore-ko: Allow immediate ko recaptures
        black / white: Marks that start as stones
    """

    diagram_type = "freeplay"

    def __init__(self, lines: Sequence[str]):
        _, config_start = find_board_rows(lines)
        config = load_diagram_config(lines, config_start)

        parsed = parse_board(lines, BoardOptions(size=parse_size(config), allow_empty=True))

        self.color_mode = get_choice(config, "color", COLOR_MODES, default="alternate")
        self.to_play = parse_color(get_choice(config, "to-play", ("black", "white")))
        self.numbered = get_bool(config, "numbered")
        self.ignore_ko = get_bool(config, "ignore-ko")

        black, white = stone_marks(config, parsed)
        self.parsed = parsed.with_board(add_mark_stones(parsed, black, white))
        self.initial_board = self.parsed.board
        self.annotations = mark_annotations(parsed, shape_map(config))

        self.history: List[HistoryEntry] = []
        self.cursor = -1
        self._rebuild()

        logger.info(
            "Created freeplay diagram (%dx%d, color mode %s)",
            parsed.row_count, parsed.column_count, self.color_mode,
        )

    def initial_turn(self) -> Color:
        if self.to_play is not None:
            return self.to_play
        return Color.WHITE if self.color_mode == "white" else Color.BLACK

    def _next_turn(self, last_color: Color) -> Color:
        if self.color_mode == "black":
            return Color.BLACK
        if self.color_mode == "white":
            return Color.WHITE
        return last_color.opponent

    def _rebuild(self) -> None:
        """Replay history[0..cursor] from the initial board."""
        board = self.initial_board
        captures = CaptureCount()
        ko_point = None
        for entry in self.history[:self.cursor + 1]:
            if entry.is_pass:
                ko_point = None
                continue
            outcome = play_move(board, entry.coordinate, entry.color, enforce_ko=not self.ignore_ko)
            # Entries were legal when recorded, and replay is deterministic
            board = outcome.board
            captures = captures + outcome.captures
            ko_point = outcome.ko_point

        self.board = board
        self.captures = captures
        self.ko_point = ko_point
        if self.cursor < 0:
            self.turn = self.initial_turn()
        else:
            self.turn = self._next_turn(self.history[self.cursor].color)

    def _record(self, entry: HistoryEntry) -> None:
        del self.history[self.cursor + 1:]
        self.history.append(entry)
        self.cursor += 1
        self._rebuild()

    # ========================================================================
    # Actions
    # ========================================================================

    def _input_handlers(self):
        return {
            InputAction.CLICK: self.play,
            InputAction.UNDO: self.undo,
            InputAction.REDO: self.redo,
            InputAction.PASS: self.pass_turn,
            InputAction.RESET: self.reset,
        }

    def play(self, coord: Coordinate) -> bool:
        """Play the current turn at coord; illegal moves and ko retakes are ignored."""
        if not self.parsed.in_window(coord):
            logger.debug("Ignoring click at %s: outside the diagram", tuple(coord))
            return False
        outcome = play_move(self.board, coord, self.turn, self.ko_point, enforce_ko=not self.ignore_ko)
        if outcome is None:
            return False
        logger.debug("Played %s at %s", self.turn.display_name, tuple(coord))
        self._record(HistoryEntry(color=self.turn, coordinate=coord))
        return True

    def pass_turn(self) -> bool:
        logger.debug("%s passed", self.turn.display_name)
        self._record(HistoryEntry(color=self.turn))
        return True

    def undo(self) -> bool:
        if self.cursor < 0:
            return False
        self.cursor -= 1
        self._rebuild()
        return True

    def redo(self) -> bool:
        if self.cursor >= len(self.history) - 1:
            return False
        self.cursor += 1
        self._rebuild()
        return True

    def reset(self) -> bool:
        self.history = []
        self.cursor = -1
        self._rebuild()
        return True

    # ========================================================================
    # Rendering
    # ========================================================================

    @property
    def move_number(self) -> int:
        return self.cursor + 1

    def _visible_annotations(self) -> Dict[Coordinate, Annotation]:
        annotations = dict(self.annotations)
        if self.numbered:
            # Passes consume a number without labelling a point
            for number, entry in enumerate(self.history[:self.cursor + 1], start=1):
                if not entry.is_pass:
                    annotations[entry.coordinate] = Annotation(str(number), AnnotationShape.TEXT)
        return annotations

    def _last_move(self) -> Optional[Coordinate]:
        if self.numbered or self.cursor < 0:
            return None
        return self.history[self.cursor].coordinate

    def controls(self) -> Dict[str, bool]:
        return {
            "undo": self.cursor >= 0,
            "redo": self.cursor < len(self.history) - 1,
            "pass": True,
            "reset": True,
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
            move_number=self.move_number,
            controls=self.controls(),
            turn=self.turn,
        )
