"""
Problem diagrams: the reader plays one side, the diagram answers.

Solutions and refutation sequences are declared as mark paths. Each reader
move is looked up in the sequence tree; when the matched node has
continuations, one of them (chosen uniformly at random among the legal
ones) is played back after a short delay.

Example source:

    problem
    a b .
    . . .
    . . .
    ---
    size: 3
    to-play: black
    solutions: a>b
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from .base import (
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
from .captures import CaptureCount, MoveResult, play_move
from .config import DiagramSettings, get_bool, get_choice, get_list, load_diagram_config
from .errors import SequenceError
from .parser import BoardOptions, find_board_rows, parse_board, parse_size
from .scheduler import ManualScheduler, ReplyHandle, ReplyScheduler
from .sequence_tree import (
    ProblemResult,
    SequenceCursor,
    SequencePath,
    build_sequence_tree,
    check_path_legal,
    resolve_path,
)

logger = logging.getLogger(__name__)

DEFAULT_REPLY_DELAY = DiagramSettings.reply_delay


class ProblemDiagram(DiagramBase):
    """
    Interactive problem with a success / failure outcome.

    Usage:
        scheduler = ManualScheduler()
        diagram = ProblemDiagram(lines, rng=random.Random(1), scheduler=scheduler)
        diagram.play(Coordinate(0, 0))
        scheduler.run_all()          # the reply
        diagram.result               # ProblemResult.SUCCESS

    Attributes:
        sequence_tree: All declared lines merged into one tree
        result: Current outcome (success sticks until reset)
    """

    diagram_type = "problem"

    def __init__(
        self,
        lines: Sequence[str],
        rng: Optional[random.Random] = None,
        scheduler: Optional[ReplyScheduler] = None,
        reply_delay: float = DEFAULT_REPLY_DELAY,
    ):
        _, config_start = find_board_rows(lines)
        config = load_diagram_config(lines, config_start)

        parsed = parse_board(lines, BoardOptions(
            size=parse_size(config),
            require_unique_marks=True,
        ))

        self.to_play = parse_color(get_choice(config, "to-play", ("black", "white")), Color.BLACK)
        self.ignore_ko = get_bool(config, "ignore-ko")

        black, white = stone_marks(config, parsed, require_present=True)
        self.parsed = parsed.with_board(add_mark_stones(parsed, black, white))
        self.annotations = mark_annotations(parsed, shape_map(config), shaped_only=True)

        paths = self._load_paths(config)
        self.sequence_tree = build_sequence_tree(paths)
        self.cursor = SequenceCursor(self.sequence_tree)

        self.rng = rng or random.Random()
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.reply_delay = reply_delay
        self.generation = 0
        self._pending: Optional[ReplyHandle] = None

        self._restore_initial_position()

        logger.info(
            "Created problem diagram (%dx%d, %d lines, %s to play)",
            parsed.row_count, parsed.column_count, len(paths), self.to_play.display_name,
        )

    def _load_paths(self, config) -> List[SequencePath]:
        """Resolve and check every declared line, solutions first."""
        paths: List[SequencePath] = []
        for option, label, is_solution in (("solutions", "Solution", True), ("sequences", "Sequence", False)):
            for text in get_list(config, option, split_commas=False):
                path = resolve_path(text, self.parsed, is_solution, label)
                check_path_legal(path, self.parsed.board, self.to_play, label)
                paths.append(path)

        if not any(path.is_solution for path in paths):
            raise SequenceError("Problem diagram requires at least one solution")
        return paths

    def _restore_initial_position(self) -> None:
        self.board = self.parsed.board
        self.turn = self.to_play
        self.captures = CaptureCount()
        self.ko_point: Optional[Coordinate] = None
        self.played_moves: List[Tuple[Coordinate, Color]] = []
        self.cursor.reset()

    # ========================================================================
    # State
    # ========================================================================

    @property
    def result(self) -> ProblemResult:
        return self.cursor.result

    @property
    def reply_pending(self) -> bool:
        return self._pending is not None and self._pending.pending

    def _input_handlers(self):
        return {
            InputAction.CLICK: self.play,
            InputAction.RESET: self.reset,
        }

    def _apply(self, coord: Coordinate, outcome: MoveResult) -> None:
        self.played_moves.append((coord, self.turn))
        self.board = outcome.board
        self.captures = self.captures + outcome.captures
        self.ko_point = outcome.ko_point
        self.turn = self.turn.opponent

    # ========================================================================
    # Play
    # ========================================================================

    def play(self, coord: Coordinate) -> bool:
        """
        Play the reader's move at coord.

        Returns:
            True if the move was played, False if it was ignored (reply
            pending, outside the diagram, illegal or a ko retake)
        """
        if self.reply_pending:
            logger.debug("Ignoring click at %s: reply pending", tuple(coord))
            return False
        if not self.parsed.in_window(coord):
            logger.debug("Ignoring click at %s: outside the diagram", tuple(coord))
            return False

        outcome = play_move(self.board, coord, self.turn, self.ko_point, enforce_ko=not self.ignore_ko)
        if outcome is None:
            return False

        logger.debug("Reader played %s at %s", self.turn.display_name, tuple(coord))
        self._apply(coord, outcome)

        node = self.cursor.advance(coord)
        if node is None:
            logger.debug("Move at %s left the sequence tree (%s)", tuple(coord), self.result.value)
        elif node.children:
            self._schedule_reply()
        return True

    def _schedule_reply(self) -> None:
        generation = self.generation
        self._pending = self.scheduler.schedule(
            self.reply_delay, lambda: self._play_reply(generation)
        )

    def _play_reply(self, generation: int) -> None:
        if generation != self.generation:
            logger.debug("Dropping stale reply (generation %d, now %d)", generation, self.generation)
            return
        self._pending = None

        candidates = []
        for coord in sorted(self.cursor.children):
            outcome = play_move(self.board, coord, self.turn, self.ko_point, enforce_ko=not self.ignore_ko)
            if outcome is not None:
                candidates.append((coord, self.cursor.children[coord], outcome))

        if not candidates:
            logger.debug("No legal reply available; line ends")
            self.cursor.leave_tree()
            return

        coord, node, outcome = self.rng.choice(candidates)
        logger.debug("Reply %s at %s", self.turn.display_name, tuple(coord))
        self._apply(coord, outcome)
        self.cursor.enter(node)

    def reset(self) -> bool:
        """Return to the initial position and drop any scheduled reply."""
        self.generation += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._restore_initial_position()
        logger.debug("Problem reset (generation %d)", self.generation)
        return True

    # ========================================================================
    # Rendering
    # ========================================================================

    def render_state(self) -> RenderState:
        return RenderState(
            diagram_type=self.diagram_type,
            board=self.board,
            row_count=self.parsed.row_count,
            column_count=self.parsed.column_count,
            annotations=dict(self.annotations),
            last_move=self.played_moves[-1][0] if self.played_moves else None,
            captures=self.captures,
            move_number=len(self.played_moves),
            controls=self.controls(),
            result=self.result,
            turn=self.turn,
            reply_pending=self.reply_pending,
        )

    def controls(self) -> Dict[str, bool]:
        return {"reset": bool(self.played_moves) or self.reply_pending}
