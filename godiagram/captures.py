"""
Capture and ko bookkeeping shared by the interactive diagrams.

count_captures() is a pure diff between two positions; play_move() wraps
the rules collaborator so every diagram applies moves, counts prisoners
and tracks the ko point the same way.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .board import Board, Color, Coordinate, IllegalMoveError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureCount:
    """Stones removed from the board, by color of the removed stones."""
    white_captured: int = 0
    black_captured: int = 0

    def __add__(self, other: 'CaptureCount') -> 'CaptureCount':
        return CaptureCount(
            white_captured=self.white_captured + other.white_captured,
            black_captured=self.black_captured + other.black_captured,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "white_captured": self.white_captured,
            "black_captured": self.black_captured,
        }


@dataclass(frozen=True)
class MoveResult:
    """Outcome of an accepted move."""
    board: Board
    captures: CaptureCount
    ko_point: Optional[Coordinate]


def count_captures(before: Board, after: Board) -> CaptureCount:
    """
    Count stones present in `before` and gone in `after`.

    Args:
        before: Position before the move
        after: Position after the move

    Returns:
        CaptureCount for the difference
    """
    white = 0
    black = 0
    for coord, color in before.stones().items():
        if after.get(coord) is None:
            if color is Color.WHITE:
                white += 1
            else:
                black += 1
    return CaptureCount(white_captured=white, black_captured=black)


def play_move(
    board: Board,
    coord: Coordinate,
    color: Color,
    ko_point: Optional[Coordinate] = None,
    enforce_ko: bool = True,
) -> Optional[MoveResult]:
    """
    Apply a move if it is allowed.

    Args:
        board: Current position
        coord: Point to play
        color: Color to play
        ko_point: Currently forbidden point, if any
        enforce_ko: Whether the ko point is forbidden

    Returns:
        MoveResult, or None when the move is rejected (ko or illegal)
    """
    if enforce_ko and ko_point is not None and coord == ko_point:
        logger.debug("Rejected %s at %s: ko", color.display_name, tuple(coord))
        return None

    try:
        after, next_ko = board.play(coord, color)
    except IllegalMoveError as e:
        logger.debug("Rejected %s at %s: %s", color.display_name, tuple(coord), e)
        return None

    return MoveResult(
        board=after,
        captures=count_captures(board, after),
        ko_point=next_ko if enforce_ko else None,
    )
