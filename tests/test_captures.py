"""
Unit tests for captures.py module.

Tests:
- Capture counting as a board diff
- play_move acceptance, rejection and ko tracking
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from godiagram.board import Board, Color, Coordinate
from godiagram.captures import CaptureCount, count_captures, play_move

B = Color.BLACK
W = Color.WHITE


def ko_board() -> Board:
    """Black at (1, 2) captures the white stone at (1, 1) into a ko."""
    return Board.from_stones(4, [
        (Coordinate(0, 1), B), (Coordinate(1, 0), B), (Coordinate(2, 1), B),
        (Coordinate(0, 2), W), (Coordinate(1, 1), W), (Coordinate(1, 3), W), (Coordinate(2, 2), W),
    ])


class TestCaptureCount:
    """Tests for CaptureCount."""

    def test_addition(self):
        """Test counts add per color."""
        total = CaptureCount(1, 2) + CaptureCount(3, 4)
        assert total == CaptureCount(white_captured=4, black_captured=6)

    def test_to_dict(self):
        """Test serialization."""
        assert CaptureCount(1, 0).to_dict() == {"white_captured": 1, "black_captured": 0}


class TestCountCaptures:
    """Tests for count_captures()."""

    def test_no_change(self):
        """Test identical boards count nothing."""
        board = ko_board()
        assert count_captures(board, board) == CaptureCount()

    def test_counts_removed_stones(self):
        """Test removed stones are counted by their color."""
        before = ko_board()
        after = before.add_move(Coordinate(1, 2), B)
        assert count_captures(before, after) == CaptureCount(white_captured=1, black_captured=0)

    def test_new_stones_ignored(self):
        """Test added stones are not captures."""
        before = Board(3)
        after = before.add_move(Coordinate(0, 0), W)
        assert count_captures(before, after) == CaptureCount()


class TestPlayMove:
    """Tests for play_move()."""

    def test_accepts_legal_move(self):
        """Test a legal move returns the new board and captures."""
        result = play_move(ko_board(), Coordinate(1, 2), B)
        assert result is not None
        assert result.board.get(Coordinate(1, 2)) is B
        assert result.captures == CaptureCount(white_captured=1)
        assert result.ko_point == Coordinate(1, 1)

    def test_rejects_illegal_move(self):
        """Test an occupied point is rejected."""
        assert play_move(ko_board(), Coordinate(0, 1), W) is None

    def test_rejects_ko_point(self):
        """Test the active ko point is rejected."""
        first = play_move(ko_board(), Coordinate(1, 2), B)
        assert play_move(first.board, Coordinate(1, 1), W, ko_point=first.ko_point) is None

    def test_ignore_ko(self):
        """Test the ko point is playable when ko is not enforced."""
        first = play_move(ko_board(), Coordinate(1, 2), B, enforce_ko=False)
        assert first.ko_point is None
        retake = play_move(first.board, Coordinate(1, 1), W, ko_point=first.ko_point, enforce_ko=False)
        assert retake is not None
        assert retake.captures == CaptureCount(black_captured=1)
        assert retake.board.get(Coordinate(1, 2)) is None
