"""
Unit tests for parser.py module.

Tests:
- Board row detection (blank line, '---', option line)
- Token classification, marks and area prefixes
- Size handling and conflicts
- Strict character validation and unique marks
"""

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from godiagram.board import Color, Coordinate
from godiagram.errors import ConfigError, MalformedBoardError, MarkError, SizeConflictError
from godiagram.parser import (
    BoardOptions,
    diagram_type,
    find_board_rows,
    parse_board,
    parse_size,
    split_source,
)


def lines_of(text: str):
    return split_source(text)


class TestSourceSplitting:
    """Tests for locating the board rows."""

    def test_diagram_type(self):
        """Test the type keyword is read from the first line."""
        assert diagram_type(lines_of("\n  Static\nX .\n. O\n")) == "static"

    def test_empty_source(self):
        """Test an empty source is malformed."""
        with pytest.raises(MalformedBoardError):
            diagram_type([])

    def test_rows_stop_at_separator(self):
        """Test rows end at '---'."""
        rows, end = find_board_rows(lines_of("static\nX .\n. O\n---\nsize: 2"))
        assert rows == ["X .", ". O"]
        assert end == 3

    def test_rows_stop_at_option_line(self):
        """Test rows end at a 'key: value' line."""
        rows, end = find_board_rows(lines_of("static\n\nX .\n. O\nsize: 2"))
        assert rows == ["X .", ". O"]
        assert end == 4

    def test_options_only(self):
        """Test a source with options but no rows yields no rows."""
        rows, _ = find_board_rows(lines_of("freeplay\nsize: 9"))
        assert rows == []

    def test_nothing_after_type(self):
        """Test a bare type keyword is malformed."""
        with pytest.raises(MalformedBoardError):
            find_board_rows(["static", "", ""])


class TestParseBoard:
    """Tests for parse_board()."""

    def test_stones_and_marks(self):
        """Test every token is classified once."""
        parsed = parse_board(lines_of("static\nX . a\n+ O b\nx o a"))
        assert parsed.row_count == 3
        assert parsed.column_count == 3
        assert parsed.board.size == 3
        stones = parsed.board.stones()
        assert stones == {
            Coordinate(0, 0): Color.BLACK,
            Coordinate(1, 1): Color.WHITE,
            Coordinate(2, 0): Color.BLACK,
            Coordinate(2, 1): Color.WHITE,
        }
        assert parsed.other_marks["a"] == (Coordinate(0, 2), Coordinate(2, 2))
        assert parsed.other_marks["b"] == (Coordinate(1, 2),)

    def test_token_count_matches_window(self):
        """Test stones, empties and marks add up to the window."""
        parsed = parse_board(lines_of("static\nX . a b\n. O . c\n---\nsize: 5"), BoardOptions(size=5))
        assert (parsed.row_count, parsed.column_count) == (2, 4)
        marks = sum(len(coords) for coords in parsed.other_marks.values())
        stones = len(parsed.board.stones())
        empties = 3
        assert marks + stones + empties == parsed.row_count * parsed.column_count
        for coords in parsed.other_marks.values():
            assert all(parsed.in_window(c) for c in coords)

    def test_ragged_rows(self):
        """Test rows of different lengths are malformed."""
        with pytest.raises(MalformedBoardError):
            parse_board(lines_of("static\nX . .\n. O"))

    def test_rectangle_requires_size(self):
        """Test a non-square board needs a size."""
        with pytest.raises(SizeConflictError):
            parse_board(lines_of("static\nX . .\n. O ."))

    def test_rectangle_with_size(self):
        """Test a window smaller than the board."""
        parsed = parse_board(lines_of("static\nX . .\n. O ."), BoardOptions(size=9))
        assert parsed.board.size == 9
        assert (parsed.row_count, parsed.column_count) == (2, 3)
        assert parsed.in_window(Coordinate(1, 2))
        assert not parsed.in_window(Coordinate(2, 0))

    def test_window_exceeds_size(self):
        """Test a window larger than size conflicts."""
        with pytest.raises(SizeConflictError):
            parse_board(lines_of("static\n. . .\n. . .\n. . ."), BoardOptions(size=2))

    def test_single_point_board(self):
        """Test a 1x1 board is below the minimum size."""
        with pytest.raises(SizeConflictError):
            parse_board(lines_of("static\n."))

    def test_empty_board_not_allowed(self):
        """Test empty boards need allow_empty."""
        with pytest.raises(MalformedBoardError):
            parse_board(lines_of("static\nsize: 9"), BoardOptions(size=9))

    def test_empty_board_requires_size(self):
        """Test an allowed empty board still needs a size."""
        with pytest.raises(SizeConflictError):
            parse_board(lines_of("freeplay\nfoo: bar"), BoardOptions(allow_empty=True))

    def test_empty_board_allowed(self):
        """Test an empty board with size."""
        parsed = parse_board(lines_of("freeplay\nsize: 9"), BoardOptions(size=9, allow_empty=True))
        assert parsed.board.is_empty()
        assert (parsed.row_count, parsed.column_count) == (9, 9)

    def test_strict_characters(self):
        """Test unknown tokens are rejected in strict mode."""
        with pytest.raises(MalformedBoardError, match="'a'"):
            parse_board(lines_of("static\nX a\n. ."), BoardOptions(validate_characters=True))

    def test_unique_marks(self):
        """Test duplicate marks are rejected when required."""
        with pytest.raises(MarkError):
            parse_board(lines_of("problem\na a\n. ."), BoardOptions(require_unique_marks=True))

    def test_illegal_position(self):
        """Test a dead group is malformed unless rules are ignored."""
        source = lines_of("static\nX O\nO .")
        with pytest.raises(MalformedBoardError):
            parse_board(source)
        parsed = parse_board(source, BoardOptions(ignore_rules=True))
        assert parsed.board.get(Coordinate(0, 0)) is Color.BLACK

    def test_area_prefixes(self):
        """Test known prefixes are stripped and recorded."""
        parsed = parse_board(
            lines_of("static\nrX b.\nra ."),
            BoardOptions(valid_prefixes=frozenset({"r", "b"})),
        )
        assert parsed.board.get(Coordinate(0, 0)) is Color.BLACK
        assert parsed.area_prefixes[Coordinate(0, 0)] == "r"
        assert parsed.area_prefixes[Coordinate(0, 1)] == "b"
        assert parsed.area_prefixes[Coordinate(1, 0)] == "r"
        assert parsed.other_marks["a"] == (Coordinate(1, 0),)
        assert Coordinate(1, 1) not in parsed.area_prefixes

    def test_prefix_needs_declaration(self):
        """Test undeclared prefixes stay part of the mark."""
        parsed = parse_board(lines_of("static\nrX .\n. ."))
        assert parsed.other_marks["rX"] == (Coordinate(0, 0),)

    def test_mark_coordinate(self):
        """Test resolving a mark to its single point."""
        parsed = parse_board(lines_of("static\na b\nb ."))
        assert parsed.mark_coordinate("a") == Coordinate(0, 0)
        with pytest.raises(MarkError):
            parsed.mark_coordinate("b")
        with pytest.raises(MarkError):
            parsed.mark_coordinate("z")


class TestParseSize:
    """Tests for the size option."""

    def test_missing(self):
        """Test no size option gives None."""
        assert parse_size({}) is None

    def test_valid(self):
        """Test a valid size."""
        assert parse_size({"size": "13"}) == 13

    def test_not_integer(self):
        """Test a non-integer size is a config error."""
        with pytest.raises(ConfigError):
            parse_size({"size": "big"})

    def test_out_of_range(self):
        """Test sizes outside 2-19 conflict."""
        with pytest.raises(SizeConflictError):
            parse_size({"size": "1"})
        with pytest.raises(SizeConflictError):
            parse_size({"size": "20"})
