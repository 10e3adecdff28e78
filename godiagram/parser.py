"""
Grid tokenizer and board validator.

Turns diagram source text into a ParsedBoard: the initial position, the
window dimensions, the free-form marks and any area prefixes.

Source layout:
    <type keyword>
    <blank lines>
    <board rows, whitespace-separated tokens>
    [---]
    [key: value option block]
"""

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from .board import MAX_BOARD_SIZE, MIN_BOARD_SIZE, Board, Color, Coordinate, IllegalMoveError
from .config import CONFIG_SEPARATOR, DiagramConfig, get_int
from .errors import MalformedBoardError, MarkError, SizeConflictError

logger = logging.getLogger(__name__)

EMPTY_TOKENS = frozenset({".", "+"})
BLACK_TOKENS = frozenset({"X", "x"})
WHITE_TOKENS = frozenset({"O", "o"})


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class BoardOptions:
    """How strictly a diagram wants its board parsed."""
    size: Optional[int] = None
    allow_empty: bool = False
    validate_characters: bool = False
    valid_prefixes: FrozenSet[str] = frozenset()
    require_unique_marks: bool = False
    ignore_rules: bool = False


@dataclass(frozen=True)
class ParsedBoard:
    """
    Parsed board with metadata.

    Attributes:
        board: Initial position
        row_count: Rows in the diagram window
        column_count: Columns in the diagram window
        other_marks: mark text -> coordinates, in row-major order
        area_prefixes: coordinate -> area prefix letter
        config_start_index: First source line after the board rows
    """
    board: Board
    row_count: int
    column_count: int
    other_marks: Mapping[str, Tuple[Coordinate, ...]]
    area_prefixes: Mapping[Coordinate, str]
    config_start_index: int

    def with_board(self, board: Board) -> 'ParsedBoard':
        return replace(self, board=board)

    def in_window(self, coord: Coordinate) -> bool:
        return 0 <= coord.row < self.row_count and 0 <= coord.col < self.column_count

    def mark_coordinate(self, mark: str) -> Coordinate:
        """
        Resolve a mark that must label exactly one point.

        Raises:
            MarkError: If the mark is missing or appears more than once
        """
        coordinates = self.other_marks.get(mark)
        if not coordinates:
            raise MarkError(f"Mark '{mark}' does not appear in the board")
        if len(coordinates) > 1:
            raise MarkError(f"Mark '{mark}' appears at multiple coordinates")
        return coordinates[0]


# ============================================================================
# Source Splitting
# ============================================================================

def split_source(text: str) -> List[str]:
    """Split diagram source text into lines, dropping leading blank lines."""
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    return lines


def diagram_type(lines: Sequence[str]) -> str:
    """Return the lower-cased type keyword on the first line."""
    if not lines or not lines[0].strip():
        raise MalformedBoardError("Diagram source is empty")
    return lines[0].strip().lower()


def looks_like_option(line: str) -> bool:
    """Whether a line reads as 'key: value' rather than a board row."""
    stripped = line.strip()
    return stripped.find(":") > 0


def find_board_rows(lines: Sequence[str]) -> Tuple[List[str], int]:
    """
    Collect the board rows that follow the type line.

    Returns:
        (rows, index of the first line after the rows)

    Raises:
        MalformedBoardError: If nothing follows the type line
    """
    start = 1
    while start < len(lines) and not lines[start].strip():
        start += 1

    if start >= len(lines):
        raise MalformedBoardError("No board definition or options found")

    rows: List[str] = []
    end = start
    for i in range(start, len(lines)):
        line = lines[i]
        stripped = line.strip()
        if not stripped or stripped == CONFIG_SEPARATOR or looks_like_option(line):
            end = i
            break
        rows.append(line)
        end = i + 1

    return rows, end


def parse_size(config: DiagramConfig) -> Optional[int]:
    """
    Read and check the 'size' option.

    Raises:
        ConfigError: If the value is not an integer
        SizeConflictError: If the value is outside 2-19
    """
    size = get_int(config, "size")
    if size is not None and not (MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE):
        raise SizeConflictError(
            f"Size must be an integer greater than 1 and at most {MAX_BOARD_SIZE} (got {size})"
        )
    return size


# ============================================================================
# Board Parsing
# ============================================================================

def _classify(token: str) -> Optional[Color]:
    """Return the stone color of a token, None for empty; raise KeyError for marks."""
    if token in EMPTY_TOKENS:
        return None
    if token in BLACK_TOKENS:
        return Color.BLACK
    if token in WHITE_TOKENS:
        return Color.WHITE
    raise KeyError(token)


def parse_board(lines: Sequence[str], options: Optional[BoardOptions] = None) -> ParsedBoard:
    """
    Parse the board section of a diagram source.

    Args:
        lines: Diagram source lines (line 0 is the type keyword)
        options: Parsing options (size, strictness, prefixes, ...)

    Returns:
        ParsedBoard

    Raises:
        MalformedBoardError: Ragged rows, unknown tokens in strict mode,
            missing board, or an illegal position
        SizeConflictError: Dimensions that disagree with the size option
        MarkError: Duplicate marks when uniqueness is required
    """
    options = options or BoardOptions()
    rows, config_start = find_board_rows(lines)
    size = options.size

    if not rows:
        if not options.allow_empty:
            raise MalformedBoardError("Board definition is required")
        if size is None:
            raise SizeConflictError('Empty board requires a "size" option')
        return ParsedBoard(
            board=Board(size),
            row_count=size,
            column_count=size,
            other_marks=MappingProxyType({}),
            area_prefixes=MappingProxyType({}),
            config_start_index=config_start,
        )

    token_rows = [row.split() for row in rows]
    column_count = len(token_rows[0])
    for index, tokens in enumerate(token_rows):
        if len(tokens) != column_count:
            raise MalformedBoardError(
                f"All board rows must have the same number of points "
                f"(row 1 has {column_count}, row {index + 1} has {len(tokens)})"
            )
    row_count = len(token_rows)

    if size is not None and (row_count > size or column_count > size):
        raise SizeConflictError(
            f"Board dimensions ({row_count}x{column_count}) exceed specified size ({size})"
        )
    if size is None and row_count != column_count:
        raise SizeConflictError(
            f'Rectangle boards require a "size" option (found {row_count}x{column_count} board)'
        )
    if size is None:
        size = row_count
    if size < MIN_BOARD_SIZE or size > MAX_BOARD_SIZE:
        raise SizeConflictError(
            f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE} (found {size})"
        )

    stones: List[Tuple[Coordinate, Color]] = []
    marks: Dict[str, List[Coordinate]] = {}
    prefixes: Dict[Coordinate, str] = {}

    for row, tokens in enumerate(token_rows):
        for col, token in enumerate(tokens):
            coord = Coordinate(row, col)

            if len(token) > 1 and token[0] in options.valid_prefixes:
                prefixes[coord] = token[0]
                token = token[1:]

            try:
                color = _classify(token)
            except KeyError:
                if options.validate_characters:
                    raise MalformedBoardError(
                        f"Invalid board character '{token}' at row {row + 1}, col {col + 1}. "
                        f"Valid characters: . or + (empty), X or x (black stone), O or o (white stone)"
                    )
                marks.setdefault(token, []).append(coord)
                continue

            if color is not None:
                stones.append((coord, color))

    if options.require_unique_marks:
        for mark, coordinates in marks.items():
            if len(coordinates) > 1:
                raise MarkError(f"Mark '{mark}' appears at multiple coordinates. Each mark must be unique.")

    try:
        board = Board.from_stones(size, stones, ignore_rules=options.ignore_rules)
    except IllegalMoveError as e:
        raise MalformedBoardError(f"Illegal board position: {e}")

    logger.debug(
        "Parsed %dx%d board (size %d): %d stones, %d marks",
        row_count, column_count, size, len(stones), len(marks),
    )

    return ParsedBoard(
        board=board,
        row_count=row_count,
        column_count=column_count,
        other_marks=MappingProxyType({mark: tuple(coords) for mark, coords in marks.items()}),
        area_prefixes=MappingProxyType(prefixes),
        config_start_index=config_start,
    )
