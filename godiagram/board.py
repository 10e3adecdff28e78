"""
Board model and Go rules for diagrams.

Provides:
- Color / Coordinate: the value types shared by every diagram
- GTP coordinate conversion for text input and logging
- Board: an immutable position whose legality checks, move application
  and simple-ko derivation are delegated to sgfmill
"""

from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from sgfmill import boards

# GTP column letters (I is skipped in Go)
GTP_COLUMNS = "ABCDEFGHJKLMNOPQRST"

MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = 19


# ============================================================================
# Value Types
# ============================================================================

class Color(str, Enum):
    """Stone color. Values match sgfmill's colour strings."""
    BLACK = "b"
    WHITE = "w"

    @property
    def opponent(self) -> 'Color':
        return Color.WHITE if self is Color.BLACK else Color.BLACK

    @property
    def display_name(self) -> str:
        return "black" if self is Color.BLACK else "white"


class Coordinate(NamedTuple):
    """A board point. Row 0 is the top row of the diagram."""
    row: int
    col: int


class IllegalMoveError(ValueError):
    """Raised when a move cannot be played on a board."""
    pass


# ============================================================================
# Coordinate Conversion
# ============================================================================

def gtp_to_coords(gtp_coord: str, board_size: int = 19) -> Coordinate:
    """
    Convert a GTP coordinate (e.g., "C3") to a diagram Coordinate.

    In GTP:
    - Columns are A-T (I is skipped), left to right
    - Rows are 1-N, bottom to top

    Diagram rows count from the top, so GTP row N is diagram row 0.

    Args:
        gtp_coord: GTP coordinate string (e.g., "Q16", "D4")
        board_size: Size of the board

    Returns:
        Coordinate(row, col)

    Raises:
        ValueError: If coordinate is invalid
    """
    if not gtp_coord or len(gtp_coord) < 2:
        raise ValueError(f"Invalid GTP coordinate: {gtp_coord}")

    col_letter = gtp_coord[0].upper()
    try:
        number = int(gtp_coord[1:])
    except ValueError:
        raise ValueError(f"Invalid GTP coordinate: {gtp_coord}")

    if col_letter not in GTP_COLUMNS:
        raise ValueError(f"Invalid column letter: {col_letter}")

    col = GTP_COLUMNS.index(col_letter)
    row = board_size - number

    if not (0 <= row < board_size and 0 <= col < board_size):
        raise ValueError(f"Coordinate {gtp_coord} out of bounds for {board_size}x{board_size}")

    return Coordinate(row, col)


def coords_to_gtp(coord: Coordinate, board_size: int = 19) -> str:
    """
    Convert a diagram Coordinate to a GTP string.

    Args:
        coord: Diagram coordinate
        board_size: Size of the board

    Returns:
        GTP coordinate string (e.g., "C3")
    """
    return f"{GTP_COLUMNS[coord.col]}{board_size - coord.row}"


# ============================================================================
# Board
# ============================================================================

class Board:
    """
    Immutable Go position over an N x N point space.

    Every operation that changes the position returns a new Board; the
    wrapped sgfmill board is never touched after construction.

    Usage:
        board = Board(9)
        board = board.add_move(Coordinate(2, 2), Color.BLACK)
        board.get(Coordinate(2, 2))  # Color.BLACK
    """

    __slots__ = ("_size", "_grid")

    def __init__(self, size: int = 19):
        if not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
            raise ValueError(
                f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {size}"
            )
        self._size = size
        self._grid = boards.Board(size)

    @classmethod
    def _wrap(cls, size: int, grid: boards.Board) -> 'Board':
        board = cls.__new__(cls)
        board._size = size
        board._grid = grid
        return board

    @classmethod
    def from_stones(
        cls,
        size: int,
        stones: Iterable[Tuple[Coordinate, Color]],
        ignore_rules: bool = False,
    ) -> 'Board':
        """
        Build a position from a set of stones.

        Args:
            size: Board size
            stones: (coordinate, color) pairs
            ignore_rules: Force-place stones even if a group has no liberties

        Returns:
            New Board

        Raises:
            IllegalMoveError: If a point is given twice, or (unless
                ignore_rules) the position contains a group without liberties
        """
        return cls(size).place_stones(stones, ignore_rules=ignore_rules)

    @property
    def size(self) -> int:
        return self._size

    def in_bounds(self, coord: Coordinate) -> bool:
        return 0 <= coord.row < self._size and 0 <= coord.col < self._size

    def get(self, coord: Coordinate) -> Optional[Color]:
        """Return the stone at coord, or None for an empty point."""
        value = self._grid.get(coord.row, coord.col)
        return Color(value) if value is not None else None

    def stones(self) -> Dict[Coordinate, Color]:
        """Return all stones as {coordinate: color}."""
        return {
            Coordinate(row, col): Color(colour)
            for colour, (row, col) in self._grid.list_occupied_points()
        }

    def is_empty(self) -> bool:
        return not self._grid.list_occupied_points()

    # ------------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------------

    def _play(self, coord: Coordinate, color: Color) -> Tuple[boards.Board, Optional[Coordinate]]:
        if not self.in_bounds(coord):
            raise IllegalMoveError(f"Point {tuple(coord)} is outside the {self._size}x{self._size} board")
        if self._grid.get(coord.row, coord.col) is not None:
            raise IllegalMoveError(f"Point {tuple(coord)} is already occupied")

        grid = self._grid.copy()
        ko_point = grid.play(coord.row, coord.col, color.value)

        # sgfmill allows self-capture; the rules here do not
        if grid.get(coord.row, coord.col) is None:
            raise IllegalMoveError(f"Move at {tuple(coord)} would be suicide")

        return grid, Coordinate(*ko_point) if ko_point is not None else None

    def is_legal_move(self, coord: Coordinate, color: Color) -> bool:
        """Check whether color may play at coord (ignoring ko)."""
        try:
            self._play(coord, color)
        except IllegalMoveError:
            return False
        return True

    def add_move(self, coord: Coordinate, color: Color) -> 'Board':
        """
        Play a move, performing captures.

        Raises:
            IllegalMoveError: If the point is off the board, occupied, or
                the move is suicide
        """
        grid, _ = self._play(coord, color)
        return Board._wrap(self._size, grid)

    def play(self, coord: Coordinate, color: Color) -> Tuple['Board', Optional[Coordinate]]:
        """
        Play a move and derive the follow-up ko point.

        Returns:
            (new board, point the opponent may not immediately retake or None)
        """
        grid, ko_point = self._play(coord, color)
        return Board._wrap(self._size, grid), ko_point

    def followup_ko(self, coord: Coordinate, color: Color) -> Optional[Coordinate]:
        """Return the ko point created by playing coord on this board."""
        return self._play(coord, color)[1]

    def place_stones(
        self,
        stones: Iterable[Tuple[Coordinate, Color]],
        ignore_rules: bool = False,
    ) -> 'Board':
        """
        Add setup stones without playing them as moves (no captures).

        Raises:
            IllegalMoveError: If a point is off the board or occupied, or
                (unless ignore_rules) the result has a group without liberties
        """
        black: List[Tuple[int, int]] = []
        white: List[Tuple[int, int]] = []
        seen = set()
        for coord, color in stones:
            if not self.in_bounds(coord):
                raise IllegalMoveError(f"Point {tuple(coord)} is outside the {self._size}x{self._size} board")
            if coord in seen or self._grid.get(coord.row, coord.col) is not None:
                raise IllegalMoveError(f"Point {tuple(coord)} is already occupied")
            seen.add(coord)
            (black if color is Color.BLACK else white).append((coord.row, coord.col))

        grid = self._grid.copy()
        if ignore_rules:
            # apply_setup would drop groups without liberties, including ones
            # already on the board; write the points as drawn instead
            for colour, points in (("b", black), ("w", white)):
                for row, col in points:
                    grid.board[row][col] = colour
            if black or white:
                grid._is_empty = False
        elif not grid.apply_setup(black, white, []):
            raise IllegalMoveError("Position contains a group with no liberties")
        return Board._wrap(self._size, grid)

    # ------------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------------

    def to_rows(self, row_count: Optional[int] = None, column_count: Optional[int] = None) -> List[str]:
        """
        Render the top-left row_count x column_count window as text rows.

        Returns:
            Rows like "X . O" using X for black, O for white, . for empty
        """
        row_count = self._size if row_count is None else row_count
        column_count = self._size if column_count is None else column_count
        symbols = {Color.BLACK: "X", Color.WHITE: "O", None: "."}
        return [
            " ".join(symbols[self.get(Coordinate(row, col))] for col in range(column_count))
            for row in range(row_count)
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._size == other._size and self.stones() == other.stones()

    def __hash__(self) -> int:
        return hash((self._size, frozenset(self.stones().items())))

    def __repr__(self) -> str:
        stones = self.stones()
        black = sum(1 for c in stones.values() if c is Color.BLACK)
        return f"Board(size={self._size}, black={black}, white={len(stones) - black})"
