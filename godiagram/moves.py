"""
Move-sequence builder for replay diagrams.

Moves come from numbered marks on the board ("1", "2", ...) and from an
optional reference table for moves played on a point that is no longer
free in the diagram (a recapture, a stone played after a capture):

    moves:
      5: 3      # move 5 is played where move 3 was
      8: a      # move 8 is played on the point marked 'a'

The combined numbering must be exactly 1..N.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Set

from .board import Board, Color, Coordinate
from .errors import MarkError, ReplayError
from .parser import ParsedBoard

_NUMBER_PATTERN = re.compile(r"^-?\d+$")


@dataclass(frozen=True)
class ParsedMove:
    """A replay move; color is determined by move number parity."""
    move_number: int
    coordinate: Coordinate
    color: Color


def parse_move_number(mark: str) -> Optional[int]:
    """Return the integer a mark spells exactly (e.g. '12'), else None."""
    if not _NUMBER_PATTERN.match(mark):
        return None
    number = int(mark)
    if str(number) != mark:
        return None
    return number


def collect_numbered_marks(parsed: ParsedBoard) -> Dict[int, Coordinate]:
    """
    Collect numeric board marks.

    Raises:
        ReplayError: Non-positive numbers or a number at several points
    """
    numbered: Dict[int, Coordinate] = {}
    for mark, coordinates in parsed.other_marks.items():
        number = parse_move_number(mark)
        if number is None:
            continue
        if number <= 0:
            raise ReplayError(f"Move numbers must be positive (found {number})")
        if len(coordinates) > 1:
            raise ReplayError(f"Move number {number} appears at multiple positions")
        numbered[number] = coordinates[0]
    return numbered


def parse_reference_table(references: Mapping[str, str]) -> Dict[int, str]:
    """
    Convert the 'moves' option keys to move numbers.

    Raises:
        ReplayError: If a key is not a positive integer
    """
    table: Dict[int, str] = {}
    for key, value in references.items():
        number = parse_move_number(key.strip())
        if number is None or number <= 0:
            raise ReplayError(f"Move reference key '{key}' must be a positive move number")
        table[number] = value.strip()
    return table


def _resolve_reference(
    number: int,
    numbered: Mapping[int, Coordinate],
    table: Mapping[int, str],
    parsed: ParsedBoard,
) -> Coordinate:
    visited: Set[int] = {number}
    current = number
    while True:
        target_text = table[current]
        target = parse_move_number(target_text)

        if target is None:
            try:
                return parsed.mark_coordinate(target_text)
            except MarkError as e:
                raise MarkError(f"Move {current} references mark '{target_text}': {e}")

        if target in visited:
            chain = " -> ".join(str(n) for n in sorted(visited, reverse=True))
            raise ReplayError(f"Circular move reference: {chain} -> {target}")
        if target >= current:
            raise ReplayError(
                f"Move {current} cannot reference move {target} (references must point to an earlier move)"
            )
        if target in numbered:
            return numbered[target]
        if target not in table:
            raise ReplayError(f"Move {current} references move {target}, which does not exist")

        visited.add(target)
        current = target


def build_move_sequence(
    parsed: ParsedBoard,
    start_color: Color = Color.BLACK,
    references: Optional[Mapping[str, str]] = None,
) -> List[ParsedMove]:
    """
    Build the ordered, color-alternating move list of a replay diagram.

    Args:
        parsed: Parsed board with numbered marks
        start_color: Color of move 1
        references: Optional 'moves' table (move number -> move number or mark)

    Returns:
        Moves 1..N in order

    Raises:
        ReplayError: Bad numbering, duplicates, circular or forward references
        MarkError: A reference to a missing or ambiguous mark
    """
    numbered = collect_numbered_marks(parsed)
    table = parse_reference_table(references or {})

    duplicated = sorted(set(numbered) & set(table))
    if duplicated:
        raise ReplayError(
            f"Move number {duplicated[0]} is defined both on the board and in the moves table"
        )

    numbers = sorted(set(numbered) | set(table))
    if not numbers:
        raise ReplayError("Replay diagram must have at least one numbered move")

    for expected, actual in enumerate(numbers, start=1):
        if actual != expected:
            raise ReplayError(
                f"Move numbers must be consecutive starting from 1 (expected {expected}, found {actual})"
            )

    moves: List[ParsedMove] = []
    for number in numbers:
        if number in numbered:
            coordinate = numbered[number]
        else:
            coordinate = _resolve_reference(number, numbered, table, parsed)
        color = start_color if number % 2 == 1 else start_color.opponent
        moves.append(ParsedMove(move_number=number, coordinate=coordinate, color=color))

    return moves


def check_sequence_legal(moves: List[ParsedMove], board: Board) -> None:
    """
    Replay the whole sequence once so navigation can never fail.

    Raises:
        ReplayError: On the first illegal move
    """
    for move in moves:
        if not board.is_legal_move(move.coordinate, move.color):
            raise ReplayError(
                f"Move {move.move_number} ({move.color.display_name} at row {move.coordinate.row + 1}, "
                f"col {move.coordinate.col + 1}) is illegal"
            )
        board = board.add_move(move.coordinate, move.color)
