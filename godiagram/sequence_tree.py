"""
Sequence tree engine for problem diagrams.

Solutions and refutations are declared as paths of marks joined by '>',
alternating player and opponent moves from the start position:

    solutions: [a>b>c, a>c>b]
    sequences: b>a

A wildcard ('.' or a quoted '*') at a player position stands for any move
the player makes there. The paths are folded into one persistent tree of
SequenceNodes; nodes are frozen and merges always build new nodes, so a
tree position handed out earlier never changes.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .board import Board, Color, Coordinate
from .errors import MarkError, SequenceError
from .parser import ParsedBoard

logger = logging.getLogger(__name__)

PATH_SEPARATOR = ">"
WILDCARD_TOKENS = frozenset({".", "*"})

# Key used to push a lone wildcard node through the map merge
_WILDCARD_KEY = Coordinate(-1, -1)


class ProblemResult(str, Enum):
    """Result state for problem diagrams."""
    SUCCESS = "success"
    FAILURE = "failure"
    INCOMPLETE = "incomplete"


_NO_CHILDREN: Mapping[Coordinate, 'SequenceNode'] = MappingProxyType({})


# ============================================================================
# Tree Types
# ============================================================================

@dataclass(frozen=True, eq=False)
class SequenceNode:
    """
    A position reached by a declared move.

    Attributes:
        result: Outcome when play stops here (only leaves are final)
        children: Declared continuations, keyed by coordinate
        wildcard_child: Continuation for any undeclared player move
    """
    result: ProblemResult
    children: Mapping[Coordinate, 'SequenceNode'] = field(default_factory=lambda: _NO_CHILDREN)
    wildcard_child: Optional['SequenceNode'] = None

    @property
    def has_continuation(self) -> bool:
        return bool(self.children) or self.wildcard_child is not None


@dataclass(frozen=True)
class SequencePath:
    """A declared path after mark resolution. A None step is a wildcard."""
    text: str
    marks: List[str]
    steps: List[Optional[Coordinate]]
    is_solution: bool


@dataclass(frozen=True, eq=False)
class SequenceTree:
    """
    Root of the sequence tree.

    Attributes:
        roots: First player moves, keyed by coordinate
        root_wildcard: Continuation for any first player move not in roots
    """
    roots: Mapping[Coordinate, SequenceNode] = field(default_factory=lambda: _NO_CHILDREN)
    root_wildcard: Optional[SequenceNode] = None

    def is_empty(self) -> bool:
        return not self.roots and self.root_wildcard is None

    def add_path(self, path: SequencePath) -> 'SequenceTree':
        """Return a new tree with path merged in."""
        leaf_result = ProblemResult.SUCCESS if path.is_solution else ProblemResult.FAILURE
        node = build_path_node(path.steps, 0, leaf_result)

        if path.steps[0] is None:
            # Root-level wildcard: a fallback beside every root move
            return replace(self, root_wildcard=merge_nodes(self.root_wildcard, node))

        return replace(self, roots=merge_trees(self.roots, {path.steps[0]: node}))


# ============================================================================
# Path Parsing and Validation
# ============================================================================

def split_path(path: str) -> List[str]:
    """Split 'a>b>c' into ['a', 'b', 'c'], ignoring blanks."""
    return [mark.strip() for mark in path.split(PATH_SEPARATOR) if mark.strip()]


def resolve_path(path: str, parsed: ParsedBoard, is_solution: bool, label: str = "Solution") -> SequencePath:
    """
    Resolve a path's marks to coordinates and check wildcard placement.

    Args:
        path: Raw path text
        parsed: Parsed board providing the marks
        is_solution: Whether the path ends in success
        label: 'Solution' or 'Sequence', used in messages

    Returns:
        SequencePath

    Raises:
        SequenceError: Empty path, or a misplaced or repeated wildcard
        MarkError: A mark missing from the board or not unique
    """
    marks = split_path(path)
    if not marks:
        raise SequenceError(f"{label} '{path}' is empty")

    steps: List[Optional[Coordinate]] = []
    for i, mark in enumerate(marks):
        if mark in WILDCARD_TOKENS:
            if i > 0 and marks[i - 1] in WILDCARD_TOKENS:
                raise SequenceError(
                    f"{label} '{path}': consecutive wildcards at positions {i} and {i + 1}"
                )
            if i % 2 == 1:
                raise SequenceError(
                    f"{label} '{path}': wildcard '{mark}' can only be used for player moves, "
                    f"not computer responses (position {i + 1})"
                )
            steps.append(None)
            continue

        try:
            steps.append(parsed.mark_coordinate(mark))
        except MarkError as e:
            raise MarkError(f"{label} '{path}': {e}")

    return SequencePath(text=path, marks=marks, steps=steps, is_solution=is_solution)


def check_path_legal(path: SequencePath, board: Board, to_play: Color, label: str = "Solution") -> None:
    """
    Replay a path from the initial position, skipping wildcards.

    Raises:
        SequenceError: On the first illegal move, naming the path and index
    """
    color = to_play
    for i, step in enumerate(path.steps):
        if step is not None:
            if not board.is_legal_move(step, color):
                raise SequenceError(f"{label} '{path.text}': move {i + 1} ({path.marks[i]}) is illegal")
            board = board.add_move(step, color)
        color = color.opponent


# ============================================================================
# Building and Merging
# ============================================================================

def build_path_node(
    steps: List[Optional[Coordinate]],
    index: int,
    leaf_result: ProblemResult,
) -> SequenceNode:
    """
    Build the node reached by playing steps[index], with its continuation.

    A following wildcard becomes the node's wildcard_child; a following
    coordinate becomes its only child. The last step carries leaf_result.
    """
    if index == len(steps) - 1:
        return SequenceNode(result=leaf_result)

    continuation = build_path_node(steps, index + 1, leaf_result)
    next_step = steps[index + 1]
    if next_step is None:
        return SequenceNode(result=ProblemResult.INCOMPLETE, wildcard_child=continuation)
    return SequenceNode(
        result=ProblemResult.INCOMPLETE,
        children=MappingProxyType({next_step: continuation}),
    )


def merge_trees(
    tree1: Mapping[Coordinate, SequenceNode],
    tree2: Mapping[Coordinate, SequenceNode],
) -> Mapping[Coordinate, SequenceNode]:
    """
    Merge two coordinate -> node maps into a new map.

    Shared coordinates merge recursively. A merged node with any children
    or wildcard child is incomplete; otherwise it keeps tree1's result, so a
    later path never overwrites an earlier leaf.
    """
    merged: Dict[Coordinate, SequenceNode] = dict(tree1)
    for coord, node2 in tree2.items():
        node1 = merged.get(coord)
        if node1 is None:
            merged[coord] = node2
            continue

        children = merge_trees(node1.children, node2.children)

        if node1.wildcard_child is not None and node2.wildcard_child is not None:
            wildcard_child = merge_trees(
                {_WILDCARD_KEY: node1.wildcard_child},
                {_WILDCARD_KEY: node2.wildcard_child},
            )[_WILDCARD_KEY]
        else:
            wildcard_child = node1.wildcard_child or node2.wildcard_child

        has_continuation = bool(children) or wildcard_child is not None
        merged[coord] = SequenceNode(
            result=ProblemResult.INCOMPLETE if has_continuation else node1.result,
            children=children,
            wildcard_child=wildcard_child,
        )
    return MappingProxyType(merged)


def merge_nodes(node1: Optional[SequenceNode], node2: SequenceNode) -> SequenceNode:
    """Merge two standalone nodes (either may be absent) via merge_trees."""
    if node1 is None:
        return node2
    return merge_trees({_WILDCARD_KEY: node1}, {_WILDCARD_KEY: node2})[_WILDCARD_KEY]


def build_sequence_tree(paths: Iterable[SequencePath]) -> SequenceTree:
    """Fold paths, in declaration order, into one tree."""
    tree = SequenceTree()
    for path in paths:
        tree = tree.add_path(path)
    return tree


# ============================================================================
# Traversal
# ============================================================================

class SequenceCursor:
    """
    Position of live play within a SequenceTree.

    Holds the legal continuations (children), the wildcard fallback and
    the current result. The tree itself is never modified.
    """

    def __init__(self, tree: SequenceTree):
        self.tree = tree
        self.reset()

    def reset(self) -> None:
        self.children: Mapping[Coordinate, SequenceNode] = self.tree.roots
        self.wildcard: Optional[SequenceNode] = self.tree.root_wildcard
        self.result = ProblemResult.INCOMPLETE

    def match(self, coord: Coordinate) -> Optional[SequenceNode]:
        """Return the node a player move at coord leads to, without moving."""
        node = self.children.get(coord)
        if node is None:
            node = self.wildcard
        return node

    def advance(self, coord: Coordinate) -> Optional[SequenceNode]:
        """
        Move the cursor for a move at coord.

        Returns:
            The matched node, or None when the move left the tree (the
            result becomes failure unless success was already reached)
        """
        node = self.match(coord)
        if node is None:
            self.leave_tree()
            return None
        self.enter(node)
        return node

    def enter(self, node: SequenceNode) -> None:
        self.children = node.children
        self.wildcard = node.wildcard_child
        self.result = node.result

    def leave_tree(self) -> None:
        if self.result is not ProblemResult.SUCCESS:
            self.result = ProblemResult.FAILURE
        self.children = _NO_CHILDREN
        self.wildcard = None
