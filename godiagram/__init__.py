"""
godiagram - Interactive Go Diagrams

Parses plain-text Go diagrams (static, problem, freeplay, replay) and runs
the rule-aware state behind them; renderers pull a RenderState snapshot
and forward clicks and button presses.
"""

__version__ = "0.1.0"

from .base import Annotation, AnnotationShape, InputAction, RenderState
from .board import Board, Color, Coordinate, IllegalMoveError
from .captures import CaptureCount
from .diagrams import DIAGRAM_TYPES, Diagram, create_diagram
from .errors import (
    ConfigError,
    DiagramError,
    MalformedBoardError,
    MarkError,
    ReplayError,
    SequenceError,
    SizeConflictError,
)
from .freeplay import FreeplayDiagram
from .problem import ProblemDiagram
from .replay import ReplayDiagram
from .scheduler import ManualScheduler
from .sequence_tree import ProblemResult
from .static import StaticDiagram

__all__ = [
    "Annotation",
    "AnnotationShape",
    "InputAction",
    "RenderState",
    "Board",
    "Color",
    "Coordinate",
    "IllegalMoveError",
    "CaptureCount",
    "DIAGRAM_TYPES",
    "Diagram",
    "create_diagram",
    "ConfigError",
    "DiagramError",
    "MalformedBoardError",
    "MarkError",
    "ReplayError",
    "SequenceError",
    "SizeConflictError",
    "FreeplayDiagram",
    "ProblemDiagram",
    "ReplayDiagram",
    "ManualScheduler",
    "ProblemResult",
    "StaticDiagram",
]
