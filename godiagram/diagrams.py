"""
Diagram factory: maps the type keyword on the first source line to a
diagram class.
"""

import random
from typing import Dict, Optional, Type, Union

from .errors import ConfigError
from .freeplay import FreeplayDiagram
from .parser import diagram_type, split_source
from .problem import DEFAULT_REPLY_DELAY, ProblemDiagram
from .replay import ReplayDiagram
from .scheduler import ReplyScheduler
from .static import StaticDiagram

Diagram = Union[StaticDiagram, ProblemDiagram, FreeplayDiagram, ReplayDiagram]

DIAGRAM_TYPES: Dict[str, Type] = {
    "static": StaticDiagram,
    "problem": ProblemDiagram,
    "freeplay": FreeplayDiagram,
    "replay": ReplayDiagram,
}


def create_diagram(
    source: str,
    rng: Optional[random.Random] = None,
    scheduler: Optional[ReplyScheduler] = None,
    reply_delay: float = DEFAULT_REPLY_DELAY,
) -> Diagram:
    """
    Build a diagram from its source text.

    Args:
        source: Full diagram source (type keyword, board, options)
        rng: Random source for problem replies
        scheduler: Scheduler for problem replies
        reply_delay: Seconds before a problem reply is played

    Returns:
        The diagram instance

    Raises:
        DiagramError: If the source is invalid (ConfigError for an unknown
            type keyword)
    """
    lines = split_source(source)
    kind = diagram_type(lines)

    cls = DIAGRAM_TYPES.get(kind)
    if cls is None:
        allowed = ", ".join(DIAGRAM_TYPES)
        raise ConfigError(f"Unknown diagram type '{kind}'. Must be one of: {allowed}")

    if cls is ProblemDiagram:
        return ProblemDiagram(lines, rng=rng, scheduler=scheduler, reply_delay=reply_delay)
    return cls(lines)
