"""
Exception taxonomy for diagram construction.

Every error here is raised synchronously while a diagram is being built,
never during play, and carries a single human-readable message suitable
for showing in place of the diagram.
"""


class DiagramError(ValueError):
    """Base exception for invalid diagram sources."""
    pass


class MalformedBoardError(DiagramError):
    """Raised when the board rows cannot form a valid grid."""
    pass


class SizeConflictError(DiagramError):
    """Raised when the board dimensions disagree with the size option."""
    pass


class MarkError(DiagramError):
    """Raised for duplicate, missing or conflicting marks."""
    pass


class SequenceError(DiagramError):
    """Raised when a problem path is illegal or misuses wildcards."""
    pass


class ReplayError(DiagramError):
    """Raised when replay numbering or move references are invalid."""
    pass


class ConfigError(DiagramError):
    """Raised when the configuration block or an option value is invalid."""
    pass
