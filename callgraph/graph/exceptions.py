# callgraph/graph/exceptions.py
from typing import Optional


class InvalidArgumentError(ValueError):
    """Raised when a required identity/value argument is missing or malformed at a construction or mutation call."""

    def __init__(self, argument_name: str, reason: Optional[str] = None):
        message = reason or "is required and must not be None"
        super().__init__(f"Argument '{argument_name}' {message}.")
        self.argument_name = argument_name


class GraphSealedError(RuntimeError):
    """Raised when a mutation primitive is called on a call graph that has already been sealed."""
    pass
