"""
Exceptions for SYMDIFF

SYMDIFF - Symbolic Differentiation via Prioritized Rules

Two failure kinds exist. ParseError covers anything wrong with the input
text; CalculationError means no derivative rule matched a node, which only
happens when a rule family has been disabled or a new node shape was added
without a rule.
"""

from typing import Any, Optional


class SymdiffError(Exception):
    """Base class for all symdiff errors."""


class ParseError(SymdiffError):
    """Malformed, empty or otherwise unparseable expression text."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at position {self.position})"


class CalculationError(SymdiffError):
    """No derivative rule applies to a node."""

    def __init__(self, message: str, node: Any = None):
        super().__init__(message)
        self.message = message
        self.node = node
