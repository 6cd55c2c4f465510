"""Error taxonomy shared by the conversion modules."""
from __future__ import annotations

from typing import Optional


class ConversionError(RuntimeError):
    """Base class for failures while converting a single question."""

    def __init__(self, message: str, *, question: Optional[str] = None) -> None:
        super().__init__(message)
        self.question = question

    def __str__(self) -> str:
        message = super().__str__()
        if self.question:
            return f"{self.question}: {message}"
        return message


class InvalidQuestion(ConversionError):
    """Raised when a question violates a structural precondition."""


class MalformedQuestion(InvalidQuestion):
    """Raised when a fixed-shape question has the wrong number of answers."""


class ParseError(ConversionError):
    """Raised when question markup lacks a required node."""


class RenderError(ConversionError):
    """Raised when the external markup renderer fails."""


class UnresolvedJump(RuntimeWarning):
    """Warning category for jump targets that cannot be resolved."""


__all__ = [
    "ConversionError",
    "InvalidQuestion",
    "MalformedQuestion",
    "ParseError",
    "RenderError",
    "UnresolvedJump",
]
