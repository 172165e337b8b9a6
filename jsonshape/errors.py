"""Exceptions raised by jsonshape."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jsonshape.schemas.results import ValidationIssue


class JsonShapeError(Exception):
    """Base exception for all jsonshape errors."""
    pass


class SchemaDefinitionError(JsonShapeError, ValueError):
    """Raised when a schema node is built from an illegal keyword combination."""
    pass


class SchemaCompilationError(JsonShapeError):
    """Raised when the validator rejects a serialized schema document."""
    pass


class JsonSyntaxError(JsonShapeError, ValueError):
    """Raised when input text is not well-formed JSON."""

    def __init__(
        self,
        message: str,
        position: int | None = None,
        lineno: int | None = None,
        colno: int | None = None,
    ):
        self.message = message
        self.position = position
        self.lineno = lineno
        self.colno = colno
        if position is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} (line {lineno}, column {colno}, char {position})")


class ValidationError(JsonShapeError):
    """Raised when a well-formed JSON value does not satisfy the schema."""

    def __init__(self, errors: list[ValidationIssue]):
        self.errors = list(errors)
        summary = "; ".join(
            f"{issue.path or '<root>'}: {issue.message}" for issue in self.errors[:3]
        )
        if len(self.errors) > 3:
            summary += f"; ... ({len(self.errors) - 3} more)"
        super().__init__(f"Value failed schema validation: {summary}")
