"""Internal custom exceptions for opforge."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .defs import SourceLocation


class OpForgeError(Exception):
    """Base exception for all errors raised by opforge."""

    pass


class DefinitionError(OpForgeError):
    """
    Raised when an operation or dialect is defined incorrectly in the DSL.

    This error indicates a problem with how an operation was written down,
    such as two variadic operands or a constraint of the wrong kind.
    """

    pass


class SchemaError(OpForgeError):
    """
    A fatal problem found while generating code for an operation.

    Carries the location of the offending definition so the message points
    back at the user's source.
    """

    def __init__(self, message: str, location: SourceLocation | None = None):
        self.message = message
        self.location = location
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.location is None:
            return f"error: {self.message}"
        return f"{self.location}: error: {self.message}"


class SchemaContradictionError(SchemaError):
    """Raised when an operation declares mutually exclusive traits."""

    pass


class SchemaShapeError(SchemaError):
    """
    Raised when an operation's shape cannot be generated.

    Examples are arguments that are neither operands nor stored attributes,
    a variadic value that is not last, or a result type that cannot be
    deduced.
    """

    pass


class UnknownGeneratorError(OpForgeError):
    """Raised when a generator mode is not present in the generator table."""

    pass
