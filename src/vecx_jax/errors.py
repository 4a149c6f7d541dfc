"""Structured error types for fixed-array construction, access and arithmetic."""

from __future__ import annotations

from dataclasses import dataclass


class VecXError(Exception):
    """Base class for structured vecx-jax errors."""


@dataclass(frozen=True)
class VecXLengthError(VecXError, ValueError):
    """Element count does not match the fixed length of the array type."""

    expected: int
    found: int
    where: str = "elements"

    def __str__(self) -> str:
        return f"{self.where} has length {self.found}; expected exactly {self.expected}"


@dataclass(frozen=True)
class VecXIndexError(VecXError, IndexError):
    """Position outside `[0, length)`."""

    index: int
    length: int
    where: str = "index"

    def __str__(self) -> str:
        return f"{self.where} {self.index} out of bounds for length {self.length}"


class VecXZeroDivisionError(VecXError, ZeroDivisionError):
    """Integer division or modulo by zero."""


class VecXShapeError(VecXError, ValueError):
    """Operand length or array rank incompatibility."""


class VecXTypeError(VecXError, TypeError):
    """Unsupported element dtype or dtype mismatch between operands."""
