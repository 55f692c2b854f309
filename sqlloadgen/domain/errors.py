"""
Exception hierarchy for the SQL load generator.

Configuration problems abort a run before any output is written. Value-space
exhaustion aborts the phase that hit it. Statements that cannot be shaped
(nothing to update, referenced table on DELETE) are not errors at all: the
generators return None and the workload loop draws again.
"""
from __future__ import annotations

from typing import Optional


class SQLLoadGeneratorError(Exception):
    """Base class for every failure raised by sqlloadgen."""


class ConfigurationError(SQLLoadGeneratorError):
    """A profile entry is missing, malformed or contradictory."""


class UnknownTypeError(ConfigurationError):
    """A column declares a type name outside the supported catalogue."""

    def __init__(self, type_name: str, context: Optional[str] = None) -> None:
        self.type_name = type_name
        message = f"Unknown type: {type_name}"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class SchemaError(ConfigurationError):
    """The declared schema violates a structural rule."""


class ExhaustedValueSpaceError(SQLLoadGeneratorError):
    """No fresh value could be produced for a unique or key column."""

    def __init__(self, table: str, column: str, attempts: int) -> None:
        self.table = table
        self.column = column
        self.attempts = attempts
        super().__init__(
            f"Exhausted value space for {table}.{column} after {attempts} attempt(s)"
        )


__all__ = [
    "SQLLoadGeneratorError",
    "ConfigurationError",
    "UnknownTypeError",
    "SchemaError",
    "ExhaustedValueSpaceError",
]
