"""
Statement generators for the SQL load generator.

This module re-exports the abstract interfaces and the concrete generator
classes so downstream code can import from `sqlloadgen.statements` directly.
"""

from sqlloadgen.statements.abstract import (
    AbstractStatementGenerator,
    StatementGenerator,
    StatementKind,
)
from sqlloadgen.statements.delete import DeleteGenerator
from sqlloadgen.statements.insert import InsertGenerator
from sqlloadgen.statements.select import SelectGenerator
from sqlloadgen.statements.update import UpdateGenerator

__all__ = [
    # Abstracts
    "AbstractStatementGenerator",
    "StatementGenerator",
    "StatementKind",
    # Concrete generators
    "DeleteGenerator",
    "InsertGenerator",
    "SelectGenerator",
    "UpdateGenerator",
]
