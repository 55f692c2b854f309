"""
Domain package for the SQL load generator.

Exports the schema and statement models plus the error hierarchy. Keep this
package focused on data definitions and validation concerns.
"""

from sqlloadgen.domain.errors import (
    ConfigurationError,
    ExhaustedValueSpaceError,
    SchemaError,
    SQLLoadGeneratorError,
    UnknownTypeError,
)
from sqlloadgen.domain.models import (
    Column,
    ForeignKey,
    GeneratedStatement,
    IndexDefinition,
    SchemaModel,
    Table,
)

__all__ = [
    "Column",
    "ForeignKey",
    "GeneratedStatement",
    "IndexDefinition",
    "SchemaModel",
    "Table",
    "ConfigurationError",
    "ExhaustedValueSpaceError",
    "SchemaError",
    "SQLLoadGeneratorError",
    "UnknownTypeError",
]
