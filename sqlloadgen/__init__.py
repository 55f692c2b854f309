"""
sqlloadgen - synthetic SQL workload generator for replay benchmarks.

From one `.properties` profile this package produces:

- DDL for the declared tables, constraints, partitions and indexes
- seed data that honours keys, foreign keys, uniqueness and NOT NULL rules
- one transactional SELECT/UPDATE/INSERT/DELETE script per simulated client,
  kept referentially and uniquely consistent by an in-memory state store
- a deduplicated statement catalogue for query analysis
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sqlloadgen.config import Settings, get_settings
from sqlloadgen.domain import (
    ConfigurationError,
    ExhaustedValueSpaceError,
    GeneratedStatement,
    SchemaError,
    SchemaModel,
    SQLLoadGeneratorError,
    UnknownTypeError,
)
from sqlloadgen.generator import GenerationResult, run_generation
from sqlloadgen.properties import Profile
from sqlloadgen.schema import build_schema
from sqlloadgen.state import ConsistencyState
from sqlloadgen.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    "Profile",
    # Generation
    "build_schema",
    "run_generation",
    "GenerationResult",
    "ConsistencyState",
    # Models and errors
    "GeneratedStatement",
    "SchemaModel",
    "SQLLoadGeneratorError",
    "ConfigurationError",
    "SchemaError",
    "UnknownTypeError",
    "ExhaustedValueSpaceError",
    # Logging
    "configure_logging",
    "get_logger",
]
