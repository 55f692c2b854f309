"""
Seed data generation.

Emits the bulk INSERT script for every table, tables without foreign keys
first, registering each row in the seed pool (client 0) of the consistency
state. Key columns use the row number as value where the type allows it, so
bulk seeding rarely needs a collision retry.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from sqlloadgen import types as sqltypes
from sqlloadgen.domain.errors import ExhaustedValueSpaceError, SchemaError
from sqlloadgen.domain.models import SchemaModel, Table
from sqlloadgen.properties import Profile, scale_count
from sqlloadgen.rows import Row, RowFactory
from sqlloadgen.state import SEED_CLIENT
from sqlloadgen.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class SeedResult:
    statements: List[str] = field(default_factory=list)
    rows: Dict[str, int] = field(default_factory=dict)

    @property
    def script(self) -> List[str]:
        """The `data.sql` lines."""
        return ["BEGIN;", *self.statements, "COMMIT;", "", "ANALYZE;"]


def insert_literal(row: Row) -> str:
    table = row.table
    if not row.values:
        return f"INSERT INTO {table.name} DEFAULT VALUES;"
    names = ", ".join(row.values)
    literals = ", ".join(
        sqltypes.sql_literal(table.column(name).type_name, value) for name, value in row.values.items()
    )
    return f"INSERT INTO {table.name} ({names}) VALUES ({literals});"


def _seed_table(factory: RowFactory, table: Table, count: int, result: SeedResult) -> None:
    for row_number in range(1, count + 1):
        row = factory.create(table, SEED_CLIENT, row_hint=row_number, randomize=False)
        if row is None:
            missing = [fk.table for fk in table.foreign_keys if not factory.state.has_keys(fk.table, SEED_CLIENT)]
            if missing:
                raise SchemaError(
                    f"{table.name}: referenced table(s) {', '.join(missing)} have no seed rows"
                )
            # Every parent key is already taken by a key or unique reference column.
            blocked = factory.blocked_reference(table, SEED_CLIENT)
            raise ExhaustedValueSpaceError(table.name, blocked.name if blocked else table.key_column.name, 0)
        result.statements.append(insert_literal(row))
    result.rows[table.name] = count


def generate_seed(schema: SchemaModel, factory: RowFactory, profile: Profile, row_scale: float = 1.0) -> SeedResult:
    """
    Generate seed INSERTs for every table in dependency order.

    Parameters
    ----------
    factory : RowFactory
        Row synthesizer bound to the run's consistency state and random source.
    row_scale : float
        Multiplier applied to each table's configured row count.
    """
    result = SeedResult()
    for table in schema.seed_order():
        count = scale_count(profile.rows(table.name), row_scale)
        _seed_table(factory, table, count, result)
        log.debug(f"Seeded {table.name}", extra={"table": table.name, "rows": count})
    return result


__all__ = ["SeedResult", "generate_seed", "insert_literal"]
