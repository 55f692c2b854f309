"""
DDL emission.

Per table, in declaration order: CREATE TABLE (hash-partitioned on the key
column when partitions are configured), one shard per partition, table and
column comments, and an index on column 1 when no primary key is declared.
After every table: foreign-key constraints, unique constraints and finally
the declared secondary indexes.
"""
from __future__ import annotations

from typing import List

from sqlloadgen import types as sqltypes
from sqlloadgen.domain.models import Column, IndexDefinition, SchemaModel, Table
from sqlloadgen.naming import ConstraintKind, derive_constraint_name, partition_name

HASH_INDEX_MIN_VERSION = 10


def _comment(text: str) -> str:
    return "'" + text.strip().replace("'", "''") + "'"


def _use_hash(table: Table, columns: List[str], engine_version: int) -> bool:
    if len(columns) != 1 or engine_version < HASH_INDEX_MIN_VERSION:
        return False
    return not sqltypes.is_btree_compatible(table.column(columns[0]).type_name)


def _column_definition(table: Table, column: Column) -> str:
    parts = [column.name, column.type_name]
    if column.not_null and not column.primary_key:
        parts.append("NOT NULL")
    if column.name == table.primary_key:
        parts.append("PRIMARY KEY")
    return " ".join(parts)


def create_table(table: Table) -> List[str]:
    statements: List[str] = []
    columns = ", ".join(_column_definition(table, c) for c in table.columns)
    if table.partitions > 0:
        statements.append(
            f"CREATE TABLE {table.name} ({columns}) PARTITION BY HASH ({table.partition_column});"
        )
        for remainder in range(table.partitions):
            statements.append(
                f"CREATE TABLE {partition_name(table.name, remainder)} PARTITION OF {table.name} "
                f"FOR VALUES WITH (MODULUS {table.partitions}, REMAINDER {remainder});"
            )
    else:
        statements.append(f"CREATE TABLE {table.name} ({columns});")
    return statements


def comments(table: Table) -> List[str]:
    statements: List[str] = []
    if table.description and table.description.strip():
        statements.append(f"COMMENT ON TABLE {table.name} IS {_comment(table.description)};")
    for column in table.columns:
        if column.description and column.description.strip():
            statements.append(
                f"COMMENT ON COLUMN {table.name}.{column.name} IS {_comment(column.description)};"
            )
    return statements


def create_index(table: Table, name: str, columns: List[str], engine_version: int, if_not_exists: bool = True) -> str:
    using = " USING HASH" if _use_hash(table, columns, engine_version) else ""
    guard = " IF NOT EXISTS" if if_not_exists else ""
    return f"CREATE INDEX{guard} {name} ON {table.name}{using} ({', '.join(columns)});"


def implicit_key_index(table: Table, engine_version: int, referenced: bool = False) -> List[str]:
    """
    Index column 1 of a table without a declared primary key.

    The index is not added to `Table.indexes`: it covers the key column,
    whose live values the active-key pools already track, so index-based
    SELECTs never target it. A referenced table gets a unique B-tree index,
    which foreign-key constraints require of their target column.
    """
    if table.primary_key is not None:
        return []
    first = table.columns[0].name
    name = derive_constraint_name(ConstraintKind.INDEX, table.name, [first])
    if referenced:
        return [f"CREATE UNIQUE INDEX {name} ON {table.name} ({first});"]
    return [create_index(table, name, [first], engine_version, if_not_exists=False)]


def foreign_key_constraints(table: Table) -> List[str]:
    statements: List[str] = []
    for fk in table.foreign_keys:
        name = derive_constraint_name(
            ConstraintKind.FOREIGN_KEY, table.name, [fk.column, fk.table, fk.referenced_column]
        )
        statements.append(
            f"ALTER TABLE {table.name} ADD CONSTRAINT {name} "
            f"FOREIGN KEY ({fk.column}) REFERENCES {fk.table} ({fk.referenced_column});"
        )
    return statements


def unique_constraints(table: Table) -> List[str]:
    statements: List[str] = []
    key = table.key_column.name
    for column in table.unique_columns:
        name = derive_constraint_name(ConstraintKind.UNIQUE, table.name, [key, column.name])
        # Unique constraints on a partitioned table must contain the partition key.
        columns = f"{key}, {column.name}" if table.partitions > 0 else column.name
        statements.append(f"ALTER TABLE {table.name} ADD CONSTRAINT {name} UNIQUE ({columns});")
    return statements


def secondary_index(table: Table, index: IndexDefinition, engine_version: int) -> str:
    return create_index(table, index.name, list(index.columns), engine_version)


def emit_ddl(schema: SchemaModel, engine_version: int = 11) -> List[str]:
    """Return the ordered DDL statements for `schema`."""
    statements: List[str] = []
    for table in schema.tables:
        statements.extend(create_table(table))
        statements.extend(comments(table))
        statements.extend(implicit_key_index(table, engine_version, schema.is_referenced(table.name)))
    for table in schema.tables:
        statements.extend(foreign_key_constraints(table))
    for table in schema.tables:
        statements.extend(unique_constraints(table))
    for table in schema.tables:
        statements.extend(secondary_index(table, idx, engine_version) for idx in table.indexes)
    return statements


__all__ = ["emit_ddl", "HASH_INDEX_MIN_VERSION"]
