"""
Domain models for the SQL load generator.

The schema side (`Column`, `ForeignKey`, `IndexDefinition`, `Table`,
`SchemaModel`) is built once from the profile and frozen afterwards. The
statement side (`GeneratedStatement`) is produced in bulk by the workload
generators and is kept as a plain frozen dataclass.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from sqlloadgen import types as sqltypes


class ForeignKey(BaseModel):
    """
    A single-column reference from `column` to `table.referenced_column`.
    """

    column: str = Field(..., description="Referencing column on the owning table.")
    table: str = Field(..., description="Referenced table.")
    referenced_column: str = Field(..., description="Referenced column (the table's key).")

    model_config = {"frozen": True}


class Column(BaseModel):
    """
    One declared column of a table.
    """

    name: str
    type_name: str = Field("int", description="SQL type spelling, e.g. varchar(32).")
    position: int = Field(..., ge=1, description="1-based declaration position.")
    description: Optional[str] = None
    primary_key: bool = False
    not_null: bool = False
    unique: bool = False
    foreign_key: Optional[ForeignKey] = None

    model_config = {"frozen": True}

    @property
    def is_serial(self) -> bool:
        return sqltypes.is_serial(self.type_name)

    @property
    def needs_quoting(self) -> bool:
        return sqltypes.needs_quoting(self.type_name)

    @property
    def wire_type(self) -> str:
        return sqltypes.wire_type(self.type_name)


class IndexDefinition(BaseModel):
    """
    A declared secondary index (`index.<table>.<n>`).
    """

    table: str
    name: str
    columns: Tuple[str, ...]

    model_config = {"frozen": True}


class Table(BaseModel):
    """
    A table, its columns and its constraints.

    When no column is declared as primary key, column 1 acts as the implicit
    key: it is what lookups, updates and deletes match on.
    """

    name: str
    description: Optional[str] = None
    columns: Tuple[Column, ...]
    primary_key: Optional[str] = None
    partitions: int = Field(0, ge=0)
    indexes: Tuple[IndexDefinition, ...] = ()

    model_config = {"frozen": True}

    @property
    def key_column(self) -> Column:
        if self.primary_key is not None:
            return self.column(self.primary_key)
        return self.columns[0]

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def foreign_keys(self) -> List[ForeignKey]:
        return [c.foreign_key for c in self.columns if c.foreign_key is not None]

    @property
    def unique_columns(self) -> List[Column]:
        key = self.key_column.name
        return [c for c in self.columns if c.unique and c.name != key]

    @property
    def insert_columns(self) -> List[Column]:
        """Columns that appear in an explicit INSERT column list."""
        return [c for c in self.columns if not c.is_serial]

    @property
    def updatable_columns(self) -> List[Column]:
        """Columns an UPDATE may rewrite: not the key, a foreign key, unique or serial."""
        key = self.key_column.name
        return [
            c
            for c in self.columns
            if c.name != key and c.foreign_key is None and not c.unique and not c.is_serial
        ]

    @property
    def partition_column(self) -> str:
        return self.key_column.name

    def column(self, name: str) -> Column:
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(f"{self.name} has no column '{name}'")

    def is_nullable(self, column: Column) -> bool:
        """Key, foreign key, serial and NOT NULL columns never receive NULL."""
        return not (
            column.name == self.key_column.name
            or column.foreign_key is not None
            or column.not_null
            or column.is_serial
        )


class SchemaModel(BaseModel):
    """
    The full declared schema, in declaration order, plus the reverse
    foreign-key edges (referenced table → dependent tables).
    """

    tables: Tuple[Table, ...]
    referenced_by: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def table(self, name: str) -> Table:
        for tbl in self.tables:
            if tbl.name == name:
                return tbl
        raise KeyError(f"Unknown table '{name}'")

    def is_referenced(self, name: str) -> bool:
        return bool(self.referenced_by.get(name))

    def seed_order(self) -> List[Table]:
        """Tables without foreign keys first, then dependents in declaration order."""
        independent = [t for t in self.tables if not t.foreign_keys]
        dependent = [t for t in self.tables if t.foreign_keys]
        return independent + dependent

    @property
    def indexes(self) -> List[IndexDefinition]:
        return [idx for t in self.tables for idx in t.indexes]


@dataclass(frozen=True)
class GeneratedStatement:
    """
    One replay record: SQL text with `?` placeholders, the wire type tag of
    each parameter and the literal value of each parameter.
    """

    sql: str
    types: Tuple[str, ...] = ()
    values: Tuple[str, ...] = ()
    kind: Optional[str] = field(default=None, compare=False)

    @classmethod
    def control(cls, sql: str) -> "GeneratedStatement":
        """BEGIN / COMMIT / ROLLBACK record without parameters."""
        return cls(sql=sql)


__all__ = [
    "Column",
    "ForeignKey",
    "IndexDefinition",
    "Table",
    "SchemaModel",
    "GeneratedStatement",
]
