"""
Schema model construction from a workload profile.

Reads `table.<name>`, `<table>.column.<n>[.type|.description|.primarykey|
.foreignkey.table|.foreignkey.column|.notnull|.unique]`, `<table>.partitions`
and `index.<table>.<n>` entries and returns a frozen `SchemaModel`.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from sqlloadgen import types as sqltypes
from sqlloadgen.domain.errors import SchemaError
from sqlloadgen.domain.models import Column, ForeignKey, IndexDefinition, SchemaModel, Table
from sqlloadgen.naming import ConstraintKind, derive_constraint_name
from sqlloadgen.properties import Profile
from sqlloadgen.utils.logging import get_logger

log = get_logger(__name__)


def _read_columns(profile: Profile, table: str, known: Dict[str, Table]) -> List[Column]:
    columns: List[Column] = []
    primary_key: Optional[str] = None
    position = 1

    while profile.get(f"{table}.column.{position}") is not None:
        prefix = f"{table}.column.{position}"
        name = profile.get(prefix)
        type_name = profile.get(f"{prefix}.type", "int")
        sqltypes.validate(type_name)

        is_pk = profile.get_bool(f"{prefix}.primarykey")
        if is_pk:
            if primary_key is not None:
                raise SchemaError(
                    f"Already have primary key '{primary_key}' on table {table}"
                )
            primary_key = name

        foreign_key = None
        ref_table = profile.get(f"{prefix}.foreignkey.table")
        if ref_table is not None:
            foreign_key = _resolve_foreign_key(
                table, name, ref_table, profile.get(f"{prefix}.foreignkey.column"), known
            )
            if is_pk:
                raise SchemaError(f"{table}.{name}: primary key cannot be a foreign key")
            if sqltypes.is_serial(type_name):
                raise SchemaError(f"{table}.{name}: foreign key column cannot be {type_name}")

        columns.append(
            Column(
                name=name,
                type_name=type_name,
                position=position,
                description=profile.get(f"{prefix}.description"),
                primary_key=is_pk,
                not_null=profile.get_bool(f"{prefix}.notnull"),
                unique=profile.get_bool(f"{prefix}.unique"),
                foreign_key=foreign_key,
            )
        )
        position += 1

    for col in columns:
        if not col.is_serial:
            continue
        if primary_key is not None and col.name != primary_key:
            raise SchemaError(f"{table}.{col.name}: {col.type_name} is only valid on the primary key")
        if primary_key is None and col.position != 1:
            raise SchemaError(
                f"{table}.{col.name}: {col.type_name} is only valid on column 1 without a primary key"
            )

    names = [c.name for c in columns]
    if len(set(names)) != len(names):
        raise SchemaError(f"Duplicate column name on table {table}")
    return columns


def _resolve_foreign_key(
    table: str,
    column: str,
    ref_table: str,
    ref_column: Optional[str],
    known: Dict[str, Table],
) -> ForeignKey:
    if ref_table == table:
        raise SchemaError(f"{table}.{column}: self references are not supported")
    target = known.get(ref_table)
    if target is None:
        raise SchemaError(
            f"{table}.{column}: referenced table '{ref_table}' must be declared before {table}"
        )
    # Column 1 is the key of a table without a declared primary key.
    key = target.key_column.name
    ref_column = ref_column or key
    if ref_column != key:
        raise SchemaError(f"{table}.{column}: must reference the key column {ref_table}.{key}")
    return ForeignKey(column=column, table=ref_table, referenced_column=ref_column)


def _read_indexes(profile: Profile, tables: Dict[str, Table]) -> Dict[str, List[IndexDefinition]]:
    indexes: Dict[str, List[IndexDefinition]] = {name: [] for name in tables}
    for key in profile.keys_with_prefix("index."):
        if key.count(".") < 2:
            raise SchemaError(f"Malformed index key '{key}'")
        table = key[len("index.") : key.rindex(".")]
        if table not in tables:
            raise SchemaError(f"Index '{key}' refers to unknown table '{table}'")
        columns = tuple(c.strip() for c in (profile.get(key) or "").split(",") if c.strip())
        if not columns:
            raise SchemaError(f"Index '{key}' has no columns")
        known = tables[table].column_names
        for col in columns:
            if col not in known:
                raise SchemaError(f"Index '{key}' refers to unknown column {table}.{col}")
        name = derive_constraint_name(ConstraintKind.INDEX, table, columns)
        if any(idx.name == name for idx in indexes[table]):
            continue
        indexes[table].append(IndexDefinition(table=table, name=name, columns=columns))
    return indexes


def build_schema(profile: Profile) -> SchemaModel:
    """
    Build the schema model declared by `profile`.

    Raises
    ------
    SchemaError
        Duplicate primary key, serial misuse, unknown or forward foreign-key
        reference, or an index over unknown columns.
    UnknownTypeError
        A column type outside the catalogue.
    """
    tables: Dict[str, Table] = {}

    for key in profile.keys_with_prefix("table."):
        name = key[len("table.") :]
        columns = _read_columns(profile, name, tables)
        if not columns:
            log.warning(f"No columns for {name}", extra={"table": name})
            continue
        primary_key = next((c.name for c in columns if c.primary_key), None)
        tables[name] = Table(
            name=name,
            description=profile.get(key),
            columns=tuple(columns),
            primary_key=primary_key,
            partitions=profile.table_int(name, "partitions"),
        )

    indexes = _read_indexes(profile, tables)
    finished = [t.model_copy(update={"indexes": tuple(indexes[t.name])}) for t in tables.values()]

    referenced_by: Dict[str, List[str]] = {}
    for tbl in finished:
        for fk in tbl.foreign_keys:
            dependents = referenced_by.setdefault(fk.table, [])
            if tbl.name not in dependents:
                dependents.append(tbl.name)

    schema = SchemaModel(
        tables=tuple(finished),
        referenced_by={k: tuple(v) for k, v in referenced_by.items()},
    )
    log.debug(
        "Schema built",
        extra={"tables": len(schema.tables), "indexes": len(schema.indexes)},
    )
    return schema


__all__ = ["build_schema"]
