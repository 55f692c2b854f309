"""
SELECT generation.

Tables without foreign keys are read by key, by the values of a secondary
index or by an IN list of keys, per the `mix.select.index` / `mix.select.in`
weights (percentages; the remainder goes to key lookups). Tables with foreign
keys always get one canonical query that left-joins every referenced table.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlloadgen.domain.models import GeneratedStatement, Table
from sqlloadgen.statements.abstract import AbstractStatementGenerator, StatementKind


class SelectGenerator(AbstractStatementGenerator):
    """Read-only lookups against live rows."""

    kind = StatementKind.SELECT

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._join_sql: Dict[str, str] = {}

    def generate(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        if table.foreign_keys:
            return self.by_join(table, client_id)

        index_weight = self.profile.mix_int(table.name, client_id, "mix.select.index")
        in_weight = self.profile.mix_int(table.name, client_id, "mix.select.in")
        if index_weight + in_weight > 0:
            draw = self.rng.randrange(100)
            if draw < index_weight:
                return self.by_index(table, client_id) or self.by_key(table, client_id)
            if draw < index_weight + in_weight:
                return self.by_keys(table, client_id) or self.by_key(table, client_id)
        return self.by_key(table, client_id)

    def _select_list(self, table: Table) -> str:
        return f"SELECT {', '.join(table.column_names)} FROM {table.name}"

    def by_key(self, table: Table, client_id: int) -> GeneratedStatement:
        key = table.key_column
        return self._statement(
            f"{self._select_list(table)} WHERE {key.name} = ?",
            [key.wire_type],
            [self.lookup_key(table, client_id)],
        )

    def by_index(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        if not table.indexes:
            return None
        index = table.indexes[self.rng.randrange(len(table.indexes))]
        entry = self.state.pick_index_entry(table.name, index, client_id)
        if entry is None:
            return None
        _, values = entry
        where = " AND ".join(f"{col} = ?" for col in index.columns)
        return self._statement(
            f"{self._select_list(table)} WHERE {where}",
            [table.column(col).wire_type for col in index.columns],
            list(values),
        )

    def by_keys(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        cap = max(1, self.profile.mix_int(table.name, client_id, "mix.select.in.count"))
        keys = self.state.pick_keys(table.name, client_id, self.rng.randint(1, cap))
        if not keys:
            return None
        key = table.key_column
        placeholders = ", ".join("?" for _ in keys)
        return self._statement(
            f"{self._select_list(table)} WHERE {key.name} IN ({placeholders})",
            [key.wire_type] * len(keys),
            keys,
        )

    def join_sql(self, table: Table) -> str:
        if table.name not in self._join_sql:
            aliases: List[tuple] = [("t0", table)]
            joins: List[str] = []
            for pos, fk in enumerate(table.foreign_keys, start=1):
                alias = f"t{pos}"
                aliases.append((alias, self.schema.table(fk.table)))
                joins.append(
                    f"LEFT OUTER JOIN {fk.table} {alias} ON t0.{fk.column} = {alias}.{fk.referenced_column}"
                )
            columns = ", ".join(
                f"{alias}.{col} AS {alias}_{col}" for alias, tbl in aliases for col in tbl.column_names
            )
            self._join_sql[table.name] = (
                f"SELECT {columns} FROM {table.name} t0 {' '.join(joins)} "
                f"WHERE t0.{table.key_column.name} = ?"
            )
        return self._join_sql[table.name]

    def by_join(self, table: Table, client_id: int) -> GeneratedStatement:
        return self._statement(
            self.join_sql(table),
            [table.key_column.wire_type],
            [self.lookup_key(table, client_id)],
        )


__all__ = ["SelectGenerator"]
