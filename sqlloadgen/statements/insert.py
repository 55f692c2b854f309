"""
INSERT generation.

New rows land in the inserting client's own pool so later statements of the
same client can read, update, delete or reference them.
"""

from __future__ import annotations

from typing import Optional

from sqlloadgen.domain.models import GeneratedStatement, Table
from sqlloadgen.statements.abstract import AbstractStatementGenerator, StatementKind


class InsertGenerator(AbstractStatementGenerator):
    kind = StatementKind.INSERT

    def generate(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        row = self.factory.create(table, client_id, randomize=True)
        if row is None:
            return None
        if not row.values:
            return self._statement(f"INSERT INTO {table.name} DEFAULT VALUES", [], [])
        names = list(row.values)
        return self._statement(
            f"INSERT INTO {table.name} ({', '.join(names)}) VALUES ({', '.join('?' for _ in names)})",
            [table.column(name).wire_type for name in names],
            list(row.values.values()),
        )


__all__ = ["InsertGenerator"]
