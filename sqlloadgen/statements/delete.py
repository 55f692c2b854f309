"""
DELETE generation.

Tables referenced by another table's foreign key are never deleted from, so
no generated statement can orphan a child row. Keys come from the client's
own pool first, then from the seed pool.
"""

from __future__ import annotations

from typing import Optional

from sqlloadgen.domain.models import GeneratedStatement, Table
from sqlloadgen.statements.abstract import AbstractStatementGenerator, StatementKind


class DeleteGenerator(AbstractStatementGenerator):
    kind = StatementKind.DELETE

    def generate(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        if self.schema.is_referenced(table.name):
            return None
        key = self.state.pick_key(table.name, client_id, own_first=True)
        if key is None:
            return None
        self.state.remove_row(table, key)
        key_column = table.key_column
        return self._statement(
            f"DELETE FROM {table.name} WHERE {key_column.name} = ?",
            [key_column.wire_type],
            [key],
        )


__all__ = ["DeleteGenerator"]
