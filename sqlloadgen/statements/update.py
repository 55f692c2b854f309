"""
UPDATE generation.

Rewrites every column that is not the key, a foreign key, unique or serial;
those stay fixed so references and uniqueness survive replay. The index
snapshot of the updated row follows the new values.
"""

from __future__ import annotations

from typing import Optional

from sqlloadgen.domain.models import GeneratedStatement, Table
from sqlloadgen.statements.abstract import AbstractStatementGenerator, StatementKind


class UpdateGenerator(AbstractStatementGenerator):
    kind = StatementKind.UPDATE

    def generate(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        columns = table.updatable_columns
        if not columns:
            return None
        key = self.state.pick_key(table.name, client_id)
        if key is None:
            return None

        changes = {col.name: self.factory.value_for(table, col) for col in columns}
        self.state.update_row(table, key, changes)

        key_column = table.key_column
        assignments = ", ".join(f"{col.name} = ?" for col in columns)
        return self._statement(
            f"UPDATE {table.name} SET {assignments} WHERE {key_column.name} = ?",
            [col.wire_type for col in columns] + [key_column.wire_type],
            list(changes.values()) + [key],
        )


__all__ = ["UpdateGenerator"]
