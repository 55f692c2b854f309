"""
Row synthesis shared by seeding and workload INSERTs.

Column values are produced in a fixed order: foreign keys first (a row that
cannot reference anything is abandoned before a sequence value is consumed),
then the key, then every remaining column.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlloadgen import types as sqltypes
from sqlloadgen.domain.models import Column, Table
from sqlloadgen.properties import Profile
from sqlloadgen.state import ConsistencyState


@dataclass(frozen=True)
class Row:
    """A synthesized row; `values` holds every non-serial column in declaration order."""

    table: Table
    key: str
    values: Dict[str, str]

    @property
    def snapshot(self) -> Dict[str, str]:
        return {**self.values, self.table.key_column.name: self.key}


class RowFactory:
    """
    Builds rows that respect key, foreign-key, unique and NOT NULL rules and
    registers them in the consistency state.
    """

    def __init__(self, state: ConsistencyState, profile: Profile, rng: random.Random) -> None:
        self.state = state
        self.profile = profile
        self.rng = rng
        self._not_null: Dict[str, int] = {}

    def not_null_target(self, table: str) -> int:
        if table not in self._not_null:
            self._not_null[table] = self.profile.table_int(table, "notnull")
        return self._not_null[table]

    def value_for(self, table: Table, column: Column, row_hint: int = 0) -> str:
        """A fresh random value for a plain (non-key, non-reference) column."""

        def produce() -> str:
            return sqltypes.random_value(
                column.type_name,
                self.rng,
                row_hint,
                randomize=True,
                nullable=table.is_nullable(column),
                not_null_target=self.not_null_target(table.name),
            )

        if column.unique:
            return self.state.claim_unique(table.name, column, produce)
        return produce()

    def _key_producer(self, column: Column, row_hint: int, randomize: bool) -> Callable[[], str]:
        deterministic = [not randomize and sqltypes.supports_row_hint(column.type_name)]

        def produce() -> str:
            if deterministic[0]:
                deterministic[0] = False
                return sqltypes.random_value(column.type_name, self.rng, row_hint, randomize=False)
            return sqltypes.random_value(column.type_name, self.rng, row_hint, randomize=True)

        return produce

    def blocked_reference(self, table: Table, client_id: int) -> Optional[Column]:
        """
        The first foreign-key column `client_id` cannot fill right now: its
        referenced table has no visible rows, or, for a key or unique column,
        every visible parent key is already claimed.
        """
        for column in table.columns:
            fk = column.foreign_key
            if fk is None:
                continue
            taken = self.state.taken_values(table, column)
            if taken is None:
                if not self.state.has_keys(fk.table, client_id):
                    return column
            elif not self.state.unclaimed_keys(fk.table, client_id, taken):
                return column
        return None

    def _reference(self, table: Table, column: Column, client_id: int) -> Optional[str]:
        fk = column.foreign_key
        taken = self.state.taken_values(table, column)
        if taken is None:
            return self.state.pick_key(fk.table, client_id)
        value = self.state.pick_unclaimed_key(fk.table, client_id, taken)
        if value is None:
            return None
        if column.name == table.key_column.name:
            return self.state.claim_key(table.name, column, lambda: value)
        return self.state.claim_unique(table.name, column, lambda: value)

    def create(self, table: Table, client_id: int, row_hint: int = 0, randomize: bool = True) -> Optional[Row]:
        """
        Synthesize and register one row for `client_id`.

        Returns None when a foreign key has nothing live (or, for key and
        unique columns, nothing unclaimed) to reference.
        """
        key_column = table.key_column
        values: Dict[str, str] = {}

        if any(
            c.foreign_key is not None and not self.state.has_keys(c.foreign_key.table, client_id)
            for c in table.columns
        ):
            return None
        for column in table.columns:
            if column.foreign_key is None:
                continue
            value = self._reference(table, column, client_id)
            if value is None:
                return None
            values[column.name] = value

        if key_column.is_serial:
            key = self.state.next_serial(table.name)
        elif key_column.name in values:
            key = values[key_column.name]
        else:
            key = self.state.claim_key(
                table.name, key_column, self._key_producer(key_column, row_hint, randomize)
            )
            values[key_column.name] = key

        for column in table.columns:
            if column.name in values or column.is_serial:
                continue
            values[column.name] = self.value_for(table, column, row_hint)

        ordered = {c.name: values[c.name] for c in table.insert_columns}
        row = Row(table=table, key=key, values=ordered)
        self.state.register_row(table, client_id, key, row.snapshot)
        return row


__all__ = ["Row", "RowFactory"]
