"""
Abstract statement generator interfaces.

Each concrete generator (SELECT, UPDATE, INSERT, DELETE) turns a target table
and a simulated client into one `GeneratedStatement`, reading and mutating the
shared consistency state. Returning None means the statement cannot be shaped
right now (nothing updatable, referenced table on DELETE, no live row); the
workload loop then draws another statement for the same slot.
"""

from __future__ import annotations

import abc
import random
from enum import Enum
from typing import List, Optional, Protocol, runtime_checkable

from sqlloadgen import types as sqltypes
from sqlloadgen.domain.models import GeneratedStatement, SchemaModel, Table
from sqlloadgen.properties import Profile
from sqlloadgen.rows import RowFactory
from sqlloadgen.state import ConsistencyState


class StatementKind(str, Enum):
    SELECT = "select"
    UPDATE = "update"
    INSERT = "insert"
    DELETE = "delete"


@runtime_checkable
class StatementGenerator(Protocol):
    """
    Common interface all statement generators implement.

    Attributes
    ----------
    kind : StatementKind
        Which mix bucket the generator serves.
    """

    kind: StatementKind

    def generate(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:
        """
        Produce one statement against `table` on behalf of `client_id`.

        Returns
        -------
        GeneratedStatement | None
            None when the statement cannot be shaped against the current state.
        """
        ...


class AbstractStatementGenerator(abc.ABC):
    """
    Shared wiring for class-based generators.

    Subclasses set `kind` and implement `generate`.
    """

    kind: StatementKind

    def __init__(
        self,
        schema: SchemaModel,
        state: ConsistencyState,
        factory: RowFactory,
        profile: Profile,
        rng: random.Random,
    ) -> None:
        self.schema = schema
        self.state = state
        self.factory = factory
        self.profile = profile
        self.rng = rng

    @abc.abstractmethod
    def generate(self, table: Table, client_id: int) -> Optional[GeneratedStatement]:  # pragma: no cover - interface only
        raise NotImplementedError

    def _statement(self, sql: str, types: List[str], values: List[str]) -> GeneratedStatement:
        return GeneratedStatement(sql=sql, types=tuple(types), values=tuple(values), kind=self.kind.value)

    def lookup_key(self, table: Table, client_id: int) -> str:
        """
        A live key visible to the client, or a plausible miss when the table
        has no live rows left.
        """
        key = self.state.pick_key(table.name, client_id)
        if key is not None:
            return key
        column = table.key_column
        if column.is_serial:
            return str(self.rng.randint(1, max(1, self.state.serial_counters[table.name])))
        return sqltypes.random_value(column.type_name, self.rng)


__all__ = ["StatementKind", "StatementGenerator", "AbstractStatementGenerator"]
