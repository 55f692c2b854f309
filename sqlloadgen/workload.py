"""
Multi-client workload generation.

Each simulated client runs the loop

    BEGIN → statement × size → COMMIT | ROLLBACK → BEGIN … → done

until its statement budget is used up. `size` is uniform in [1, mspt]; each
transaction costs `size + 2` from the budget. Every slot picks a table
uniformly and a statement kind from the weighted SELECT/UPDATE/INSERT/DELETE
mix; a kind that cannot be shaped is re-drawn, up to `max_slot_attempts` times.

Clients are generated one after another against the same consistency state:
the seed pool is shared, inserts land in the inserting client's own pool, and
a rolled-back transaction's state changes are undone.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from sqlloadgen.domain.models import GeneratedStatement, SchemaModel, Table
from sqlloadgen.properties import Profile, scale_count
from sqlloadgen.rows import RowFactory
from sqlloadgen.state import ConsistencyState
from sqlloadgen.statements import (
    DeleteGenerator,
    InsertGenerator,
    SelectGenerator,
    StatementGenerator,
    StatementKind,
    UpdateGenerator,
)
from sqlloadgen.utils.logging import get_logger

log = get_logger(__name__)

BEGIN = "BEGIN"
COMMIT = "COMMIT"
ROLLBACK = "ROLLBACK"


@dataclass
class ClientStats:
    """
    Per-client counters; `transaction_sizes[i]` counts transactions of i + 1 statements.
    """

    client_id: int
    transactions: int = 0
    commits: int = 0
    rollbacks: int = 0
    skipped: int = 0
    statements: Dict[str, int] = field(
        default_factory=lambda: {kind.value: 0 for kind in StatementKind}
    )
    transaction_sizes: List[int] = field(default_factory=list)

    def merge(self, other: "ClientStats") -> None:
        self.transactions += other.transactions
        self.commits += other.commits
        self.rollbacks += other.rollbacks
        self.skipped += other.skipped
        for kind, count in other.statements.items():
            self.statements[kind] = self.statements.get(kind, 0) + count
        if len(other.transaction_sizes) > len(self.transaction_sizes):
            self.transaction_sizes.extend(
                [0] * (len(other.transaction_sizes) - len(self.transaction_sizes))
            )
        for pos, count in enumerate(other.transaction_sizes):
            self.transaction_sizes[pos] += count

    def as_dict(self) -> dict:
        return {
            "client": self.client_id,
            "transactions": self.transactions,
            "commits": self.commits,
            "rollbacks": self.rollbacks,
            "skipped": self.skipped,
            "statements": dict(self.statements),
            "transaction_sizes": list(self.transaction_sizes),
        }


@dataclass
class ClientWorkload:
    client_id: int
    records: List[GeneratedStatement]
    stats: ClientStats


class WorkloadGenerator:
    """
    Drives the per-client transaction loop.

    Parameters
    ----------
    generators : Mapping[StatementKind, StatementGenerator] | None
        Override the statement generators (tests); defaults to the four
        built-in generators sharing this run's state.
    max_slot_attempts : int
        Draws per statement slot before the slot is left empty.
    """

    def __init__(
        self,
        schema: SchemaModel,
        state: ConsistencyState,
        factory: RowFactory,
        profile: Profile,
        rng: random.Random,
        max_slot_attempts: int = 10,
        generators: Optional[Mapping[StatementKind, StatementGenerator]] = None,
    ) -> None:
        self.schema = schema
        self.state = state
        self.profile = profile
        self.rng = rng
        self.max_slot_attempts = max_slot_attempts
        self.tables: List[Table] = list(schema.tables)
        self.generators: Dict[StatementKind, StatementGenerator] = dict(
            generators
            or {
                StatementKind.SELECT: SelectGenerator(schema, state, factory, profile, rng),
                StatementKind.UPDATE: UpdateGenerator(schema, state, factory, profile, rng),
                StatementKind.INSERT: InsertGenerator(schema, state, factory, profile, rng),
                StatementKind.DELETE: DeleteGenerator(schema, state, factory, profile, rng),
            }
        )
        self._weights: Dict[Tuple[str, int], List[Tuple[StatementKind, int]]] = {}

    def mix(self, table: Table, client_id: int) -> List[Tuple[StatementKind, int]]:
        """Positive mix weights for `table` as seen by `client_id`."""
        cache_key = (table.name, client_id)
        if cache_key not in self._weights:
            weights = [
                (kind, self.profile.mix_int(table.name, client_id, f"mix.{kind.value}"))
                for kind in StatementKind
            ]
            self._weights[cache_key] = [(kind, w) for kind, w in weights if w > 0]
        return self._weights[cache_key]

    def choose_kind(self, table: Table, client_id: int) -> Optional[StatementKind]:
        weights = self.mix(table, client_id)
        total = sum(w for _, w in weights)
        if total <= 0:
            return None
        draw = self.rng.randrange(total)
        for kind, weight in weights:
            if draw < weight:
                break
            draw -= weight
        if kind is StatementKind.UPDATE and len(table.columns) <= 1:
            return StatementKind.SELECT
        return kind

    def next_statement(self, client_id: int, stats: ClientStats) -> Optional[GeneratedStatement]:
        """Fill one statement slot, or return None when every draw failed."""
        for _ in range(self.max_slot_attempts):
            table = self.tables[self.rng.randrange(len(self.tables))]
            kind = self.choose_kind(table, client_id)
            if kind is None:
                continue
            statement = self.generators[kind].generate(table, client_id)
            if statement is not None:
                stats.statements[kind.value] += 1
                return statement
        stats.skipped += 1
        return None

    def end_of_transaction(self, client_id: int) -> str:
        commit = max(0, self.profile.client_int(client_id, "commit"))
        rollback = max(0, self.profile.client_int(client_id, "rollback"))
        if rollback == 0:
            return COMMIT
        return COMMIT if self.rng.randrange(commit + rollback) < commit else ROLLBACK

    def run_client(self, client_id: int, statement_scale: float = 1.0) -> ClientWorkload:
        budget = scale_count(self.profile.client_int(client_id, "statements"), statement_scale)
        mspt = max(1, self.profile.client_int(client_id, "mspt"))
        stats = ClientStats(client_id=client_id, transaction_sizes=[0] * mspt)
        records: List[GeneratedStatement] = []

        consumed = 0
        while consumed < budget and self.tables:
            size = self.rng.randint(1, mspt)
            records.append(GeneratedStatement.control(BEGIN))
            self.state.begin()
            for _ in range(size):
                statement = self.next_statement(client_id, stats)
                if statement is not None:
                    records.append(statement)

            outcome = self.end_of_transaction(client_id)
            if outcome == COMMIT:
                self.state.commit()
                stats.commits += 1
            else:
                self.state.rollback()
                stats.rollbacks += 1
            records.append(GeneratedStatement.control(outcome))

            stats.transactions += 1
            stats.transaction_sizes[size - 1] += 1
            consumed += size + 2

        log.info(
            f"Client {client_id} complete",
            extra={
                "client": client_id,
                "transactions": stats.transactions,
                "commits": stats.commits,
                "rollbacks": stats.rollbacks,
                **stats.statements,
            },
        )
        return ClientWorkload(client_id=client_id, records=records, stats=stats)

    def run(self, statement_scale: float = 1.0) -> Iterator[ClientWorkload]:
        """Generate clients 1..`clients` strictly one after another."""
        clients = self.profile.get_int("clients")
        for client_id in range(1, clients + 1):
            yield self.run_client(client_id, statement_scale)


__all__ = ["BEGIN", "COMMIT", "ROLLBACK", "ClientStats", "ClientWorkload", "WorkloadGenerator"]
