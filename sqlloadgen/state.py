"""
Consistency state for seed and workload generation.

Tracks which rows are believed to exist while statements are being
synthesized, so every generated statement stays referentially and uniquely
valid when the scripts are replayed:

- active keys:      table → client → pool of live key values
                    (client 0 is the shared seed pool)
- used keys:        table → every key value ever issued (never reused)
- unique values:    table → column → values ever issued
- serial counters:  table → last value handed out by the table's sequence
- index snapshots:  table → index → client → keys, plus key → indexed values

Mutations made between `begin()` and `rollback()` are undone on rollback.
Serial counters and the used/unique sets are not rolled back: sequences are
non-transactional and never reissuing a value is always safe.
"""
from __future__ import annotations

import random
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Set, Tuple

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from sqlloadgen import types as sqltypes
from sqlloadgen.domain.errors import ExhaustedValueSpaceError
from sqlloadgen.domain.models import Column, IndexDefinition, SchemaModel, Table

SEED_CLIENT = 0

IndexEntry = Tuple[str, Tuple[str, ...]]


class ValueCollision(Exception):
    """A produced value is already taken; raised inside the retry loop only."""


class KeyPool:
    """
    Ordered set with O(1) add, discard and random choice.

    Iteration order is insertion order, modulo swap-removal, which keeps picks
    reproducible for a seeded random source.
    """

    __slots__ = ("_items", "_positions")

    def __init__(self) -> None:
        self._items: List[str] = []
        self._positions: Dict[str, int] = {}

    def add(self, key: str) -> None:
        if key in self._positions:
            return
        self._positions[key] = len(self._items)
        self._items.append(key)

    def discard(self, key: str) -> bool:
        pos = self._positions.pop(key, None)
        if pos is None:
            return False
        last = self._items.pop()
        if pos < len(self._items):
            self._items[pos] = last
            self._positions[last] = pos
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._positions

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __getitem__(self, pos: int) -> str:
        return self._items[pos]


class ConsistencyState:
    """
    Mutable generation state shared by the seed and workload generators.

    Parameters
    ----------
    schema : SchemaModel
        The frozen schema; defines which tables and indexes are tracked.
    rng : random.Random
        The shared pseudo-random source used for every pick.
    max_attempts : int
        Cap on collision retries when drawing a fresh key or unique value.
    """

    def __init__(self, schema: SchemaModel, rng: random.Random, max_attempts: int = 1000) -> None:
        self.schema = schema
        self.rng = rng
        self.max_attempts = max_attempts

        self.active_keys: Dict[str, Dict[int, KeyPool]] = {t: {} for t in schema.table_names}
        self.owners: Dict[str, Dict[str, int]] = {t: {} for t in schema.table_names}
        self.used_keys: Dict[str, Set[str]] = {t: set() for t in schema.table_names}
        self.unique_values: Dict[str, Dict[str, Set[str]]] = {
            t.name: {c.name: set() for c in t.unique_columns} for t in schema.tables
        }
        self.serial_counters: Dict[str, int] = {t: 0 for t in schema.table_names}
        self.index_snapshots: Dict[str, Dict[str, Dict[int, KeyPool]]] = {
            t.name: {idx.name: {} for idx in t.indexes} for t in schema.tables
        }
        self.index_values: Dict[str, Dict[str, Dict[str, Tuple[str, ...]]]] = {
            t.name: {idx.name: {} for idx in t.indexes} for t in schema.tables
        }

        self._journal: Optional[List[Callable[[], None]]] = None
        self._retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            retry=retry_if_exception_type(ValueCollision),
            sleep=lambda _: None,
        )

    # Transactions

    @property
    def in_transaction(self) -> bool:
        return self._journal is not None

    def begin(self) -> None:
        self._journal = []

    def commit(self) -> None:
        self._journal = None

    def rollback(self) -> None:
        journal, self._journal = self._journal or [], None
        for undo in reversed(journal):
            undo()

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal is not None:
            self._journal.append(undo)

    # Fresh values

    def next_serial(self, table: str) -> str:
        self.serial_counters[table] += 1
        value = str(self.serial_counters[table])
        self.used_keys[table].add(value)
        return value

    def _claim(self, taken: Set[str], table: str, column: Column, produce: Callable[[], str]) -> str:
        space = sqltypes.value_space(column.type_name)
        if space is not None and len(taken) >= space:
            raise ExhaustedValueSpaceError(table, column.name, 0)

        def attempt() -> str:
            value = produce()
            if value != sqltypes.NULL and value in taken:
                raise ValueCollision(value)
            return value

        try:
            value = self._retrying(attempt)
        except RetryError as exc:
            raise ExhaustedValueSpaceError(table, column.name, self.max_attempts) from exc
        if value != sqltypes.NULL:
            taken.add(value)
        return value

    def claim_key(self, table: str, column: Column, produce: Callable[[], str]) -> str:
        """Draw a key value never issued before for `table`."""
        return self._claim(self.used_keys[table], table, column, produce)

    def claim_unique(self, table: str, column: Column, produce: Callable[[], str]) -> str:
        """Draw a value never issued before for the unique column; NULL is never claimed."""
        return self._claim(self.unique_values[table][column.name], table, column, produce)

    # Row lifecycle

    def register_row(self, table: Table, client_id: int, key: str, row: Mapping[str, str]) -> None:
        """Mark the row identified by `key` as live and snapshot its indexed values."""
        self._attach(table, client_id, key, self._index_entries(table, row))
        self._record(lambda: self._detach(table, key))

    def remove_row(self, table: Table, key: str) -> Optional[int]:
        """Forget a live row; returns the client pool it belonged to."""
        owner = self.owners[table.name].get(key)
        if owner is None:
            return None
        values = {idx.name: self.index_values[table.name][idx.name].get(key) for idx in table.indexes}
        self._detach(table, key)
        self._record(lambda: self._attach(table, owner, key, values))
        return owner

    def update_row(self, table: Table, key: str, changes: Mapping[str, str]) -> None:
        """Rewrite the snapshot entries of indexes touching any changed column."""
        for idx in table.indexes:
            if not any(c in changes for c in idx.columns):
                continue
            store = self.index_values[table.name][idx.name]
            old = store.get(key)
            if old is None:
                continue
            store[key] = tuple(changes.get(c, v) for c, v in zip(idx.columns, old))
            self._record(lambda store=store, old=old: store.__setitem__(key, old))

    def _index_entries(self, table: Table, row: Mapping[str, str]) -> Dict[str, Tuple[str, ...]]:
        return {idx.name: tuple(row.get(c, sqltypes.NULL) for c in idx.columns) for idx in table.indexes}

    def _attach(
        self,
        table: Table,
        client_id: int,
        key: str,
        entries: Mapping[str, Optional[Tuple[str, ...]]],
    ) -> None:
        self.active_keys[table.name].setdefault(client_id, KeyPool()).add(key)
        self.owners[table.name][key] = client_id
        self.used_keys[table.name].add(key)
        for name, values in entries.items():
            if values is None:
                continue
            self.index_snapshots[table.name][name].setdefault(client_id, KeyPool()).add(key)
            self.index_values[table.name][name][key] = values

    def _detach(self, table: Table, key: str) -> None:
        owner = self.owners[table.name].pop(key, None)
        if owner is None:
            return
        self.active_keys[table.name][owner].discard(key)
        for idx in table.indexes:
            pools = self.index_snapshots[table.name][idx.name]
            if owner in pools:
                pools[owner].discard(key)
            self.index_values[table.name][idx.name].pop(key, None)

    # Lookups

    def _pools(self, table: str, client_id: int) -> List[KeyPool]:
        pools = self.active_keys[table]
        found = [pools[SEED_CLIENT]] if SEED_CLIENT in pools else []
        if client_id != SEED_CLIENT and client_id in pools:
            found.append(pools[client_id])
        return [p for p in found if len(p)]

    def _nth(self, pools: List[KeyPool], pos: int) -> str:
        for pool in pools:
            if pos < len(pool):
                return pool[pos]
            pos -= len(pool)
        raise IndexError(pos)

    def has_keys(self, table: str, client_id: int) -> bool:
        return bool(self._pools(table, client_id))

    def taken_values(self, table: Table, column: Column) -> Optional[Set[str]]:
        """Values `column` may never repeat: the key set or a unique set, else None."""
        if column.name == table.key_column.name:
            return self.used_keys[table.name]
        if column.unique:
            return self.unique_values[table.name][column.name]
        return None

    def unclaimed_keys(self, table: str, client_id: int, taken: Set[str]) -> List[str]:
        """Live keys visible to `client_id` that are not in `taken`."""
        return [k for pool in self._pools(table, client_id) for k in pool if k not in taken]

    def pick_unclaimed_key(self, table: str, client_id: int, taken: Set[str]) -> Optional[str]:
        """A random visible key outside `taken`, or None when every visible key is taken."""
        free = self.unclaimed_keys(table, client_id, taken)
        if not free:
            return None
        return free[self.rng.randrange(len(free))]

    def pick_key(self, table: str, client_id: int, own_first: bool = False) -> Optional[str]:
        """
        A random live key visible to `client_id`: its own pool plus the seed pool.

        With `own_first`, the client's own pool is used whenever it is non-empty.
        """
        if own_first and client_id != SEED_CLIENT:
            own = self.active_keys[table].get(client_id)
            if own:
                return own[self.rng.randrange(len(own))]
        pools = self._pools(table, client_id)
        total = sum(len(p) for p in pools)
        if total == 0:
            return None
        return self._nth(pools, self.rng.randrange(total))

    def pick_keys(self, table: str, client_id: int, count: int) -> List[str]:
        """Up to `count` distinct live keys visible to `client_id`."""
        pools = self._pools(table, client_id)
        total = sum(len(p) for p in pools)
        positions = self.rng.sample(range(total), min(count, total))
        return [self._nth(pools, pos) for pos in positions]

    def pick_index_entry(self, table: str, index: IndexDefinition, client_id: int) -> Optional[IndexEntry]:
        """
        A random (key, indexed values) pair from the client's own snapshot,
        else the seed snapshot. Entries holding NULL are not returned.
        """
        pools = self.index_snapshots[table][index.name]
        pool = pools.get(client_id)
        if not pool:
            pool = pools.get(SEED_CLIENT)
        if not pool:
            return None
        key = pool[self.rng.randrange(len(pool))]
        values = self.index_values[table][index.name][key]
        if sqltypes.NULL in values:
            return None
        return key, values

    def key_count(self, table: str, client_id: Optional[int] = None) -> int:
        pools = self.active_keys[table]
        if client_id is not None:
            return len(pools.get(client_id, ()))
        return sum(len(p) for p in pools.values())

    def live_keys(self, table: str) -> List[str]:
        return [k for pool in self.active_keys[table].values() for k in pool]

    def index_value(self, table: str, index_name: str, key: str) -> Optional[Tuple[str, ...]]:
        return self.index_values[table][index_name].get(key)


__all__ = ["SEED_CLIENT", "ConsistencyState", "KeyPool", "ValueCollision"]
