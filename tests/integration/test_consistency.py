"""
Replay tests for generated scripts.

A small in-memory row store replays `data.sql` followed by every client file,
in client order, and checks each statement against the rows it would meet on
a real server:
1. Foreign keys always point at a live row
2. Keys and unique values never collide
3. NOT NULL columns never receive NULL
4. UPDATE and DELETE target live rows, and DELETE never orphans a child
5. Index and IN-list SELECTs match live rows
6. ROLLBACK restores every row but not the sequences
"""

from __future__ import annotations

import copy
import re
from typing import Dict, List, Optional

import pytest

from sqlloadgen.config import Settings
from sqlloadgen.domain.models import SchemaModel
from sqlloadgen.generator import run_generation
from sqlloadgen.properties import Profile
from sqlloadgen.schema import build_schema
from sqlloadgen.writer import parse_client_lines

NULL = "NULL"
DEFAULT = "DEFAULT"

REPLAY_EXTRA = """
statements=400
clients=3
mspt=5
rollback=25
notnull=60
mix.select=40
mix.update=20
mix.insert=25
mix.delete=15
mix.select.index=40
mix.select.in=30
mix.select.in.count=4

table.audit=Audit trail
audit.column.1=id
audit.column.1.type=bigserial
audit.column.1.primarykey=true
audit.column.2=item_sku
audit.column.2.type=bigint
audit.column.2.foreignkey.table=items
audit.column.3=note
audit.column.3.type=char(2)
audit.column.3.unique=true
audit.column.4=at
audit.column.4.type=timestamp
audit.partitions=2
index.audit.1=at
"""

_INSERT_LITERAL = re.compile(r"INSERT INTO (\w+) \((.*)\) VALUES \((.*)\);$")
_INSERT_DEFAULT = re.compile(r"INSERT INTO (\w+) DEFAULT VALUES;?$")
_INSERT_PREPARED = re.compile(r"INSERT INTO (\w+) \((.*)\) VALUES \([?, ]+\)$")
_UPDATE = re.compile(r"UPDATE (\w+) SET (.*) WHERE (\w+) = \?$")
_DELETE = re.compile(r"DELETE FROM (\w+) WHERE (\w+) = \?$")
_SELECT_IN = re.compile(r"SELECT .* FROM (\w+) WHERE (\w+) IN \([?, ]+\)$")
_SELECT_WHERE = re.compile(r"SELECT [^?]* FROM (\w+) WHERE (.*)$")


def _literals(text: str) -> List[str]:
    """Split an inline VALUES list, unquoting '...' literals."""
    values: List[str] = []
    pos = 0
    while pos < len(text):
        if text[pos] == "'":
            pos += 1
            chars = []
            while True:
                if text[pos] == "'":
                    if text[pos + 1 : pos + 2] == "'":
                        chars.append("'")
                        pos += 2
                        continue
                    pos += 1
                    break
                chars.append(text[pos])
                pos += 1
            values.append("".join(chars))
        else:
            end = text.find(",", pos)
            end = len(text) if end == -1 else end
            values.append(text[pos:end].strip())
            pos = end
        pos = text.find(",", pos)
        if pos == -1:
            break
        pos += 1
        while pos < len(text) and text[pos] == " ":
            pos += 1
    return values


class RowStore:
    """Rows per table keyed by key value, with sequences that ignore ROLLBACK."""

    def __init__(self, schema: SchemaModel) -> None:
        self.schema = schema
        self.rows: Dict[str, Dict[str, Dict[str, str]]] = {t: {} for t in schema.table_names}
        self.sequences: Dict[str, int] = {t: 0 for t in schema.table_names}
        self._saved: Optional[Dict[str, Dict[str, Dict[str, str]]]] = None
        self.checked_index_selects = 0
        self.rollbacks = 0

    def begin(self) -> None:
        self._saved = copy.deepcopy(self.rows)

    def commit(self) -> None:
        self._saved = None

    def rollback(self) -> None:
        self.rows, self._saved = self._saved, None
        self.rollbacks += 1

    def insert(self, table_name: str, values: Dict[str, str]) -> None:
        table = self.schema.table(table_name)
        key_column = table.key_column
        row = dict(values)
        if key_column.is_serial:
            self.sequences[table_name] += 1
            row[key_column.name] = str(self.sequences[table_name])
        key = row[key_column.name]
        assert key not in self.rows[table_name], f"duplicate key {table_name}.{key}"

        for column in table.columns:
            value = row.get(column.name, NULL)
            if column.not_null or column.foreign_key is not None:
                assert value != NULL, f"NULL in {table_name}.{column.name}"
            if column.foreign_key is not None:
                fk = column.foreign_key
                assert value in self.rows[fk.table], f"{table_name}.{column.name}={value} has no parent"
            if column.unique and column.name != key_column.name and value != NULL:
                taken = {r.get(column.name) for r in self.rows[table_name].values()}
                assert value not in taken, f"unique {table_name}.{column.name}={value} collides"
        self.rows[table_name][key] = row

    def update(self, table_name: str, key: str, changes: Dict[str, str]) -> None:
        table = self.schema.table(table_name)
        assert key in self.rows[table_name], f"UPDATE of missing {table_name}.{key}"
        for name, value in changes.items():
            column = table.column(name)
            assert column.foreign_key is None and not column.unique
            if column.not_null:
                assert value != NULL
        self.rows[table_name][key].update(changes)

    def delete(self, table_name: str, key: str) -> None:
        assert key in self.rows[table_name], f"DELETE of missing {table_name}.{key}"
        for child in self.schema.tables:
            for fk in child.foreign_keys:
                if fk.table == table_name:
                    assert all(r.get(fk.column) != key for r in self.rows[child.name].values())
        del self.rows[table_name][key]

    def select_where(self, table_name: str, predicate: Dict[str, str]) -> None:
        key_name = self.schema.table(table_name).key_column.name
        if list(predicate) == [key_name]:
            return
        self.checked_index_selects += 1
        matches = [
            r for r in self.rows[table_name].values() if all(r.get(c) == v for c, v in predicate.items())
        ]
        assert matches, f"index SELECT on {table_name} {predicate} matches nothing"

    def select_in(self, table_name: str, keys: List[str]) -> None:
        assert len(set(keys)) == len(keys)
        for key in keys:
            assert key in self.rows[table_name], f"IN list key {table_name}.{key} is not live"


def _apply_seed(store: RowStore, lines: List[str]) -> None:
    assert lines[0] == "BEGIN;" and lines[-3:] == ["COMMIT;", "", "ANALYZE;"]
    for sql in lines[1:-3]:
        match = _INSERT_DEFAULT.match(sql)
        if match:
            store.insert(match.group(1), {})
            continue
        match = _INSERT_LITERAL.match(sql)
        assert match, sql
        names = [n.strip() for n in match.group(2).split(",")]
        values = _literals(match.group(3))
        assert DEFAULT not in values
        store.insert(match.group(1), dict(zip(names, values)))


def _apply_record(store: RowStore, sql: str, values: List[str]) -> None:
    if sql == "BEGIN":
        store.begin()
    elif sql == "COMMIT":
        store.commit()
    elif sql == "ROLLBACK":
        store.rollback()
    elif sql.startswith("INSERT"):
        match = _INSERT_DEFAULT.match(sql)
        if match:
            store.insert(match.group(1), {})
            return
        match = _INSERT_PREPARED.match(sql)
        assert match, sql
        names = [n.strip() for n in match.group(2).split(",")]
        store.insert(match.group(1), dict(zip(names, values)))
    elif sql.startswith("UPDATE"):
        match = _UPDATE.match(sql)
        assert match, sql
        names = [a.split("=")[0].strip() for a in match.group(2).split(",")]
        store.update(match.group(1), values[-1], dict(zip(names, values[:-1])))
    elif sql.startswith("DELETE"):
        match = _DELETE.match(sql)
        assert match, sql
        store.delete(match.group(1), values[0])
    elif " t0 " in sql:
        pass
    elif _SELECT_IN.match(sql):
        store.select_in(_SELECT_IN.match(sql).group(1), values)
    else:
        match = _SELECT_WHERE.match(sql)
        assert match, sql
        columns = [p.split("=")[0].strip() for p in match.group(2).split(" AND ")]
        store.select_where(match.group(1), dict(zip(columns, values)))


@pytest.fixture
def replay_path(write_profile, shop_text):
    return write_profile(shop_text + REPLAY_EXTRA, name="replay")


@pytest.mark.parametrize("seed", [7, 42, 2024])
def test_replay_is_consistent(replay_path, tmp_path, seed):
    settings = Settings(output_root=str(tmp_path / f"out{seed}"), seed=seed, show_summary=False)
    result = run_generation(replay_path, settings=settings)
    schema = build_schema(Profile.load(replay_path))
    store = RowStore(schema)

    _apply_seed(store, (result.output_dir / "data.sql").read_text(encoding="utf-8").splitlines())
    assert {t: len(rows) for t, rows in store.rows.items()} == result.seed_rows

    for stats in result.clients:
        lines = (result.output_dir / f"{stats.client_id}.cli").read_text(encoding="utf-8").splitlines()
        for record in parse_client_lines(lines):
            _apply_record(store, record.sql, list(record.values))

    totals = result.totals
    assert store.rollbacks == totals.rollbacks > 0
    assert totals.statements["delete"] > 0
    assert store.checked_index_selects > 0
