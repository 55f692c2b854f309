"""
Column type catalogue and literal value synthesis.

Every supported SQL type spelling maps to a `TypeSpec` describing its wire type
tag (JDBC `java.sql.Types` code, as consumed by the replay tool), whether its
literals are quoted, whether it is an auto-generated serial type, whether a
B-tree index suits it and how large its value space is. `random_value` turns a
type name into a literal string.

Usage:
    from sqlloadgen import types as sqltypes

    sqltypes.validate("varchar(32)")
    sqltypes.random_value("int", rng)                     # random path
    sqltypes.random_value("int", rng, 7, randomize=False)  # "7"
"""
from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

from sqlloadgen.domain.errors import UnknownTypeError

NULL = "NULL"
DEFAULT = "DEFAULT"

VALID_CHARS = "ABCDEFGHIJKLMNOPQRSTUVXWZabcdefghijklmnopqrstuvxwz0123456789"
DEFAULT_VARCHAR_SIZE = 16
TEXT_SIZE = 256
BYTEA_SIZE = 16

EPOCH = datetime(2018, 1, 1)
_DAYS = 3650
_SECONDS_PER_DAY = 86_400

INT_MAX = 2**31 - 1
BIGINT_MAX = 2**63 - 1
SMALLINT_MAX = 2**15 - 1

# java.sql.Types
JDBC_BIT = "-7"
JDBC_BIGINT = "-5"
JDBC_BINARY = "-2"
JDBC_CHAR = "1"
JDBC_NUMERIC = "2"
JDBC_DECIMAL = "3"
JDBC_INTEGER = "4"
JDBC_SMALLINT = "5"
JDBC_REAL = "7"
JDBC_DOUBLE = "8"
JDBC_VARCHAR = "12"
JDBC_BOOLEAN = "16"
JDBC_DATE = "91"
JDBC_TIME = "92"
JDBC_TIMESTAMP = "93"
JDBC_OTHER = "1111"
JDBC_TIME_WITH_TIMEZONE = "2013"
JDBC_TIMESTAMP_WITH_TIMEZONE = "2014"

ValueFactory = Callable[[random.Random, int, int, bool], str]


@dataclass(frozen=True)
class TypeSpec:
    """
    Behaviour of one family of type spellings.

    `deterministic` types render the row hint when asked for a non-random
    value, which gives distinct values for distinct hints without a retry loop.
    """

    jdbc: str
    factory: ValueFactory
    quoted: bool = False
    serial: bool = False
    btree: bool = True
    deterministic: bool = False
    value_space: Optional[Callable[[int], int]] = None


def _chars(rng: random.Random, size: int) -> str:
    return "".join(rng.choice(VALID_CHARS) for _ in range(size))


def _integer(upper: int) -> ValueFactory:
    def factory(rng: random.Random, size: int, row: int, randomize: bool) -> str:
        if randomize:
            return str(rng.randint(1, upper))
        return str(row)

    return factory


def _smallint(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    if randomize or row < 1 or row > SMALLINT_MAX:
        return str(rng.randint(1, SMALLINT_MAX))
    return str(row)


def _double(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    if randomize:
        return repr(rng.random())
    return repr(float(row))


def _real(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    if randomize:
        return f"{rng.random():.6f}"
    return repr(float(row))


def _boolean(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return "true" if rng.random() < 0.5 else "false"


def _char(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return _chars(rng, size or 1)


def _varchar(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return _chars(rng, size or DEFAULT_VARCHAR_SIZE)


def _text(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return _chars(rng, TEXT_SIZE)


def _bytea(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return "\\x" + bytes(rng.getrandbits(8) for _ in range(BYTEA_SIZE)).hex()


def _uuid(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def _date(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    days = rng.randrange(_DAYS) if randomize else row
    return (EPOCH + timedelta(days=days)).strftime("%Y-%m-%d")


def _time(suffix: str) -> ValueFactory:
    def factory(rng: random.Random, size: int, row: int, randomize: bool) -> str:
        seconds = rng.randrange(_SECONDS_PER_DAY) if randomize else row % _SECONDS_PER_DAY
        return (EPOCH + timedelta(seconds=seconds)).strftime("%H:%M:%S") + suffix

    return factory


def _timestamp(suffix: str) -> ValueFactory:
    def factory(rng: random.Random, size: int, row: int, randomize: bool) -> str:
        seconds = rng.randrange(_DAYS * _SECONDS_PER_DAY) if randomize else row
        return (EPOCH + timedelta(seconds=seconds)).strftime("%Y-%m-%d %H:%M:%S") + suffix

    return factory


def _serial(rng: random.Random, size: int, row: int, randomize: bool) -> str:
    return DEFAULT


_INTEGER = TypeSpec(JDBC_INTEGER, _integer(INT_MAX), deterministic=True)
_BIGINT = TypeSpec(JDBC_BIGINT, _integer(BIGINT_MAX), deterministic=True)
_SMALLINT = TypeSpec(
    JDBC_SMALLINT, _smallint, deterministic=True, value_space=lambda size: SMALLINT_MAX
)
_BOOLEAN = TypeSpec(JDBC_BOOLEAN, _boolean, value_space=lambda size: 2)
_BIT = TypeSpec(JDBC_BIT, _boolean, value_space=lambda size: 2)
_CHAR = TypeSpec(
    JDBC_CHAR, _char, quoted=True, value_space=lambda size: len(VALID_CHARS) ** (size or 1)
)
_VARCHAR = TypeSpec(JDBC_VARCHAR, _varchar, quoted=True, btree=False)
_TIME = TypeSpec(JDBC_TIME, _time(""), quoted=True, deterministic=True)
_TIMETZ = TypeSpec(JDBC_TIME_WITH_TIMEZONE, _time("+00"), quoted=True, deterministic=True)
_TIMESTAMP = TypeSpec(JDBC_TIMESTAMP, _timestamp(""), quoted=True, deterministic=True)
_TIMESTAMPTZ = TypeSpec(
    JDBC_TIMESTAMP_WITH_TIMEZONE, _timestamp("+00"), quoted=True, deterministic=True
)

_CATALOGUE: Dict[str, TypeSpec] = {
    "bigint": _BIGINT,
    "int8": _BIGINT,
    "bigserial": TypeSpec(JDBC_BIGINT, _serial, serial=True),
    "serial8": TypeSpec(JDBC_BIGINT, _serial, serial=True),
    "bit": _BIT,
    "bit varying": _BIT,
    "varbit": _BIT,
    "boolean": _BOOLEAN,
    "bool": _BOOLEAN,
    "bytea": TypeSpec(JDBC_BINARY, _bytea, quoted=True),
    "character": _CHAR,
    "char": _CHAR,
    "character varying": _VARCHAR,
    "varchar": _VARCHAR,
    "date": TypeSpec(JDBC_DATE, _date, quoted=True, deterministic=True),
    "double precision": TypeSpec(JDBC_DOUBLE, _double, deterministic=True),
    "float8": TypeSpec(JDBC_DOUBLE, _double, deterministic=True),
    "integer": _INTEGER,
    "int": _INTEGER,
    "int4": _INTEGER,
    "numeric": TypeSpec(JDBC_NUMERIC, _integer(INT_MAX), deterministic=True),
    "decimal": TypeSpec(JDBC_DECIMAL, _integer(INT_MAX), deterministic=True),
    "real": TypeSpec(JDBC_REAL, _real, deterministic=True),
    "float4": TypeSpec(JDBC_REAL, _real, deterministic=True),
    "smallint": _SMALLINT,
    "int2": _SMALLINT,
    "smallserial": TypeSpec(JDBC_SMALLINT, _serial, serial=True),
    "serial2": TypeSpec(JDBC_SMALLINT, _serial, serial=True),
    "serial": TypeSpec(JDBC_INTEGER, _serial, serial=True),
    "serial4": TypeSpec(JDBC_INTEGER, _serial, serial=True),
    "text": TypeSpec(JDBC_VARCHAR, _text, quoted=True, btree=False),
    "time": _TIME,
    "time without time zone": _TIME,
    "time with time zone": _TIMETZ,
    "timetz": _TIMETZ,
    "timestamp": _TIMESTAMP,
    "timestamp without time zone": _TIMESTAMP,
    "timestamp with time zone": _TIMESTAMPTZ,
    "timestamptz": _TIMESTAMPTZ,
    "uuid": TypeSpec(JDBC_OTHER, _uuid, quoted=True),
}


def parse_type(type_name: str) -> Tuple[str, int]:
    """
    Split a spelling such as ``VARCHAR(32)`` into ``("varchar", 32)``.

    A missing or empty length gives 0. `numeric(10,2)` keeps the precision.
    """
    base = type_name
    size = 0
    if "(" in base:
        inner = base[base.index("(") + 1 : base.index(")") if ")" in base else len(base)]
        head = inner.split(",")[0].strip()
        base = base[: base.index("(")]
        if head:
            try:
                size = int(head)
            except ValueError as exc:
                raise UnknownTypeError(type_name, "invalid length") from exc
    return " ".join(base.lower().split()), size


def lookup(type_name: str) -> TypeSpec:
    base, _ = parse_type(type_name)
    try:
        return _CATALOGUE[base]
    except KeyError:
        raise UnknownTypeError(type_name) from None


def validate(type_name: str) -> None:
    """Raise UnknownTypeError unless `type_name` is in the catalogue."""
    lookup(type_name)


def wire_type(type_name: str) -> str:
    return lookup(type_name).jdbc


def needs_quoting(type_name: str) -> bool:
    return lookup(type_name).quoted


def is_serial(type_name: str) -> bool:
    return lookup(type_name).serial


def is_btree_compatible(type_name: str) -> bool:
    """Character types are hash-indexed by convention; everything else uses B-tree."""
    return lookup(type_name).btree


def supports_row_hint(type_name: str) -> bool:
    return lookup(type_name).deterministic


def value_space(type_name: str) -> Optional[int]:
    """Number of distinct values the generator can produce, or None when large."""
    entry = lookup(type_name)
    if entry.value_space is None:
        return None
    return entry.value_space(parse_type(type_name)[1])


def random_value(
    type_name: str,
    rng: random.Random,
    row_hint: int = 0,
    randomize: bool = True,
    nullable: bool = False,
    not_null_target: int = 100,
) -> str:
    """
    Produce a literal for `type_name`.

    Parameters
    ----------
    rng : random.Random
        The shared pseudo-random source.
    row_hint : int
        Row number used by the deterministic path.
    randomize : bool
        False selects the deterministic path for types that support it.
    nullable : bool
        Whether the column may receive NULL at all.
    not_null_target : int
        Percentage of non-NULL values for nullable columns.
    """
    entry = lookup(type_name)
    if entry.serial:
        return DEFAULT
    if nullable and not_null_target < 100 and rng.randrange(100) >= not_null_target:
        return NULL
    return entry.factory(rng, parse_type(type_name)[1], row_hint, randomize)


def sql_literal(type_name: str, value: str) -> str:
    """Render `value` for inline SQL, quoting and escaping where the type needs it."""
    if value in (NULL, DEFAULT) or not needs_quoting(type_name):
        return value
    return "'" + value.replace("'", "''") + "'"


__all__ = [
    "NULL",
    "DEFAULT",
    "TypeSpec",
    "parse_type",
    "lookup",
    "validate",
    "wire_type",
    "needs_quoting",
    "is_serial",
    "is_btree_compatible",
    "supports_row_hint",
    "value_space",
    "random_value",
    "sql_literal",
]
