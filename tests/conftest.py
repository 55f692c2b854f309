"""
Pytest configuration for the SQL load generator.

Provides fixtures for:
- Writing profile text to a temporary `.properties` file
- A seeded random source
- Built schema / state / row factory for a profile
- Settings that write into a temporary output root
"""

from __future__ import annotations

import random
import textwrap
from pathlib import Path
from typing import Callable, Tuple

import pytest

from sqlloadgen.config import Settings
from sqlloadgen.domain.models import SchemaModel
from sqlloadgen.properties import Profile, parse_properties
from sqlloadgen.rows import RowFactory
from sqlloadgen.schema import build_schema
from sqlloadgen.state import ConsistencyState

SHOP_PROFILE = """
    rows=20
    clients=2
    statements=60
    mspt=4

    table.customers=Customers
    customers.column.1=id
    customers.column.1.type=serial
    customers.column.1.primarykey=true
    customers.column.2=name
    customers.column.2.type=varchar(16)
    customers.column.2.notnull=true
    customers.column.2.description=Full name

    table.orders=Orders placed by customers
    orders.column.1=id
    orders.column.1.type=int
    orders.column.1.primarykey=true
    orders.column.2=customer_id
    orders.column.2.type=int
    orders.column.2.foreignkey.table=customers
    orders.column.2.foreignkey.column=id
    orders.column.3=amount
    orders.column.3.type=numeric
    orders.column.4=status
    orders.column.4.type=varchar(8)

    table.items=
    items.column.1=sku
    items.column.1.type=bigint
    items.column.1.primarykey=true
    items.column.2=code
    items.column.2.type=uuid
    items.column.2.unique=true
    items.column.3=price
    items.column.3.type=int
    items.column.4=label
    items.column.4.type=text
    index.items.1=price
    index.items.2=label
"""


def profile_text(text: str) -> str:
    return textwrap.dedent(text).strip() + "\n"


@pytest.fixture
def write_profile(tmp_path: Path) -> Callable[..., str]:
    """
    Write profile text to `<tmp>/<name>.properties` and return the path.
    """

    def _write(text: str, name: str = "shop") -> str:
        path = tmp_path / f"{name}.properties"
        path.write_text(profile_text(text), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_profile() -> Callable[[str], Profile]:
    def _make(text: str) -> Profile:
        return Profile(parse_properties(profile_text(text)), name="test")

    return _make


@pytest.fixture
def build(make_profile, rng) -> Callable[..., Tuple[Profile, SchemaModel, ConsistencyState, RowFactory]]:
    """
    Build (profile, schema, state, factory) for profile text.
    """

    def _build(text: str, max_attempts: int = 1000):
        profile = make_profile(text)
        schema = build_schema(profile)
        state = ConsistencyState(schema, rng, max_attempts=max_attempts)
        factory = RowFactory(state, profile, rng)
        return profile, schema, state, factory

    return _build


@pytest.fixture
def shop(build):
    return build(SHOP_PROFILE)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """
    Settings writing into a temporary output root with a fixed seed.
    """
    return Settings(
        output_root=str(tmp_path / "out"),
        seed=42,
        show_summary=False,
        log_level="DEBUG",
    )


@pytest.fixture
def shop_text() -> str:
    return SHOP_PROFILE
