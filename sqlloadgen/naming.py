"""
Constraint and index naming.

    fk_<table>_<column>_<referenced table>_<referenced column>
    uniq_<table>_<key column>_<column>
    idx_<table>_<columns joined by _>
    <table>_p<n>                        (hash partition shard)
"""
from __future__ import annotations

from enum import Enum
from typing import Sequence


class ConstraintKind(str, Enum):
    FOREIGN_KEY = "fk"
    UNIQUE = "uniq"
    INDEX = "idx"


def _part(name: str) -> str:
    return "_".join(name.replace(",", " ").split())


def derive_constraint_name(kind: ConstraintKind, table: str, columns: Sequence[str]) -> str:
    """Join the kind prefix, the table and every name part with underscores."""
    parts = [kind.value, table] + [_part(c) for c in columns]
    return "_".join(p for p in parts if p)


def partition_name(table: str, remainder: int) -> str:
    return f"{table}_p{remainder}"


__all__ = ["ConstraintKind", "derive_constraint_name", "partition_name"]
