"""
Output files.

    <output_root>/<profile>/ddl.sql
    <output_root>/<profile>/data.sql
    <output_root>/<profile>/<client>.cli
    <output_root>/<profile>/<profile>-queryanalyzer.properties

A `.cli` file is a sequence of 4-line records: the marker `P`, the SQL text,
the `|`-joined parameter type tags and the `|`-joined parameter values.
"""
from __future__ import annotations

import shutil
from pathlib import Path
from typing import Dict, Iterable, List

from sqlloadgen.domain.models import GeneratedStatement
from sqlloadgen.utils.logging import get_logger

log = get_logger(__name__)

PREPARED_MARKER = "P"


def prepare_output_dir(root: Path | str, name: str) -> Path:
    """Create an empty `<root>/<name>` directory, removing any previous run."""
    path = Path(root) / name
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
    return path


def write_lines(path: Path, lines: Iterable[str]) -> Path:
    with path.open("w", encoding="utf-8", newline="\n") as f:
        for line in lines:
            f.write(line)
            f.write("\n")
    log.debug("Wrote file", extra={"path": str(path)})
    return path


def client_lines(records: Iterable[GeneratedStatement]) -> List[str]:
    lines: List[str] = []
    for record in records:
        lines.extend((PREPARED_MARKER, record.sql, "|".join(record.types), "|".join(record.values)))
    return lines


def parse_client_lines(lines: List[str]) -> List[GeneratedStatement]:
    """Inverse of `client_lines`; used to inspect generated client files."""
    if len(lines) % 4:
        raise ValueError(f"Client file has {len(lines)} lines, expected a multiple of 4")
    records: List[GeneratedStatement] = []
    for pos in range(0, len(lines), 4):
        marker, sql, types, values = lines[pos : pos + 4]
        if marker != PREPARED_MARKER:
            raise ValueError(f"Unexpected record marker '{marker}' at line {pos + 1}")
        records.append(
            GeneratedStatement(
                sql=sql,
                types=tuple(types.split("|")) if types else (),
                values=tuple(values.split("|")) if values else (),
            )
        )
    return records


def query_analyzer_lines(statements: Iterable[str]) -> List[str]:
    """
    Number every distinct statement per category (`query.select.007=…`),
    zero-padded to the width of the distinct-statement count.
    """
    distinct = sorted(set(statements))
    width = len(str(len(distinct)))
    counters: Dict[str, int] = {}
    lines: List[str] = []
    for sql in distinct:
        category = sql.split(None, 1)[0].lower()
        counters[category] = counters.get(category, 0) + 1
        lines.append(f"query.{category}.{counters[category]:0{width}d}={sql}")
    return sorted(lines)


__all__ = [
    "client_lines",
    "parse_client_lines",
    "prepare_output_dir",
    "query_analyzer_lines",
    "write_lines",
]
