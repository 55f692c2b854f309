from __future__ import annotations

import pytest

from sqlloadgen.domain.models import GeneratedStatement
from sqlloadgen.writer import (
    client_lines,
    parse_client_lines,
    prepare_output_dir,
    query_analyzer_lines,
    write_lines,
)


def test_client_lines_are_four_line_records():
    records = [
        GeneratedStatement.control("BEGIN"),
        GeneratedStatement(sql="SELECT a, b FROM t WHERE a = ?", types=("4",), values=("7",), kind="select"),
        GeneratedStatement(sql="UPDATE t SET b = ?, c = ? WHERE a = ?", types=("12", "91", "4"), values=("x", "2018-01-01", "7")),
        GeneratedStatement.control("COMMIT"),
    ]
    lines = client_lines(records)
    assert lines == [
        "P", "BEGIN", "", "",
        "P", "SELECT a, b FROM t WHERE a = ?", "4", "7",
        "P", "UPDATE t SET b = ?, c = ? WHERE a = ?", "12|91|4", "x|2018-01-01|7",
        "P", "COMMIT", "", "",
    ]
    assert parse_client_lines(lines) == records


def test_parse_rejects_broken_files():
    with pytest.raises(ValueError, match="multiple of 4"):
        parse_client_lines(["P", "BEGIN", ""])
    with pytest.raises(ValueError, match="Unexpected record marker"):
        parse_client_lines(["Q", "BEGIN", "", ""])


def test_query_analyzer_numbering_is_padded():
    statements = [f"SELECT {n} FROM t" for n in range(10)] + ["DELETE FROM t WHERE a = ?", "SELECT 0 FROM t"]
    lines = query_analyzer_lines(statements)
    assert len(lines) == 11
    assert lines[0] == "query.delete.01=DELETE FROM t WHERE a = ?"
    assert lines[1] == "query.select.01=SELECT 0 FROM t"
    assert lines[-1] == "query.select.10=SELECT 9 FROM t"


def test_query_analyzer_of_nothing():
    assert query_analyzer_lines([]) == []


def test_prepare_output_dir_replaces_previous_run(tmp_path):
    first = prepare_output_dir(tmp_path, "shop")
    write_lines(first / "stale.cli", ["P"])
    second = prepare_output_dir(tmp_path, "shop")
    assert second == tmp_path / "shop"
    assert list(second.iterdir()) == []


def test_write_lines_terminates_every_line(tmp_path):
    path = write_lines(tmp_path / "x.sql", ["BEGIN;", "", "COMMIT;"])
    assert path.read_text(encoding="utf-8") == "BEGIN;\n\nCOMMIT;\n"
