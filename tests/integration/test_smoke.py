"""
End-to-end tests for the generation pipeline.

These tests run `run_generation` against a small profile and verify that:
1. Every expected output file is written
2. The scripts have the documented layout
3. A fixed seed reproduces the output byte for byte
"""

from __future__ import annotations

import pytest

from sqlloadgen.config import Settings
from sqlloadgen.generator import run_generation
from sqlloadgen.writer import parse_client_lines

DEFAULT_SEED = 42


@pytest.fixture
def shop_path(write_profile, shop_text):
    return write_profile(shop_text, name="shop")


def _settings(root, seed=DEFAULT_SEED) -> Settings:
    return Settings(output_root=str(root), seed=seed, show_summary=False)


class TestOutputFiles:
    """Files and layouts written by one run."""

    def test_all_files_written(self, shop_path, test_settings):
        result = run_generation(shop_path, settings=test_settings)
        assert result.output_dir.name == "shop"
        assert sorted(p.name for p in result.output_dir.iterdir()) == [
            "1.cli",
            "2.cli",
            "data.sql",
            "ddl.sql",
            "shop-queryanalyzer.properties",
        ]
        assert len(result.files) == 5
        assert [p.label for p in result.phases] == ["schema", "ddl", "seed", "workload"]

    def test_data_script_layout(self, shop_path, test_settings):
        result = run_generation(shop_path, settings=test_settings)
        lines = (result.output_dir / "data.sql").read_text(encoding="utf-8").splitlines()
        assert lines[0] == "BEGIN;"
        assert lines[-3:] == ["COMMIT;", "", "ANALYZE;"]
        assert len(lines) == 60 + 4

    def test_client_files_parse(self, shop_path, test_settings):
        result = run_generation(shop_path, settings=test_settings)
        for stats in result.clients:
            lines = (result.output_dir / f"{stats.client_id}.cli").read_text(encoding="utf-8").splitlines()
            records = parse_client_lines(lines)
            begins = [r for r in records if r.sql == "BEGIN"]
            assert len(begins) == stats.transactions
            for record in records:
                assert len(record.types) == len(record.values) == record.sql.count("?")

    def test_query_analyzer_lists_distinct_statements(self, shop_path, test_settings):
        result = run_generation(shop_path, settings=test_settings)
        entries = (result.output_dir / "shop-queryanalyzer.properties").read_text(encoding="utf-8").splitlines()
        assert entries == sorted(entries)
        assert all(e.startswith(("query.select.", "query.update.", "query.insert.", "query.delete.")) for e in entries)
        statements = [e.split("=", 1)[1] for e in entries]
        assert len(statements) == len(set(statements))

    def test_scales(self, shop_path, test_settings):
        result = run_generation(shop_path, row_scale=0.5, statement_scale=0.0, settings=test_settings)
        assert result.seed_rows == {"customers": 10, "items": 10, "orders": 10}
        assert all(stats.transactions == 0 for stats in result.clients)
        assert (result.output_dir / "1.cli").read_text(encoding="utf-8") == ""

    def test_summary_dict(self, shop_path, test_settings):
        result = run_generation(shop_path, settings=test_settings)
        summary = result.as_dict()
        assert summary["profile"] == "shop"
        assert summary["totals"]["transactions"] == sum(c.transactions for c in result.clients)


class TestDeterminism:
    """A fixed seed reproduces every file."""

    def test_same_seed_same_bytes(self, shop_path, tmp_path):
        first = run_generation(shop_path, settings=_settings(tmp_path / "a"))
        second = run_generation(shop_path, settings=_settings(tmp_path / "b"))
        for path in first.files:
            twin = second.output_dir / path.name
            assert path.read_bytes() == twin.read_bytes(), path.name

    def test_different_seed_differs(self, shop_path, tmp_path):
        first = run_generation(shop_path, settings=_settings(tmp_path / "a", seed=1))
        second = run_generation(shop_path, settings=_settings(tmp_path / "b", seed=2))
        assert (first.output_dir / "data.sql").read_bytes() != (second.output_dir / "data.sql").read_bytes()

    def test_rerun_replaces_previous_output(self, shop_path, test_settings):
        first = run_generation(shop_path, settings=test_settings)
        (first.output_dir / "stale.txt").write_text("x", encoding="utf-8")
        second = run_generation(shop_path, settings=test_settings)
        assert not (second.output_dir / "stale.txt").exists()
