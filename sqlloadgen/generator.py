"""
Run orchestration: profile → schema → DDL → seed data → client workloads.

Usage (example from CLI):
    from sqlloadgen.generator import run_generation

    result = run_generation("shop.properties", row_scale=0.1)
    print(result.output_dir)

Outputs are written to `<output_root>/<profile name>/`. The directory is only
created once the schema, DDL and seed data have been generated successfully.
"""

from __future__ import annotations

import contextlib
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Generator, List, Optional

from sqlloadgen.config import Settings, get_settings
from sqlloadgen.ddl import emit_ddl
from sqlloadgen.properties import Profile
from sqlloadgen.rows import RowFactory
from sqlloadgen.schema import build_schema
from sqlloadgen.seed import generate_seed
from sqlloadgen.state import ConsistencyState
from sqlloadgen.utils.logging import get_logger
from sqlloadgen.utils.profiler import ProfileStats, profile_block
from sqlloadgen.workload import ClientStats, WorkloadGenerator
from sqlloadgen.writer import client_lines, prepare_output_dir, query_analyzer_lines, write_lines

log = get_logger(__name__)


@dataclass
class GenerationResult:
    profile: str
    output_dir: Path
    tables: List[str]
    seed_rows: Dict[str, int]
    clients: List[ClientStats] = field(default_factory=list)
    phases: List[ProfileStats] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)

    @property
    def totals(self) -> ClientStats:
        total = ClientStats(client_id=0)
        for stats in self.clients:
            total.merge(stats)
        return total

    def as_dict(self) -> dict:
        return {
            "profile": self.profile,
            "output_dir": str(self.output_dir),
            "tables": self.tables,
            "seed_rows": self.seed_rows,
            "clients": [c.as_dict() for c in self.clients],
            "totals": self.totals.as_dict(),
            "phases": [p.as_dict() for p in self.phases],
            "files": [str(f) for f in self.files],
        }


@contextlib.contextmanager
def _phase(name: str, phases: List[ProfileStats]) -> Generator[ProfileStats, None, None]:
    log.info(f"[PHASE START] {name}", extra={"phase": name})
    with profile_block(name) as stats:
        yield stats
    phases.append(stats)
    log.info(
        f"[PHASE COMPLETE] {name}",
        extra={"phase": name, "duration": round(stats.duration_seconds, 3), **stats.extra},
    )


def run_generation(
    configuration: Optional[str] = None,
    row_scale: float = 1.0,
    statement_scale: float = 1.0,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> GenerationResult:
    """
    Generate DDL, seed data and every client workload for one profile.

    Parameters
    ----------
    configuration : str | None
        Profile path with or without the `.properties` suffix. Defaults to
        settings.default_profile.
    row_scale : float
        Multiplier for configured seed row counts.
    statement_scale : float
        Multiplier for configured per-client statement budgets.
    settings : Settings | None
        Runtime settings; defaults to the cached environment settings.
    rng : random.Random | None
        Shared random source; defaults to one seeded from settings.seed.

    Returns
    -------
    GenerationResult
        Per-client statistics, phase timings and the written files.
    """
    settings = settings or get_settings()
    configuration = configuration or settings.default_profile
    rng = rng or random.Random(settings.seed)
    phases: List[ProfileStats] = []

    with _phase("schema", phases) as stats:
        profile = Profile.load(configuration)
        schema = build_schema(profile)
        stats.extra["tables"] = len(schema.tables)

    with _phase("ddl", phases) as stats:
        ddl = emit_ddl(schema, settings.engine_version)
        stats.extra["statements"] = len(ddl)

    state = ConsistencyState(schema, rng, max_attempts=settings.max_value_attempts)
    factory = RowFactory(state, profile, rng)

    with _phase("seed", phases) as stats:
        seed = generate_seed(schema, factory, profile, row_scale)
        stats.extra["rows"] = sum(seed.rows.values())

    output_dir = prepare_output_dir(settings.output_root, profile.name)
    result = GenerationResult(
        profile=profile.name,
        output_dir=output_dir,
        tables=schema.table_names,
        seed_rows=dict(seed.rows),
        phases=phases,
    )
    result.files.append(write_lines(output_dir / "ddl.sql", ddl))
    result.files.append(write_lines(output_dir / "data.sql", seed.script))

    workload = WorkloadGenerator(
        schema, state, factory, profile, rng, max_slot_attempts=settings.max_slot_attempts
    )
    distinct: set = set()
    with _phase("workload", phases) as stats:
        for client in workload.run(statement_scale):
            result.files.append(
                write_lines(output_dir / f"{client.client_id}.cli", client_lines(client.records))
            )
            distinct.update(r.sql for r in client.records if r.kind is not None)
            result.clients.append(client.stats)
        stats.extra["clients"] = len(result.clients)
        stats.extra["distinct_statements"] = len(distinct)

    result.files.append(
        write_lines(
            output_dir / f"{profile.name}-queryanalyzer.properties",
            query_analyzer_lines(distinct),
        )
    )

    log.info(
        "[GENERATION COMPLETE]",
        extra={"profile": profile.name, "output_dir": str(output_dir), "files": len(result.files)},
    )
    return result


__all__ = ["GenerationResult", "run_generation"]
