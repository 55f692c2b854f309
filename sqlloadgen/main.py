from __future__ import annotations

import sys
from typing import Optional

import typer

from sqlloadgen.config import get_settings
from sqlloadgen.generator import run_generation
from sqlloadgen.reporter import print_summary
from sqlloadgen.utils.logging import configure_logging, get_logger

app = typer.Typer(
    help="Generate a schema, seed data and a multi-client SQL workload for replay.",
    add_completion=False,
    pretty_exceptions_enable=False,
)
log = get_logger(__name__)


@app.command()
def generate(
    row_scale: float = typer.Option(
        1.0,
        "-s",
        "--scale",
        help="Multiplier applied to configured seed row counts.",
    ),
    statement_scale: float = typer.Option(
        1.0,
        "-t",
        "--statement-scale",
        help="Multiplier applied to configured per-client statement counts.",
    ),
    configuration: Optional[str] = typer.Option(
        None,
        "-c",
        "--configuration",
        help="Profile (.properties) to load; the output directory is named after it.",
    ),
) -> None:
    """
    Write ddl.sql, data.sql, one <client>.cli per client and the query analyzer
    profile into a directory named after the configuration.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    try:
        result = run_generation(
            configuration=configuration,
            row_scale=row_scale,
            statement_scale=statement_scale,
            settings=settings,
        )
    except Exception:
        log.exception("Generation failed", extra={"configuration": configuration})
        raise typer.Exit(code=1)

    if settings.show_summary:
        print_summary(result)
    typer.echo(str(result.output_dir))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
