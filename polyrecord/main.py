from __future__ import annotations

import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, List

import typer
from rich.console import Console

from polyrecord.codec.registry import get_registry
from polyrecord.config import get_settings
from polyrecord.domain.envelope import build_record, dump_record
from polyrecord.reporter import render_validation_report
from polyrecord.utils.logging import configure_logging

app = typer.Typer(help="polyrecord CLI: validate and inspect activity feed records.")


def _read_records(path: Path) -> List[Any]:
    """
    Read raw records from a JSON array or a JSON Lines file.

    Numbers with a fractional part are parsed as Decimal so amounts keep
    their exact value.
    """
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("["):
        data = json.loads(stripped, parse_float=Decimal)
        return list(data)
    return [json.loads(line, parse_float=Decimal) for line in text.splitlines() if line.strip()]


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"table={settings.activity_table} env={settings.app_env} "
        f"registry_require_complete={settings.registry_require_complete}"
    )


@app.command()
def variants() -> None:
    """
    List registered activity types and their payload fields.
    """
    registry = get_registry()
    for tag, codec in registry.codecs.items():
        fields = [
            f"{name}{'' if field.is_required() else '?'}"
            for name, field in codec.payload_model.model_fields.items()
            if name != "type"
        ]
        typer.echo(f"{tag.value}: {', '.join(fields)}")


@app.command()
def validate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON array or JSON Lines file."),
    dump: bool = typer.Option(False, "--dump", help="Print storage rows for the valid records."),
) -> None:
    """
    Validate raw activity records and report every failing field.

    Exits with status 1 when at least one record is invalid.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        raw_records = _read_records(path)
    except (ValueError, TypeError) as exc:
        typer.echo(f"Could not parse {path}: {exc}", err=True)
        raise typer.Exit(code=2)

    registry = get_registry()
    results = [build_record(raw, registry) for raw in raw_records]
    render_validation_report(results, console=Console())

    if dump:
        rows = [dump_record(result.record, registry) for result in results if result.record is not None]
        typer.echo(json.dumps(rows, indent=2))

    if any(not result.ok for result in results):
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
