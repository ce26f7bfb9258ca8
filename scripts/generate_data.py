"""
Synthetic activity feed generator.

Implements deterministic pseudo-random raw activity generation, validates each
record through the envelope, writes the resulting storage rows as JSON Lines
and optionally inserts them into Postgres through the activity store.
"""

from __future__ import annotations

import json
import random
import sys
import time
import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Iterator

import typer

from polyrecord.codec.discriminator import ActivityType
from polyrecord.codec.registry import get_registry
from polyrecord.domain.envelope import ActivityRecord, build_record, dump_record
from polyrecord.infrastructure.activity_store import ActivityStore

app = typer.Typer(help="Generate a synthetic activity feed (JSON Lines) and optionally load it into Postgres.")

_MERCHANTS = [
    ("Corner Grocery", "5411"),
    ("City Transit", "4111"),
    ("Bookshop", "5942"),
    ("Coffee Bar", "5814"),
]
_EPOCH = datetime(2021, 1, 1, tzinfo=UTC)


def _raw_activity(rng: random.Random) -> dict[str, Any]:
    """Build one raw (string-keyed, text-valued) activity as an API client would send it."""
    kind = rng.choice(list(ActivityType))
    seen_at = _EPOCH + timedelta(minutes=rng.randint(0, 525_600))
    raw: dict[str, Any] = {
        "id": str(uuid.UUID(int=rng.getrandbits(128), version=4)),
        "type": kind.value,
    }

    if kind is ActivityType.DEPOSIT:
        raw["amount"] = f"{rng.uniform(10, 5_000):.2f}"
        raw["initiated_at"] = seen_at.isoformat()
        if rng.random() < 0.8:
            raw["completed_at"] = (seen_at + timedelta(hours=rng.randint(1, 72))).isoformat()
    elif kind is ActivityType.INTEREST:
        raw["amount"] = f"{rng.uniform(0.01, 25):.2f}"
        raw["accrual_date"] = seen_at.date().isoformat()
        raw["rate"] = f"{rng.uniform(0.001, 0.05):.6f}"
    else:
        merchant, mcc = rng.choice(_MERCHANTS)
        raw["amount"] = f"-{rng.uniform(1, 300):.2f}"
        raw["merchant_name"] = merchant
        raw["merchant_category_code"] = mcc
        raw["card_last_four"] = f"{rng.randint(0, 9999):04d}"
    return raw


def _generate_records(rows: int, seed: int) -> Iterator[ActivityRecord]:
    rng = random.Random(seed)
    registry = get_registry()
    for _ in range(rows):
        yield build_record(_raw_activity(rng), registry).unwrap()


def _write_jsonl(jsonl_path: Path, records: list[ActivityRecord]) -> None:
    registry = get_registry()
    with jsonl_path.open("w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(dump_record(record, registry), sort_keys=True))
            f.write("\n")


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of activities to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("activity_feed.jsonl"),
        "--output",
        "-o",
        help="JSON Lines output path.",
    ),
    load: bool = typer.Option(
        False,
        "--load",
        help="Also insert the generated records into Postgres.",
    ),
) -> None:
    """
    Generate synthetic activities and optionally load them into Postgres.
    """
    start = time.perf_counter()
    output.parent.mkdir(parents=True, exist_ok=True)

    typer.echo(f"Generating {rows:,} activities -> {output} (seed={seed})")
    records = list(_generate_records(rows, seed))
    _write_jsonl(output, records)
    gen_duration = time.perf_counter() - start
    typer.echo(f"Generation completed in {gen_duration:.2f}s")

    if not load:
        return

    store = ActivityStore()
    store.ensure_table()
    written = store.insert_many(records)
    typer.echo(f"Inserted {written:,} rows into {store.table}.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
