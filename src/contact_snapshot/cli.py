"""Command-line interface for the contact snapshot report.

Provides subcommands: `gold` (rebuild the precomputed snapshot collection)
and `report` (print the counselor × month grid for one school). Each
command is implemented as a `cmd_*` function that accepts an argparse
namespace.
"""
from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Any, List
from typing import cast, Any as TypingAny

import pandas as pd
import dask.dataframe as dd

from contact_snapshot.academic_year import generate_window
from contact_snapshot.config import Settings, get_settings
from contact_snapshot.logging_config import configure_logging
from contact_snapshot.db import connect
from contact_snapshot.models import Role

# GOLD
from contact_snapshot.aggregate.build_gold import GOLD_KEY_FIELDS, gold_contact_snapshot
from contact_snapshot.aggregate.load_gold import load_gold

# REPORT
from contact_snapshot.aggregate.resolver import AggregationResolver
from contact_snapshot.sources import PrecomputedSource, RawRecordSource
from contact_snapshot.pivot.frames import breakdown_frame, grid_frame
from contact_snapshot.pivot.view import FetchStatus, ViewController

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _load_collection_to_ddf(
    collection: Any,
    projection: dict[str, Any],
    batch_size: int = 50_000,
) -> Any:
    """Load a MongoDB collection into a Dask DataFrame using batched reads."""
    cursor = collection.find({}, projection).batch_size(batch_size)

    pdf_batches: List[pd.DataFrame] = []
    buffer: List[dict[str, Any]] = []

    for doc in cursor:
        buffer.append(doc)
        if len(buffer) >= batch_size:
            pdf_batches.append(pd.DataFrame(buffer))
            buffer.clear()

    if buffer:
        pdf_batches.append(pd.DataFrame(buffer))

    dd_mod = cast(TypingAny, dd)
    if not pdf_batches:
        return dd_mod.from_pandas(pd.DataFrame(), npartitions=1)

    pdf = pd.concat(pdf_batches, ignore_index=True)
    nparts = max(1, len(pdf) // 200_000)

    log.info("Loaded %d documents into %d Dask partitions", len(pdf), nparts)
    return dd_mod.from_pandas(pdf, npartitions=nparts)


def _counselor_names(profiles: Any) -> pd.DataFrame:
    """Return a small `counselor_id → counselor_name` frame from profiles."""
    docs = list(profiles.find({}, {"_id": False, "id": True, "full_name": True}))
    pdf = pd.DataFrame(docs, columns=["id", "full_name"])
    return pdf.dropna(subset=["id"]).rename(
        columns={"id": "counselor_id", "full_name": "counselor_name"}
    ).drop_duplicates(subset=["counselor_id"])


def build_controller(settings: Settings, args: argparse.Namespace) -> ViewController:
    """Wire the Mongo-backed sources, resolver and a view controller."""
    db = connect(settings)
    resolver = AggregationResolver(
        primary=PrecomputedSource(db[settings.snapshot_collection]),
        fallback=RawRecordSource(db[settings.notes_collection], db[settings.profiles_collection]),
    )
    return ViewController(
        resolver,
        role=args.role,
        identity=args.identity,
        window=generate_window(args.as_of),
    )


# --------------------------------------------------
# GOLD
# --------------------------------------------------
def cmd_gold(_: argparse.Namespace) -> None:
    """Compute the contact snapshot from raw notes and upsert it into Mongo."""
    s = get_settings()
    db = connect(s)

    ddf = _load_collection_to_ddf(
        db[s.notes_collection],
        {"_id": False, "school_id": True, "counselor_id": True, "note_type": True, "created_at": True},
    )
    if len(ddf.columns) == 0:
        raise RuntimeError(f"{s.notes_collection} is empty. Nothing to aggregate.")

    if "counselor_id" in ddf.columns:
        names = _counselor_names(db[s.profiles_collection])
        ddf = ddf.merge(names, on="counselor_id", how="left")

    load_gold(gold_contact_snapshot(ddf), db[s.snapshot_collection], GOLD_KEY_FIELDS)
    log.info("Contact snapshot successfully generated.")


# --------------------------------------------------
# REPORT
# --------------------------------------------------
def cmd_report(args: argparse.Namespace) -> int:
    """Resolve the snapshot for one school and print the grid to stdout.

    Returns:
        Process exit code: 0 on success, 1 when the data could not be loaded.
    """
    if args.role == Role.COUNSELOR.value and not args.identity:
        raise SystemExit("--identity is required for --role counselor")

    controller = build_controller(get_settings(), args)
    model = controller.refresh(args.school)

    if controller.status is FetchStatus.FAILED:
        print(f"Error: {controller.error}")
        return 1

    first, last = controller.window[0], controller.window[-1]
    source = controller.resolution.source if controller.resolution else "-"
    print(f"Contact snapshot {first.long_label} - {last.long_label} (source: {source})")

    if model.is_empty:
        print("No contacts logged in this school year.")
        return 0

    with pd.option_context("display.width", 200, "display.max_columns", None):
        print(grid_frame(model).to_string())

        if args.expand:
            controller.toggle_expanded(args.expand)
            breakdown = controller.expanded_breakdown()
            print()
            print(f"Breakdown for {args.expand}:")
            print(breakdown_frame(model, breakdown).to_string() if breakdown else "(no contacts)")

    print(f"Grand total: {model.grand_total}")
    return 0


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="contact-snapshot")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("gold")

    p_report = sub.add_parser("report")
    p_report.add_argument("--school", required=True)
    p_report.add_argument("--role", choices=[r.value for r in Role], default=Role.ADMIN.value)
    p_report.add_argument("--identity", default=None)
    p_report.add_argument("--as-of", type=date.fromisoformat, default=None)
    p_report.add_argument("--expand", default=None, metavar="COUNSELOR_ID")

    return p


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    configure_logging(Path("logs/contact_snapshot.log"))

    args = build_parser().parse_args()

    if args.cmd == "gold":
        cmd_gold(args)
    elif args.cmd == "report":
        raise SystemExit(cmd_report(args))
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
