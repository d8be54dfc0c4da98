"""Command-line interface for monthly rollups.

Provides subcommands `month` (one rollup printed as JSON) and `year` (the
twelve months of a year, optionally exported to the Gold layer). Each command
is implemented as a `cmd_*` function that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import logging
from typing import Any, Sequence

from dotenv import load_dotenv
from pymongo.database import Database

from venue_rollups.batch import build_rollups, year_periods
from venue_rollups.config import Settings, get_settings
from venue_rollups.db import get_client, get_db
from venue_rollups.engine.assembler import MonthlyRollupAssembler
from venue_rollups.export.frame import rollups_to_frame
from venue_rollups.export.load_rollups import gold_collection_name, load_rollups
from venue_rollups.logging_config import configure_logging
from venue_rollups.periods.overlap import overlaps_frame
from venue_rollups.policies.tables import POLICY_TABLES, SOURCE_WEEK_FIELDS, get_policy_table
from venue_rollups.store.mongo import mongo_stores_for

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _assembler(s: Settings, db: Database[dict[str, Any]], report: str, prefetch: bool) -> MonthlyRollupAssembler:
    """Return an assembler for `report` reading from the Mongo database `db`."""
    table = get_policy_table(report)
    stores = mongo_stores_for(db, table.sources, SOURCE_WEEK_FIELDS, table.columns_by_source)
    return MonthlyRollupAssembler(
        table,
        stores,
        max_fallback_hops=s.fallback_hops,
        prefetch_prior_month=prefetch,
    )


# --------------------------------------------------
# MONTH
# --------------------------------------------------
def cmd_month(args: argparse.Namespace) -> None:
    """Print one monthly rollup as JSON.

    Args:
        args: argparse namespace with `entity`, `month`, `year`, `report`,
            `prefetch`.
    """
    s = get_settings()
    client = get_client(s.mongo_uri)
    db = get_db(client, s.mongo_db)

    try:
        rollup = _assembler(s, db, args.report, args.prefetch).build(
            args.entity, args.month, args.year
        )
    finally:
        client.close()

    log.info("Weeks of %s:\n%s", rollup.month_key, overlaps_frame(rollup.weeks).to_string(index=False))
    print(rollup.model_dump_json(indent=2))


# --------------------------------------------------
# YEAR
# --------------------------------------------------
def cmd_year(args: argparse.Namespace) -> None:
    """Build all twelve rollups of a year; optionally upsert them to Gold.

    Args:
        args: argparse namespace with `entity`, `year`, `report`, `export`.
    """
    s = get_settings()
    client = get_client(s.mongo_uri)
    db = get_db(client, s.mongo_db)

    try:
        assembler = _assembler(s, db, args.report, prefetch=False)
        rollups = build_rollups(assembler, args.entity, year_periods(args.year))

        pdf = rollups_to_frame(rollups)
        log.info("%s rollups for entity=%d:\n%s", args.report, args.entity, pdf.to_string(index=False))

        if args.export:
            load_rollups(rollups, db[gold_collection_name(args.report)])
    finally:
        client.close()


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser with `month` and `year`
        subcommands.
    """
    p = argparse.ArgumentParser(prog="venue_rollups")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_month = sub.add_parser("month")
    p_month.add_argument("--entity", type=int, required=True)
    p_month.add_argument("--month", type=int, required=True)
    p_month.add_argument("--year", type=int, required=True)
    p_month.add_argument("--report", choices=sorted(POLICY_TABLES), default="cmv")
    p_month.add_argument("--prefetch", action="store_true")

    p_year = sub.add_parser("year")
    p_year.add_argument("--entity", type=int, required=True)
    p_year.add_argument("--year", type=int, required=True)
    p_year.add_argument("--report", choices=sorted(POLICY_TABLES), default="cmv")
    p_year.add_argument("--export", action="store_true")

    return p


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_path)

    if args.cmd == "month":
        cmd_month(args)
    elif args.cmd == "year":
        cmd_year(args)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
