"""Upsert monthly rollups into Gold collections.

Strategy:
- one document per (entity, report, year, month), keyed on those fields;
- unordered bulk `UpdateOne(..., upsert=True)` so reruns overwrite in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pymongo import UpdateOne
from pymongo.collection import Collection

from venue_rollups.models import MonthlyRollup

log = logging.getLogger(__name__)

KEY_FIELDS = ["entity_id", "report", "year", "month"]


def gold_collection_name(report: str) -> str:
    """Return the Gold collection name for a report."""
    return f"gold_monthly_{report}"


def rollup_document(rollup: MonthlyRollup) -> dict[str, Any]:
    """Return a BSON-safe document for a rollup.

    Dates become datetimes (BSON has no date type); provenance is kept so the
    stored row can be audited later.
    """
    doc = rollup.model_dump(mode="python")
    for k in ("period_start", "period_end"):
        doc[k] = datetime.combine(doc[k], datetime.min.time())
    doc["month_key"] = rollup.month_key
    doc["computed_ts"] = datetime.now(timezone.utc)
    return doc


def load_rollups(
    rollups: Iterable[MonthlyRollup],
    collection: Collection[dict[str, Any]],
) -> int:
    """Upsert rollups into `collection`.

    Args:
        rollups: Rollups to persist.
        collection: Target Gold collection.

    Returns:
        Number of upsert operations written.
    """
    ops = []
    for r in rollups:
        doc = rollup_document(r)
        query = {k: doc[k] for k in KEY_FIELDS}
        ops.append(UpdateOne(query, {"$set": doc}, upsert=True))

    if not ops:
        log.warning("No rollups to load into %s", collection.name)
        return 0

    collection.bulk_write(ops, ordered=False)
    log.info("Gold load complete for %s: %d rows", collection.name, len(ops))
    return len(ops)
