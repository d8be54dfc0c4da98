"""MongoDB-backed weekly record store.

Each weekly collection keeps one document per (venue, ISO year, ISO week).
Column names differ between collections, so the store is told which field
holds the entity id, the year and the week.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pymongo.collection import Collection
from pymongo.database import Database

from venue_rollups.models import WeeklyRecord

log = logging.getLogger(__name__)

# Bookkeeping columns that are never metrics.
META_FIELDS = frozenset({"_id", "id", "created_at", "updated_at", "data_inicio", "data_fim"})


class MongoWeeklyRecordStore:
    """Read weekly records from one MongoDB collection.

    Args:
        collection: PyMongo collection with weekly documents.
        entity_field: Document field holding the entity (venue) id.
        year_field: Document field holding the ISO year.
        week_field: Document field holding the ISO week number.
        columns: Metric columns to read. When set, the `find` projects only
            these (plus the key fields) so text columns never reach the
            metric parser; when None every non-meta column is read.
    """

    def __init__(
        self,
        collection: Collection[dict[str, Any]],
        entity_field: str = "bar_id",
        year_field: str = "ano",
        week_field: str = "semana",
        columns: Iterable[str] | None = None,
    ) -> None:
        self.collection = collection
        self.entity_field = entity_field
        self.year_field = year_field
        self.week_field = week_field
        self.columns = None if columns is None else frozenset(columns)

    def _projection(self) -> dict[str, bool]:
        projection = {"_id": False}
        if self.columns is not None:
            for k in (self.entity_field, self.year_field, self.week_field, *sorted(self.columns)):
                projection[k] = True
        return projection

    def _to_record(self, doc: dict[str, Any]) -> WeeklyRecord:
        keys = {self.entity_field, self.year_field, self.week_field}
        values = {
            k: v
            for k, v in doc.items()
            if k not in keys
            and k not in META_FIELDS
            and (self.columns is None or k in self.columns)
        }
        return WeeklyRecord(
            entity_id=int(doc[self.entity_field]),
            iso_year=int(doc[self.year_field]),
            week=int(doc[self.week_field]),
            values=values,
        )

    def get_weekly_records(
        self,
        entity_id: int,
        iso_year: int,
        week_numbers: Iterable[int],
    ) -> list[WeeklyRecord]:
        """Fetch the entity's documents for the given ISO year and weeks.

        Issues a single `find` with `$in` on the week field. An empty week
        set returns `[]` without touching the database.
        """
        weeks = sorted(set(week_numbers))
        if not weeks:
            return []

        query = {
            self.entity_field: entity_id,
            self.year_field: iso_year,
            self.week_field: {"$in": weeks},
        }
        log.debug("find %s %s", self.collection.name, query)
        docs = self.collection.find(query, self._projection())
        return [self._to_record(d) for d in docs]


def mongo_stores_for(
    db: Database[dict[str, Any]],
    sources: Iterable[str],
    week_fields: Mapping[str, str],
    columns: Mapping[str, Iterable[str]] | None = None,
) -> dict[str, MongoWeeklyRecordStore]:
    """Build one store per source collection name.

    Args:
        db: Database holding the weekly collections.
        sources: Collection names to open.
        week_fields: Week column per collection; missing entries use `semana`.
        columns: Metric columns per collection (see
            `PolicyTable.columns_by_source`); missing entries read every column.
    """
    columns = columns or {}
    return {
        s: MongoWeeklyRecordStore(
            db[s], week_field=week_fields.get(s, "semana"), columns=columns.get(s)
        )
        for s in sources
    }
