"""Weekly record accessors.

The engine only needs `get_weekly_records(entity_id, iso_year, week_numbers)`;
MongoDB is the production backing store.
"""

from venue_rollups.store.base import WeeklyRecordStore
from venue_rollups.store.mongo import MongoWeeklyRecordStore, mongo_stores_for

__all__ = ["WeeklyRecordStore", "MongoWeeklyRecordStore", "mongo_stores_for"]
