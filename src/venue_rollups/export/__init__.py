"""Gold-layer export of monthly rollups.

Rollups are flattened to pandas for display and upserted into MongoDB
collections named `gold_monthly_<report>`.
"""

from venue_rollups.export.frame import rollups_to_frame
from venue_rollups.export.load_rollups import gold_collection_name, load_rollups, rollup_document

__all__ = ["rollups_to_frame", "gold_collection_name", "load_rollups", "rollup_document"]
