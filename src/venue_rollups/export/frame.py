"""Flatten monthly rollups into a pandas DataFrame."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from venue_rollups.models import MonthlyRollup

ID_COLUMNS = ["entity_id", "report", "year", "month", "month_key", "has_data", "week_labels"]


def rollups_to_frame(rollups: Iterable[MonthlyRollup]) -> pd.DataFrame:
    """Return one row per rollup, one column per field.

    Unknown stock values stay missing (NaN) so they are never mistaken for
    zero stock. Field columns follow the first rollup's field order.

    Returns:
        DataFrame with the identifier columns (`entity_id`, `report`, `year`,
        `month`, `month_key`, `has_data`, `week_labels`) followed by fields.
    """
    rows = []
    fields: list[str] = []
    for r in rollups:
        for name in r.values:
            if name not in fields:
                fields.append(name)
        rows.append(
            {
                "entity_id": r.entity_id,
                "report": r.report,
                "year": r.year,
                "month": r.month,
                "month_key": r.month_key,
                "has_data": r.has_data,
                "week_labels": ", ".join(r.week_labels),
                **{k: (np.nan if v is None else v) for k, v in r.values.items()},
            }
        )

    pdf = pd.DataFrame(rows, columns=ID_COLUMNS + fields)
    if fields and not pdf.empty:
        pdf[fields] = pdf[fields].astype(float)
    return pdf.sort_values(["entity_id", "report", "year", "month"]).reset_index(drop=True)
