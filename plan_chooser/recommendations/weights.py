"""
Scoring Weight Tables
=====================

The scoring engine awards points per preference dimension.  How many points
each dimension is worth lives here, as named, versioned tables, so that a
change of formula is a new table rather than a new engine.

Available tables
----------------
* **canonical** (default)
  Hospital cover dominates, followed by outpatient, maternity and mental
  health.  Day-to-day extras are worth 5-10 points each.  The practical
  maximum is the sum of the table (146 points).

* **flat_100**
  Same dimensions rescaled so a plan matching every answered requirement
  scores 100.  Consultant choice and maternity extras carry no weight and
  are skipped entirely (no points, no verification flags).

Categories
----------
Each key is a score category produced by a rule in ``scoring.SCORING_RULES``.
Single-field categories are named after the plan field they read, so the
breakdown entry for ``hospital_cover`` always refers to ``Plan.hospital_cover``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

WeightTable = Mapping[str, float]

WEIGHT_TABLES: dict[str, dict] = {
    "canonical": {
        "label": "Canonical blueprint weights",
        "weights": {
            "hospital_cover": 35.0,
            "outpatient_cover": 20.0,
            "maternity_cover": 15.0,
            "mental_health": 12.0,
            "overseas_emergency": 10.0,
            "day_to_day": 10.0,
            "budget_fit": 10.0,
            "gp_visits": 8.0,
            "dental_optical": 8.0,
            "consultant_choice": 8.0,
            "physiotherapy": 5.0,
            "maternity_extras": 5.0,
        },
    },
    "flat_100": {
        "label": "Weights normalised to 100",
        "weights": {
            "hospital_cover": 30.0,
            "outpatient_cover": 15.0,
            "maternity_cover": 10.0,
            "mental_health": 10.0,
            "overseas_emergency": 10.0,
            "day_to_day": 5.0,
            "budget_fit": 5.0,
            "gp_visits": 5.0,
            "dental_optical": 5.0,
            "consultant_choice": 0.0,
            "physiotherapy": 5.0,
            "maternity_extras": 0.0,
        },
    },
}


def available_versions() -> list[str]:
    return sorted(WEIGHT_TABLES)


def get_weight_table(version: str) -> WeightTable:
    """Return a read-only weight table for *version*. Unknown versions raise ValueError."""
    table = WEIGHT_TABLES.get(version)
    if table is None:
        raise ValueError(
            f"Unknown weight version {version!r}; expected one of {available_versions()}"
        )
    return MappingProxyType(table["weights"])


def max_score(weights: WeightTable) -> float:
    """The practical maximum a plan can score under *weights*."""
    return float(sum(weights.values()))
