from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import Plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanCatalog:
    """A loaded catalog, owned by the caller and passed into each request."""

    plans: tuple[Plan, ...]
    source: str | None = None
    _by_id: dict[str, Plan] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: dict[str, Plan] = {}
        for plan in self.plans:
            if plan.plan_id in by_id:
                raise ValueError(f"Duplicate plan_id in catalog: {plan.plan_id}")
            by_id[plan.plan_id] = plan
        object.__setattr__(self, "_by_id", by_id)

    def __len__(self) -> int:
        return len(self.plans)

    def get(self, plan_id: str) -> Plan | None:
        return self._by_id.get(plan_id)

    @property
    def insurers(self) -> list[str]:
        return sorted({p.insurer for p in self.plans})

    @property
    def tiers(self) -> list[str]:
        return sorted({p.plan_tier for p in self.plans})


def catalog_from_records(
    records: Iterable[Mapping[str, Any] | Plan], source: str | None = None,
) -> PlanCatalog:
    """Validate raw records into a PlanCatalog. Malformed records raise ValidationError."""
    plans = tuple(
        r if isinstance(r, Plan) else Plan.model_validate(r) for r in records
    )
    return PlanCatalog(plans=plans, source=source)


def load_catalog(path: Path | str | None = None, config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> PlanCatalog:
    """Read the canonical JSON catalog from *path* (or the configured location)."""
    catalog_path = Path(path) if path is not None else config.plans_path
    with catalog_path.open(encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError(f"Expected a JSON array of plans in {catalog_path}")

    catalog = catalog_from_records(records, source=str(catalog_path))
    logger.info("Loaded %d plans from %s", len(catalog), catalog_path)
    return catalog


def catalog_statistics(plans: Iterable[Plan]) -> dict[str, Any]:
    """Plan counts by insurer and tier, plus average completeness as a percentage."""
    df = pd.DataFrame(
        [
            {
                "insurer": p.insurer,
                "plan_tier": p.plan_tier,
                "completeness_score": p.completeness_score,
                "null_key_count": p.null_key_count,
            }
            for p in plans
        ],
        columns=["insurer", "plan_tier", "completeness_score", "null_key_count"],
    )
    if df.empty:
        return {
            "total_plans": 0,
            "avg_completeness_pct": 0.0,
            "fully_verified_plans": 0,
            "by_insurer": {},
            "by_tier": {},
        }
    return {
        "total_plans": int(len(df)),
        "avg_completeness_pct": round(float(df["completeness_score"].mean()) * 100, 1),
        "fully_verified_plans": int((df["null_key_count"] == 0).sum()),
        "by_insurer": {k: int(v) for k, v in df["insurer"].value_counts().sort_index().items()},
        "by_tier": {k: int(v) for k, v in df["plan_tier"].value_counts().sort_index().items()},
    }
