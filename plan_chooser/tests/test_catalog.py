from __future__ import annotations

import json
from pathlib import Path

import pytest

from plan_chooser.catalog.data_store import catalog_from_records, catalog_statistics, load_catalog
from plan_chooser.catalog.models import Plan


def _record(plan_id: str, **overrides) -> dict:
    record = {
        "plan_id": plan_id,
        "insurer": "VHI",
        "plan_name": f"Plan {plan_id}",
        "plan_tier": "MID",
        "hospital_cover": "PRIVATE",
    }
    record.update(overrides)
    return record


def test_bundled_catalog_loads():
    catalog = load_catalog()
    assert len(catalog) == 12
    assert catalog.get("laya-prime") is not None
    assert "Irish Life Health" in catalog.insurers
    assert catalog.tiers == ["BASIC", "HIGH", "MID", "PREMIUM"]


def test_bundled_catalog_keeps_unknowns_as_none():
    catalog = load_catalog()
    plan = catalog.get("ilh-select-starter")
    assert plan.hospital_cover is None
    assert plan.completeness_score < 1.0


def test_load_catalog_from_path(tmp_path: Path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps([_record("a"), _record("b", insurer="Laya Healthcare")]))
    catalog = load_catalog(path)
    assert [p.plan_id for p in catalog.plans] == ["a", "b"]
    assert catalog.source == str(path)


def test_load_catalog_rejects_non_list(tmp_path: Path):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps({"plans": []}))
    with pytest.raises(ValueError):
        load_catalog(path)


def test_duplicate_plan_ids_are_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        catalog_from_records([_record("a"), _record("a")])


def test_unknown_plan_id_returns_none():
    catalog = catalog_from_records([_record("a")])
    assert catalog.get("missing") is None


def test_catalog_statistics_counts():
    plans = [
        Plan(**_record("a", insurer="VHI", plan_tier="BASIC")),
        Plan(**_record("b", insurer="VHI", plan_tier="MID")),
        Plan(**_record("c", insurer="Level Health", plan_tier="MID")),
    ]
    stats = catalog_statistics(plans)
    assert stats["total_plans"] == 3
    assert stats["by_insurer"] == {"Level Health": 1, "VHI": 2}
    assert stats["by_tier"] == {"BASIC": 1, "MID": 2}
    # only hospital_cover is known on each plan
    assert stats["avg_completeness_pct"] == round(1 / 9 * 100, 1)
    assert stats["fully_verified_plans"] == 0


def test_catalog_statistics_empty():
    stats = catalog_statistics([])
    assert stats["total_plans"] == 0
    assert stats["by_insurer"] == {}
