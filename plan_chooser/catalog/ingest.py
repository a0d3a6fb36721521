from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

import pandas as pd

from .completeness import compute_completeness
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import HOSPITAL_COVER_ORDER, PLAN_TIERS, Plan

logger = logging.getLogger(__name__)

IDENTITY_COLUMNS: List[str] = ["plan_id", "insurer", "plan_name", "plan_tier"]

TRI_STATE_COLUMNS: List[str] = [
    "semi_private_room",
    "private_room",
    "day_case",
    "gp_visits",
    "dental_cover",
    "optical_cover",
    "physiotherapy",
    "outpatient_cover",
    "maternity_cover",
    "mental_health",
    "consultant_choice",
    "overseas_emergency",
    "overseas_planned",
    "cardiac_cover",
    "cancer_cover",
    "excess_required",
]

NUMERIC_COLUMNS: List[str] = [
    "gp_visit_cost",
    "physio_cost",
    "specialist_visit_cost",
    "maternity_waiting_months",
    "prenatal_postnatal_benefit",
    "menopause_benefit",
    "estimated_annual_cost",
]

TEXT_COLUMNS: List[str] = [
    "excess_amount_text",
    "regulatory_notes",
    "source_url",
    "last_verified",
]

# Spreadsheet exports from insurers and the price comparison site name the
# same column in a few different ways.
COLUMN_ALIASES: dict[str, List[str]] = {
    "plan_id": ["plan_id", "id", "plan_code"],
    "insurer": ["insurer", "provider", "company"],
    "plan_name": ["plan_name", "name", "plan"],
    "plan_tier": ["plan_tier", "tier", "level"],
    "hospital_cover": ["hospital_cover", "hospital", "hospital_level"],
    "mental_health": ["mental_health", "mental_health_cover"],
    "maternity_cover": ["maternity_cover", "maternity"],
    "overseas_emergency": ["overseas_emergency", "overseas", "travel_emergency"],
    "gp_visits": ["gp_visits", "gp"],
    "source_url": ["source_url", "url", "source"],
}

_TRUE_TOKENS = {"yes", "y", "true", "1", "included", "covered"}
_FALSE_TOKENS = {"no", "n", "false", "0", "not included", "excluded", "not covered"}

_HOSPITAL_ALIASES = {
    "public": "PUBLIC",
    "semi private": "SEMI_PRIVATE",
    "semi-private": "SEMI_PRIVATE",
    "semi_private": "SEMI_PRIVATE",
    "private": "PRIVATE",
    "hi tech": "HI_TECH",
    "hi-tech": "HI_TECH",
    "hi_tech": "HI_TECH",
    "high tech": "HI_TECH",
}


def normalize_tri_state(value: object) -> bool | None:
    """Map a spreadsheet cell to True / False / None. Anything unrecognised is unknown."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, bool):
        return value
    raw = str(value).strip().lower()
    if raw in _TRUE_TOKENS:
        return True
    if raw in _FALSE_TOKENS:
        return False
    return None


def normalize_hospital_cover(value: object) -> str | None:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    raw = str(value).strip()
    if raw.upper() in HOSPITAL_COVER_ORDER:
        return raw.upper()
    return _HOSPITAL_ALIASES.get(raw.lower())


def normalize_tier(value: object) -> str | None:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    raw = str(value).strip().upper()
    return raw if raw in PLAN_TIERS else None


def _rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns=lambda c: str(c).strip().lower().replace(" ", "_"))
    renames: dict[str, str] = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        if canonical in df.columns:
            continue
        for alias in aliases:
            if alias in df.columns:
                renames[alias] = canonical
                break
    return df.rename(columns=renames)


def normalize_frame(raw: pd.DataFrame) -> pd.DataFrame:
    """Turn a raw plan export into canonical columns. Rows without identity are dropped."""
    df = _rename_columns(raw)

    canonical = pd.DataFrame(index=df.index)
    for col in IDENTITY_COLUMNS:
        canonical[col] = (
            df[col].astype("string").str.strip().replace("", pd.NA) if col in df.columns else pd.NA
        )
    canonical["plan_tier"] = (
        df["plan_tier"].apply(normalize_tier) if "plan_tier" in df.columns else None
    )

    canonical["hospital_cover"] = (
        df["hospital_cover"].apply(normalize_hospital_cover)
        if "hospital_cover" in df.columns
        else None
    )
    for col in TRI_STATE_COLUMNS:
        canonical[col] = df[col].apply(normalize_tri_state) if col in df.columns else None
    for col in NUMERIC_COLUMNS:
        canonical[col] = pd.to_numeric(df[col], errors="coerce") if col in df.columns else pd.NA
    for col in TEXT_COLUMNS:
        canonical[col] = df[col] if col in df.columns else pd.NA

    before = len(canonical)
    canonical = canonical.dropna(subset=IDENTITY_COLUMNS)
    canonical = canonical.drop_duplicates(subset=["plan_id"], keep="first")
    dropped = before - len(canonical)
    if dropped:
        logger.warning("Dropped %d plan rows without identity fields or with duplicate ids", dropped)

    if not canonical.empty:
        null_counts = canonical.apply(
            lambda row: compute_completeness(row.to_dict()).null_key_count, axis=1,
        )
        logger.info(
            "%d of %d plans have unknown key fields", int((null_counts > 0).sum()), len(canonical),
        )
    return canonical.reset_index(drop=True)


def _to_records(df: pd.DataFrame) -> list[dict]:
    records: list[dict] = []
    for row in df.astype(object).where(df.notna(), None).to_dict(orient="records"):
        plan = Plan.model_validate(row)
        records.append(plan.model_dump(mode="json", exclude_none=False))
    return records


def run_ingestion(
    source_csv: Path | str | None = None, config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
) -> Path:
    """
    Normalise a raw plan spreadsheet export into the canonical JSON catalog.

    Steps:
    - Read the CSV export (``config.raw_path`` unless *source_csv* is given).
    - Map loosely named columns and tri-state cells to canonical values.
    - Validate every row as a Plan and write the catalog JSON.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    source = Path(source_csv) if source_csv is not None else config.raw_path
    raw = pd.read_csv(source, dtype=str, keep_default_na=False, na_values=["", "unknown", "Unknown", "N/A", "n/a"])
    canonical = normalize_frame(raw)
    records = _to_records(canonical)

    output_path = config.processed_path
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(records, fh, indent=2)
    logger.info("Wrote %d plans to %s", len(records), output_path)
    return output_path


if __name__ == "__main__":
    import sys

    path = run_ingestion(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Ingestion complete. Catalog saved to: {path}")
