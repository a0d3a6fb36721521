from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _default_plans_path() -> Path:
    return Path(os.getenv("PLAN_CATALOG_PATH", str(_DATA_DIR / "plans.json")))


@dataclass(frozen=True)
class CatalogConfig:
    """
    Where the plan catalog lives, and where ingestion reads and writes.
    """

    plans_path: Path = field(default_factory=_default_plans_path)
    raw_data_dir: Path = Path("plan_chooser/data/raw")
    raw_filename: str = "plans.csv"
    processed_data_dir: Path = Path("plan_chooser/data/processed")
    processed_filename: str = "plans.json"

    @property
    def raw_path(self) -> Path:
        return self.raw_data_dir / self.raw_filename

    @property
    def processed_path(self) -> Path:
        return self.processed_data_dir / self.processed_filename


DEFAULT_CATALOG_CONFIG = CatalogConfig()
