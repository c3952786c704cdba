"""Central configuration for the PAX consolidator package."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from pax_consolidator.domain.models import RerunPolicy
from pax_consolidator.infrastructure.storage.name_store import load_names

SOURCE_IDS = ("ship-a", "ship-b", "ship-c")

BASE_DIR = Path(os.environ.get("PAX_HOME") or Path(__file__).resolve().parent.parent)
DATA_DIR = BASE_DIR / "data"
UPLOADS_DIR = DATA_DIR / "uploads"
OUTPUT_DIR = DATA_DIR / "output"
CONSOLIDATED_DIR = OUTPUT_DIR / "consolidated" / "pax"
TEMPLATES_DIR = DATA_DIR / "templates"

CONSOLIDATED_PREFIX = "consolidated_pax"
SOURCE_PAX_PREFIX = "pax"
EXPORT_PREFIX = "export"

CONSOLIDATED_TEMPLATE_NAME = "consolidated_pax_template.xlsx"
PAX_TEMPLATE_NAME = "pax_template.xlsx"

READ_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True, frozen=True)
class Settings:
    source_ids: tuple[str, ...]
    uploads_dir: Path
    output_dir: Path
    consolidated_dir: Path
    templates_dir: Path
    read_timeout_seconds: float | None
    rerun_policy: RerunPolicy
    display_names: dict[str, str] = field(default_factory=dict)

    def source_output_dir(self, source_id: str) -> Path:
        return self.output_dir / source_id


def load_settings(base_dir: Path | None = None) -> Settings:
    data_dir = (base_dir / "data") if base_dir is not None else DATA_DIR
    templates_dir = (data_dir / "templates") if base_dir is not None else TEMPLATES_DIR
    output_dir = data_dir / "output"
    return Settings(
        source_ids=SOURCE_IDS,
        uploads_dir=data_dir / "uploads",
        output_dir=output_dir,
        consolidated_dir=output_dir / "consolidated" / "pax",
        templates_dir=templates_dir,
        read_timeout_seconds=READ_TIMEOUT_SECONDS,
        rerun_policy=RerunPolicy(os.environ.get("PAX_RERUN_POLICY", RerunPolicy.APPEND.value)),
        display_names=load_names(data_dir / "source_names.json"),
    )


SETTINGS = load_settings()
