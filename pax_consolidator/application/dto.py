"""Application-level DTOs for PAX consolidation."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from pax_consolidator.domain.models import ConsolidatedDataset, RerunPolicy


@dataclass(slots=True, frozen=True)
class ConsolidationRequest:
    template_path: Path
    triggered_by: str = "system"
    force_new: bool = False
    display_name_override: str | None = None
    policy: RerunPolicy | None = None


@dataclass(slots=True, frozen=True)
class ConsolidationResponse:
    dataset: ConsolidatedDataset
    filename: str
    path: Path
    created: bool
    failed_sources: Sequence[str] = ()


@dataclass(slots=True, frozen=True)
class SourcePaxRequest:
    source_id: str
    template_path: Path
    display_name_override: str | None = None


@dataclass(slots=True, frozen=True)
class SourcePaxResponse:
    dataset: ConsolidatedDataset
    filename: str
    export_filename: str
