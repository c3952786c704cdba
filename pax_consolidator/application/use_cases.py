"""Application services orchestrating the consolidation workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from openpyxl.workbook.workbook import Workbook

from pax_consolidator.application.dto import (
    ConsolidationRequest,
    ConsolidationResponse,
    SourcePaxRequest,
    SourcePaxResponse,
)
from pax_consolidator.domain.errors import (
    ExtractionError,
    InvalidWorkbook,
    NoDataAvailable,
    TemplateError,
)
from pax_consolidator.domain.models import RerunPolicy, SourceExtract
from pax_consolidator.domain.repositories import SourceExtractRepository
from pax_consolidator.domain.services import CrossSourceMerger
from pax_consolidator.infrastructure.artifacts.locator import (
    ArtifactLocator,
    artifact_lock,
    save_workbook_atomic,
)
from pax_consolidator.infrastructure.parsing.extractor import load_source_workbook
from pax_consolidator.infrastructure.parsing.utils import run_with_timeout
from pax_consolidator.presentation.export_writer import write_processed_export
from pax_consolidator.presentation.renderer import TemplateRenderer

logger = logging.getLogger(__name__)


def load_template(path: Path, timeout: float | None = None) -> Workbook:
    path = Path(path)
    if not path.is_file():
        raise TemplateError(f"PAX template not found at: {path}")
    try:
        workbook = run_with_timeout(
            lambda: load_source_workbook(path.read_bytes(), path.name, for_update=True), timeout, path.name
        )
    except InvalidWorkbook as exc:
        raise TemplateError(f"PAX template {path} is unreadable: {exc}") from exc
    if not workbook.worksheets:
        raise TemplateError(f"PAX template {path} has no worksheet")
    return workbook


def load_artifact(path: Path, timeout: float | None = None) -> Workbook | None:
    """Existing artifact, or None when it cannot be reused."""
    if not ArtifactLocator.is_usable(path):
        logger.warning("Artifact %s is empty, a new one will be created", path.name)
        return None
    try:
        workbook = run_with_timeout(
            lambda: load_source_workbook(path.read_bytes(), path.name, for_update=True), timeout, path.name
        )
    except InvalidWorkbook as exc:
        logger.warning("Artifact %s is unreadable (%s), a new one will be created", path.name, exc)
        return None
    if not workbook.worksheets:
        logger.warning("Artifact %s has no worksheet, a new one will be created", path.name)
        return None
    return workbook


@dataclass(slots=True)
class ConsolidationContext:
    repository: SourceExtractRepository
    merger: CrossSourceMerger
    renderer: TemplateRenderer
    locator: ArtifactLocator
    policy: RerunPolicy = RerunPolicy.APPEND
    read_timeout: float | None = None


class ConsolidatePaxUseCase:
    def __init__(self, context: ConsolidationContext) -> None:
        self._context = context

    def collect(self) -> tuple[dict[str, SourceExtract], list[str]]:
        extracts: dict[str, SourceExtract] = {}
        failed: list[str] = []
        for source_id in self._context.repository.source_ids():
            try:
                extract = self._context.repository.get_extract(source_id)
            except ExtractionError as exc:
                logger.warning("Skipping source %s: %s", source_id, exc)
                failed.append(source_id)
                continue
            if extract is not None:
                extracts[source_id] = extract
        logger.info("Collected extracts from %d source(s)", len(extracts))
        return extracts, failed

    def execute(self, request: ConsolidationRequest) -> ConsolidationResponse:
        extracts, failed = self.collect()
        if not extracts:
            logger.error("No source data found, consolidation aborted")
            raise NoDataAvailable("No data found from any source")

        trigger = request.triggered_by
        merger = self._context.merger
        renderer = self._context.renderer
        if request.display_name_override:
            merger = merger.with_display_name(trigger, request.display_name_override)
            renderer = renderer.with_display_name(trigger, request.display_name_override)
        dataset = merger.merge(extracts, triggered_by=trigger)

        policy = request.policy or self._context.policy
        locator = self._context.locator
        with artifact_lock(locator.directory):
            workbook = None
            target = None if request.force_new else locator.locate()
            if target is not None:
                workbook = load_artifact(target, self._context.read_timeout)
            created = workbook is None
            if created:
                workbook = load_template(request.template_path, self._context.read_timeout)
                target = locator.next_path()
            renderer.render_consolidated(workbook, dataset, policy)
            save_workbook_atomic(workbook, target)

        logger.info(
            "%s consolidated artifact %s with %d record(s) from %d source(s)",
            "Created" if created else "Updated",
            target.name,
            dataset.total_record_count,
            len(dataset.contributing_sources),
        )
        return ConsolidationResponse(
            dataset=dataset,
            filename=target.name,
            path=target,
            created=created,
            failed_sources=tuple(failed),
        )


@dataclass(slots=True)
class SourcePaxContext:
    repository: SourceExtractRepository
    merger: CrossSourceMerger
    renderer: TemplateRenderer
    output_dir: Path
    pax_prefix: str = "pax"
    export_prefix: str = "export"
    read_timeout: float | None = None


class GenerateSourcePaxUseCase:
    """Single-source PAX report: one source's totals, no cross-source merge."""

    def __init__(self, context: SourcePaxContext) -> None:
        self._context = context

    def execute(self, request: SourcePaxRequest) -> SourcePaxResponse:
        source_id = request.source_id
        extract = self._context.repository.get_extract(source_id)
        if extract is None:
            raise NoDataAvailable(f"No data found for source {source_id}")
        merger = self._context.merger
        if request.display_name_override:
            merger = merger.with_display_name(source_id, request.display_name_override)

        display = merger.display_name(source_id, extract)
        dataset = merger.single_source(source_id, extract)
        validated = dataset.records

        workbook = load_template(request.template_path, self._context.read_timeout)
        self._context.renderer.render_single_source(workbook.worksheets[0], extract, validated, source_name=display)

        source_dir = self._context.output_dir / source_id
        with artifact_lock(source_dir):
            pax_path = ArtifactLocator(source_dir, prefix=self._context.pax_prefix).next_path()
            export_path = ArtifactLocator(source_dir, prefix=self._context.export_prefix).next_path()
            save_workbook_atomic(workbook, pax_path)
            save_workbook_atomic(write_processed_export(extract, validated, source_name=display), export_path)

        logger.info("Generated PAX report %s for source %s", pax_path.name, source_id)
        return SourcePaxResponse(dataset=dataset, filename=pax_path.name, export_filename=export_path.name)
