"""Command-line entrypoint for PAX consolidation."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from pax_consolidator.application.dto import ConsolidationRequest, SourcePaxRequest
from pax_consolidator.application.use_cases import (
    ConsolidatePaxUseCase,
    ConsolidationContext,
    GenerateSourcePaxUseCase,
    SourcePaxContext,
)
from pax_consolidator.config import (
    CONSOLIDATED_PREFIX,
    CONSOLIDATED_TEMPLATE_NAME,
    EXPORT_PREFIX,
    PAX_TEMPLATE_NAME,
    SETTINGS,
    SOURCE_PAX_PREFIX,
    Settings,
)
from pax_consolidator.domain.errors import PaxConsolidatorError
from pax_consolidator.domain.models import RerunPolicy
from pax_consolidator.domain.services import CrossSourceMerger
from pax_consolidator.infrastructure.artifacts.locator import ArtifactLocator
from pax_consolidator.infrastructure.repositories.excel_repositories import FileSystemSourceRepository
from pax_consolidator.presentation.dataset_report import build_dataset_workbook_bytes
from pax_consolidator.presentation.renderer import TemplateRenderer

LOG = logging.getLogger("pax_consolidator")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Consolidate per-source PAX workbooks")
    parser.add_argument("--log-level", default=os.environ.get("PAX_LOG_LEVEL", "INFO"), help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    consolidate = sub.add_parser("consolidate", help="Merge every source into the consolidated artifact")
    consolidate.add_argument("--template", type=Path, help="Path to the consolidated PAX template")
    consolidate.add_argument("--trigger", default="system", help="Source id that triggered this run")
    consolidate.add_argument("--ship-name", help="Display name override for the triggering source")
    consolidate.add_argument("--force-new", action="store_true", help="Always start a new artifact from the template")
    consolidate.add_argument(
        "--policy",
        choices=[policy.value for policy in RerunPolicy],
        help="Rerun policy for rows already in the artifact",
    )
    consolidate.add_argument("--dump", type=Path, help="Also write a flat .xlsx dump of the dataset")

    source_pax = sub.add_parser("source-pax", help="Render one source's PAX totals")
    source_pax.add_argument("--source", required=True, help="Source id")
    source_pax.add_argument("--template", type=Path, help="Path to the PAX template")
    source_pax.add_argument("--ship-name", help="Display name override for the source")
    return parser.parse_args(argv)


def run_consolidate(args: argparse.Namespace, settings: Settings) -> int:
    context = ConsolidationContext(
        repository=FileSystemSourceRepository(
            settings.source_ids,
            settings.uploads_dir,
            settings.output_dir,
            export_prefix=EXPORT_PREFIX,
            timeout=settings.read_timeout_seconds,
        ),
        merger=CrossSourceMerger(display_names=settings.display_names),
        renderer=TemplateRenderer(display_names=settings.display_names),
        locator=ArtifactLocator(settings.consolidated_dir, prefix=CONSOLIDATED_PREFIX),
        policy=settings.rerun_policy,
        read_timeout=settings.read_timeout_seconds,
    )
    request = ConsolidationRequest(
        template_path=args.template or settings.templates_dir / CONSOLIDATED_TEMPLATE_NAME,
        triggered_by=args.trigger,
        force_new=args.force_new,
        display_name_override=args.ship_name,
        policy=RerunPolicy(args.policy) if args.policy else None,
    )
    response = ConsolidatePaxUseCase(context).execute(request)
    dataset = response.dataset

    print("Consolidation Summary")
    print("=====================")
    print(f"Artifact: {response.filename} ({'created' if response.created else 'updated'})")
    print(f"Contributing sources: {', '.join(dataset.contributing_sources)}")
    print(f"Records: {dataset.total_record_count}")
    if response.failed_sources:
        print(f"Skipped sources: {', '.join(response.failed_sources)}")
    if dataset.conflicts:
        print("\nConflicts:")
        for conflict in dataset.conflicts:
            print(f"- {conflict.tour_type.value}: {', '.join(conflict.source_ids)}")
    else:
        print("\nNo conflicts detected.")

    if args.dump:
        args.dump.write_bytes(build_dataset_workbook_bytes(dataset))
        print(f"\nDataset dump written to {args.dump}")
    return 0


def run_source_pax(args: argparse.Namespace, settings: Settings) -> int:
    context = SourcePaxContext(
        repository=FileSystemSourceRepository(
            settings.source_ids,
            settings.uploads_dir,
            settings.output_dir,
            export_prefix=EXPORT_PREFIX,
            timeout=settings.read_timeout_seconds,
            prefer_exports=False,
        ),
        merger=CrossSourceMerger(display_names=settings.display_names),
        renderer=TemplateRenderer(display_names=settings.display_names),
        output_dir=settings.output_dir,
        pax_prefix=SOURCE_PAX_PREFIX,
        export_prefix=EXPORT_PREFIX,
        read_timeout=settings.read_timeout_seconds,
    )
    response = GenerateSourcePaxUseCase(context).execute(
        SourcePaxRequest(
            source_id=args.source,
            template_path=args.template or settings.templates_dir / PAX_TEMPLATE_NAME,
            display_name_override=args.ship_name,
        )
    )
    print(f"PAX report: {response.filename}")
    print(f"Processed export: {response.export_filename}")
    print(f"Validated records: {response.dataset.total_record_count}")
    return 0


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s [%(levelname)s] %(message)s")
    settings = settings or SETTINGS

    try:
        if args.command == "consolidate":
            return run_consolidate(args, settings)
        return run_source_pax(args, settings)
    except PaxConsolidatorError as exc:
        LOG.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
