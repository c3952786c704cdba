"""Writes PAX data into template workbooks.

Two modes exist. Single-source mode aggregates one source's records and
replaces placeholder tokens in template row 4. Consolidated mode writes one
row per attributed record below whatever rows the sheet already holds.
"""
from __future__ import annotations

import logging
from copy import copy
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from pax_consolidator.domain.models import (
    AttributedRecord,
    ConsolidatedDataset,
    RerunPolicy,
    SourceExtract,
    TourType,
    ValidatedRecord,
)
from pax_consolidator.domain.services import aggregate_totals
from pax_consolidator.infrastructure.parsing.utils import coerce_text
from pax_consolidator.presentation.tabs import month_tab_name

logger = logging.getLogger(__name__)

TEMPLATE_ROW = 4
PAX_ON_BOARD_COL = 72  # BT
PAX_ON_TOUR_COL = 73  # BU

TOUR_COLUMNS: dict[TourType, tuple[tuple[int, str], tuple[int, str]]] = {
    TourType.CATAMARAN: ((4, "{{cat_sold}}"), (5, "{{cat_allot}}")),
    TourType.CHAMPAGNE: ((6, "{{champ_sold}}"), (7, "{{champ_allot}}")),
    TourType.INVISIBLE: ((8, "{{inv_sold}}"), (9, "{{inv_allot}}")),
}

HEADER_CELLS = {
    "date": "B2",
    "operator": "D2",
    "updated_by": "F2",
    "record_count": "H2",
}
ANCHOR_ROW = 5
CONSOLIDATED_COLUMNS = (
    "date",
    "operator",
    "source_name",
    "tour",
    "tour_type",
    "allotment",
    "sold",
    "pax_on_board",
    "pax_on_tour",
    "source_id",
)
TOUR_COL = CONSOLIDATED_COLUMNS.index("tour") + 1
SOURCE_ID_COL = CONSOLIDATED_COLUMNS.index("source_id") + 1


@dataclass
class RenderSummary:
    rows_written: int = 0
    rows_removed: int = 0
    placeholders_replaced: int = 0
    start_rows: dict[str, int] = field(default_factory=dict)


def replace_placeholder(worksheet: Worksheet, row: int, col: int, token: str, value: object) -> bool:
    cell = worksheet.cell(row=row, column=col)
    if cell.value is not None and token in str(cell.value):
        cell.value = value
        logger.debug("Replaced %s at %s with %r", token, cell.coordinate, value)
        return True
    return False


def first_empty_row(worksheet: Worksheet, anchor_row: int = ANCHOR_ROW) -> int:
    row = anchor_row
    while coerce_text(worksheet.cell(row=row, column=TOUR_COL).value):
        row += 1
    return row


def _copy_row_style(worksheet: Worksheet, source_row: int, target_row: int) -> None:
    for col in range(1, len(CONSOLIDATED_COLUMNS) + 1):
        source = worksheet.cell(row=source_row, column=col)
        if not source.has_style:
            continue
        target = worksheet.cell(row=target_row, column=col)
        target.font = copy(source.font)
        target.border = copy(source.border)
        target.fill = copy(source.fill)
        target.alignment = copy(source.alignment)
        target.number_format = source.number_format


class TemplateRenderer:
    def __init__(self, display_names: Mapping[str, str] | None = None) -> None:
        self._display_names = dict(display_names or {})

    def with_display_name(self, source_id: str, name: str) -> "TemplateRenderer":
        names = dict(self._display_names)
        names[source_id] = name
        return TemplateRenderer(display_names=names)

    def render_single_source(
        self,
        worksheet: Worksheet,
        extract: SourceExtract,
        records: Sequence[ValidatedRecord],
        source_name: str | None = None,
    ) -> RenderSummary:
        totals = aggregate_totals(records)
        replacements: list[tuple[int, str, object]] = [
            (1, "{{date}}", extract.date),
            (2, "{{cruise_line}}", extract.operator),
            (3, "{{ship_name}}", source_name or extract.source_name),
        ]
        for tour_type, ((sold_col, sold_token), (allot_col, allot_token)) in TOUR_COLUMNS.items():
            replacements.append((sold_col, sold_token, totals.sold[tour_type]))
            replacements.append((allot_col, allot_token, totals.allotment[tour_type]))
        replacements.append((PAX_ON_BOARD_COL, "{{pax_on_board}}", totals.pax_on_board))
        replacements.append((PAX_ON_TOUR_COL, "{{pax_on_tour}}", totals.pax_on_tour))

        summary = RenderSummary()
        for col, token, value in replacements:
            if replace_placeholder(worksheet, TEMPLATE_ROW, col, token, value):
                summary.placeholders_replaced += 1
        logger.info(
            "Rendered single-source totals for %s: %d placeholder(s) replaced, on board=%s, on tour=%s",
            source_name or extract.source_name,
            summary.placeholders_replaced,
            totals.pax_on_board,
            totals.pax_on_tour,
        )
        return summary

    def _header_values(self, dataset: ConsolidatedDataset) -> dict[str, object]:
        trigger = dataset.last_updated_by_source
        reference = next(iter(dataset.records_for(trigger)), None)
        if reference is None and dataset.records:
            reference = dataset.records[0]
        if reference is not None and reference.source_id == trigger:
            updated_by = reference.source_name
        else:
            updated_by = self._display_names.get(trigger, trigger)
        return {
            "date": reference.date if reference else "",
            "operator": reference.operator if reference else "",
            "updated_by": updated_by,
        }

    def _target_sheet(self, workbook: Workbook, record: AttributedRecord) -> Worksheet:
        tab = month_tab_name(record.date)
        if tab is not None and tab in workbook.sheetnames:
            return workbook[tab]
        return workbook.worksheets[0]

    def remove_source_rows(self, worksheet: Worksheet, source_ids: Sequence[str]) -> int:
        """Delete previously written rows that belong to any of `source_ids`."""
        wanted = set(source_ids)
        removed = 0
        for row in range(worksheet.max_row, ANCHOR_ROW - 1, -1):
            if coerce_text(worksheet.cell(row=row, column=SOURCE_ID_COL).value) in wanted:
                worksheet.delete_rows(row, 1)
                removed += 1
        return removed

    def _write_record(self, worksheet: Worksheet, row: int, record: AttributedRecord) -> None:
        values = (
            record.date,
            record.operator,
            record.source_name,
            record.display_tour_name,
            record.tour_type.value,
            record.allotment,
            record.sold,
            record.pax_on_board,
            record.pax_on_tour,
            record.source_id,
        )
        _copy_row_style(worksheet, TEMPLATE_ROW, row)
        for col, value in enumerate(values, start=1):
            worksheet.cell(row=row, column=col, value=value)

    def render_consolidated(
        self,
        workbook: Workbook,
        dataset: ConsolidatedDataset,
        policy: RerunPolicy = RerunPolicy.APPEND,
    ) -> RenderSummary:
        summary = RenderSummary()
        if policy is RerunPolicy.SNAPSHOT:
            for worksheet in workbook.worksheets:
                summary.rows_removed += self.remove_source_rows(worksheet, dataset.contributing_sources)
            logger.info("Snapshot policy removed %d earlier row(s)", summary.rows_removed)

        grouped: dict[str, tuple[Worksheet, list[AttributedRecord]]] = {}
        for record in dataset.records:
            worksheet = self._target_sheet(workbook, record)
            grouped.setdefault(worksheet.title, (worksheet, []))[1].append(record)
        if not grouped:
            grouped[workbook.worksheets[0].title] = (workbook.worksheets[0], [])

        header = self._header_values(dataset)
        for title, (worksheet, records) in grouped.items():
            # H2 counts the rows this run wrote to the sheet
            values = {**header, "record_count": len(records)}
            for key, address in HEADER_CELLS.items():
                worksheet[address] = values[key]
            start = first_empty_row(worksheet)
            summary.start_rows[title] = start
            for offset, record in enumerate(records):
                self._write_record(worksheet, start + offset, record)
            summary.rows_written += len(records)
            logger.info("Wrote %d row(s) to sheet %r starting at row %d", len(records), title, start)
        return summary
