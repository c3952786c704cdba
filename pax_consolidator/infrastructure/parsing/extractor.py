"""Reads tour records out of fixed-layout source worksheets."""
from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from pax_consolidator.domain.errors import InvalidWorkbook, MissingWorksheet
from pax_consolidator.domain.models import LayoutKind, RawRecord, SourceExtract
from pax_consolidator.infrastructure.parsing.layouts import SheetLayout, get_layout
from pax_consolidator.infrastructure.parsing.utils import (
    CoercionStats,
    coerce_header,
    coerce_number,
    coerce_text,
    ensure_bytes,
    run_with_timeout,
)

logger = logging.getLogger(__name__)


def load_source_workbook(data: bytes, label: str = "workbook", *, for_update: bool = False) -> Workbook:
    """Open workbook bytes.

    Sources are read with cached formula results and rich text runs. A
    workbook opened `for_update` keeps its formulas so it can be saved back.
    """
    try:
        if for_update:
            return load_workbook(BytesIO(data))
        return load_workbook(BytesIO(data), data_only=True, rich_text=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as exc:
        raise InvalidWorkbook(f"{label} is not a readable .xlsx workbook: {exc}", source=label) from exc


def first_worksheet(workbook: Workbook, label: str = "workbook") -> Worksheet:
    if not workbook.worksheets:
        raise MissingWorksheet(f"{label} has no worksheet", source=label)
    return workbook.worksheets[0]


def _read_row(worksheet: Worksheet, row: int, layout: SheetLayout, name: str, stats: CoercionStats) -> RawRecord:
    def number(col: int) -> int | float:
        return coerce_number(worksheet.cell(row=row, column=col).value, stats)

    return RawRecord(
        tour_name=name,
        allotment=number(layout.allotment_col),
        sold=number(layout.sold_col),
        pax_on_board=number(layout.pax_on_board_col),
        pax_on_tour=number(layout.pax_on_tour_col),
    )


def extract(worksheet: Worksheet, layout: SheetLayout | LayoutKind, fallback_name: str = "") -> SourceExtract:
    if not isinstance(layout, SheetLayout):
        layout = get_layout(layout)

    date_value = coerce_header(worksheet[layout.date_cell].value)
    operator = coerce_header(worksheet[layout.operator_cell].value)
    source_name = coerce_header(worksheet[layout.source_name_cell].value) or fallback_name

    stats = CoercionStats()
    records: list[RawRecord] = []
    for row in range(layout.anchor_row, layout.last_row + 1):
        name = coerce_text(worksheet.cell(row=row, column=layout.name_col).value)
        if not name or name in layout.stop_labels:
            break
        if name in layout.skip_labels:
            continue
        records.append(_read_row(worksheet, row, layout, name, stats))

    if stats.degraded:
        logger.warning(
            "%d of %d numeric cell(s) in %s could not be parsed and were read as 0",
            stats.degraded,
            stats.cells,
            source_name or worksheet.title,
        )
    logger.info(
        "Extracted %d record(s) from %s (%s layout, date=%s)",
        len(records),
        source_name or worksheet.title,
        layout.kind.value,
        date_value,
    )
    return SourceExtract(
        date=date_value,
        operator=operator,
        source_name=source_name,
        records=tuple(records),
        layout=layout.kind,
    )


def extract_workbook(
    source: bytes | BytesIO | Path,
    layout: SheetLayout | LayoutKind,
    source_id: str = "",
    timeout: float | None = None,
) -> SourceExtract:
    """Load a workbook and extract its first worksheet."""
    label = source_id or (source.name if isinstance(source, Path) else "workbook")
    workbook = run_with_timeout(lambda: load_source_workbook(ensure_bytes(source), label), timeout, label)
    worksheet = first_worksheet(workbook, label)
    return extract(worksheet, layout, fallback_name=source_id.upper())
