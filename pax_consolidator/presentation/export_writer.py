"""Builds processed-export workbooks for a single source."""
from __future__ import annotations

from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

from pax_consolidator.domain.models import SourceExtract, ValidatedRecord
from pax_consolidator.domain.services import aggregate_totals
from pax_consolidator.infrastructure.parsing.layouts import PROCESSED_EXPORT_LAYOUT as LAYOUT

CAPTIONS = ("TOUR", "ALLOTMENT", "SOLD", "PAX ON BOARD", "PAX ON TOUR")


def write_processed_export(
    extract: SourceExtract,
    records: Sequence[ValidatedRecord],
    source_name: str | None = None,
) -> Workbook:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Export"
    bold = Font(bold=True)

    for address, label, value in (
        (LAYOUT.source_name_cell, "SHIP", source_name or extract.source_name),
        (LAYOUT.operator_cell, "OPERATOR", extract.operator),
        (LAYOUT.date_cell, "DATE", extract.date),
    ):
        worksheet[address] = value
        label_cell = worksheet.cell(row=worksheet[address].row, column=1, value=label)
        label_cell.font = bold

    caption_row = LAYOUT.anchor_row - 1
    for col, caption in enumerate(CAPTIONS, start=1):
        worksheet.cell(row=caption_row, column=col, value=caption).font = bold

    row = LAYOUT.anchor_row
    for record in records:
        worksheet.cell(row=row, column=LAYOUT.name_col, value=record.tour_name)
        worksheet.cell(row=row, column=LAYOUT.allotment_col, value=record.allotment)
        worksheet.cell(row=row, column=LAYOUT.sold_col, value=record.sold)
        worksheet.cell(row=row, column=LAYOUT.pax_on_board_col, value=record.pax_on_board)
        worksheet.cell(row=row, column=LAYOUT.pax_on_tour_col, value=record.pax_on_tour)
        row += 1

    totals = aggregate_totals(records)
    worksheet.cell(row=row, column=LAYOUT.name_col, value="TOTAL").font = bold
    worksheet.cell(row=row, column=LAYOUT.allotment_col, value=sum(totals.allotment.values()))
    worksheet.cell(row=row, column=LAYOUT.sold_col, value=sum(totals.sold.values()))
    worksheet.cell(row=row, column=LAYOUT.pax_on_board_col, value=totals.pax_on_board)
    worksheet.cell(row=row, column=LAYOUT.pax_on_tour_col, value=totals.pax_on_tour)
    return workbook
