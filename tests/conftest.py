from __future__ import annotations

from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Sequence

import pytest
from openpyxl import Workbook

from pax_consolidator.domain.models import RawRecord, SourceExtract

CATAMARAN = "Catamaran Sail & Snorkel"
CHAMPAGNE = "Champagne Adults Only"
INVISIBLE = "Invisible Boat Family"

Row = tuple  # (tour name, allotment, sold, pax on board, pax on tour)


def build_raw_workbook(
    rows: Sequence[Row],
    date: object = datetime(2025, 12, 22),
    operator: str = "Royal Line",
    ship: str | None = "Liberty",
    caption: bool = True,
) -> Workbook:
    """Workbook in the raw dispatch layout (header B2/B3/B5, rows from 8)."""
    workbook = Workbook()
    ws = workbook.active
    ws["A1"], ws["B1"] = "COUNTRY", "Jamaica"
    ws["A2"], ws["B2"] = "CRUISE LINE", operator
    ws["A3"], ws["B3"] = "SHIP", ship
    ws["A5"], ws["B5"] = "DATE", date
    if caption:
        ws["A7"] = "TOUR"
    for offset, (name, allotment, sold, on_board, on_tour) in enumerate(rows):
        row = 8 + offset
        ws.cell(row=row, column=1, value=name)
        ws.cell(row=row, column=8, value=allotment)
        ws.cell(row=row, column=10, value=sold)
        ws.cell(row=row, column=17, value=on_board)
        ws.cell(row=row, column=18, value=on_tour)
    return workbook


def workbook_bytes(workbook: Workbook) -> bytes:
    buf = BytesIO()
    workbook.save(buf)
    return buf.getvalue()


def raw_source_bytes(rows: Sequence[Row], **kwargs) -> bytes:
    return workbook_bytes(build_raw_workbook(rows, **kwargs))


def build_pax_template() -> Workbook:
    workbook = Workbook()
    ws = workbook.active
    tokens = {
        1: "{{date}}",
        2: "{{cruise_line}}",
        3: "{{ship_name}}",
        4: "{{cat_sold}}",
        5: "{{cat_allot}}",
        6: "{{champ_sold}}",
        7: "{{champ_allot}}",
        8: "{{inv_sold}}",
        9: "{{inv_allot}}",
        72: "{{pax_on_board}}",
        73: "{{pax_on_tour}}",
    }
    for col, token in tokens.items():
        ws.cell(row=4, column=col, value=token)
    return workbook


def build_consolidated_template(extra_sheets: Sequence[str] = ()) -> Workbook:
    workbook = Workbook()
    ws = workbook.active
    ws.title = "PAX"
    captions = ["DATE", "OPERATOR", "SHIP", "TOUR", "TYPE", "ALLOT", "SOLD", "ON BOARD", "ON TOUR", "SOURCE"]
    for name in [ws.title, *extra_sheets]:
        sheet = workbook[name] if name in workbook.sheetnames else workbook.create_sheet(name)
        sheet["A1"] = "CONSOLIDATED PAX"
        for col, caption in enumerate(captions, start=1):
            sheet.cell(row=4, column=col, value=caption)
    return workbook


def make_extract(
    *records: RawRecord,
    date: str = "22/12/2025",
    operator: str = "Royal Line",
    source_name: str = "Liberty",
) -> SourceExtract:
    return SourceExtract(date=date, operator=operator, source_name=source_name, records=tuple(records))


@pytest.fixture
def consolidated_template(tmp_path: Path) -> Path:
    path = tmp_path / "templates" / "consolidated_pax_template.xlsx"
    path.parent.mkdir(parents=True, exist_ok=True)
    build_consolidated_template().save(path)
    return path


@pytest.fixture
def pax_template(tmp_path: Path) -> Path:
    path = tmp_path / "templates" / "pax_template.xlsx"
    path.parent.mkdir(parents=True, exist_ok=True)
    build_pax_template().save(path)
    return path
