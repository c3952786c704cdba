from io import BytesIO

import pandas as pd

from conftest import CATAMARAN, CHAMPAGNE, make_extract
from pax_consolidator.domain.models import RawRecord
from pax_consolidator.domain.services import CrossSourceMerger
from pax_consolidator.presentation.dataset_report import (
    RECORD_COLUMNS,
    build_dataset_workbook_bytes,
    conflicts_to_dataframe,
    records_to_dataframe,
    render_csv,
    summarize_by_source,
)


def _dataset():
    return CrossSourceMerger(display_names={"source-1": "Ship A"}).merge(
        {
            "source-1": make_extract(RawRecord(CATAMARAN, 10, 5), RawRecord(CATAMARAN, 2, 1), RawRecord(CHAMPAGNE, 4, 4)),
            "source-2": make_extract(RawRecord(CATAMARAN, 8, 3)),
        }
    )


def test_records_dataframe_columns():
    frame = records_to_dataframe(_dataset().records)

    assert list(frame.columns) == RECORD_COLUMNS
    assert len(frame) == 4
    assert frame.loc[0, "source_name"] == "Ship A"
    assert frame.loc[3, "source_name"] == "Liberty"


def test_summary_groups_by_source_and_tour():
    summary = summarize_by_source(_dataset())

    rows = {(r.source_id, r.tour_type): (r.allotment, r.sold) for r in summary.itertuples()}
    assert rows == {
        ("source-1", "catamaran"): (12, 6),
        ("source-1", "champagne"): (4, 4),
        ("source-2", "catamaran"): (8, 3),
    }


def test_conflicts_dataframe():
    frame = conflicts_to_dataframe(_dataset())

    assert frame.to_dict("records") == [{"tour_type": "catamaran", "source_ids": "source-1, source-2"}]


def test_csv_has_header_and_rows():
    lines = render_csv(_dataset()).decode("utf-8").splitlines()

    assert lines[0] == ",".join(RECORD_COLUMNS)
    assert len(lines) == 5


def test_dataset_workbook_has_three_sheets():
    sheets = pd.read_excel(BytesIO(build_dataset_workbook_bytes(_dataset())), sheet_name=None, engine="openpyxl")

    assert list(sheets) == ["records", "conflicts", "summary"]
    assert len(sheets["records"]) == 4
    assert len(sheets["conflicts"]) == 1


def test_empty_dataset_summary():
    dataset = CrossSourceMerger().merge({"source-1": make_extract(RawRecord("Unknown"))})

    assert summarize_by_source(dataset).empty
    assert conflicts_to_dataframe(dataset).empty
