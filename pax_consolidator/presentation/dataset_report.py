"""Tabular views of a consolidated dataset."""
from __future__ import annotations

import io
from typing import Sequence

import pandas as pd

from pax_consolidator.domain.models import AttributedRecord, ConsolidatedDataset

RECORD_COLUMNS = [
    "source_id",
    "source_name",
    "date",
    "operator",
    "tour_name",
    "tour_type",
    "allotment",
    "sold",
    "pax_on_board",
    "pax_on_tour",
]


def records_to_rows(records: Sequence[AttributedRecord]) -> list[dict[str, object]]:
    return [
        {
            "source_id": record.source_id,
            "source_name": record.source_name,
            "date": record.date,
            "operator": record.operator,
            "tour_name": record.tour_name,
            "tour_type": record.tour_type.value,
            "allotment": record.allotment,
            "sold": record.sold,
            "pax_on_board": record.pax_on_board,
            "pax_on_tour": record.pax_on_tour,
        }
        for record in records
    ]


def records_to_dataframe(records: Sequence[AttributedRecord]) -> pd.DataFrame:
    return pd.DataFrame(records_to_rows(records), columns=RECORD_COLUMNS)


def conflicts_to_dataframe(dataset: ConsolidatedDataset) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"tour_type": conflict.tour_type.value, "source_ids": ", ".join(conflict.source_ids)}
            for conflict in dataset.conflicts
        ],
        columns=["tour_type", "source_ids"],
    )


def summarize_by_source(dataset: ConsolidatedDataset) -> pd.DataFrame:
    """Sold and allotment totals per source and tour type."""
    frame = records_to_dataframe(dataset.records)
    if frame.empty:
        return pd.DataFrame(columns=["source_id", "tour_type", "allotment", "sold"])
    return (
        frame.groupby(["source_id", "tour_type"], sort=False)[["allotment", "sold"]]
        .sum()
        .reset_index()
    )


def render_csv(dataset: ConsolidatedDataset) -> bytes:
    buffer = io.StringIO()
    records_to_dataframe(dataset.records).to_csv(buffer, index=False)
    return buffer.getvalue().encode("utf-8")


def build_dataset_workbook_bytes(dataset: ConsolidatedDataset) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="xlsxwriter") as writer:
        records_to_dataframe(dataset.records).to_excel(writer, sheet_name="records", index=False)
        conflicts_to_dataframe(dataset).to_excel(writer, sheet_name="conflicts", index=False)
        summarize_by_source(dataset).to_excel(writer, sheet_name="summary", index=False)
    buf.seek(0)
    return buf.getvalue()
