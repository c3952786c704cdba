"""Fixed worksheet layouts understood by the extractor."""
from __future__ import annotations

from dataclasses import dataclass

from pax_consolidator.domain.models import LayoutKind


@dataclass(frozen=True)
class SheetLayout:
    kind: LayoutKind
    date_cell: str
    operator_cell: str
    source_name_cell: str
    anchor_row: int
    last_row: int
    name_col: int
    allotment_col: int
    sold_col: int
    pax_on_board_col: int
    pax_on_tour_col: int
    skip_labels: frozenset[str] = frozenset({"TOUR"})
    stop_labels: frozenset[str] = frozenset()


RAW_SOURCE_LAYOUT = SheetLayout(
    kind=LayoutKind.RAW_SOURCE,
    date_cell="B5",
    operator_cell="B2",
    source_name_cell="B3",
    anchor_row=8,
    last_row=200,
    name_col=1,  # A
    allotment_col=8,  # H
    sold_col=10,  # J
    pax_on_board_col=17,  # Q
    pax_on_tour_col=18,  # R
)

PROCESSED_EXPORT_LAYOUT = SheetLayout(
    kind=LayoutKind.PROCESSED_EXPORT,
    date_cell="B3",
    operator_cell="B2",
    source_name_cell="B1",
    anchor_row=5,
    last_row=100,
    name_col=1,
    allotment_col=2,
    sold_col=3,
    pax_on_board_col=4,
    pax_on_tour_col=5,
    stop_labels=frozenset({"TOTAL"}),
)

LAYOUTS: dict[LayoutKind, SheetLayout] = {
    LayoutKind.RAW_SOURCE: RAW_SOURCE_LAYOUT,
    LayoutKind.PROCESSED_EXPORT: PROCESSED_EXPORT_LAYOUT,
}


def get_layout(kind: LayoutKind | str) -> SheetLayout:
    return LAYOUTS[LayoutKind(kind)]
