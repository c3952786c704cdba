"""Routing of report dates to monthly worksheet tabs such as "Dec 25"."""
from __future__ import annotations

from datetime import date

import pandas as pd

# Tab captions used by the PAX workbook; July and Sept are spelled out there.
MONTH_LABELS = {
    1: "Jan",
    2: "Feb",
    3: "Mar",
    4: "Apr",
    5: "May",
    6: "Jun",
    7: "July",
    8: "Aug",
    9: "Sept",
    10: "Oct",
    11: "Nov",
    12: "Dec",
}


def parse_report_date(value: str) -> date | None:
    if not value or not value.strip():
        return None
    parsed = pd.to_datetime(value.strip(), format="%d/%m/%Y", errors="coerce")
    if pd.isna(parsed):
        parsed = pd.to_datetime(value.strip(), dayfirst=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def month_tab_name(value: str) -> str | None:
    parsed = parse_report_date(value)
    if parsed is None:
        return None
    return f"{MONTH_LABELS[parsed.month]} {parsed.year % 100:02d}"
