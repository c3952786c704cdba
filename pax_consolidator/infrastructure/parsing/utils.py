"""Shared parsing utilities for Excel ingestion.

Cell coercion is total: nothing in here raises on a malformed cell, it falls
back to 0 (numbers) or "" (headers) instead.
"""
from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

from pax_consolidator.domain.errors import SourceReadTimeout

T = TypeVar("T")

FORMULA_RESULT_KEYS = ("result", "value", "calculatedValue", "number", "val")
RADIX_PREFIXES = {"0x": 16, "0b": 2, "0o": 8}

# Serials in this open interval are read as dates in header cells.
DATE_SERIAL_MIN = 1
DATE_SERIAL_MAX = 100000
EXCEL_EPOCH = date(1899, 12, 30)
SERIAL_OFFSET_DAYS = 1


@dataclass
class CoercionStats:
    """Counts numeric cells that held something but degraded to 0."""

    cells: int = 0
    degraded: int = 0

    def record(self, raw: object, degraded: bool) -> None:
        self.cells += 1
        if degraded and not _is_blank(raw):
            self.degraded += 1


def ensure_bytes(source: BytesIO | Path | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _as_number(value: int | float | Decimal) -> int | float:
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return value


def parse_number_text(text: str) -> int | float | None:
    """Parse text the way a spreadsheet formula engine would, or None.

    Unsigned 0x/0b/0o literals are read as integers; a sign in front of
    one makes the text unparsable.
    """
    s = text.strip()
    if not s:
        return 0
    if "_" in s:
        return None
    if s[:2].lower() in RADIX_PREFIXES:
        try:
            return int(s, RADIX_PREFIXES[s[:2].lower()])
        except ValueError:
            return None
    try:
        result = float(s)
    except ValueError:
        return None
    if not math.isfinite(result):
        return None
    if result.is_integer() and "." not in s and "e" not in s.lower():
        return int(result)
    return result


def rich_text_to_str(value: object) -> str | None:
    """Concatenate a rich-text run list, or None when value is not one."""
    if isinstance(value, (list, tuple)):
        parts = []
        for run in value:
            if isinstance(run, str):
                parts.append(run)
            elif isinstance(run, Mapping):
                parts.append(str(run.get("text") or ""))
            else:
                parts.append(str(getattr(run, "text", "") or ""))
        return "".join(parts)
    if isinstance(value, Mapping) and isinstance(value.get("richText"), (list, tuple)):
        return rich_text_to_str(value["richText"])
    return None


def _formula_result(value: object) -> int | float | None:
    for key in FORMULA_RESULT_KEYS:
        if isinstance(value, Mapping):
            candidate = value.get(key)
        else:
            candidate = getattr(value, key, None)
        if _is_number(candidate):
            return _as_number(candidate)
    return None


def coerce_number(value: Any, stats: CoercionStats | None = None) -> int | float:
    result: int | float | None = None
    if _is_number(value):
        result = _as_number(value)
    elif value is not None and not isinstance(value, (str, bool)):
        result = _formula_result(value)
        if result is None:
            text = rich_text_to_str(value)
            if text is not None:
                result = parse_number_text(text)
    elif isinstance(value, str):
        result = parse_number_text(value)

    if stats is not None:
        stats.record(value, degraded=result is None)
    return 0 if result is None else result


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def serial_to_date(serial: float) -> date:
    return EXCEL_EPOCH + timedelta(days=int(serial) + SERIAL_OFFSET_DAYS)


def coerce_header(value: Any) -> str:
    """Display string for a header cell.

    Bare numbers between 1 and 100000 are read as date serials, so a small
    integer in a header cell comes back as a date.
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return format_date(value)
    if _is_number(value) and DATE_SERIAL_MIN < value < DATE_SERIAL_MAX:
        return format_date(serial_to_date(float(value)))
    text = rich_text_to_str(value)
    if text is not None:
        return text
    return str(value)


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    text = rich_text_to_str(value)
    if text is None:
        text = str(value)
    return text.strip()


def run_with_timeout(func: Callable[[], T], timeout: float | None, label: str) -> T:
    """Run a blocking read, surfacing SourceReadTimeout when it overruns."""
    if timeout is None:
        return func()
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(func)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout as exc:
        raise SourceReadTimeout(f"Reading {label} exceeded {timeout}s", source=label) from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
