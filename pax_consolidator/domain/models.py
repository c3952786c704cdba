"""Domain models for the PAX consolidation pipeline.

These dataclasses capture what a source reports (extracts and raw rows) and
the canonical, attributed form that the merge produces.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


class TourType(str, Enum):
    CATAMARAN = "catamaran"
    CHAMPAGNE = "champagne"
    INVISIBLE = "invisible"


class RerunPolicy(str, Enum):
    """How a rerun treats rows already written to the consolidated artifact.

    APPEND keeps every earlier row and adds the new ones after them.
    SNAPSHOT first removes rows belonging to the sources being rewritten.
    """

    APPEND = "append"
    SNAPSHOT = "snapshot"


class LayoutKind(str, Enum):
    """Worksheet shapes the extractor knows how to read."""

    RAW_SOURCE = "raw_source"
    PROCESSED_EXPORT = "processed_export"


@dataclass(frozen=True)
class RawRecord:
    """One tour row as read from a source worksheet."""

    tour_name: str
    allotment: float = 0
    sold: float = 0
    pax_on_board: float = 0
    pax_on_tour: float = 0


@dataclass(frozen=True, kw_only=True)
class ValidatedRecord(RawRecord):
    tour_type: TourType

    @classmethod
    def from_raw(cls, record: RawRecord, tour_type: TourType) -> "ValidatedRecord":
        return cls(
            tour_name=record.tour_name,
            allotment=record.allotment,
            sold=record.sold,
            pax_on_board=record.pax_on_board,
            pax_on_tour=record.pax_on_tour,
            tour_type=tour_type,
        )


@dataclass(frozen=True)
class SourceExtract:
    """What a single source currently reports."""

    date: str
    operator: str
    source_name: str
    records: Sequence[RawRecord] = field(default_factory=tuple)
    layout: LayoutKind = LayoutKind.RAW_SOURCE


@dataclass(frozen=True, kw_only=True)
class AttributedRecord(ValidatedRecord):
    source_id: str
    source_name: str
    date: str
    operator: str

    @classmethod
    def attribute(
        cls,
        record: ValidatedRecord,
        source_id: str,
        source_name: str,
        date: str,
        operator: str,
    ) -> "AttributedRecord":
        return cls(
            tour_name=record.tour_name,
            allotment=record.allotment,
            sold=record.sold,
            pax_on_board=record.pax_on_board,
            pax_on_tour=record.pax_on_tour,
            tour_type=record.tour_type,
            source_id=source_id,
            source_name=source_name,
            date=date,
            operator=operator,
        )

    @property
    def display_tour_name(self) -> str:
        return f"{self.source_name} - {self.tour_name}"


@dataclass(frozen=True)
class TourConflict:
    """A tour type reported by more than one source in the same run."""

    tour_type: TourType
    source_ids: tuple[str, ...]


@dataclass(frozen=True)
class ConsolidatedDataset:
    contributing_sources: tuple[str, ...]
    records: tuple[AttributedRecord, ...]
    total_record_count: int
    last_updated_by_source: str
    conflicts: tuple[TourConflict, ...] = ()

    def records_for(self, source_id: str) -> tuple[AttributedRecord, ...]:
        return tuple(record for record in self.records if record.source_id == source_id)

    def conflict_map(self) -> dict[TourType, tuple[str, ...]]:
        return {conflict.tour_type: conflict.source_ids for conflict in self.conflicts}


@dataclass
class SourceTotals:
    """Per-tour-type sums and PAX grand totals for one source."""

    sold: dict[TourType, float] = field(default_factory=lambda: {t: 0 for t in TourType})
    allotment: dict[TourType, float] = field(default_factory=lambda: {t: 0 for t in TourType})
    pax_on_board: float = 0
    pax_on_tour: float = 0

    def add(self, record: ValidatedRecord) -> None:
        self.sold[record.tour_type] += record.sold
        self.allotment[record.tour_type] += record.allotment
        self.pax_on_board += record.pax_on_board
        self.pax_on_tour += record.pax_on_tour
