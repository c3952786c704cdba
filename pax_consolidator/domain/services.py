"""Domain services implementing validation and cross-source merge rules."""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Sequence

from .models import (
    AttributedRecord,
    ConsolidatedDataset,
    RawRecord,
    SourceExtract,
    SourceTotals,
    TourConflict,
    TourType,
    ValidatedRecord,
)

logger = logging.getLogger(__name__)

KNOWN_TOURS: Mapping[str, TourType] = {
    "Catamaran Sail & Snorkel": TourType.CATAMARAN,
    "Champagne Adults Only": TourType.CHAMPAGNE,
    "Invisible Boat Family": TourType.INVISIBLE,
}


class RecordValidator:
    """Maps tour names onto the closed set of tour types.

    Matching is exact: a trailing space or a case difference means the record
    is dropped.
    """

    def __init__(self, known_tours: Mapping[str, TourType] | None = None) -> None:
        self._known_tours = dict(KNOWN_TOURS if known_tours is None else known_tours)

    def tour_type_for(self, tour_name: str) -> TourType | None:
        return self._known_tours.get(tour_name)

    def validate(self, records: Iterable[RawRecord]) -> list[ValidatedRecord]:
        validated: list[ValidatedRecord] = []
        for record in records:
            tour_type = self.tour_type_for(record.tour_name)
            if tour_type is None:
                logger.info("Dropping record with unknown tour name %r", record.tour_name)
                continue
            validated.append(ValidatedRecord.from_raw(record, tour_type))
        return validated


def detect_conflicts(records: Sequence[AttributedRecord]) -> tuple[TourConflict, ...]:
    """Tour types that appear under more than one source id."""
    sources_by_type: dict[TourType, list[str]] = {}
    for record in records:
        seen = sources_by_type.setdefault(record.tour_type, [])
        if record.source_id not in seen:
            seen.append(record.source_id)

    conflicts = tuple(
        TourConflict(tour_type=tour_type, source_ids=tuple(source_ids))
        for tour_type, source_ids in sources_by_type.items()
        if len(source_ids) > 1
    )
    for conflict in conflicts:
        logger.warning(
            "Tour conflict: %s reported by sources %s",
            conflict.tour_type.value,
            ", ".join(conflict.source_ids),
        )
    return conflicts


def aggregate_totals(records: Iterable[ValidatedRecord]) -> SourceTotals:
    totals = SourceTotals()
    for record in records:
        totals.add(record)
    return totals


class CrossSourceMerger:
    """Validates each source's records and concatenates them, attributed.

    No deduplication happens here: two sources reporting the same tour type
    give two rows, and the overlap is only reported as a conflict.
    """

    def __init__(
        self,
        display_names: Mapping[str, str] | None = None,
        validator: RecordValidator | None = None,
    ) -> None:
        self._display_names = dict(display_names or {})
        self._validator = validator or RecordValidator()

    def with_display_name(self, source_id: str, name: str) -> "CrossSourceMerger":
        """Copy of this merger with one source shown under `name`."""
        names = dict(self._display_names)
        names[source_id] = name
        return CrossSourceMerger(display_names=names, validator=self._validator)

    def display_name(self, source_id: str, extract: SourceExtract | None = None) -> str:
        name = self._display_names.get(source_id)
        if name:
            return name
        if extract is not None and extract.source_name:
            return extract.source_name
        return source_id

    def attribute_source(self, source_id: str, extract: SourceExtract) -> list[AttributedRecord]:
        display = self.display_name(source_id, extract)
        return [
            AttributedRecord.attribute(
                record,
                source_id=source_id,
                source_name=display,
                date=extract.date,
                operator=extract.operator,
            )
            for record in self._validator.validate(extract.records)
        ]

    def merge(
        self,
        extracts: Mapping[str, SourceExtract],
        triggered_by: str = "system",
    ) -> ConsolidatedDataset:
        records: list[AttributedRecord] = []
        for source_id, extract in extracts.items():
            attributed = self.attribute_source(source_id, extract)
            logger.info("Source %s contributed %d validated record(s)", source_id, len(attributed))
            records.extend(attributed)

        return ConsolidatedDataset(
            contributing_sources=tuple(extracts.keys()),
            records=tuple(records),
            total_record_count=len(records),
            last_updated_by_source=triggered_by,
            conflicts=detect_conflicts(records),
        )

    def single_source(self, source_id: str, extract: SourceExtract) -> ConsolidatedDataset:
        """Dataset holding only one source's records, without cross-source merging."""
        records = tuple(self.attribute_source(source_id, extract))
        return ConsolidatedDataset(
            contributing_sources=(source_id,),
            records=records,
            total_record_count=len(records),
            last_updated_by_source=source_id,
        )
