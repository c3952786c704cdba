import logging

import pytest

from conftest import CATAMARAN, CHAMPAGNE, INVISIBLE, make_extract
from pax_consolidator.domain.models import RawRecord, TourType
from pax_consolidator.domain.services import CrossSourceMerger, detect_conflicts


@pytest.fixture
def merger() -> CrossSourceMerger:
    return CrossSourceMerger(display_names={"source-1": "Ship A", "source-2": "Ship B"})


def test_two_sources_without_overlap(merger):
    extracts = {
        "source-1": make_extract(RawRecord(CATAMARAN, allotment=10, sold=5)),
        "source-2": make_extract(RawRecord(CHAMPAGNE, allotment=4, sold=2)),
    }

    dataset = merger.merge(extracts, triggered_by="source-2")

    assert dataset.total_record_count == 2
    assert dataset.contributing_sources == ("source-1", "source-2")
    assert dataset.conflicts == ()
    assert dataset.last_updated_by_source == "source-2"


def test_same_tour_type_from_two_sources_is_a_conflict(merger, caplog):
    extracts = {
        "source-1": make_extract(RawRecord(CATAMARAN, sold=5)),
        "source-2": make_extract(RawRecord(CATAMARAN, sold=7)),
    }

    with caplog.at_level(logging.WARNING):
        dataset = merger.merge(extracts)

    assert dataset.total_record_count == 2
    assert set(dataset.conflict_map()[TourType.CATAMARAN]) == {"source-1", "source-2"}
    assert "catamaran" in caplog.text
    # observational only: both rows survive, nothing is aggregated
    assert [r.sold for r in dataset.records] == [5, 7]


def test_conflict_detection_is_order_independent(merger):
    first = merger.merge(
        {"source-2": make_extract(RawRecord(CATAMARAN)), "source-1": make_extract(RawRecord(CATAMARAN))}
    )
    second = merger.merge(
        {"source-1": make_extract(RawRecord(CATAMARAN)), "source-2": make_extract(RawRecord(CATAMARAN))}
    )

    assert set(first.conflict_map()[TourType.CATAMARAN]) == set(second.conflict_map()[TourType.CATAMARAN])


def test_repeated_tour_within_one_source_is_not_a_conflict(merger):
    dataset = merger.merge({"source-1": make_extract(RawRecord(CATAMARAN), RawRecord(CATAMARAN))})

    assert dataset.conflicts == ()
    assert dataset.total_record_count == 2


def test_invalid_record_is_absent_from_merge(merger):
    dataset = merger.merge({"source-1": make_extract(RawRecord("Random Tour"), RawRecord(CHAMPAGNE, sold=2))})

    assert dataset.total_record_count == 1
    assert [r.tour_name for r in dataset.records] == [CHAMPAGNE]


def test_count_matches_sum_of_validated_per_source(merger):
    extracts = {
        "source-1": make_extract(RawRecord(CATAMARAN), RawRecord("bogus"), RawRecord(INVISIBLE)),
        "source-2": make_extract(RawRecord(CHAMPAGNE)),
        "source-3": make_extract(RawRecord("nope")),
    }

    dataset = merger.merge(extracts)

    assert dataset.total_record_count == len(dataset.records) == 3
    assert dataset.contributing_sources == ("source-1", "source-2", "source-3")


def test_records_are_attributed_in_source_order(merger):
    extracts = {
        "source-2": make_extract(RawRecord(CHAMPAGNE), date="23/12/2025", operator="Blue Line", source_name="Sea"),
        "unknown": make_extract(RawRecord(INVISIBLE), source_name="Horizon"),
        "nameless": make_extract(RawRecord(CATAMARAN), source_name=""),
    }

    records = merger.merge(extracts).records

    assert [(r.source_id, r.source_name) for r in records] == [
        ("source-2", "Ship B"),
        ("unknown", "Horizon"),
        ("nameless", "nameless"),
    ]
    assert records[0].date == "23/12/2025"
    assert records[0].operator == "Blue Line"
    assert records[0].display_tour_name == f"Ship B - {CHAMPAGNE}"


def test_records_for_selects_one_source(merger):
    dataset = merger.merge(
        {
            "source-1": make_extract(RawRecord(CATAMARAN), RawRecord(INVISIBLE)),
            "source-2": make_extract(RawRecord(CHAMPAGNE)),
        }
    )

    assert [r.tour_name for r in dataset.records_for("source-1")] == [CATAMARAN, INVISIBLE]
    assert dataset.records_for("source-9") == ()


def test_with_display_name_overrides_one_source(merger):
    renamed = merger.with_display_name("source-1", "Liberty")

    assert renamed.display_name("source-1") == "Liberty"
    assert renamed.display_name("source-2") == "Ship B"
    assert merger.display_name("source-1") == "Ship A"


def test_single_source_dataset():
    dataset = CrossSourceMerger().single_source("ship-a", make_extract(RawRecord(CATAMARAN), RawRecord("x")))

    assert dataset.contributing_sources == ("ship-a",)
    assert dataset.last_updated_by_source == "ship-a"
    assert dataset.total_record_count == 1
    assert dataset.records[0].source_name == "Liberty"


def test_detect_conflicts_lists_each_source_once(merger):
    records = merger.merge(
        {
            "source-1": make_extract(RawRecord(CATAMARAN), RawRecord(CATAMARAN)),
            "source-2": make_extract(RawRecord(CATAMARAN), RawRecord(CHAMPAGNE)),
        }
    ).records

    conflicts = detect_conflicts(records)

    assert len(conflicts) == 1
    assert conflicts[0].tour_type is TourType.CATAMARAN
    assert conflicts[0].source_ids == ("source-1", "source-2")
