import logging

import pytest

from pax_consolidator.domain.models import RawRecord, TourType
from pax_consolidator.domain.services import RecordValidator


@pytest.mark.parametrize(
    "name, tour_type",
    [
        ("Catamaran Sail & Snorkel", TourType.CATAMARAN),
        ("Champagne Adults Only", TourType.CHAMPAGNE),
        ("Invisible Boat Family", TourType.INVISIBLE),
    ],
)
def test_known_names_map_to_exactly_one_record(name, tour_type):
    validated = RecordValidator().validate([RawRecord(name, allotment=10, sold=5)])

    assert len(validated) == 1
    assert validated[0].tour_type is tour_type
    assert validated[0].sold == 5
    assert validated[0].allotment == 10


@pytest.mark.parametrize(
    "name",
    [
        "Catamaran Sail & Snorkel ",
        " Champagne Adults Only",
        "champagne adults only",
        "INVISIBLE BOAT FAMILY",
        "Catamaran Sail and Snorkel",
        "Random Tour",
        "",
    ],
)
def test_near_misses_are_dropped(name):
    assert RecordValidator().validate([RawRecord(name)]) == []


def test_dropped_records_are_logged_at_info(caplog):
    with caplog.at_level(logging.INFO):
        RecordValidator().validate([RawRecord("Random Tour")])

    assert "Random Tour" in caplog.text
    assert all(record.levelno == logging.INFO for record in caplog.records)


def test_mixed_input_keeps_only_valid_records_in_order():
    records = [
        RawRecord("Random Tour", sold=1),
        RawRecord("Champagne Adults Only", sold=2),
        RawRecord("Invisible Boat Family", sold=3),
    ]

    validated = RecordValidator().validate(records)

    assert [r.tour_type for r in validated] == [TourType.CHAMPAGNE, TourType.INVISIBLE]
    assert [r.sold for r in validated] == [2, 3]
