"""Tests for RawRecord parsing."""

import pytest

from runstr.reward_engine.models.raw_record import RawRecord
from conftest import make_event


class TestFromEvent:
    """Test parsing relay event payloads."""

    def test_parses_valid_event(self):
        event = make_event(event_id="abc", pubkey="alice", created_at=1764000000)
        record = RawRecord.from_event(event)

        assert record.id == "abc"
        assert record.author_id == "alice"
        assert record.created_at == 1764000000
        assert record.kind == 1301
        assert record.first_tag("distance") == ("distance", "5.00", "km")
        assert record.first_tag("missing") is None

    def test_round_trips_to_event(self):
        event = make_event(event_id="abc", content="Morning run")
        record = RawRecord.from_event(event)

        assert RawRecord.from_event(record.to_event()) == record

    @pytest.mark.parametrize("field,value", [
        ("id", None),
        ("id", ""),
        ("pubkey", 42),
        ("created_at", "1764000000"),
        ("created_at", True),
        ("kind", None),
        ("tags", "distance"),
        ("content", 5),
    ])
    def test_rejects_malformed_fields(self, field, value):
        event = make_event()
        event[field] = value

        with pytest.raises(ValueError):
            RawRecord.from_event(event)

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            RawRecord.from_event(["EVENT"])

    def test_skips_empty_and_non_list_tags(self):
        event = make_event()
        event["tags"] = [[], "client", ["exercise", "run"]]

        record = RawRecord.from_event(event)

        assert record.tags == (("exercise", "run"),)

    def test_records_are_hashable_and_equal_by_value(self):
        first = RawRecord.from_event(make_event(event_id="same"))
        second = RawRecord.from_event(make_event(event_id="same"))

        assert first == second
        assert len({first, second}) == 1
