"""Tests for Pydantic models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from servers.comp_ingest.models import (
    AdapterFailure,
    EventRecord,
    FetchStats,
    IngestionSummary,
    MatchDecision,
    union_provenance,
)


class TestEventRecord:
    """Tests for EventRecord model."""

    def test_minimal_record(self):
        record = EventRecord(title="Quant Cup [HKU]", host="HKU", provenance=["HKU"])
        assert record.id is None
        assert record.is_candidate is True
        assert record.occurs_at.tzinfo is not None
        assert record.description is None

    def test_full_record(self):
        record = EventRecord(
            id="abc",
            title="Midnight Sun CTF [CTF]",
            occurs_at=datetime(2025, 3, 1, 12, tzinfo=timezone.utc),
            host="CTFTime",
            provenance=["CTFTime"],
            description="Jeopardy-style CTF",
            location="Online",
            registration_link="https://midnightsunctf.example",
            max_participants=5,
            status="upcoming",
        )
        assert record.is_candidate is False
        assert record.max_participants == 5

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            EventRecord(title="", host="HKU", provenance=["HKU"])

    def test_empty_provenance_rejected(self):
        with pytest.raises(ValidationError):
            EventRecord(title="Quant Cup", host="HKU", provenance=[])

    def test_blank_provenance_rejected(self):
        with pytest.raises(ValidationError):
            EventRecord(title="Quant Cup", host="HKU", provenance=["  "])

    def test_provenance_deduplicated(self):
        record = EventRecord(
            title="Quant Cup", host="HKU", provenance=["HKU", "hku", " HKUST "]
        )
        assert record.provenance == ["HKU", "HKUST"]

    def test_with_source_adds(self, hku_record: EventRecord):
        assert hku_record.with_source("CTFTime") == ["HKU", "CTFTime"]
        assert hku_record.provenance == ["HKU"]

    def test_with_source_ignores_known(self, hku_record: EventRecord):
        assert hku_record.with_source("hku") == ["HKU"]

    def test_naive_datetimes_read_as_utc(self):
        record = EventRecord(
            title="Quant Cup",
            host="HKU",
            provenance=["HKU"],
            occurs_at=datetime(2025, 5, 2),
            registration_deadline=datetime(2025, 4, 30, 23, 59),
        )
        assert record.occurs_at == datetime(2025, 5, 2, tzinfo=timezone.utc)
        assert record.registration_deadline.tzinfo is not None

    def test_offsets_converted_to_utc(self):
        record = EventRecord.model_validate({
            "title": "Quant Cup",
            "host": "HKU",
            "provenance": ["HKU"],
            "occurs_at": "2025-05-02T08:00:00+08:00",
        })
        assert record.occurs_at == datetime(2025, 5, 2, tzinfo=timezone.utc)
        assert record.occurs_at.utcoffset().total_seconds() == 0

    def test_json_round_trip_keeps_timezone(self, hku_record: EventRecord):
        restored = EventRecord.model_validate(hku_record.model_dump(mode="json"))
        assert restored == hku_record


class TestUnionProvenance:
    """Tests for provenance set union."""

    def test_preserves_order(self):
        assert union_provenance(["HKU", "HKUST"], "CTFTime") == ["HKU", "HKUST", "CTFTime"]

    def test_does_not_mutate(self):
        provenance = ["HKU"]
        union_provenance(provenance, "CTFTime")
        assert provenance == ["HKU"]


class TestMatchDecision:
    """Tests for MatchDecision model."""

    def test_no_match(self):
        decision = MatchDecision.no_match()
        assert decision.matched is False

    def test_found(self):
        decision = MatchDecision.found("r1")
        assert decision.matched is True
        assert decision.model_dump() == {"existing_id": "r1", "matched": True}


class TestIngestionSummary:
    """Tests for IngestionSummary model."""

    def test_defaults(self):
        summary = IngestionSummary()
        assert summary.inserted_count == 0
        assert summary.merged_count == 0
        assert summary.failed_sources == []

    def test_failed_sources(self):
        summary = IngestionSummary(
            failures=[
                AdapterFailure(source_id="HKU", error="HTTP 503"),
                AdapterFailure(source_id="CTFTime", error="slow", kind="timeout"),
            ],
            stats=[FetchStats(source="HKUST", count=3, status="success")],
        )
        assert summary.failed_sources == ["HKU", "CTFTime"]
        dumped = summary.model_dump(mode="json")
        assert dumped["failed_sources"] == ["HKU", "CTFTime"]
        assert dumped["failures"][0]["kind"] == "fetch"
