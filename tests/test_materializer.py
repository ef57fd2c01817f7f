from __future__ import annotations

from datetime import datetime, timezone

from candidate_store.storage.materializer import classify_entries, parse_timestamp, sort_newest_first
from candidate_store.storage.models import ArtifactKind, ProfileSummary


def test_parse_timestamp_variants() -> None:
    assert parse_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(1704067200) is None


def test_sort_keeps_undated_entries_in_place() -> None:
    items = [
        ("a", None),
        ("b", "2024-01-01T00:00:00Z"),
        ("c", None),
        ("d", "2024-06-01T00:00:00Z"),
        ("e", "not a date"),
        ("f", "2024-03-01T00:00:00Z"),
    ]

    ordered = sort_newest_first(items, lambda item: item[1])

    assert [name for name, _ in ordered] == ["a", "d", "c", "f", "e", "b"]


def test_sort_of_undated_only_preserves_order() -> None:
    items = [("x", None), ("y", None), ("z", None)]

    assert sort_newest_first(items, lambda item: item[1]) == items


def test_classify_entries_ignores_unknown_and_order() -> None:
    keys = [
        "p/c/s/metadata.json",
        "p/c/s/random.bin",
        "p/c/s/report.html",
        "p/c/s/transcript.txt",
    ]

    slots = classify_entries(reversed(keys))

    assert slots == {
        ArtifactKind.METADATA: "p/c/s/metadata.json",
        ArtifactKind.HTML: "p/c/s/report.html",
        ArtifactKind.TRANSCRIPT: "p/c/s/transcript.txt",
    }


def test_profile_summary_projection() -> None:
    summary = ProfileSummary.from_profile(
        {"candidate_name": "Lee", "contact": {"location": "Chennai"}, "total_experience_years": 4.5, "summary": "ok"}
    )
    assert summary == ProfileSummary(name="Lee", location="Chennai", experience=4.5, summary="ok")
    assert ProfileSummary.from_profile({"contact": None}) == ProfileSummary()


def test_profile_summary_drops_mistyped_fields() -> None:
    summary = ProfileSummary.from_profile(
        {"candidate_name": 123, "contact": {"location": ["x"]}, "total_experience_years": {"years": 5}, "summary": None}
    )
    assert summary == ProfileSummary()
    assert ProfileSummary.from_profile({"total_experience_years": "5+"}).experience == "5+"
    assert ProfileSummary.from_profile({"total_experience_years": True}).experience is None
