import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from docvault.services.report import DownloadStats, build_report, humanize_duration


def test_report_snapshots_stats():
    started = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    stats = DownloadStats(started_at=started)
    stats.record_envelope()
    stats.record_document(1_572_864)
    stats.record_document(524_288)
    stats.record_certificate(1024)
    stats.record_error()

    report = build_report(stats, finished_at=started + timedelta(minutes=2, seconds=5))

    assert report.envelopes == 1
    assert report.documents == 2
    assert report.certificates == 1
    assert report.total_bytes == 1_572_864 + 524_288 + 1024
    assert report.total_mb == 2.0
    assert report.errors == 1
    assert report.duration_seconds == 125.0
    assert report.duration_human == "2m 5s"
    assert stats.finished_at == report.finished_at

    payload = report.to_dict()["summary"]
    assert payload["started_at"] == "2024-05-01T12:00:00+00:00"
    assert payload["total_mb"] == 2.0


def test_report_is_immutable_and_detached_from_stats():
    stats = DownloadStats()
    report = build_report(stats)
    stats.record_error()
    assert report.errors == 0
    with pytest.raises(dataclasses.FrozenInstanceError):
        report.errors = 5  # type: ignore[misc]


def test_empty_run_still_produces_a_report():
    report = build_report(DownloadStats())
    assert report.total_bytes == 0
    assert report.total_mb == 0.0
    assert any(line.startswith("Errors:") for line in report.lines())


def test_humanize_duration():
    assert humanize_duration(0.2) == "less than a second"
    assert humanize_duration(59) == "59s"
    assert humanize_duration(3600) == "1h"
    assert humanize_duration(3725) == "1h 2m 5s"
