"""Run statistics and the immutable report built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

REPORT_FILENAME = "download_report.json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DownloadStats:
    """
    Mutable counters for one run. Updates go through the ``record_*`` helpers;
    none of them suspend, so concurrent tasks on the event loop cannot
    interleave a read-modify-write.
    """

    envelopes: int = 0
    documents: int = 0
    certificates: int = 0
    total_bytes: int = 0
    errors: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    def record_envelope(self) -> None:
        self.envelopes += 1

    def record_document(self, size: int) -> None:
        self.documents += 1
        self.total_bytes += size

    def record_certificate(self, size: int) -> None:
        self.certificates += 1
        self.total_bytes += size

    def record_error(self) -> None:
        self.errors += 1


def humanize_duration(seconds: float) -> str:
    seconds = max(seconds, 0.0)
    if seconds < 1:
        return "less than a second"
    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


@dataclass(frozen=True)
class DownloadReport:
    envelopes: int
    documents: int
    certificates: int
    total_bytes: int
    total_mb: float
    errors: int
    duration_seconds: float
    duration_human: str
    started_at: datetime
    finished_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "envelopes": self.envelopes,
                "documents": self.documents,
                "certificates": self.certificates,
                "total_bytes": self.total_bytes,
                "total_mb": self.total_mb,
                "errors": self.errors,
                "duration_seconds": self.duration_seconds,
                "duration": self.duration_human,
                "started_at": self.started_at.isoformat(),
                "finished_at": self.finished_at.isoformat(),
            }
        }

    def lines(self) -> list[str]:
        return [
            f"Envelopes:    {self.envelopes}",
            f"Documents:    {self.documents}",
            f"Certificates: {self.certificates}",
            f"Downloaded:   {self.total_mb} MB",
            f"Errors:       {self.errors}",
            f"Duration:     {self.duration_human}",
        ]


def build_report(stats: DownloadStats, finished_at: Optional[datetime] = None) -> DownloadReport:
    """Snapshot ``stats`` into a report; also stamps ``stats.finished_at``."""
    finished = finished_at or _utcnow()
    stats.finished_at = finished
    elapsed = (finished - stats.started_at).total_seconds()
    return DownloadReport(
        envelopes=stats.envelopes,
        documents=stats.documents,
        certificates=stats.certificates,
        total_bytes=stats.total_bytes,
        total_mb=round(stats.total_bytes / 1024 / 1024, 2),
        errors=stats.errors,
        duration_seconds=round(elapsed, 2),
        duration_human=humanize_duration(elapsed),
        started_at=stats.started_at,
        finished_at=finished,
    )
