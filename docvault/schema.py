"""
Shared data structures for envelopes, documents and search criteria.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

MAX_FILENAME_LENGTH = 200
DEFAULT_SEARCH_WINDOW_DAYS = 30

_FORBIDDEN_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """
    Turn an arbitrary label into a filesystem-safe name.

    Characters rejected by common filesystems become ``_``, whitespace runs
    collapse into a single ``_`` and the result is capped at 200 characters.
    Applying it twice yields the same value as applying it once.
    """
    cleaned = _WHITESPACE.sub("_", name)
    cleaned = _FORBIDDEN_CHARS.sub("_", cleaned)
    return cleaned[:MAX_FILENAME_LENGTH]


@dataclass(frozen=True)
class EnvelopeSummary:
    """
    One envelope plus the metadata the service returned for it.

    Attributes:
        envelope_id: Identifier assigned by the e-signature service.
        subject: Email subject line, used to name the local folder.
        status: Lifecycle status (``completed``, ``sent``, ...).
        created_at: Raw ``createdDateTime`` value.
        status_changed_at: Raw ``statusChangedDateTime`` value.
        raw: Full metadata payload, persisted as the envelope's side artifact.
    """

    envelope_id: str
    subject: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    status_changed_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "EnvelopeSummary":
        envelope_id = payload.get("envelopeId")
        if not envelope_id:
            raise ValueError("Envelope payload is missing envelopeId")
        return cls(
            envelope_id=str(envelope_id),
            subject=payload.get("emailSubject"),
            status=payload.get("status"),
            created_at=payload.get("createdDateTime"),
            status_changed_at=payload.get("statusChangedDateTime") or payload.get("createdDateTime"),
            raw=dict(payload),
        )

    @property
    def is_completed(self) -> bool:
        return (self.status or "").lower() == "completed"

    def folder_name(self) -> str:
        return sanitize_filename(f"{self.envelope_id}_{self.subject or 'No_Subject'}")

    def to_dict(self) -> Dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        payload: Dict[str, Any] = {"envelopeId": self.envelope_id}
        if self.subject is not None:
            payload["emailSubject"] = self.subject
        if self.status is not None:
            payload["status"] = self.status
        if self.created_at is not None:
            payload["createdDateTime"] = self.created_at
        if self.status_changed_at is not None:
            payload["statusChangedDateTime"] = self.status_changed_at
        return payload


@dataclass(frozen=True)
class EnvelopeDocument:
    """A single document (sub-item) listed for an envelope."""

    document_id: str
    name: Optional[str] = None
    type: Optional[str] = None
    order: Optional[int] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "EnvelopeDocument":
        order = payload.get("order")
        return cls(
            document_id=str(payload.get("documentId", "")),
            name=payload.get("name"),
            type=payload.get("type"),
            order=int(order) if order not in (None, "") else None,
        )

    @property
    def is_summary(self) -> bool:
        # The certificate shows up in the listing as a "summary" document.
        return self.type == "summary" or self.name == "Summary"

    def filename(self, *, with_id: bool = False) -> str:
        stem = self.name or self.document_id
        if with_id and self.name:
            stem = f"{stem}_{self.document_id}"
        return sanitize_filename(f"{stem}.pdf")


@dataclass
class EnvelopePage:
    """One page of envelope search results."""

    envelopes: List[EnvelopeSummary] = field(default_factory=list)
    total_set_size: int = 0
    result_set_size: int = 0
    start_position: int = 0

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "EnvelopePage":
        envelopes = [EnvelopeSummary.from_api(item) for item in payload.get("envelopes") or []]
        return cls(
            envelopes=envelopes,
            total_set_size=int(payload.get("totalSetSize") or 0),
            result_set_size=int(payload.get("resultSetSize") or len(envelopes)),
            start_position=int(payload.get("startPosition") or 0),
        )

    def status_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for envelope in self.envelopes:
            key = envelope.status or "unknown"
            counts[key] = counts.get(key, 0) + 1
        return counts


@dataclass
class SearchCriteria:
    """
    Envelope search filter. Dates default to the last 30 days and the status
    filter to ``completed``; ``status=None`` searches every status.
    """

    from_date: Optional[date] = None
    to_date: Optional[date] = None
    status: Optional[str] = "completed"
    page_size: int = 100

    def resolved_dates(self, today: Optional[date] = None) -> tuple[date, date]:
        today = today or date.today()
        from_date = self.from_date or today - timedelta(days=DEFAULT_SEARCH_WINDOW_DAYS)
        to_date = self.to_date or today
        return from_date, to_date

    def to_params(self, *, count: Optional[int] = None, start_position: int = 0) -> Dict[str, Any]:
        from_date, to_date = self.resolved_dates()
        params: Dict[str, Any] = {
            "from_date": from_date.isoformat(),
            "to_date": to_date.isoformat(),
            "count": count if count is not None else self.page_size,
            "start_position": start_position,
        }
        if self.status:
            params["status"] = self.status
        return params
