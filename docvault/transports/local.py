"""
In-memory transport serving fixture envelopes.

Useful for tests and dry runs before pointing the downloader at the real API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from .base import EnvelopeTransport, TransportError


@dataclass
class FixtureEnvelope:
    metadata: Dict[str, Any]
    documents: Dict[str, bytes] = field(default_factory=dict)
    document_listing: List[Dict[str, Any]] = field(default_factory=list)
    certificate: bytes = b""
    combined: Optional[bytes] = None
    recipients: Dict[str, Any] = field(default_factory=dict)


class InMemoryEnvelopeTransport(EnvelopeTransport):
    """
    Serves envelopes registered with :meth:`add_envelope`. Individual calls can
    be made to fail with :meth:`fail`, keyed by operation name and target.
    """

    def __init__(self) -> None:
        self._envelopes: Dict[str, FixtureEnvelope] = {}
        self._failures: Set[Tuple[str, str]] = set()
        self.calls: List[Tuple[str, str]] = []

    def add_envelope(
        self,
        envelope_id: str,
        *,
        subject: str = "",
        status: str = "completed",
        documents: Optional[Dict[str, bytes]] = None,
        certificate: bytes = b"certificate",
        combined: Optional[bytes] = None,
        extra_listing: Optional[List[Dict[str, Any]]] = None,
    ) -> FixtureEnvelope:
        documents = dict(documents or {})
        listing = [
            {"documentId": doc_id, "name": f"Document {doc_id}", "type": "content", "order": index + 1}
            for index, doc_id in enumerate(documents)
        ]
        listing.extend(extra_listing or [])
        fixture = FixtureEnvelope(
            metadata={"envelopeId": envelope_id, "emailSubject": subject, "status": status},
            documents=documents,
            document_listing=listing,
            certificate=certificate,
            combined=combined,
        )
        self._envelopes[envelope_id] = fixture
        return fixture

    def fail(self, operation: str, target: str) -> None:
        """Make ``operation`` fail for ``target`` (an envelope id, or ``envelope_id/document_id``)."""
        self._failures.add((operation, target))

    def _check(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        if (operation, target) in self._failures:
            raise TransportError(f"{operation} failed for {target}", status_code=500)

    def _fixture(self, envelope_id: str) -> FixtureEnvelope:
        fixture = self._envelopes.get(envelope_id)
        if fixture is None:
            raise TransportError(f"Envelope {envelope_id} not found", status_code=404)
        return fixture

    async def list_envelopes(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self._check("list_envelopes", str(params.get("start_position", 0)))
        status = params.get("status")
        matching = [
            fixture.metadata
            for fixture in self._envelopes.values()
            if not status or fixture.metadata.get("status") == status
        ]
        start = int(params.get("start_position", 0))
        count = int(params.get("count", 100))
        page = matching[start:start + count]
        return {
            "envelopes": page,
            "totalSetSize": len(matching),
            "resultSetSize": len(page),
            "startPosition": start,
        }

    async def get_envelope(self, envelope_id: str) -> Dict[str, Any]:
        self._check("get_envelope", envelope_id)
        return dict(self._fixture(envelope_id).metadata)

    async def list_documents(self, envelope_id: str) -> List[Dict[str, Any]]:
        self._check("list_documents", envelope_id)
        return list(self._fixture(envelope_id).document_listing)

    async def download_document(self, envelope_id: str, document_id: str, *, language: str) -> bytes:
        self._check("download_document", f"{envelope_id}/{document_id}")
        fixture = self._fixture(envelope_id)
        if document_id not in fixture.documents:
            raise TransportError(f"Document {document_id} not found", status_code=404)
        return fixture.documents[document_id]

    async def download_certificate(self, envelope_id: str, *, language: str) -> bytes:
        self._check("download_certificate", envelope_id)
        return self._fixture(envelope_id).certificate

    async def download_combined(self, envelope_id: str, *, language: str) -> bytes:
        self._check("download_combined", envelope_id)
        fixture = self._fixture(envelope_id)
        if fixture.combined is not None:
            return fixture.combined
        return b"".join(fixture.documents.values()) + fixture.certificate

    async def get_recipients(self, envelope_id: str) -> Dict[str, Any]:
        self._check("get_recipients", envelope_id)
        return dict(self._fixture(envelope_id).recipients)
