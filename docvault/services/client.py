"""
Typed envelope client. Every remote call is wrapped in a task variant and
submitted to the shared RateGate; nothing reaches the transport directly.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List

from ..orchestrator.queue import RateGate
from ..schema import EnvelopeDocument, EnvelopePage, EnvelopeSummary, SearchCriteria
from ..transports.base import EnvelopeTransport

logger = logging.getLogger(__name__)


@dataclass
class RemoteCall(ABC):
    """One remote operation with its own timeout."""

    transport: EnvelopeTransport
    timeout: float

    kind: ClassVar[str] = "remote"

    async def run(self) -> Any:
        return await asyncio.wait_for(self._call(), timeout=self.timeout)

    @abstractmethod
    async def _call(self) -> Any:
        ...


@dataclass
class SearchEnvelopes(RemoteCall):
    params: Dict[str, Any]

    kind: ClassVar[str] = "search_envelopes"

    async def _call(self) -> EnvelopePage:
        return EnvelopePage.from_api(await self.transport.list_envelopes(self.params))


@dataclass
class FetchEnvelope(RemoteCall):
    envelope_id: str

    kind: ClassVar[str] = "fetch_envelope"

    async def _call(self) -> EnvelopeSummary:
        return EnvelopeSummary.from_api(await self.transport.get_envelope(self.envelope_id))


@dataclass
class ListDocuments(RemoteCall):
    envelope_id: str

    kind: ClassVar[str] = "list_documents"

    async def _call(self) -> List[EnvelopeDocument]:
        listing = await self.transport.list_documents(self.envelope_id)
        return [EnvelopeDocument.from_api(item) for item in listing]


@dataclass
class FetchDocument(RemoteCall):
    envelope_id: str
    document_id: str
    language: str

    kind: ClassVar[str] = "fetch_document"

    async def _call(self) -> bytes:
        return await self.transport.download_document(self.envelope_id, self.document_id, language=self.language)


@dataclass
class FetchCertificate(RemoteCall):
    envelope_id: str
    language: str

    kind: ClassVar[str] = "fetch_certificate"

    async def _call(self) -> bytes:
        return await self.transport.download_certificate(self.envelope_id, language=self.language)


@dataclass
class FetchCombined(RemoteCall):
    envelope_id: str
    language: str

    kind: ClassVar[str] = "fetch_combined"

    async def _call(self) -> bytes:
        return await self.transport.download_combined(self.envelope_id, language=self.language)


@dataclass
class FetchRecipients(RemoteCall):
    envelope_id: str

    kind: ClassVar[str] = "fetch_recipients"

    async def _call(self) -> Dict[str, Any]:
        return await self.transport.get_recipients(self.envelope_id)


class EnvelopeClient:
    def __init__(
        self,
        transport: EnvelopeTransport,
        rate_gate: RateGate,
        *,
        language: str = "pt_BR",
        timeout: float = 30.0,
    ) -> None:
        self.transport = transport
        self.rate_gate = rate_gate
        self.language = language
        self.timeout = timeout

    async def list_envelopes(
        self,
        criteria: SearchCriteria,
        *,
        count: int | None = None,
        start_position: int = 0,
    ) -> EnvelopePage:
        params = criteria.to_params(count=count, start_position=start_position)
        logger.info("Searching envelopes start_position=%s count=%s", start_position, params["count"])
        return await self.rate_gate.submit(SearchEnvelopes(self.transport, self.timeout, params))

    async def get_envelope(self, envelope_id: str) -> EnvelopeSummary:
        logger.info("Fetching envelope details: %s", envelope_id)
        return await self.rate_gate.submit(FetchEnvelope(self.transport, self.timeout, envelope_id))

    async def list_documents(self, envelope_id: str) -> List[EnvelopeDocument]:
        return await self.rate_gate.submit(ListDocuments(self.transport, self.timeout, envelope_id))

    async def download_document(self, envelope_id: str, document_id: str) -> bytes:
        return await self.rate_gate.submit(
            FetchDocument(self.transport, self.timeout, envelope_id, document_id, self.language)
        )

    async def download_certificate(self, envelope_id: str) -> bytes:
        return await self.rate_gate.submit(FetchCertificate(self.transport, self.timeout, envelope_id, self.language))

    async def download_combined(self, envelope_id: str) -> bytes:
        return await self.rate_gate.submit(FetchCombined(self.transport, self.timeout, envelope_id, self.language))

    async def get_recipients(self, envelope_id: str) -> Dict[str, Any]:
        return await self.rate_gate.submit(FetchRecipients(self.transport, self.timeout, envelope_id))
