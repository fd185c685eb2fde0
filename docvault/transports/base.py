"""
Interfaces for envelope transports (HTTP API, in-memory fixtures, etc.).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class TransportError(RuntimeError):
    """A remote call failed: network error, timeout or non-2xx response."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EnvelopeTransport(Protocol):
    """
    Raw access to the e-signature service. Implementations perform the call
    with already-authenticated parameters and return decoded JSON or bytes.
    """

    async def list_envelopes(self, params: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def get_envelope(self, envelope_id: str) -> Dict[str, Any]:
        ...

    async def list_documents(self, envelope_id: str) -> List[Dict[str, Any]]:
        ...

    async def download_document(self, envelope_id: str, document_id: str, *, language: str) -> bytes:
        ...

    async def download_certificate(self, envelope_id: str, *, language: str) -> bytes:
        ...

    async def download_combined(self, envelope_id: str, *, language: str) -> bytes:
        ...

    async def get_recipients(self, envelope_id: str) -> Dict[str, Any]:
        ...
