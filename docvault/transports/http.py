"""
httpx-based transport for the e-signature REST API (v2.1).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..auth.tokens import TokenProvider
from .base import EnvelopeTransport, TransportError

logger = logging.getLogger(__name__)

API_VERSION = "v2.1"


class HttpEnvelopeTransport(EnvelopeTransport):
    """
    Calls the account-scoped REST endpoints with a fresh bearer token per call.
    """

    def __init__(
        self,
        *,
        base_path: str,
        account_id: str,
        token_provider: TokenProvider,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not account_id:
            raise ValueError("HttpEnvelopeTransport requires an account_id.")
        self.base_url = f"{base_path.rstrip('/')}/{API_VERSION}/accounts/{account_id}"
        self._token_provider = token_provider
        self._timeout = timeout
        self._http_transport = http_transport

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        token = await self._token_provider.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout,
            transport=self._http_transport,
        ) as client:
            try:
                response = await client.get(path, params=params, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise TransportError(
                    f"GET {path} returned HTTP {exc.response.status_code}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"GET {path} failed: {exc}") from exc
        return response

    async def list_envelopes(self, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._get("/envelopes", params=params)
        data = response.json()
        logger.info("Envelope search returned %d envelope(s)", len(data.get("envelopes") or []))
        return data

    async def get_envelope(self, envelope_id: str) -> Dict[str, Any]:
        response = await self._get(f"/envelopes/{envelope_id}")
        return response.json()

    async def list_documents(self, envelope_id: str) -> List[Dict[str, Any]]:
        response = await self._get(f"/envelopes/{envelope_id}/documents")
        documents = response.json().get("envelopeDocuments") or []
        logger.info("Envelope %s lists %d document(s)", envelope_id, len(documents))
        return documents

    async def download_document(self, envelope_id: str, document_id: str, *, language: str) -> bytes:
        response = await self._get(
            f"/envelopes/{envelope_id}/documents/{document_id}",
            params={"certificate": "false", "language": language},
        )
        return response.content

    async def download_certificate(self, envelope_id: str, *, language: str) -> bytes:
        response = await self._get(
            f"/envelopes/{envelope_id}/documents/certificate",
            params={"certificate": "true", "language": language},
        )
        return response.content

    async def download_combined(self, envelope_id: str, *, language: str) -> bytes:
        response = await self._get(
            f"/envelopes/{envelope_id}/documents/combined",
            params={"certificate": "true", "language": language},
        )
        return response.content

    async def get_recipients(self, envelope_id: str) -> Dict[str, Any]:
        response = await self._get(f"/envelopes/{envelope_id}/recipients")
        return response.json()
