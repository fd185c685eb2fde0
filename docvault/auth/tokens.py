"""
Bearer-token providers for the e-signature API.

``JWTGrantAuth`` implements the OAuth JWT bearer grant: an RS256 assertion
signed with the integration's private key is exchanged for an access token,
which is cached until five minutes before it expires.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import httpx
import jwt

from ..config import ConfigError

logger = logging.getLogger(__name__)

JWT_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"
DEMO_OAUTH_HOST = "account-d.docusign.com"
PRODUCTION_OAUTH_HOST = "account.docusign.com"
ASSERTION_LIFETIME_SECONDS = 3600
REFRESH_MARGIN_SECONDS = 300
USERINFO_TIMEOUT_SECONDS = 15.0


class AuthenticationError(RuntimeError):
    """The token endpoint rejected the grant or the key material is unusable."""


class TokenProvider(Protocol):
    async def get_token(self) -> str:
        ...


class StaticTokenProvider:
    """Hands out a pre-issued access token."""

    def __init__(
        self,
        token: str,
        *,
        base_path: str = "",
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not token:
            raise ValueError("StaticTokenProvider requires a non-empty token.")
        self._token = token
        self.oauth_host = oauth_host_for(base_path)
        self._http_transport = http_transport

    async def get_token(self) -> str:
        return self._token

    async def get_user_info(self) -> Dict[str, Any]:
        return await fetch_user_info(self.oauth_host, self._token, http_transport=self._http_transport)


def oauth_host_for(base_path: str) -> str:
    if "docusign.net" in base_path and "demo" not in base_path:
        return PRODUCTION_OAUTH_HOST
    return DEMO_OAUTH_HOST


async def fetch_user_info(
    oauth_host: str,
    token: str,
    *,
    timeout: float = USERINFO_TIMEOUT_SECONDS,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """GET ``/oauth/userinfo`` for the token's user; any failure is an AuthenticationError."""
    url = f"https://{oauth_host}/oauth/userinfo"
    logger.info("Fetching user info from %s", url)
    async with httpx.AsyncClient(timeout=timeout, transport=http_transport) as client:
        try:
            response = await client.get(
                url,
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise AuthenticationError(
                f"User info request failed with HTTP {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"User info request failed: {exc}") from exc
    return response.json()


def verify_account(user_info: Dict[str, Any], account_id: str) -> Dict[str, Any]:
    """Return the entry of ``account_id`` among the user's accounts or raise ConfigError."""
    accounts = user_info.get("accounts") or []
    for account in accounts:
        if account.get("account_id") == account_id:
            return account
    available = ", ".join(
        f"{account.get('account_id')} ({account.get('account_name')})" for account in accounts
    )
    raise ConfigError(
        f"DOCUSIGN_ACCOUNT_ID {account_id} is not available to this user. "
        f"Available accounts: {available or 'none'}"
    )


class JWTGrantAuth:
    def __init__(
        self,
        *,
        integration_key: str,
        user_id: str,
        base_path: str,
        private_key_path: str,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        clock=time.time,
    ) -> None:
        self.integration_key = integration_key
        self.user_id = user_id
        self.private_key_path = Path(private_key_path)
        self.oauth_host = oauth_host_for(base_path)
        self._timeout = timeout
        self._http_transport = http_transport
        self._clock = clock
        self._private_key: Optional[str] = None
        self._access_token: Optional[str] = None
        self._expires_at = 0.0
        self._lock: Optional[asyncio.Lock] = None

    def _ensure_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def token_url(self) -> str:
        return f"https://{self.oauth_host}/oauth/token"

    async def get_token(self) -> str:
        async with self._ensure_lock():
            if self._access_token and self._clock() < self._expires_at:
                return self._access_token
            return await self._request_token()

    async def get_user_info(self) -> Dict[str, Any]:
        token = await self.get_token()
        try:
            return await fetch_user_info(self.oauth_host, token, http_transport=self._http_transport)
        except AuthenticationError:
            # Force a fresh grant next time; the cached token may have been revoked.
            self._access_token = None
            self._expires_at = 0.0
            raise

    async def _load_private_key(self) -> str:
        if self._private_key is None:
            if not self.private_key_path.exists():
                raise AuthenticationError(f"Private key file not found: {self.private_key_path}")
            key = await asyncio.to_thread(self.private_key_path.read_text, encoding="utf-8")
            if not key.strip():
                raise AuthenticationError("Private key file is empty.")
            if "BEGIN" not in key or "PRIVATE KEY" not in key:
                raise AuthenticationError("Private key file does not contain a PEM private key.")
            self._private_key = key
        return self._private_key

    async def build_assertion(self) -> str:
        private_key = await self._load_private_key()
        now = int(self._clock())
        payload = {
            "iss": self.integration_key,
            "sub": self.user_id,
            "aud": self.oauth_host,
            "iat": now,
            "exp": now + ASSERTION_LIFETIME_SECONDS,
            "scope": "signature impersonation",
        }
        return jwt.encode(payload, private_key, algorithm="RS256")

    async def _request_token(self) -> str:
        assertion = await self.build_assertion()
        logger.info("Requesting access token from %s", self.token_url)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._http_transport) as client:
            try:
                response = await client.post(
                    self.token_url,
                    data={"grant_type": JWT_GRANT_TYPE, "assertion": assertion},
                    headers={"Accept": "application/json"},
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise AuthenticationError(
                    f"Token request failed with HTTP {exc.response.status_code}: {exc.response.text}"
                ) from exc
            except httpx.HTTPError as exc:
                raise AuthenticationError(f"Token request failed: {exc}") from exc

        body = response.json()
        token = body.get("access_token")
        if not token:
            raise AuthenticationError("Token response did not include access_token.")
        expires_in = int(body.get("expires_in") or ASSERTION_LIFETIME_SECONDS)
        self._access_token = token
        self._expires_at = self._clock() + expires_in - REFRESH_MARGIN_SECONDS
        logger.info("Access token obtained; valid for %ss", expires_in)
        return token
