"""docvault application context for shared resources."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..auth import JWTGrantAuth, StaticTokenProvider, TokenProvider, verify_account
from ..config import Settings, get_settings
from ..infra.monitoring import RateGateStats
from ..orchestrator.queue import RateGate
from ..schema import EnvelopePage, SearchCriteria
from ..services.client import EnvelopeClient
from ..services.downloader import DocumentDownloader
from ..services.report import DownloadReport
from ..services.storage import LocalStorage
from ..transports import EnvelopeTransport, HttpEnvelopeTransport

logger = logging.getLogger(__name__)


class DownloadApplication:
    """
    Wires settings, credentials, transport, rate gate and downloader together.

    Construction validates the settings and the first run checks the
    credentials against the account (see :meth:`setup`), so configuration
    problems surface before any call is queued. Each ``download_*`` method is
    one run and returns that run's report.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[EnvelopeTransport] = None,
        token_provider: Optional[TokenProvider] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.settings.validate()

        self.rate_gate = RateGate(
            self.settings.requests_per_minute,
            self.settings.request_spacing,
        )
        logger.info("Rate gate configured: %d req/min", self.settings.requests_per_minute)

        if transport is None and token_provider is None:
            token_provider = self._build_token_provider()
        self.token_provider = token_provider
        self._verified = False

        if transport is None:
            transport = HttpEnvelopeTransport(
                base_path=self.settings.base_path,
                account_id=self.settings.account_id,
                token_provider=token_provider,
                timeout=self.settings.request_timeout,
            )
        self.transport = transport

        self.client = EnvelopeClient(
            self.transport,
            self.rate_gate,
            language=self.settings.language,
            timeout=self.settings.request_timeout,
        )
        self.storage = LocalStorage(self.settings.download_folder)
        self.downloader = DocumentDownloader(
            self.client,
            self.storage,
            max_concurrent_downloads=self.settings.max_concurrent_downloads,
            language=self.settings.language,
            unit_pause=self.settings.unit_pause,
        )

    def _build_token_provider(self) -> TokenProvider:
        if self.settings.uses_static_token():
            return StaticTokenProvider(self.settings.access_token, base_path=self.settings.base_path)
        return JWTGrantAuth(
            integration_key=self.settings.integration_key,
            user_id=self.settings.user_id,
            base_path=self.settings.base_path,
            private_key_path=self.settings.private_key_path,
            timeout=self.settings.request_timeout,
        )

    async def setup(self) -> None:
        """
        Check the credentials once before the first run.

        Obtains a token and, when the provider can look up the user, confirms
        that the configured account belongs to that user. Raises
        ``AuthenticationError`` or ``ConfigError``; nothing has been queued yet.
        """
        if self._verified:
            return
        if self.token_provider is not None:
            await self.token_provider.get_token()
            get_user_info = getattr(self.token_provider, "get_user_info", None)
            if callable(get_user_info):
                user_info = await get_user_info()
                account = verify_account(user_info, self.settings.account_id)
                logger.info(
                    "Authenticated as %s; account %s validated",
                    user_info.get("name") or user_info.get("email") or "unknown user",
                    account.get("account_name") or self.settings.account_id,
                )
        self._verified = True

    async def download_specific(self, envelope_ids: Sequence[str]) -> DownloadReport:
        await self.setup()
        await self.downloader.initialize()
        await self.downloader.download_envelopes(envelope_ids)
        return await self.downloader.save_report()

    async def download_by_criteria(self, criteria: SearchCriteria) -> DownloadReport:
        await self.setup()
        await self.downloader.initialize()
        await self.downloader.download_by_criteria(criteria)
        return await self.downloader.save_report()

    async def download_combined(self, envelope_ids: Sequence[str]) -> DownloadReport:
        await self.setup()
        await self.downloader.initialize()
        await self.downloader.download_combined(envelope_ids)
        return await self.downloader.save_report()

    async def download_combined_by_criteria(self, criteria: SearchCriteria) -> DownloadReport:
        """Search, keep only completed envelopes, then fetch one combined PDF for each."""
        await self.setup()
        await self.downloader.initialize()
        units = await self.downloader.search(criteria)
        completed = [unit.envelope_id for unit in units if unit.is_completed]
        logger.info("%d of %d envelope(s) are completed", len(completed), len(units))
        await self.downloader.download_combined(completed)
        return await self.downloader.save_report()

    async def list_envelopes(self, criteria: SearchCriteria) -> EnvelopePage:
        await self.setup()
        return await self.client.list_envelopes(criteria)

    def rate_stats(self) -> RateGateStats:
        return self.rate_gate.stats()

    async def shutdown(self) -> None:
        await self.rate_gate.aclose()
