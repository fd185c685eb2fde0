"""
Download orchestration: envelopes in, files and run statistics out.

Each envelope is processed as: metadata, folder, metadata side artifact,
document listing, then one gated fetch-and-write task per document plus one
for the certificate. All tasks of an envelope are settled together; a failing
task is counted and logged without disturbing its siblings, and a failing
envelope never stops the batch.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, ClassVar, Iterable, List, Optional, Sequence

from ..orchestrator.concurrency import ConcurrencyGate, gather_settled
from ..schema import EnvelopeDocument, EnvelopeSummary, SearchCriteria, sanitize_filename
from .client import EnvelopeClient
from .report import REPORT_FILENAME, DownloadReport, DownloadStats, build_report
from .search import search_envelopes
from .storage import LocalStorage

logger = logging.getLogger(__name__)

ENVELOPE_INFO_FILENAME = "envelope_info.json"
RECIPIENTS_FILENAME = "recipients.json"
COMBINED_FOLDER = "combined"


@dataclass(frozen=True)
class SavedFile:
    kind: str
    path: Path
    size: int


def document_filenames(documents: Sequence[EnvelopeDocument]) -> List[str]:
    """Per-document file names; a name shared by several documents gets the document id appended."""
    counts = Counter(document.filename().lower() for document in documents)
    return [
        document.filename(with_id=counts[document.filename().lower()] > 1)
        for document in documents
    ]


@dataclass
class DocumentTask:
    client: EnvelopeClient
    storage: LocalStorage
    envelope_id: str
    document: EnvelopeDocument
    folder: Path
    filename: str

    kind: ClassVar[str] = "document"

    async def run(self) -> SavedFile:
        data = await self.client.download_document(self.envelope_id, self.document.document_id)
        path = self.folder / self.filename
        size = await self.storage.write_bytes(path, data)
        logger.info("  Document saved: %s (%d bytes)", path.name, size)
        return SavedFile(self.kind, path, size)


@dataclass
class CertificateTask:
    client: EnvelopeClient
    storage: LocalStorage
    envelope_id: str
    folder: Path
    language: str

    kind: ClassVar[str] = "certificate"

    async def run(self) -> SavedFile:
        data = await self.client.download_certificate(self.envelope_id)
        path = self.folder / f"Certificate_{self.envelope_id}_{self.language}.pdf"
        size = await self.storage.write_bytes(path, data)
        logger.info("  Certificate saved: %s", path.name)
        return SavedFile(self.kind, path, size)


@dataclass
class RecipientsTask:
    client: EnvelopeClient
    storage: LocalStorage
    envelope_id: str
    folder: Path

    kind: ClassVar[str] = "recipients"

    async def run(self) -> SavedFile:
        recipients = await self.client.get_recipients(self.envelope_id)
        path = self.folder / RECIPIENTS_FILENAME
        size = await self.storage.write_json(path, recipients)
        return SavedFile(self.kind, path, size)


@dataclass
class CombinedTask:
    client: EnvelopeClient
    storage: LocalStorage
    envelope_id: str
    folder: Path

    kind: ClassVar[str] = "combined"

    async def run(self) -> SavedFile:
        logger.info("Downloading combined document: %s", self.envelope_id)
        details = await self.client.get_envelope(self.envelope_id)
        data = await self.client.download_combined(self.envelope_id)
        subject = sanitize_filename(details.subject or "No_Subject")
        path = self.folder / f"{self.envelope_id}_{subject}_combined.pdf"
        size = await self.storage.write_bytes(path, data)
        logger.info("  Combined saved: %s (%d KB)", path.name, round(size / 1024))
        return SavedFile(self.kind, path, size)


class DocumentDownloader:
    def __init__(
        self,
        client: EnvelopeClient,
        storage: LocalStorage,
        *,
        max_concurrent_downloads: int = 5,
        language: str = "pt_BR",
        unit_pause: float = 1.0,
        include_recipients: bool = False,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.storage = storage
        self.max_concurrent_downloads = max_concurrent_downloads
        self.language = language
        self.unit_pause = unit_pause
        self.include_recipients = include_recipients
        self._sleep = sleep
        self.stats: Optional[DownloadStats] = None
        self.gate: Optional[ConcurrencyGate] = None
        self._report: Optional[DownloadReport] = None

    async def initialize(self) -> None:
        """Prepare the download root and start a fresh run."""
        await self.storage.ensure_dir(self.storage.root)
        self.stats = DownloadStats()
        self.gate = ConcurrencyGate(self.max_concurrent_downloads)
        self._report = None
        logger.info("Downloading into %s", self.storage.root)

    def _run_state(self) -> tuple[DownloadStats, ConcurrencyGate]:
        if self.stats is None or self.gate is None:
            raise RuntimeError("DocumentDownloader.initialize() must be awaited before downloading.")
        return self.stats, self.gate

    # ------------------------------------------------------------------
    # Per-envelope sequence
    # ------------------------------------------------------------------

    async def download_envelope(self, envelope_id: str, details: Optional[EnvelopeSummary] = None) -> bool:
        """Download every document and the certificate of one envelope. Returns False if the envelope failed."""
        stats, gate = self._run_state()
        logger.info("Processing envelope: %s", envelope_id)
        try:
            unit = details or await self.client.get_envelope(envelope_id)
            folder = self.storage.resolve(unit.folder_name())
            await self.storage.ensure_dir(folder)
            await self.storage.write_json(folder / ENVELOPE_INFO_FILENAME, unit.to_dict())
            documents = await self.client.list_documents(envelope_id)
        except Exception as exc:
            logger.exception("Failed to process envelope %s: %s", envelope_id, exc)
            stats.record_error()
            return False

        contents = [document for document in documents if not document.is_summary]
        tasks: List[Any] = [
            DocumentTask(self.client, self.storage, envelope_id, document, folder, filename)
            for document, filename in zip(contents, document_filenames(contents))
        ]
        tasks.append(CertificateTask(self.client, self.storage, envelope_id, folder, self.language))
        if self.include_recipients:
            tasks.append(RecipientsTask(self.client, self.storage, envelope_id, folder))

        outcomes = await gather_settled(gate.run(task) for task in tasks)
        for task, outcome in zip(tasks, outcomes):
            if outcome.ok:
                self._record_saved(outcome.value)
            else:
                logger.error(
                    "  Failed to download %s for envelope %s: %s",
                    task.kind,
                    envelope_id,
                    outcome.error,
                    exc_info=outcome.error,
                )
                stats.record_error()

        stats.record_envelope()
        logger.info("Envelope %s processed", envelope_id)
        return True

    def _record_saved(self, saved: SavedFile) -> None:
        stats, _ = self._run_state()
        if saved.kind == DocumentTask.kind:
            stats.record_document(saved.size)
        elif saved.kind == CertificateTask.kind:
            stats.record_certificate(saved.size)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def download_envelopes(self, envelope_ids: Sequence[str]) -> None:
        logger.info("Starting download of %d envelope(s)", len(envelope_ids))
        await self._download_sequentially((envelope_id, None) for envelope_id in envelope_ids)

    async def download_units(self, units: Sequence[EnvelopeSummary]) -> None:
        """Like :meth:`download_envelopes` but reuses metadata already fetched by a search."""
        await self._download_sequentially((unit.envelope_id, unit) for unit in units)

    async def _download_sequentially(self, items: Iterable[tuple[str, Optional[EnvelopeSummary]]]) -> None:
        for index, (envelope_id, details) in enumerate(items):
            if index and self.unit_pause > 0:
                await self._sleep(self.unit_pause)
            await self.download_envelope(envelope_id, details)

    async def search(self, criteria: SearchCriteria) -> List[EnvelopeSummary]:
        """Paginated search whose failure is counted as a run error instead of raised."""
        stats, _ = self._run_state()
        logger.info("Searching envelopes matching criteria")
        try:
            return await search_envelopes(self.client, criteria)
        except Exception as exc:
            logger.exception("Envelope search failed: %s", exc)
            stats.record_error()
            return []

    async def download_by_criteria(self, criteria: SearchCriteria) -> List[EnvelopeSummary]:
        units = await self.search(criteria)
        await self.download_units(units)
        return units

    async def download_combined(self, envelope_ids: Sequence[str]) -> None:
        """Fetch one merged PDF (documents plus certificate) per envelope, one gate slot each."""
        stats, gate = self._run_state()
        logger.info("Starting combined download of %d envelope(s)", len(envelope_ids))
        folder = await self.storage.ensure_dir(self.storage.resolve(COMBINED_FOLDER))

        tasks = [CombinedTask(self.client, self.storage, envelope_id, folder) for envelope_id in envelope_ids]
        outcomes = await gather_settled(gate.run(task) for task in tasks)

        succeeded = 0
        for task, outcome in zip(tasks, outcomes):
            if outcome.ok:
                succeeded += 1
                stats.record_envelope()
                stats.record_document(outcome.value.size)
            else:
                logger.error(
                    "  Failed to download combined %s: %s",
                    task.envelope_id,
                    outcome.error,
                    exc_info=outcome.error,
                )
                stats.record_error()
        logger.info("Combined downloads: %d succeeded, %d failed", succeeded, len(tasks) - succeeded)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def finalize(self) -> DownloadReport:
        """Build the run's report. Later calls return the same report."""
        stats, _ = self._run_state()
        if self._report is None:
            self._report = build_report(stats)
            for line in self._report.lines():
                logger.info(line)
        return self._report

    async def save_report(self) -> DownloadReport:
        report = self.finalize()
        path = self.storage.resolve(REPORT_FILENAME)
        await self.storage.write_json(path, report.to_dict())
        logger.info("Report saved to %s", path)
        return report
