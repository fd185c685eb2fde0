"""Service layer exports."""

from __future__ import annotations

from typing import Any

__all__ = [
    "DocumentDownloader",
    "EnvelopeClient",
    "LocalStorage",
    "build_report",
    "search_envelopes",
]


def __getattr__(name: str) -> Any:  # pragma: no cover
    if name == "DocumentDownloader":
        from .downloader import DocumentDownloader

        return DocumentDownloader
    if name == "EnvelopeClient":
        from .client import EnvelopeClient

        return EnvelopeClient
    if name == "LocalStorage":
        from .storage import LocalStorage

        return LocalStorage
    if name == "build_report":
        from .report import build_report

        return build_report
    if name == "search_envelopes":
        from .search import search_envelopes

        return search_envelopes
    raise AttributeError(name)
