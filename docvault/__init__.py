"""
docvault package root.

Downloads signed envelopes (documents and completion certificates) from an
e-signature REST API while respecting the account's per-minute call ceiling.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

from dotenv import load_dotenv

__all__ = ["__version__", "DownloadApplication"]

__version__ = "0.1.0"

load_dotenv()


def __getattr__(name: str) -> Any:  # pragma: no cover
    if name == "DownloadApplication":
        return import_module("docvault.app").DownloadApplication
    raise AttributeError(name)
