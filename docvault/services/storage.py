"""Local filesystem storage for downloaded documents and side artifacts."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, Path]


class LocalStorage:
    """Writes bytes and JSON under a root folder. Failures propagate to the caller."""

    def __init__(self, root: PathLike) -> None:
        self.root = Path(root)

    def resolve(self, *parts: str) -> Path:
        return self.root.joinpath(*parts)

    async def ensure_dir(self, path: PathLike) -> Path:
        target = Path(path)
        await asyncio.to_thread(target.mkdir, parents=True, exist_ok=True)
        return target

    async def write_bytes(self, path: PathLike, data: bytes) -> int:
        return await asyncio.to_thread(self._write_bytes_sync, Path(path), data)

    async def write_json(self, path: PathLike, payload: Any) -> int:
        encoded = json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
        return await self.write_bytes(path, encoded)

    @staticmethod
    def _write_bytes_sync(path: Path, data: bytes) -> int:
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.write_bytes(data)
