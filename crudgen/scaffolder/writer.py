"""Persisting rendered artifacts.

The writer never decides on its own whether an existing file may be
replaced: callers pass ``overwrite`` explicitly, and an existing file is left
untouched when it is ``False``.  Filesystem errors propagate unchanged.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path

from .models import RenderedArtifact


class WriteStatus(str, Enum):
    CREATED = "created"
    OVERWRITTEN = "overwritten"
    SKIPPED = "skipped"


class ArtifactWriter:
    """Writes ``RenderedArtifact`` objects to disk."""

    async def write(self, artifact: RenderedArtifact, *, overwrite: bool = True) -> WriteStatus:
        """Write *artifact* to its path, creating parent directories.

        Returns:
            ``CREATED`` for a new file, ``OVERWRITTEN`` when an existing file
            was replaced, ``SKIPPED`` when it exists and *overwrite* is false.
        """
        exists = await asyncio.to_thread(artifact.path.exists)
        if exists and not overwrite:
            return WriteStatus.SKIPPED
        await asyncio.to_thread(_write_file, artifact.path, artifact.content)
        return WriteStatus.OVERWRITTEN if exists else WriteStatus.CREATED

    async def write_if_missing(self, path: Path, content: str) -> WriteStatus:
        """Write *content* to *path* only when nothing is there yet."""
        if await asyncio.to_thread(path.exists):
            return WriteStatus.SKIPPED
        await asyncio.to_thread(_write_file, path, content)
        return WriteStatus.CREATED

    @staticmethod
    def exists(path: Path) -> bool:
        return Path(path).exists()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
