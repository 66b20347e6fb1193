"""On-disk WebVTT subtitle storage (``{identity}_{lang}.vtt``)."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)

_SAFE_SEGMENT_RE = re.compile(r"^[A-Za-z0-9-]+$")


class DiskSubtitleStore:
    """Writes and reads converted subtitles under a single directory.

    File I/O runs in worker threads. Identities and language codes are
    validated so a request can never address a path outside ``directory``.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, identity: str, language_code: str) -> Path | None:
        if not _SAFE_SEGMENT_RE.match(identity or ""):
            return None
        if not _SAFE_SEGMENT_RE.match(language_code or ""):
            return None
        return self.directory / f"{identity}_{language_code}.vtt"

    async def write(
        self, identity: str, language_code: str, content: str
    ) -> Path | None:
        path = self.path_for(identity, language_code)
        if path is None:
            log.warning(
                "subtitle_path_rejected",
                identity=identity,
                language_code=language_code,
            )
            return None

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            log.error("subtitle_write_failed", path=str(path), error=str(e))
            return None
        log.debug("subtitle_written", path=str(path), size=len(content))
        return path

    async def read(self, identity: str, language_code: str) -> str | None:
        path = self.path_for(identity, language_code)
        if path is None:
            return None
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("subtitle_read_failed", path=str(path), error=str(e))
            return None
