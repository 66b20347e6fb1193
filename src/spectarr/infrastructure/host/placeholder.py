"""Placeholder file access for persisted items.

The host library writes one ``.strm`` file per persisted item whose only
content is the placeholder URI. A location may also hold the URI itself.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from spectarr.domain.entities.identity import PLACEHOLDER_SCHEME

log = structlog.get_logger(__name__)

PLACEHOLDER_SUFFIX = ".strm"


async def read_placeholder(location: str | None) -> str | None:
    """Return the placeholder URI referenced by ``location``.

    Returns None if the location is neither a placeholder URI nor a
    readable placeholder file. Files that are not valid UTF-8 are not
    placeholders.
    """
    if not location:
        return None
    text = location.strip()
    if text.lower().startswith(f"{PLACEHOLDER_SCHEME}://"):
        return text

    path = Path(text)
    if path.suffix.lower() != PLACEHOLDER_SUFFIX:
        log.debug("placeholder_unsupported_location", location=text)
        return None
    try:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.warning("placeholder_read_failed", location=text, error=str(e))
        return None

    uri = content.lstrip("\ufeff").strip().splitlines()
    return uri[0].strip() if uri else None

