"""Deterministic identities and placeholder URIs for virtual items.

Identities are 32-character lowercase hex MD5 digests. They must stay
byte-stable across releases: the host library persists them and re-requests
playback by identity long after the catalog store has forgotten the item.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from typing import Literal, cast
from urllib.parse import quote, unquote

IDENTITY_SALT = "spectarr-virtual-item"
PLACEHOLDER_SCHEME = "dynamiclibrary"

PlaceholderKind = Literal["movie", "tv", "anime"]
_PLACEHOLDER_KINDS: frozenset[str] = frozenset({"movie", "tv", "anime"})


def _md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()  # noqa: S324


def derive_item_identity(namespace: str, external_key: str) -> str:
    """Derive the identity for an item from its namespace and external key.

    Raises:
        ValueError: If namespace or external key is empty.
    """
    if not namespace or not namespace.strip():
        raise ValueError("namespace must not be empty")
    if not external_key or not external_key.strip():
        raise ValueError("external_key must not be empty")
    return _md5_hex(f"{IDENTITY_SALT}:{namespace.strip().lower()}:{external_key}")


def derive_variant_identity(parent_identity: str, variant_key: str) -> str:
    """Derive a media-source identity for one variant of an item.

    An empty variant key yields the parent identity unchanged. Variant keys
    are case-insensitive.
    """
    if not variant_key:
        return parent_identity
    return _md5_hex(f"{parent_identity}:{variant_key.lower()}")


def catalog_namespace(kind: str, provider: str) -> str:
    """Identity namespace for items of ``kind`` keyed by ``provider`` ids.

    Numeric keys of different providers overlap, so the provider is part
    of the namespace.
    """
    return f"{kind}:{provider}"


def guess_provider_namespace(kind: str, external_key: str) -> str:
    """Provider namespace a bare placeholder key most likely belongs to."""
    if external_key.lower().startswith("tt"):
        return "imdb"
    if kind == "anime":
        return "anilist"
    return "tmdb" if kind == "movie" else "tvdb"


def episode_external_key(series_key: str, season: int, episode: int) -> str:
    """External key of an episode within its series namespace."""
    return f"{series_key}:{season}:{episode}"


def normalize_identity(value: str | None) -> str | None:
    """Normalize a host-supplied identity to 32-char lowercase hex.

    Accepts hyphenated and braced GUID forms. Returns None if the value is
    not a valid identity.
    """
    if not value:
        return None
    try:
        return uuid.UUID(value.strip()).hex
    except ValueError:
        return None


@dataclass(frozen=True)
class PlaceholderUri:
    """Parsed form of ``dynamiclibrary://{kind}/{key}[/{extra}...]``.

    ``extras`` holds the positional segments after the key: season and
    episode for ``tv``; episode (or season and episode) plus an optional
    audio track for ``anime``.
    """

    kind: PlaceholderKind
    external_key: str
    extras: tuple[str, ...] = ()

    def encode(self) -> str:
        segments = [quote(self.external_key, safe="")]
        segments.extend(quote(extra, safe="") for extra in self.extras)
        return f"{PLACEHOLDER_SCHEME}://{self.kind}/" + "/".join(segments)

    @classmethod
    def decode(cls, value: str | None) -> PlaceholderUri | None:
        """Parse a placeholder URI. Returns None for malformed input."""
        if not value:
            return None
        text = value.strip()
        prefix = f"{PLACEHOLDER_SCHEME}://"
        if not text.lower().startswith(prefix):
            return None
        segments = text[len(prefix) :].split("/")
        if len(segments) < 2:
            return None
        kind = segments[0].lower()
        if kind not in _PLACEHOLDER_KINDS:
            return None
        if any(not segment for segment in segments[1:]):
            return None
        decoded = [unquote(segment) for segment in segments[1:]]
        return cls(
            kind=cast(PlaceholderKind, kind),
            external_key=decoded[0],
            extras=tuple(decoded[1:]),
        )

    # --- positional accessors ---

    def _numeric_extras(self) -> list[int]:
        return [int(extra) for extra in self.extras if extra.isdigit()]

    @property
    def season(self) -> int | None:
        numbers = self._numeric_extras()
        if self.kind == "tv":
            return numbers[0] if len(numbers) >= 2 else None
        if self.kind == "anime":
            return numbers[0] if len(numbers) >= 2 else 1
        return None

    @property
    def episode(self) -> int | None:
        numbers = self._numeric_extras()
        if self.kind == "tv":
            return numbers[1] if len(numbers) >= 2 else None
        if self.kind == "anime":
            if len(numbers) >= 2:
                return numbers[1]
            return numbers[0] if numbers else None
        return None

    @property
    def audio_track(self) -> str | None:
        """Trailing non-numeric segment of an anime placeholder."""
        if self.kind != "anime" or not self.extras:
            return None
        last = self.extras[-1]
        return None if last.isdigit() else last

    def item_identity(self) -> str | None:
        """Identity the catalog assigns to the item this placeholder names."""
        provider = guess_provider_namespace(self.kind, self.external_key)
        if self.kind == "movie":
            return derive_item_identity(
                catalog_namespace("movie", provider), self.external_key
            )
        if self.season is None or self.episode is None:
            return None
        return derive_item_identity(
            catalog_namespace("episode", provider),
            episode_external_key(self.external_key, self.season, self.episode),
        )


def encode_placeholder_uri(
    kind: PlaceholderKind, external_key: str, *extras: str | int
) -> str:
    """Build a placeholder URI for a persisted item.

    Raises:
        ValueError: If the key or any extra segment is empty.
    """
    if not external_key:
        raise ValueError("external_key must not be empty")
    if any(str(extra) == "" for extra in extras):
        raise ValueError("placeholder segments must not be empty")
    return PlaceholderUri(
        kind=kind,
        external_key=external_key,
        extras=tuple(str(extra) for extra in extras),
    ).encode()


def decode_placeholder_uri(value: str | None) -> PlaceholderUri | None:
    """Parse a placeholder URI. Returns None for malformed input."""
    return PlaceholderUri.decode(value)
