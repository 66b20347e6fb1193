"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "spectarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "Spectarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "tmdb": {
        "api_key": None,
        "language": "en-US",
    },
    "tasks": {
        "max_concurrent": 4,
        "drain_timeout_seconds": 10.0,
    },
    "cache": {
        "backend": "memory",
        "dir": "./.cache/spectarr",
        "ttl_seconds": 3600,
    },
    "catalog": {
        "item_ttl_seconds": 3600,
        "children_ttl_seconds": 3600,
        "media_source_ttl_seconds": 3600,
        "escalation_ttl_seconds": 86_400,
        "selection_ttl_seconds": 300,
        "probe_success_ttl_seconds": 86_400,
        "probe_failure_ttl_seconds": 300,
    },
    "playback": {
        "stream_provider": "direct",
        "movie_preferred_id": "imdb",
        "tv_preferred_id": "tvdb",
        "anime_preferred_id": "anilist",
        "anime_audio_tracks": "sub",
        "hls_probe_enabled": True,
        "show_unreleased": False,
        "default_movie_runtime_minutes": 120,
        "default_episode_runtime_minutes": 45,
    },
    "subtitles": {
        "enabled": True,
        "dir": "./.cache/spectarr/subtitles",
        "languages": "en",
    },
}
