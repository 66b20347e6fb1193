"""Tests for layered configuration loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from spectarr.infrastructure.config import AppConfig, PlaybackConfig, load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("SPECTARR_"):
            monkeypatch.delenv(key, raising=False)


def _write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_defaults_validate(self) -> None:
        cfg = load_config()
        assert cfg.cache.backend == "memory"
        assert cfg.playback.stream_provider == "direct"
        assert cfg.playback.anime_audio_tracks == ("sub",)
        assert cfg.catalog.escalation_ttl_seconds == 86_400
        assert cfg.subtitles.languages == ("en",)

    def test_log_format_derived_from_environment(self) -> None:
        assert AppConfig(environment="dev").log_format == "console"
        assert AppConfig(environment="prod").log_format == "json"


# ---------------------------------------------------------------------------
# Layer precedence
# ---------------------------------------------------------------------------


class TestPrecedence:
    def test_yaml_overrides_defaults(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path,
            """
logging:
  level: DEBUG
playback:
  stream_provider: none
  anime_audio_tracks: "sub, dub"
catalog:
  item_ttl_seconds: 120
""",
        )
        cfg = load_config(config_path=path)
        assert cfg.log_level == "DEBUG"
        assert cfg.playback.stream_provider == "none"
        assert cfg.playback.anime_audio_tracks == ("sub", "dub")
        assert cfg.catalog.item_ttl_seconds == 120
        assert cfg.catalog.children_ttl_seconds == 3600

    def test_env_overrides_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = _write_yaml(tmp_path, "logging:\n  level: DEBUG\n")
        monkeypatch.setenv("SPECTARR_LOG_LEVEL", "WARNING")

        cfg = load_config(config_path=path)
        assert cfg.log_level == "WARNING"

    def test_cli_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECTARR_STREAM_PROVIDER", "none")

        cfg = load_config(cli_overrides={"stream_provider": "direct"})
        assert cfg.playback.stream_provider == "direct"

    def test_env_flat_keys_land_in_sections(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("SPECTARR_STREAM_PROVIDER", "remote_lookup")
        monkeypatch.setenv("SPECTARR_REMOTE_LOOKUP_URL", "http://lookup:8080")
        monkeypatch.setenv("SPECTARR_CACHE_DIR", str(tmp_path / "c"))

        cfg = load_config()
        assert cfg.playback.stream_provider == "remote_lookup"
        assert cfg.remote_lookup.url == "http://lookup:8080"
        assert cfg.cache.directory == tmp_path / "c"

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECTARR_TMDB_API_KEY", "unset")
        monkeypatch.delenv("SPECTARR_TMDB_API_KEY")
        dotenv = tmp_path / ".env"
        dotenv.write_text("SPECTARR_TMDB_API_KEY=abc123\n", encoding="utf-8")

        cfg = load_config(dotenv_path=dotenv)
        assert cfg.tmdb_api_key == "abc123"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_missing_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yaml")

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(config_path=path)

    def test_remote_lookup_requires_url(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"stream_provider": "remote_lookup"})

    def test_aggregator_requires_url(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"stream_provider": "aggregator"})

    def test_catalog_ttl_must_be_positive(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "catalog:\n  item_ttl_seconds: 0\n")
        with pytest.raises(ValidationError):
            load_config(config_path=path)

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlaybackConfig(stream_provider="torrent")


class TestPlaybackConfig:
    def test_frozen(self) -> None:
        cfg = PlaybackConfig()
        with pytest.raises(ValidationError):
            cfg.stream_provider = "none"  # type: ignore[misc]

    def test_empty_track_list_defaults_to_sub(self) -> None:
        assert PlaybackConfig(anime_audio_tracks=" , ").anime_audio_tracks == ("sub",)

    def test_subtitle_prefix_trailing_slash_stripped(self) -> None:
        cfg = PlaybackConfig(subtitle_delivery_prefix="/subs/")
        assert cfg.subtitle_delivery_prefix == "/subs"


class TestSectionedDump:
    def test_secrets_masked(self) -> None:
        cfg = AppConfig(tmdb_api_key="secret")
        dumped = cfg.to_sectioned_dict()
        assert dumped["tmdb"]["api_key"] == "***"
        assert dumped["playback"]["stream_provider"] == "direct"
