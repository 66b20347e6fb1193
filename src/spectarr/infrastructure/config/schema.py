"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from spectarr.domain.entities.playback import PreferredIdName, StreamProviderName

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["memory", "diskcache", "redis"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseModel):
    """Cache backend selection (YAML section: cache.*)."""

    backend: CacheBackendName = Field(
        default="memory",
        description="Cache backend: 'memory', 'diskcache' (SQLite) or 'redis'.",
    )
    directory: Path = Field(
        default=Path("./.cache/spectarr"),
        validation_alias=AliasChoices("dir", "directory"),
        description="Diskcache directory (only when backend=diskcache).",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis).",
    )
    ttl_seconds: int = Field(
        default=3600,
        description="Default TTL for cache entries without explicit TTL.",
    )
    max_entries: int = Field(
        default=50_000,
        description="Upper bound on entries for the memory backend.",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (diskcache semaphore limit).",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)


class CatalogConfig(BaseModel):
    """Lifetimes of catalog store record families in seconds (catalog.*)."""

    item_ttl_seconds: int = Field(default=3600, description="Virtual items.")
    children_ttl_seconds: int = Field(
        default=3600, description="Season and episode lists."
    )
    media_source_ttl_seconds: int = Field(
        default=3600, description="Media-source to parent mappings."
    )
    escalation_ttl_seconds: int = Field(
        default=86_400, description="Provider escalation markers."
    )
    selection_ttl_seconds: int = Field(
        default=300, description="Selected-variant markers."
    )
    probe_success_ttl_seconds: int = Field(
        default=86_400, description="Successful playlist probes."
    )
    probe_failure_ttl_seconds: int = Field(
        default=300, description="Failed playlist probes."
    )
    subtitle_ttl_seconds: int = Field(
        default=3600, description="Per-item subtitle index."
    )

    @field_validator("*")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("catalog TTLs must be > 0")
        return v


class PlaybackConfig(BaseModel):
    """Playback resolution settings (YAML section: playback.*).

    Frozen: a request resolves against one consistent snapshot.
    """

    model_config = ConfigDict(frozen=True)

    stream_provider: StreamProviderName = Field(
        default="direct",
        description="How stream URLs are obtained: none/direct/remote_lookup/aggregator.",
    )
    movie_preferred_id: PreferredIdName = Field(
        default="imdb",
        description="Preferred external id provider for movies.",
    )
    tv_preferred_id: PreferredIdName = Field(
        default="tvdb",
        description="Preferred external id provider for series.",
    )
    anime_preferred_id: PreferredIdName = Field(
        default="anilist",
        description="Preferred external id provider for anime.",
    )
    movie_url_template: str = Field(
        default="",
        description="Direct URL template for movies, e.g. https://host/movie/{imdb}.",
    )
    tv_url_template: str = Field(
        default="",
        description="Direct URL template for episodes ({id}, {season}, {episode}, ...).",
    )
    anime_url_template: str = Field(
        default="",
        description="Direct URL template for anime episodes ({absolute}, {audio}, ...).",
    )
    anime_audio_versions: bool = Field(
        default=False,
        description="Expose one playback source per anime audio track.",
    )
    anime_audio_tracks: tuple[str, ...] = Field(
        default=("sub",),
        description="Anime audio tracks (comma-separated in YAML/ENV).",
    )
    hls_probe_enabled: bool = Field(
        default=True,
        description="Probe HLS playlists for their duration when runtime is unknown.",
    )
    show_unreleased: bool = Field(
        default=False,
        description="Allow playback of items without a past premiere date.",
    )
    default_movie_runtime_minutes: int = Field(
        default=120,
        description="Runtime assumed for movies when nothing better is known.",
    )
    default_episode_runtime_minutes: int = Field(
        default=45,
        description="Runtime assumed for episodes when nothing better is known.",
    )
    estimated_bitrate: int = Field(
        default=20_000_000,
        description="Bitrate advertised for non-HLS sources (bits/s).",
    )
    runtime_reconcile_threshold_seconds: int = Field(
        default=60,
        description="Runtime difference that triggers a host database update.",
    )
    escalate_to_provider: bool = Field(
        default=False,
        description="Ask the remote lookup service to add items it could not resolve.",
    )
    subtitle_delivery_prefix: str = Field(
        default="/api/v1/subtitles",
        description="Path prefix of subtitle delivery URLs.",
    )

    @field_validator("anime_audio_tracks", mode="before")
    @classmethod
    def _split_tracks(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            tracks = tuple(str(t).strip().lower() for t in v if str(t).strip())
            return tracks or ("sub",)
        return v

    @field_validator(
        "default_movie_runtime_minutes",
        "default_episode_runtime_minutes",
        "estimated_bitrate",
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("subtitle_delivery_prefix")
    @classmethod
    def _strip_prefix(cls, v: str) -> str:
        return v.rstrip("/")


class RemoteLookupConfig(BaseModel):
    """Remote lookup service (YAML section: remote_lookup.*)."""

    url: str = Field(default="", description="Base URL of the lookup service.")
    api_key: str = Field(default="", description="Optional X-Api-Key header value.")
    timeout_seconds: float = Field(default=15.0, description="Request timeout.")


class AggregatorConfig(BaseModel):
    """Stream aggregator addon (YAML section: aggregator.*)."""

    url: str = Field(
        default="",
        description="Addon base or manifest URL (/manifest.json is stripped).",
    )
    timeout_seconds: float = Field(default=30.0, description="Request timeout.")


class SubtitleConfig(BaseModel):
    """Subtitle storage and delivery (YAML section: subtitles.*)."""

    enabled: bool = Field(default=True, description="Attach subtitle tracks.")
    directory: Path = Field(
        default=Path("./.cache/spectarr/subtitles"),
        validation_alias=AliasChoices("dir", "directory"),
        description="Directory holding converted .vtt files.",
    )
    languages: tuple[str, ...] = Field(
        default=("en",),
        description="Languages to fetch (comma-separated in YAML/ENV).",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("languages", mode="before")
    @classmethod
    def _split_languages(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/catalog/playback/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="spectarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout for outgoing HTTP requests.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Spectarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # TMDB (YAML section: tmdb.*)
    tmdb_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_api_key",
            AliasPath("tmdb", "api_key"),
        ),
        description="TMDB API key for runtime lookups. Unset = no metadata lookups.",
    )
    tmdb_language: str = Field(
        default="en-US",
        validation_alias=AliasChoices(
            "tmdb_language",
            AliasPath("tmdb", "language"),
        ),
        description="TMDB response language.",
    )

    # Background jobs (YAML section: tasks.*)
    tasks_max_concurrent: int = Field(
        default=4,
        validation_alias=AliasChoices(
            "tasks_max_concurrent",
            AliasPath("tasks", "max_concurrent"),
        ),
        description="Max background jobs running at once.",
    )
    tasks_drain_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "tasks_drain_timeout_seconds",
            AliasPath("tasks", "drain_timeout_seconds"),
        ),
        description="How long shutdown waits for background jobs.",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    remote_lookup: RemoteLookupConfig = Field(default_factory=RemoteLookupConfig)
    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)
    subtitles: SubtitleConfig = Field(default_factory=SubtitleConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    @model_validator(mode="after")
    def _validate_provider_endpoints(self) -> "AppConfig":
        provider = self.playback.stream_provider
        if provider == "remote_lookup" and not self.remote_lookup.url:
            raise ValueError("stream_provider=remote_lookup requires remote_lookup.url")
        if provider == "aggregator" and not self.aggregator.url:
            raise ValueError("stream_provider=aggregator requires aggregator.url")
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "tmdb": {
                "api_key": "***" if self.tmdb_api_key else None,
                "language": self.tmdb_language,
            },
            "tasks": {
                "max_concurrent": self.tasks_max_concurrent,
                "drain_timeout_seconds": self.tasks_drain_timeout_seconds,
            },
            "cache": self.cache.model_dump(mode="json"),
            "catalog": self.catalog.model_dump(),
            "playback": self.playback.model_dump(mode="json"),
            "remote_lookup": {
                "url": self.remote_lookup.url,
                "api_key": "***" if self.remote_lookup.api_key else "",
                "timeout_seconds": self.remote_lookup.timeout_seconds,
            },
            "aggregator": self.aggregator.model_dump(),
            "subtitles": self.subtitles.model_dump(mode="json"),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read SPECTARR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - SPECTARR_LOG_LEVEL
    - SPECTARR_CACHE_BACKEND
    - SPECTARR_STREAM_PROVIDER
    - SPECTARR_REMOTE_LOOKUP_URL
    """

    model_config = SettingsConfigDict(
        env_prefix="SPECTARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    tmdb_api_key: Optional[str] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None

    stream_provider: Optional[StreamProviderName] = None
    movie_url_template: Optional[str] = None
    tv_url_template: Optional[str] = None
    anime_url_template: Optional[str] = None
    show_unreleased: Optional[bool] = None
    hls_probe_enabled: Optional[bool] = None

    remote_lookup_url: Optional[str] = None
    remote_lookup_api_key: Optional[str] = None
    aggregator_url: Optional[str] = None

    subtitles_dir: Optional[Path] = None

    @field_validator("cache_dir", "subtitles_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
