from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .filemap import DEFAULT_ARTIFACT
from .filters import FilterConfig

CsvList = Annotated[list[str], NoDecode]


def _split_csv(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


def _parse_bool(value, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or value == "":
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class BusterSettings(BaseSettings):
    """Build configuration pulled from CACHE_BUSTER_* environment/.env."""

    source: str = Field("static")
    result: str = Field("dist")
    prefix: Optional[str] = Field(None)
    # Empty means "no allow-list": every discovered file is hashed
    mime_types: CsvList = Field(default_factory=list)
    no_hash_paths: CsvList = Field(default_factory=list)
    no_hash_extensions: CsvList = Field(default_factory=list)
    no_hash_patterns: CsvList = Field(default_factory=list)
    artifact: str = Field(DEFAULT_ARTIFACT)
    follow_links: bool = Field(True)
    workers: int = Field(1)
    json_logs: bool = Field(False)

    model_config = SettingsConfigDict(
        env_prefix="CACHE_BUSTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("mime_types", "no_hash_paths", "no_hash_extensions", "no_hash_patterns", mode="before")
    @classmethod
    def _split_lists(cls, value) -> list[str]:
        return _split_csv(value)

    @field_validator("prefix", mode="before")
    @classmethod
    def _strip_prefix(cls, value: str | None) -> Optional[str]:
        val = value.strip() if isinstance(value, str) else value
        return val or None

    @field_validator("artifact", mode="before")
    @classmethod
    def _normalize_artifact(cls, value: str | None) -> str:
        val = (value or DEFAULT_ARTIFACT).strip()
        return val or DEFAULT_ARTIFACT

    @field_validator("follow_links", mode="before")
    @classmethod
    def _parse_follow_links(cls, value) -> bool:
        return _parse_bool(value, True)

    @field_validator("json_logs", mode="before")
    @classmethod
    def _parse_json_logs(cls, value) -> bool:
        return _parse_bool(value, False)

    @field_validator("workers", mode="before")
    @classmethod
    def _clamp_workers(cls, value) -> int:
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return 1

    def to_filter_config(self) -> FilterConfig:
        return FilterConfig(
            mime_types=self.mime_types or None,
            no_hash_paths=self.no_hash_paths,
            no_hash_extensions=self.no_hash_extensions,
            no_hash_patterns=self.no_hash_patterns,
        )

    def to_buster(self):
        from .processor import Buster

        return Buster(
            source=self.source,
            result=self.result,
            filters=self.to_filter_config(),
            prefix=self.prefix,
            follow_links=self.follow_links,
            workers=self.workers,
            artifact=self.artifact,
        )


@lru_cache(maxsize=1)
def get_settings() -> BusterSettings:
    return BusterSettings()


def reset_settings_cache() -> None:
    """Testing helper to clear cached settings."""
    get_settings.cache_clear()
