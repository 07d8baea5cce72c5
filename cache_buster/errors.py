from __future__ import annotations

from typing import Optional


class CacheBusterError(Exception):
    """Base class for every error raised by cache_buster."""


class ConfigError(CacheBusterError):
    pass


class ProcessingError(CacheBusterError):
    """A source file could not be read or an output file could not be written."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ArtifactError(CacheBusterError):
    """The filemap artifact could not be written or parsed."""


class InvalidAssetPath(CacheBusterError, ValueError):
    pass


class AssetNotFound(CacheBusterError, KeyError):
    """Lookup miss: the path was never part of the filemap."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"asset not in filemap: {self.path}"
