from __future__ import annotations

import enum
import fnmatch
import mimetypes
from pathlib import PurePosixPath
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .models import FileEntry

# Built-in table only; /etc/mime.types differs between hosts.
_MIME = mimetypes.MimeTypes()

_MIME_ALIASES = {
    "text/javascript": "application/javascript",
    "application/x-javascript": "application/javascript",
    "image/x-ms-bmp": "image/bmp",
}


class Outcome(str, enum.Enum):
    HASH = "hash"
    COPY = "copy"
    IGNORE = "ignore"


def normalize_mime(value: str) -> str:
    val = value.strip().lower()
    return _MIME_ALIASES.get(val, val)


def guess_mime(rel_path: str) -> Optional[str]:
    mime, _ = _MIME.guess_type(PurePosixPath(rel_path).name, strict=False)
    return normalize_mime(mime) if mime else None


def _normalize_rel(value: str) -> str:
    val = str(value).strip().replace("\\", "/")
    while val.startswith("./"):
        val = val[2:]
    return val.lstrip("/")


def _to_frozenset(value: Optional[Iterable[str]]) -> Optional[frozenset]:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    return frozenset(value)


class FilterConfig(BaseModel):
    """Which discovered files get hashed, copied verbatim, or ignored.

    ``mime_types`` is an allow-list; ``None`` accepts every file. The
    ``no_hash_*`` rules select files that are copied without renaming. A
    file matched by a no-hash rule is always copied, even when its MIME type
    is outside the allow-list.
    """

    model_config = ConfigDict(frozen=True)

    mime_types: Optional[frozenset[str]] = None
    no_hash_paths: frozenset[str] = frozenset()
    no_hash_extensions: frozenset[str] = frozenset()
    no_hash_patterns: tuple[str, ...] = ()

    @field_validator("mime_types", mode="before")
    @classmethod
    def _normalize_mime_types(cls, value):
        items = _to_frozenset(value)
        if items is None:
            return None
        return frozenset(normalize_mime(v) for v in items if str(v).strip())

    @field_validator("no_hash_paths", mode="before")
    @classmethod
    def _normalize_paths(cls, value):
        items = _to_frozenset(value) or frozenset()
        return frozenset(_normalize_rel(v) for v in items if str(v).strip())

    @field_validator("no_hash_extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value):
        items = _to_frozenset(value) or frozenset()
        return frozenset(str(v).strip().lstrip(".").lower() for v in items if str(v).strip(" ."))

    @field_validator("no_hash_patterns", mode="before")
    @classmethod
    def _normalize_patterns(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(sorted({str(v).strip() for v in value if str(v).strip()}))

    def is_excluded(self, rel_path: str) -> bool:
        if rel_path in self.no_hash_paths:
            return True
        suffix = PurePosixPath(rel_path).suffix.lstrip(".").lower()
        if suffix and suffix in self.no_hash_extensions:
            return True
        return any(fnmatch.fnmatchcase(rel_path, pattern) for pattern in self.no_hash_patterns)


def classify(entry: FileEntry, config: Optional[FilterConfig] = None) -> Outcome:
    config = config or FilterConfig()
    if config.is_excluded(entry.rel_path):
        return Outcome.COPY
    if config.mime_types is None:
        return Outcome.HASH
    if entry.mime_type and normalize_mime(entry.mime_type) in config.mime_types:
        return Outcome.HASH
    return Outcome.IGNORE
