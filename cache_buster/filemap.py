from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ArtifactError

logger = logging.getLogger("cache_buster.filemap")

ARTIFACT_VERSION = 1
DEFAULT_ARTIFACT = "cache_buster_data.json"


def join_prefix(prefix: Optional[str], path: str) -> str:
    if not prefix:
        return path
    return f"{prefix.rstrip('/')}/{path}"


class FileMap:
    """Original relative path -> final relative path, plus the route prefix.

    Values are stored without the prefix; :meth:`full_path` applies it.
    """

    def __init__(self, prefix: Optional[str] = None, files: Optional[Mapping[str, str]] = None) -> None:
        self.prefix = prefix or None
        self._files: Dict[str, str] = {}
        for original, final in (files or {}).items():
            self.add(original, final)

    def add(self, original: str, final: str) -> None:
        if original in self._files:
            raise ValueError(f"duplicate filemap key: {original}")
        self._files[original] = final

    def full_path(self, original: str) -> str:
        return join_prefix(self.prefix, self._files[original])

    def as_dict(self) -> Dict[str, str]:
        return dict(self._files)

    def __getitem__(self, original: str) -> str:
        return self._files[original]

    def __contains__(self, original: object) -> bool:
        return original in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileMap):
            return NotImplemented
        return self.prefix == other.prefix and self._files == other._files

    def __repr__(self) -> str:
        return f"FileMap(prefix={self.prefix!r}, files={len(self._files)})"


class _Artifact(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")

    version: int
    prefix: Optional[str] = None
    files: Dict[str, str]


def dumps(file_map: FileMap) -> str:
    payload = {
        "version": ARTIFACT_VERSION,
        "prefix": file_map.prefix,
        "files": file_map.as_dict(),
    }
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def loads(raw: Union[str, bytes]) -> FileMap:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArtifactError(f"filemap artifact is not valid UTF-8: {exc}") from exc
    if not raw.strip():
        raise ArtifactError("filemap artifact is empty")
    try:
        artifact = _Artifact.model_validate_json(raw)
    except ValidationError as exc:
        raise ArtifactError(f"malformed filemap artifact: {exc}") from exc
    if artifact.version != ARTIFACT_VERSION:
        raise ArtifactError(
            f"unsupported filemap artifact version {artifact.version} (expected {ARTIFACT_VERSION})"
        )
    return FileMap(prefix=artifact.prefix, files=artifact.files)


def write(file_map: FileMap, path: Union[str, Path]) -> Path:
    """Persist the artifact atomically; readers never observe a partial file."""
    target = Path(path)
    data = dumps(file_map)
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target.parent, prefix=f".{target.name}.", delete=False
        ) as fh:
            tmp_name = fh.name
            fh.write(data)
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error("failed to write filemap artifact", extra={"path": str(target)})
        raise ArtifactError(f"cannot write filemap artifact {target}: {exc}") from exc
    logger.info("wrote filemap artifact", extra={"path": str(target), "files": len(file_map)})
    return target


def read(path: Union[str, Path]) -> FileMap:
    target = Path(path)
    try:
        raw = target.read_bytes()
    except OSError as exc:
        raise ArtifactError(f"cannot read filemap artifact {target}: {exc}") from exc
    return loads(raw)
