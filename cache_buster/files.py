"""Runtime half of cache busting: translate asset paths using a built filemap.

Load the artifact once at startup and share the instance::

    FILES = Files.from_path("cache_buster_data.json")
    FILES.get_full_path("css/app.css")  # "/static/css/app.<hash>.css"

Keys are accepted in exactly one shape: relative, ``/``-separated, with no
leading slash and no ``.``/``..`` or empty segments. Anything else raises
:class:`InvalidAssetPath` instead of being silently normalised.
"""
from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

from . import filemap
from .errors import AssetNotFound, InvalidAssetPath


def validate_key(path: str) -> str:
    if not isinstance(path, str) or not path:
        raise InvalidAssetPath(f"asset path must be a non-empty string: {path!r}")
    if "\\" in path:
        raise InvalidAssetPath(f"asset path must use forward slashes: {path!r}")
    if path.startswith("/"):
        raise InvalidAssetPath(f"asset path must be relative: {path!r}")
    for segment in path.split("/"):
        if segment in {"", ".", ".."}:
            raise InvalidAssetPath(f"asset path is not normalized: {path!r}")
    return path


class Files:
    """Read-only lookup table built from the raw filemap artifact."""

    def __init__(self, raw: Union[str, bytes]) -> None:
        loaded = filemap.loads(raw)
        self._prefix: Optional[str] = loaded.prefix
        self._map: Mapping[str, str] = MappingProxyType(loaded.as_dict())

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "Files":
        return cls(Path(path).read_bytes())

    @property
    def prefix(self) -> Optional[str]:
        return self._prefix

    @property
    def mapping(self) -> Mapping[str, str]:
        return self._map

    def get(self, path: str) -> str:
        """Busted path relative to the output directory, without the prefix."""
        key = validate_key(path)
        try:
            return self._map[key]
        except KeyError:
            raise AssetNotFound(path) from None

    def get_full_path(self, path: str) -> str:
        return filemap.join_prefix(self._prefix, self.get(path))

    def resolve(self, path: str) -> str:
        """Full busted path, or ``path`` itself when it is not in the map."""
        try:
            return self.get_full_path(path)
        except AssetNotFound:
            return path

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._map

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        return f"Files(prefix={self._prefix!r}, files={len(self._map)})"
