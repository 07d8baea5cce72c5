from .errors import (
    ArtifactError,
    AssetNotFound,
    CacheBusterError,
    ConfigError,
    InvalidAssetPath,
    ProcessingError,
)
from .filemap import FileMap
from .files import Files
from .filters import FilterConfig, Outcome, classify
from .hashing import fingerprint
from .processor import Buster

__all__ = [
    "ArtifactError",
    "AssetNotFound",
    "Buster",
    "CacheBusterError",
    "ConfigError",
    "FileMap",
    "Files",
    "FilterConfig",
    "InvalidAssetPath",
    "Outcome",
    "ProcessingError",
    "classify",
    "fingerprint",
]
