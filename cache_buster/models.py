from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FileEntry(BaseModel):
    """A file discovered under the source root."""

    model_config = ConfigDict(frozen=True)

    rel_path: str
    source_path: Path
    mime_type: Optional[str] = None


class ProcessedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    original: str
    final: str
    hashed: bool
