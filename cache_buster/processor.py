"""Build-time half of cache busting.

Run from a build hook before the application is packaged::

    buster = Buster(
        source="static",
        result="dist",
        filters=FilterConfig(
            mime_types={"application/javascript", "text/css", "image/svg+xml"},
            no_hash_paths={"robots.txt"},
        ),
        prefix="/static",
        artifact="cache_buster_data.json",
    )
    buster.process()

The artifact written at the end is the only thing the runtime side
(:class:`cache_buster.files.Files`) needs.
"""
from __future__ import annotations

import contextvars
import logging
import os
import shutil
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Iterator, List, Optional, Union

from . import filemap
from .errors import ConfigError, ProcessingError
from .filemap import FileMap
from .filters import FilterConfig, Outcome, classify, guess_mime
from .hashing import fingerprint
from .logging_utils import set_run_id
from .models import FileEntry, ProcessedFile

logger = logging.getLogger("cache_buster.processor")

PathLike = Union[str, os.PathLike]


def busted_name(rel_path: str, digest: str) -> str:
    """``css/app.css`` -> ``css/app.<digest>.css``; the last suffix is kept."""
    p = PurePosixPath(rel_path)
    name = f"{p.stem}.{digest}{p.suffix}" if p.suffix else f"{p.name}.{digest}"
    return str(p.with_name(name))


def _contains(parent: Path, child: Path) -> bool:
    try:
        child.relative_to(parent)
    except ValueError:
        return False
    return True


class Buster:
    """Fingerprint the files under ``source`` into ``result``."""

    def __init__(
        self,
        source: PathLike,
        result: PathLike,
        filters: Optional[FilterConfig] = None,
        prefix: Optional[str] = None,
        follow_links: bool = True,
        workers: int = 1,
        artifact: Optional[PathLike] = None,
    ) -> None:
        self.source = Path(source).resolve()
        self.result = Path(result).resolve()
        self.filters = filters or FilterConfig()
        self.prefix = prefix or None
        self.follow_links = follow_links
        self.workers = max(1, int(workers))
        self.artifact = Path(artifact) if artifact else None
        self._validate()

    def _validate(self) -> None:
        if not self.source.is_dir():
            raise ConfigError(f"source directory {self.source} doesn't exist")
        if _contains(self.result, self.source):
            raise ConfigError(f"result directory {self.result} must not contain the source directory")
        for rel in sorted(self.filters.no_hash_paths):
            if not (self.source / rel).is_file():
                raise ConfigError(f"File {rel} doesn't exist")

    # discovery

    def _walk(self) -> Iterator[FileEntry]:
        staging_prefix = f".{self.result.name}."

        def _unlistable(err: OSError) -> None:
            raise ProcessingError(f"cannot list {err.filename}: {err}", path=err.filename)

        for root, dirs, names in os.walk(self.source, onerror=_unlistable, followlinks=self.follow_links):
            root_path = Path(root)
            real_root = root_path.resolve()
            kept = []
            for d in dirs:
                target = (root_path / d).resolve()
                if _contains(self.result, target):
                    continue
                # Leftovers of an interrupted run next to a nested result dir
                if target.parent == self.result.parent and d.startswith(staging_prefix):
                    continue
                if self.follow_links and (root_path / d).is_symlink() and _contains(target, real_root):
                    raise ProcessingError(
                        f"symlink loop: {root_path / d} points to ancestor {target}", path=str(root_path / d)
                    )
                kept.append(d)
            dirs[:] = sorted(kept)
            for name in sorted(names):
                path = root_path / name
                if not path.is_file():
                    continue
                rel = path.relative_to(self.source).as_posix()
                yield FileEntry(rel_path=rel, source_path=path, mime_type=guess_mime(rel))

    def discover(self) -> List[FileEntry]:
        return sorted(self._walk(), key=lambda e: e.rel_path)

    # per-file work

    def _process_one(self, entry: FileEntry, outcome: Outcome, staging: Path) -> ProcessedFile:
        try:
            data = entry.source_path.read_bytes()
        except OSError as exc:
            raise ProcessingError(f"cannot read {entry.source_path}: {exc}", path=str(entry.source_path)) from exc
        hashed = outcome is Outcome.HASH
        final = busted_name(entry.rel_path, fingerprint(data)) if hashed else entry.rel_path
        destination = staging / final
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            raise ProcessingError(f"cannot write {destination}: {exc}", path=str(destination)) from exc
        logger.debug("processed asset", extra={"path": entry.rel_path, "outcome": outcome.value})
        return ProcessedFile(original=entry.rel_path, final=final, hashed=hashed)

    def _run(self, work: List[tuple], staging: Path) -> List[ProcessedFile]:
        if self.workers == 1 or len(work) < 2:
            return [self._process_one(entry, outcome, staging) for entry, outcome in work]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, self._process_one, entry, outcome, staging)
                for entry, outcome in work
            ]
            return [f.result() for f in futures]

    def _promote(self, staging: Path) -> None:
        if self.result.exists():
            shutil.rmtree(self.result)
        os.replace(staging, self.result)

    def process(self) -> FileMap:
        """Run one full pass and return the resulting filemap.

        Any IO failure aborts the pass with :class:`ProcessingError`; the
        previous result directory stays in place and no artifact is written.
        """
        set_run_id(uuid.uuid4().hex)
        if self.artifact is not None and self.artifact.exists():
            self.artifact.unlink()

        try:
            entries = self.discover()
        except ProcessingError as exc:
            logger.error("cache busting aborted", extra={"path": exc.path})
            raise

        work = []
        for entry in entries:
            outcome = classify(entry, self.filters)
            if outcome is Outcome.IGNORE:
                logger.debug("ignored asset", extra={"path": entry.rel_path, "outcome": outcome.value})
                continue
            work.append((entry, outcome))

        self.result.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=self.result.parent, prefix=f".{self.result.name}."))
        # mkdtemp creates 0700; the promoted result dir must stay readable by the web server
        os.chmod(staging, 0o755)
        try:
            processed = self._run(work, staging)
            self._promote(staging)
        except ProcessingError as exc:
            logger.error("cache busting aborted", extra={"path": exc.path})
            shutil.rmtree(staging, ignore_errors=True)
            raise
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            logger.error("cache busting aborted", extra={"path": str(self.result)})
            raise ProcessingError(f"cannot replace {self.result}: {exc}", path=str(self.result)) from exc

        file_map = FileMap(prefix=self.prefix)
        for item in processed:
            file_map.add(item.original, item.final)
        logger.info(
            "cache busting finished",
            extra={"files": len(file_map), "path": str(self.result)},
        )
        if self.artifact is not None:
            filemap.write(file_map, self.artifact)
        return file_map
