from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure project root is importable as a module path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture()
def make_tree(tmp_path):
    """Return a helper that writes ``{relative path: bytes}`` under tmp_path/<name>."""

    def _make(files: dict[str, bytes], name: str = "static") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, data in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        return root

    return _make


@pytest.fixture()
def static_tree(make_tree):
    """Allow-listed script and stylesheet, excluded robots.txt, unlisted bitmap."""

    return make_tree(
        {
            "app.js": b"console.log('hi');\n",
            "robots.txt": b"User-agent: *\n",
            "image.bmp": b"BM\x00\x00",
            "css/app.css": b"body { color: red; }\n",
            "img/logo.svg": b"<svg xmlns='http://www.w3.org/2000/svg'/>",
        }
    )


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    from cache_buster.settings import reset_settings_cache

    for key in (
        "CACHE_BUSTER_JSON_LOGS",
        "CACHE_BUSTER_PREFIX",
        "CACHE_BUSTER_MIME_TYPES",
        "CACHE_BUSTER_ARTIFACT",
        "CACHE_BUSTER_WORKERS",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()
