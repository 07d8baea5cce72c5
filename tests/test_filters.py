from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from cache_buster.filters import FilterConfig, Outcome, classify, guess_mime, normalize_mime
from cache_buster.models import FileEntry


def _entry(rel: str, mime: str | None = "__guess__") -> FileEntry:
    if mime == "__guess__":
        mime = guess_mime(rel)
    return FileEntry(rel_path=rel, source_path=Path("/src") / rel, mime_type=mime)


JS_ONLY = FilterConfig(mime_types={"application/javascript"})


@pytest.mark.parametrize(
    "config, rel, mime, expected",
    [
        # no allow-list, no exclusions
        (FilterConfig(), "app.js", "application/javascript", Outcome.HASH),
        (FilterConfig(), "blob", None, Outcome.HASH),
        # allow-list only
        (JS_ONLY, "app.js", "application/javascript", Outcome.HASH),
        (JS_ONLY, "image.bmp", "image/bmp", Outcome.IGNORE),
        (JS_ONLY, "blob", None, Outcome.IGNORE),
        # exclusion beats the allow-list in both directions
        (JS_ONLY.model_copy(update={"no_hash_paths": frozenset({"app.js"})}), "app.js", "application/javascript", Outcome.COPY),
        (JS_ONLY.model_copy(update={"no_hash_paths": frozenset({"robots.txt"})}), "robots.txt", "text/plain", Outcome.COPY),
        # exclusion without allow-list
        (FilterConfig(no_hash_extensions={"wasm"}), "pkg/mod.wasm", "application/wasm", Outcome.COPY),
        (FilterConfig(no_hash_patterns=["vendor/*"]), "vendor/lib/x.js", "application/javascript", Outcome.COPY),
        (FilterConfig(no_hash_patterns=["vendor/*"]), "app/vendor.js", "application/javascript", Outcome.HASH),
    ],
)
def test_decision_table(config, rel, mime, expected):
    assert classify(_entry(rel, mime), config) is expected


def test_classify_without_config_hashes_everything():
    assert classify(_entry("whatever.xyz", None)) is Outcome.HASH


def test_config_normalizes_rules():
    config = FilterConfig(
        mime_types=["Text/JavaScript", " text/css "],
        no_hash_paths=["./robots.txt", "fonts\\a.woff2"],
        no_hash_extensions=[".WASM", "map"],
        no_hash_patterns="vendor/**",
    )
    assert config.mime_types == frozenset({"application/javascript", "text/css"})
    assert config.no_hash_paths == frozenset({"robots.txt", "fonts/a.woff2"})
    assert config.no_hash_extensions == frozenset({"wasm", "map"})
    assert config.no_hash_patterns == ("vendor/**",)


def test_extension_rule_is_case_insensitive():
    config = FilterConfig(no_hash_extensions={"wasm"})
    assert config.is_excluded("a/B.WASM")
    assert not config.is_excluded("wasm")


def test_config_is_immutable():
    config = FilterConfig()
    with pytest.raises(ValidationError):
        config.mime_types = frozenset({"text/css"})  # type: ignore[misc]


def test_guess_mime_uses_builtin_table():
    assert guess_mime("app.js") == "application/javascript"
    assert guess_mime("css/app.css") == "text/css"
    assert guess_mime("img/logo.svg") == "image/svg+xml"
    assert guess_mime("image.bmp") == "image/bmp"
    assert guess_mime("README") is None


def test_normalize_mime_aliases():
    assert normalize_mime("application/x-javascript") == "application/javascript"
    assert normalize_mime("IMAGE/PNG") == "image/png"
