from __future__ import annotations

import threading

import pytest

from cache_buster import filemap
from cache_buster.errors import ArtifactError, AssetNotFound, InvalidAssetPath
from cache_buster.filemap import FileMap
from cache_buster.files import Files


def _files(prefix=None, **entries) -> Files:
    return Files(filemap.dumps(FileMap(prefix=prefix, files=entries or {"css/app.css": "css/app.ab12cd34.css"})))


def test_get_full_path_with_prefix():
    files = _files(prefix="/static")
    assert files.get("css/app.css") == "css/app.ab12cd34.css"
    assert files.get_full_path("css/app.css") == "/static/css/app.ab12cd34.css"


def test_get_full_path_without_prefix():
    files = _files()
    assert files.prefix is None
    assert files.get_full_path("css/app.css") == "css/app.ab12cd34.css"
    assert files.get_full_path("css/app.css") == files.get("css/app.css")


def test_lookup_miss_raises_not_found():
    files = _files()
    with pytest.raises(AssetNotFound) as exc:
        files.get("nonexistent.js")
    assert exc.value.path == "nonexistent.js"
    with pytest.raises(KeyError):
        files.get_full_path("nonexistent.js")


def test_empty_map_is_valid_and_matches_nothing():
    files = Files(filemap.dumps(FileMap()))
    assert len(files) == 0
    with pytest.raises(AssetNotFound):
        files.get("app.js")


def test_resolve_falls_back_to_original():
    files = _files(prefix="/static")
    assert files.resolve("css/app.css") == "/static/css/app.ab12cd34.css"
    assert files.resolve("js/missing.js") == "js/missing.js"


@pytest.mark.parametrize("bad", ["", "/css/app.css", "./css/app.css", "css//app.css", "css/../app.css", "css\\app.css"])
def test_non_normalized_keys_are_rejected(bad):
    files = _files()
    with pytest.raises(InvalidAssetPath):
        files.get(bad)


def test_mapping_is_read_only():
    files = _files()
    with pytest.raises(TypeError):
        files.mapping["x.js"] = "y.js"  # type: ignore[index]
    assert "css/app.css" in files
    assert list(files) == ["css/app.css"]


def test_construction_fails_on_bad_artifact():
    with pytest.raises(ArtifactError):
        Files('{"version": 1, "files": {"a.js": "a.1.js"')


def test_from_path(tmp_path):
    target = filemap.write(FileMap(files={"a.js": "a.1.js"}), tmp_path / "data.json")
    assert Files.from_path(target).get("a.js") == "a.1.js"


def test_concurrent_readers():
    files = _files(prefix="/static")
    results: list[str] = []
    lock = threading.Lock()

    def reader():
        for _ in range(200):
            value = files.get_full_path("css/app.css")
            with lock:
                results.append(value)

    threads = [threading.Thread(target=reader) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert set(results) == {"/static/css/app.ab12cd34.css"}
    assert len(results) == 1600


def test_contains_tolerates_non_string_input():
    files = _files()
    assert ["css/app.css"] not in files
    assert None not in files
