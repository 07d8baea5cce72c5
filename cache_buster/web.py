from __future__ import annotations

from pathlib import Path
from typing import Union

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .files import Files


def install_static_url(templates: Jinja2Templates, files: Files, name: str = "static_url") -> None:
    """Expose ``{{ static_url("css/app.css") }}`` to templates.

    Unknown assets fall back to the path as given.
    """
    templates.env.globals[name] = files.resolve


def mount_assets(
    app: FastAPI,
    directory: Union[str, Path],
    files: Files,
    path: str = "/static",
    name: str = "static",
) -> None:
    # The route prefix baked into the filemap must match the mount point
    if files.prefix and files.prefix.rstrip("/") != path.rstrip("/"):
        raise ValueError(f"filemap prefix {files.prefix!r} does not match mount path {path!r}")
    app.mount(path, StaticFiles(directory=str(directory)), name=name)
