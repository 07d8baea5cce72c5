from __future__ import annotations

import argparse
import sys
from typing import Optional

from .errors import AssetNotFound, CacheBusterError
from .files import Files
from .logging_utils import maybe_enable_json_logging
from .settings import BusterSettings, get_settings


def _overrides(args: argparse.Namespace) -> dict:
    values = {
        "source": args.source,
        "result": args.result,
        "prefix": args.prefix,
        "mime_types": args.mime_type,
        "no_hash_paths": args.no_hash,
        "no_hash_extensions": args.no_hash_ext,
        "no_hash_patterns": args.no_hash_glob,
        "artifact": args.artifact,
        "workers": args.workers,
    }
    if args.no_follow_links:
        values["follow_links"] = False
    return {k: v for k, v in values.items() if v is not None}


def cmd_build(args: argparse.Namespace) -> int:
    settings = BusterSettings(**_overrides(args))
    try:
        buster = settings.to_buster()
        file_map = buster.process()
    except CacheBusterError as exc:
        print(f"cache-buster: {exc}", file=sys.stderr)
        return 1
    print(f"Built {len(file_map)} assets → {buster.result} ({settings.artifact})")
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    artifact = args.artifact or get_settings().artifact
    try:
        files = Files.from_path(artifact)
    except OSError as exc:
        print(f"cache-buster: cannot read {artifact}: {exc}", file=sys.stderr)
        return 1
    except CacheBusterError as exc:
        print(f"cache-buster: {exc}", file=sys.stderr)
        return 1
    status = 0
    for path in args.paths:
        try:
            print(files.get_full_path(path) if args.full else files.get(path))
        except (AssetNotFound, ValueError) as exc:
            print(f"cache-buster: {exc}", file=sys.stderr)
            status = 1
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cache-buster", description="Fingerprint static assets for cache busting")
    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build", help="Fingerprint the source directory and write the filemap")
    p_build.add_argument("--source")
    p_build.add_argument("--result")
    p_build.add_argument("--prefix")
    p_build.add_argument("--mime-type", action="append", help="Allow-listed MIME type (repeatable)")
    p_build.add_argument("--no-hash", action="append", help="Path to copy without hashing (repeatable)")
    p_build.add_argument("--no-hash-ext", action="append", help="Extension to copy without hashing (repeatable)")
    p_build.add_argument("--no-hash-glob", action="append", help="Glob to copy without hashing (repeatable)")
    p_build.add_argument("--artifact")
    p_build.add_argument("--workers", type=int)
    p_build.add_argument("--no-follow-links", action="store_true")
    p_build.set_defaults(func=cmd_build)

    p_lookup = sub.add_parser("lookup", help="Translate asset paths using a filemap artifact")
    p_lookup.add_argument("--artifact")
    p_lookup.add_argument("--full", action="store_true", help="Include the route prefix")
    p_lookup.add_argument("paths", nargs="+")
    p_lookup.set_defaults(func=cmd_lookup)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    maybe_enable_json_logging(get_settings().json_logs)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
