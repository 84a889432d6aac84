"""
shortlink - command-line interface for Shortlink Platform

Usage:
  shortlink shorten https://example.com/long/path [-c CODE]
  shortlink list
  shortlink get CODE
  shortlink delete CODE
  shortlink qr CODE [-o qr.png]

Global options pick the backend (--backend, --db) and the prefix used to render
short URLs (--base-url). Defaults come from shortlink_platform.config.

Exit codes:
  0 success, 1 storage error, 2 invalid input, 3 code conflict, 4 not found,
  5 output file could not be written
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import settings
from .manager.code_registry import CodeRegistry
from .model.errors import CodeConflictError, InvalidInputError, StorageError
from .qr import build_short_url, generate_qr_png
from .storage.storage_factory import get_storage

EXIT_OK = 0
EXIT_STORAGE = 1
EXIT_INVALID = 2
EXIT_CONFLICT = 3
EXIT_NOT_FOUND = 4
EXIT_IO = 5

_RULE = "-" * 60

log = logging.getLogger("shortlink.cli")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="shortlink", description="A self-hosted URL shortener")
    ap.add_argument("--backend", default=settings.STORAGE_BACKEND, help="sqlite, postgres or memory")
    ap.add_argument("--db", default=None, help="SQLite path (sqlite) or DSN (postgres)")
    ap.add_argument("--base-url", default=settings.BASE_URL, help="prefix for short URLs")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("shorten", help="Shorten a URL")
    p.add_argument("url")
    p.add_argument("-c", "--code", default="", help="custom short code")

    sub.add_parser("list", help="List all shortened URLs")

    p = sub.add_parser("get", help="Show details of a shortened URL")
    p.add_argument("code")

    p = sub.add_parser("delete", help="Delete a shortened URL")
    p.add_argument("code")

    p = sub.add_parser("qr", help="Write a QR code PNG for a shortened URL")
    p.add_argument("code")
    p.add_argument("-o", "--output", default="qr.png", help="output file")

    return ap


def _open_registry(args: argparse.Namespace) -> CodeRegistry:
    kwargs = {}
    if args.db:
        kwargs["dsn" if args.backend == "postgres" else "path"] = args.db
    storage = get_storage(args.backend, **kwargs)
    storage.init_schema()
    return CodeRegistry(storage=storage)


def _cmd_shorten(registry: CodeRegistry, args: argparse.Namespace) -> int:
    link = registry.shorten(args.url, args.code)
    print(f"Short URL: {build_short_url(args.base_url, link.code)}")
    return EXIT_OK


def _cmd_list(registry: CodeRegistry, args: argparse.Namespace) -> int:
    links = registry.list_links()
    if not links:
        print("No URLs found")
        return EXIT_OK

    print("Shortened URLs:")
    print(_RULE)
    print(f"{'ID':<10} {'Short Code':<15} {'Created':<30} Clicks")
    print(_RULE)
    for link in links:
        print(f"{link.id:<10} {link.code:<15} {link.created_at.isoformat(timespec='seconds'):<30} {link.clicks}")
    print(_RULE)
    return EXIT_OK


def _cmd_get(registry: CodeRegistry, args: argparse.Namespace) -> int:
    link = registry.resolve(args.code)
    if link is None:
        print("URL not found")
        return EXIT_NOT_FOUND

    print("URL Details:")
    print(_RULE)
    print(f"ID:         {link.id}")
    print(f"Short Code: {link.code}")
    print(f"Short URL:  {build_short_url(args.base_url, link.code)}")
    print(f"Long URL:   {link.target}")
    print(f"Created:    {link.created_at.isoformat(timespec='seconds')}")
    print(f"Clicks:     {link.clicks}")
    print(_RULE)
    return EXIT_OK


def _cmd_delete(registry: CodeRegistry, args: argparse.Namespace) -> int:
    registry.delete(args.code)
    print(f"URL with code '{args.code}' deleted successfully")
    return EXIT_OK


def _cmd_qr(registry: CodeRegistry, args: argparse.Namespace) -> int:
    if registry.resolve(args.code) is None:
        print("URL not found")
        return EXIT_NOT_FOUND
    png = generate_qr_png(build_short_url(args.base_url, args.code))
    try:
        with open(args.output, "wb") as fh:
            fh.write(png)
    except OSError as exc:
        print(f"Error writing QR code to file: {exc}", file=sys.stderr)
        return EXIT_IO
    print(f"QR code saved to {args.output}")
    return EXIT_OK


_COMMANDS = {
    "shorten": _cmd_shorten,
    "list": _cmd_list,
    "get": _cmd_get,
    "delete": _cmd_delete,
    "qr": _cmd_qr,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        registry = _open_registry(args)
    except (ValueError, StorageError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_STORAGE

    try:
        return _COMMANDS[args.command](registry, args)
    except InvalidInputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except CodeConflictError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFLICT
    except StorageError as exc:
        log.debug("Storage failure", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_STORAGE
    finally:
        registry.storage.close()


if __name__ == "__main__":
    sys.exit(main())
