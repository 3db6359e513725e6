from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .catalog import load_catalog_file
from .errors import ShellAsyncError
from .writer import AsyncWriter

logger = logging.getLogger(__name__)


def _read_source(name: str, stdin: TextIO) -> str:
    if name == "-":
        return stdin.read()
    return Path(name).read_text()


def run(files: List[str], writer: AsyncWriter, out: TextIO, stdin: TextIO) -> None:
    for name in files or ["-"]:
        logger.debug("rewriting %s", "<stdin>" if name == "-" else name)
        code = writer.compile(_read_source(name, stdin))
        if code:
            print(code, file=out)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="shellasync",
        description="shellasync: insert `await` before asynchronous shell API calls",
    )
    ap.add_argument("files", nargs="*", metavar="FILE", help="Script files to rewrite ('-' or none reads stdin)")
    ap.add_argument("--catalog", type=Path, required=True, help="JSON shell API type catalog")
    ap.add_argument("--debug", action="store_true", help="Log every typing decision to stderr")
    ap.add_argument(
        "--types",
        action="store_true",
        help="After rewriting, print the inferred type of each top-level binding",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        writer = AsyncWriter(symbols=load_catalog_file(args.catalog))
        run(args.files, writer, sys.stdout, sys.stdin)
    except (ShellAsyncError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.types:
        for name, ty in sorted(writer.program_bindings().items()):
            print(f"{name}: {ty}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
