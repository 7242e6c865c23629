#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Export a barcode label as a print-sized PNG.

Usage:
    python scripts/export_barcode.py ABC-12345
    python scripts/export_barcode.py 4006381333931 --format EAN13 --dpi 600 --out labels/
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from barcode_raster import (
    BarcodeSession,
    BarcodeType,
    get_logger,
    load_config,
    validate_dpi,
)

logger = get_logger(__name__)


def build_parser(config: dict) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rasterize a linear barcode to a PNG of exact physical size."
    )
    parser.add_argument("data", nargs="?", default="", help="payload to encode")
    parser.add_argument(
        "--format",
        default=config["barcode_format"],
        choices=[t.value for t in BarcodeType],
        type=str.upper,
        help="symbol format (default: %(default)s)",
    )
    parser.add_argument("--dpi", type=int, default=config["dpi"], help="export resolution")
    parser.add_argument("--width-cm", type=float, default=config["width_cm"])
    parser.add_argument("--height-cm", type=float, default=config["height_cm"])
    parser.add_argument(
        "--no-text",
        action="store_true",
        default=not config["include_text"],
        help="omit the human-readable line",
    )
    parser.add_argument("--out", type=Path, default=Path("."), help="output directory")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path, default=None)
    known, _ = pre.parse_known_args(argv)
    config = load_config(known.config)

    args = build_parser(config).parse_args(argv)
    try:
        validate_dpi(args.dpi)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    session = BarcodeSession.from_config(config, value=args.data)
    try:
        session.update(
            barcode_type=BarcodeType.from_tag(args.format),
            include_text=not args.no_text,
            dpi=args.dpi,
            width_cm=args.width_cm,
            height_cm=args.height_cm,
        )
        if session.error:
            print(f"error: {session.error}", file=sys.stderr)
            return 1

        result = asyncio.run(session.export())
        if not result.ok:
            print(f"error: {result.message}", file=sys.stderr)
            return 1

        target = session.download(args.out)
    finally:
        session.close()

    print(target)
    return 0


if __name__ == "__main__":
    sys.exit(main())
