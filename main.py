# main.py

"""Entry point for the LootLook extraction CLI."""

import argparse
import asyncio
import logging
import sys

from lootlook.config.logging_config import setup_logging

logger = logging.getLogger("lootlook.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="lootlook",
        description="Extract title, price and screenshot from product pages.",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Product URL to extract.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        dest="output_dir",
        help="Screenshot directory (default: public/screenshots/).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--scan-image",
        default=None,
        dest="scan_image",
        metavar="PATH",
        help="Re-run OCR on an existing screenshot.",
    )
    parser.add_argument(
        "--recheck",
        default=None,
        metavar="BOOKMARKS_JSON",
        help="Re-check every bookmark listed in a JSON file.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check that Tesseract and Chromium are usable.",
    )
    return parser


def main() -> None:
    """Route to the requested CLI mode."""
    log_file = setup_logging()
    logger.info("lootlook starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    from lootlook.cli import runner

    if args.health:
        exit_code = asyncio.run(runner.run_health_check())
    elif args.scan_image:
        exit_code = asyncio.run(runner.run_scan_image(args.scan_image))
    elif args.recheck:
        exit_code = asyncio.run(
            runner.run_recheck(args.recheck, args.output_dir)
        )
    elif args.url:
        exit_code = asyncio.run(
            runner.cli_scrape(
                url=args.url,
                output_dir=args.output_dir,
                output_format=args.output_format,
            )
        )
    else:
        parser.print_help()
        exit_code = 2
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
