"""
CFD Invoice - scan bills into structured data with Gemini.

Usage:
    python main.py [FILE] [--data-dir DIR] [--log-level LEVEL]
"""

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from cfd_invoice.app import build_app
from cfd_invoice.config import get_settings
from cfd_invoice.logging_config import setup_logging


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan an invoice, lorry receipt or e-way bill into structured data.")
    parser.add_argument("file", nargs="?", help="Image or PDF to scan on startup")
    parser.add_argument("--data-dir", type=Path, help="Directory for history, logs and debug responses")
    parser.add_argument("--log-level", help="Console log level (default: WARNING)")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    # Expose .env values to the per-call settings reads as well
    load_dotenv()
    args = parse_args(argv)

    overrides = {}
    if args.data_dir:
        overrides["data_directory"] = args.data_dir
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = get_settings(**overrides)

    setup_logging(settings.logs_folder, console_level=settings.log_level, file_level=settings.file_log_level)
    logging.getLogger("cfd_invoice.main").info(f"Starting with data directory {settings.data_directory}")

    app = build_app(settings)
    asyncio.run(app.run(args.file))


if __name__ == "__main__":
    main()
