#!/usr/bin/env python3
"""
Vending Machine - Command loop entry point.

Reads one JSON command per line from stdin and writes one JSON response
per line to stdout.

Usage:
    python -m vending_machine.main [--stock-defaults] [--debug]

Example:
    {"command": "select_product", "command_id": 1, "data": {"name": "Soda"}}
"""

import argparse
import json
import logging
import sys
from typing import Any, Iterable, TextIO

from vending_machine.application.api_facade import VendingMachineFacade
from vending_machine.application.command_handler import CommandHandler
from vending_machine.loggers import logger


def process_lines(lines: Iterable[str], handler: CommandHandler, out: TextIO) -> int:
    """
    Execute every command in ``lines`` and write the responses to ``out``.

    Returns:
        Number of commands executed.
    """
    executed = 0
    for raw in lines:
        raw = raw.strip()
        if not raw or raw == "ping":
            continue

        try:
            command: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Command parsing error: {e}")
            response = {"command_id": None, "success": False,
                        "message": f"Invalid JSON: {e}", "data": None}
        else:
            if not isinstance(command, dict):
                response = {"command_id": None, "success": False,
                            "message": "Command must be a JSON object", "data": None}
            else:
                logger.debug(f"Received command: {command}")
                response = handler.execute(command)
                executed += 1

        out.write(json.dumps(response, ensure_ascii=False) + "\n")
        out.flush()

    return executed


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Coin vending machine command loop (JSON lines on stdin)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--stock-defaults", "-s",
        action="store_true",
        help="Load the demo products and coins before reading commands",
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    args = parse_args(argv)
    logger.setLevel(logging.DEBUG if args.debug else logging.INFO)

    api = VendingMachineFacade()
    if args.stock_defaults:
        result = api.stock_defaults()
        logger.info(result["message"])

    handler = CommandHandler(api)
    executed = process_lines(sys.stdin, handler, sys.stdout)
    logger.info(f"Input closed after {executed} commands")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("Application stopped by user")
        sys.exit(0)
