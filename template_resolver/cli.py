from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from .casefile import CaseFileError
from .commands import resolve as cmd_resolve
from .config import Settings, load_settings

LOG_FORMAT = "%(levelname).1s | %(name)s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}

USAGE_ERROR = 2


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(settings: Settings, level_name: Optional[str] = None) -> WarningBufferHandler:
    log_level = getattr(logging, (level_name or settings.logging.level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(warn_buffer)

    if settings.logging.warnings_log:
        file_handler = logging.FileHandler(settings.logging.warnings_log, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.WARNING)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)
    return warn_buffer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="template-resolver",
        description="Resolve the template to invoke from matched templates",
    )
    parser.add_argument("--config", type=Path, help="Path to template-resolver.yaml")
    parser.add_argument("--log-level", default=None, help="Python logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve a captured case file and explain the outcome"
    )
    resolve_parser.add_argument("case", type=Path, help="YAML case file")
    resolve_parser.add_argument(
        "--detailed-help",
        action="store_true",
        help="Also list the templates that detailed help would show",
    )
    verify_parser = subparsers.add_parser(
        "verify", help="Check every case in a directory against its expected outcome"
    )
    verify_parser.add_argument("directory", type=Path, help="Directory of YAML case files")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValidationError) as exc:
        parser.exit(USAGE_ERROR, f"template-resolver: invalid configuration: {exc}\n")
    warn_buffer = configure_logging(settings, args.log_level)
    log = logging.getLogger(__name__)

    exit_code = 0
    try:
        match args.command:
            case "resolve":
                report = cmd_resolve.run(
                    settings,
                    args.case,
                    detailed_help=getattr(args, "detailed_help", False),
                )
            case "verify":
                report = cmd_resolve.verify(settings, args.directory)
            case _:
                parser.error("Unknown command")
        for line in report.lines:
            print(line)
        exit_code = report.exit_code
    except CaseFileError as exc:
        log.error("%s", exc)
        exit_code = USAGE_ERROR
    finally:
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
    if exit_code:
        raise SystemExit(exit_code)
