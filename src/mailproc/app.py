"""Application entry point for the mailproc delivery filter."""

from __future__ import annotations

import argparse
import fcntl
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import IO, Optional

from art import tprint
from rich.console import Console
from rich.text import Text

from mailproc import settings
from mailproc.adapters.mail_parser import parse_mail
from mailproc.adapters.subprocess_runner import program_found, run_process
from mailproc.core.config import Config, LoggingConfig
from mailproc.core.errors import ConfigError, MailParseError, ProcessSpawnError
from mailproc.core.processor import MailProcessor
from mailproc.core.validator import validate

NAME = "MAILPROC"
FONT = "small"

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_STDIN = 2
EXIT_PARSE = 3
EXIT_SPAWN = 4

LOGGER = logging.getLogger(__name__)


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging(config: LoggingConfig) -> None:
    level = getattr(logging, config.level, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # stdout belongs to whoever invoked us, so the console handler uses stderr.
    if config.console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if config.file_enabled:
        path = settings.resolve_log_path(config.file_path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _lock_run() -> IO[str]:
    """Serialise concurrent deliveries on ``settings.LOCK_PATH``."""

    path = settings.LOCK_PATH
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handle = open(path, "a", encoding="utf-8")
    fcntl.flock(handle, fcntl.LOCK_EX)
    return handle


def _test_config(config: Config, console: Console) -> int:
    _print_banner()
    report = validate(config, program_found)
    for problem in report.problems:
        console.print(Text(problem, style="red"))
    if not report.ok:
        console.print(Text("Config FAIL", style="bold red"))
        return EXIT_CONFIG
    console.print(Text("Config OK", style="bold green"))
    return EXIT_OK


def _deliver(config: Config) -> int:
    try:
        raw = sys.stdin.buffer.read()
    except OSError:
        LOGGER.exception("Could not read stdin")
        return EXIT_STDIN

    processor = MailProcessor(config, parse_mail, run_process)
    try:
        processor.handle(raw)
    except MailParseError as exc:
        LOGGER.error("Could not parse mail: %s", exc)
        return EXIT_PARSE
    except ProcessSpawnError as exc:
        LOGGER.error("%s", exc)
        return EXIT_SPAWN
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mailproc",
        description="Deliver the message on stdin to the actions of the first matching rule.",
    )
    parser.add_argument("-t", "--test", action="store_true", help="Test configuration and exit")
    parser.add_argument("-c", "--config", default=None, help="Path to the rules file")
    args = parser.parse_args(argv)

    console = Console()
    try:
        config = settings.load_config(args.config)
    except (OSError, ConfigError) as exc:
        _configure_logging(LoggingConfig(console=True, file_enabled=False))
        LOGGER.error("Could not read config: %s", exc)
        return EXIT_CONFIG

    _configure_logging(config.logging)

    if args.test:
        return _test_config(config, console)

    lock = _lock_run()
    try:
        return _deliver(config)
    finally:
        lock.close()


if __name__ == "__main__":
    sys.exit(main())
