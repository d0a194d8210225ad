"""Logging configuration for the Maitrix auto-task bot.

Sets up a dual-handler logging pipeline:

1. **Console** -- :class:`rich.logging.RichHandler` sharing the Rich
   console used by the countdown spinner, so log lines and the spinner
   do not overwrite each other.
2. **File** -- :class:`CompressedRotatingFileHandler` writing to
   ``logs/maitrix_bot.log`` with automatic gzip rotation (10 MiB per
   file, 5 backups).

Both handlers carry a :class:`SecretRedactingFilter` so the account
secret can never reach a log sink, even through an exception message.

Usage::

    from core.logging_setup import setup_logging
    setup_logging("DEBUG", secrets=[settings.secret_value()])
"""

import gzip
import logging
import os
import shutil
from logging.handlers import RotatingFileHandler
from typing import Iterable, List, Optional

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_FILE = os.path.join("logs", "maitrix_bot.log")
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
REDACTED = "***REDACTED***"

# Third-party loggers that are far too chatty at INFO/DEBUG
NOISY_LOGGERS = ("web3", "urllib3", "asyncio", "aiohttp")


class CompressedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that gzip-compresses rotated log files."""

    def rotation_filename(self, default_name: str) -> str:
        return f"{default_name}.gz"

    def rotate(self, source: str, dest: str) -> None:
        """Compress *source* into *dest* and remove *source*."""
        with open(source, 'rb') as f_in:
            with gzip.open(dest, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
        os.remove(source)


class SecretRedactingFilter(logging.Filter):
    """Replaces every configured secret in a record with a placeholder.

    The record's message is rendered once (arguments merged) so secrets
    passed as ``%s`` arguments are caught too.
    """

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self.secrets: List[str] = []
        for secret in secrets:
            if not secret:
                continue
            self.secrets.append(secret)
            # Keys are often written with or without the 0x prefix
            if secret.startswith("0x"):
                self.secrets.append(secret[2:])
            else:
                self.secrets.append("0x" + secret)
        self.secrets.sort(key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        if record.exc_info and record.exc_info[1] is not None:
            exc_text = logging.Formatter().formatException(record.exc_info)
            safe_text = self.redact(exc_text)
            if safe_text != exc_text:
                # Rendered text only: a '%' in the traceback must not meet record.args
                record.msg = f"{redacted}\n{safe_text}"
                record.args = None
                record.exc_info = None
                record.exc_text = None
        return True


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    secrets: Iterable[str] = (),
    console: Optional[Console] = None,
) -> None:
    """Configure the root logger with console and file handlers.

    Args:
        log_level: Logging level name (e.g. ``"DEBUG"``,
            ``"INFO"``, ``"WARNING"``).  Defaults to ``"INFO"``.
        log_file: Rotating log path (defaults to ``logs/maitrix_bot.log``).
        secrets: Values that must never appear in log output.
        console: Rich console shared with other live displays.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    log_path = log_file or DEFAULT_LOG_FILE
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = CompressedRotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    stream_handler = RichHandler(
        console=console or Console(),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    # Rich renders its own time and level columns
    stream_handler.setFormatter(logging.Formatter('%(name)s - %(message)s'))

    redactor = SecretRedactingFilter(list(secrets))
    for handler in (file_handler, stream_handler):
        handler.addFilter(redactor)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[file_handler, stream_handler],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
