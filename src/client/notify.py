from __future__ import annotations

import logging
import sys
from typing import Optional, Protocol, TextIO

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Transient user-visible messages (the toast surface)."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogNotifier:
    """Notifier that writes messages to the log."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self._log = log

    def success(self, message: str) -> None:
        self._log.info(message)

    def error(self, message: str) -> None:
        self._log.error(message)


class PrintNotifier:
    """Notifier for the command line: successes on stdout, errors on stderr."""

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
        self._out = out or sys.stdout
        self._err = err or sys.stderr
        self.errors = 0

    def success(self, message: str) -> None:
        print(message, file=self._out)

    def error(self, message: str) -> None:
        self.errors += 1
        print(f"error: {message}", file=self._err)
