from __future__ import annotations

import logging
import sys
from typing import Iterable


# Libraries that log every outbound connection; held at WARNING unless
# named in debug_modules.
CHATTY_MODULES = ("urllib3",)


def _exporter_logger() -> logging.Logger:
    return logging.getLogger("powerwall")


class ConsoleLog:
    """Configure console logging for the exporter process."""

    def __init__(self, level: str = "INFO", quiet: bool = False, debug_modules: Iterable[str] | None = None):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])

    def setup(self) -> logging.Logger:
        # Root logger handles all levels; handlers control visibility.
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(getattr(logging, self.level, logging.INFO))
            fmt = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
            handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
            root.addHandler(handler)

        for name in CHATTY_MODULES:
            if name not in self.debug_modules:
                logging.getLogger(name).setLevel(logging.WARNING)

        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return _exporter_logger()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
