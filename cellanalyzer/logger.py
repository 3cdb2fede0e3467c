"""A small thread-safe logger writing timestamped lines to a file and stderr."""

from __future__ import annotations

import functools
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import TextIO

DEFAULT_LOG_FILE = "cell_analyzer_debug.log"


def _timestamp() -> str:
    now = datetime.now()
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}"


class Logger:
    """Appends ``<timestamp> [<LEVEL>] <message>`` lines to a log file."""

    def __init__(self, path: str | Path = DEFAULT_LOG_FILE) -> None:
        self.path = Path(path)
        self._file: TextIO | None = None
        self._lock = threading.Lock()

    def log(self, message: str, level: str = "INFO") -> None:
        """Write one line at the given level; opens the file on first use."""
        with self._lock:
            if self._file is None:
                try:
                    self._file = open(self.path, "a", encoding="utf-8")
                except OSError:
                    print("Failed to open log file", file=sys.stderr)
                    return
            line = f"{_timestamp()} [{level}] {message}"
            self._file.write(line + "\n")
            self._file.flush()
            print(line, file=sys.stderr)

    def info(self, message: str) -> None:
        self.log(message, "INFO")

    def warning(self, message: str) -> None:
        self.log(message, "WARN")

    def error(self, message: str) -> None:
        self.log(message, "ERROR")

    def debug(self, message: str) -> None:
        self.log(message, "DEBUG")

    def close(self) -> None:
        """Close the log file if it is open."""
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@functools.lru_cache(maxsize=None)
def get_logger() -> Logger:
    """Return the application-wide logger."""
    return Logger(DEFAULT_LOG_FILE)