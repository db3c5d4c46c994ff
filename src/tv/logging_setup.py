from __future__ import annotations

import logging
import sys


class _QuietThirdParty(logging.Filter):
    """Let our own records through; only warnings and up from libraries like httpx."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "tv" or record.name.startswith("tv."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.WARNING) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler.addFilter(_QuietThirdParty())
    root.addHandler(handler)
    logging.captureWarnings(True)
