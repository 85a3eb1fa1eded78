# mapdraft/log.py
"""
Logging setup for the application hosting the draft store.

mapdraft modules only log through module loggers under "mapdraft" and
never add handlers themselves. The host calls setup_logging() once at
startup to get console (and optionally file) output.
"""
import logging
import os
from pathlib import Path

_LOGGER_CONFIGURED = False


def setup_logging(level: int = logging.INFO, log_file: str | os.PathLike | None = None) -> None:
    """
    Configures console logging (and a file handler when log_file is given).
    Only the first call has an effect. If the file cannot be opened the
    console handler is kept and a warning is logged.
    """
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    logger = logging.getLogger("mapdraft")
    logger.setLevel(level)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file is not None:
        try:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path, encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(fmt)
            logger.addHandler(fh)
        except OSError as e:
            logger.warning("Could not open log file %s: %s", log_file, e)

    _LOGGER_CONFIGURED = True
