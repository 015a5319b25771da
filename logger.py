"""
logger.py
---------
Logging setup for the planner.

Every module logs through a child of the ``schemaplan`` logger obtained with
``get_logger(__name__)``.  The parent is configured once on import from
``CONFIG.logging``; an embedding application can call
:func:`configure_logging` again to change the level or add a log file.

Design Decision:
    The planner is a library, so the parent logger does not propagate to
    the root logger.  Host applications that want planner records in their
    own handlers call ``configure_logging(propagate=True)``.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from config import CONFIG, get_log_level

ROOT_LOGGER_NAME = "schemaplan"

_CONSOLE_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Marks handlers this module installed so reconfiguration leaves others alone.
_OWNED = "_schemaplan_owned"


def _owned(handler: logging.Handler, fmt: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=_DATE_FORMAT))
    setattr(handler, _OWNED, True)
    return handler


def configure_logging(
    level: int | None = None,
    log_file: str | Path | None = None,
    propagate: bool = False,
) -> logging.Logger:
    """
    (Re)configure the ``schemaplan`` parent logger.

    Args:
        level:     Logging level; defaults to ``LOG_LEVEL`` from the config.
        log_file:  Optional file that receives every record at DEBUG level;
                   defaults to ``LOG_FILE`` from the config.
        propagate: Forward records to the root logger as well.

    Returns:
        The configured parent logger.
    """
    level = get_log_level() if level is None else level
    log_file = CONFIG.logging.log_file if log_file is None else log_file

    parent = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in [h for h in parent.handlers if getattr(h, _OWNED, False)]:
        parent.removeHandler(handler)
        handler.close()

    parent.setLevel(logging.DEBUG if log_file else level)
    parent.propagate = propagate
    parent.addHandler(_owned(logging.StreamHandler(sys.stderr), _CONSOLE_FORMAT, level))

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            parent.addHandler(
                _owned(logging.FileHandler(path, encoding="utf-8"), _FILE_FORMAT, logging.DEBUG)
            )
        except OSError as exc:
            parent.warning("Could not open log file '%s': %s", path, exc)
    return parent


configure_logging()


def get_logger(name: str) -> logging.Logger:
    """
    Child logger for *name* (usually ``__name__``).

    Example::

        log = get_logger(__name__)
        log.info("Generated matrix %s → %s", source, target)
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
