"""
Logging configuration for the People API.

``setup_logging`` attaches a console handler (and, when ``LOG_FILE`` is
set, a file handler) to the root logger.  Request bodies never reach
the logs: services log document ids, the error handlers log field
names and driver failures.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that flood the output below WARNING.
NOISY_LOGGERS = ("pymongo", "pymongo.serverSelection", "pymongo.connection")


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger once per process.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``), case insensitive.
        Unknown names fall back to ``INFO``.
    logfile : Optional[str]
        Optional path of a log file.  Missing parent directories are
        created.
    """
    root = logging.getLogger()
    if any(getattr(h, "_people_api", False) for h in root.handlers):
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._people_api = True  # marks handlers installed here
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).debug(
        "Logging configured at %s%s",
        logging.getLevelName(numeric_level),
        f", file {logfile}" if logfile else "",
    )
