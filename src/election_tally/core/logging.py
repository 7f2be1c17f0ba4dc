"""Loguru logging configuration for batch runs.

Every record carries an ``election`` extra; the pipeline binds it with
``logger.contextualize`` so concurrent fetch logs stay attributable.
Records outside a run show ``-``.
"""

import sys
from pathlib import Path

from loguru import logger

NO_ELECTION = "-"

_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[election]} | {name}:{function}:{line} | {message}"
)


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Configure Loguru sinks.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for a rotating ``election-tally.log``
            file (rotated every 24 hours, retained 7 days). The file is
            always JSON lines.
        json_logs: Serialize stderr records as JSON instead of the
            human-readable format.
    """
    level = log_level.upper()
    logger.remove()
    logger.configure(extra={"election": NO_ELECTION})

    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_LOG_FORMAT)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "election-tally.log",
            level=level,
            serialize=True,
            rotation="24h",
            retention="7 days",
        )
