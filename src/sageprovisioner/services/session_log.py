"""Session log file handling."""

import logging
import os
from datetime import datetime
from typing import Optional

LOG_FORMAT = "[%(asctime)s][%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def session_log_name(started_at: datetime) -> str:
    return f"provisioning-{started_at.strftime('%Y%m%d-%H%M%S')}.log"


def attach_session_log(
    logger: logging.Logger,
    log_dir: str,
    started_at: Optional[datetime] = None,
    level: int = logging.INFO,
) -> str:
    """Adds a per-run plain text log file to ``logger`` and returns its path."""
    started_at = started_at or datetime.now()
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, session_log_name(started_at))

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(file_handler)
    return log_path
