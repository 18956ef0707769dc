"""
Logging da aplicação.

Um único logger nomeado ("studio_insight"), com saída no console e, se
LOG_FILE estiver definido, arquivo com rotação.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "studio_insight"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configura (ou reconfigura) o logger da aplicação e o devolve."""
    log = logging.getLogger(LOGGER_NAME)
    log.handlers.clear()
    log.setLevel(getattr(logging, level.upper(), logging.INFO))
    log.propagate = True

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    return log


logger = logging.getLogger(LOGGER_NAME)
