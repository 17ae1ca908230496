"""
Root logger setup, run once when medsafe.main is imported.
Every other module only does logging.getLogger(__name__).
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Send service logs to stdout and, when LOG_FILE is set, to a rotating
    file as well. Unknown level names fall back to INFO.

    Args:
        level: LOG_LEVEL from config.env
        log_file: LOG_FILE from config.env; parent directories are created
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)

    handlers = [console_handler]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # replaces handlers left by uvicorn or an earlier call
    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    # requests logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"medsafe logging at {level.upper()}" + (f", file {log_file}" if log_file else "")
    )
