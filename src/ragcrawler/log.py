from __future__ import annotations
import logging
from typing import Optional

NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "aiohttp", "asyncio")


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure root logging for a crawl run.

    Args:
        log_level: Console level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path; the file always receives DEBUG records
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S'))
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))
        handlers.append(file_handler)

    # Root passes everything; handlers filter
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("ragcrawler").info(
        f"Logging initialized at {log_level.upper()} level" + (f" (file: {log_file})" if log_file else "")
    )
