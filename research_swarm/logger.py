"""
Logger Configuration Module

Handles logging setup for research runs.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

research_logger: Optional[logging.Logger] = None


def create_logger(level: str = "INFO", log_file: Optional[str] = "logs/research_swarm.log") -> logging.Logger:
    logger = logging.getLogger("research_swarm")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


def setup_logging(level: str = "INFO", log_file: Optional[str] = "logs/research_swarm.log") -> logging.Logger:
    global research_logger
    if research_logger is None:
        research_logger = create_logger(level, log_file)
    return research_logger
