from __future__ import annotations

import logging
import os


_configured = False

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    level = os.getenv("SPECRUNNER_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format=LOG_FORMAT,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _ensure_base_logger()
    return logging.getLogger(name)
