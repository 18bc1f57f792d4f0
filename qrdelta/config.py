# -*- coding: utf-8 -*-
"""
Runtime settings, read from the environment (and `.env` via python-dotenv).

- LOGS_DIR        : folder for app.log (default: logs)
- LOG_LEVEL       : root log level (default: INFO)
- QR_WIDTH        : generated QR width in px (default: 260)
- QR_MARGIN       : quiet zone in modules (default: 2)
- MAX_IMAGE_SIDE  : larger images are downscaled before decoding (default: 1024)
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


LOGS_DIR = Path(os.getenv("LOGS_DIR", "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
QR_WIDTH = env_int("QR_WIDTH", 260)
QR_MARGIN = env_int("QR_MARGIN", 2)
MAX_IMAGE_SIDE = env_int("MAX_IMAGE_SIDE", 1024)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(logs_dir: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """Configure root logging (file + console). Returns the log file path."""
    folder = Path(logs_dir) if logs_dir is not None else LOGS_DIR
    folder.mkdir(parents=True, exist_ok=True)
    log_file = folder / "app.log"
    if logging.getLogger().handlers:
        # déjà configuré (rerun Streamlit, pytest)
        return log_file
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )
    return log_file
