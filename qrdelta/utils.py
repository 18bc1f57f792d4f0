# -*- coding: utf-8 -*-
from __future__ import annotations
from pathlib import Path
from typing import Optional

def load_image_bytes(path: str) -> Optional[bytes]:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError:
        return None

def bumped_filename(name: str) -> str:
    """`ticket.jpg` -> `ticket_prolonge.png`"""
    stem = Path(name or "qr").stem or "qr"
    return f"{stem}_prolonge.png"
