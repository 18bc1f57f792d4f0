# -*- coding: utf-8 -*-
"""
Batch analysis: one Record per uploaded image.

A failure on one image (unreadable file, no QR found, decoder crash) is stored
on that image's record and never stops the rest of the batch.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .compare import Record, failed_record, parse_record
from .qr import decode_qr_from_bytes

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes], Optional[str]]

NO_QR_ERROR = "Impossible de décoder un QR dans cette image"
UNREADABLE_ERROR = "Fichier illisible"


def analyze_image(source: str, data: bytes, decoder: Decoder = decode_qr_from_bytes) -> Record:
    """Decode one image and parse its payload."""
    try:
        text = decoder(data)
    except Exception as exc:  # noqa: BLE001
        logger.exception("QR decode failed for %s", source)
        return failed_record(source, f"Erreur de lecture: {exc}")
    if not text:
        logger.info("No QR found in %s", source)
        return failed_record(source, NO_QR_ERROR)
    record = parse_record(text, source)
    logger.info("Decoded %s: %d param(s), createTime=%s", source, len(record.params),
                record.parsed_time.formatted if record.parsed_time else None)
    return record


def analyze_batch(files: Iterable[Tuple[str, bytes]], decoder: Decoder = decode_qr_from_bytes) -> List[Record]:
    """Analyze `(name, bytes)` pairs in order."""
    return [analyze_image(name, data, decoder) for name, data in files]


def analyze_paths(paths: Iterable[str], decoder: Decoder = decode_qr_from_bytes) -> List[Record]:
    """Read and analyze image files; a file that cannot be read gets its own error."""
    records: List[Record] = []
    for p in paths:
        name = Path(p).name
        try:
            data = Path(p).read_bytes()
        except OSError as exc:
            logger.warning("Cannot read %s: %s", p, exc)
            records.append(failed_record(name, f"{UNREADABLE_ERROR}: {exc.strerror or exc}"))
            continue
        records.append(analyze_image(name, data, decoder))
    return records


@dataclass(frozen=True)
class BatchSummary:
    total: int
    decoded: int

    @property
    def failed(self) -> int:
        return self.total - self.decoded

    @property
    def message(self) -> str:
        return f"Analyse terminée : {self.total} fichier(s), {self.decoded} décodé(s)"


def summarize(records: Sequence[Record]) -> BatchSummary:
    return BatchSummary(total=len(records), decoded=sum(1 for r in records if r.ok))
