# -*- coding: utf-8 -*-
"""
Parameter handling for decoded QR payloads.

- extract_params(text)          -> Dict[str, str]
- interpret_time(raw)           -> ParsedTime
- find_create_time(text)        -> CreateTimeMatch
- bump_create_time_hour(text)   -> BumpResult

Nothing here raises on bad input: unusable pieces are skipped or reported
through the returned values.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Literal, Optional
from urllib.parse import unquote

import pandas as pd

CREATE_TIME = "createTime"
CREATE_TIME_KEY = CREATE_TIME + "="
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")
_DIGITS = frozenset("0123456789")

# -----------------------------
# Extraction key=value
# -----------------------------

def _decode_component(s: str, plus_as_space: bool) -> Optional[str]:
    """Percent-decode one key or value, None if the encoding is broken."""
    if _BAD_PERCENT.search(s):
        return None
    if plus_as_space:
        s = s.replace("+", " ")
    try:
        return unquote(s, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        return None


def _parse_pairs(query: str, plus_as_space: bool) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for segment in query.split("&"):
        if "=" not in segment:
            continue
        raw_key, raw_value = segment.split("=", 1)
        key = _decode_component(raw_key, plus_as_space)
        value = _decode_component(raw_value, plus_as_space)
        if not key or value is None:
            continue
        # last occurrence wins
        params[key] = value
    return params


def extract_params(text: Optional[str]) -> Dict[str, str]:
    """
    Parse a QR payload into {key: value}.

    `https://host/path?a=1&b=2` uses the query string after the first `?`
    (form encoding, `+` is a space); `a=1&b=2` is read as a bare list where
    `+` stays literal. Anything else gives an empty dict.
    """
    if not isinstance(text, str) or not text:
        return {}
    if "?" in text:
        return _parse_pairs(text.split("?", 1)[1], plus_as_space=True)
    if "=" in text:
        return _parse_pairs(text, plus_as_space=False)
    return {}

# -----------------------------
# createTime -> instant
# -----------------------------

@dataclass(frozen=True)
class ParsedTime:
    original: str
    valid: bool = False
    instant: Optional[int] = None       # epoch milliseconds
    formatted: Optional[str] = None     # "YYYY-MM-DD HH:MM:SS", local time


def _to_local(dt: datetime) -> datetime:
    # naive values are already local wall-clock time
    if dt.tzinfo is None:
        return dt
    return dt.astimezone()


def interpret_time(raw: Optional[str]) -> ParsedTime:
    """Normalise `T`/`Z` separators and parse the result as a local date-time."""
    if not isinstance(raw, str):
        return ParsedTime(original="" if raw is None else str(raw))
    clean = raw.replace("T", " ").replace("Z", " ").strip()
    # pandas lit aussi "now" / "today" : on exige une date chiffrée
    if not clean or clean[0] not in _DIGITS:
        return ParsedTime(original=raw)
    try:
        ts = pd.to_datetime(clean, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return ParsedTime(original=raw)
    if ts is None or pd.isna(ts):
        return ParsedTime(original=raw)
    try:
        dt = _to_local(ts.to_pydatetime())
        instant = int(round(dt.timestamp() * 1000))
    except (ValueError, OverflowError, OSError):
        return ParsedTime(original=raw)
    return ParsedTime(
        original=raw,
        valid=True,
        instant=instant,
        formatted=dt.strftime(TIME_FORMAT),
    )

# -----------------------------
# createTime=<date><sep><HH>:<MM>:<SS>
# -----------------------------

MatchStatus = Literal["matched", "malformed", "missing"]


@dataclass(frozen=True)
class CreateTimeMatch:
    """
    Result of scanning a payload for `createTime=YYYY-MM-DD[ |T]HH:MM:SS`.

    status:
        "matched"   -> start/end delimit the whole field in the text
        "malformed" -> `createTime=` is present but never in the expected shape
        "missing"   -> no `createTime=` at all
    """
    status: MatchStatus
    start: int = -1
    end: int = -1
    date: str = ""
    separator: str = ""
    hour: str = ""
    suffix: str = ""    # ":MM:SS"

    @property
    def matched(self) -> bool:
        return self.status == "matched"


def _digits(text: str, pos: int, count: int) -> Optional[str]:
    chunk = text[pos:pos + count]
    if len(chunk) == count and all(c in _DIGITS for c in chunk):
        return chunk
    return None


def _match_field(text: str, start: int) -> Optional[CreateTimeMatch]:
    i = start + len(CREATE_TIME_KEY)

    # date := DDDD-DD-DD
    date_start = i
    for count, delimiter in ((4, "-"), (2, "-"), (2, "")):
        if _digits(text, i, count) is None:
            return None
        i += count
        if delimiter:
            if not text.startswith(delimiter, i):
                return None
            i += 1
    date = text[date_start:i]

    # sep := " " | "T"
    separator = text[i:i + 1]
    if separator not in (" ", "T"):
        return None
    i += 1

    hour = _digits(text, i, 2)
    if hour is None:
        return None
    i += 2

    # suffix := :DD:DD
    suffix_start = i
    for _ in range(2):
        if not text.startswith(":", i) or _digits(text, i + 1, 2) is None:
            return None
        i += 3

    return CreateTimeMatch(
        status="matched",
        start=start,
        end=i,
        date=date,
        separator=separator,
        hour=hour,
        suffix=text[suffix_start:i],
    )


def find_create_time(text: Optional[str]) -> CreateTimeMatch:
    """Return the first well-formed `createTime=` field of `text`."""
    if not text:
        return CreateTimeMatch(status="missing")
    pos = text.find(CREATE_TIME_KEY)
    if pos < 0:
        return CreateTimeMatch(status="missing")
    while pos >= 0:
        found = _match_field(text, pos)
        if found is not None:
            return found
        pos = text.find(CREATE_TIME_KEY, pos + 1)
    return CreateTimeMatch(status="malformed")


@dataclass(frozen=True)
class BumpResult:
    text: str
    changed: bool
    match: CreateTimeMatch
    new_time_display: Optional[str] = None


def bump_create_time_hour(text: str) -> BumpResult:
    """
    Add one hour to the first `createTime=` field, modulo 24.

    The date is left as is when the hour wraps (23 -> 00, same day) and the
    rest of the payload is returned unchanged.
    """
    match = find_create_time(text)
    if not match.matched:
        return BumpResult(text=text, changed=False, match=match)

    new_hour = "%02d" % ((int(match.hour) + 1) % 24)
    field = f"{CREATE_TIME_KEY}{match.date}{match.separator}{new_hour}{match.suffix}"
    new_text = text[:match.start] + field + text[match.end:]
    return BumpResult(
        text=new_text,
        changed=True,
        match=match,
        new_time_display=f"{match.date} {new_hour}{match.suffix}",
    )
