"""Utility functions for pdfcards."""

import random
import re
import string
import time
from datetime import datetime, timezone

_BASE36 = string.digits + string.ascii_lowercase


def fnv1a_hash(value: str) -> str:
    """32-bit FNV-1a over UTF-16 code units, as unpadded lowercase hex.

    Stable across restarts but not collision-proof.
    """
    data = value.encode("utf-16-le")
    h = 0x811C9DC5
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * 0x01000193) & 0xFFFFFFFF
    return format(h, "x")


def new_id() -> str:
    """Generate an id like ``1718031234567-k3j9x2``."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"{millis}-{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return iso_timestamp(utc_now())


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return re.sub(r"\s+", " ", text).strip()
