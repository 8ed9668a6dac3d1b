"""Normalization helpers shared by every adapter.

Everything here is pure apart from the two file readers at the bottom, and
nothing here raises on bad input: an unparseable timestamp becomes EPOCH,
a malformed JSONL line is skipped.
"""

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Epoch values above this are milliseconds, anything at or below is seconds.
_MS_THRESHOLD = 1e12


def count_words(text: str | None) -> int:
    """Count whitespace-separated tokens."""
    if not text:
        return 0
    return len(text.split())


def to_timestamp(value: Any) -> datetime:
    """Coerce an epoch number or ISO-8601 string to an aware UTC datetime.

    Absent or unparseable values map to EPOCH. Callers should treat EPOCH as
    "unknown" rather than as a real date (see is_unknown_timestamp).
    """
    if value is None or isinstance(value, bool):
        return EPOCH

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            return EPOCH

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            # Offsets can push instants at the edge of the range out of it
            return parsed.astimezone(timezone.utc)
        except (ValueError, OverflowError):
            return EPOCH

    return EPOCH


def is_unknown_timestamp(value: datetime | None) -> bool:
    return value is None or value == EPOCH


def flatten_content(parts: Iterable) -> str:
    """Render content parts as plain text, one line per part.

    The bracket labels are part of the indexed text and feed word counts,
    so their format must stay stable.
    """
    lines = []
    for part in parts:
        kind = part.type
        if kind in ("text", "thinking", "code"):
            line = part.text or ""
        elif kind == "tool_call":
            line = f"[Tool: {part.tool_name or 'unknown'}] {part.text or ''}"
        elif kind == "tool_result":
            line = f"[Result: {part.tool_name or 'unknown'}] {part.text or ''}"
        elif kind == "image":
            line = f"[Image: {part.file_name or 'image'}]"
        elif kind == "file":
            line = f"[File: {part.file_name or 'file'}]"
        else:
            line = ""
        if line:
            lines.append(line)
    return "\n".join(lines)


def primary_model(models: Iterable[str | None]) -> str | None:
    """Return the most frequent model id, ties going to the first seen."""
    counts = Counter(m for m in models if m)
    if not counts:
        return None
    # most_common keeps insertion order among equal counts
    return counts.most_common(1)[0][0]


# ── File readers ─────────────────────────────────────────────────


def read_json(path: Path) -> Any:
    """Load a JSON document, returning None if it is missing or malformed."""
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug("Could not read JSON %s: %s", path, e)
        return None


def read_jsonl(path: Path) -> Iterator[dict]:
    """Yield one dict per well-formed JSONL line.

    Blank, malformed and non-object lines are skipped. An unreadable file
    yields nothing.
    """
    try:
        with path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.debug("Bad JSON at %s:%d: %s", path, line_num, e)
                    continue
                if isinstance(entry, dict):
                    yield entry
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read JSONL %s: %s", path, e)
