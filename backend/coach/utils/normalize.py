"""
Normalization utilities for structured suggestion records.

LLMs emit set counts as numbers or strings ("4", "4 sets") and rep targets as
numbers, bare counts or ranges with assorted dashes. This module coerces them
to the Suggestion field types.

Also includes JSON repair for near-valid structured blocks.
"""

import logging
import re
from typing import Any, List, Optional

import orjson
from json_repair import repair_json

logger = logging.getLogger(__name__)

# Leading integer of a set count such as "4" or "4 sets"
SETS_PATTERN = re.compile(r"^\s*(\d+)")
# Bare count or range, tolerating en/em dashes and "to": "8-12", "8 – 12", "10"
REPS_PATTERN = re.compile(r"^\s*(\d+)(?:\s*(?:[-–—]|to)\s*(\d+))?", re.IGNORECASE)

DEFAULT_REPS = "8-12"


def parse_json_array(raw_content: str) -> Optional[List[Any]]:
    """
    Parse a structured array block, repairing it when strict parsing fails.

    Uses json-repair to fix common LLM issues like trailing commas or
    single quotes. Returns None when the content is not an array.

    Examples:
        >>> parse_json_array('[{"name": "Squat", "sets": 4}]')
        [{"name": "Squat", "sets": 4}]

        >>> parse_json_array('[{"name": "Squat", "sets": 4,}]')  # trailing comma
        [{"name": "Squat", "sets": 4}]
    """
    if not raw_content or not raw_content.strip():
        return None

    try:
        parsed = orjson.loads(raw_content)
    except orjson.JSONDecodeError:
        try:
            parsed = repair_json(raw_content, return_objects=True)
        except Exception as e:
            # Partial blocks are expected mid-stream
            logger.debug(f"JSON repair failed for structured block: {e}")
            return None

    if isinstance(parsed, list):
        return parsed

    logger.debug(f"Structured block is not an array: {type(parsed).__name__}")
    return None


def coerce_sets(value: Any) -> Optional[int]:
    """
    Coerce a set count to a positive integer.

    Returns None when the value is missing or unusable; callers skip the
    record rather than defaulting.

    Examples:
        >>> coerce_sets(4)
        4
        >>> coerce_sets("3 sets")
        3
        >>> coerce_sets("several")
        None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        count = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        count = int(value)
    elif isinstance(value, str):
        match = SETS_PATTERN.match(value)
        if not match:
            return None
        count = int(match.group(1))
    else:
        return None

    return count if count >= 1 else None


def normalize_reps(value: Any) -> Optional[str]:
    """
    Normalize a rep target to a string.

    Numbers are stringified; ranges are rewritten as "low-high". Strings that
    do not start with a number ("AMRAP") are kept as written.

    Examples:
        >>> normalize_reps(10)
        "10"
        >>> normalize_reps("8 – 12 reps")
        "8-12"
        >>> normalize_reps("AMRAP")
        "AMRAP"
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not value.is_integer():
            return str(value)
        return str(int(value))

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = REPS_PATTERN.match(text)
    if not match:
        return text
    low, high = match.group(1), match.group(2)
    return f"{low}-{high}" if high else low


def normalize_notes(value: Any) -> Optional[str]:
    """Keep non-empty string notes, drop everything else."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
