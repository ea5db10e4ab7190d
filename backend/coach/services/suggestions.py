"""
Exercise suggestion extraction for coach replies.

Two tiers, tried in order on the unsanitized reply text:
Tier 1: Structured - an array of {name, sets, reps, notes} records, optionally fenced
Tier 2: Heuristic - prose pattern families, only when Tier 1 produced nothing

Both tiers deduplicate case-insensitively on name; the first occurrence wins.
Extraction is pure and never raises, so it can be re-run on every prefix of a
reply while it streams.
"""

import logging
import re
from typing import Any, Callable, Iterable, List, Optional, Tuple

from coach.models.response import Suggestion
from coach.utils.normalize import (
    DEFAULT_REPS,
    coerce_sets,
    normalize_notes,
    normalize_reps,
    parse_json_array,
)

logger = logging.getLogger(__name__)

# Tier 1: array-of-objects block, fenced form preferred over a bare array
FENCED_ARRAY_PATTERN = re.compile(
    r"```(?:json)?\s*(\[\s*\{[\s\S]*?\}\s*\])\s*```", re.IGNORECASE
)
BARE_ARRAY_PATTERN = re.compile(r"\[\s*\{[\s\S]*?\}\s*\]")

# Shared tail of the prose patterns: "3 sets x 8-10", "4x6", "3 X 12"
_VOLUME = (
    r"(?P<sets>\d+)[ \t]*(?:sets?)?[ \t]*[x×][ \t]*"
    r"(?P<reps>\d+(?:[ \t]*[-–—][ \t]*\d+)?)"
)
_NAME = r"(?:\*\*)?(?P<name>[A-Za-z][^*:\n]*?)(?:\*\*)?"

# Tier 2 (a): "**Bench Press** - 3 sets x 8-10 reps" or "- Bench Press - 3 sets x 10"
BOLD_BULLET_PATTERN = re.compile(
    r"^[ \t]*(?=[-*•]|\*\*)(?:[-*•][ \t]+)?" + _NAME + r"[ \t]*[-–—:][ \t]*" + _VOLUME,
    re.MULTILINE | re.IGNORECASE,
)
# Tier 2 (b): "1. Squat: 4x6"
NUMBERED_PATTERN = re.compile(
    r"^[ \t]*\d+[.)][ \t]*" + _NAME + r"[ \t]*:[ \t]*" + _VOLUME,
    re.MULTILINE | re.IGNORECASE,
)
# Tier 2 (c): "Add Walking Lunge - 3 sets x 12"
NARRATIVE_PATTERN = re.compile(
    r"\b(?:add|try|include)[ \t]+" + _NAME + r"[ \t]*[-–—:][ \t]*" + _VOLUME,
    re.IGNORECASE,
)


def find_structured_block(text: str) -> Optional[str]:
    """Return the first array-of-objects block in the text, if any."""
    match = FENCED_ARRAY_PATTERN.search(text) or BARE_ARRAY_PATTERN.search(text)
    if not match:
        return None
    return match.group(1) if match.re is FENCED_ARRAY_PATTERN else match.group(0)


def suggestion_from_record(record: Any) -> Optional[Suggestion]:
    """
    Validate one structured record.

    A record needs a name and at least one of sets/reps. An unusable set
    count skips the record; a missing rep target falls back to DEFAULT_REPS.
    """
    if not isinstance(record, dict):
        return None

    name = record.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    if record.get("sets") is None and record.get("reps") is None:
        return None

    sets = coerce_sets(record.get("sets"))
    if sets is None:
        return None

    reps = normalize_reps(record.get("reps")) or DEFAULT_REPS
    return Suggestion(
        name=name.strip(),
        sets=sets,
        reps=reps,
        notes=normalize_notes(record.get("notes")),
    )


def merge_unique(candidates: Iterable[Suggestion]) -> List[Suggestion]:
    """Fold candidates in order, keeping the first per case-insensitive name."""
    seen = {}
    for candidate in candidates:
        if candidate.key not in seen:
            seen[candidate.key] = candidate
    return list(seen.values())


def _candidates(pattern: re.Pattern, text: str) -> List[Suggestion]:
    found = []
    for match in pattern.finditer(text):
        name = match.group("name").strip()
        sets = coerce_sets(match.group("sets"))
        reps = normalize_reps(match.group("reps"))
        if not name or sets is None or reps is None:
            continue
        found.append(Suggestion(name=name, sets=sets, reps=reps))
    return found


def bold_bullet_candidates(text: str) -> List[Suggestion]:
    return _candidates(BOLD_BULLET_PATTERN, text)


def numbered_candidates(text: str) -> List[Suggestion]:
    return _candidates(NUMBERED_PATTERN, text)


def narrative_candidates(text: str) -> List[Suggestion]:
    return _candidates(NARRATIVE_PATTERN, text)


# Fixed precedence; earlier families win duplicate names
HEURISTIC_PATTERNS: Tuple[Callable[[str], List[Suggestion]], ...] = (
    bold_bullet_candidates,
    numbered_candidates,
    narrative_candidates,
)


class SuggestionExtractor:
    """Recovers exercise suggestions from free and semi-structured reply text"""

    def __init__(self, patterns=HEURISTIC_PATTERNS):
        self.patterns = patterns

    def extract(self, text: str) -> List[Suggestion]:
        if not text:
            return []

        structured = self.extract_structured(text)
        if structured:
            return structured

        candidates: List[Suggestion] = []
        for pattern in self.patterns:
            candidates.extend(pattern(text))
        return merge_unique(candidates)

    def extract_structured(self, text: str) -> List[Suggestion]:
        """Tier 1 only. An absent or unparsable block yields an empty list."""
        block = find_structured_block(text)
        if block is None:
            return []

        records = parse_json_array(block)
        if not records:
            return []

        suggestions = []
        for record in records:
            suggestion = suggestion_from_record(record)
            if suggestion is not None:
                suggestions.append(suggestion)
            else:
                logger.debug(f"Skipping structured record without usable sets: {record!r}")
        return merge_unique(suggestions)


def extract_suggestions(text: str) -> List[Suggestion]:
    """Convenience wrapper using the default pattern order."""
    return SuggestionExtractor().extract(text)
