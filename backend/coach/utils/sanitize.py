"""Display cleanup for coach replies.

Output is for people only. Suggestion extraction always runs on the raw text.
"""

import re

from coach.services.suggestions import BARE_ARRAY_PATTERN, FENCED_ARRAY_PATTERN

FENCE = "```"
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")

_CLOSER_FOR = {"[": "]", "{": "}"}


def find_unclosed_opener(text: str) -> int:
    """
    Index of the [ or { that opens a span never closed by the end of text, or -1.

    Quotes only count inside a bracket span, so an inch mark in prose cannot
    hide a later opener. A raw newline ends any string, since JSON strings
    cannot hold one.
    """
    stack = []
    span_start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if not stack:
            if char in _CLOSER_FOR:
                stack.append(_CLOSER_FOR[char])
                span_start = index
            continue
        if in_string:
            if char == "\n":
                in_string = False
                escaped = False
            elif escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSER_FOR:
            stack.append(_CLOSER_FOR[char])
        elif char == stack[-1]:
            stack.pop()
    return span_start if stack else -1


def strip_unclosed_fence(text: str) -> str:
    """Drop a trailing fenced-block opener that has no closer."""
    if text.count(FENCE) % 2 == 0:
        return text
    return text[: text.rfind(FENCE)]


def strip_unclosed_opener(text: str) -> str:
    """Drop everything from a trailing [ or { that never closes."""
    start = find_unclosed_opener(text)
    if start < 0:
        return text
    return text[:start].rstrip(" \t")


def sanitize_for_display(text: str) -> str:
    """
    Remove structured residue from reply text.

    Drops suggestion array blocks (fenced or bare), an unterminated fence and
    a trailing array/object that never closes, then trims.
    """
    if not text:
        return ""
    cleaned = FENCED_ARRAY_PATTERN.sub("", text)
    cleaned = BARE_ARRAY_PATTERN.sub("", cleaned)
    cleaned = strip_unclosed_fence(cleaned)
    cleaned = strip_unclosed_opener(cleaned)
    cleaned = _EXCESS_BLANK_LINES.sub("\n\n", cleaned)
    return cleaned.strip()
