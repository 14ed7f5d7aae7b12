"""Cleanup and truncation detection for raw model output."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```\s*$")

_CLOSERS = {"{": "}", "[": "]"}


@dataclass(frozen=True)
class SanitizedResponse:
    text: str
    truncated: bool


def strip_code_fences(raw: str) -> str:
    text = (raw or "").strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _structure_end(text: str) -> int:
    """Index just past the top-level structure that opens at ``text[0]``, or -1 if it never closes."""
    stack = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if not stack or stack.pop() != char:
                return -1
            if not stack:
                return index + 1
    return -1


def _isolate_structure(text: str) -> str:
    """
    Cut ``text`` down to the JSON value the model meant to return.

    Brackets in leading prose (``"Plan [v2] below:"``) must not win: top-level
    candidates are tried left to right, objects before arrays, and the first
    one that closes and parses is kept. A candidate that never closes is the
    cut-off document itself, so the text is returned from there for truncation
    detection to flag.
    """
    unclosed = -1
    for opener in ("{", "["):
        start = text.find(opener)
        while start != -1 and (unclosed == -1 or start < unclosed):
            end = _structure_end(text[start:])
            if end == -1:
                if unclosed == -1 or start < unclosed:
                    unclosed = start
                break
            candidate = text[start : start + end]
            try:
                json.loads(candidate)
            except ValueError:
                start = text.find(opener, start + end)
                continue
            return candidate
    if unclosed != -1:
        return text[unclosed:]
    return text


def detect_truncation(text: str) -> bool:
    """
    True when ``text`` cannot be a complete JSON value.

    Empty text counts as truncated, as does text that does not end with ``}``
    or ``]`` (a reply cut off mid-word). Text that opens with ``{``/``[`` must
    end with the matching closer, and a scan that skips string contents must
    find balanced, correctly nested brackets and no unterminated string.
    """
    stripped = (text or "").strip()
    if not stripped:
        return True
    if stripped[-1] not in ("}", "]"):
        return True
    opener = stripped[0]
    if opener not in _CLOSERS:
        return False
    if not stripped.endswith(_CLOSERS[opener]):
        return True

    stack = []
    in_string = False
    escaped = False
    for char in stripped:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if not stack or stack.pop() != char:
                return True
    return in_string or bool(stack)


def sanitize_response(raw: str) -> SanitizedResponse:
    text = _isolate_structure(strip_code_fences(raw))
    return SanitizedResponse(text=text, truncated=detect_truncation(text))
