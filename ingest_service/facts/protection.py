"""Placeholder substitution for factual tokens in bilingual legal text.

``protect_facts`` replaces amounts, percentages, dates, identifiers, numbers,
number words and proper names with reserved ``__CLASS_n__`` tokens so that an
external rewriting step can change the wording around them without touching
the facts. ``restore_facts`` puts the originals back and reports any token
the rewrite dropped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"__[A-Z]+_\d+__")

_AMOUNT = r"\d(?:[\d,.]*\d)?"
_HEB_WORD = r"[א-ת]"

# ASCII-only edges, so numbers behind a one-letter Hebrew prefix (ב30%, ל2020) still match
_NUM_START = r"(?<![0-9A-Za-z_.,])"
_NUM_END = r"(?![0-9A-Za-z_])"

# Spelled-out Hebrew numbers, longest first so compounds win over their heads
_NUMBER_WORDS = sorted(
    [
        "אפס", "אחד", "אחת", "שתיים", "שניים", "שתי", "שני", "שלוש", "שלושה", "ארבע", "ארבעה",
        "חמש", "חמישה", "שש", "שישה", "שבע", "שבעה", "שמונה", "תשע", "תשעה", "עשר", "עשרה",
        "אחת עשרה", "אחת-עשרה", "אחד עשר", "שתים עשרה", "שתים-עשרה", "שתים-עשר", "שנים עשר",
        "שלוש עשרה", "שלוש-עשרה", "ארבע עשרה", "ארבע-עשרה", "חמש עשרה", "חמש-עשרה",
        "שש עשרה", "שש-עשרה", "שבע עשרה", "שבע-עשרה", "שמונה עשרה", "שמונה-עשרה",
        "תשע עשרה", "תשע-עשרה", "עשרים", "שלושים", "ארבעים", "חמישים", "שישים", "שבעים",
        "שמונים", "תשעים", "מאה", "מאתיים", "שלוש מאות", "ארבע מאות", "חמש מאות", "שש מאות",
        "שבע מאות", "שמונה מאות", "תשע מאות", "אלף", "אלפיים", "אלפים", "מיליון", "מיליארד",
    ],
    key=len,
    reverse=True,
)
_NUMWORD = "(?:" + "|".join(re.escape(w) for w in _NUMBER_WORDS) + ")"
_NUMWORD_SUFFIX = r"(?:אחוזים|אחוז|שקלים|שקל|₪|אלף|אלפים|מיליון|מיליארד)"

_ROLE_WORDS = (
    "התובעת", "התובע", "הנתבעת", "הנתבע", "המבוטחת", "המבוטח", "העד", "המומחה", "הרופא",
    "הגב׳", "הגב'", "מר", "גב׳", "גב'", "Mr", "Mrs",
)

# Order matters: each class only sees text the earlier classes left alone
_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("MONEY", re.compile(rf"(?:₪|\$|€|£)\s*{_AMOUNT}")),
    ("MONEY", re.compile(rf"{_NUM_START}{_AMOUNT}\s*(?:₪|ש\"ח|NIS|ILS|USD|EUR|GBP){_NUM_END}", re.IGNORECASE)),
    ("MONEY", re.compile(rf"(?<![0-9A-Za-z_])(?:USD|NIS|ILS|EUR|GBP)\s*{_AMOUNT}", re.IGNORECASE)),
    ("PCT", re.compile(rf"{_NUM_START}{_AMOUNT}\s*%")),
    ("DATE", re.compile(rf"{_NUM_START}\d{{1,2}}[/.\-]\d{{1,2}}[/.\-]\d{{2,4}}{_NUM_END}")),
    ("DATE", re.compile(rf"{_NUM_START}\d{{4}}[/.\-]\d{{1,2}}[/.\-]\d{{1,2}}{_NUM_END}")),
    (
        "ID",
        re.compile(
            r"(?<!\w)(?:[בוהל]?(?:תיק\s*מס['׳]?\.?|מספר\s*תיק)|claim|case|policy|file)"
            r"(?:\s*(?:no\.?|number))?\s*[:#]?\s*(?=[A-Za-z0-9/\-]*\d)[A-Za-z0-9/\-]+",
            re.IGNORECASE,
        ),
    ),
    ("NUM", re.compile(rf"{_NUM_START}\d+(?:[,.]\d+)*{_NUM_END}")),
    ("NUMWORD", re.compile(rf"\b{_NUMWORD}(?:\s+ו?{_NUMWORD})*(?:\s+{_NUMWORD_SUFFIX})?(?!\w)")),
    ("NAME", re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+\b")),
    ("NAME", re.compile(rf"(?<!\w)(?:ד\"ר|עו\"ד|פרופ['׳]?)\s+{_HEB_WORD}{{2,}}(?:\s+{_HEB_WORD}{{2,}})?")),
    ("NAME", re.compile(r"(?<!\w)[א-ת]['״׳.]\s*[א-ת]['״׳.]")),
    (
        "NAME",
        re.compile(
            r"(?<!\w)(?:" + "|".join(re.escape(w) for w in _ROLE_WORDS) + r")\.?"
            rf"\s+{_HEB_WORD}{{2,12}}\s+{_HEB_WORD}{{2,12}}(?!\w)"
        ),
    ),
)


@dataclass(frozen=True)
class ProtectResult:
    protected_text: str
    placeholders: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RestoreResult:
    restored_text: str
    missing_placeholders: list[str] = field(default_factory=list)

    @property
    def intact(self) -> bool:
        return not self.missing_placeholders


class _KeyAllocator:
    """Per-call placeholder numbering that never collides with text already in the input."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._counter = 0

    def next(self, cls: str) -> str:
        while True:
            self._counter += 1
            key = f"__{cls}_{self._counter}__"
            if key not in self._source:
                return key


def protect_facts(text: str) -> ProtectResult:
    if not text:
        return ProtectResult(protected_text=text or "")

    keys = _KeyAllocator(text)
    placeholders: dict[str, str] = {}
    protected = text

    for cls, pattern in _PATTERNS:

        def _swap(m: re.Match[str], cls: str = cls) -> str:
            found = m.group(0)
            if PLACEHOLDER_RE.fullmatch(found):
                return found
            key = keys.next(cls)
            placeholders[key] = found
            return key

        protected = pattern.sub(_swap, protected)

    logger.debug("Protected %d fact token(s)", len(placeholders))
    return ProtectResult(protected_text=protected, placeholders=placeholders)


def restore_facts(text: str, placeholders: dict[str, str]) -> RestoreResult:
    text = text or ""
    if not placeholders:
        return RestoreResult(restored_text=text)

    missing = [key for key in placeholders if key not in text]
    # Single pass, so restored values are never rescanned
    restored = PLACEHOLDER_RE.sub(lambda m: placeholders.get(m.group(0), m.group(0)), text)

    if missing:
        logger.warning("Rewrite dropped %d protected fact(s): %s", len(missing), ", ".join(missing))
    return RestoreResult(restored_text=restored, missing_placeholders=missing)
