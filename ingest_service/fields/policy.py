"""Heuristic recovery of policy metadata from extracted text.

Every field is filled by a prioritised list of pattern heuristics; the first
non-empty match wins. Values are always cleaned substrings of the input,
never synthesised. All date-bearing patterns share ``DATE_FRAGMENT`` so a
date recognised in one place is recognised everywhere.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, fields

logger = logging.getLogger(__name__)

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|Aug(?:ust)?"
    r"|Sep(?:t)?(?:ember)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
DATE_FRAGMENT = (
    r"(?:\d{1,2}[./\-]\d{1,2}[./\-]\d{2,4}"
    rf"|\d{{1,2}}\s+{_MONTH}\s+\d{{2,4}}"
    rf"|{_MONTH}\s+\d{{1,2}},?\s+\d{{2,4}})"
)
_RANGE_SEP = r"\s*(?:-|to|until|through|thru)\s*"
RANGE_FRAGMENT = rf"(?:from\s+)?({DATE_FRAGMENT}){_RANGE_SEP}({DATE_FRAGMENT})"

_EXPLICIT_FROM_TO = re.compile(rf"\bfrom[:\s]+({DATE_FRAGMENT}).*?\bto[:\s]+({DATE_FRAGMENT})", re.IGNORECASE | re.DOTALL)
_GENERIC_RANGE = re.compile(rf"({DATE_FRAGMENT}){_RANGE_SEP}({DATE_FRAGMENT})", re.IGNORECASE)

POLICY_PERIOD_KEYWORDS = ("period of insurance", "policy period", "insurance period", "coverage period")
RETRO_RANGE_KEYWORDS = ("retroactive date", "retroactive coverage", "retroactive period")
RETRO_SINGLE_KEYWORDS = ("retroactive date", "retroactive coverage", "retro date")

_REF_TOKEN = r"([A-Za-z0-9\-/.]+)"


@dataclass
class PolicyFields:
    insured_name: str = ""
    market_ref: str = ""
    line_slip_no: str = ""
    certificate_ref: str = ""
    policy_period_start: str = ""
    policy_period_end: str = ""
    retro_start: str = ""
    retro_end: str = ""

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


def clean_value(value: str | None) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def normalize_source(text: str) -> str:
    return text.replace("\u00a0", " ").replace("\r", "\n").replace("–", "-").replace("—", "-").replace(
        "−", "-"
    )


class _Matcher:
    def __init__(self, text: str) -> None:
        self.text = normalize_source(text)
        self.lines = [ln.strip() for ln in re.split(r"\n+", self.text) if ln.strip()]

    def inline(self, pattern: str, flags: int = re.IGNORECASE) -> str:
        m = re.search(pattern, self.text, flags)
        return clean_value(m.group(1)) if m and m.group(1) else ""

    def line_after(self, pattern: str, flags: int = re.IGNORECASE) -> str:
        rx = re.compile(pattern, flags)
        for i, line in enumerate(self.lines):
            if rx.search(line) and i + 1 < len(self.lines):
                return clean_value(self.lines[i + 1])
        return ""

    def line_value(self, pattern: str, flags: int = re.IGNORECASE) -> str:
        rx = re.compile(pattern, flags)
        for line in self.lines:
            m = rx.search(line)
            if m and m.group(1):
                return clean_value(m.group(1))
        return ""

    def keyword_range(self, keywords: Iterable[str]) -> tuple[str, str] | None:
        alternation = "|".join(re.escape(k) for k in keywords)
        m = re.search(rf"(?:{alternation})[^\n]{{0,120}}?{RANGE_FRAGMENT}", self.text, re.IGNORECASE)
        if m:
            return clean_value(m.group(1)), clean_value(m.group(2))
        return None

    def keyword_date(self, keywords: Iterable[str]) -> str:
        alternation = "|".join(re.escape(k) for k in keywords)
        return self.inline(rf"(?:{alternation})[^\n]{{0,80}}?({DATE_FRAGMENT})")

    def explicit_from_to(self) -> tuple[str, str] | None:
        m = _EXPLICIT_FROM_TO.search(self.text)
        if m:
            return clean_value(m.group(1)), clean_value(m.group(2))
        return None

    def generic_range(self) -> tuple[str, str] | None:
        # No semantic anchor: first line carrying two dates wins
        for line in self.lines:
            m = _GENERIC_RANGE.search(line)
            if m:
                return clean_value(m.group(1)), clean_value(m.group(2))
        return None

    def snippet(self, keyword: str, radius: int = 80) -> str | None:
        idx = self.text.lower().find(keyword.lower())
        if idx == -1:
            return None
        return self.text[max(0, idx - radius) : idx + radius]


def _first(*candidates: Callable[[], str]) -> str:
    for candidate in candidates:
        value = candidate()
        if value:
            return value
    return ""


def _first_range(*candidates: Callable[[], tuple[str, str] | None]) -> tuple[str, str] | None:
    for candidate in candidates:
        value = candidate()
        if value:
            return value
    return None


def extract_policy_fields(text: str | None) -> PolicyFields:
    """Recover policy metadata from free text. Never raises; absent fields stay empty."""
    result = PolicyFields()
    if not text or not text.strip():
        return result

    m = _Matcher(text)
    if logger.isEnabledFor(logging.DEBUG):
        for label in ("unique market", "certificate reference", "retroactive"):
            logger.debug("snippet[%s]=%r", label, m.snippet(label))

    result.insured_name = _first(
        lambda: m.inline(r"\binsured(?:\s+name)?\s*[:\-]\s*(.+)"),
        lambda: m.line_after(r"^(?:the\s+)?insured(?:\s+name)?\s*:?\s*$"),
        lambda: m.inline(r"\binsured[:\s]+(.+)"),
        lambda: m.inline(r"שם\s+המבוטח\s*[:\-]?\s*(.+)", 0),
        lambda: m.inline(r"מבוטח\s*[:\-]?\s*(.+)", 0),
        lambda: m.line_after(r"^מבוטח\s*:?\s*$", 0),
    )
    if not result.insured_name:
        client = _first(
            lambda: m.inline(r"\b(?:client|policyholder)\s*[:\-]\s*(.+)"),
            lambda: m.inline(r"לקוח\s*[:\-]?\s*(.+)", 0),
        )
        result.insured_name = re.split(r"[,;]", client)[0].strip()

    result.market_ref = _first(
        lambda: m.inline(r"UNIQUE\s+MARKET\s+REFERENCE(?:\s+NUMBER)?\s*[:\-]?\s*([A-Z0-9][A-Z0-9\-/]*)"),
        lambda: m.inline(rf"\b(?:UMR|unique\s+market\s+ref(?:erence)?|market\s+ref(?:erence)?)\s*[:\-]?\s*{_REF_TOKEN}"),
        lambda: m.line_value(rf"\b(?:UMR|market\s+ref(?:erence)?)[^\w]*{_REF_TOKEN}"),
    )

    result.certificate_ref = _first(
        lambda: m.inline(r"CERTIFICATE\s+REFERENCE[:\s]+([0-9]+)"),
        lambda: m.inline(rf"\bcert(?:ificate)?\.?\s*(?:ref(?:erence)?|no\.?|number)\s*[:\-#]?\s*(?=[A-Za-z0-9\-/.]*\d){_REF_TOKEN}"),
    )

    result.line_slip_no = _first(
        lambda: m.inline(rf"\bline[\s\-]*slip\s*(?:no\b\.?|number\b|:)\s*[:\-#]?\s*(?=[A-Za-z0-9\-/.]*\d){_REF_TOKEN}"),
        lambda: m.inline(rf"\bline[\s\-]*slip(?:\s*(?:no\.?|number))?\s*[:\-]?\s*{_REF_TOKEN}"),
        lambda: m.line_value(rf"\bline[\s\-]*slip[^\w]*{_REF_TOKEN}"),
    )

    period = _first_range(
        m.explicit_from_to,
        lambda: m.keyword_range(POLICY_PERIOD_KEYWORDS),
        m.generic_range,
    )
    if period:
        result.policy_period_start, result.policy_period_end = period

    retro = m.keyword_range(RETRO_RANGE_KEYWORDS)
    if retro:
        result.retro_start, result.retro_end = retro
    else:
        result.retro_start = _first(
            lambda: m.inline(rf"retroactive[^\d\n]{{0,40}}?({DATE_FRAGMENT})"),
            lambda: m.keyword_date(RETRO_SINGLE_KEYWORDS),
        )
        if not result.retro_start:
            logger.debug("No retroactive date found in policy text")

    return result


# Fields where an external model's reading is preferred over the heuristic
_HINT_PREFERRED = frozenset(
    {"insured_name", "policy_period_start", "policy_period_end", "retro_start", "retro_end"}
)


def merge_policy_fields(hints: PolicyFields | None, heuristic: PolicyFields) -> PolicyFields:
    """Combine model-proposed fields with the heuristic result.

    Names and dates prefer the hint; reference numbers prefer the heuristic,
    whose strict patterns are more reliable than a model for identifiers.
    """
    if hints is None:
        return PolicyFields(**heuristic.as_dict())

    merged = PolicyFields()
    for f in fields(PolicyFields):
        hint = clean_value(getattr(hints, f.name))
        found = getattr(heuristic, f.name)
        if f.name in _HINT_PREFERRED:
            setattr(merged, f.name, hint or found)
        else:
            setattr(merged, f.name, found or hint)
    return merged
