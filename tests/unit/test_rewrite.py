"""Unit tests for the fact-preserving rewrite flow."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

from ingest_service.facts.rewrite import RewriteMode, rewrite_with_fact_protection

TEXT = "paid 12,500 ₪ on 01/02/2020 for 30% of damages in case 1234/56"


class TestRewrite:
    def test_rewriter_only_sees_placeholders(self) -> None:
        seen: list[str] = []

        def rewriter(s: str) -> str:
            seen.append(s)
            return s.replace("paid", "transferred")

        outcome = rewrite_with_fact_protection(TEXT, rewriter, RewriteMode.REWRITE)

        assert outcome.accepted is True
        assert outcome.text == TEXT.replace("paid", "transferred")
        assert "12,500" not in seen[0]
        assert "01/02/2020" not in seen[0]

    def test_dropped_fact_rejects_rewrite(self) -> None:
        def rewriter(s: str) -> str:
            return re.sub(r"__MONEY_\d+__", "a sum", s)

        outcome = rewrite_with_fact_protection(TEXT, rewriter)

        assert outcome.accepted is False
        assert outcome.text == TEXT
        assert len(outcome.missing_placeholders) == 1
        assert outcome.missing_placeholders[0].startswith("__MONEY_")

    def test_safe_polish_passes_text_through(self) -> None:
        rewriter = MagicMock(return_value="polished")
        outcome = rewrite_with_fact_protection(TEXT, rewriter, RewriteMode.SAFE_POLISH)

        rewriter.assert_called_once_with(TEXT)
        assert outcome.text == "polished"
        assert outcome.accepted is True

    def test_blank_input_short_circuits(self) -> None:
        rewriter = MagicMock()
        outcome = rewrite_with_fact_protection("  ", rewriter)

        rewriter.assert_not_called()
        assert outcome.text == "  "
        assert outcome.accepted is True
