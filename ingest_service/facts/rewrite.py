from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from ingest_service.facts.protection import protect_facts, restore_facts

logger = logging.getLogger(__name__)

Rewriter = Callable[[str], str]


class RewriteMode(StrEnum):
    SAFE_POLISH = "SAFE_POLISH"
    REWRITE = "REWRITE"


@dataclass(frozen=True)
class RewriteOutcome:
    text: str
    accepted: bool
    missing_placeholders: list[str] = field(default_factory=list)


def rewrite_with_fact_protection(
    text: str,
    rewriter: Rewriter,
    mode: RewriteMode = RewriteMode.REWRITE,
) -> RewriteOutcome:
    """Run ``rewriter`` over ``text`` without letting it alter factual tokens.

    In REWRITE mode the rewriter only ever sees placeholder text. If any
    placeholder is missing from its output the rewrite is rejected and the
    original text is returned unchanged.
    """
    if not text or not text.strip():
        return RewriteOutcome(text=text, accepted=True)

    if mode is RewriteMode.SAFE_POLISH:
        return RewriteOutcome(text=rewriter(text), accepted=True)

    protected = protect_facts(text)
    rewritten = rewriter(protected.protected_text)
    restored = restore_facts(rewritten, protected.placeholders)

    if not restored.intact:
        logger.warning(
            "Rejected rewrite: %d of %d placeholder(s) missing",
            len(restored.missing_placeholders),
            len(protected.placeholders),
        )
        return RewriteOutcome(text=text, accepted=False, missing_placeholders=restored.missing_placeholders)
    return RewriteOutcome(text=restored.restored_text, accepted=True)
