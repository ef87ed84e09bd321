from __future__ import annotations

import logging
from collections.abc import Sequence

from pdf_models import TextRun

logger = logging.getLogger(__name__)


def _continue_from(runs: Sequence[TextRun], start: int, remaining: str) -> list[TextRun] | None:
    """Consume runs after *start* until *remaining* is drained, or give up."""
    consumed: list[TextRun] = []
    for run in runs[start + 1 :]:
        if not remaining:
            break
        if not run.text.strip():
            continue
        if remaining.startswith(run.text):
            consumed.append(run)
            remaining = remaining[len(run.text) :].strip()
        elif remaining in run.text:
            # last run overshoots the target (trailing punctuation, next word)
            consumed.append(run)
            remaining = ""
        else:
            return None
    return consumed if not remaining else None


def match_runs(runs: Sequence[TextRun], target: str) -> list[TextRun]:
    """Return the first contiguous run sequence that reconstructs *target*.

    A run is a valid start when the untrimmed target starts with its raw text.
    From there the remainder is stripped and each following run must either be
    a prefix of it or contain all of it. A failed continuation is discarded
    whole and scanning resumes at the next start position; there is no
    backtracking inside an attempt. Whitespace-only runs never join a span.
    Returns an empty list when nothing matches.
    """
    if not target:
        raise ValueError("search target must be a non-empty string")

    for i, run in enumerate(runs):
        if not run.text.strip():
            continue
        if not target.startswith(run.text):
            continue

        remaining = target[len(run.text) :].strip()
        rest = _continue_from(runs, i, remaining)
        if rest is None:
            logger.debug("Start at run %d (%r) did not complete", i, run.text)
            continue

        span = [run, *rest]
        logger.debug("Matched %d runs starting at run %d", len(span), i)
        return span

    return []
