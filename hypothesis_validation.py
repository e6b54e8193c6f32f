"""Claude review of a drafted hypothesis against the papers it was built from."""

from __future__ import annotations

import json
import logging
from json import JSONDecodeError
from typing import Any, Sequence

from models import Paper

LOGGER = logging.getLogger(__name__)

MAX_ATTEMPTS = 2

_PLACEHOLDER_VALIDATION: dict[str, Any] = {
    "novelty": None,
    "testability": None,
    "evidence_support": None,
    "label": "unvalidated",
    "critique": "Claude API not configured",
}

_VALID_LABELS: frozenset[str] = frozenset({"supported", "speculative", "unsupported", "unvalidated"})

_REQUIRED_KEYS: frozenset[str] = frozenset({
    "novelty",
    "testability",
    "evidence_support",
    "label",
    "critique",
})

_REVIEWER_SYSTEM = (
    "You are a rigorous peer reviewer. You will be given a research topic, the "
    "papers a colleague selected, and the hypothesis they drafted from them. "
    "Judge whether the papers actually support it. Reply ONLY with valid JSON:\n"
    "{\n"
    '  "novelty": <int 1-5>,\n'
    '  "testability": <int 1-5>,\n'
    '  "evidence_support": <int 1-5>,\n'
    '  "label": "supported|speculative|unsupported",\n'
    '  "critique": "<2-4 sentences>"\n'
    "}"
)

_CRITIQUE_MAX_LEN = 800


def _truncate(text: str, max_len: int = _CRITIQUE_MAX_LEN) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 1] + "…"


def normalize_validation(raw: dict[str, Any]) -> dict[str, Any]:
    """Guarantee a fully-populated validation dict.

    Scores are coerced to int in 1-5 or None. Unknown labels become
    "unvalidated". Safe on both parsed replies and the placeholder.
    """

    def _coerce_score(val: Any) -> int | None:
        try:
            score = int(val)
        except (TypeError, ValueError):
            return None
        return score if 1 <= score <= 5 else None

    label = str(raw.get("label") or "unvalidated").strip().lower()
    critique = raw.get("critique")

    return {
        "novelty": _coerce_score(raw.get("novelty")),
        "testability": _coerce_score(raw.get("testability")),
        "evidence_support": _coerce_score(raw.get("evidence_support")),
        "label": label if label in _VALID_LABELS else "unvalidated",
        "critique": _truncate(critique.strip() if isinstance(critique, str) else ""),
    }


def validate_hypothesis(hypothesis: str, papers: Sequence[Paper], topic: str) -> dict[str, Any]:
    """Have Claude review the hypothesis and return a normalized validation dict.

    Never raises: without ANTHROPIC_API_KEY, or after every attempt fails, the
    placeholder is returned so a drafted hypothesis is still shown.
    """
    from anthropic_client import claude_chat, claude_configured  # noqa: PLC0415

    if not claude_configured():
        LOGGER.warning("Hypothesis validation skipped: no ANTHROPIC_API_KEY configured.")
        return normalize_validation(dict(_PLACEHOLDER_VALIDATION))

    context = _review_context(hypothesis, papers, topic)
    last_error: Exception | None = None

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            raw = claude_chat(_REVIEWER_SYSTEM, context, max_tokens=512)
            result = normalize_validation(_parse_review(raw))
            LOGGER.info(
                "Hypothesis validation done for topic=%r: label=%s support=%s",
                topic,
                result["label"],
                result["evidence_support"],
            )
            return result
        except Exception as exc:
            last_error = exc
            LOGGER.warning(
                "Hypothesis validation attempt %s/%s failed for topic=%r: %s",
                attempt,
                MAX_ATTEMPTS,
                topic,
                exc,
            )

    LOGGER.error("Hypothesis validation ultimately failed for topic=%r: %s", topic, last_error)
    return normalize_validation(dict(_PLACEHOLDER_VALIDATION))


def validation_to_markdown(validation: dict[str, Any]) -> str:
    def _score(key: str) -> str:
        value = validation.get(key)
        return "n/a" if value is None else f"{value}/5"

    lines = [
        "## Validation",
        "",
        f"**Verdict:** {validation.get('label', 'unvalidated')}",
        "",
        f"- Novelty: {_score('novelty')}",
        f"- Testability: {_score('testability')}",
        f"- Evidence support: {_score('evidence_support')}",
    ]
    critique = validation.get("critique")
    if critique:
        lines += ["", critique]
    return "\n".join(lines) + "\n"


def _review_context(hypothesis: str, papers: Sequence[Paper], topic: str) -> str:
    titles = "\n".join(f"- {paper.title} ({paper.published_at.year}): {paper.abstract or 'No abstract.'}" for paper in papers)
    return (
        f"Research topic: {topic}\n\n"
        f"Selected papers:\n{titles}\n\n"
        f"Drafted hypothesis:\n{hypothesis}"
    )


def _parse_review(content: str) -> dict[str, Any]:
    """Parse the reviewer's JSON reply; falls back to scanning for the first { block."""
    try:
        parsed = json.loads(content)
    except JSONDecodeError:
        parsed = _extract_first_json_object(content)

    if not isinstance(parsed, dict):
        raise RuntimeError("Expected JSON object from Claude review")

    missing = _REQUIRED_KEYS - parsed.keys()
    if missing:
        raise RuntimeError(f"Claude review missing required keys: {missing}")
    return parsed


def _extract_first_json_object(content: str) -> dict[str, Any]:
    decoder = json.JSONDecoder()
    for i, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[i:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise RuntimeError("Could not extract JSON object from Claude output")
