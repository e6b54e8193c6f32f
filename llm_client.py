"""OpenAI GPT-based client that drafts research hypotheses from selected papers."""

from __future__ import annotations

import json
import logging
import os
from json import JSONDecodeError
from typing import Any, Sequence

from openai import OpenAI

from models import Paper

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-5.2")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.4"))
MAX_ATTEMPTS = 2

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a senior research scientist helping a colleague form a new hypothesis.
You will be given a research topic and a set of papers (title, authors, year, abstract).
Propose ONE novel, testable hypothesis grounded in those papers.
Respond ONLY with valid JSON following the schema below. No prose outside the JSON.

Required JSON schema:
{
  "hypothesis": "<one or two sentence statement>",
  "rationale": "<why the papers support it, citing them by title>",
  "predictions": ["<observable prediction>", "..."],
  "experiments": ["<experiment that could falsify it>", "..."]
}"""

_REQUIRED_KEYS: frozenset[str] = frozenset({"hypothesis", "rationale", "predictions", "experiments"})


def draft_hypothesis(papers: Sequence[Paper], topic: str) -> dict[str, Any]:
    """Ask OpenAI for a hypothesis on topic grounded in papers; return the parsed JSON."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is required")

    LOGGER.info("Drafting hypothesis with OpenAI: topic=%r papers=%s", topic, len(papers))
    client = OpenAI(api_key=api_key)
    user_prompt = build_user_prompt(papers, topic)
    last_error: Exception | None = None

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            response = client.chat.completions.create(
                model=OPENAI_MODEL,
                temperature=OPENAI_TEMPERATURE,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
            )
            content = response.choices[0].message.content
            if not content:
                raise RuntimeError("OpenAI returned an empty response")
            parsed = _parse_json_object(content)
            if not validate_hypothesis_schema(parsed):
                raise RuntimeError("OpenAI response JSON did not match required schema")
            LOGGER.info("OpenAI hypothesis draft succeeded for topic=%r", topic)
            return parsed
        except Exception as exc:
            last_error = exc
            LOGGER.warning(
                "OpenAI hypothesis draft failed for topic=%r on attempt %s/%s: %s",
                topic,
                attempt,
                MAX_ATTEMPTS,
                exc,
            )

    raise RuntimeError(f"OpenAI hypothesis draft failed for topic={topic!r}: {last_error}")


def build_user_prompt(papers: Sequence[Paper], topic: str) -> str:
    blocks = [f"Research topic: {topic}", ""]
    for index, paper in enumerate(papers, 1):
        blocks.append(
            f"[{index}] {paper.title}\n"
            f"Authors: {', '.join(paper.authors) or 'Unknown'}\n"
            f"Year: {paper.published_at.year}\n"
            f"Abstract: {paper.abstract or 'Not available.'}\n"
        )
    return "\n".join(blocks)


def hypothesis_to_markdown(draft: dict[str, Any]) -> str:
    """Format a validated draft as the markdown shown on the page."""
    lines = ["## Hypothesis", "", str(draft.get("hypothesis", "")).strip(), ""]

    rationale = str(draft.get("rationale", "")).strip()
    if rationale:
        lines += ["## Rationale", "", rationale, ""]

    for heading, key in (("Testable Predictions", "predictions"), ("Suggested Experiments", "experiments")):
        items = [str(item).strip() for item in draft.get(key) or [] if str(item).strip()]
        if items:
            lines += [f"## {heading}", ""]
            lines += [f"- {item}" for item in items]
            lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def _parse_json_object(content: str) -> dict[str, Any]:
    """Parse possibly noisy model output into a strict JSON object."""
    try:
        parsed = json.loads(content)
    except JSONDecodeError:
        parsed = _extract_first_json_object(content)

    if not isinstance(parsed, dict):
        raise RuntimeError("Expected JSON object from OpenAI response")
    return parsed


def _extract_first_json_object(content: str) -> dict[str, Any]:
    """Extract the first decodable JSON object from an arbitrary string."""
    decoder = json.JSONDecoder()
    for index, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[index:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise RuntimeError("Could not extract valid JSON object from OpenAI output")


def validate_hypothesis_schema(data: dict[str, Any]) -> bool:
    """Basic schema validation for downstream safety."""
    if not _REQUIRED_KEYS.issubset(data.keys()):
        return False
    if not isinstance(data.get("hypothesis"), str) or not data["hypothesis"].strip():
        return False
    if not isinstance(data.get("predictions"), list) or not isinstance(data.get("experiments"), list):
        return False
    return True
