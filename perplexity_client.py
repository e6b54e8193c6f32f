"""Perplexity API client for literature survey, gap and trend analysis."""

from __future__ import annotations

import logging
import os
from typing import Sequence

import requests

from models import AnalysisKind, DisplayPayload, Paper

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"
PERPLEXITY_MODEL = os.getenv("PERPLEXITY_MODEL", "sonar-pro")
PERPLEXITY_TEMPERATURE = float(os.getenv("PERPLEXITY_TEMPERATURE", "0.2"))
REQUEST_TIMEOUT_SECONDS = 90
MAX_ATTEMPTS = 2

LOGGER = logging.getLogger(__name__)

_BASE_PROMPT = (
    "You are a research analyst writing for a scientist who is about to start "
    "a project. You will be given a research topic and a list of papers. "
    "Respond in well-structured GitHub-flavored markdown with headings and "
    "bullet lists. Cite papers by title. Do not wrap the answer in code fences."
)

SYSTEM_PROMPTS: dict[AnalysisKind, str] = {
    AnalysisKind.SURVEY: (
        f"{_BASE_PROMPT}\nWrite a literature survey: background, main approaches, "
        "how the papers relate to each other, and open problems."
    ),
    AnalysisKind.GAPS: (
        f"{_BASE_PROMPT}\nIdentify research gaps: questions the papers leave "
        "unanswered, weak evaluations, missing datasets or populations, and "
        "concrete directions that would close each gap."
    ),
    AnalysisKind.TRENDS: (
        f"{_BASE_PROMPT}\nDescribe research trends: how methods and results have "
        "shifted over time, which directions are accelerating, and what is "
        "likely to come next."
    ),
}


def analyze_literature(papers: Sequence[Paper], topic: str, kind: AnalysisKind) -> DisplayPayload:
    """Run one literature analysis with Perplexity and wrap it for the result display."""
    api_key = os.getenv("PERPLEXITY_API_KEY")
    if not api_key:
        raise RuntimeError("PERPLEXITY_API_KEY environment variable is required")
    if not papers:
        raise ValueError("at least one paper is required for a literature analysis")

    LOGGER.info("Running %s analysis with Perplexity: topic=%r papers=%s", kind.value, topic, len(papers))
    last_error: Exception | None = None

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            content = _call_perplexity(api_key=api_key, papers=papers, topic=topic, kind=kind)
            body = _strip_code_fence(content)
            if not body:
                raise RuntimeError("Perplexity returned an empty analysis")
            LOGGER.info("Perplexity %s analysis succeeded for topic=%r", kind.value, topic)
            return DisplayPayload(title=topic, body=body, kind=kind)
        except Exception as exc:  # broad to preserve graceful retry path
            last_error = exc
            LOGGER.warning(
                "Perplexity %s analysis failed for topic=%r on attempt %s/%s: %s",
                kind.value,
                topic,
                attempt,
                MAX_ATTEMPTS,
                exc,
            )

    raise RuntimeError(f"Perplexity {kind.value} analysis failed for topic={topic!r}: {last_error}")


def _call_perplexity(api_key: str, papers: Sequence[Paper], topic: str, kind: AnalysisKind) -> str:
    paper_lines = "\n".join(
        f"- {paper.title} ({', '.join(paper.authors) or 'Unknown'}, {paper.published_at.year})"
        f"{': ' + paper.abstract if paper.abstract else ''}"
        for paper in papers
    )
    user_prompt = f"Research topic: {topic}\n\nPapers:\n{paper_lines}\n"

    payload = {
        "model": PERPLEXITY_MODEL,
        "temperature": PERPLEXITY_TEMPERATURE,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPTS[kind]},
            {"role": "user", "content": user_prompt},
        ],
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }

    response = requests.post(
        PERPLEXITY_API_URL,
        headers=headers,
        json=payload,
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    body = response.json()

    try:
        return body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError(f"Unexpected Perplexity response shape: {body}") from exc


def _strip_code_fence(content: str) -> str:
    """Drop a ```markdown fence the model sometimes wraps the whole answer in."""
    text = (content or "").strip()
    if text.startswith("```") and text.endswith("```") and text.count("\n") >= 1:
        text = text.split("\n", 1)[1].rsplit("```", 1)[0]
    return text.strip()
