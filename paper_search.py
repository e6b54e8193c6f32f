"""Paper corpus search backed by the Hugging Face papers search API."""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from typing import Any

import requests

from models import Paper

# Public endpoint behind the huggingface.co/papers search box. Returns the
# same item shape as the Daily Papers API, authors included.
PAPER_SEARCH_API_URL = os.getenv("PAPER_SEARCH_API_URL", "https://huggingface.co/api/papers/search")
REQUEST_TIMEOUT_SECONDS = 20
_DEFAULT_LIMIT = 20

LOGGER = logging.getLogger(__name__)


def search_papers(query: str, limit: int | None = None) -> list[Paper]:
    """Search the paper corpus and return normalized results in API order.

    An empty list is a valid answer. Transport and server faults raise
    RuntimeError so callers can tell the two apart.

    Args:
        query: Free-text search terms.
        limit: Max number of papers to return. Reads PAPER_SEARCH_LIMIT env var
            if not supplied; defaults to 20.
    """
    if limit is None:
        limit = int(os.environ.get("PAPER_SEARCH_LIMIT", _DEFAULT_LIMIT))

    try:
        response = requests.get(
            PAPER_SEARCH_API_URL,
            params={"q": query},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise RuntimeError(f"Paper search failed for query={query!r}: {exc}") from exc

    papers: list[Paper] = []
    seen: set[str] = set()
    for paper in _parse_papers_payload(payload):
        if paper.paper_id in seen:
            continue
        seen.add(paper.paper_id)
        papers.append(paper)

    raw_count = len(papers)
    papers = papers[:limit]

    LOGGER.info(
        "Paper search: query=%r raw_count=%s limit=%s returned=%s",
        query,
        raw_count,
        limit,
        len(papers),
    )
    return papers


def _parse_papers_payload(payload: Any) -> list[Paper]:
    """Parse API payload into normalized Paper objects."""
    if not isinstance(payload, list):
        raise RuntimeError("Unexpected paper search payload shape: expected a list")

    parsed: list[Paper] = []
    for item in payload:
        if not isinstance(item, dict):
            continue

        paper_block = item.get("paper") if isinstance(item.get("paper"), dict) else {}
        paper_id = _as_str(paper_block.get("id")) or _as_str(item.get("id"))
        title = _as_str(paper_block.get("title")) or _as_str(item.get("title"))
        summary = _as_str(paper_block.get("summary")) or _as_str(item.get("summary"))
        published_raw = _as_str(paper_block.get("publishedAt")) or _as_str(item.get("publishedAt"))
        authors = _parse_authors(paper_block.get("authors") or item.get("authors"))

        if not paper_id or not title:
            continue

        parsed.append(
            Paper(
                paper_id=paper_id,
                title=title,
                authors=authors,
                published_at=_parse_datetime_or_now(published_raw),
                abstract=summary or "",
                url=f"https://huggingface.co/papers/{paper_id}",
            )
        )

    return parsed


def _parse_authors(raw: Any) -> tuple[str, ...]:
    # Authors come back either as plain strings or as {"name": ...} objects.
    if not isinstance(raw, list):
        return ()
    names: list[str] = []
    for entry in raw:
        name = _as_str(entry.get("name")) if isinstance(entry, dict) else _as_str(entry)
        if name:
            names.append(name)
    return tuple(names)


def _parse_datetime_or_now(raw: str | None) -> datetime:
    if not raw:
        return datetime.now(UTC)

    value = raw.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(UTC)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None
