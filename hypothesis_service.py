"""Generation collaborator: turns selected paper ids and a topic into a GenerationResult."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Sequence

from hypothesis_validation import validate_hypothesis, validation_to_markdown
from llm_client import draft_hypothesis, hypothesis_to_markdown
from models import GenerationRequest, GenerationResult, Paper

LOGGER = logging.getLogger(__name__)


class HypothesisGenerator:
    """Resolves paper ids against papers seen in search results, drafts, then validates.

    Instances are callable with the generation collaborator signature
    ``(paper_ids, topic) -> GenerationResult``.
    """

    def __init__(self) -> None:
        self._known: dict[str, Paper] = {}
        # Search and generation calls run on worker threads.
        self._lock = threading.Lock()

    def remember(self, papers: Iterable[Paper]) -> None:
        with self._lock:
            for paper in papers:
                self._known[paper.paper_id] = paper

    def resolve(self, paper_ids: Sequence[str]) -> list[Paper]:
        with self._lock:
            missing = [paper_id for paper_id in paper_ids if paper_id not in self._known]
            if missing:
                raise RuntimeError(f"Unknown paper ids: {', '.join(missing)}")
            return [self._known[paper_id] for paper_id in paper_ids]

    def __call__(self, paper_ids: Sequence[str], topic: str) -> GenerationResult:
        request = GenerationRequest(paper_ids=tuple(paper_ids), topic=topic.strip())
        papers = self.resolve(request.paper_ids)

        draft = draft_hypothesis(papers, request.topic)
        validation = validate_hypothesis(draft["hypothesis"], papers, request.topic)

        markdown_text = hypothesis_to_markdown(draft) + "\n" + validation_to_markdown(validation)
        LOGGER.info(
            "Generated hypothesis for topic=%r from %s papers (validation=%s)",
            request.topic,
            len(papers),
            validation["label"],
        )
        return GenerationResult(
            hypothesis=markdown_text,
            validation={**validation, "paper_ids": list(request.paper_ids), "draft": draft},
        )
