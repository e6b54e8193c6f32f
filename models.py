"""Shared typed models for the hypothesis workbench."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterator


@dataclass(frozen=True, slots=True)
class Paper:
    """Normalized paper record returned by the search collaborator."""

    paper_id: str
    title: str
    authors: tuple[str, ...]
    published_at: datetime
    abstract: str = ""
    url: str = ""

    @property
    def byline(self) -> str:
        """Caption shown under the title: ``"A, B • 2023"``."""
        return f"{', '.join(self.authors)} • {self.published_at.year}"


class SelectionSet:
    """Papers picked by the user, keyed by paper_id, in insertion order."""

    def __init__(self) -> None:
        self._papers: dict[str, Paper] = {}

    def add(self, paper: Paper) -> bool:
        if paper.paper_id in self._papers:
            return False
        self._papers[paper.paper_id] = paper
        return True

    def remove(self, paper_id: str) -> bool:
        return self._papers.pop(paper_id, None) is not None

    def paper_ids(self) -> tuple[str, ...]:
        return tuple(self._papers)

    def papers(self) -> tuple[Paper, ...]:
        return tuple(self._papers.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Paper):
            return item.paper_id in self._papers
        return item in self._papers

    def __iter__(self) -> Iterator[Paper]:
        return iter(tuple(self._papers.values()))

    def __len__(self) -> int:
        return len(self._papers)


class SearchStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    # Successful call with zero matches. Shares the error channel in the view.
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SearchState:
    query: str = ""
    status: SearchStatus = SearchStatus.IDLE
    results: tuple[Paper, ...] = ()
    error_message: str | None = None


class GenerationStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Inputs for one hypothesis generation call."""

    paper_ids: tuple[str, ...]
    topic: str

    def __post_init__(self) -> None:
        if not self.topic.strip():
            raise ValueError("topic must not be blank")
        if len(set(self.paper_ids)) != len(self.paper_ids):
            raise ValueError("paper_ids must be unique")


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Markdown hypothesis plus whatever validation metadata came back with it."""

    hypothesis: str
    validation: dict[str, Any] = field(default_factory=dict)


class AnalysisKind(str, Enum):
    SURVEY = "survey"
    GAPS = "gaps"
    TRENDS = "trends"


@dataclass(frozen=True, slots=True)
class DisplayPayload:
    """Read-only content handed to the result display by its caller."""

    title: str
    body: str
    kind: AnalysisKind = AnalysisKind.SURVEY
