"""Search -> select -> generate workflow behind the hypothesis page.

All state lives on ``HypothesisWorkflow``. Collaborators are plain blocking
callables; they run on worker threads via ``asyncio.to_thread`` so the event
loop keeps handling input while a call is pending.

Every outbound call gets a request token. A completion whose token is no
longer the latest for its action is dropped, so a slow early search can never
overwrite a newer one. After ``close()`` nothing writes state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from models import (
    GenerationResult,
    GenerationStatus,
    Paper,
    SearchState,
    SearchStatus,
    SelectionSet,
)

SEARCH_FAILED_MESSAGE = "An error occurred while searching. Please try again."
NO_RESULTS_MESSAGE = "No papers found matching your query. Try different keywords."
GENERATION_INPUT_MESSAGE = "Please select at least one paper and enter a research topic."
GENERATION_FAILED_MESSAGE = "Failed to generate hypothesis. Please try again."

# Gives the page time to lay out results before the selection region is scrolled into view.
RESULTS_READY_DELAY_SECONDS = 0.1

LOGGER = logging.getLogger(__name__)

SearchFn = Callable[[str], Sequence[Paper]]
GenerateFn = Callable[[Sequence[str], str], GenerationResult]


@dataclass(frozen=True, slots=True)
class ResultRow:
    """A search result and whether its add control is disabled."""

    paper: Paper
    selected: bool


class HypothesisWorkflow:
    def __init__(
        self,
        search_fn: SearchFn,
        generate_fn: GenerateFn,
        on_results_ready: Callable[[], None] | None = None,
    ) -> None:
        self._search_fn = search_fn
        self._generate_fn = generate_fn
        self._on_results_ready = on_results_ready

        self.search = SearchState()
        self.selection = SelectionSet()
        self.topic = ""
        self.generation_status = GenerationStatus.IDLE
        self.result: GenerationResult | None = None
        self.error: str | None = None

        self._search_token = 0
        self._generation_token = 0
        self._results_ready_handle: asyncio.TimerHandle | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @property
    def is_searching(self) -> bool:
        return self.search.status is SearchStatus.IN_FLIGHT

    async def submit_search(self, query: str) -> None:
        if self._closed or not query.strip():
            return

        self._search_token += 1
        token = self._search_token
        self._cancel_results_ready()
        self.search = SearchState(query=query, status=SearchStatus.IN_FLIGHT)
        LOGGER.info("Search #%s started: query=%r", token, query)

        try:
            papers = await asyncio.to_thread(self._search_fn, query)
        except Exception as exc:  # any collaborator fault maps to the fixed message
            if not self._is_current_search(token):
                return
            LOGGER.warning("Search #%s failed: query=%r: %s", token, query, exc)
            self.search = SearchState(
                query=query,
                status=SearchStatus.FAILED,
                error_message=SEARCH_FAILED_MESSAGE,
            )
            return

        if not self._is_current_search(token):
            return

        if not papers:
            LOGGER.info("Search #%s returned no papers: query=%r", token, query)
            self.search = SearchState(
                query=query,
                status=SearchStatus.EMPTY,
                error_message=NO_RESULTS_MESSAGE,
            )
            return

        self.search = SearchState(query=query, status=SearchStatus.SUCCEEDED, results=tuple(papers))
        LOGGER.info("Search #%s succeeded: query=%r results=%s", token, query, len(papers))
        self._schedule_results_ready()

    def result_rows(self) -> list[ResultRow]:
        return [ResultRow(paper=paper, selected=paper in self.selection) for paper in self.search.results]

    def _is_current_search(self, token: int) -> bool:
        if self._closed:
            LOGGER.debug("Search #%s completed after close; ignoring", token)
            return False
        if token != self._search_token:
            LOGGER.info("Search #%s superseded by #%s; discarding response", token, self._search_token)
            return False
        return True

    def _schedule_results_ready(self) -> None:
        if self._on_results_ready is None:
            return
        self._cancel_results_ready()
        loop = asyncio.get_running_loop()
        self._results_ready_handle = loop.call_later(RESULTS_READY_DELAY_SECONDS, self._fire_results_ready)

    def _cancel_results_ready(self) -> None:
        if self._results_ready_handle is not None:
            self._results_ready_handle.cancel()
            self._results_ready_handle = None

    def _fire_results_ready(self) -> None:
        self._results_ready_handle = None
        if self._closed or self._on_results_ready is None:
            return
        self._on_results_ready()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def add_paper(self, paper: Paper) -> None:
        if self.selection.add(paper):
            LOGGER.debug("Selected paper_id=%s", paper.paper_id)

    def remove_paper(self, paper_id: str) -> None:
        if self.selection.remove(paper_id):
            LOGGER.debug("Deselected paper_id=%s", paper_id)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    @property
    def is_generating(self) -> bool:
        return self.generation_status is GenerationStatus.GENERATING

    @property
    def can_generate(self) -> bool:
        return bool(self.selection) and bool(self.topic.strip()) and not self.is_generating

    def set_topic(self, topic: str) -> None:
        self.topic = topic

    async def generate(self, topic: str | None = None) -> None:
        """Generate a hypothesis from the current selection.

        ``topic`` updates the topic field first when given. Blank topic or an
        empty selection sets the input message and makes no call.
        """
        if topic is not None:
            self.set_topic(topic)
        if self._closed:
            return
        if self.is_generating:
            LOGGER.debug("Generate ignored: a generation is already in flight")
            return
        if not self.selection or not self.topic.strip():
            self.error = GENERATION_INPUT_MESSAGE
            return

        self._generation_token += 1
        token = self._generation_token
        paper_ids = list(self.selection.paper_ids())
        request_topic = self.topic.strip()

        self.generation_status = GenerationStatus.GENERATING
        self.error = None
        self.result = None
        LOGGER.info("Generation #%s started: topic=%r papers=%s", token, request_topic, len(paper_ids))

        try:
            result = await asyncio.to_thread(self._generate_fn, paper_ids, request_topic)
        except Exception as exc:  # any collaborator fault maps to the fixed message
            if not self._is_current_generation(token):
                return
            LOGGER.warning("Generation #%s failed: topic=%r: %s", token, request_topic, exc)
            self.error = GENERATION_FAILED_MESSAGE
            self.generation_status = GenerationStatus.IDLE
            return

        if not self._is_current_generation(token):
            return

        self.result = result
        self.generation_status = GenerationStatus.IDLE
        LOGGER.info("Generation #%s succeeded: topic=%r", token, request_topic)

    def _is_current_generation(self, token: int) -> bool:
        if self._closed:
            LOGGER.debug("Generation #%s completed after close; ignoring", token)
            return False
        if token != self._generation_token:
            LOGGER.info("Generation #%s superseded by #%s; discarding response", token, self._generation_token)
            return False
        return True

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Detach the workflow from its view; pending completions become no-ops."""
        self._closed = True
        self._cancel_results_ready()
