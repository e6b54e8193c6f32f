"""Literature analysis viewer: markdown rendering plus export to a .md file."""

from __future__ import annotations

import html
import io
import logging
import re
from typing import Callable

import markdown

from models import AnalysisKind, DisplayPayload

LOGGER = logging.getLogger(__name__)

MARKDOWN_MIME_TYPE = "text/markdown"

DownloadSink = Callable[[bytes, str, str], object]

_HEADINGS: dict[AnalysisKind, str] = {
    AnalysisKind.SURVEY: "Literature Survey",
    AnalysisKind.GAPS: "Research Gaps Analysis",
    AnalysisKind.TRENDS: "Research Trends Analysis",
}

_ICONS: dict[AnalysisKind, str] = {
    AnalysisKind.SURVEY: "book",
    AnalysisKind.GAPS: "search",
    AnalysisKind.TRENDS: "chart",
}

_WHITESPACE_RUN = re.compile(r"\s+")
_PATH_SEPARATORS = re.compile(r"[\\/]")


def render_markdown(text: str | None) -> str:
    """Render markdown to an HTML fragment. Empty input gives an empty string."""
    if not text:
        return ""
    return markdown.markdown(text, extensions=["extra", "sane_lists"])


def heading_for(kind: AnalysisKind) -> str:
    return _HEADINGS[kind]


def icon_for(kind: AnalysisKind) -> str:
    return _ICONS[kind]


def slugify(title: str) -> str:
    # Path separators would split the download name.
    return _PATH_SEPARATORS.sub("-", _WHITESPACE_RUN.sub("-", title.lower()))


def export_filename(payload: DisplayPayload) -> str:
    return f"{payload.kind.value}-{slugify(payload.title)}.md"


class ResultDisplay:
    """Dismissible overlay for one DisplayPayload.

    Visibility belongs to the caller: ``render`` takes it as an argument and
    ``close`` only forwards to ``on_close``.
    """

    def __init__(self, payload: DisplayPayload, on_close: Callable[[], None]) -> None:
        self.payload = payload
        self._on_close = on_close

    @property
    def heading(self) -> str:
        return heading_for(self.payload.kind)

    @property
    def icon(self) -> str:
        return icon_for(self.payload.kind)

    def render(self, visible: bool) -> str:
        hidden = "" if visible else " hidden"
        return (
            f'<div class="result-display" role="dialog" aria-modal="true" '
            f'aria-labelledby="result-display-title"{hidden}>\n'
            f'  <div class="result-display__backdrop" data-action="close"></div>\n'
            f'  <div class="result-display__panel">\n'
            f'    <header>\n'
            f'      <span class="icon icon-{self.icon}"></span>\n'
            f'      <h2 id="result-display-title">{html.escape(self.heading)}</h2>\n'
            f'      <button type="button" data-action="export">Export</button>\n'
            f'      <button type="button" data-action="close" aria-label="Close">&times;</button>\n'
            f'    </header>\n'
            f'    <div class="result-display__body" style="max-height: 70vh; overflow-y: auto;">\n'
            f'      <div class="prose">{render_markdown(self.payload.body)}</div>\n'
            f'    </div>\n'
            f'  </div>\n'
            f'</div>\n'
        )

    def export(self, sink: DownloadSink) -> str:
        """Hand the body to sink as a markdown file and return the filename used."""
        filename = export_filename(self.payload)
        with io.BytesIO(self.payload.body.encode("utf-8")) as blob:
            sink(blob.getvalue(), MARKDOWN_MIME_TYPE, filename)
        LOGGER.info("Exported %s analysis as %s", self.payload.kind.value, filename)
        return filename

    def close(self) -> None:
        self._on_close()
