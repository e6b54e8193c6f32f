from pathlib import Path
from unittest.mock import MagicMock

import pytest

from export_sink import DirectoryDownloadSink
from models import AnalysisKind, DisplayPayload
from result_display import (
    MARKDOWN_MIME_TYPE,
    ResultDisplay,
    export_filename,
    heading_for,
    icon_for,
    render_markdown,
    slugify,
)


@pytest.mark.parametrize(
    ("kind", "heading", "icon"),
    [
        (AnalysisKind.SURVEY, "Literature Survey", "book"),
        (AnalysisKind.GAPS, "Research Gaps Analysis", "search"),
        (AnalysisKind.TRENDS, "Research Trends Analysis", "chart"),
    ],
)
def test_heading_and_icon_follow_kind(kind: AnalysisKind, heading: str, icon: str) -> None:
    assert heading_for(kind) == heading
    assert icon_for(kind) == icon


def test_slugify_collapses_whitespace_runs() -> None:
    assert slugify("Deep  Learning\tEthics") == "deep-learning-ethics"
    assert slugify("Graph Neural\n\nNetworks") == "graph-neural-networks"


def test_export_writes_body_under_derived_filename() -> None:
    payload = DisplayPayload(title="Deep Learning Ethics", body="# Hi", kind=AnalysisKind.GAPS)
    sink = MagicMock()

    filename = ResultDisplay(payload, on_close=MagicMock()).export(sink)

    assert filename == "gaps-deep-learning-ethics.md"
    sink.assert_called_once()
    data, mime_type, sink_filename = sink.call_args.args
    assert mime_type == MARKDOWN_MIME_TYPE
    assert sink_filename == "gaps-deep-learning-ethics.md"
    assert data.decode("utf-8") == "# Hi"


def test_slash_in_title_stays_one_file(tmp_path: Path) -> None:
    assert slugify("LLMs/Agents Survey") == "llms-agents-survey"
    sink = DirectoryDownloadSink(tmp_path)
    payload = DisplayPayload(title="LLMs/Agents Survey", body="# Gaps", kind=AnalysisKind.GAPS)

    filename = ResultDisplay(payload, on_close=MagicMock()).export(sink)

    assert filename == "gaps-llms-agents-survey.md"
    assert sink.saved == [tmp_path / "gaps-llms-agents-survey.md"]
    assert sink.saved[0].read_text(encoding="utf-8") == "# Gaps"


def test_export_preserves_non_ascii_body() -> None:
    body = "# Übersicht\n\n- naïve café ☕\n"
    sink = MagicMock()

    ResultDisplay(DisplayPayload(title="Survey", body=body), on_close=MagicMock()).export(sink)

    assert sink.call_args.args[0].decode("utf-8") == body
    assert sink.call_args.args[2] == "survey-survey.md"


def test_export_filename_uses_kind_value() -> None:
    payload = DisplayPayload(title="Vision Transformers", body="", kind=AnalysisKind.TRENDS)
    assert export_filename(payload) == "trends-vision-transformers.md"


def test_close_delegates_to_callback() -> None:
    on_close = MagicMock()
    display = ResultDisplay(DisplayPayload(title="T", body="b"), on_close=on_close)

    display.close()
    display.close()

    assert on_close.call_count == 2


def test_render_visible_contains_heading_and_markdown() -> None:
    payload = DisplayPayload(title="Deep Learning Ethics", body="# Gaps\n\n- **Bias** audits", kind=AnalysisKind.GAPS)

    page = ResultDisplay(payload, on_close=MagicMock()).render(visible=True)

    assert " hidden" not in page
    assert "Research Gaps Analysis" in page
    assert "icon-search" in page
    assert "<h1>Gaps</h1>" in page
    assert "<strong>Bias</strong>" in page
    assert 'data-action="export"' in page
    assert 'data-action="close"' in page
    assert "overflow-y: auto" in page


def test_render_hidden_marks_overlay_hidden() -> None:
    page = ResultDisplay(DisplayPayload(title="T", body="x"), on_close=MagicMock()).render(visible=False)
    assert 'aria-labelledby="result-display-title" hidden>' in page


def test_render_empty_body_does_not_fail() -> None:
    page = ResultDisplay(DisplayPayload(title="T", body=""), on_close=MagicMock()).render(visible=True)
    assert '<div class="prose"></div>' in page


def test_render_markdown_tolerates_empty_and_malformed_input() -> None:
    assert render_markdown("") == ""
    assert render_markdown(None) == ""
    assert isinstance(render_markdown("**unclosed [link]( `tick"), str)
