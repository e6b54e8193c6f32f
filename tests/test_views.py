import asyncio
from datetime import UTC, datetime
from unittest.mock import MagicMock

from models import AnalysisKind, DisplayPayload, GenerationResult, Paper
from result_display import ResultDisplay
from views import (
    EMPTY_SELECTION_TEXT,
    render_generation_controls,
    render_search_results,
    render_selected_papers,
    render_workflow_page,
)
from workflow import GENERATION_INPUT_MESSAGE, NO_RESULTS_MESSAGE, HypothesisWorkflow

PAPER_A = Paper(
    paper_id="a",
    title="Attention <Everywhere>",
    authors=("Ada Lovelace", "Alan Turing"),
    published_at=datetime(2021, 5, 1, tzinfo=UTC),
)
PAPER_B = Paper(
    paper_id="b",
    title="Sparse Mixtures",
    authors=("Grace Hopper",),
    published_at=datetime(2022, 5, 1, tzinfo=UTC),
)


def _workflow(results=None, result: GenerationResult | None = None) -> HypothesisWorkflow:
    return HypothesisWorkflow(
        search_fn=MagicMock(return_value=[PAPER_A, PAPER_B] if results is None else results),
        generate_fn=MagicMock(return_value=result),
    )


def test_empty_selection_placeholder() -> None:
    html_text = render_selected_papers(_workflow())
    assert "Selected Papers (0)" in html_text
    assert EMPTY_SELECTION_TEXT in html_text


def test_selected_papers_show_escaped_title_and_byline() -> None:
    wf = _workflow()
    wf.add_paper(PAPER_A)

    html_text = render_selected_papers(wf)

    assert "Selected Papers (1)" in html_text
    assert "Attention &lt;Everywhere&gt;" in html_text
    assert "Ada Lovelace, Alan Turing • 2021" in html_text
    assert 'data-action="remove-paper"' in html_text


def test_search_results_disable_selected_papers() -> None:
    wf = _workflow()
    asyncio.run(wf.submit_search("attention"))
    wf.add_paper(PAPER_A)

    html_text = render_search_results(wf)

    assert html_text.count('data-action="add-paper"') == 2
    assert html_text.count('aria-label="Add paper" disabled>') == 1
    row_a = html_text.split('data-paper-id="a"')[1].split("</li>")[0]
    assert "disabled" in row_a


def test_no_results_message_rendered_as_alert() -> None:
    wf = _workflow(results=[])
    asyncio.run(wf.submit_search("nothing"))

    html_text = render_search_results(wf)

    assert NO_RESULTS_MESSAGE in html_text
    assert "Search Results" not in html_text


def test_generate_button_state_and_validation_message() -> None:
    wf = _workflow()
    assert 'data-action="generate" disabled>' in render_generation_controls(wf)

    asyncio.run(wf.generate("topic"))
    html_text = render_generation_controls(wf)
    assert GENERATION_INPUT_MESSAGE in html_text

    wf.add_paper(PAPER_B)
    assert 'data-action="generate">' in render_generation_controls(wf)


def test_full_page_renders_hypothesis_markdown() -> None:
    wf = _workflow(result=GenerationResult(hypothesis="## Hypothesis\n\n**Bold** claim"))
    wf.add_paper(PAPER_B)
    asyncio.run(wf.generate("Mixtures"))

    page = render_workflow_page(wf)

    assert page.startswith("<!DOCTYPE html>")
    assert "Hypothesis Generation &amp; Validation" in page
    assert "3. Generated Hypothesis &amp; Validation" in page
    assert "<strong>Bold</strong> claim" in page
    assert 'value="Mixtures"' in page


def test_full_page_without_result_omits_result_section() -> None:
    page = render_workflow_page(_workflow())
    assert "hypothesis-result" not in page
    assert "1. Select Papers" in page


def test_paper_with_url_links_title() -> None:
    wf = _workflow()
    wf.add_paper(Paper(
        paper_id="c",
        title="Linked & Loaded",
        authors=("Ada Lovelace",),
        published_at=datetime(2023, 5, 1, tzinfo=UTC),
        url="https://huggingface.co/papers/2301.00001",
    ))

    html_text = render_selected_papers(wf)

    assert (
        '<a href="https://huggingface.co/papers/2301.00001" target="_blank" rel="noopener">'
        "Linked &amp; Loaded</a>"
    ) in html_text


def test_paper_without_url_has_plain_title() -> None:
    wf = _workflow()
    wf.add_paper(PAPER_B)
    assert "<a href" not in render_selected_papers(wf)


def test_full_page_includes_analysis_overlay() -> None:
    display = ResultDisplay(
        DisplayPayload(title="Mixtures", body="- first gap", kind=AnalysisKind.GAPS),
        on_close=MagicMock(),
    )

    page = render_workflow_page(_workflow(), analysis=display)
    hidden_page = render_workflow_page(_workflow(), analysis=display, analysis_visible=False)

    assert 'class="result-display"' in page
    assert "Research Gaps Analysis" in page
    assert "<li>first gap</li>" in page
    assert 'aria-labelledby="result-display-title" hidden>' in hidden_page
    assert "result-display" not in render_workflow_page(_workflow())
