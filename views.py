"""HTML rendering of the hypothesis workflow page."""

from __future__ import annotations

import html

from models import Paper
from result_display import ResultDisplay, render_markdown
from workflow import HypothesisWorkflow

PAGE_TITLE = "Hypothesis Generation & Validation"
TOPIC_PLACEHOLDER = "e.g., Multimodal Learning in Healthcare"
SEARCH_PLACEHOLDER = "Search for papers for hypothesis generation..."
EMPTY_SELECTION_TEXT = "No papers selected. Search and add papers below."


def _paper_summary(paper: Paper) -> str:
    title = html.escape(paper.title)
    if paper.url:
        title = f'<a href="{html.escape(paper.url, quote=True)}" target="_blank" rel="noopener">{title}</a>'
    return (
        '<div class="paper__summary">'
        f'<p class="paper__title">{title}</p>'
        f'<p class="paper__byline">{html.escape(paper.byline)}</p>'
        "</div>"
    )


def render_selected_papers(workflow: HypothesisWorkflow) -> str:
    parts = [f"<h3>Selected Papers ({len(workflow.selection)})</h3>"]
    if not workflow.selection:
        parts.append(f'<div class="selection__empty">{EMPTY_SELECTION_TEXT}</div>')
        return "\n".join(parts)

    parts.append('<ul class="selection">')
    for paper in workflow.selection:
        parts.append(
            f'<li class="paper" data-paper-id="{html.escape(paper.paper_id, quote=True)}">'
            f"{_paper_summary(paper)}"
            '<button type="button" data-action="remove-paper" aria-label="Remove paper">Remove</button>'
            "</li>"
        )
    parts.append("</ul>")
    return "\n".join(parts)


def render_search_results(workflow: HypothesisWorkflow) -> str:
    parts: list[str] = []
    if workflow.search.error_message:
        parts.append(f'<div class="alert alert--error" role="alert">{html.escape(workflow.search.error_message)}</div>')

    rows = workflow.result_rows()
    if not rows:
        return "\n".join(parts)

    parts.append("<h3>Search Results</h3>")
    parts.append('<ul class="search-results">')
    for row in rows:
        disabled = " disabled" if row.selected else ""
        parts.append(
            f'<li class="paper" data-paper-id="{html.escape(row.paper.paper_id, quote=True)}">'
            f"{_paper_summary(row.paper)}"
            f'<button type="button" data-action="add-paper" aria-label="Add paper"{disabled}>Add</button>'
            "</li>"
        )
    parts.append("</ul>")
    return "\n".join(parts)


def render_search_form(workflow: HypothesisWorkflow) -> str:
    busy = " disabled" if workflow.is_searching else ""
    label = "Searching..." if workflow.is_searching else "Search"
    return (
        '<form class="search-bar" data-action="search">'
        f'<input type="search" name="query" value="{html.escape(workflow.search.query, quote=True)}" '
        f'placeholder="{html.escape(SEARCH_PLACEHOLDER, quote=True)}">'
        f'<button type="submit"{busy}>{label}</button>'
        "</form>"
    )


def render_generation_controls(workflow: HypothesisWorkflow) -> str:
    disabled = "" if workflow.can_generate else " disabled"
    icon = "spinner" if workflow.is_generating else "lightbulb"
    parts = [
        "<h2>2. Enter Research Topic</h2>",
        f'<input type="text" name="topic" value="{html.escape(workflow.topic, quote=True)}" '
        f'placeholder="{html.escape(TOPIC_PLACEHOLDER, quote=True)}">',
        f'<button type="button" data-action="generate"{disabled}>'
        f'<span class="icon icon-{icon}"></span> Generate Hypothesis</button>',
    ]
    if workflow.error:
        parts.append(f'<div class="alert alert--error" role="alert">{html.escape(workflow.error)}</div>')
    return "\n".join(parts)


def render_generation_result(workflow: HypothesisWorkflow) -> str:
    if workflow.result is None:
        return ""
    return (
        '<section class="card hypothesis-result">\n'
        "<h2>3. Generated Hypothesis &amp; Validation</h2>\n"
        f'<div class="prose">{render_markdown(workflow.result.hypothesis)}</div>\n'
        "</section>"
    )


def render_workflow_page(
    workflow: HypothesisWorkflow,
    analysis: ResultDisplay | None = None,
    analysis_visible: bool = True,
) -> str:
    """Render the full page for the workflow's current state.

    ``analysis`` adds the literature analysis overlay; whether it is shown is
    decided here by the caller through ``analysis_visible``.
    """
    selection_section = "\n".join([
        '<section class="card paper-selection" id="paper-selection">',
        "<h2>1. Select Papers</h2>",
        render_selected_papers(workflow),
        "<h3>Search for Papers</h3>",
        render_search_form(workflow),
        render_search_results(workflow),
        "</section>",
    ])
    generation_section = "\n".join([
        '<section class="card topic">',
        render_generation_controls(workflow),
        "</section>",
    ])
    body = "\n".join(
        part
        for part in (
            f"<h1>{html.escape(PAGE_TITLE)}</h1>",
            selection_section,
            generation_section,
            render_generation_result(workflow),
            analysis.render(analysis_visible) if analysis is not None else "",
        )
        if part
    )
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        f'<head><meta charset="utf-8"><title>{html.escape(PAGE_TITLE)}</title></head>\n'
        f'<body>\n<main class="container">\n{body}\n</main>\n</body>\n'
        "</html>\n"
    )
