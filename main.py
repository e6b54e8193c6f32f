"""CLI entrypoint: search papers, pick a selection, generate and validate a hypothesis."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from export_sink import DirectoryDownloadSink
from hypothesis_service import HypothesisGenerator
from models import AnalysisKind, Paper, SearchStatus
from paper_search import search_papers
from perplexity_client import analyze_literature
from result_display import ResultDisplay
from views import render_workflow_page
from workflow import HypothesisWorkflow


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Search papers and generate a research hypothesis")
    parser.add_argument("--query", required=True, help="Search terms for the paper corpus")
    parser.add_argument(
        "--paper-id",
        dest="paper_ids",
        action="append",
        default=[],
        help="Select a search result by paper id (repeatable). Defaults to the first --top results.",
    )
    parser.add_argument("--top", type=int, default=3, help="How many leading results to select when no --paper-id is given")
    parser.add_argument("--topic", default=None, help="Research topic; hypothesis generation is skipped without it")
    parser.add_argument(
        "--analysis",
        choices=[kind.value for kind in AnalysisKind],
        default=None,
        help="Also run a literature analysis over the selection and export it as markdown",
    )
    parser.add_argument("--export-dir", default=None, help="Directory for exported markdown (default: EXPORT_DIR or ./exports)")
    parser.add_argument("--html", default="hypothesis_page.html", help="Where to write the rendered page")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only search and select, without generation or analysis API calls",
    )
    return parser.parse_args(argv)


def _choose_papers(results: tuple[Paper, ...], paper_ids: list[str], top: int) -> list[Paper]:
    if not paper_ids:
        return list(results[: max(top, 0)])

    by_id = {paper.paper_id: paper for paper in results}
    chosen: list[Paper] = []
    for paper_id in paper_ids:
        paper = by_id.get(paper_id)
        if paper is None:
            logging.warning("Requested paper_id=%s is not in the search results; skipping", paper_id)
            continue
        chosen.append(paper)
    return chosen


async def run(args: argparse.Namespace) -> int:
    """Drive one workflow session and return a process exit code."""
    generator = HypothesisGenerator()

    def search(query: str) -> list[Paper]:
        papers = search_papers(query)
        generator.remember(papers)
        return papers

    workflow = HypothesisWorkflow(
        search_fn=search,
        generate_fn=generator,
        on_results_ready=lambda: logging.info("Search results ready for selection"),
    )
    sink = DirectoryDownloadSink(args.export_dir)
    analysis: ResultDisplay | None = None
    exit_code = 0

    try:
        await workflow.submit_search(args.query)
        if workflow.search.status is not SearchStatus.SUCCEEDED:
            logging.warning("Search did not return papers: %s", workflow.search.error_message)
            return 1

        for row in workflow.result_rows():
            logging.info("Result %s: %s (%s)", row.paper.paper_id, row.paper.title, row.paper.byline)

        for paper in _choose_papers(workflow.search.results, args.paper_ids, args.top):
            workflow.add_paper(paper)
        logging.info("Selected %s papers: %s", len(workflow.selection), ", ".join(workflow.selection.paper_ids()))

        if args.dry_run:
            logging.info("[dry-run] Would generate for topic=%r and analysis=%s", args.topic, args.analysis)
        else:
            if args.topic is not None:
                await workflow.generate(args.topic)
                if workflow.error:
                    logging.warning("Hypothesis generation: %s", workflow.error)
                    exit_code = 1
                elif workflow.result is not None:
                    print(workflow.result.hypothesis)

            if args.analysis:
                analysis_code, analysis = await _run_analysis(workflow, args, sink)
                exit_code = max(exit_code, analysis_code)
    finally:
        html_path = Path(args.html)
        html_path.write_text(render_workflow_page(workflow, analysis=analysis), encoding="utf-8")
        logging.info("Wrote page to %s", html_path)
        workflow.close()

    return exit_code


async def _run_analysis(
    workflow: HypothesisWorkflow, args: argparse.Namespace, sink: DirectoryDownloadSink
) -> tuple[int, ResultDisplay | None]:
    papers = workflow.selection.papers()
    if not papers:
        logging.warning("Literature analysis skipped: no papers selected")
        return 1, None

    title = (args.topic or args.query).strip()
    try:
        payload = await asyncio.to_thread(analyze_literature, papers, title, AnalysisKind(args.analysis))
    except Exception as exc:  # keep the session's other output
        logging.exception("Literature analysis failed: %s", exc)
        return 1, None

    display = ResultDisplay(payload, on_close=lambda: logging.info("Closed %s analysis", payload.kind.value))
    display.export(sink)
    logging.info("%s exported to %s", display.heading, sink.saved[-1])
    return 0, display


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute one workflow session."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
