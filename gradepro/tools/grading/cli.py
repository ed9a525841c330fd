#!/usr/bin/env python3
"""Command-line interface for grading a set of files in one session."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from gradepro.libs.config_loader import load_all_configs
from gradepro.tools.reporting.layout import format_score
from .errors import ExportError
from .models import Submission, SubmissionStatus, UploadedFile
from .session import GradingSession

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)

console = Console()


def read_text_or_file(value: Optional[str]) -> Optional[str]:
    """Return the contents of ``value`` if it names a file, otherwise the value itself."""
    if value is None:
        return None
    path = Path(value)
    if path.is_file():
        return path.read_text(encoding="utf-8")
    return value


def results_table(submissions: List[Submission]) -> Table:
    table = Table(title="Grading Results")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Summary / Error", overflow="fold")

    colours = {
        SubmissionStatus.COMPLETED: "green",
        SubmissionStatus.ERROR: "red",
        SubmissionStatus.PENDING: "yellow",
        SubmissionStatus.PROCESSING: "blue",
    }
    for s in submissions:
        status = f"[{colours[s.status]}]{s.status.value}[/{colours[s.status]}]"
        if s.result:
            table.add_row(s.file_name, status, format_score(s.result.score),
                          s.result.letter_grade, s.result.summary)
        else:
            table.add_row(s.file_name, status, "-", "-", s.error_message or "")
    return table


async def run(args: argparse.Namespace, session: GradingSession) -> List[Submission]:
    uploads = [UploadedFile.from_path(path) for path in args.files]
    await session.add_submissions(uploads)
    await session.grade_all(show_progress=not args.verbose)
    return list(session.submissions)


def main():
    """Main entry point for grade-pro command."""
    parser = argparse.ArgumentParser(
        description='Grade student submissions against an assignment and rubric using an LLM',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Grade two essays with the default assignment and rubric
  grade-pro essay1.docx essay2.pdf

  # Use a rubric file and a specific model
  grade-pro submissions/*.py --rubric rubric.md --model gemini-3-pro-preview

  # Write the CSV summary and the PDF report to reports/
  grade-pro submissions/* --csv --pdf --output-dir reports/
        """
    )

    parser.add_argument(
        'files',
        type=Path,
        nargs='+',
        help='Submission files to grade'
    )
    parser.add_argument(
        '--assignment', '-a',
        type=str,
        default=None,
        help='Assignment description, or a path to a file containing it (overrides config value)'
    )
    parser.add_argument(
        '--rubric', '-r',
        type=str,
        default=None,
        help='Grading rubric, or a path to a file containing it (overrides config value)'
    )
    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help='Model to use (overrides config value)'
    )
    parser.add_argument(
        '--output-dir', '-o',
        type=Path,
        default=Path('.'),
        help='Directory for exported files (default: current directory)'
    )
    parser.add_argument(
        '--csv',
        action='store_true',
        help='Export a CSV summary of all submissions'
    )
    parser.add_argument(
        '--pdf',
        action='store_true',
        help='Export a PDF report of graded submissions'
    )
    parser.add_argument(
        '--max-concurrent', '-t',
        type=int,
        default=None,
        help='Maximum number of concurrent grading calls (overrides config value)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    missing = [str(p) for p in args.files if not p.is_file()]
    if missing:
        LOG.error("Submission file(s) do not exist: %s", ", ".join(missing))
        sys.exit(1)

    try:
        config = load_all_configs()
    except Exception as e:
        LOG.error("Failed to load configuration: %s", e)
        sys.exit(1)

    try:
        session = GradingSession(config, max_concurrent=args.max_concurrent)
        changes = {
            'assignment_prompt': read_text_or_file(args.assignment),
            'grading_rubric': read_text_or_file(args.rubric),
            'model': args.model,
        }
        session.update_config(**{k: v for k, v in changes.items() if v is not None})
    except Exception as e:
        LOG.error("Failed to initialize grading session: %s", e)
        sys.exit(1)

    LOG.info("Grading %d file(s) with model %s", len(args.files), session.config.model)
    submissions = asyncio.run(run(args, session))

    console.print()
    console.print(results_table(submissions))

    try:
        if args.csv:
            path = session.export_summary(args.output_dir)
            if path:
                console.print(f"[green]Summary saved to:[/green] {path}")
        if args.pdf:
            path = asyncio.run(session.export_report(args.output_dir))
            if path:
                console.print(f"[green]Report saved to:[/green] {path}")
            else:
                console.print("[yellow]No graded submissions; report not written.[/yellow]")
    except ExportError as e:
        LOG.error("Export failed: %s", e)
        sys.exit(1)

    failed = [s for s in submissions if s.status == SubmissionStatus.ERROR]
    graded = len(submissions) - len(failed)
    console.print(f"\nGraded: {graded}  Failed: {len(failed)}")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
