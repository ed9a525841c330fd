"""Tabular summary export of all submissions."""

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from gradepro.tools.grading.errors import ExportError
from gradepro.tools.grading.models import Submission
from .layout import format_score

LOG = logging.getLogger(__name__)

SUMMARY_HEADERS = ["File Name", "Status", "Score", "Letter Grade", "Summary"]
NO_GRADE = "-"


def summary_rows(submissions: Sequence[Submission]) -> List[List[str]]:
    """One row per submission; ungraded ones get score 0 and a placeholder grade."""
    rows = []
    for submission in submissions:
        result = submission.result
        rows.append([
            submission.file_name,
            submission.status.value,
            format_score(result.score) if result else "0",
            (result.letter_grade if result else "") or NO_GRADE,
            result.summary if result else "",
        ])
    return rows


def render_summary_csv(submissions: Sequence[Submission]) -> str:
    """CSV text; fields containing commas, quotes or newlines are quoted and quotes doubled."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(SUMMARY_HEADERS)
    writer.writerows(summary_rows(submissions))
    return buffer.getvalue()


def export_summary(submissions: Sequence[Submission], output_dir: Path,
                   today: Optional[date] = None) -> Path:
    """Write ``grading_summary_<date>.csv`` into output_dir."""
    today = today or date.today()
    content = render_summary_csv(submissions)
    output_path = Path(output_dir) / f"grading_summary_{today.isoformat()}.csv"
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Could not write summary to {output_path}: {exc}") from exc
    LOG.info("Summary saved to: %s (%d rows)", output_path, len(submissions))
    return output_path
