"""Tests for the CSV summary exporter."""

import csv
import io
from datetime import date

import pytest

from gradepro.tools.grading.errors import ExportError
from gradepro.tools.grading.models import SubmissionStatus
from gradepro.tools.reporting.summary import SUMMARY_HEADERS, export_summary, render_summary_csv

from conftest import make_result, make_submission


def parse(text):
    return list(csv.reader(io.StringIO(text)))


def test_header_and_one_row_per_submission():
    submissions = [
        make_submission("graded.txt", status=SubmissionStatus.COMPLETED,
                        result=make_result(score=92, letter_grade="A-", summary="Excellent")),
        make_submission("waiting.txt"),
        make_submission("broken.docx", status=SubmissionStatus.ERROR),
    ]

    rows = parse(render_summary_csv(submissions))

    assert rows[0] == SUMMARY_HEADERS == ["File Name", "Status", "Score", "Letter Grade", "Summary"]
    assert rows[1:] == [
        ["graded.txt", "COMPLETED", "92", "A-", "Excellent"],
        ["waiting.txt", "PENDING", "0", "-", ""],
        ["broken.docx", "ERROR", "0", "-", ""],
    ]


def test_fields_with_commas_quotes_and_newlines_round_trip():
    tricky_name = 'report, "final" v2.txt'
    tricky_summary = 'Strong "thesis", weak evidence.\nSecond line, too.'
    submission = make_submission(tricky_name, status=SubmissionStatus.COMPLETED,
                                 result=make_result(score=77.5, summary=tricky_summary))

    text = render_summary_csv([submission])

    assert '"report, ""final"" v2.txt"' in text
    assert parse(text)[1] == [tricky_name, "COMPLETED", "77.5", "B", tricky_summary]


def test_empty_store_is_header_only():
    assert parse(render_summary_csv([])) == [SUMMARY_HEADERS]


def test_export_writes_dated_file(tmp_path):
    path = export_summary([make_submission()], tmp_path / "out", today=date(2025, 1, 2))

    assert path == tmp_path / "out" / "grading_summary_2025-01-02.csv"
    assert parse(path.read_text(encoding="utf-8"))[1][0] == "essay.txt"


def test_unwritable_destination(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")

    with pytest.raises(ExportError, match="Could not write summary"):
        export_summary([make_submission()], blocker, today=date(2025, 1, 2))
