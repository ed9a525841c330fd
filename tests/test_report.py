"""Tests for the paginated PDF report exporter."""

import re
from datetime import date

import pytest
from PIL import Image

from gradepro.tools.grading.errors import ExportError
from gradepro.tools.grading.models import SubmissionStatus
from gradepro.tools.reporting.layout import ReportSurface, format_score, wrap_text
from gradepro.tools.reporting.report import ReportExporter, paginate, resolve_page_size

from conftest import make_result, make_submission

GRADED_ON = date(2025, 3, 14)


def page_count(pdf_bytes: bytes) -> int:
    return len(re.findall(rb"/Type\s*/Page(?![a-zA-Z])", pdf_bytes))


class FakeSurface:
    """Returns fixed-size blank rasters and records its lifecycle."""

    def __init__(self, heights, fail_on=None):
        self.heights = list(heights)
        self.fail_on = fail_on
        self.rendered = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def render(self, submission, graded_on=None):
        if submission.file_name == self.fail_on:
            raise RuntimeError("canvas exploded")
        self.rendered.append(submission.file_name)
        return Image.new("RGB", (600, self.heights[len(self.rendered) - 1]), "white")


def small_page_exporter(surface):
    return ReportExporter({"reporting": {"page_size": [600, 800], "slack": 20}},
                          surface_factory=lambda: surface)


class TestPaginate:

    def test_short_image_is_one_page(self):
        assert paginate(500, 800) == [0.0]

    def test_remainder_within_slack_is_dropped(self):
        assert paginate(820, 800, slack=20) == [0.0]

    def test_remainder_past_slack_gets_a_page(self):
        assert paginate(821, 800, slack=20) == [0.0, -800.0]

    def test_tall_image(self):
        assert paginate(2500, 800) == [0.0, -800.0, -1600.0, -2400.0]


class TestReportExporter:

    @pytest.mark.parametrize("height,pages", [(700, 1), (820, 1), (821, 2), (1700, 3)])
    def test_page_count_follows_image_height(self, height, pages):
        surface = FakeSurface([height])
        exporter = small_page_exporter(surface)

        pdf = exporter.build([make_submission(status=SubmissionStatus.COMPLETED)], GRADED_ON)

        assert pdf.startswith(b"%PDF")
        assert page_count(pdf) == pages

    def test_only_completed_submissions_in_store_order(self):
        submissions = [
            make_submission("b.txt", status=SubmissionStatus.COMPLETED),
            make_submission("pending.txt"),
            make_submission("failed.txt", status=SubmissionStatus.ERROR),
            make_submission("a.txt", status=SubmissionStatus.COMPLETED),
        ]
        surface = FakeSurface([900, 300])

        pdf = small_page_exporter(surface).build(submissions, GRADED_ON)

        assert surface.rendered == ["b.txt", "a.txt"]
        assert page_count(pdf) == 3
        assert surface.closed

    def test_nothing_to_export(self):
        surface = FakeSurface([])
        with pytest.raises(ExportError, match="No graded submissions"):
            small_page_exporter(surface).build([make_submission()], GRADED_ON)
        assert surface.rendered == []

    def test_render_failure_releases_surface_and_writes_nothing(self, tmp_path):
        submissions = [make_submission("ok.txt", status=SubmissionStatus.COMPLETED),
                       make_submission("bad.txt", status=SubmissionStatus.COMPLETED)]
        surface = FakeSurface([500, 500], fail_on="bad.txt")

        with pytest.raises(ExportError, match="canvas exploded") as exc_info:
            small_page_exporter(surface).export(submissions, tmp_path, GRADED_ON)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert surface.closed
        assert list(tmp_path.iterdir()) == []

    def test_export_writes_dated_file(self, tmp_path):
        surface = FakeSurface([500])
        out_dir = tmp_path / "reports"

        path = small_page_exporter(surface).export(
            [make_submission(status=SubmissionStatus.COMPLETED)], out_dir, GRADED_ON)

        assert path == out_dir / "Grading_Report_2025-03-14.pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_page_size_names(self):
        width, height = resolve_page_size("a4")
        assert round(width) == 595 and round(height) == 842
        assert resolve_page_size([600, 800]) == (600.0, 800.0)
        with pytest.raises(ValueError):
            resolve_page_size("tabloid-ish")


class TestReportSurface:

    def test_wrap_text_keeps_line_breaks(self):
        lines = wrap_text("one two three\n\nfour", lambda s: len(s), 7)
        assert lines == ["one two", "three", "", "four"]

    def test_wrap_text_breaks_long_words(self):
        assert wrap_text("abcdefghij", lambda s: len(s), 4) == ["abcd", "efgh", "ij"]

    def test_format_score(self):
        assert format_score(88.0) == "88"
        assert format_score(87.5) == "87.5"

    def test_longer_feedback_renders_taller(self):
        short = make_submission(status=SubmissionStatus.COMPLETED)
        long = make_submission(status=SubmissionStatus.COMPLETED, result=make_result(
            detailed_feedback="\n".join(f"Paragraph {i}: " + "detail " * 40 for i in range(30)),
            strengths=[f"Strength {i}" for i in range(12)],
        ))

        with ReportSurface(scale=1) as surface:
            short_height = surface.render(short, GRADED_ON).height
            long_image = surface.render(long, GRADED_ON)
            assert long_image.width == 794
            assert long_image.height > short_height

        assert surface.closed
        with pytest.raises(RuntimeError):
            surface.render(short, GRADED_ON)

    def test_full_report_spans_pages(self, tmp_path):
        """End to end with the real surface: long feedback spills onto extra pages."""
        long = make_submission("long.txt", status=SubmissionStatus.COMPLETED, result=make_result(
            letter_grade="F",
            detailed_feedback="\n".join("This section needs considerably more work. " * 8 for _ in range(40)),
        ))
        short = make_submission("short.txt", status=SubmissionStatus.COMPLETED)
        exporter = ReportExporter({"reporting": {"render_scale": 1, "jpeg_quality": 70}})

        path = exporter.export([long, short], tmp_path, GRADED_ON)

        assert page_count(path.read_bytes()) >= 3
