"""Paginated multi-submission PDF report.

Each graded submission is rendered to one tall raster at a fixed width, then
sliced across as many pages as its height needs. Page count is only known after
rendering because feedback length varies.
"""

import io
import logging
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from gradepro.libs.config_loader import ConfigType, get_config
from gradepro.tools.grading.errors import ExportError
from gradepro.tools.grading.models import Submission, SubmissionStatus
from .layout import VIRTUAL_WIDTH, ReportSurface

LOG = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "LETTER": letter}
DEFAULT_SLACK = 20


def paginate(image_height: float, page_height: float, slack: float = DEFAULT_SLACK) -> List[float]:
    """
    Vertical offsets at which a tall image is placed on successive pages.

    The first page shows the image at offset 0; each further page shifts it up
    by one page height. A remainder of ``slack`` units or less does not get its
    own page, which absorbs rounding from the pixel to page-unit conversion.
    """
    offsets = [0.0]
    height_left = image_height - page_height
    while height_left > slack:
        offsets.append(-page_height * len(offsets))
        height_left -= page_height
    return offsets


def graded_submissions(submissions: Sequence[Submission]) -> List[Submission]:
    return [s for s in submissions if s.status == SubmissionStatus.COMPLETED and s.result is not None]


def resolve_page_size(value) -> Tuple[float, float]:
    """Page size from a name ("A4", "letter") or a [width, height] pair in points."""
    if isinstance(value, str):
        try:
            return PAGE_SIZES[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown page size {value!r}") from None
    width, height = value
    return float(width), float(height)


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


class ReportExporter:
    """Lay out one report per graded submission and assemble them into a PDF."""

    def __init__(self, configs: ConfigType,
                 surface_factory: Optional[Callable[[], ReportSurface]] = None):
        self.configs = configs
        self.page_size = resolve_page_size(get_config("reporting.page_size", configs, default="A4"))
        self.slack = float(get_config("reporting.slack", configs, default=DEFAULT_SLACK))
        self.jpeg_quality = int(get_config("reporting.jpeg_quality", configs, default=95))
        self._surface_factory = surface_factory or self._default_surface

    def _default_surface(self) -> ReportSurface:
        return ReportSurface(
            width=get_config("reporting.virtual_width", self.configs, default=VIRTUAL_WIDTH),
            scale=get_config("reporting.render_scale", self.configs, default=2),
            font_path=get_config("reporting.font_path", self.configs, default=None),
            brand=get_config("reporting.brand", self.configs, default="AI Grader Pro"),
        )

    def build(self, submissions: Sequence[Submission], graded_on: Optional[date] = None) -> bytes:
        """
        Render the report document in memory.

        Args:
            submissions: Submissions in display order; anything not COMPLETED is skipped
            graded_on: Date printed on every report (defaults to today)

        Returns:
            PDF bytes

        Raises:
            ExportError: If there is nothing to export or any rendering step fails
        """
        completed = graded_submissions(submissions)
        if not completed:
            raise ExportError("No graded submissions to export")

        page_width, page_height = self.page_size
        buffer = io.BytesIO()
        try:
            pdf = canvas.Canvas(buffer, pagesize=self.page_size)
            pdf.setTitle("Grading Report")
            with self._surface_factory() as surface:
                for submission in completed:
                    image = surface.render(submission, graded_on)
                    image_height = image.height * page_width / image.width
                    reader = ImageReader(io.BytesIO(encode_jpeg(image, self.jpeg_quality)))

                    offsets = paginate(image_height, page_height, self.slack)
                    LOG.debug("Report for %s spans %d page(s)", submission.file_name, len(offsets))
                    for offset in offsets:
                        # reportlab measures y from the bottom of the page
                        pdf.drawImage(reader, 0, page_height - offset - image_height,
                                      width=page_width, height=image_height)
                        pdf.showPage()
            pdf.save()
        except ExportError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            LOG.error("PDF Generation Error: %s", exc)
            raise ExportError(f"Failed to generate PDF: {exc}") from exc

        LOG.info("Built grading report for %d submissions", len(completed))
        return buffer.getvalue()

    def export(self, submissions: Sequence[Submission], output_dir: Path,
               graded_on: Optional[date] = None) -> Path:
        """Write ``Grading_Report_<date>.pdf`` into output_dir. No file is written on failure."""
        graded_on = graded_on or date.today()
        pdf_bytes = self.build(submissions, graded_on)
        output_path = Path(output_dir) / f"Grading_Report_{graded_on.isoformat()}.pdf"
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(pdf_bytes)
        except OSError as exc:
            raise ExportError(f"Could not write report to {output_path}: {exc}") from exc
        LOG.info("Report saved to: %s", output_path)
        return output_path
