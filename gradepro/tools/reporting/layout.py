"""Raster layout of a single grading report using Pillow.

Coordinates are laid out in CSS-like pixels at a fixed virtual width and
multiplied by the render scale when painted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from gradepro.tools.grading.models import GradingResult, Submission

LOG = logging.getLogger(__name__)

VIRTUAL_WIDTH = 794
PADDING = 40
SECTION_GAP = 25
COLUMN_GAP = 20
RADIUS = 12

WHITE = "#ffffff"
INK = "#1e293b"
MUTED = "#64748b"
INDIGO = "#4f46e5"
INDIGO_BG = "#eef2ff"
RULE = "#e2e8f0"


@dataclass(frozen=True)
class PanelStyle:
    border: str
    header_bg: str
    title_color: str
    body_bg: str
    text_color: str


SUMMARY_STYLE = PanelStyle("#cbd5e1", "#f1f5f9", "#334155", WHITE, "#334155")
STRENGTHS_STYLE = PanelStyle("#a7f3d0", "#d1fae5", "#065f46", "#ecfdf5", "#064e3b")
IMPROVEMENTS_STYLE = PanelStyle("#fde68a", "#fef3c7", "#92400e", "#fffbeb", "#78350f")
FEEDBACK_STYLE = PanelStyle(RULE, "#f8fafc", "#334155", WHITE, "#475569")


def wrap_text(text: str, measure, max_width: float) -> List[str]:
    """
    Greedy word wrap that keeps explicit line breaks.

    Words wider than the line (or scripts written without spaces) are broken
    between characters.
    """
    lines: List[str] = []
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if measure(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
                current = ""
            for char in word:
                if current and measure(current + char) > max_width:
                    lines.append(current)
                    current = ""
                current += char
        lines.append(current)
    return lines


class _Painter:
    """Records drawing operations so a layout can be measured before it is painted."""

    def __init__(self, surface: "ReportSurface"):
        self.surface = surface
        self.ops: List[Tuple] = []

    def box(self, x0: float, y0: float, x1: float, y1: float, fill: Optional[str] = None,
            outline: Optional[str] = None, radius: float = 0) -> None:
        self.ops.append(("box", (x0, y0, x1, y1), fill, outline, radius))

    def text(self, x: float, y: float, text: str, size: int, fill: str) -> None:
        self.ops.append(("text", (x, y), text, size, fill))

    def paragraph(self, x: float, y: float, text: str, size: int, fill: str,
                  max_width: float, line_height: float) -> float:
        """Wrap and record a block of text. Returns the y below it."""
        step = size * line_height
        for line in wrap_text(text, lambda s: self.surface.measure(s, size), max_width):
            if line:
                self.text(x, y + (step - size) / 2, line, size, fill)
            y += step
        return y

    def paint(self, image: Image.Image, scale: float) -> None:
        draw = ImageDraw.Draw(image)
        for op in self.ops:
            if op[0] == "box":
                _, (x0, y0, x1, y1), fill, outline, radius = op
                draw.rounded_rectangle(
                    (x0 * scale, y0 * scale, x1 * scale, y1 * scale),
                    radius=radius * scale, fill=fill, outline=outline,
                    width=max(1, int(scale)),
                )
            else:
                _, (x, y), text, size, fill = op
                draw.text((x * scale, y * scale), text, font=self.surface.font(size), fill=fill)


class ReportSurface:
    """
    Hidden rendering surface for grading reports.

    One surface is reused for every submission of an export and must be closed
    afterwards; use it as a context manager.
    """

    def __init__(self, width: int = VIRTUAL_WIDTH, scale: float = 2,
                 font_path: Optional[str] = None, brand: str = "AI Grader Pro"):
        self.width = width
        self.scale = scale
        self.font_path = font_path
        self.brand = brand
        self._fonts: Dict[int, ImageFont.FreeTypeFont] = {}
        self._scratch = Image.new("RGB", (1, 1), WHITE)
        self._measure = ImageDraw.Draw(self._scratch)
        self._image: Optional[Image.Image] = None
        self.closed = False

    def __enter__(self) -> "ReportSurface":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self.closed:
            return
        if self._image is not None:
            self._image.close()
            self._image = None
        self._scratch.close()
        self._fonts.clear()
        self.closed = True
        LOG.debug("Report surface released")

    def font(self, size: int):
        """Font at ``size`` CSS pixels, scaled for painting."""
        if size not in self._fonts:
            pixel_size = max(1, int(round(size * self.scale)))
            if self.font_path:
                self._fonts[size] = ImageFont.truetype(self.font_path, pixel_size)
            else:
                self._fonts[size] = ImageFont.load_default(size=pixel_size)
        return self._fonts[size]

    def measure(self, text: str, size: int) -> float:
        """Width of ``text`` in CSS pixels."""
        return self._measure.textlength(text, font=self.font(size)) / self.scale

    def render(self, submission: Submission, graded_on: Optional[date] = None) -> Image.Image:
        """
        Lay out and rasterize the report for one graded submission.

        The returned image is owned by the surface and stays valid until the
        next call to ``render`` or ``close``.
        """
        if self.closed:
            raise RuntimeError("Report surface is closed")
        if submission.result is None:
            raise ValueError(f"Submission {submission.file_name} has no grading result")

        painter = _Painter(self)
        height = self._layout(painter, submission.file_name, submission.result, graded_on or date.today())

        if self._image is not None:
            self._image.close()
        size = (int(round(self.width * self.scale)), int(round(height * self.scale)))
        self._image = Image.new("RGB", size, WHITE)
        painter.paint(self._image, self.scale)
        return self._image

    def _layout(self, p: _Painter, file_name: str, result: GradingResult, graded_on: date) -> float:
        left = PADDING
        right = self.width - PADDING
        inner = right - left
        y = PADDING

        # Header: title and date on the left, brand badge on the right
        title_bottom = p.paragraph(left, y, file_name, 24, INK, inner * 0.7, 1.2)
        title_bottom = p.paragraph(left, title_bottom + 8, f"Graded on: {graded_on.strftime('%Y-%m-%d')}",
                                   12, MUTED, inner * 0.7, 1.4)
        badge_w = self.measure(self.brand, 14) + 24
        p.box(right - badge_w, y, right, y + 14 + 12, fill=INDIGO_BG, radius=6)
        p.text(right - badge_w + 12, y + 6, self.brand, 14, INDIGO)
        y = max(title_bottom, y + 26) + 20
        p.box(left, y, right, y + 2, fill=RULE)
        y += 2 + 30

        # Score tiles
        tile_w = (inner - COLUMN_GAP) / 2
        tile_h = 25 + 12 + 8 + 42 + 25
        passed = result.is_pass
        tiles = [
            ("TOTAL SCORE", format_score(result.score), "#f8fafc", RULE, MUTED, INDIGO),
            ("GRADE", result.letter_grade,
             "#ecfdf5" if passed else "#fff1f2",
             "#a7f3d0" if passed else "#fecdd3",
             "#065f46" if passed else "#9f1239",
             "#059669" if passed else "#e11d48"),
        ]
        for i, (label, value, bg, border, label_color, value_color) in enumerate(tiles):
            x0 = left + i * (tile_w + COLUMN_GAP)
            p.box(x0, y, x0 + tile_w, y + tile_h, fill=bg, outline=border, radius=RADIUS)
            centre = x0 + tile_w / 2
            p.text(centre - self.measure(label, 12) / 2, y + 25, label, 12, label_color)
            p.text(centre - self.measure(value, 42) / 2, y + 25 + 12 + 8, value, 42, value_color)
        y += tile_h + 30

        y = self._panel(p, left, y, inner, "EXECUTIVE SUMMARY", SUMMARY_STYLE,
                        lambda px, py, w: p.paragraph(px, py, result.summary, 14, SUMMARY_STYLE.text_color, w, 1.6))
        y += SECTION_GAP

        # Strengths and improvements side by side, equal heights
        col_w = (inner - COLUMN_GAP) / 2
        columns = [("Strengths", STRENGTHS_STYLE, result.strengths),
                   ("Improvements", IMPROVEMENTS_STYLE, result.improvements)]
        heights = [self._panel(_Painter(self), 0, 0, col_w, title, style, self._bullets(None, items, style))
                   for title, style, items in columns]
        col_h = max(heights)
        for i, (title, style, items) in enumerate(columns):
            x0 = left + i * (col_w + COLUMN_GAP)
            self._panel(p, x0, y, col_w, title, style, self._bullets(p, items, style), min_height=col_h)
        y += col_h + SECTION_GAP

        y = self._panel(p, left, y, inner, "DETAILED FEEDBACK", FEEDBACK_STYLE,
                        lambda px, py, w: p.paragraph(px, py, result.detailed_feedback, 13,
                                                      FEEDBACK_STYLE.text_color, w, 1.8))
        return y + PADDING

    def _bullets(self, painter: Optional[_Painter], items: List[str], style: PanelStyle):
        def draw(px: float, py: float, width: float) -> float:
            target = painter or _Painter(self)
            for item in items:
                centre = py + 13 * 1.6 / 2
                target.box(px + 4, centre - 2.5, px + 9, centre + 2.5, fill=style.text_color, radius=2.5)
                py = target.paragraph(px + 20, py, item, 13, style.text_color, width - 20, 1.6) + 6
            return py
        return draw

    def _panel(self, p: _Painter, x: float, y: float, width: float, title: str, style: PanelStyle,
               body, min_height: float = 0) -> float:
        """Bordered panel with a title bar. Returns the y below the panel."""
        header_h = 12 + 14 + 12
        start = len(p.ops)
        p.box(x, y, x + width, y, fill=style.body_bg, outline=style.border, radius=RADIUS)
        p.box(x, y, x + width, y + header_h, fill=style.header_bg, outline=style.border, radius=RADIUS)
        p.text(x + 20, y + 12, title, 14, style.title_color)
        body_bottom = body(x + 20, y + header_h + 20, width - 40) + 20
        bottom = max(body_bottom, y + min_height)
        # Outer box is recorded first so it paints underneath; fix its height now it is known.
        p.ops[start] = ("box", (x, y, x + width, bottom), style.body_bg, style.border, RADIUS)
        return bottom


def format_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else f"{score:g}"
