"""Document utility boundary for inspection report PDF rendering."""

from __future__ import annotations

import re
from datetime import datetime
from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from models.report_model import InspectionReport, MessageSender

AI_DISPLAY_NAME = "ManutAI"
SYSTEM_DISPLAY_NAME = "Sistema"

MARGIN = 20 * mm
LINE_HEIGHT = 5 * mm
INFO_BOX_HEIGHT = 35 * mm

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

_PICTOGRAPH_PATTERN = re.compile(
	"["
	"\u200d"
	"\u2011-\u26ff"
	"\u2700-\u27bf"
	"\ue000-\uf8ff"
	"\ufe0f"
	"\U0001f000-\U0001faff"
	"]"
)


class ReportRenderError(RuntimeError):
	"""Raised when a report PDF cannot be produced; no partial output is kept."""


def strip_pictographs(text: str) -> str:
	"""Remove emoji and other symbols the standard PDF fonts cannot draw.

	Lossy and one-way: only ever apply it to a rendered copy of a report.
	"""
	return _PICTOGRAPH_PATTERN.sub("", text or "").strip()


def sender_display_name(sender: MessageSender, technician_name: str) -> str:
	if sender is MessageSender.USER:
		return technician_name
	if sender is MessageSender.AI:
		return AI_DISPLAY_NAME
	if sender is MessageSender.SYSTEM:
		return SYSTEM_DISPLAY_NAME
	raise ValueError(f"Unknown message sender: {sender!r}")


def _sender_color(sender: MessageSender) -> tuple[float, float, float]:
	if sender is MessageSender.USER:
		return (0, 0, 150 / 255)
	if sender is MessageSender.AI:
		return (80 / 255, 80 / 255, 80 / 255)
	if sender is MessageSender.SYSTEM:
		return (120 / 255, 120 / 255, 120 / 255)
	raise ValueError(f"Unknown message sender: {sender!r}")


def _format_datetime(value: datetime) -> str:
	return value.astimezone().strftime("%d/%m/%Y %H:%M:%S")


def _format_time(value: datetime) -> str:
	return value.astimezone().strftime("%H:%M")


class ReportPdfLayout:
	"""Sequential top-down layout of one report on fixed-size A4 pages.

	``cursor`` is the distance from the top edge; a new page starts whenever
	the next line would cross the bottom margin.
	"""

	def __init__(self, pagesize: tuple[float, float] = A4) -> None:
		self.page_width, self.page_height = pagesize
		self.text_width = self.page_width - 2 * MARGIN
		self.cursor = MARGIN
		self.page_count = 1
		self._buffer = BytesIO()
		self._pdf = canvas.Canvas(self._buffer, pagesize=pagesize)

	def _ensure_space(self, height: float) -> None:
		if self.cursor + height > self.page_height - MARGIN:
			self._pdf.showPage()
			self.page_count += 1
			self.cursor = MARGIN

	def _draw(self, x: float, text: str, font: str, size: float) -> None:
		self._pdf.setFont(font, size)
		self._pdf.drawString(x, self.page_height - self.cursor, text)

	def _draw_wrapped(self, text: str, size: float) -> None:
		for line in simpleSplit(text, FONT_REGULAR, size, self.text_width) or [""]:
			self._ensure_space(LINE_HEIGHT)
			self._draw(MARGIN, line, FONT_REGULAR, size)
			self.cursor += LINE_HEIGHT

	def _draw_header(self, report: InspectionReport) -> None:
		self._pdf.setFillGray(0)
		self._draw(MARGIN, "ManutAI - Relatório de Inspeção", FONT_BOLD, 18)
		self.cursor += 10 * mm
		self._pdf.setFillGray(100 / 255)
		self._draw(MARGIN, f"ID: {report.id[:8]}", FONT_REGULAR, 10)
		self.cursor += 15 * mm

	def _draw_info_box(self, report: InspectionReport) -> None:
		pdf = self._pdf
		pdf.setStrokeGray(200 / 255)
		pdf.setFillColorRGB(248 / 255, 250 / 255, 252 / 255)
		pdf.rect(
			MARGIN,
			self.page_height - self.cursor - INFO_BOX_HEIGHT,
			self.text_width,
			INFO_BOX_HEIGHT,
			stroke=1,
			fill=1,
		)

		rows = [
			("Checklist:", strip_pictographs(report.template_title)),
			("Técnico:", strip_pictographs(report.technician_name)),
			("Data:", _format_datetime(report.date)),
		]
		for label, value in rows:
			self.cursor += 8 * mm
			pdf.setFillGray(0)
			self._draw(MARGIN + 5 * mm, label, FONT_BOLD, 11)
			self._draw(MARGIN + 30 * mm, value, FONT_REGULAR, 11)

		self.cursor += 8 * mm
		self._draw(MARGIN + 5 * mm, "Status:", FONT_BOLD, 11)
		if report.issues_found:
			pdf.setFillColorRGB(220 / 255, 50 / 255, 0)
			self._draw(MARGIN + 30 * mm, "ATENÇÃO NECESSÁRIA", FONT_REGULAR, 11)
		else:
			pdf.setFillColorRGB(0, 150 / 255, 0)
			self._draw(MARGIN + 30 * mm, "APROVADO", FONT_REGULAR, 11)
		pdf.setFillGray(0)
		self.cursor += 20 * mm

	def _draw_summary(self, report: InspectionReport) -> None:
		self._ensure_space(8 * mm + LINE_HEIGHT)
		self._draw(MARGIN, "Resumo da Inspeção", FONT_BOLD, 14)
		self.cursor += 8 * mm
		self._draw_wrapped(strip_pictographs(report.summary), 11)
		self.cursor += 10 * mm

	def _draw_transcript(self, report: InspectionReport) -> None:
		self._ensure_space(10 * mm + LINE_HEIGHT)
		self._pdf.setFillGray(0)
		self._draw(MARGIN, "Histórico Detalhado", FONT_BOLD, 14)
		self.cursor += 10 * mm

		for message in report.chat_history:
			self._ensure_space(2 * LINE_HEIGHT)
			name = strip_pictographs(sender_display_name(message.sender, report.technician_name))
			self._pdf.setFillColorRGB(*_sender_color(message.sender))
			self._draw(MARGIN, f"{name} ({_format_time(message.timestamp)})", FONT_BOLD, 10)
			self.cursor += LINE_HEIGHT

			self._pdf.setFillGray(50 / 255)
			self._draw_wrapped(strip_pictographs(message.text), 10)
			self.cursor += 3 * mm

	def render(self, report: InspectionReport) -> bytes:
		self._pdf.setTitle(f"Relatório de Inspeção - {strip_pictographs(report.template_title)}")
		self._draw_header(report)
		self._draw_info_box(report)
		self._draw_summary(report)
		self._draw_transcript(report)
		self._pdf.save()
		return self._buffer.getvalue()


def render_report_pdf(report: InspectionReport) -> tuple[bytes, int]:
	"""Render ``report`` in memory and return the PDF bytes and page count."""
	layout = ReportPdfLayout()
	content = layout.render(report)
	return content, layout.page_count
