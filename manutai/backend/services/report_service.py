"""Service boundary for report projections: share text, search and PDF export."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from urllib.parse import quote

from models.report_model import InspectionReport
from utils.pdf_generator import ReportRenderError, render_report_pdf

logger = logging.getLogger(__name__)

SHARE_URL = "https://wa.me/?text="
PDF_ERROR_MESSAGE = "Erro ao gerar PDF. Tente novamente."


def format_report_date(value: datetime) -> str:
	return value.astimezone().strftime("%d/%m/%Y")


def build_share_text(report: InspectionReport) -> str:
	"""Build the WhatsApp message for a report; field order is fixed."""
	status_text = "Problemas Identificados" if report.issues_found else "Tudo OK"
	return (
		"🛠️ *RELATÓRIO DE MANUTENÇÃO*\n\n"
		f"📋 *Checklist:* {report.template_title}\n"
		f"👤 *Técnico:* {report.technician_name}\n"
		f"📅 *Data:* {format_report_date(report.date)}\n\n"
		f"📝 *Resumo:*\n{report.summary}\n\n"
		f"⚠️ *Status:* {status_text}\n\n"
		"_Gerado via ManutAI_"
	)


def build_share_link(text: str) -> str:
	return SHARE_URL + quote(text, safe="")


def search_reports(reports: list[InspectionReport], term: str | None = None) -> list[InspectionReport]:
	"""Filter by template title or technician name, newest first."""
	needle = (term or "").strip().lower()
	matches = [
		report
		for report in reports
		if not needle or needle in report.template_title.lower() or needle in report.technician_name.lower()
	]
	return list(reversed(matches))


def report_pdf_filename(report: InspectionReport, now: datetime | None = None) -> str:
	stamp = int((now or datetime.now()).timestamp() * 1000)
	safe_title = re.sub(r"\s+", "_", report.template_title)
	return f"relatorio_{safe_title}_{stamp}.pdf"


def export_report_pdf(report: InspectionReport) -> bytes:
	"""Render the PDF for a stored report, entirely in memory.

	Any rendering fault becomes ``ReportRenderError``; nothing is written to
	disk and the stored report is left untouched.
	"""
	try:
		content, page_count = render_report_pdf(report)
	except Exception as exc:
		logger.exception("pdf_render_failed | report_id=%s", report.id)
		raise ReportRenderError(PDF_ERROR_MESSAGE) from exc

	logger.info("pdf_rendered | report_id=%s | pages=%s | bytes=%s", report.id, page_count, len(content))
	return content
