"""Checklist template authoring."""

from __future__ import annotations

import logging
from typing import Iterable

from models.checklist_model import ChecklistItem, ChecklistTemplate
from services.storage_service import InspectionStorage

logger = logging.getLogger(__name__)


class ChecklistServiceError(ValueError):
	"""Raised when a checklist template fails authoring validation."""


def create_template(
	storage: InspectionStorage,
	title: str,
	description: str,
	item_texts: Iterable[str],
) -> ChecklistTemplate:
	"""Validate and persist a new template; blank items are dropped."""
	if not title or not title.strip():
		raise ChecklistServiceError("Por favor, dê um título ao checklist.")

	items = [ChecklistItem(text=text) for text in item_texts if text and text.strip()]
	if not items:
		raise ChecklistServiceError("Adicione pelo menos um item ao checklist.")

	template = ChecklistTemplate(title=title, description=description or "", items=items)
	storage.save_template(template)
	logger.info("template_created | template_id=%s | items=%s", template.id, len(items))
	return template
