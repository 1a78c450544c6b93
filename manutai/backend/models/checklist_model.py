"""Checklist template entities authored by administrators."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ChecklistItem(BaseModel):
	id: str = Field(default_factory=lambda: str(uuid.uuid4()))
	text: str


class ChecklistTemplate(BaseModel):
	"""Ordered list of items a technician walks through during an inspection."""

	id: str = Field(default_factory=lambda: str(uuid.uuid4()))
	title: str
	description: str = ""
	items: list[ChecklistItem] = Field(default_factory=list)
	created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
