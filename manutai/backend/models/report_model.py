"""Inspection transcript and report entities."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MessageSender(str, Enum):
	"""Author of a chat message in an inspection transcript."""

	SYSTEM = "SYSTEM"
	USER = "USER"
	AI = "AI"


class ReportStatus(str, Enum):
	COMPLETED = "COMPLETED"
	IN_PROGRESS = "IN_PROGRESS"


class ChatMessage(BaseModel):
	"""Single transcript entry; frozen once appended."""

	model_config = ConfigDict(frozen=True)

	id: str = Field(default_factory=lambda: str(uuid.uuid4()))
	sender: MessageSender
	text: str
	timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InspectionReport(BaseModel):
	"""Completed inspection snapshot with denormalized template and technician fields."""

	id: str = Field(default_factory=lambda: str(uuid.uuid4()))
	template_id: str
	template_title: str
	technician_id: str | None = None
	technician_name: str
	date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
	chat_history: list[ChatMessage] = Field(default_factory=list)
	summary: str = ""
	status: ReportStatus = ReportStatus.COMPLETED
	issues_found: bool = False


class SummaryResult(BaseModel):
	"""Structured output of the report summary generator.

	Accepts the generator's camelCase JSON keys (``whatsappText``,
	``issuesFound``) as well as the Python field names.
	"""

	model_config = ConfigDict(populate_by_name=True)

	summary: str
	share_text: str = Field(alias="whatsappText")
	issues_found: bool = Field(alias="issuesFound")
