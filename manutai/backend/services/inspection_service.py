"""Inspection session controller and the in-memory registry of live sessions.

A session walks one technician through the items of one checklist template:
greet, ask about each item in order, collect one free-text answer per item,
then summarize the transcript and persist the resulting report. The summary
and the stored report see the log as it was before the closing answer; the
live log goes on to record that answer and the status message. Every
generator call happens while the session lock is held, so a session never has
two questions or summaries in flight.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from threading import Lock, RLock

from models.checklist_model import ChecklistTemplate
from models.report_model import ChatMessage, InspectionReport, MessageSender, ReportStatus
from models.user_model import User
from services.assistant_service import InspectionAssistant
from services.storage_service import InspectionStorage

logger = logging.getLogger(__name__)

FINISHING_MESSAGE = "Inspeção finalizada! Estou gerando o relatório..."


class InspectionSessionError(ValueError):
	"""Raised for invalid session transitions and rejected answers."""


class SessionPhase(str, Enum):
	NOT_STARTED = "NOT_STARTED"
	IN_PROGRESS = "IN_PROGRESS"
	FINISHING = "FINISHING"
	COMPLETED = "COMPLETED"


def greeting_text(technician_name: str, checklist_title: str) -> str:
	return f"Olá {technician_name}. Iniciando o checklist: {checklist_title}."


class InspectionSession:
	"""Linear progression through a checklist's items for one technician."""

	def __init__(
		self,
		template: ChecklistTemplate,
		technician: User,
		assistant: InspectionAssistant,
		storage: InspectionStorage,
		pacing_seconds: float = 0.0,
		session_id: str | None = None,
	) -> None:
		self.id = session_id or str(uuid.uuid4())
		self.template = template
		self.technician = technician
		self._assistant = assistant
		self._storage = storage
		self._pacing_seconds = pacing_seconds
		self._lock = Lock()

		self.step_index = 0
		self.phase = SessionPhase.NOT_STARTED
		self.report: InspectionReport | None = None
		self._messages: list[ChatMessage] = []

	@property
	def messages(self) -> list[ChatMessage]:
		return list(self._messages)

	@property
	def item_count(self) -> int:
		return len(self.template.items)

	def progress(self) -> tuple[int, int]:
		"""Return the 1-based step being asked and the total number of items."""
		return min(self.step_index + 1, self.item_count), self.item_count

	def _append(self, sender: MessageSender, text: str) -> ChatMessage:
		message = ChatMessage(sender=sender, text=text)
		self._messages.append(message)
		return message

	def start(self) -> list[ChatMessage]:
		"""Greet the technician and ask about the first item."""
		with self._lock:
			if self.phase is not SessionPhase.NOT_STARTED:
				raise InspectionSessionError("A inspeção já foi iniciada.")
			self.phase = SessionPhase.IN_PROGRESS
			logger.info(
				"session_started | session_id=%s | template_id=%s | technician_id=%s | items=%s",
				self.id,
				self.template.id,
				self.technician.id,
				self.item_count,
			)
			self._append(MessageSender.AI, greeting_text(self.technician.name, self.template.title))
			self._advance(self.messages)
			return self.messages

	def submit_answer(self, text: str) -> InspectionReport | None:
		"""Record the answer for the current item and move to the next step.

		Returns the persisted report when this answer completes the checklist.
		"""
		with self._lock:
			if self.phase is not SessionPhase.IN_PROGRESS:
				raise InspectionSessionError("A inspeção não está em andamento.")
			if not text or not text.strip():
				raise InspectionSessionError("Digite sua resposta.")

			# the report keeps the log as it stood before the closing answer
			before_answer = self.messages
			self._append(MessageSender.USER, text)
			self.step_index += 1
			if self._pacing_seconds > 0:
				time.sleep(self._pacing_seconds)
			self._advance(before_answer)
			return self.report

	def _advance(self, transcript: list[ChatMessage]) -> None:
		if self.step_index >= self.item_count:
			self._finish(transcript)
			return

		item = self.template.items[self.step_index]
		question = self._assistant.next_question(self.template.title, item, self.messages)
		self._append(MessageSender.AI, question)

	def _finish(self, transcript: list[ChatMessage]) -> None:
		self.phase = SessionPhase.FINISHING
		self._append(MessageSender.AI, FINISHING_MESSAGE)

		result = self._assistant.summarize(self.template.title, self.technician.name, transcript)
		report = InspectionReport(
			template_id=self.template.id,
			template_title=self.template.title,
			technician_id=self.technician.id,
			technician_name=self.technician.name,
			date=datetime.now(timezone.utc),
			chat_history=transcript,
			summary=result.summary,
			status=ReportStatus.COMPLETED,
			issues_found=result.issues_found,
		)
		self._storage.save_report(report)
		self.report = report
		self.phase = SessionPhase.COMPLETED
		logger.info(
			"session_completed | session_id=%s | report_id=%s | messages=%s | issues_found=%s",
			self.id,
			report.id,
			len(report.chat_history),
			report.issues_found,
		)


class InspectionSessionRegistry:
	"""Thread-safe in-memory map of live sessions keyed by session id.

	Nothing here is persisted: a session dropped before completion leaves no
	trace.
	"""

	def __init__(self) -> None:
		self._sessions: dict[str, InspectionSession] = {}
		self._lock = RLock()

	def add(self, session: InspectionSession) -> InspectionSession:
		with self._lock:
			self._sessions[session.id] = session
		return session

	def get(self, session_id: str) -> InspectionSession | None:
		with self._lock:
			return self._sessions.get(session_id)

	def discard(self, session_id: str) -> InspectionSession | None:
		with self._lock:
			return self._sessions.pop(session_id, None)

	def __len__(self) -> int:
		with self._lock:
			return len(self._sessions)
