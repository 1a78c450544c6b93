"""Storage port for templates, reports and users over an opaque key-value store.

Each collection lives in a single JSON blob under a fixed key and every write
replaces the whole blob. A blob that no longer parses is copied under
``<key>_unreadable`` and then read as empty. There is no locking: concurrent
writers are last writer wins.
"""

from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from database import KeyValueStore
from models.checklist_model import ChecklistTemplate
from models.report_model import InspectionReport
from models.user_model import User, UserRole

logger = logging.getLogger(__name__)

TEMPLATES_KEY = "manutai_templates"
REPORTS_KEY = "manutai_reports"
USERS_KEY = "manutai_users"
UNREADABLE_SUFFIX = "_unreadable"

SEED_ADMIN_ID = "admin-1"
SEED_ADMIN_NAME = "Administrador"
SEED_ADMIN_EMAIL = "admin@manutai.com"
SEED_ADMIN_PASSWORD = "123"

ModelT = TypeVar("ModelT", bound=BaseModel)


class StorageServiceError(ValueError):
	"""Raised when a storage write violates a collection rule."""


class InspectionStorage:
	"""Per-collection read-modify-write operations on top of a key-value store."""

	def __init__(self, store: KeyValueStore) -> None:
		self._store = store

	def _load(self, key: str, model: type[ModelT]) -> list[ModelT]:
		raw = self._store.get(key)
		if not raw:
			return []
		try:
			return TypeAdapter(list[model]).validate_json(raw)
		except ValidationError:
			backup_key = key + UNREADABLE_SUFFIX
			if self._store.get(backup_key) != raw:
				self._store.set(backup_key, raw)
			logger.warning(
				"collection_unreadable | key=%s | backup_key=%s | treating as empty, next write replaces it",
				key,
				backup_key,
			)
			return []

	def _dump(self, key: str, items: list[BaseModel]) -> None:
		payload = [item.model_dump(mode="json") for item in items]
		self._store.set(key, json.dumps(payload, ensure_ascii=False))

	def _remove(self, key: str, model: type[ModelT], item_id: str) -> None:
		items = self._load(key, model)
		remaining = [item for item in items if item.id != item_id]
		# unknown ids leave the stored blob untouched
		if len(remaining) != len(items):
			self._dump(key, remaining)

	# Templates

	def get_templates(self) -> list[ChecklistTemplate]:
		return self._load(TEMPLATES_KEY, ChecklistTemplate)

	def get_template(self, template_id: str) -> ChecklistTemplate | None:
		return next((t for t in self.get_templates() if t.id == template_id), None)

	def save_template(self, template: ChecklistTemplate) -> None:
		self._dump(TEMPLATES_KEY, [*self.get_templates(), template])

	def delete_template(self, template_id: str) -> None:
		self._remove(TEMPLATES_KEY, ChecklistTemplate, template_id)

	# Reports

	def get_reports(self) -> list[InspectionReport]:
		return self._load(REPORTS_KEY, InspectionReport)

	def get_report(self, report_id: str) -> InspectionReport | None:
		return next((r for r in self.get_reports() if r.id == report_id), None)

	def save_report(self, report: InspectionReport) -> None:
		"""Upsert by id: replace in place when present, append otherwise."""
		reports = self.get_reports()
		index = next((i for i, existing in enumerate(reports) if existing.id == report.id), None)
		if index is None:
			reports.append(report)
		else:
			reports[index] = report
		self._dump(REPORTS_KEY, reports)

	def delete_report(self, report_id: str) -> None:
		self._remove(REPORTS_KEY, InspectionReport, report_id)

	# Users

	def get_users(self) -> list[User]:
		return self._load(USERS_KEY, User)

	def get_user(self, user_id: str) -> User | None:
		return next((u for u in self.get_users() if u.id == user_id), None)

	def register_user(self, user: User) -> User:
		users = self.get_users()
		if any(existing.email == user.email for existing in users):
			raise StorageServiceError("E-mail já cadastrado.")
		self._dump(USERS_KEY, [*users, user])
		logger.info("user_registered | user_id=%s | role=%s", user.id, user.role.value)
		return user

	def login_user(self, email: str, password: str) -> User | None:
		return next((u for u in self.get_users() if u.email == email and u.password == password), None)

	def update_user_password(self, user_id: str, new_password: str) -> User | None:
		users = self.get_users()
		for index, user in enumerate(users):
			if user.id == user_id:
				updated = user.model_copy(update={"password": new_password, "must_change_password": False})
				users[index] = updated
				self._dump(USERS_KEY, users)
				return updated
		return None

	def delete_user(self, user_id: str) -> None:
		if user_id == SEED_ADMIN_ID:
			raise StorageServiceError("O administrador padrão não pode ser removido.")
		self._remove(USERS_KEY, User, user_id)

	def seed_initial_admin(self) -> bool:
		"""Create the default administrator when no user exists yet."""
		if self.get_users():
			return False
		self.register_user(
			User(
				id=SEED_ADMIN_ID,
				name=SEED_ADMIN_NAME,
				email=SEED_ADMIN_EMAIL,
				password=SEED_ADMIN_PASSWORD,
				role=UserRole.ADMIN,
				must_change_password=True,
			)
		)
		logger.info("seed_admin_created | user_id=%s", SEED_ADMIN_ID)
		return True
