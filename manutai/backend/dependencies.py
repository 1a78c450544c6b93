"""Shared dependency providers and injectable backend application dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from config import get_settings
from database import KeyValueStore, SqlKeyValueStore
from models.user_model import User, UserRole
from services.assistant_service import InspectionAssistant
from services.inspection_service import InspectionSessionRegistry
from services.storage_service import InspectionStorage

PASSWORD_CHANGE_REQUIRED = "Altere sua senha antes de continuar."


def get_key_value_store() -> KeyValueStore:
	"""Expose the key-value store backing every entity collection."""
	return SqlKeyValueStore()


def get_storage(store: KeyValueStore = Depends(get_key_value_store)) -> InspectionStorage:
	return InspectionStorage(store)


@lru_cache(maxsize=1)
def get_assistant() -> InspectionAssistant:
	return InspectionAssistant()


@lru_cache(maxsize=1)
def get_session_registry() -> InspectionSessionRegistry:
	"""Process-wide registry of live inspection sessions."""
	return InspectionSessionRegistry()


def get_session_pacing_seconds() -> float:
	return get_settings().SESSION_PACING_SECONDS


def get_identified_user(
	x_user_id: str | None = Header(default=None),
	storage: InspectionStorage = Depends(get_storage),
) -> User:
	"""Resolve the calling user from the ``X-User-Id`` header."""
	user = storage.get_user(x_user_id) if x_user_id else None
	if user is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário não identificado.")
	return user


def get_current_user(user: User = Depends(get_identified_user)) -> User:
	"""Identified caller who has no pending forced password change."""
	if user.must_change_password:
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=PASSWORD_CHANGE_REQUIRED)
	return user


def require_admin(user: User = Depends(get_current_user)) -> User:
	if user.role is not UserRole.ADMIN:
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso restrito a administradores.")
	return user
