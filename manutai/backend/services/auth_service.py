"""Local email/password authentication and user administration.

Passwords are compared by exact string equality; there is no hashing and no
session or token lifecycle.
"""

from __future__ import annotations

import logging

from models.user_model import User, UserRole
from services.storage_service import InspectionStorage

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 4


class AuthServiceError(ValueError):
	"""Raised for failed logins and rejected account changes."""


def authenticate(storage: InspectionStorage, email: str, password: str) -> User:
	"""Return the matching user; callers must honour ``must_change_password``."""
	if not email or not password:
		raise AuthServiceError("Preencha todos os campos.")

	user = storage.login_user(email, password)
	if user is None:
		logger.info("login_failed | email=%s", email)
		raise AuthServiceError("E-mail ou senha incorretos.")
	return user


def change_password(storage: InspectionStorage, user_id: str, new_password: str, confirm_password: str) -> User:
	if new_password != confirm_password:
		raise AuthServiceError("As senhas não coincidem.")
	if len(new_password) < MIN_PASSWORD_LENGTH:
		raise AuthServiceError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")

	updated = storage.update_user_password(user_id, new_password)
	if updated is None:
		raise AuthServiceError("Erro ao atualizar senha.")
	logger.info("password_changed | user_id=%s", user_id)
	return updated


def create_user(storage: InspectionStorage, name: str, email: str, password: str, role: UserRole) -> User:
	"""Register a new account; a duplicate email raises ``StorageServiceError``."""
	if not name or not email or not password:
		raise AuthServiceError("Preencha todos os campos.")
	return storage.register_user(User(name=name, email=email, password=password, role=role))
