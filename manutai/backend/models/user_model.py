"""User account entities for local authentication and role gating."""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
	"""Access role of a platform user."""

	ADMIN = "ADMIN"
	TECNICO = "TECNICO"


class User(BaseModel):
	"""User account as persisted in the users collection."""

	id: str = Field(default_factory=lambda: str(uuid.uuid4()))
	name: str
	email: str
	password: str
	role: UserRole = UserRole.TECNICO
	must_change_password: bool = False

	def to_public(self) -> "UserPublic":
		return UserPublic(
			id=self.id,
			name=self.name,
			email=self.email,
			role=self.role,
			must_change_password=self.must_change_password,
		)


class UserPublic(BaseModel):
	"""User projection returned over the API; never carries the password."""

	id: str
	name: str
	email: str
	role: UserRole
	must_change_password: bool = False
