"""Persistence model for the key-value store holding serialized entity collections."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class KeyValueEntry(Base):
	"""One named collection blob (templates, reports or users) stored as JSON text."""

	__tablename__ = "kv_store"

	key: Mapped[str] = mapped_column(String(120), primary_key=True)
	value: Mapped[str] = mapped_column(Text, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True),
		nullable=False,
		server_default=func.now(),
		onupdate=func.now(),
	)
