"""Database connectivity and the opaque key-value persistence boundary."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import get_settings


settings = get_settings()

Base = declarative_base()


def _build_engine():
	"""Create the SQLAlchemy engine backing the key-value store."""
	database_url = settings.database_url
	engine_kwargs: dict[str, object] = {
		"pool_pre_ping": True,
		"pool_recycle": 1800,
	}

	if database_url.startswith("postgresql"):
		engine_kwargs.update(
			{
				"pool_size": 5,
				"max_overflow": 10,
				"pool_timeout": 30,
			}
		)
	elif database_url.startswith("sqlite"):
		engine_kwargs.update({"connect_args": {"check_same_thread": False}})

	return create_engine(database_url, **engine_kwargs)

engine = _build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


class KeyValueStore(ABC):
	"""Opaque string get/set store; one serialized blob per key."""

	@abstractmethod
	def get(self, key: str) -> str | None:
		"""Return the stored value for ``key`` or ``None`` when absent."""

	@abstractmethod
	def set(self, key: str, value: str) -> None:
		"""Replace the stored value for ``key``."""


class SqlKeyValueStore(KeyValueStore):
	"""Key-value store persisted as rows of the ``kv_store`` table."""

	def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
		self._session_factory = session_factory

	def get(self, key: str) -> str | None:
		from models.kv_model import KeyValueEntry

		with self._session_factory() as session:
			entry = session.execute(select(KeyValueEntry).where(KeyValueEntry.key == key)).scalar_one_or_none()
			return entry.value if entry is not None else None

	def set(self, key: str, value: str) -> None:
		from models.kv_model import KeyValueEntry

		with self._session_factory() as session:
			entry = session.get(KeyValueEntry, key)
			if entry is None:
				session.add(KeyValueEntry(key=key, value=value))
			else:
				entry.value = value
			session.commit()


def init_db() -> None:
	"""Create registered metadata tables at application startup."""
	from models import kv_model  # noqa: F401

	Base.metadata.create_all(bind=engine)


def check_database_connection() -> bool:
	"""Run a lightweight readiness query against the configured database."""
	try:
		with engine.connect() as connection:
			connection.execute(text("SELECT 1"))
		return True
	except SQLAlchemyError:
		return False
