"""ManutAI API entrypoint: app factory, lifecycle, middleware and error envelope."""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings
from database import SqlKeyValueStore, check_database_connection, init_db
from dependencies import get_assistant, get_session_registry
from routes.auth_routes import router as auth_router
from routes.auth_routes import users_router
from routes.inspection_routes import router as inspection_router
from routes.report_routes import router as report_router
from routes.template_routes import router as template_router
from services.storage_service import InspectionStorage


def configure_logging(settings: Settings) -> logging.Logger:
	level = getattr(logging, settings.log_level.upper(), logging.INFO)
	logging.basicConfig(level=level, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
	logger = logging.getLogger("manutai")
	logger.setLevel(level)
	return logger


settings = get_settings()
logger = configure_logging(settings)


def bootstrap_storage(storage: InspectionStorage) -> None:
	"""Seed the default administrator and log what the store already holds."""
	if storage.seed_initial_admin():
		logger.warning("seed_admin_created | email=admin@manutai.com | password change required on first login")
	logger.info(
		"storage_ready | templates=%s | reports=%s | users=%s",
		len(storage.get_templates()),
		len(storage.get_reports()),
		len(storage.get_users()),
	)


@asynccontextmanager
async def lifespan(app: FastAPI):
	logger.info(
		"startup | app=%s | version=%s | environment=%s | pacing_s=%s",
		settings.app_name,
		settings.app_version,
		settings.environment,
		settings.SESSION_PACING_SECONDS,
	)
	init_db()
	bootstrap_storage(InspectionStorage(SqlKeyValueStore()))
	if not get_assistant().uses_model:
		logger.warning("assistant_fallback_only | OPENAI_API_KEY is a placeholder, questions and summaries use fixed text")

	app.state.started_at = time.time()
	app.state.instance_id = str(uuid.uuid4())
	yield

	# live sessions are in-process only; anything unfinished is lost here
	logger.info("shutdown | app=%s | abandoned_sessions=%s", settings.app_name, len(get_session_registry()))


def add_cors_middleware(app: FastAPI, app_settings: Settings) -> None:
	app.add_middleware(
		CORSMiddleware,
		allow_origins=app_settings.allowed_cors_origins,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)


def add_request_context_middleware(app: FastAPI) -> None:
	"""Tag every request with an id and log its outcome and latency."""

	@app.middleware("http")
	async def request_context(request: Request, call_next: Callable):
		request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
		started = time.perf_counter()

		response = await call_next(request)

		elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
		response.headers["X-Request-ID"] = request.state.request_id
		response.headers["X-Response-Time-ms"] = str(elapsed_ms)
		logger.info(
			"request | id=%s | user=%s | %s %s | status=%s | latency_ms=%s",
			request.state.request_id,
			request.headers.get("X-User-Id", "-"),
			request.method,
			request.url.path,
			response.status_code,
			elapsed_ms,
		)
		return response


def error_response(request: Request, status_code: int, error_type: str, message: Any, **extra: Any) -> JSONResponse:
	"""Uniform error body: ``{"error": {"type", "message", "request_id", ...}}``."""
	body = {
		"type": error_type,
		"message": message,
		"request_id": getattr(request.state, "request_id", "unknown"),
		**extra,
	}
	return JSONResponse(status_code=status_code, content={"error": body})


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(StarletteHTTPException)
	async def http_error(request: Request, exc: StarletteHTTPException):
		return error_response(request, exc.status_code, "http_error", exc.detail)

	@app.exception_handler(RequestValidationError)
	async def validation_error(request: Request, exc: RequestValidationError):
		return error_response(
			request,
			status.HTTP_422_UNPROCESSABLE_ENTITY,
			"validation_error",
			"Dados da requisição inválidos.",
			details=exc.errors(),
		)

	@app.exception_handler(Exception)
	async def unexpected_error(request: Request, exc: Exception):
		logger.exception("unhandled_exception | request_id=%s", getattr(request.state, "request_id", "unknown"))
		return error_response(
			request,
			status.HTTP_500_INTERNAL_SERVER_ERROR,
			"internal_server_error",
			"Ocorreu um erro inesperado.",
		)


def register_routes(app: FastAPI, app_settings: Settings) -> None:
	for router in (auth_router, users_router, template_router, inspection_router, report_router):
		app.include_router(router, prefix=app_settings.api_prefix)


def create_app() -> FastAPI:
	app = FastAPI(
		title=settings.app_name,
		version=settings.app_version,
		description=settings.app_description,
		lifespan=lifespan,
		docs_url="/docs",
		redoc_url="/redoc",
		openapi_url=f"{settings.api_prefix}/openapi.json",
	)

	add_cors_middleware(app, settings)
	add_request_context_middleware(app)
	register_exception_handlers(app)
	register_routes(app, settings)

	@app.get("/", tags=["system"], summary="Service identity")
	def root() -> dict[str, str]:
		return {"service": settings.app_name, "version": settings.app_version, "status": "running"}

	@app.get("/health", tags=["system"], summary="Database, assistant and session health")
	def health_check() -> dict[str, object]:
		db_ok = check_database_connection()
		started_at = getattr(app.state, "started_at", None)
		return {
			"status": "healthy" if db_ok else "degraded",
			"environment": settings.environment,
			"version": settings.app_version,
			"instance_id": getattr(app.state, "instance_id", None),
			"database": {"connected": db_ok},
			"assistant": {"mode": "model" if get_assistant().uses_model else "fallback"},
			"live_sessions": len(get_session_registry()),
			"uptime_seconds": int(time.time() - started_at) if started_at else 0,
		}

	return app


app = create_app()
