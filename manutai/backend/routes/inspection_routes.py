"""Conversational inspection session API route declarations."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from dependencies import (
    get_assistant,
    get_current_user,
    get_session_pacing_seconds,
    get_session_registry,
    get_storage,
)
from models.report_model import ChatMessage, InspectionReport
from models.user_model import User
from services.assistant_service import InspectionAssistant
from services.inspection_service import (
    InspectionSession,
    InspectionSessionError,
    InspectionSessionRegistry,
    SessionPhase,
)
from services.storage_service import InspectionStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inspections", tags=["inspections"])


class StartInspectionRequest(BaseModel):
    template_id: str


class AnswerRequest(BaseModel):
    text: str = ""


class InspectionState(BaseModel):
    session_id: str
    template_id: str
    template_title: str
    phase: SessionPhase
    step: int
    total_steps: int
    messages: list[ChatMessage]
    report: InspectionReport | None = None


def _state(session: InspectionSession) -> InspectionState:
    step, total = session.progress()
    return InspectionState(
        session_id=session.id,
        template_id=session.template.id,
        template_title=session.template.title,
        phase=session.phase,
        step=step,
        total_steps=total,
        messages=session.messages,
        report=session.report,
    )


def _owned_session(registry: InspectionSessionRegistry, session_id: str, user: User) -> InspectionSession:
    session = registry.get(session_id)
    if session is None or session.technician.id != user.id:
        raise HTTPException(status_code=404, detail="Sessão de inspeção não encontrada.")
    return session


@router.post("", response_model=InspectionState, status_code=status.HTTP_201_CREATED)
def start_inspection(
    request: StartInspectionRequest,
    user: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
    assistant: InspectionAssistant = Depends(get_assistant),
    registry: InspectionSessionRegistry = Depends(get_session_registry),
    pacing_seconds: float = Depends(get_session_pacing_seconds),
):
    template = storage.get_template(request.template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Checklist não encontrado.")

    session = InspectionSession(
        template=template,
        technician=user,
        assistant=assistant,
        storage=storage,
        pacing_seconds=pacing_seconds,
    )
    registry.add(session)
    session.start()
    if session.phase is SessionPhase.COMPLETED:
        registry.discard(session.id)
    return _state(session)


@router.get("/{session_id}", response_model=InspectionState)
def get_inspection(
    session_id: str,
    user: User = Depends(get_current_user),
    registry: InspectionSessionRegistry = Depends(get_session_registry),
):
    return _state(_owned_session(registry, session_id, user))


@router.post("/{session_id}/answers", response_model=InspectionState)
def submit_answer(
    session_id: str,
    request: AnswerRequest,
    user: User = Depends(get_current_user),
    registry: InspectionSessionRegistry = Depends(get_session_registry),
):
    session = _owned_session(registry, session_id, user)
    try:
        report = session.submit_answer(request.text)
    except InspectionSessionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if report is not None:
        registry.discard(session.id)
    return _state(session)


@router.delete("/{session_id}")
def cancel_inspection(
    session_id: str,
    user: User = Depends(get_current_user),
    registry: InspectionSessionRegistry = Depends(get_session_registry),
):
    """Abandon a live session; nothing about it is persisted."""
    session = _owned_session(registry, session_id, user)
    registry.discard(session.id)
    logger.info("session_cancelled | session_id=%s | phase=%s", session.id, session.phase.value)
    return {"cancelled": session_id}
