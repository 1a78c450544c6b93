"""Checklist template API route declarations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from dependencies import get_current_user, get_storage, require_admin
from models.checklist_model import ChecklistTemplate
from models.user_model import User
from services.checklist_service import ChecklistServiceError, create_template
from services.storage_service import InspectionStorage

router = APIRouter(prefix="/templates", tags=["templates"])


class TemplateRequest(BaseModel):
    title: str = ""
    description: str = ""
    items: list[str] = Field(default_factory=list)


@router.get("", response_model=list[ChecklistTemplate])
def list_templates(
    _: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    return storage.get_templates()


@router.get("/{template_id}", response_model=ChecklistTemplate)
def get_template(
    template_id: str,
    _: User = Depends(get_current_user),
    storage: InspectionStorage = Depends(get_storage),
):
    template = storage.get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Checklist não encontrado.")
    return template


@router.post("", response_model=ChecklistTemplate, status_code=status.HTTP_201_CREATED)
def save_template(
    request: TemplateRequest,
    _: User = Depends(require_admin),
    storage: InspectionStorage = Depends(get_storage),
):
    try:
        return create_template(storage, request.title, request.description, request.items)
    except ChecklistServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/{template_id}")
def delete_template(
    template_id: str,
    _: User = Depends(require_admin),
    storage: InspectionStorage = Depends(get_storage),
):
    storage.delete_template(template_id)
    return {"deleted": template_id}
