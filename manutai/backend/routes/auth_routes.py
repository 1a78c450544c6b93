"""Authentication and user administration API route declarations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from dependencies import get_identified_user, get_storage, require_admin
from models.user_model import User, UserPublic, UserRole
from services.auth_service import AuthServiceError, authenticate, change_password, create_user
from services.storage_service import InspectionStorage, StorageServiceError

router = APIRouter(prefix="/auth", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class ChangePasswordRequest(BaseModel):
    user_id: str
    new_password: str
    confirm_password: str


class CreateUserRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    role: UserRole = UserRole.TECNICO


@router.get("/status", summary="Auth module health")
def auth_status() -> dict[str, str]:
    """Return auth module readiness status."""
    return {"module": "auth", "status": "ready"}


@router.post("/login", response_model=UserPublic)
def login(request: LoginRequest, storage: InspectionStorage = Depends(get_storage)):
    """Check credentials; a ``must_change_password`` user has to change it before continuing."""
    try:
        user = authenticate(storage, request.email, request.password)
    except AuthServiceError as exc:
        code = status.HTTP_400_BAD_REQUEST if not (request.email and request.password) else status.HTTP_401_UNAUTHORIZED
        raise HTTPException(status_code=code, detail=str(exc)) from exc
    return user.to_public()


@router.post("/change-password", response_model=UserPublic)
def update_password(
    request: ChangePasswordRequest,
    caller: User = Depends(get_identified_user),
    storage: InspectionStorage = Depends(get_storage),
):
    """Change the caller's own password; this also clears a forced-change flag."""
    if request.user_id != caller.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você só pode alterar a sua própria senha.")
    try:
        user = change_password(storage, caller.id, request.new_password, request.confirm_password)
    except AuthServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return user.to_public()


@users_router.get("", response_model=list[UserPublic])
def list_users(
    _: User = Depends(require_admin),
    storage: InspectionStorage = Depends(get_storage),
):
    return [user.to_public() for user in storage.get_users()]


@users_router.post("", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def register(
    request: CreateUserRequest,
    _: User = Depends(require_admin),
    storage: InspectionStorage = Depends(get_storage),
):
    try:
        user = create_user(storage, request.name, request.email, request.password, request.role)
    except AuthServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageServiceError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return user.to_public()


@users_router.delete("/{user_id}")
def remove_user(
    user_id: str,
    _: User = Depends(require_admin),
    storage: InspectionStorage = Depends(get_storage),
):
    try:
        storage.delete_user(user_id)
    except StorageServiceError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    return {"deleted": user_id}
