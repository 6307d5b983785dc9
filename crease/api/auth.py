"""
Authentication API routes
"""
from fastapi import APIRouter, Depends, HTTPException, status

from crease.api.deps import http_error
from crease.api.schemas import LoginRequest, LoginResponse
from crease.auth.utils import get_current_admin, login_admin
from crease.errors import CreaseError
from crease.models.admin import AdminRecord
from crease.store import DocumentStore, get_store

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, store: DocumentStore = Depends(get_store)):
    """
    Log in by username. The admin record is created on first login.
    Send the returned adminId as the X-Admin-Id header on admin requests.
    """
    try:
        admin = login_admin(store, request.username)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CreaseError as e:
        raise http_error(e) from e
    return LoginResponse(admin_id=admin.admin_id, username=admin.username)


@router.get("/me", response_model=LoginResponse)
def get_me(admin: AdminRecord = Depends(get_current_admin)):
    return LoginResponse(admin_id=admin.admin_id, username=admin.username)
