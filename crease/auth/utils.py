"""
Admin identity - username-derived ids and the request dependency
"""
import base64
import binascii
import logging
import time

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from crease.models.admin import AdminRecord
from crease.store import DocumentStore, get_store

logger = logging.getLogger(__name__)

# Admin id header sent with every admin request
admin_header = APIKeyHeader(name="X-Admin-Id", auto_error=False)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def encode_admin_id(username: str) -> str:
    """Reversible id for a username. Anyone who knows the name can forge it."""
    raw = normalize_username(username).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_admin_id(admin_id: str) -> str:
    """Username for an admin id. Raises ValueError if it is not a valid id."""
    padded = admin_id + "=" * (-len(admin_id) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise ValueError(f"Invalid admin id: {admin_id}") from e


def login_admin(store: DocumentStore, username: str) -> AdminRecord:
    """Find the admin for `username`, creating the record on first login"""
    name = normalize_username(username)
    if not name:
        raise ValueError("Username is required")

    admin_id = encode_admin_id(name)
    doc = store.get(f"admins/{admin_id}")
    if doc is not None:
        return AdminRecord.model_validate({**doc, "admin_id": admin_id})

    admin = AdminRecord(username=name, created_at_epoch_ms=int(time.time() * 1000), admin_id=admin_id)
    store.set(f"admins/{admin_id}", admin.to_document())
    logger.info("New admin %s", name)
    return admin


def load_admin(store: DocumentStore, admin_id: str):
    doc = store.get(f"admins/{admin_id}")
    if doc is None:
        return None
    return AdminRecord.model_validate({**doc, "admin_id": admin_id})


def get_current_admin(
    admin_id: str = Depends(admin_header),
    store: DocumentStore = Depends(get_store),
) -> AdminRecord:
    """
    FastAPI dependency for admin routes.
    Use this in route functions: admin: AdminRecord = Depends(get_current_admin)
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unknown admin - log in first",
    )
    if not admin_id:
        raise credentials_exception
    try:
        decode_admin_id(admin_id)
    except ValueError:
        logger.warning("Malformed admin id %r", admin_id)
        raise credentials_exception

    admin = load_admin(store, admin_id)
    if admin is None:
        raise credentials_exception
    return admin
