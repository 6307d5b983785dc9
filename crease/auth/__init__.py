"""
Admin identity for scoring and tournament management
"""
from crease.auth.utils import get_current_admin, login_admin, encode_admin_id, decode_admin_id

__all__ = [
    "get_current_admin",
    "login_admin",
    "encode_admin_id",
    "decode_admin_id",
]
