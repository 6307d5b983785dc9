"""
Admin record stored under admins/{adminId}
"""
from typing import Optional

from pydantic import Field

from crease.models.match import CamelModel


class AdminRecord(CamelModel):
    """
    A scorer. Created on first login; the id is derived from the username,
    so this is an attribution label rather than an account.
    """
    username: str
    created_at_epoch_ms: int

    # Key of the record, not stored inside it
    admin_id: Optional[str] = Field(default=None, exclude=True)

    def __repr__(self):
        return f"<Admin '{self.username}'>"
