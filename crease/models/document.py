"""
Backing table for the document store
"""
from typing import Any
from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from crease.database import Base


class Document(Base):
    """
    One top-level record of the document tree, keyed by "collection/id"
    (e.g. "matches/match_123"). Deeper paths live inside `value`.
    """
    __tablename__ = "documents"

    path: Mapped[str] = mapped_column(String(255), primary_key=True)
    collection: Mapped[str] = mapped_column(String(100), index=True)
    value: Mapped[Any] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Document {self.path}>"
