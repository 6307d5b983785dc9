from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from crease.config import settings

DATABASE_URL = f"sqlite:///{settings.DATABASE_PATH}"

engine = create_engine(DATABASE_URL, echo=False, connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(bind=engine)


class Base(DeclarativeBase):
    pass


def init_db(bind=None):
    """Create all tables"""
    from crease.models import document  # noqa
    Base.metadata.create_all(bind=bind or engine)
