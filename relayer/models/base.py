"""
Declarative base for all models.
"""

from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def new_uuid() -> str:
    """Generate a string UUID primary key."""
    return str(uuid4())
