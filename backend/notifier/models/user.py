"""User model - accounts of the scheduling app (read-only here)."""
from sqlalchemy import Boolean, Column, String

from ..database import Base
from .enums import UserRole


class User(Base):
    """An app account, optionally linked to a person in the roster."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)  # Firebase uid
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False, index=True)
    role = Column(String, default=UserRole.MEMBER.value, nullable=False)  # root, minister, member
    linked_person_id = Column(String, nullable=True, index=True)
