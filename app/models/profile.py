"""
Profile model.

One row per authenticated account. The id is the auth provider's user id and
is shared with the candidates table for candidate accounts.
"""

import enum
import uuid
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class UserRole(str, enum.Enum):
    CANDIDATE = "candidate"
    MANAGER = "manager"
    HR = "hr"
    DIRECTOR = "director"
    ADMIN = "admin"


STAFF_ROLES = frozenset({UserRole.MANAGER, UserRole.HR, UserRole.DIRECTOR, UserRole.ADMIN})


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)

    # Plain string so unknown roles coming from the auth provider don't break loads
    role = Column(String, nullable=False, default=UserRole.CANDIDATE.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    candidate = relationship(
        "Candidate",
        back_populates="profile",
        uselist=False,
        foreign_keys="[Candidate.id]",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role={self.role})>"
