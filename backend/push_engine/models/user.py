"""
User model (only the fields the push engine reads)
"""

from sqlalchemy import Boolean, Column, DateTime, String

from .base import BaseModel


class User(BaseModel):
    """Community member profile"""
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255))
    is_active = Column(Boolean, nullable=False, default=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    last_token_update = Column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
