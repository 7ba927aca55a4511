"""Table of live sessions, keyed by the signature segment of the issued token."""

from sqlalchemy import Column, ForeignKey, Integer, String

from pizza_core.models.base import Base


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token_fragment = Column(String(512), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
