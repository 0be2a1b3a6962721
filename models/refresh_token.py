"""
RefreshToken model: one row per live refresh token (one per logged-in device).
Fields:
- id: the jti claim embedded in the refresh token, used for keyed lookup
- user_id (String(36)) - FK to users.id
- token_hash: argon2 hash of the full token string, never the token itself
- expires_at, created_at
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id}>"
