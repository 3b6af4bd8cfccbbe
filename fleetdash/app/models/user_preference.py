"""
Per-user preference model.

default_landing_page, when set, overrides the landing page derived from the
user's primary role. The remaining columns are display settings.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False)

    default_landing_page = Column(String(255), nullable=True)

    theme = Column(String(20), default="system", nullable=False)
    language = Column(String(10), default="cs", nullable=False)

    email_notifications = Column(Boolean, default=True, nullable=False)
    push_notifications = Column(Boolean, default=True, nullable=False)
    sms_notifications = Column(Boolean, default=False, nullable=False)

    compact_mode = Column(Boolean, default=False, nullable=False)
    show_avatars = Column(Boolean, default=True, nullable=False)
    auto_refresh = Column(Boolean, default=True, nullable=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserPreference(user_id={self.user_id}, landing='{self.default_landing_page}')>"
