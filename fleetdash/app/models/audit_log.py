"""
Audit Log Database Model.

Tracks authentication events and administrative role/user mutations.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking security events and admin actions.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / SESSION_REFRESHED
    - ROLE_CREATED / ROLE_UPDATED / ROLE_DELETED
    - USER_CREATED / USER_UPDATED / USER_DELETED
    - USER_ROLES_CHANGED (for privilege escalation detection)
    - PREFERENCES_UPDATED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What was acted upon ("ROLE" / "USER") and its id
    entity_type = Column(String(20), nullable=True, index=True)
    entity_id = Column(String(50), nullable=True, index=True)

    # Additional context (old/new values, failure reasons)
    meta_data = Column(JSON, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, entity={self.entity_type}:{self.entity_id})>"
