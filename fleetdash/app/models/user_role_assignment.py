"""
User to role assignment model.

The role side is a soft reference by role name: there is no storage-level
foreign key, so integrity (no deletion of an assigned role, renames) is
enforced by the role registry.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base


class UserRoleAssignment(Base):
    __tablename__ = "user_role_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "role_name", name="uq_user_role"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    role_name = Column(String(50), index=True, nullable=False)

    # Assignment order; position 0 is the primary role
    position = Column(Integer, default=0, nullable=False)

    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserRoleAssignment(user_id={self.user_id}, role='{self.role_name}', position={self.position})>"
