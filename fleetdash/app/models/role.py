"""
Role and RolePermission database models.

A role carries its navigation grant (allowed_pages, default_landing_page)
directly on the row; its permissions live in role_permissions, one row per
permission key.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base
from fleetdash.app.models.enums import Permission


class Role(Base):
    """
    Named role managed by administrators.

    System roles (the seeded ADMIN) cannot be renamed or deleted.
    """
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(50), unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    # Ordered list of path patterns, see services.path_matcher
    allowed_pages = Column(JSON, nullable=False, default=list)
    default_landing_page = Column(String(255), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    priority = Column(Integer, default=0, nullable=False)

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}', active={self.is_active})>"


class RolePermission(Base):
    """One granted permission of a role. Row id order is the submitted order."""
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission", name="uq_role_permission"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), index=True, nullable=False)
    permission = Column(Enum(Permission), nullable=False)

    def __repr__(self):
        return f"<RolePermission(role_id={self.role_id}, permission='{self.permission.value}')>"
