"""
Permission enumeration.

Defines the closed permission vocabulary of the fleet dashboard.
"""

import enum


class Permission(str, enum.Enum):
    """
    Fixed permission keys. Values are wire-level constants and must not change.

    Permissions:
        VIEW_DASHBOARD: Read access to the dashboard overview
        MANAGE_USERS: Create, edit and delete user accounts
        MANAGE_VEHICLES: Edit vehicles, repairs and fuel logs
        VIEW_REPORTS: Charts and exported reports
        MANAGE_DISTRIBUTION: Plan newspaper delivery routes
        DRIVER_ACCESS: Driver route screens
        MANAGE_ROLES: Create, edit and delete roles
    """
    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_USERS = "manage_users"
    MANAGE_VEHICLES = "manage_vehicles"
    VIEW_REPORTS = "view_reports"
    MANAGE_DISTRIBUTION = "manage_distribution"
    DRIVER_ACCESS = "driver_access"
    MANAGE_ROLES = "manage_roles"
