"""
backend/cleanconnect/database/enums.py

Enumerations

Defines enumerations shared across the platform:
- UserRole: Roles assigned to users
- NotificationType: Category of an in-app notification
"""

from enum import Enum

# ---------------------------------------------------
# User Role Enumeration
# ---------------------------------------------------


class UserRole(str, Enum):
    """
    Enum representing user roles for access control.

    Values:
    - USER (requests cleaning services)
    - CLEANER
    - ADMIN
    - MODERATOR
    """

    USER = "user"
    CLEANER = "cleaner"
    ADMIN = "admin"
    MODERATOR = "moderator"


# ---------------------------------------------------
# Notification Type Enumeration
# ---------------------------------------------------


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"
    SYSTEM = "system"
