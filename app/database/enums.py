"""
app/database/enums.py

Enumerations

Platform-wide enumerations:
- UserRole: Roles assigned to accounts (User, Vendor, Rider, Admin)
- ApprovalStatus: Admin review state for vendor and rider profiles
"""

from enum import Enum

# ---------------------------------------------------
# User Role Enumeration
# ---------------------------------------------------


class UserRole(str, Enum):
    """
    Enum representing user roles for access control.

    Values:
    - USER (customer placing orders)
    - VENDOR
    - RIDER
    - ADMIN
    """

    USER = "USER"
    VENDOR = "VENDOR"
    RIDER = "RIDER"
    ADMIN = "ADMIN"


# ---------------------------------------------------
# Approval Status Enumeration
# ---------------------------------------------------


class ApprovalStatus(str, Enum):
    """
    Enum representing the admin review state of a vendor or rider profile.

    Values:
    - PENDING
    - APPROVED
    - REJECTED
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
