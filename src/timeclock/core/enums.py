from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles; the role decides what a reviewer may see and decide."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class RequestStatus(str, Enum):
    """Review lifecycle shared by leave and time-correction requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StatusFilter(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ALL = "all"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
