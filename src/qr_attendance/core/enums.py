from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role flag stored on the user's own record; used for authorization."""

    ADMIN = "admin"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class IdStrategy(str, Enum):
    """Naming strategies for generated student identifiers."""

    NAME_BASED = "name-based"
    YEAR_BASED = "year-based"
    SEQUENTIAL = "sequential"
    HYBRID = "hybrid"
    ROLL_BASED = "roll-based"


class CleanupType(str, Enum):
    ALL = "all"
    EXPIRED = "expired"
    OLD = "old"
