from enum import Enum


class UserRole(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class TermStatus(str, Enum):
    """Status of one fee term, and of a fee record overall."""

    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CHEQUE = "Cheque"
    ONLINE = "Online"
    CARD = "Card"


class FeeTermKey(str, Enum):
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"


class PaymentVerificationStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class PersonType(str, Enum):
    STUDENTS = "students"
    TEACHERS = "teachers"


class AttendanceStatus(str, Enum):
    UNSET = ""
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"  # teachers only
    HALF_DAY = "Half Day"
    LEAVE = "Leave"


class AnnouncementTarget(str, Enum):
    ALL = "all"
    ALL_STUDENTS = "all_students"
    ALL_TEACHERS = "all_teachers"
    ALL_PARENTS = "all_parents"
