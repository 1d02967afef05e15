"""
Cache key conventions shared by the read and write sides of each action.

A mutation must drop exactly the keys its matching reads produced, so both
sides build keys through these helpers.
"""

from datetime import date
from typing import Union

DateLike = Union[date, str]

ALL_ADMINS = "allAdmins"
ALL_CLASSROOMS = "allClassrooms"
ALL_VEHICLES = "allVehicles"
DASHBOARD_ANALYTICS = "dashboard-analytics"

# Prefixes for list-level keys
EMPLOYEES_PREFIX = "employees-"
STUDENTS_PREFIX = "students-"
PAYMENTS_PREFIX = "payments-"
DAILY_ATTENDANCE_PREFIX = "attendance-"
EMPLOYEE_ATTENDANCE_PREFIX = "employee-attendance-"


def _fmt(value: DateLike) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


def employee_details(employee_id: str) -> str:
    return f"employee-details-{employee_id}"


def employees_search(q: str, page: int, limit: int, ascending: bool) -> str:
    return f"{EMPLOYEES_PREFIX}{q}-{str(ascending).lower()}-{page}-{limit}"


def daily_attendance(day: DateLike) -> str:
    return f"{DAILY_ATTENDANCE_PREFIX}{_fmt(day)}"


def employee_attendance(employee_id: str, start_date: DateLike, end_date: DateLike) -> str:
    return f"{EMPLOYEE_ATTENDANCE_PREFIX}{employee_id}-{_fmt(start_date)}-{_fmt(end_date)}"


def payments(start_date: DateLike, end_date: DateLike, page: int, limit: int, ascending: bool) -> str:
    return f"{PAYMENTS_PREFIX}{_fmt(start_date)}-{_fmt(end_date)}-{page}-{limit}-{str(ascending).lower()}"


def classroom_details(classroom_id: str) -> str:
    return f"classroom-details-{classroom_id}"


def classroom_sections(classroom_id: str) -> str:
    return f"classroom-sections-{classroom_id}"


def vehicle_details(vehicle_id: str) -> str:
    return f"vehicle-details-{vehicle_id}"


def students_search(q: str, page: int, limit: int, ascending: bool) -> str:
    return f"{STUDENTS_PREFIX}{q}-{str(ascending).lower()}-{page}-{limit}"
