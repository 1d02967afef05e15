"""
Backend client functions, one class per resource.

Every coroutine returns a ``ResponseEnvelope``. Reads consult the shared
``ResponseCache`` first; writes drop the keys their matching reads use.
"""

from .admin import AdminActions
from .analytics import AnalyticsActions, DashboardAnalytics
from .classroom import ClassroomActions
from .employee import EmployeeActions, UpdateAttendanceParams
from .student import StudentActions
from .vehicle import VehicleActions

__all__ = [
    "AdminActions",
    "AnalyticsActions",
    "ClassroomActions",
    "DashboardAnalytics",
    "EmployeeActions",
    "StudentActions",
    "UpdateAttendanceParams",
    "VehicleActions",
]
