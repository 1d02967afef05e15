"""
Admin listing and attendance bookkeeping calls.
"""

from typing import Any

from service_console.app.actions.base import BackendActions
from service_console.app.caching import keys
from service_console.app.domain.envelope import ResponseEnvelope, success


class AdminActions(BackendActions):
    resource = "admin"

    async def get_all_admins(self) -> ResponseEnvelope:
        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_all_admins", "GET", "/v1/employee/admins",
                on_success=lambda body: success(message="All Admins Fetched Successfully", data=body),
                failure_message="Failed to get all admins",
            )

        return await self._cached(keys.ALL_ADMINS, self.list_ttl, _fetch)

    async def generate_daily_attendance_entries(self) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._invalidate(prefixes=(keys.DAILY_ATTENDANCE_PREFIX, keys.EMPLOYEE_ATTENDANCE_PREFIX))
            return success(message="Daily Attendance Entries Generated Successfully")

        return await self._request(
            "generate_daily_attendance_entries", "POST", "/v1/employee/attendance/generate",
            on_success=_done,
            failure_message="Failed to generate daily attendance entries",
        )
