"""
Employee, attendance and admin-role calls against the school backend.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, Optional, Union

from shared.errors import BackendError
from service_console.app.actions.base import BackendActions, clamp_pagination, field, image_upload
from service_console.app.caching import keys
from service_console.app.domain.check_in import within_check_in_radius
from service_console.app.domain.envelope import ResponseEnvelope, error, success


@dataclass
class UpdateAttendanceParams:
    """Changes to one attendance entry of one employee."""

    employee_id: str
    attendance_id: str
    is_present: bool
    is_leave: bool
    clock_in_time: Optional[Union[time, datetime]] = None
    is_holiday: bool = False
    is_invalid: bool = False

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "isPresent": self.is_present,
            "isLeave": self.is_leave,
            "isHoliday": self.is_holiday,
            "isInvalid": self.is_invalid,
        }
        if self.clock_in_time is not None:
            body["clockInTime"] = self.clock_in_time.strftime("%H:%M:%S")
        return body


class EmployeeActions(BackendActions):
    """Backend calls behind the employee screens."""

    resource = "employee"

    def _employee_changed(self, employee_id: Optional[str] = None) -> None:
        self._invalidate(keys.DASHBOARD_ANALYTICS, prefixes=(keys.EMPLOYEES_PREFIX,))
        if employee_id:
            self.cache.invalidate(keys.employee_details(employee_id))

    def _attendance_changed(self) -> None:
        self._invalidate(prefixes=(keys.DAILY_ATTENDANCE_PREFIX, keys.EMPLOYEE_ATTENDANCE_PREFIX))

    async def add_new_employee(self, values: Dict[str, Any]) -> ResponseEnvelope:
        self.logger.debug("Adding employee", fields=sorted(values))

        def _done(body: Any) -> ResponseEnvelope:
            self._employee_changed()
            return success(message="Employee Added Successfully")

        return await self._request(
            "add_new_employee", "POST", "/v1/employee/new",
            json=values,
            on_success=_done,
            failure_message="Failed to add employee",
        )

    async def update_employee(self, employee_id: Optional[str], values: Dict[str, Any]) -> ResponseEnvelope:
        if not employee_id:
            return error(message="Employee ID is required")

        payload = {name: value for name, value in values.items() if name != "id"}

        def _done(body: Any) -> ResponseEnvelope:
            self._employee_changed(employee_id)
            return success(message="Employee Updated Successfully")

        return await self._request(
            "update_employee", "PUT", f"/v1/employee/{employee_id}",
            json=payload,
            on_success=_done,
            failure_message="Failed to update employee",
        )

    async def delete_employee(self, employee_id: Optional[str]) -> ResponseEnvelope:
        if not employee_id:
            return error(message="Employee ID is required")

        def _done(body: Any) -> ResponseEnvelope:
            self._employee_changed(employee_id)
            return success(message="Employee Deleted Successfully")

        return await self._request(
            "delete_employee", "DELETE", f"/v1/employee/{employee_id}",
            on_success=_done,
            failure_message="Failed to delete employee",
        )

    async def fetch_employee_details(self, employee_id: Optional[str]) -> ResponseEnvelope:
        if not employee_id:
            return error(message="Employee ID is required")

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "fetch_employee_details", "GET", f"/v1/employee/{employee_id}",
                on_success=lambda body: success(message="Employee Fetched Successfully", data=field(body, "employee")),
                failure_message="Failed to fetch employee",
            )

        return await self._cached(keys.employee_details(employee_id), self.detail_ttl, _fetch)

    async def search_employees(self, q: str = "", page: int = 1, limit: int = 10,
                               ascending: bool = False) -> ResponseEnvelope:
        page, limit = clamp_pagination(page, limit)

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "search_employees", "GET", "/v1/employee/",
                params={"q": q, "page": page, "limit": limit, "ascending": ascending},
                on_success=lambda body: success(
                    message="Data Fetched",
                    data=field(body, "employees", []),
                    count=field(body, "count"),
                ),
                failure_message="Failed to search employees",
            )

        return await self._cached(keys.employees_search(q, page, limit, ascending), self.list_ttl, _fetch)

    async def get_daily_attendance(self, day: date) -> ResponseEnvelope:
        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_daily_attendance", "GET", "/v1/employee/attendance",
                params={"date": day},
                on_success=lambda body: success(message=field(body, "message"), data=body),
                failure_message="Failed to get daily attendance",
            )

        return await self._cached(keys.daily_attendance(day), self.list_ttl, _fetch)

    async def get_employee_attendance(self, employee_id: str, start_date: date, end_date: date) -> ResponseEnvelope:
        if not employee_id:
            return error(message="Employee ID is required")

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_employee_attendance", "GET", f"/v1/employee/{employee_id}/attendance",
                params={"start_date": start_date, "end_date": end_date},
                on_success=lambda body: success(message=field(body, "message"), data=field(body, "attendance", [])),
                failure_message="Failed to get employee attendance",
            )

        return await self._cached(
            keys.employee_attendance(employee_id, start_date, end_date), self.list_ttl, _fetch
        )

    async def set_date_as_holiday(self, day: date) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._attendance_changed()
            return success(message=field(body, "message"))

        return await self._request(
            "set_date_as_holiday", "POST", "/v1/employee/attendance/set-date-as-holiday",
            json={"date": day.isoformat()},
            on_success=_done,
            failure_message="Failed to set date as holiday",
        )

    async def make_admin(self, employee_id: str, target_employee_id: str) -> ResponseEnvelope:
        return await self._change_admin_role("make-admin", employee_id, target_employee_id)

    async def remove_admin(self, employee_id: str, target_employee_id: str) -> ResponseEnvelope:
        return await self._change_admin_role("remove-admin", employee_id, target_employee_id)

    async def _change_admin_role(self, action: str, employee_id: str, target_employee_id: str) -> ResponseEnvelope:
        self.logger.info(
            "Changing admin role",
            action=action,
            acting_employee=employee_id,
            target_employee=target_employee_id
        )
        if not employee_id or not target_employee_id:
            return error(message="Employee ID and target employee ID are required")

        try:
            body = await self.backend.post(
                f"/v1/employee/{employee_id}/{action}",
                json={"targetEmployeeId": target_employee_id},
            )
        except BackendError as exc:
            if exc.is_conflict:
                # Role already in the requested state
                return success(message=exc.reason)
            return self._failure(action, exc, "Failed to change admin permissions")

        self._invalidate(keys.ALL_ADMINS, keys.employee_details(target_employee_id), keys.DASHBOARD_ANALYTICS)
        return success(message=field(body, "message"))

    async def update_employee_profile_image(self, employee_id: str, filename: str, content: bytes,
                                            content_type: Optional[str] = None) -> ResponseEnvelope:
        if not employee_id:
            return error(message="Employee ID is required")

        def _done(body: Any) -> ResponseEnvelope:
            self.cache.invalidate(keys.employee_details(employee_id))
            return success(message=field(body, "message"))

        return await self._request(
            "update_employee_profile_image", "POST", f"/v1/employee/{employee_id}/image",
            files=image_upload(filename, content, content_type),
            on_success=_done,
            failure_message="Failed to update profile image",
        )

    async def update_attendance(self, params: UpdateAttendanceParams) -> ResponseEnvelope:
        self.logger.debug("Updating attendance", employee_id=params.employee_id, attendance_id=params.attendance_id)

        if not params.employee_id or not params.attendance_id:
            return error(message="Employee ID and Attendance ID are required")

        def _done(body: Any) -> ResponseEnvelope:
            self._attendance_changed()
            return success(message="Attendance Updated Successfully", data=body)

        return await self._request(
            "update_attendance", "PATCH",
            f"/v1/employee/{params.employee_id}/attendance/{params.attendance_id}",
            json=params.to_body(),
            on_success=_done,
            failure_message="Failed to update attendance",
        )

    async def check_in(
        self,
        employee_id: str,
        latitude: float,
        longitude: float,
        take_leave: bool = False,
        now: Optional[datetime] = None,
    ) -> ResponseEnvelope:
        """Mark today's attendance entry of ``employee_id`` as present or on leave.

        The caller's position must lie within ``check_in_radius`` meters of
        the configured check-in site. Today's entry is created by the daily
        attendance generation; without it there is nothing to update.
        """
        if not employee_id:
            return error(message="Employee ID not found. Please contact administrator.")

        if not within_check_in_radius(latitude, longitude, self.config.check_in_lat,
                                      self.config.check_in_lng, self.config.check_in_radius):
            self.logger.info("Check-in outside allowed radius", employee_id=employee_id)
            return error(message="You are not within the allowed check-in radius")

        now = now or datetime.now()
        today = now.date()
        # Entries may have been generated since the last cached read
        self.cache.invalidate(keys.employee_attendance(employee_id, today, today))
        attendance = await self.get_employee_attendance(employee_id, today, today)
        entries = attendance.payload
        first = entries[0] if isinstance(entries, list) and entries else None
        attendance_id = first.get("attendanceId") if isinstance(first, dict) else None
        if not attendance_id:
            return error(message="Attendance details not found. Please wait for system to sync or contact administrator.")

        if take_leave:
            params = UpdateAttendanceParams(employee_id, attendance_id, is_present=False, is_leave=True)
            done_message = "Leave request submitted"
        else:
            params = UpdateAttendanceParams(employee_id, attendance_id, is_present=True, is_leave=False,
                                            clock_in_time=now.time())
            done_message = "Checked in successfully"

        result = await self.update_attendance(params)
        if not result.is_success:
            return result
        return success(message=done_message, data=result.data)
