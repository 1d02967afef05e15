"""
Student, enrollment, fee and exam calls against the school backend.
"""

from typing import Any, Dict, Optional

from service_console.app.actions.base import BackendActions, clamp_pagination, field, image_upload
from service_console.app.caching import keys
from service_console.app.domain.envelope import ResponseEnvelope, error, success

NO_STORE = {"Cache-Control": "no-store"}


class StudentActions(BackendActions):
    """Backend calls behind the student screens.

    Only search results are cached. Student and enrollment details are always
    read fresh because fee and exam state changes from several screens.
    """

    resource = "student"

    def _students_changed(self) -> None:
        self._invalidate(keys.DASHBOARD_ANALYTICS, prefixes=(keys.STUDENTS_PREFIX,))

    def _enrollment_path(self, student_id: str, enrollment_id: str) -> str:
        return f"/v1/student/{student_id}/enrollment/{enrollment_id}"

    async def search_students(self, q: str = "", page: int = 1, limit: int = 10,
                              ascending: bool = False) -> ResponseEnvelope:
        page, limit = clamp_pagination(page, limit)

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "search_students", "GET", "/v1/student/",
                params={"q": q, "page": page, "limit": limit, "ascending": ascending},
                on_success=lambda body: success(message="Data Fetched", data=body, count=field(body, "count")),
                failure_message="Failed to search students",
            )

        return await self._cached(keys.students_search(q, page, limit, ascending), self.list_ttl, _fetch)

    async def get_student(self, student_id: str) -> ResponseEnvelope:
        if not student_id:
            return error(message="Student ID is required")

        return await self._request(
            "get_student", "GET", f"/v1/student/{student_id}",
            headers=NO_STORE,
            on_success=lambda body: success(message="Student Fetched Successfully", data=field(body, "student")),
            failure_message="Failed to fetch student",
        )

    async def create_new_student(self, data: Dict[str, Any]) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._students_changed()
            return success(message="Student Created Successfully", data=field(body, "studentData"))

        return await self._request(
            "create_new_student", "POST", "/v1/student",
            json=data,
            on_success=_done,
            failure_message="Failed to create student",
        )

    async def update_student_details(self, student_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        if not student_id:
            return error(message="Student ID is required")

        def _done(body: Any) -> ResponseEnvelope:
            self._students_changed()
            return success(message="Student Updated Successfully", data=field(body, "studentData"))

        return await self._request(
            "update_student_details", "PUT", f"/v1/student/{student_id}",
            json=data,
            on_success=_done,
            failure_message="Failed to update student",
        )

    async def delete_student(self, student_id: str, force: bool = False) -> ResponseEnvelope:
        if not student_id:
            return error(message="Student ID is required")

        def _done(body: Any) -> ResponseEnvelope:
            self._students_changed()
            return success(message="Student Deleted Successfully")

        return await self._request(
            "delete_student", "DELETE", f"/v1/student/{student_id}",
            params={"force": force},
            on_success=_done,
            failure_message="Failed to delete student",
        )

    async def create_student_enrollment(self, student_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._students_changed()
            return success(message="Student Enrollment Created Successfully", data=field(body, "enrollmentData"))

        return await self._request(
            "create_student_enrollment", "POST", f"/v1/student/{student_id}/new-enrollment",
            json=data,
            on_success=_done,
            failure_message="Failed to create enrollment",
        )

    async def get_enrollment_details(self, student_id: str, enrollment_id: str) -> ResponseEnvelope:
        if not student_id or not enrollment_id:
            return error(message="Student ID and Enrollment ID are required")

        return await self._request(
            "get_enrollment_details", "GET", self._enrollment_path(student_id, enrollment_id),
            on_success=lambda body: success(
                message="Student Enrollment Fetched Successfully",
                data=field(body, "enrollmentData"),
            ),
            failure_message="Failed to fetch enrollment",
        )

    async def reset_enrollment(self, student_id: str, enrollment_id: str) -> ResponseEnvelope:
        return await self._request(
            "reset_enrollment", "PUT", f"{self._enrollment_path(student_id, enrollment_id)}/reset",
            on_success=lambda body: success(message=field(body, "message")),
            failure_message="Failed to reset enrollment",
        )

    async def update_enrollment(self, student_id: str, enrollment_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        return await self._request(
            "update_enrollment", "PATCH", f"{self._enrollment_path(student_id, enrollment_id)}/update",
            json=data,
            on_success=lambda body: success(message=field(body, "message"), data=field(body, "enrollmentData")),
            failure_message="Failed to update enrollment",
        )

    async def delete_enrollment(self, student_id: str, enrollment_id: str, force: bool = False) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._students_changed()
            return success(message=field(body, "message"), data=field(body, "enrollmentId"))

        return await self._request(
            "delete_enrollment", "DELETE", self._enrollment_path(student_id, enrollment_id),
            params={"force": force},
            on_success=_done,
            failure_message="Failed to delete enrollment",
        )

    async def pay_student_fee(self, student_id: str, enrollment_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._invalidate(keys.DASHBOARD_ANALYTICS, prefixes=(keys.PAYMENTS_PREFIX, keys.STUDENTS_PREFIX))
            return success(message=field(body, "message"), data=field(body, "paymentReceipt"))

        return await self._request(
            "pay_student_fee", "POST", f"{self._enrollment_path(student_id, enrollment_id)}/fee/pay",
            json=data,
            on_success=_done,
            failure_message="Failed to pay fee",
        )

    async def create_exam_entry(self, student_id: str, enrollment_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        return await self._request(
            "create_exam_entry", "POST", f"{self._enrollment_path(student_id, enrollment_id)}/exam/new",
            json=data,
            on_success=lambda body: success(message=field(body, "message"), data=field(body, "examEntry")),
            failure_message="Failed to create exam entry",
        )

    async def update_exam_entry(self, student_id: str, enrollment_id: str, exam_entry_id: str,
                                data: Dict[str, Any]) -> ResponseEnvelope:
        return await self._request(
            "update_exam_entry", "PATCH",
            f"{self._enrollment_path(student_id, enrollment_id)}/exam/{exam_entry_id}",
            json=data,
            on_success=lambda body: success(message=field(body, "message"), data=field(body, "examEntry")),
            failure_message="Failed to update exam entry",
        )

    async def delete_exam_entry(self, student_id: str, enrollment_id: str, exam_entry_id: str) -> ResponseEnvelope:
        return await self._request(
            "delete_exam_entry", "DELETE",
            f"{self._enrollment_path(student_id, enrollment_id)}/exam/{exam_entry_id}",
            on_success=lambda body: success(message=field(body, "message"), data=field(body, "destroyedCount")),
            failure_message="Failed to delete exam entry",
        )

    async def update_student_profile_image(self, student_id: str, filename: str, content: bytes,
                                           content_type: Optional[str] = None) -> ResponseEnvelope:
        return await self._request(
            "update_student_profile_image", "POST", f"/v1/student/{student_id}/image",
            files=image_upload(filename, content, content_type),
            on_success=lambda body: success(message=field(body, "message")),
            failure_message="Failed to update profile image",
        )

    async def get_student_payments_info(self, student_id: str, limit: int = 10, page: int = 1) -> ResponseEnvelope:
        page, limit = clamp_pagination(page, limit)
        return await self._request(
            "get_student_payments_info", "GET", f"/v1/student/{student_id}/payments",
            params={"limit": limit, "page": page},
            on_success=lambda body: success(message=field(body, "message"), data=body),
            failure_message="Failed to get student payments",
        )
