"""
Classroom and class-section calls against the school backend.
"""

from datetime import date
from typing import Any, Dict, Optional

from service_console.app.actions.base import BackendActions, field
from service_console.app.caching import keys
from service_console.app.domain.envelope import ResponseEnvelope, error, success


class ClassroomActions(BackendActions):
    """Backend calls behind the classroom screens.

    Classroom lists and single classrooms are cached; student rosters are not,
    since they carry live fee state.
    """

    resource = "classroom"

    def _classroom_changed(self, classroom_id: Optional[str] = None) -> None:
        self._invalidate(keys.ALL_CLASSROOMS)
        if classroom_id:
            self._invalidate(keys.classroom_details(classroom_id), keys.classroom_sections(classroom_id))

    async def create_classroom(self, data: Dict[str, Any]) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._classroom_changed()
            return success(message="Classroom Created Successfully", data=field(body, "classRoomData"))

        return await self._request(
            "create_classroom", "POST", "/v1/classroom",
            json=data,
            on_success=_done,
            failure_message="Failed to create classroom",
        )

    async def update_classroom(self, classroom_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        if not classroom_id:
            return error(message="Classroom ID is required")

        def _done(body: Any) -> ResponseEnvelope:
            self._classroom_changed(classroom_id)
            return success(message="Classroom Updated Successfully", data=field(body, "classRoomData"))

        return await self._request(
            "update_classroom", "PUT", f"/v1/classroom/{classroom_id}",
            json=data,
            on_success=_done,
            failure_message="Failed to update classroom",
        )

    async def delete_classroom(self, classroom_id: str) -> ResponseEnvelope:
        if not classroom_id:
            return error(message="Classroom ID is required")

        def _done(body: Any) -> ResponseEnvelope:
            self._classroom_changed(classroom_id)
            return success(message="Classroom Deleted Successfully")

        return await self._request(
            "delete_classroom", "DELETE", f"/v1/classroom/{classroom_id}",
            on_success=_done,
            failure_message="Failed to delete classroom",
        )

    async def get_classroom_details(self, classroom_id: str) -> ResponseEnvelope:
        if not classroom_id:
            return error(message="Classroom ID is required")

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_classroom_details", "GET", f"/v1/classroom/{classroom_id}",
                on_success=lambda body: success(message="Classroom Fetched", data=field(body, "classRoomData")),
                failure_message="Failed to fetch classroom",
            )

        return await self._cached(keys.classroom_details(classroom_id), self.detail_ttl, _fetch)

    async def get_all_classrooms(self) -> ResponseEnvelope:
        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_all_classrooms", "GET", "/v1/classroom",
                on_success=lambda body: success(message="Classrooms Fetched", data=field(body, "classRoomData", [])),
                failure_message="Failed to fetch classrooms",
            )

        return await self._cached(keys.ALL_CLASSROOMS, self.list_ttl, _fetch)

    async def get_classroom_students_info(self, classroom_id: str, start_period: date, end_period: date,
                                          active_only: bool = True) -> ResponseEnvelope:
        return await self._request(
            "get_classroom_students_info", "GET", f"/v1/classroom/{classroom_id}/students",
            params={"startPeriod": start_period, "endPeriod": end_period, "activeOnly": active_only},
            on_success=lambda body: success(message="Fetched Student Data", data=field(body, "students", [])),
            failure_message="Failed to fetch students info",
        )

    async def get_all_sections_of_classroom(self, classroom_id: str) -> ResponseEnvelope:
        if not classroom_id:
            return error(message="Classroom ID is required")

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_all_sections_of_classroom", "GET", f"/v1/classroom/{classroom_id}/class-section",
                on_success=lambda body: success(message="Sections Fetched", data=field(body, "sections", [])),
                failure_message="Failed to fetch classroom sections",
            )

        return await self._cached(keys.classroom_sections(classroom_id), self.detail_ttl, _fetch)

    async def create_classroom_section(self, classroom_id: str, data: Dict[str, Any]) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._classroom_changed(classroom_id)
            return success(message="Classroom Section Created Successfully", data=field(body, "classSectionData"))

        return await self._request(
            "create_classroom_section", "POST", f"/v1/classroom/{classroom_id}/class-section",
            json=data,
            on_success=_done,
            failure_message="Failed to create classroom section",
        )

    async def update_classroom_section(self, classroom_id: str, section_id: str,
                                       data: Dict[str, Any]) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._classroom_changed(classroom_id)
            return success(message="Classroom Section Updated Successfully", data=field(body, "classSectionData"))

        return await self._request(
            "update_classroom_section", "PUT", f"/v1/classroom/{classroom_id}/class-section/{section_id}",
            json=data,
            on_success=_done,
            failure_message="Failed to update classroom section",
        )

    async def delete_classroom_section(self, classroom_id: str, section_id: str) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._classroom_changed(classroom_id)
            return success(message="Classroom Section Deleted Successfully")

        return await self._request(
            "delete_classroom_section", "DELETE", f"/v1/classroom/{classroom_id}/class-section/{section_id}",
            on_success=_done,
            failure_message="Failed to delete classroom section",
        )

    async def get_classroom_section_students_info(self, classroom_id: str, section_id: str,
                                                  start_period: date, end_period: date,
                                                  active_only: bool = True) -> ResponseEnvelope:
        return await self._request(
            "get_classroom_section_students_info", "GET",
            f"/v1/classroom/{classroom_id}/class-section/{section_id}/students",
            params={"startPeriod": start_period, "endPeriod": end_period, "activeOnly": active_only},
            on_success=lambda body: success(message="Fetched Student Data", data=field(body, "students", [])),
            failure_message="Failed to fetch students info",
        )
