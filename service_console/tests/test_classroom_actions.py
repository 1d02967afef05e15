"""
Unit tests for classroom and section actions.
"""

import pytest
from datetime import date

from service_console.app.actions.classroom import ClassroomActions
from service_console.app.caching import keys
from service_console.app.domain.envelope import ResponseStatus


class TestClassroomActions:
    """Test cases for ClassroomActions."""

    @pytest.fixture
    def actions(self, backend, cache, console_config):
        return ClassroomActions(backend, cache, console_config)

    @pytest.mark.asyncio
    async def test_get_all_classrooms(self, actions, backend):
        """Test the classroom list reads classRoomData and is cached."""
        backend.request.return_value = {"classRoomData": [{"id": "c1"}]}

        envelope = await actions.get_all_classrooms()
        await actions.get_all_classrooms()

        assert envelope.data == [{"id": "c1"}]
        backend.request.assert_awaited_once_with("GET", "/v1/classroom")

    @pytest.mark.asyncio
    async def test_get_classroom_details(self, actions, backend):
        """Test classroom details are cached per classroom."""
        backend.request.return_value = {"classRoomData": {"id": "c1", "name": "Grade 1"}}

        envelope = await actions.get_classroom_details("c1")

        assert envelope.data["name"] == "Grade 1"
        assert keys.classroom_details("c1") in actions.cache

    @pytest.mark.asyncio
    async def test_create_classroom_invalidates_list(self, actions, backend, cache):
        """Test creating a classroom drops the cached list."""
        cache.set(keys.ALL_CLASSROOMS, "stale", 30)
        backend.request.return_value = {"classRoomData": {"id": "c2"}}

        envelope = await actions.create_classroom({"name": "Grade 2", "monthlyFee": 100})

        assert envelope.status == ResponseStatus.SUCCESS
        assert envelope.data == {"id": "c2"}
        assert keys.ALL_CLASSROOMS not in cache

    @pytest.mark.asyncio
    async def test_update_and_delete_invalidate_details(self, actions, backend, cache):
        """Test classroom mutations drop details, sections and the list."""
        backend.request.return_value = {"classRoomData": {"id": "c1"}}
        for mutate in (
            lambda: actions.update_classroom("c1", {"name": "Renamed"}),
            lambda: actions.delete_classroom("c1"),
        ):
            cache.set(keys.ALL_CLASSROOMS, "stale", 30)
            cache.set(keys.classroom_details("c1"), "stale", 300)
            cache.set(keys.classroom_sections("c1"), "stale", 300)

            envelope = await mutate()

            assert envelope.status == ResponseStatus.SUCCESS
            assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_classroom_id_required(self, actions, backend):
        """Test classroom operations validate the id first."""
        envelope = await actions.update_classroom("", {"name": "x"})

        assert envelope.message == "Classroom ID is required"
        backend.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_students_info_params(self, actions, backend):
        """Test roster reads pass the period and active filter."""
        backend.request.return_value = {"students": [{"id": "s1"}]}

        envelope = await actions.get_classroom_students_info("c1", date(2024, 4, 1), date(2025, 3, 31), False)

        assert envelope.data == [{"id": "s1"}]
        backend.request.assert_awaited_once_with(
            "GET", "/v1/classroom/c1/students",
            params={"startPeriod": date(2024, 4, 1), "endPeriod": date(2025, 3, 31), "activeOnly": False},
        )
        assert len(actions.cache) == 0

    @pytest.mark.asyncio
    async def test_sections_cached_and_invalidated(self, actions, backend, cache):
        """Test section mutations drop the cached section list."""
        backend.request.return_value = {"sections": [{"id": "s1"}]}
        await actions.get_all_sections_of_classroom("c1")
        assert keys.classroom_sections("c1") in cache

        backend.request.return_value = {"classSectionData": {"id": "s2"}}
        envelope = await actions.create_classroom_section("c1", {"name": "B"})

        assert envelope.data == {"id": "s2"}
        assert keys.classroom_sections("c1") not in cache

    @pytest.mark.asyncio
    async def test_update_and_delete_section(self, actions, backend):
        """Test section update and delete call the nested section path."""
        backend.request.return_value = {"classSectionData": {"id": "s1"}}

        await actions.update_classroom_section("c1", "s1", {"name": "A"})
        backend.request.assert_awaited_with("PUT", "/v1/classroom/c1/class-section/s1", json={"name": "A"})

        envelope = await actions.delete_classroom_section("c1", "s1")
        backend.request.assert_awaited_with("DELETE", "/v1/classroom/c1/class-section/s1")
        assert envelope.message == "Classroom Section Deleted Successfully"

    @pytest.mark.asyncio
    async def test_section_students_failure_fallback(self, actions, backend):
        """Test section roster failures without a status use the fallback text."""
        from shared.errors import BackendError

        backend.request.side_effect = BackendError("School backend temporarily unavailable")

        envelope = await actions.get_classroom_section_students_info("c1", "s1", date(2024, 4, 1), date(2025, 3, 31))

        assert envelope.status == ResponseStatus.ERROR
        assert envelope.message == "Failed to fetch students info"
