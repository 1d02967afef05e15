"""
School Console service: session gate and dashboard routes over the school backend.
"""

from datetime import date
from typing import Any, Dict, Optional

import httpx
from fastapi import Body, Depends, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.logging import set_user_context
from service_console.app.actions import (
    AdminActions,
    AnalyticsActions,
    ClassroomActions,
    EmployeeActions,
    StudentActions,
    UpdateAttendanceParams,
    VehicleActions,
)
from service_console.app.adapters.backend_client import BackendClient
from service_console.app.caching.response_cache import ResponseCache
from service_console.app.domain.envelope import error, success
from service_console.app.domain.schemas import (
    AdminChange,
    AttendanceUpdate,
    CheckInRequest,
    ClassroomCreate,
    ClassroomUpdate,
    EmployeeCreate,
    EmployeeUpdate,
    HolidayRequest,
    LoginRequest,
    SectionCreate,
    SectionUpdate,
    VehicleCreate,
    VehicleLocation,
)
from service_console.app.domain.session import (
    SessionIdentity,
    SessionManager,
    redirect_for,
    require_admin,
    require_self_or_admin,
    require_staff,
)

JsonObject = Dict[str, Any]


class ConsoleService(BaseService):
    """School admin console service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("console", 8000, config)

        self.cache = ResponseCache(metrics=self.metrics)
        self.backend = BackendClient(
            self.config.backend_server_url,
            timeout=self.config.backend_timeout_seconds,
            retry_attempts=self.config.backend_retry_attempts,
            retry_base_delay=self.config.backend_retry_base_delay,
            failure_threshold=self.config.backend_failure_threshold,
            recovery_timeout=self.config.backend_recovery_timeout,
            metrics=self.metrics,
            transport=transport,
        )

        self.employees = EmployeeActions(self.backend, self.cache, self.config)
        self.admins = AdminActions(self.backend, self.cache, self.config)
        self.analytics = AnalyticsActions(self.backend, self.cache, self.config)
        self.classrooms = ClassroomActions(self.backend, self.cache, self.config)
        self.students = StudentActions(self.backend, self.cache, self.config)
        self.vehicles = VehicleActions(self.backend, self.cache, self.config)
        self.sessions = SessionManager(self.backend, self.config)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.backend.close()

        self._setup_session_routes()
        self._setup_employee_routes()
        self._setup_admin_routes()
        self._setup_attendance_routes()
        self._setup_payment_routes()
        self._setup_classroom_routes()
        self._setup_student_routes()
        self._setup_vehicle_routes()

        self.app.state.console_service = self

    def _current_identity(self, request: Request) -> SessionIdentity:
        """Route dependency: the signed-in employee, bound to the log context."""
        identity = self.sessions.authenticate(request)
        set_user_context(identity.id)
        return identity

    def _admin_identity(self, request: Request) -> SessionIdentity:
        return require_admin(self._current_identity(request))

    def _staff_identity(self, request: Request) -> SessionIdentity:
        return require_staff(self._current_identity(request))

    def _own_record_identity(self, employee_id: str, request: Request) -> SessionIdentity:
        """Route dependency for ``{employee_id}`` routes open to that employee."""
        return require_self_or_admin(self._current_identity(request), employee_id)

    def _branding(self) -> JsonObject:
        return {
            "schoolName": self.config.school_name,
            "tagline": self.config.school_tagline,
            "logoUrl": self.config.school_logo_url,
            "primaryColor": self.config.primary_color,
            "secondaryColor": self.config.secondary_color,
        }

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Report backend circuit state and response cache size."""
        breaker = self.backend.circuit_breaker.get_state()
        return {
            "school_backend": "error" if self.backend.circuit_breaker.is_open() else "ok",
            "school_backend_circuit": breaker["state"],
            "response_cache_entries": len(self.cache),
        }

    def _setup_session_routes(self):
        """Set up landing, login, logout and dashboard routes."""
        current = Depends(self._current_identity)

        @self.app.get("/")
        async def landing(request: Request):
            """Landing page branding; signed-in users go straight to the dashboard."""
            identity = self.sessions.resolve(self.sessions.token_from_request(request))
            target = redirect_for("/", identity)
            if target:
                return RedirectResponse(target, status_code=307)
            return success(message="Welcome", data=self._branding()).to_dict()

        @self.app.post("/login")
        async def login(form: LoginRequest):
            identity = await self.sessions.login(form.username, form.password)
            if identity is None:
                return error(message="Invalid username or password").to_dict()

            token = self.sessions.issue_token(identity)
            envelope = success(
                message="Logged in Successfully",
                data={"user": identity.to_dict(), "token": token},
            )
            response = JSONResponse(envelope.to_dict())
            response.set_cookie(
                self.config.session_cookie_name,
                token,
                max_age=self.config.session_ttl_seconds,
                httponly=True,
                samesite="lax",
                secure=self.config.env != "local",
            )
            return response

        @self.app.post("/logout")
        async def logout():
            response = JSONResponse(success(message="Logged out Successfully").to_dict())
            response.delete_cookie(self.config.session_cookie_name)
            return response

        @self.app.get("/dashboard")
        async def dashboard(identity: SessionIdentity = current):
            return (await self.analytics.get_dashboard_analytics()).to_dict()

        @self.app.get("/dashboard/profile")
        async def profile(identity: SessionIdentity = current):
            return (await self.employees.fetch_employee_details(identity.id)).to_dict()

        @self.app.post("/dashboard/employee/check-in")
        async def check_in(form: CheckInRequest, identity: SessionIdentity = current):
            """Clock in, or take leave, on the signed-in employee's own attendance entry."""
            envelope = await self.employees.check_in(identity.id, form.latitude, form.longitude, form.take_leave)
            return envelope.to_dict()

    def _setup_employee_routes(self):
        """Set up /dashboard/employees routes."""
        own_record = Depends(self._own_record_identity)
        admin = Depends(self._admin_identity)

        @self.app.get("/dashboard/employees")
        async def search_employees(
            q: str = "",
            page: int = 1,
            limit: int = 10,
            ascending: bool = False,
            identity: SessionIdentity = admin,
        ):
            return (await self.employees.search_employees(q, page, limit, ascending)).to_dict()

        @self.app.post("/dashboard/employees")
        async def add_employee(form: EmployeeCreate, identity: SessionIdentity = admin):
            return (await self.employees.add_new_employee(form.to_backend())).to_dict()

        @self.app.get("/dashboard/employees/{employee_id}")
        async def employee_details(employee_id: str, identity: SessionIdentity = own_record):
            return (await self.employees.fetch_employee_details(employee_id)).to_dict()

        @self.app.put("/dashboard/employees/{employee_id}")
        async def update_employee(employee_id: str, form: EmployeeUpdate, identity: SessionIdentity = admin):
            return (await self.employees.update_employee(employee_id, form.to_backend())).to_dict()

        @self.app.delete("/dashboard/employees/{employee_id}")
        async def delete_employee(employee_id: str, identity: SessionIdentity = admin):
            return (await self.employees.delete_employee(employee_id)).to_dict()

        @self.app.post("/dashboard/employees/{employee_id}/image")
        async def employee_image(employee_id: str, profile_img: UploadFile = File(...),
                                 identity: SessionIdentity = own_record):
            content = await profile_img.read()
            envelope = await self.employees.update_employee_profile_image(
                employee_id, profile_img.filename or "profile", content, profile_img.content_type
            )
            return envelope.to_dict()

        @self.app.get("/dashboard/employees/{employee_id}/attendance")
        async def employee_attendance(
            employee_id: str,
            start_date: date,
            end_date: date,
            identity: SessionIdentity = own_record,
        ):
            return (await self.employees.get_employee_attendance(employee_id, start_date, end_date)).to_dict()

        @self.app.patch("/dashboard/employees/{employee_id}/attendance/{attendance_id}")
        async def update_attendance(
            employee_id: str,
            attendance_id: str,
            form: AttendanceUpdate,
            identity: SessionIdentity = admin,
        ):
            params = UpdateAttendanceParams(
                employee_id=employee_id,
                attendance_id=attendance_id,
                is_present=form.is_present,
                is_leave=form.is_leave,
                clock_in_time=form.clock_in_time,
                is_holiday=form.is_holiday,
                is_invalid=form.is_invalid,
            )
            return (await self.employees.update_attendance(params)).to_dict()

    def _setup_admin_routes(self):
        """Set up /dashboard/admins routes."""
        current = Depends(self._current_identity)
        admin = Depends(self._admin_identity)

        @self.app.get("/dashboard/admins")
        async def all_admins(identity: SessionIdentity = current):
            return (await self.admins.get_all_admins()).to_dict()

        @self.app.post("/dashboard/admins")
        async def make_admin(form: AdminChange, identity: SessionIdentity = admin):
            return (await self.employees.make_admin(identity.id, form.target_employee_id)).to_dict()

        @self.app.delete("/dashboard/admins/{target_employee_id}")
        async def remove_admin(target_employee_id: str, identity: SessionIdentity = admin):
            return (await self.employees.remove_admin(identity.id, target_employee_id)).to_dict()

    def _setup_attendance_routes(self):
        """Set up /dashboard/attendance routes."""
        admin = Depends(self._admin_identity)

        @self.app.get("/dashboard/attendance")
        async def daily_attendance(day: date = Query(..., alias="date"), identity: SessionIdentity = admin):
            return (await self.employees.get_daily_attendance(day)).to_dict()

        @self.app.post("/dashboard/attendance/generate")
        async def generate_attendance(identity: SessionIdentity = admin):
            return (await self.admins.generate_daily_attendance_entries()).to_dict()

        @self.app.post("/dashboard/attendance/holiday")
        async def set_holiday(form: HolidayRequest, identity: SessionIdentity = admin):
            return (await self.employees.set_date_as_holiday(form.holiday_date)).to_dict()

    def _setup_payment_routes(self):
        """Set up /dashboard/payments routes."""
        current = Depends(self._current_identity)

        @self.app.get("/dashboard/payments")
        async def payments(
            start_date: date,
            end_date: date,
            page: int = 1,
            limit: int = 10,
            ascending: bool = False,
            identity: SessionIdentity = current,
        ):
            envelope = await self.analytics.get_payments(start_date, end_date, page, limit, ascending)
            return envelope.to_dict()

    def _setup_classroom_routes(self):
        """Set up /dashboard/classrooms routes, sections included."""
        staff = Depends(self._staff_identity)
        admin = Depends(self._admin_identity)

        @self.app.get("/dashboard/classrooms")
        async def all_classrooms(identity: SessionIdentity = staff):
            return (await self.classrooms.get_all_classrooms()).to_dict()

        @self.app.post("/dashboard/classrooms")
        async def create_classroom(form: ClassroomCreate, identity: SessionIdentity = admin):
            return (await self.classrooms.create_classroom(form.to_backend())).to_dict()

        @self.app.get("/dashboard/classrooms/{classroom_id}")
        async def classroom_details(classroom_id: str, identity: SessionIdentity = admin):
            return (await self.classrooms.get_classroom_details(classroom_id)).to_dict()

        @self.app.put("/dashboard/classrooms/{classroom_id}")
        async def update_classroom(classroom_id: str, form: ClassroomUpdate, identity: SessionIdentity = admin):
            return (await self.classrooms.update_classroom(classroom_id, form.to_backend())).to_dict()

        @self.app.delete("/dashboard/classrooms/{classroom_id}")
        async def delete_classroom(classroom_id: str, identity: SessionIdentity = admin):
            return (await self.classrooms.delete_classroom(classroom_id)).to_dict()

        @self.app.get("/dashboard/classrooms/{classroom_id}/students")
        async def classroom_students(
            classroom_id: str,
            start_period: date,
            end_period: date,
            active_only: bool = True,
            identity: SessionIdentity = admin,
        ):
            envelope = await self.classrooms.get_classroom_students_info(
                classroom_id, start_period, end_period, active_only
            )
            return envelope.to_dict()

        @self.app.get("/dashboard/classrooms/{classroom_id}/sections")
        async def classroom_sections(classroom_id: str, identity: SessionIdentity = staff):
            return (await self.classrooms.get_all_sections_of_classroom(classroom_id)).to_dict()

        @self.app.post("/dashboard/classrooms/{classroom_id}/sections")
        async def create_section(classroom_id: str, form: SectionCreate, identity: SessionIdentity = admin):
            return (await self.classrooms.create_classroom_section(classroom_id, form.to_backend())).to_dict()

        @self.app.put("/dashboard/classrooms/{classroom_id}/sections/{section_id}")
        async def update_section(
            classroom_id: str,
            section_id: str,
            form: SectionUpdate,
            identity: SessionIdentity = admin,
        ):
            envelope = await self.classrooms.update_classroom_section(classroom_id, section_id, form.to_backend())
            return envelope.to_dict()

        @self.app.delete("/dashboard/classrooms/{classroom_id}/sections/{section_id}")
        async def delete_section(classroom_id: str, section_id: str, identity: SessionIdentity = admin):
            return (await self.classrooms.delete_classroom_section(classroom_id, section_id)).to_dict()

        @self.app.get("/dashboard/classrooms/{classroom_id}/sections/{section_id}/students")
        async def section_students(
            classroom_id: str,
            section_id: str,
            start_period: date,
            end_period: date,
            active_only: bool = True,
            identity: SessionIdentity = staff,
        ):
            envelope = await self.classrooms.get_classroom_section_students_info(
                classroom_id, section_id, start_period, end_period, active_only
            )
            return envelope.to_dict()

    def _setup_student_routes(self):
        """Set up /dashboard/students routes: enrollments, fees and exams."""
        staff = Depends(self._staff_identity)
        enrollment = "/dashboard/students/{student_id}/enrollments/{enrollment_id}"

        @self.app.get("/dashboard/students")
        async def search_students(
            q: str = "",
            page: int = 1,
            limit: int = 10,
            ascending: bool = False,
            identity: SessionIdentity = staff,
        ):
            return (await self.students.search_students(q, page, limit, ascending)).to_dict()

        @self.app.post("/dashboard/students")
        async def create_student(data: JsonObject = Body(...), identity: SessionIdentity = staff):
            return (await self.students.create_new_student(data)).to_dict()

        @self.app.get("/dashboard/students/{student_id}")
        async def student_details(student_id: str, identity: SessionIdentity = staff):
            return (await self.students.get_student(student_id)).to_dict()

        @self.app.put("/dashboard/students/{student_id}")
        async def update_student(student_id: str, data: JsonObject = Body(...), identity: SessionIdentity = staff):
            return (await self.students.update_student_details(student_id, data)).to_dict()

        @self.app.delete("/dashboard/students/{student_id}")
        async def delete_student(student_id: str, force: bool = False, identity: SessionIdentity = staff):
            return (await self.students.delete_student(student_id, force)).to_dict()

        @self.app.post("/dashboard/students/{student_id}/image")
        async def student_image(student_id: str, profile_img: UploadFile = File(...),
                                identity: SessionIdentity = staff):
            content = await profile_img.read()
            envelope = await self.students.update_student_profile_image(
                student_id, profile_img.filename or "profile", content, profile_img.content_type
            )
            return envelope.to_dict()

        @self.app.get("/dashboard/students/{student_id}/payments")
        async def student_payments(student_id: str, page: int = 1, limit: int = 10,
                                   identity: SessionIdentity = staff):
            return (await self.students.get_student_payments_info(student_id, limit, page)).to_dict()

        @self.app.post("/dashboard/students/{student_id}/enrollments")
        async def create_enrollment(student_id: str, data: JsonObject = Body(...),
                                    identity: SessionIdentity = staff):
            return (await self.students.create_student_enrollment(student_id, data)).to_dict()

        @self.app.get(enrollment)
        async def enrollment_details(student_id: str, enrollment_id: str, identity: SessionIdentity = staff):
            return (await self.students.get_enrollment_details(student_id, enrollment_id)).to_dict()

        @self.app.patch(enrollment)
        async def update_enrollment(student_id: str, enrollment_id: str, data: JsonObject = Body(...),
                                    identity: SessionIdentity = staff):
            return (await self.students.update_enrollment(student_id, enrollment_id, data)).to_dict()

        @self.app.delete(enrollment)
        async def delete_enrollment(student_id: str, enrollment_id: str, force: bool = False,
                                    identity: SessionIdentity = staff):
            return (await self.students.delete_enrollment(student_id, enrollment_id, force)).to_dict()

        @self.app.put(enrollment + "/reset")
        async def reset_enrollment(student_id: str, enrollment_id: str, identity: SessionIdentity = staff):
            return (await self.students.reset_enrollment(student_id, enrollment_id)).to_dict()

        @self.app.post(enrollment + "/fee")
        async def pay_fee(student_id: str, enrollment_id: str, data: JsonObject = Body(...),
                          identity: SessionIdentity = staff):
            return (await self.students.pay_student_fee(student_id, enrollment_id, data)).to_dict()

        @self.app.post(enrollment + "/exams")
        async def create_exam_entry(student_id: str, enrollment_id: str, data: JsonObject = Body(...),
                                    identity: SessionIdentity = staff):
            return (await self.students.create_exam_entry(student_id, enrollment_id, data)).to_dict()

        @self.app.patch(enrollment + "/exams/{exam_entry_id}")
        async def update_exam_entry(student_id: str, enrollment_id: str, exam_entry_id: str,
                                    data: JsonObject = Body(...), identity: SessionIdentity = staff):
            envelope = await self.students.update_exam_entry(student_id, enrollment_id, exam_entry_id, data)
            return envelope.to_dict()

        @self.app.delete(enrollment + "/exams/{exam_entry_id}")
        async def delete_exam_entry(student_id: str, enrollment_id: str, exam_entry_id: str,
                                    identity: SessionIdentity = staff):
            return (await self.students.delete_exam_entry(student_id, enrollment_id, exam_entry_id)).to_dict()

    def _setup_vehicle_routes(self):
        """Set up /dashboard/vehicles routes."""
        admin = Depends(self._admin_identity)

        @self.app.get("/dashboard/vehicles")
        async def all_vehicles(identity: SessionIdentity = admin):
            return (await self.vehicles.get_all_vehicles()).to_dict()

        @self.app.post("/dashboard/vehicles")
        async def create_vehicle(form: VehicleCreate, identity: SessionIdentity = admin):
            return (await self.vehicles.create_vehicle(form.vehicle_number)).to_dict()

        @self.app.get("/dashboard/vehicles/{vehicle_id}")
        async def vehicle_details(vehicle_id: str, identity: SessionIdentity = admin):
            return (await self.vehicles.get_vehicle(vehicle_id)).to_dict()

        @self.app.put("/dashboard/vehicles/{vehicle_id}")
        async def update_vehicle(vehicle_id: str, form: VehicleCreate, identity: SessionIdentity = admin):
            return (await self.vehicles.update_vehicle(vehicle_id, form.vehicle_number)).to_dict()

        @self.app.delete("/dashboard/vehicles/{vehicle_id}")
        async def delete_vehicle(vehicle_id: str, identity: SessionIdentity = admin):
            return (await self.vehicles.delete_vehicle(vehicle_id)).to_dict()

        @self.app.put("/dashboard/vehicles/{vehicle_id}/location")
        async def update_location(vehicle_id: str, form: VehicleLocation, identity: SessionIdentity = admin):
            return (await self.vehicles.update_vehicle_location(vehicle_id, form.lat, form.long)).to_dict()


def create_app(config: Optional[ServiceConfig] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None):
    """Create FastAPI application."""
    service = ConsoleService(config, transport)
    return service.app


if __name__ == "__main__":
    service = ConsoleService()
    service.run()
