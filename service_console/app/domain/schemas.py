"""
Request bodies accepted by the console routes.

Field aliases follow the backend's camelCase names so a validated form can
be forwarded with ``model_dump(by_alias=True)``.
"""

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ConsoleForm(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_backend(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class LoginRequest(ConsoleForm):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class IdentityEntry(ConsoleForm):
    identity_type: str = Field(..., min_length=1)
    identity_number: str = Field(..., min_length=1)


class EmployeeCreate(ConsoleForm):
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    joining_date: Optional[date] = None
    salary: Optional[float] = Field(default=None, ge=0)
    is_teacher: bool = False
    is_admin: bool = False
    identities: List[IdentityEntry] = Field(default_factory=list)


class EmployeeUpdate(ConsoleForm):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    salary: Optional[float] = Field(default=None, ge=0)
    is_teacher: Optional[bool] = None
    is_active: Optional[bool] = None
    identities: Optional[List[IdentityEntry]] = None


class AdminChange(ConsoleForm):
    target_employee_id: str = Field(..., min_length=1)


class AttendanceUpdate(ConsoleForm):
    is_present: bool
    is_leave: bool = False
    clock_in_time: Optional[time] = None
    is_holiday: bool = False
    is_invalid: bool = False


class CheckInRequest(ConsoleForm):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    take_leave: bool = False


class HolidayRequest(ConsoleForm):
    holiday_date: date = Field(..., alias="date")


class Subject(ConsoleForm):
    name: str = Field(..., min_length=1)
    teacher_id: Optional[str] = None


class ClassroomCreate(ConsoleForm):
    name: str = Field(..., min_length=1)
    monthly_fee: float = Field(..., ge=0)
    admission_fee: float = Field(default=0, ge=0)
    exam_fee: float = Field(default=0, ge=0)
    miscellaneous_fee: float = Field(default=0, ge=0)


class ClassroomUpdate(ConsoleForm):
    name: Optional[str] = Field(default=None, min_length=1)
    monthly_fee: Optional[float] = Field(default=None, ge=0)
    admission_fee: Optional[float] = Field(default=None, ge=0)
    exam_fee: Optional[float] = Field(default=None, ge=0)
    miscellaneous_fee: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _require_a_field(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided")
        return self


class SectionCreate(ConsoleForm):
    name: str = Field(..., min_length=1)
    class_teacher_id: Optional[str] = None
    subjects: List[Subject] = Field(default_factory=list)


class SectionUpdate(ConsoleForm):
    name: Optional[str] = Field(default=None, min_length=1)
    class_teacher_id: Optional[str] = None
    subjects: Optional[List[Subject]] = None


class VehicleCreate(ConsoleForm):
    vehicle_number: str = Field(..., min_length=1)


class VehicleLocation(ConsoleForm):
    lat: float = Field(..., ge=-90, le=90)
    long: float = Field(..., ge=-180, le=180)
