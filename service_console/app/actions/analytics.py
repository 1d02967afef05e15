"""
Payments reporting and dashboard counters.
"""

from datetime import date

from pydantic import BaseModel

from service_console.app.actions.base import BackendActions, clamp_pagination
from service_console.app.caching import keys
from service_console.app.domain.envelope import ResponseEnvelope, success


class DashboardAnalytics(BaseModel):
    """Headline counters shown on the dashboard landing page."""

    totalActiveEmployees: int = 0
    totalTeachers: int = 0
    totalAdmins: int = 0
    totalRegisteredStudentsInDB: int = 0
    totalActiveStudents: int = 0
    enrollmentsCreatedInLastThirtyDays: int = 0
    activeStudentEnrollments: int = 0
    totalDuePayment: float = 0
    totalVehicles: int = 0
    totalFeePaymentsReceived: float = 0


class AnalyticsActions(BackendActions):
    resource = "analytics"

    async def get_payments(self, start_date: date, end_date: date, page: int = 1, limit: int = 10,
                           ascending: bool = False) -> ResponseEnvelope:
        page, limit = clamp_pagination(page, limit)
        self.logger.debug(
            "Fetching payments",
            start_date=str(start_date),
            end_date=str(end_date),
            page=page,
            limit=limit,
            ascending=ascending
        )

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_payments", "GET", "/v1/analytics/payments-info",
                params={
                    "start_date": start_date,
                    "end_date": end_date,
                    "page": page,
                    "limit": limit,
                    "ascending": ascending,
                },
                on_success=lambda body: success(message="Successfully fetched payments", data=body),
                failure_message="Failed to fetch payments",
            )

        return await self._cached(keys.payments(start_date, end_date, page, limit, ascending), self.list_ttl, _fetch)

    async def get_dashboard_analytics(self) -> ResponseEnvelope:
        # TODO: read counters from the backend once it exposes an aggregate analytics endpoint
        async def _build() -> ResponseEnvelope:
            return success(message="Dashboard analytics", data=DashboardAnalytics().model_dump())

        return await self._cached(keys.DASHBOARD_ANALYTICS, self.list_ttl, _build)
