"""
School vehicle calls against the backend.
"""

from typing import Any

from service_console.app.actions.base import BackendActions, field
from service_console.app.caching import keys
from service_console.app.domain.envelope import ResponseEnvelope, error, success


class VehicleActions(BackendActions):
    resource = "vehicle"

    def _vehicle_changed(self, vehicle_id: str = "") -> None:
        self._invalidate(keys.ALL_VEHICLES, keys.DASHBOARD_ANALYTICS)
        if vehicle_id:
            self.cache.invalidate(keys.vehicle_details(vehicle_id))

    async def get_all_vehicles(self) -> ResponseEnvelope:
        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_all_vehicles", "GET", "/v1/vehicle",
                on_success=lambda body: success(
                    message="Vehicles Retrieved Successfully",
                    data=field(body, "vehicles", []),
                ),
                failure_message="Failed to retrieve vehicles",
            )

        return await self._cached(keys.ALL_VEHICLES, self.list_ttl, _fetch)

    async def get_vehicle(self, vehicle_id: str) -> ResponseEnvelope:
        if not vehicle_id:
            return error(message="Vehicle ID is required")

        async def _fetch() -> ResponseEnvelope:
            return await self._request(
                "get_vehicle", "GET", f"/v1/vehicle/{vehicle_id}",
                on_success=lambda body: success(
                    message="Vehicle Retrieved Successfully",
                    data=field(body, "vehicleData"),
                ),
                failure_message="Failed to retrieve vehicle",
            )

        return await self._cached(keys.vehicle_details(vehicle_id), self.detail_ttl, _fetch)

    async def create_vehicle(self, vehicle_number: str) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._vehicle_changed()
            return success(message="Vehicle Created Successfully", data=field(body, "vehicleData"))

        return await self._request(
            "create_vehicle", "POST", "/v1/vehicle",
            json={"vehicleNumber": vehicle_number},
            on_success=_done,
            failure_message="Failed to create vehicle",
        )

    async def update_vehicle(self, vehicle_id: str, vehicle_number: str) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._vehicle_changed(vehicle_id)
            return success(message="Vehicle Updated Successfully", data=field(body, "vehicleData"))

        return await self._request(
            "update_vehicle", "PUT", f"/v1/vehicle/{vehicle_id}",
            json={"vehicleNumber": vehicle_number},
            on_success=_done,
            failure_message="Failed to update vehicle",
        )

    async def delete_vehicle(self, vehicle_id: str) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._vehicle_changed(vehicle_id)
            return success(message=field(body, "message") or "Vehicle Deleted Successfully")

        return await self._request(
            "delete_vehicle", "DELETE", f"/v1/vehicle/{vehicle_id}",
            on_success=_done,
            failure_message="Failed to delete vehicle",
        )

    async def update_vehicle_location(self, vehicle_id: str, lat: float, long: float) -> ResponseEnvelope:
        def _done(body: Any) -> ResponseEnvelope:
            self._vehicle_changed(vehicle_id)
            return success(message="Vehicle Location Updated Successfully", data=field(body, "vehicleData"))

        return await self._request(
            "update_vehicle_location", "PUT", f"/v1/vehicle/{vehicle_id}/location",
            json={"lat": lat, "long": long},
            on_success=_done,
            failure_message="Failed to update vehicle location",
        )
