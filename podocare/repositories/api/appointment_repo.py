"""API appointment repository."""

from typing import Any

from podocare.domain.entities import Appointment, AppointmentStats, Paginated
from podocare.domain.interfaces import IAppointmentRepository

from .base import ApiRepository, path_id
from .normalizers import to_stats


class ApiAppointmentRepository(ApiRepository[Appointment], IAppointmentRepository):
    entity_class = Appointment
    endpoint = "/appointment"

    async def get_by_patient_id(self, patient_id: str, params: Any = None) -> Paginated[Appointment]:
        return await self._get_page(params=params, patient_id=patient_id)

    async def get_by_worker_id(self, worker_id: str, params: Any = None) -> Paginated[Appointment]:
        return await self._get_page(params=params, worker_id=worker_id)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[Appointment]:
        return await self._get_page(params=params, start_date=start_date, end_date=end_date)

    async def get_by_status(self, status: str, params: Any = None) -> Paginated[Appointment]:
        return await self._get_page(params=params, status=status)

    async def get_todays_appointments(self, params: Any = None) -> Paginated[Appointment]:
        return await self._get_page("/today", params=params)

    async def update_status(self, appointment_id: str, status: str) -> Appointment:
        return await self._send("PATCH", f"/{path_id(appointment_id)}/status", {"status": status})

    async def get_appointment_stats(self) -> AppointmentStats:
        return to_stats(AppointmentStats, await self._get_data("/stats"))
