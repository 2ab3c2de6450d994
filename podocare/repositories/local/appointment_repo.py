"""Local appointment repository."""

from typing import Any

from podocare.core.dates import day_bounds, in_range
from podocare.db.seed import appointments_seed
from podocare.domain.entities import Appointment, AppointmentStats, Paginated
from podocare.domain.interfaces import IAppointmentRepository

from .base import LocalRepository


class LocalAppointmentRepository(LocalRepository[Appointment], IAppointmentRepository):
    entity_class = Appointment
    collection = "appointments"
    seed_factory = staticmethod(appointments_seed)
    search_fields = ("treatment_notes", "diagnosis", "treatment", "observation")
    date_field = "date"
    default_sort = "date"

    async def get_by_patient_id(self, patient_id: str, params: Any = None) -> Paginated[Appointment]:
        return await self._find_by_field("patient_id", patient_id, params)

    async def get_by_worker_id(self, worker_id: str, params: Any = None) -> Paginated[Appointment]:
        return await self._find_by_field("worker_id", worker_id, params)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[Appointment]:
        return await self._find_by_date_range(start_date, end_date, params)

    async def get_by_status(self, status: str, params: Any = None) -> Paginated[Appointment]:
        return await self._find_by_field("status", status, params)

    async def get_todays_appointments(self, params: Any = None) -> Paginated[Appointment]:
        await self.delay.wait()
        start, end = day_bounds(self.clock())
        todays = [a for a in self._load() if in_range(a.date, start, end)]
        return self._paginate(todays, params)

    async def update_status(self, appointment_id: str, status: str) -> Appointment:
        return await self.update(appointment_id, {"status": status})

    async def get_appointment_stats(self) -> AppointmentStats:
        """Counts for today's agenda plus the overall total."""
        await self.delay.wait()
        appointments = self._load()
        start, end = day_bounds(self.clock())
        todays = [a for a in appointments if in_range(a.date, start, end)]
        return AppointmentStats(
            today=len(todays),
            completed=sum(1 for a in todays if a.status == "completed"),
            scheduled=sum(1 for a in todays if a.status == "scheduled"),
            total=len(appointments),
        )
