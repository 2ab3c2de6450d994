"""API patient and worker repositories."""

from typing import Any, Optional

from podocare.domain.entities import Paginated, Patient, PatientStats, Worker
from podocare.domain.interfaces import IPatientRepository, IWorkerRepository

from .base import ApiRepository, path_id
from .normalizers import to_stats


class ApiPatientRepository(ApiRepository[Patient], IPatientRepository):
    entity_class = Patient
    endpoint = "/patient"

    async def get_by_document_id(self, document_id: str) -> Optional[Patient]:
        page = await self._get_page(params={"page": 1, "limit": 1}, document_number=document_id)
        return page.items[0] if page.items else None

    async def search_patients(self, params: Any) -> Paginated[Patient]:
        return await self._get_page(params=params)

    async def get_patient_stats(self) -> PatientStats:
        return to_stats(PatientStats, await self._get_data("/stats"))


class ApiWorkerRepository(ApiRepository[Worker], IWorkerRepository):
    entity_class = Worker
    endpoint = "/worker"

    async def get_active_workers(self, params: Any = None) -> Paginated[Worker]:
        return await self._get_page(params=params, active=True)

    async def get_by_email(self, email: str) -> Optional[Worker]:
        page = await self._get_page(params={"page": 1, "limit": 1}, email=email)
        return page.items[0] if page.items else None

    async def update_active_status(self, worker_id: str, is_active: bool) -> Worker:
        return await self._send(
            "PATCH", f"/{path_id(worker_id)}/active", {"is_active": bool(is_active)}
        )
