"""Local patient and worker repositories."""

from typing import Any, Dict, Optional

from podocare.core.dates import parse_timestamp, period_starts
from podocare.core.exceptions import ValidationError
from podocare.db.seed import patients_seed, workers_seed
from podocare.domain.entities import Paginated, Patient, PatientStats, Worker
from podocare.domain.interfaces import IPatientRepository, IWorkerRepository

from .base import LocalRepository


class LocalPatientRepository(LocalRepository[Patient], IPatientRepository):
    entity_class = Patient
    collection = "patients"
    seed_factory = staticmethod(patients_seed)
    search_fields = (
        "first_name",
        "paternal_surname",
        "maternal_surname",
        "document_number",
        "phone",
        "email",
    )

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        document = data.get("document_number")
        if document and self._index_by_document(document) is not None:
            raise ValidationError(f"A patient with document {document} already exists")
        return data

    def _check_update(self, items, index: int, data: Dict[str, Any]) -> None:
        document = data.get("document_number")
        if not document:
            return
        for other_index, patient in enumerate(items):
            if other_index != index and patient.document_number == document:
                raise ValidationError(f"A patient with document {document} already exists")

    def _index_by_document(self, document_number: str) -> Optional[int]:
        for index, patient in enumerate(self._load()):
            if patient.document_number == document_number:
                return index
        return None

    async def get_by_document_id(self, document_id: str) -> Optional[Patient]:
        await self.delay.wait()
        for patient in self._load():
            if patient.document_number == document_id:
                return patient
        return None

    async def search_patients(self, params: Any) -> Paginated[Patient]:
        return await self.get_all(params)

    async def get_patient_stats(self) -> PatientStats:
        await self.delay.wait()
        patients = self._load()
        _, week_start, month_start = period_starts(self.clock())
        created = [parse_timestamp(p.created_at) for p in patients]
        return PatientStats(
            total=len(patients),
            new_this_month=sum(1 for c in created if c is not None and c >= month_start),
            new_this_week=sum(1 for c in created if c is not None and c >= week_start),
        )


class LocalWorkerRepository(LocalRepository[Worker], IWorkerRepository):
    entity_class = Worker
    collection = "workers"
    seed_factory = staticmethod(workers_seed)
    search_fields = ("first_name", "last_name", "email", "specialization", "username")

    async def get_active_workers(self, params: Any = None) -> Paginated[Worker]:
        return await self._find_by_field("is_active", True, params)

    async def get_by_email(self, email: str) -> Optional[Worker]:
        await self.delay.wait()
        needle = email.strip().lower()
        for worker in self._load():
            if worker.email and worker.email.lower() == needle:
                return worker
        return None

    async def update_active_status(self, worker_id: str, is_active: bool) -> Worker:
        return await self.update(worker_id, {"is_active": bool(is_active)})
