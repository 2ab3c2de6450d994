"""Local session package repositories."""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from podocare.core.exceptions import ValidationError
from podocare.db.seed import package_sessions_seed, packages_seed, patient_packages_seed
from podocare.domain.entities import Package, PackageSession, PatientPackage
from podocare.domain.interfaces import IPackageRepository, IPatientPackageRepository

from .base import LocalRepository

logger = logging.getLogger(__name__)


class LocalPackageRepository(LocalRepository[Package], IPackageRepository):
    entity_class = Package
    collection = "packages"
    seed_factory = staticmethod(packages_seed)
    search_fields = ("name", "description", "notes")
    default_sort = "name"

    async def get_active_packages(self) -> List[Package]:
        await self.delay.wait()
        return [p for p in self._load() if p.is_active]


class LocalPatientPackageRepository(LocalRepository[PatientPackage], IPatientPackageRepository):
    """
    Packages bought by patients. use_session decrements the remaining
    sessions and then appends to the ``package_sessions`` collection.
    """

    entity_class = PatientPackage
    collection = "patient_packages"
    seed_factory = staticmethod(patient_packages_seed)
    date_field = "purchased_at"
    default_sort = "-purchased_at"
    sessions_collection = "package_sessions"

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        data.setdefault("purchased_at", now)
        data.setdefault("is_active", True)
        if data.get("remaining_sessions") is None:
            package = self._find_package(data.get("package_id"))
            if package is None:
                raise ValidationError(f"Package {data.get('package_id')} does not exist")
            data["remaining_sessions"] = package.sessions
        return data

    def _find_package(self, package_id: Optional[str]) -> Optional[Package]:
        for package in self._load_side(LocalPackageRepository.collection, Package, packages_seed()):
            if package.id == package_id:
                return package
        return None

    async def get_by_patient_id(self, patient_id: str) -> List[PatientPackage]:
        await self.delay.wait()
        return [pp for pp in self._load() if pp.patient_id == patient_id]

    async def get_active_by_patient_id(self, patient_id: str) -> List[PatientPackage]:
        await self.delay.wait()
        return [
            pp
            for pp in self._load()
            if pp.patient_id == patient_id and pp.is_active and pp.remaining_sessions > 0
        ]

    async def use_session(
        self, patient_package_id: str, appointment_id: str, notes: Optional[str] = None
    ) -> PackageSession:
        await self.delay.wait()
        packages = self._load()
        index = self._require_index(packages, patient_package_id)
        patient_package = packages[index]
        if not patient_package.is_active or patient_package.remaining_sessions <= 0:
            raise ValidationError(
                f"Package {patient_package_id} has no remaining sessions"
            )

        now = self._now()
        remaining = patient_package.remaining_sessions - 1
        updated = replace(
            patient_package,
            remaining_sessions=remaining,
            is_active=remaining > 0,
            completed_at=now if remaining == 0 else patient_package.completed_at,
            updated_at=now,
        )
        packages[index] = updated
        self._save(packages)

        session = PackageSession(
            id=self._generate_id(),
            created_at=now,
            updated_at=now,
            patient_package_id=patient_package_id,
            appointment_id=appointment_id,
            used_at=now,
            notes=notes,
        )
        self._append_side_records(
            self.sessions_collection,
            package_sessions_seed(),
            [session],
            result=session,
            applied=updated,
        )
        logger.info(
            "Package session used",
            extra={
                "context": {
                    "patient_package_id": patient_package_id,
                    "appointment_id": appointment_id,
                    "remaining_sessions": remaining,
                }
            },
        )
        return session

    async def get_session_history(self, patient_package_id: str) -> List[PackageSession]:
        """Most recent session first."""
        await self.delay.wait()
        sessions = [
            s
            for s in self._load_side(
                self.sessions_collection, PackageSession, package_sessions_seed()
            )
            if s.patient_package_id == patient_package_id
        ]
        sessions.sort(key=lambda s: s.used_at or "", reverse=True)
        return sessions
