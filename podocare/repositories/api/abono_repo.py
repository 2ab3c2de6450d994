"""API abono and package repositories."""

from typing import Any, List, Mapping, Optional

from podocare.core.exceptions import TransportError, ValidationError
from podocare.domain.entities import (
    Abono,
    AbonoUsage,
    Package,
    PackageSession,
    Paginated,
    PatientPackage,
)
from podocare.domain.interfaces import (
    IAbonoRepository,
    IPackageRepository,
    IPatientPackageRepository,
)

from .base import ApiRepository, compact, path_id
from .normalizers import unwrap_page


class ApiAbonoRepository(ApiRepository[Abono], IAbonoRepository):
    entity_class = Abono
    endpoint = "/abono"

    async def get_by_patient_id(self, patient_id: str, params: Any = None) -> Paginated[Abono]:
        return await self._get_page(params=params, patient_id=patient_id)

    async def get_active_abonos_by_patient_id(
        self, patient_id: str, params: Any = None
    ) -> Paginated[Abono]:
        return await self._get_page(params=params, patient_id=patient_id, active=True)

    async def use_abono(
        self,
        abono_id: str,
        amount: float,
        appointment_id: Optional[str] = None,
        sale_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AbonoUsage:
        if amount is None or amount <= 0:
            raise ValidationError("Usage amount must be positive")
        body = compact(
            {
                "amount": amount,
                "appointment_id": appointment_id,
                "sale_id": sale_id,
                "notes": notes,
            }
        )
        return await self._send("POST", f"/{path_id(abono_id)}/use", body, AbonoUsage)

    async def get_patient_abono_balance(self, patient_id: str) -> float:
        data = await self._get_data(f"/patient/{path_id(patient_id)}/balance")
        if isinstance(data, Mapping):
            data = data.get("balance")
        if not isinstance(data, (int, float)) or isinstance(data, bool):
            raise TransportError("Malformed balance payload")
        return float(data)

    async def get_abono_usage_history(self, abono_id: str, params: Any = None) -> Paginated[AbonoUsage]:
        page_params = self._coerce_params(params)
        data = await self.client.request(
            "GET", self._path(f"/{path_id(abono_id)}/usage", page_params.to_query())
        )
        return unwrap_page(AbonoUsage, data, page_params)


class ApiPackageRepository(ApiRepository[Package], IPackageRepository):
    entity_class = Package
    endpoint = "/package"

    async def get_active_packages(self) -> List[Package]:
        return await self._get_list(active=True)


class ApiPatientPackageRepository(ApiRepository[PatientPackage], IPatientPackageRepository):
    entity_class = PatientPackage
    endpoint = "/patient-package"

    async def get_by_patient_id(self, patient_id: str) -> List[PatientPackage]:
        return await self._get_list(patient_id=patient_id)

    async def get_active_by_patient_id(self, patient_id: str) -> List[PatientPackage]:
        return await self._get_list(patient_id=patient_id, active=True)

    async def use_session(
        self, patient_package_id: str, appointment_id: str, notes: Optional[str] = None
    ) -> PackageSession:
        body = compact({"appointment_id": appointment_id, "notes": notes})
        return await self._send(
            "POST", f"/{path_id(patient_package_id)}/use-session", body, PackageSession
        )

    async def get_session_history(self, patient_package_id: str) -> List[PackageSession]:
        return await self._get_list(
            f"/{path_id(patient_package_id)}/sessions", entity_class=PackageSession
        )
