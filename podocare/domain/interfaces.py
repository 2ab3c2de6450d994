"""
Abstract interfaces for repositories.

These interfaces define the contract every backend (local store, remote API,
hybrid) implements, enabling the factory to hand out interchangeable
implementations. All operations are coroutines.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, List, Mapping, Optional, TypeVar

from .entities import (
    Abono,
    AbonoUsage,
    Appointment,
    AppointmentStats,
    CategoryWithCount,
    IncomeStats,
    Package,
    PackageSession,
    PageParams,
    Paginated,
    Patient,
    PatientPackage,
    PatientStats,
    Payment,
    Product,
    ProductCategory,
    ProductMovement,
    ProductStats,
    Sale,
    SaleItem,
    SaleStats,
    Worker,
)

T = TypeVar("T")

Payload = Mapping[str, Any]
Params = Optional[Any]  # None, PageParams or a plain dict


class IRepository(ABC, Generic[T]):
    """Uniform CRUD contract shared by every entity repository."""

    @abstractmethod
    async def get_all(self, params: Params = None) -> Paginated[T]:
        """Get one page of records; always returns the paginated envelope."""
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """Get a record by ID, or None when it does not exist."""
        pass

    @abstractmethod
    async def create(self, payload: Payload) -> T:
        """Create a record; the backend assigns id and timestamps."""
        pass

    @abstractmethod
    async def update(self, entity_id: str, changes: Payload) -> T:
        """Merge ``changes`` into an existing record. Raises NotFoundError."""
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """Delete a record. Raises NotFoundError."""
        pass


class IPatientRepository(IRepository[Patient]):
    @abstractmethod
    async def get_by_document_id(self, document_id: str) -> Optional[Patient]:
        pass

    @abstractmethod
    async def search_patients(self, params: Params) -> Paginated[Patient]:
        pass

    @abstractmethod
    async def get_patient_stats(self) -> PatientStats:
        pass


class IWorkerRepository(IRepository[Worker]):
    @abstractmethod
    async def get_active_workers(self, params: Params = None) -> Paginated[Worker]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Worker]:
        pass

    @abstractmethod
    async def update_active_status(self, worker_id: str, is_active: bool) -> Worker:
        pass


class IAppointmentRepository(IRepository[Appointment]):
    @abstractmethod
    async def get_by_patient_id(
        self, patient_id: str, params: Params = None
    ) -> Paginated[Appointment]:
        pass

    @abstractmethod
    async def get_by_worker_id(
        self, worker_id: str, params: Params = None
    ) -> Paginated[Appointment]:
        pass

    @abstractmethod
    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Params = None
    ) -> Paginated[Appointment]:
        pass

    @abstractmethod
    async def get_by_status(self, status: str, params: Params = None) -> Paginated[Appointment]:
        pass

    @abstractmethod
    async def get_todays_appointments(self, params: Params = None) -> Paginated[Appointment]:
        pass

    @abstractmethod
    async def update_status(self, appointment_id: str, status: str) -> Appointment:
        pass

    @abstractmethod
    async def get_appointment_stats(self) -> AppointmentStats:
        pass


class IProductRepository(IRepository[Product]):
    @abstractmethod
    async def get_by_category_id(
        self, category_id: str, params: Params = None
    ) -> Paginated[Product]:
        pass

    @abstractmethod
    async def get_active_products(self, params: Params = None) -> Paginated[Product]:
        pass

    @abstractmethod
    async def get_low_stock_products(
        self, threshold: int = 5, params: Params = None
    ) -> Paginated[Product]:
        pass

    @abstractmethod
    async def update_stock(self, product_id: str, quantity: int, reason: str) -> Product:
        """Add ``quantity`` (negative to remove) to the stock and record a kardex movement."""
        pass

    @abstractmethod
    async def search_products(self, params: Params) -> Paginated[Product]:
        pass

    @abstractmethod
    async def get_product_stats(self) -> ProductStats:
        pass


class IProductCategoryRepository(IRepository[ProductCategory]):
    @abstractmethod
    async def get_categories_with_product_count(self) -> List[CategoryWithCount]:
        pass


class IProductMovementRepository(ABC):
    """Kardex ledger: append-only, so no update/delete."""

    @abstractmethod
    async def get_all(self, params: Params = None) -> Paginated[ProductMovement]:
        pass

    @abstractmethod
    async def get_by_product_id(
        self, product_id: str, params: Params = None
    ) -> Paginated[ProductMovement]:
        pass

    @abstractmethod
    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Params = None
    ) -> Paginated[ProductMovement]:
        pass

    @abstractmethod
    async def create(self, payload: Payload) -> ProductMovement:
        pass


class IPaymentRepository(IRepository[Payment]):
    @abstractmethod
    async def get_by_appointment_id(
        self, appointment_id: str, params: Params = None
    ) -> Paginated[Payment]:
        pass

    @abstractmethod
    async def get_by_sale_id(self, sale_id: str, params: Params = None) -> Paginated[Payment]:
        pass

    @abstractmethod
    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Params = None
    ) -> Paginated[Payment]:
        pass

    @abstractmethod
    async def get_by_method(self, method: str, params: Params = None) -> Paginated[Payment]:
        pass

    @abstractmethod
    async def get_income_stats(self) -> IncomeStats:
        pass


class ISaleRepository(IRepository[Sale]):
    @abstractmethod
    async def get_by_customer_id(
        self, customer_id: str, params: Params = None
    ) -> Paginated[Sale]:
        pass

    @abstractmethod
    async def get_by_seller_id(self, seller_id: str, params: Params = None) -> Paginated[Sale]:
        pass

    @abstractmethod
    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Params = None
    ) -> Paginated[Sale]:
        pass

    @abstractmethod
    async def create_sale_with_items(self, sale: Payload, items: List[Payload]) -> Sale:
        pass

    @abstractmethod
    async def get_sale_stats(self) -> SaleStats:
        pass


class IAbonoRepository(IRepository[Abono]):
    @abstractmethod
    async def get_by_patient_id(self, patient_id: str, params: Params = None) -> Paginated[Abono]:
        pass

    @abstractmethod
    async def get_active_abonos_by_patient_id(
        self, patient_id: str, params: Params = None
    ) -> Paginated[Abono]:
        pass

    @abstractmethod
    async def use_abono(
        self,
        abono_id: str,
        amount: float,
        appointment_id: Optional[str] = None,
        sale_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AbonoUsage:
        """Consume credit. Raises ValidationError when the balance is insufficient."""
        pass

    @abstractmethod
    async def get_patient_abono_balance(self, patient_id: str) -> float:
        pass

    @abstractmethod
    async def get_abono_usage_history(
        self, abono_id: str, params: Params = None
    ) -> Paginated[AbonoUsage]:
        pass


class IPackageRepository(IRepository[Package]):
    @abstractmethod
    async def get_active_packages(self) -> List[Package]:
        pass


class IPatientPackageRepository(IRepository[PatientPackage]):
    @abstractmethod
    async def get_by_patient_id(self, patient_id: str) -> List[PatientPackage]:
        pass

    @abstractmethod
    async def get_active_by_patient_id(self, patient_id: str) -> List[PatientPackage]:
        pass

    @abstractmethod
    async def use_session(
        self, patient_package_id: str, appointment_id: str, notes: Optional[str] = None
    ) -> PackageSession:
        """Consume one session. Raises ValidationError when none remain."""
        pass

    @abstractmethod
    async def get_session_history(self, patient_package_id: str) -> List[PackageSession]:
        pass


__all__ = [
    "IRepository",
    "IPatientRepository",
    "IWorkerRepository",
    "IAppointmentRepository",
    "IProductRepository",
    "IProductCategoryRepository",
    "IProductMovementRepository",
    "IPaymentRepository",
    "ISaleRepository",
    "IAbonoRepository",
    "IPackageRepository",
    "IPatientPackageRepository",
    "PageParams",
    "SaleItem",
]
