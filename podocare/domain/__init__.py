"""
Domain package - Pure business layer.

This package contains:
- entities.py: Dataclass records, stats records and pagination envelopes
- interfaces.py: Repository contracts implemented by every backend
"""

from .entities import (
    Abono,
    AbonoUsage,
    Appointment,
    AppointmentStats,
    CategoryWithCount,
    Entity,
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
from .interfaces import (
    IAbonoRepository,
    IAppointmentRepository,
    IPackageRepository,
    IPatientPackageRepository,
    IPatientRepository,
    IPaymentRepository,
    IProductCategoryRepository,
    IProductMovementRepository,
    IProductRepository,
    IRepository,
    ISaleRepository,
    IWorkerRepository,
)

__all__ = [
    # Domain entities
    "Entity",
    "Patient",
    "Worker",
    "Appointment",
    "Product",
    "ProductCategory",
    "ProductMovement",
    "Payment",
    "Sale",
    "SaleItem",
    "Abono",
    "AbonoUsage",
    "Package",
    "PatientPackage",
    "PackageSession",
    # Stats
    "PatientStats",
    "AppointmentStats",
    "ProductStats",
    "IncomeStats",
    "SaleStats",
    "CategoryWithCount",
    # Envelopes
    "PageParams",
    "Paginated",
    # Repository interfaces
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
]
