"""
Local backend: repositories persisted as JSON collections in a KeyValueStore.
"""

from .abono_repo import LocalAbonoRepository
from .appointment_repo import LocalAppointmentRepository
from .base import LatencySimulator, LocalRepository, NetworkDelay, NoDelay, delay_for
from .package_repo import LocalPackageRepository, LocalPatientPackageRepository
from .patient_repo import LocalPatientRepository, LocalWorkerRepository
from .payment_repo import LocalPaymentRepository, LocalSaleRepository
from .product_repo import (
    LocalProductCategoryRepository,
    LocalProductMovementRepository,
    LocalProductRepository,
)

__all__ = [
    "LatencySimulator",
    "NetworkDelay",
    "NoDelay",
    "delay_for",
    "LocalRepository",
    "LocalPatientRepository",
    "LocalWorkerRepository",
    "LocalAppointmentRepository",
    "LocalProductRepository",
    "LocalProductCategoryRepository",
    "LocalProductMovementRepository",
    "LocalPaymentRepository",
    "LocalSaleRepository",
    "LocalAbonoRepository",
    "LocalPackageRepository",
    "LocalPatientPackageRepository",
]
