"""
API backend: repositories executed against the clinic REST API.
"""

from .abono_repo import ApiAbonoRepository, ApiPackageRepository, ApiPatientPackageRepository
from .appointment_repo import ApiAppointmentRepository
from .base import ApiRepository, build_query_string
from .client import ApiClient, parse_response
from .patient_repo import ApiPatientRepository, ApiWorkerRepository
from .payment_repo import ApiPaymentRepository, ApiSaleRepository
from .product_repo import (
    ApiProductCategoryRepository,
    ApiProductMovementRepository,
    ApiProductRepository,
)

__all__ = [
    "ApiClient",
    "parse_response",
    "build_query_string",
    "ApiRepository",
    "ApiPatientRepository",
    "ApiWorkerRepository",
    "ApiAppointmentRepository",
    "ApiProductRepository",
    "ApiProductCategoryRepository",
    "ApiProductMovementRepository",
    "ApiPaymentRepository",
    "ApiSaleRepository",
    "ApiAbonoRepository",
    "ApiPackageRepository",
    "ApiPatientPackageRepository",
]
