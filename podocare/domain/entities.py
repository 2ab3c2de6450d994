"""
Domain entities - Pure business records, no storage or transport dependencies.

Every entity is a dataclass with a string ``id`` and ISO-8601 timestamp
strings. Business rules are checked in ``__post_init__`` and violations raise
ValidationError, so a record that fails a rule is never written by any
backend.
"""

import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from podocare.core.config import DEFAULT_PAGE_SIZE
from podocare.core.exceptions import ValidationError

PAYMENT_METHODS = ("cash", "transfer", "yape", "pos", "plin", "balance")
APPOINTMENT_STATUSES = ("registered", "scheduled", "paid", "completed", "canceled")
PAYMENT_STATUSES = ("pending", "completed", "failed")
PRODUCT_STATUSES = ("active", "inactive")
MOVEMENT_TYPES = ("entrada", "salida")
SALE_STATES = ("activa", "anulada")

# Fields a caller may never set through create/update payloads.
SERVER_FIELDS = ("id", "created_at", "updated_at")


@dataclass
class Entity:
    """Base record: identifier plus creation/update timestamps."""

    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    # field name -> entity class name, for embedded reference objects
    _embedded: ClassVar[Dict[str, str]] = {}
    # field name -> entity class name, for embedded lists of records
    _embedded_lists: ClassVar[Dict[str, str]] = {}

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """Build an entity from a plain mapping, ignoring unknown keys."""
        known = set(cls.field_names())
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key in cls._embedded and isinstance(value, Mapping):
                value = _embedded_or_none(cls._embedded[key], value)
            elif key in cls._embedded_lists and isinstance(value, list):
                nested = _entity_class(cls._embedded_lists[key])
                value = [
                    nested.from_dict(v) if isinstance(v, Mapping) else v for v in value
                ]
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ValidationError(message)


def check_payload(entity_class, payload: Any) -> Dict[str, Any]:
    """
    Validate the keys of a create/update payload for ``entity_class``.

    Unknown fields and server-assigned fields (id, timestamps) raise
    ValidationError. Returns a plain dict copy.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Payload must be a mapping")
    known = set(entity_class.field_names())
    unknown = sorted(k for k in payload if k not in known)
    if unknown:
        raise ValidationError(
            f"Unknown fields for {entity_class.__name__}: {', '.join(unknown)}"
        )
    protected = sorted(k for k in payload if k in SERVER_FIELDS)
    if protected:
        raise ValidationError(f"Fields cannot be set by the caller: {', '.join(protected)}")
    return dict(payload)


@dataclass
class Patient(Entity):
    document_type: str = "dni"
    document_number: str = ""
    first_name: str = ""
    paternal_surname: str = ""
    maternal_surname: str = ""
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[str] = None
    allergy: Optional[str] = None
    diabetic: bool = False
    hypertensive: bool = False
    other_conditions: Optional[str] = None
    balance: float = 0.0

    def __post_init__(self):
        _require(bool(self.first_name), "First name is required")
        _require(bool(self.document_number), "Document number is required")
        _require(
            self.document_type in ("dni", "passport"),
            f"Invalid document type: {self.document_type}",
        )
        if self.email:
            _require("@" in self.email, "Invalid email format")

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.paternal_surname, self.maternal_surname)
        return " ".join(p for p in parts if p).strip()


@dataclass
class Worker(Entity):
    first_name: str = ""
    last_name: str = ""
    username: Optional[str] = None
    email: str = ""
    phone: Optional[str] = None
    specialization: Optional[str] = None
    worker_type: Optional[str] = None
    is_active: bool = True
    has_system_access: bool = False

    def __post_init__(self):
        _require(bool(self.first_name), "First name is required")
        if self.email:
            _require("@" in self.email, "Invalid email format")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Appointment(Entity):
    patient_id: str = ""
    worker_id: str = ""
    date: Optional[str] = None
    treatment_notes: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    treatment_price: Optional[float] = None
    appointment_price: Optional[float] = None
    status: str = "scheduled"
    observation: Optional[str] = None
    sale_id: Optional[str] = None
    patient: Optional[Patient] = None
    worker: Optional[Worker] = None

    _embedded: ClassVar[Dict[str, str]] = {"patient": "Patient", "worker": "Worker"}

    def __post_init__(self):
        _require(bool(self.patient_id), "Valid patient_id is required")
        _require(bool(self.worker_id), "Valid worker_id is required")
        _require(
            self.status in APPOINTMENT_STATUSES,
            f"Invalid appointment status: {self.status}",
        )
        for price in (self.treatment_price, self.appointment_price):
            if price is not None:
                _require(price >= 0, "Price cannot be negative")


@dataclass
class ProductCategory(Entity):
    name: str = ""
    slug: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        _require(bool(self.name), "Category name is required")


@dataclass
class Product(Entity):
    name: str = ""
    slug: Optional[str] = None
    description: Optional[str] = None
    price: float = 0.0
    stock: int = 0
    category_id: Optional[str] = None
    image_url: Optional[str] = None
    sku: Optional[str] = None
    status: str = "active"
    commission: Optional[float] = None
    category: Optional[ProductCategory] = None

    _embedded: ClassVar[Dict[str, str]] = {"category": "ProductCategory"}

    def __post_init__(self):
        _require(bool(self.name), "Product name is required")
        _require(self.price >= 0, "Price cannot be negative")
        _require(self.stock >= 0, "Stock cannot be negative")
        _require(self.status in PRODUCT_STATUSES, f"Invalid product status: {self.status}")

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass
class ProductMovement(Entity):
    """Kardex entry: one stock entry ("entrada") or exit ("salida")."""

    product_id: str = ""
    date: Optional[str] = None
    type: str = "entrada"
    quantity: int = 0
    cost_unit: float = 0.0
    total_cost: float = 0.0
    sale_price: Optional[float] = None
    stock_after: Optional[int] = None
    related_table: Optional[str] = None
    related_id: Optional[str] = None
    user_id: Optional[str] = None
    notes: Optional[str] = None
    product: Optional[Product] = None

    _embedded: ClassVar[Dict[str, str]] = {"product": "Product"}

    def __post_init__(self):
        _require(bool(self.product_id), "Valid product_id is required")
        _require(self.type in MOVEMENT_TYPES, f"Invalid movement type: {self.type}")
        _require(self.quantity >= 0, "Quantity cannot be negative")


@dataclass
class Payment(Entity):
    appointment_id: Optional[str] = None
    sale_id: Optional[str] = None
    amount: float = 0.0
    method: str = "cash"
    status: str = "pending"
    notes: Optional[str] = None
    paid_at: Optional[str] = None

    def __post_init__(self):
        _require(self.amount >= 0, "Amount cannot be negative")
        _require(self.method in PAYMENT_METHODS, f"Invalid payment method: {self.method}")
        _require(self.status in PAYMENT_STATUSES, f"Invalid payment status: {self.status}")


@dataclass
class SaleItem(Entity):
    sale_id: Optional[str] = None
    product_id: str = ""
    quantity: int = 1
    price: float = 0.0

    def __post_init__(self):
        _require(bool(self.product_id), "Valid product_id is required")
        _require(self.quantity > 0, "Quantity must be positive")
        _require(self.price >= 0, "Price cannot be negative")

    @property
    def subtotal(self) -> float:
        return self.quantity * self.price


@dataclass
class Sale(Entity):
    items: List[SaleItem] = field(default_factory=list)
    total_amount: float = 0.0
    patient_id: Optional[str] = None
    appointment_id: Optional[str] = None
    seller_id: Optional[str] = None
    date: Optional[str] = None
    payment_method: Optional[str] = None
    state: str = "activa"
    cancel_reason: Optional[str] = None

    _embedded_lists: ClassVar[Dict[str, str]] = {"items": "SaleItem"}

    def __post_init__(self):
        _require(self.total_amount >= 0, "Total amount cannot be negative")
        _require(self.state in SALE_STATES, f"Invalid sale state: {self.state}")
        if self.payment_method is not None:
            _require(
                self.payment_method in PAYMENT_METHODS,
                f"Invalid payment method: {self.payment_method}",
            )


@dataclass
class Abono(Entity):
    """Prepaid patient credit consumed against appointments or sales."""

    patient_id: str = ""
    amount: float = 0.0
    method: str = "cash"
    notes: Optional[str] = None
    registered_at: Optional[str] = None
    used_amount: float = 0.0
    remaining_amount: float = 0.0
    is_active: bool = True

    def __post_init__(self):
        _require(bool(self.patient_id), "Valid patient_id is required")
        _require(self.amount > 0, "Abono amount must be positive")
        _require(self.method in PAYMENT_METHODS, f"Invalid payment method: {self.method}")
        _require(self.used_amount >= 0, "Used amount cannot be negative")
        _require(self.remaining_amount >= 0, "Remaining amount cannot be negative")


@dataclass
class AbonoUsage(Entity):
    abono_id: str = ""
    appointment_id: Optional[str] = None
    sale_id: Optional[str] = None
    amount: float = 0.0
    used_at: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _require(bool(self.abono_id), "Valid abono_id is required")
        _require(self.amount > 0, "Usage amount must be positive")


@dataclass
class Package(Entity):
    name: str = ""
    description: Optional[str] = None
    price: float = 0.0
    sessions: int = 0
    status: str = "active"
    notes: Optional[str] = None
    is_active: bool = True

    def __post_init__(self):
        _require(bool(self.name), "Package name is required")
        _require(self.price >= 0, "Price cannot be negative")
        _require(self.sessions >= 0, "Sessions cannot be negative")


@dataclass
class PatientPackage(Entity):
    patient_id: str = ""
    package_id: str = ""
    remaining_sessions: int = 0
    purchased_at: Optional[str] = None
    completed_at: Optional[str] = None
    is_active: bool = True
    package: Optional[Package] = None
    patient: Optional[Patient] = None

    _embedded: ClassVar[Dict[str, str]] = {"package": "Package", "patient": "Patient"}

    def __post_init__(self):
        _require(bool(self.patient_id), "Valid patient_id is required")
        _require(bool(self.package_id), "Valid package_id is required")
        _require(self.remaining_sessions >= 0, "Remaining sessions cannot be negative")


@dataclass
class PackageSession(Entity):
    patient_package_id: str = ""
    appointment_id: Optional[str] = None
    used_at: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _require(bool(self.patient_package_id), "Valid patient_package_id is required")


def _entity_class(name: str):
    return globals()[name]


def _embedded_or_none(name: str, data: Mapping[str, Any]):
    # Embedded references are informational; a partial one is dropped.
    try:
        return _entity_class(name).from_dict(data)
    except ValidationError:
        return None


# ===========================
# Stats records
# ===========================


@dataclass(frozen=True)
class PatientStats:
    total: int = 0
    new_this_month: int = 0
    new_this_week: int = 0


@dataclass(frozen=True)
class AppointmentStats:
    today: int = 0
    completed: int = 0
    scheduled: int = 0
    total: int = 0


@dataclass(frozen=True)
class ProductStats:
    total: int = 0
    low_stock: int = 0
    out_of_stock: int = 0


@dataclass(frozen=True)
class IncomeStats:
    today: float = 0.0
    this_week: float = 0.0
    this_month: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class SaleStats:
    today: int = 0
    this_week: int = 0
    this_month: int = 0
    total: int = 0
    total_amount: float = 0.0


@dataclass(frozen=True)
class CategoryWithCount:
    category: ProductCategory
    product_count: int = 0


# ===========================
# Envelopes
# ===========================

T = TypeVar("T")


@dataclass
class PageParams:
    """Page, size, free-text search and extra equality filters for a list call.

    ``sort`` names a field, prefixed with '-' for descending order.
    """

    page: int = 1
    limit: Optional[int] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.page is None or self.page < 1:
            self.page = 1
        if self.limit is not None and self.limit < 1:
            self.limit = None

    @classmethod
    def coerce(cls, params: Any = None) -> "PageParams":
        """Accept None, a PageParams or a plain dict (unknown keys become filters)."""
        if params is None:
            return cls()
        if isinstance(params, cls):
            return params
        if isinstance(params, Mapping):
            data = dict(params)
            filters = dict(data.pop("filters", None) or {})
            known = {"page", "limit", "search", "sort"}
            for key in list(data):
                if key not in known:
                    filters[key] = data.pop(key)
            return cls(filters=filters, **data)
        raise TypeError(f"Unsupported pagination params: {type(params).__name__}")

    def resolved(self, default_limit: int) -> "PageParams":
        """Fill an unset ``limit`` with the repository's configured page size."""
        if self.limit is not None:
            return self
        return replace(self, limit=default_limit)

    def with_filters(self, **filters: Any) -> "PageParams":
        merged = dict(self.filters)
        merged.update(filters)
        return PageParams(
            page=self.page,
            limit=self.limit,
            search=self.search,
            sort=self.sort,
            filters=merged,
        )

    def to_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {"page": self.page}
        if self.limit is not None:
            query["limit"] = self.limit
        if self.search:
            query["search"] = self.search
        if self.sort:
            query["sort"] = self.sort
        query.update(self.filters)
        return query


@dataclass
class Paginated(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, items: List[T], total: int, page: int, limit: int) -> "Paginated[T]":
        limit = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
        return cls(
            items=list(items),
            total=total,
            page=max(1, page),
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
