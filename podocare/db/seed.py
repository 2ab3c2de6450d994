"""
Seed datasets for the local backend.

A local repository persists its seed the first time its collection key is
read and falls back to it when the stored collection cannot be read. Each
``*_seed()`` function returns a fresh list so callers may mutate it freely.
"""

import copy
from typing import Any, Dict, List

Record = Dict[str, Any]

_PATIENTS: List[Record] = [
    {
        "id": "1",
        "document_type": "dni",
        "document_number": "12345678",
        "first_name": "María",
        "paternal_surname": "González",
        "maternal_surname": "López",
        "gender": "f",
        "phone": "+51 987 654 321",
        "birth_date": "1985-03-15",
        "diabetic": True,
        "other_conditions": "Diabetes tipo 2. Revisar estado de uñas regularmente.",
        "balance": 0.0,
        "created_at": "2024-01-10T09:00:00.000Z",
        "updated_at": "2024-01-10T09:00:00.000Z",
    },
    {
        "id": "2",
        "document_type": "dni",
        "document_number": "87654321",
        "first_name": "Carlos",
        "paternal_surname": "Rodríguez",
        "maternal_surname": "Mendez",
        "gender": "m",
        "phone": "+51 987 123 456",
        "birth_date": "1978-07-22",
        "other_conditions": "Fascitis plantar recurrente. Usa plantillas ortopédicas.",
        "balance": 0.0,
        "created_at": "2024-01-12T10:30:00.000Z",
        "updated_at": "2024-01-12T10:30:00.000Z",
    },
    {
        "id": "3",
        "document_type": "dni",
        "document_number": "11223344",
        "first_name": "Ana",
        "paternal_surname": "García",
        "maternal_surname": "Torres",
        "gender": "f",
        "phone": "+51 998 765 432",
        "birth_date": "1992-11-08",
        "other_conditions": "Uñas encarnadas recurrentes.",
        "balance": 0.0,
        "created_at": "2024-01-14T15:00:00.000Z",
        "updated_at": "2024-01-14T15:00:00.000Z",
    },
    {
        "id": "4",
        "document_type": "dni",
        "document_number": "55667788",
        "first_name": "Roberto",
        "paternal_surname": "Silva",
        "maternal_surname": "Vargas",
        "gender": "m",
        "phone": "+51 976 543 210",
        "birth_date": "1965-04-30",
        "hypertensive": True,
        "other_conditions": "Circulación reducida. Tratamientos suaves recomendados.",
        "balance": 0.0,
        "created_at": "2024-01-15T08:45:00.000Z",
        "updated_at": "2024-01-15T08:45:00.000Z",
    },
    {
        "id": "5",
        "document_type": "dni",
        "document_number": "99887766",
        "first_name": "Lucía",
        "paternal_surname": "Fernández",
        "maternal_surname": "Castro",
        "gender": "f",
        "phone": "+51 965 432 109",
        "birth_date": "1988-09-12",
        "other_conditions": "Onicomicosis en tratamiento antifúngico.",
        "balance": 0.0,
        "created_at": "2024-01-18T11:20:00.000Z",
        "updated_at": "2024-01-18T11:20:00.000Z",
    },
]

_WORKERS: List[Record] = [
    {
        "id": "1",
        "first_name": "Patricia",
        "last_name": "Morales Sánchez",
        "email": "patricia.morales@podocare.com",
        "phone": "+51 987 111 222",
        "specialization": "Podología Quirúrgica",
        "worker_type": "podologist",
        "is_active": True,
        "has_system_access": True,
        "created_at": "2023-06-01T08:00:00.000Z",
        "updated_at": "2024-01-15T10:30:00.000Z",
    },
    {
        "id": "2",
        "first_name": "Carlos",
        "last_name": "Rodríguez Lima",
        "email": "carlos.rodriguez@podocare.com",
        "phone": "+51 987 333 444",
        "specialization": "Podología General",
        "worker_type": "podologist",
        "is_active": True,
        "created_at": "2023-08-15T09:00:00.000Z",
        "updated_at": "2024-01-10T14:20:00.000Z",
    },
    {
        "id": "3",
        "first_name": "Elena",
        "last_name": "Vásquez Ramos",
        "email": "elena.vasquez@podocare.com",
        "phone": "+51 987 555 666",
        "specialization": "Podología Deportiva",
        "worker_type": "podologist",
        "is_active": True,
        "created_at": "2023-09-01T08:30:00.000Z",
        "updated_at": "2024-01-12T16:45:00.000Z",
    },
    {
        "id": "4",
        "first_name": "Miguel",
        "last_name": "Torres Herrera",
        "email": "miguel.torres@podocare.com",
        "phone": "+51 987 777 888",
        "specialization": "Podología Pediátrica",
        "worker_type": "assistant",
        "is_active": False,
        "created_at": "2023-05-10T07:45:00.000Z",
        "updated_at": "2023-12-20T12:00:00.000Z",
    },
]

_APPOINTMENTS: List[Record] = [
    {
        "id": "1",
        "patient_id": "1",
        "worker_id": "1",
        "date": "2024-01-25T09:00:00.000Z",
        "treatment_notes": "Tratamiento de callos plantares y revisión general",
        "diagnosis": "Hiperqueratosis plantar bilateral",
        "appointment_price": 80.0,
        "status": "completed",
        "created_at": "2024-01-20T10:00:00.000Z",
        "updated_at": "2024-01-25T10:00:00.000Z",
    },
    {
        "id": "2",
        "patient_id": "2",
        "worker_id": "2",
        "date": "2024-01-25T11:30:00.000Z",
        "treatment_notes": "Revisión de fascitis plantar y ajuste de plantillas",
        "diagnosis": "Fascitis plantar crónica",
        "appointment_price": 120.0,
        "status": "completed",
        "created_at": "2024-01-22T14:30:00.000Z",
        "updated_at": "2024-01-25T12:15:00.000Z",
    },
    {
        "id": "3",
        "patient_id": "3",
        "worker_id": "1",
        "date": "2024-01-26T10:00:00.000Z",
        "treatment_notes": "Tratamiento de uña encarnada",
        "diagnosis": "Onicocriptosis en hallux derecho",
        "status": "scheduled",
        "created_at": "2024-01-24T09:15:00.000Z",
        "updated_at": "2024-01-24T09:15:00.000Z",
    },
    {
        "id": "4",
        "patient_id": "4",
        "worker_id": "3",
        "date": "2024-01-26T14:00:00.000Z",
        "treatment_notes": "Limpieza general y tratamiento de durezas",
        "status": "scheduled",
        "created_at": "2024-01-23T16:20:00.000Z",
        "updated_at": "2024-01-23T16:20:00.000Z",
    },
    {
        "id": "5",
        "patient_id": "5",
        "worker_id": "2",
        "date": "2024-01-27T09:30:00.000Z",
        "treatment_notes": "Control de tratamiento antimicótico",
        "diagnosis": "Onicomicosis en tratamiento",
        "status": "scheduled",
        "created_at": "2024-01-24T11:45:00.000Z",
        "updated_at": "2024-01-24T11:45:00.000Z",
    },
]

_PRODUCT_CATEGORIES: List[Record] = [
    {
        "id": "1",
        "name": "Cremas y Lociones",
        "slug": "cremas-y-lociones",
        "description": "Productos tópicos para el cuidado de pies",
    },
    {
        "id": "2",
        "name": "Antimicóticos",
        "slug": "antimicoticos",
        "description": "Medicamentos para tratar hongos",
    },
    {
        "id": "3",
        "name": "Desinfectantes",
        "slug": "desinfectantes",
        "description": "Productos de limpieza y desinfección",
    },
    {
        "id": "4",
        "name": "Instrumentos",
        "slug": "instrumentos",
        "description": "Herramientas e instrumentos podológicos",
    },
    {
        "id": "5",
        "name": "Plantillas",
        "slug": "plantillas",
        "description": "Plantillas ortopédicas y de soporte",
    },
]
for _category in _PRODUCT_CATEGORIES:
    _category["created_at"] = _category["updated_at"] = "2023-01-01T00:00:00.000Z"

_PRODUCTS: List[Record] = [
    {
        "id": "1",
        "name": "Crema Hidratante para Pies",
        "description": "Crema intensiva para hidratar y suavizar la piel de los pies",
        "category_id": "1",
        "price": 25.5,
        "stock": 15,
        "sku": "CHP001",
        "commission": 5.0,
        "status": "active",
    },
    {
        "id": "2",
        "name": "Antimicótico Tópico",
        "description": "Crema antifúngica para el tratamiento de hongos en pies",
        "category_id": "2",
        "price": 35.0,
        "stock": 3,
        "sku": "ANT001",
        "status": "active",
    },
    {
        "id": "3",
        "name": "Alcohol Antiséptico 70%",
        "description": "Desinfectante para instrumental y piel",
        "category_id": "3",
        "price": 8.0,
        "stock": 40,
        "sku": "DES001",
        "status": "active",
    },
    {
        "id": "4",
        "name": "Alicate para Uñas Profesional",
        "description": "Alicate de acero quirúrgico",
        "category_id": "4",
        "price": 65.0,
        "stock": 0,
        "sku": "INS001",
        "status": "active",
    },
    {
        "id": "5",
        "name": "Plantilla Ortopédica Deportiva",
        "description": "Plantilla de soporte para arco plantar",
        "category_id": "5",
        "price": 90.0,
        "stock": 8,
        "sku": "PLA001",
        "status": "inactive",
    },
]
for _product in _PRODUCTS:
    _product["created_at"] = "2023-06-01T00:00:00.000Z"
    _product["updated_at"] = "2024-01-15T10:30:00.000Z"

_PRODUCT_MOVEMENTS: List[Record] = [
    {
        "id": "1",
        "product_id": "1",
        "date": "2024-01-01T08:00:00.000Z",
        "type": "entrada",
        "quantity": 20,
        "cost_unit": 15.0,
        "total_cost": 300.0,
        "stock_after": 20,
        "related_table": "purchase",
        "notes": "Compra inicial",
        "created_at": "2024-01-01T08:00:00.000Z",
        "updated_at": "2024-01-01T08:00:00.000Z",
    },
    {
        "id": "2",
        "product_id": "1",
        "date": "2024-01-15T14:30:00.000Z",
        "type": "salida",
        "quantity": 5,
        "cost_unit": 15.0,
        "total_cost": 75.0,
        "sale_price": 25.5,
        "stock_after": 15,
        "related_table": "sale",
        "related_id": "1",
        "notes": "Venta",
        "created_at": "2024-01-15T14:30:00.000Z",
        "updated_at": "2024-01-15T14:30:00.000Z",
    },
    {
        "id": "3",
        "product_id": "2",
        "date": "2024-01-01T08:00:00.000Z",
        "type": "entrada",
        "quantity": 15,
        "cost_unit": 20.0,
        "total_cost": 300.0,
        "stock_after": 15,
        "related_table": "purchase",
        "notes": "Reposición de stock",
        "created_at": "2024-01-01T08:00:00.000Z",
        "updated_at": "2024-01-01T08:00:00.000Z",
    },
]

_PAYMENTS: List[Record] = [
    {
        "id": "1",
        "appointment_id": "1",
        "amount": 80.0,
        "method": "cash",
        "status": "completed",
        "paid_at": "2024-01-25T10:00:00.000Z",
        "created_at": "2024-01-25T10:00:00.000Z",
        "updated_at": "2024-01-25T10:00:00.000Z",
    },
    {
        "id": "2",
        "appointment_id": "2",
        "amount": 120.0,
        "method": "yape",
        "status": "completed",
        "paid_at": "2024-01-25T12:15:00.000Z",
        "created_at": "2024-01-25T12:15:00.000Z",
        "updated_at": "2024-01-25T12:15:00.000Z",
    },
    {
        "id": "3",
        "sale_id": "1",
        "amount": 25.5,
        "method": "cash",
        "status": "completed",
        "paid_at": "2024-01-15T14:30:00.000Z",
        "created_at": "2024-01-15T14:30:00.000Z",
        "updated_at": "2024-01-15T14:30:00.000Z",
    },
    {
        "id": "4",
        "sale_id": "2",
        "amount": 43.0,
        "method": "transfer",
        "status": "pending",
        "created_at": "2024-01-20T16:00:00.000Z",
        "updated_at": "2024-01-20T16:00:00.000Z",
    },
]

_SALE_ITEMS: List[Record] = [
    {"id": "1", "sale_id": "1", "product_id": "1", "quantity": 1, "price": 25.5},
    {"id": "2", "sale_id": "2", "product_id": "2", "quantity": 1, "price": 35.0},
    {"id": "3", "sale_id": "2", "product_id": "3", "quantity": 1, "price": 8.0},
]

_SALES: List[Record] = [
    {
        "id": "1",
        "total_amount": 25.5,
        "patient_id": "1",
        "seller_id": "2",
        "date": "2024-01-15T14:30:00.000Z",
        "payment_method": "cash",
        "state": "activa",
        "created_at": "2024-01-15T14:30:00.000Z",
        "updated_at": "2024-01-15T14:30:00.000Z",
    },
    {
        "id": "2",
        "total_amount": 43.0,
        "patient_id": "2",
        "seller_id": "1",
        "date": "2024-01-20T16:00:00.000Z",
        "payment_method": "transfer",
        "state": "activa",
        "created_at": "2024-01-20T16:00:00.000Z",
        "updated_at": "2024-01-20T16:00:00.000Z",
    },
]

_ABONOS: List[Record] = [
    {
        "id": "1",
        "patient_id": "1",
        "amount": 100.0,
        "method": "yape",
        "notes": "Prepago para tratamientos futuros",
        "registered_at": "2024-01-20T10:00:00.000Z",
        "used_amount": 25.0,
        "remaining_amount": 75.0,
        "is_active": True,
        "created_at": "2024-01-20T10:00:00.000Z",
        "updated_at": "2024-01-22T14:30:00.000Z",
    },
    {
        "id": "2",
        "patient_id": "2",
        "amount": 150.0,
        "method": "transfer",
        "notes": "Abono para paquete de terapia",
        "registered_at": "2024-01-18T16:00:00.000Z",
        "used_amount": 0.0,
        "remaining_amount": 150.0,
        "is_active": True,
        "created_at": "2024-01-18T16:00:00.000Z",
        "updated_at": "2024-01-18T16:00:00.000Z",
    },
    {
        "id": "3",
        "patient_id": "1",
        "amount": 200.0,
        "method": "pos",
        "notes": "Abono con tarjeta",
        "registered_at": "2024-01-10T14:20:00.000Z",
        "used_amount": 200.0,
        "remaining_amount": 0.0,
        "is_active": False,
        "created_at": "2024-01-10T14:20:00.000Z",
        "updated_at": "2024-01-21T16:45:00.000Z",
    },
]

_ABONO_USAGE: List[Record] = [
    {
        "id": "1",
        "abono_id": "1",
        "appointment_id": "1",
        "amount": 25.0,
        "used_at": "2024-01-22T14:30:00.000Z",
        "notes": "Pago parcial de consulta",
        "created_at": "2024-01-22T14:30:00.000Z",
        "updated_at": "2024-01-22T14:30:00.000Z",
    },
]

_PACKAGES: List[Record] = [
    {
        "id": "1",
        "name": "Podology Starter Pack",
        "sessions": 3,
        "price": 120.0,
        "notes": "Evaluación completa y tratamiento básico",
        "status": "active",
        "is_active": True,
    },
    {
        "id": "2",
        "name": "Advanced Therapy",
        "sessions": 6,
        "price": 200.0,
        "notes": "Terapia avanzada para tratamientos especializados",
        "status": "active",
        "is_active": True,
    },
    {
        "id": "3",
        "name": "Foot Massage Combo",
        "sessions": 5,
        "price": 150.0,
        "notes": "Masajes terapéuticos y tratamientos relajantes",
        "status": "inactive",
        "is_active": False,
    },
]
for _package in _PACKAGES:
    _package["created_at"] = _package["updated_at"] = "2024-01-01T08:00:00.000Z"

_PATIENT_PACKAGES: List[Record] = [
    {
        "id": "1",
        "patient_id": "1",
        "package_id": "1",
        "remaining_sessions": 2,
        "purchased_at": "2024-01-15T10:00:00.000Z",
        "is_active": True,
    },
    {
        "id": "2",
        "patient_id": "2",
        "package_id": "2",
        "remaining_sessions": 4,
        "purchased_at": "2024-01-10T14:00:00.000Z",
        "is_active": True,
    },
    {
        "id": "3",
        "patient_id": "3",
        "package_id": "3",
        "remaining_sessions": 0,
        "purchased_at": "2023-11-05T09:00:00.000Z",
        "completed_at": "2024-01-05T09:00:00.000Z",
        "is_active": False,
    },
]
for _patient_package in _PATIENT_PACKAGES:
    _patient_package["created_at"] = _patient_package["purchased_at"]
    _patient_package["updated_at"] = _patient_package["purchased_at"]

_PACKAGE_SESSIONS: List[Record] = [
    {
        "id": "1",
        "patient_package_id": "1",
        "appointment_id": "1",
        "used_at": "2024-01-25T09:30:00.000Z",
        "notes": "Primera sesión - evaluación inicial",
        "created_at": "2024-01-25T09:30:00.000Z",
        "updated_at": "2024-01-25T09:30:00.000Z",
    },
]


def _fresh(records: List[Record]) -> List[Record]:
    return copy.deepcopy(records)


def patients_seed() -> List[Record]:
    return _fresh(_PATIENTS)


def workers_seed() -> List[Record]:
    return _fresh(_WORKERS)


def appointments_seed() -> List[Record]:
    return _fresh(_APPOINTMENTS)


def product_categories_seed() -> List[Record]:
    return _fresh(_PRODUCT_CATEGORIES)


def products_seed() -> List[Record]:
    return _fresh(_PRODUCTS)


def product_movements_seed() -> List[Record]:
    return _fresh(_PRODUCT_MOVEMENTS)


def payments_seed() -> List[Record]:
    return _fresh(_PAYMENTS)


def sales_seed() -> List[Record]:
    return _fresh(_SALES)


def sale_items_seed() -> List[Record]:
    return _fresh(_SALE_ITEMS)


def abonos_seed() -> List[Record]:
    return _fresh(_ABONOS)


def abono_usage_seed() -> List[Record]:
    return _fresh(_ABONO_USAGE)


def packages_seed() -> List[Record]:
    return _fresh(_PACKAGES)


def patient_packages_seed() -> List[Record]:
    return _fresh(_PATIENT_PACKAGES)


def package_sessions_seed() -> List[Record]:
    return _fresh(_PACKAGE_SESSIONS)
