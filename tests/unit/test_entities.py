"""
Unit tests for domain entities and pagination envelopes.
"""

import pytest

from podocare.core.exceptions import ValidationError
from podocare.domain.entities import (
    Abono,
    Appointment,
    PageParams,
    Paginated,
    Patient,
    Product,
    Sale,
    SaleItem,
    check_payload,
)


@pytest.mark.unit
class TestEntityRules:
    """Business rules enforced on construction."""

    def test_patient_requires_name_and_document(self):
        with pytest.raises(ValidationError):
            Patient(first_name="", document_number="123")
        with pytest.raises(ValidationError):
            Patient(first_name="Ana", document_number="")

    def test_patient_full_name(self):
        patient = Patient(
            first_name="Ana", paternal_surname="García", document_number="1"
        )
        assert patient.full_name == "Ana García"

    def test_appointment_status_must_be_known(self):
        with pytest.raises(ValidationError, match="Invalid appointment status"):
            Appointment(patient_id="1", worker_id="1", status="lost")

    def test_product_stock_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            Product(name="Crema", stock=-1)

    def test_abono_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            Abono(patient_id="1", amount=0)

    def test_sale_item_subtotal(self):
        assert SaleItem(product_id="1", quantity=3, price=2.5).subtotal == 7.5

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            Product(name="")


@pytest.mark.unit
class TestSerialization:
    """from_dict / to_dict behaviour."""

    def test_from_dict_ignores_unknown_keys(self):
        product = Product.from_dict({"name": "Crema", "legacy_field": 1})
        assert product.name == "Crema"

    def test_embedded_reference_is_hydrated(self):
        appointment = Appointment.from_dict(
            {
                "patient_id": "1",
                "worker_id": "2",
                "patient": {"id": "1", "first_name": "Ana", "document_number": "9"},
            }
        )
        assert isinstance(appointment.patient, Patient)
        assert appointment.patient.first_name == "Ana"

    def test_partial_embedded_reference_is_dropped(self):
        appointment = Appointment.from_dict(
            {"patient_id": "1", "worker_id": "2", "patient": {"id": "1"}}
        )
        assert appointment.patient is None

    def test_embedded_list(self):
        sale = Sale.from_dict({"items": [{"product_id": "1", "quantity": 2, "price": 3.0}]})
        assert isinstance(sale.items[0], SaleItem)
        assert sale.to_dict()["items"][0]["quantity"] == 2


@pytest.mark.unit
class TestCheckPayload:
    """Payload key validation shared by both backends."""

    def test_returns_copy(self):
        payload = {"name": "Crema"}
        data = check_payload(Product, payload)
        data["stock"] = 3
        assert "stock" not in payload

    def test_unknown_field(self):
        with pytest.raises(ValidationError, match="Unknown fields"):
            check_payload(Product, {"name": "Crema", "color": "red"})

    @pytest.mark.parametrize("field_name", ["id", "created_at", "updated_at"])
    def test_server_fields_rejected(self, field_name):
        with pytest.raises(ValidationError, match="cannot be set"):
            check_payload(Product, {"name": "Crema", field_name: "x"})

    def test_non_mapping(self):
        with pytest.raises(ValidationError):
            check_payload(Product, ["name"])


@pytest.mark.unit
@pytest.mark.pagination
class TestEnvelopes:
    """PageParams and Paginated."""

    def test_coerce_moves_unknown_keys_to_filters(self):
        params = PageParams.coerce({"page": 2, "limit": 5, "status": "active"})
        assert params.page == 2
        assert params.limit == 5
        assert params.filters == {"status": "active"}

    def test_invalid_values_fall_back_to_defaults(self):
        params = PageParams(page=0, limit=-1)
        assert params.page == 1
        assert params.limit is None

    def test_resolved_fills_only_an_unset_limit(self):
        assert PageParams(page=2).resolved(7) == PageParams(page=2, limit=7)
        assert PageParams(limit=10).resolved(7).limit == 10
        assert "limit" not in PageParams().to_query()

    def test_coerce_rejects_other_types(self):
        with pytest.raises(TypeError):
            PageParams.coerce(42)

    def test_to_query(self):
        params = PageParams(page=1, limit=10, search="ana", sort="-date", filters={"x": 1})
        assert params.to_query() == {
            "page": 1,
            "limit": 10,
            "search": "ana",
            "sort": "-date",
            "x": 1,
        }

    def test_paginated_build(self):
        page = Paginated.build(["a", "b", "c"], total=23, page=3, limit=10)
        assert page.total_pages == 3
        assert len(page) == 3
        assert list(page) == ["a", "b", "c"]
