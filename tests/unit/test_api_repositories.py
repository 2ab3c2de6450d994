"""
Unit tests for the API repositories.

HTTP is faked by patching requests.Session.request; each test checks the
request the repository sends and the entities it builds from the reply.
"""

import asyncio
from unittest.mock import patch

import pytest

from podocare.core.config import create_repository_config
from podocare.core.exceptions import NotFoundError, TransportError, ValidationError
from podocare.domain.entities import (
    AbonoUsage,
    IncomeStats,
    PackageSession,
    PageParams,
    Patient,
    Product,
)
from podocare.repositories.api import (
    ApiAbonoRepository,
    ApiAppointmentRepository,
    ApiPatientPackageRepository,
    ApiPatientRepository,
    ApiPaymentRepository,
    ApiProductCategoryRepository,
    ApiProductRepository,
    ApiSaleRepository,
    ApiWorkerRepository,
)
from tests.factories.http_factories import error, make_response, ok, patient_wire

BASE = "https://clinic.test/api"


def sent(mock_request):
    """(method, url, json body) of the last request."""
    args, kwargs = mock_request.call_args
    return args[0], args[1], kwargs.get("json")


@pytest.fixture
def patients(api_client, api_config):
    return ApiPatientRepository(api_client, api_config)


@pytest.mark.unit
@pytest.mark.api
class TestApiContract:
    """The five contract operations over HTTP."""

    def test_envelope_unwrap_computes_total_pages(self, patients):
        reply = ok(
            {
                "data": [patient_wire("1"), patient_wire("2"), patient_wire("3")],
                "total": 37,
                "page": 2,
                "limit": 15,
            }
        )
        with patch("requests.Session.request", return_value=reply) as mock_request:
            page = asyncio.run(patients.get_all({"page": 2, "limit": 15}))

        assert [p.id for p in page.items] == ["1", "2", "3"]
        assert (page.total, page.page, page.limit, page.total_pages) == (37, 2, 15, 3)
        assert sent(mock_request) == ("GET", f"{BASE}/patient?page=2&limit=15", None)

    def test_bare_list_reply(self, patients):
        with patch("requests.Session.request", return_value=ok([patient_wire("1")])):
            page = asyncio.run(patients.get_all())
        assert page.total == 1
        assert page.total_pages == 1

    def test_page_params_without_limit_use_configured_page_size(self, api_client):
        config = create_repository_config(
            "api", api_base_url="https://clinic.test/api", page_size=2
        )
        repo = ApiPatientRepository(api_client, config)
        with patch("requests.Session.request", return_value=ok([])) as mock_request:
            asyncio.run(repo.get_all(PageParams(page=3)))
        assert sent(mock_request)[1] == f"{BASE}/patient?page=3&limit=2"

    def test_null_total_is_a_transport_error(self, patients):
        reply = ok({"data": [patient_wire("1")], "total": None, "page": 1, "limit": 15})
        with patch("requests.Session.request", return_value=reply):
            with pytest.raises(TransportError, match="Malformed page payload"):
                asyncio.run(patients.get_all())

    def test_filters_and_search_in_query(self, patients):
        with patch("requests.Session.request", return_value=ok([])) as mock_request:
            asyncio.run(patients.search_patients({"search": "ana", "diabetic": True}))
        _, url, _ = sent(mock_request)
        assert url == f"{BASE}/patient?page=1&limit=15&search=ana&diabetic=true"

    def test_get_by_id(self, patients):
        with patch("requests.Session.request", return_value=ok(patient_wire("5"))) as mock_request:
            patient = asyncio.run(patients.get_by_id("5"))
        assert isinstance(patient, Patient)
        assert patient.first_name == "Rosa"
        assert sent(mock_request)[1] == f"{BASE}/patient/5"

    def test_get_by_id_not_found_returns_none(self, patients):
        with patch("requests.Session.request", return_value=error(404, "No existe")):
            assert asyncio.run(patients.get_by_id("404")) is None

    def test_create_posts_camel_case_body(self, patients):
        with patch("requests.Session.request", return_value=ok(patient_wire("11"))) as mock_request:
            created = asyncio.run(
                patients.create(
                    {"document_number": "40000011", "first_name": "Rosa", "email": None}
                )
            )
        assert created.id == "11"
        assert sent(mock_request) == (
            "POST",
            f"{BASE}/patient",
            {"documentNumber": "40000011", "firstName": "Rosa"},
        )

    def test_create_validates_before_sending(self, patients):
        with patch("requests.Session.request") as mock_request:
            with pytest.raises(ValidationError):
                asyncio.run(patients.create({"document_number": "1"}))
            with pytest.raises(ValidationError):
                asyncio.run(patients.create({"first_name": "Ana", "shoe": 40}))
        mock_request.assert_not_called()

    def test_server_validation_error(self, patients):
        with patch("requests.Session.request", return_value=error(422, "DNI duplicado")):
            with pytest.raises(ValidationError, match="DNI duplicado"):
                asyncio.run(
                    patients.create({"document_number": "12345678", "first_name": "Ana"})
                )

    def test_update_patches_only_given_fields(self, patients):
        with patch("requests.Session.request", return_value=ok(patient_wire("5"))) as mock_request:
            asyncio.run(patients.update("5", {"phone": "999", "email": None}))
        assert sent(mock_request) == ("PATCH", f"{BASE}/patient/5", {"phone": "999"})

    def test_update_missing(self, patients):
        with patch("requests.Session.request", return_value=error(404, "No existe")):
            with pytest.raises(NotFoundError) as exc_info:
                asyncio.run(patients.update("404", {"phone": "1"}))
        assert exc_info.value.entity_id == "404"

    def test_delete_accepts_empty_reply(self, patients):
        with patch("requests.Session.request", return_value=make_response(204)) as mock_request:
            assert asyncio.run(patients.delete("5")) is None
        assert sent(mock_request)[:2] == ("DELETE", f"{BASE}/patient/5")

    def test_delete_twice(self, patients):
        with patch("requests.Session.request", return_value=error(404, "No existe")):
            for _ in range(2):
                with pytest.raises(NotFoundError):
                    asyncio.run(patients.delete("5"))

    def test_malformed_reply(self, patients):
        with patch("requests.Session.request", return_value=ok("nope")):
            with pytest.raises(TransportError):
                asyncio.run(patients.get_all())

    def test_ids_are_url_encoded(self, patients):
        with patch("requests.Session.request", return_value=ok(patient_wire("5"))) as mock_request:
            asyncio.run(patients.get_by_id("a/b"))
        assert sent(mock_request)[1] == f"{BASE}/patient/a%2Fb"


@pytest.mark.unit
@pytest.mark.api
class TestApiEntityOperations:
    """Entity-specific endpoints."""

    def test_document_lookup(self, patients):
        with patch("requests.Session.request", return_value=ok([patient_wire("1")])) as mock_request:
            patient = asyncio.run(patients.get_by_document_id("40000001"))
        assert patient.id == "1"
        assert sent(mock_request)[1] == (
            f"{BASE}/patient?page=1&limit=1&documentNumber=40000001"
        )

    def test_patient_stats(self, patients):
        reply = ok({"total": 40, "newThisMonth": 6, "newThisWeek": 2, "extra": 1})
        with patch("requests.Session.request", return_value=reply):
            stats = asyncio.run(patients.get_patient_stats())
        assert (stats.total, stats.new_this_month, stats.new_this_week) == (40, 6, 2)

    def test_worker_active_status(self, api_client, api_config):
        workers = ApiWorkerRepository(api_client, api_config)
        reply = ok({"id": "4", "firstName": "Miguel", "email": "m@podocare.com", "isActive": True})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            worker = asyncio.run(workers.update_active_status("4", True))
        assert worker.is_active is True
        assert sent(mock_request) == ("PATCH", f"{BASE}/worker/4/active", {"isActive": True})

    def test_todays_appointments_and_status(self, api_client, api_config):
        appointments = ApiAppointmentRepository(api_client, api_config)
        with patch("requests.Session.request", return_value=ok([])) as mock_request:
            asyncio.run(appointments.get_todays_appointments())
        assert sent(mock_request)[1] == f"{BASE}/appointment/today?page=1&limit=15"

        reply = ok({"id": "3", "patientId": "3", "workerId": "1", "status": "completed"})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            appointment = asyncio.run(appointments.update_status("3", "completed"))
        assert appointment.status == "completed"
        assert sent(mock_request) == (
            "PATCH",
            f"{BASE}/appointment/3/status",
            {"status": "completed"},
        )

    def test_date_range_query(self, api_client, api_config):
        appointments = ApiAppointmentRepository(api_client, api_config)
        with patch("requests.Session.request", return_value=ok([])) as mock_request:
            asyncio.run(appointments.get_by_date_range("2024-01-01", "2024-01-31"))
        assert sent(mock_request)[1] == (
            f"{BASE}/appointment?page=1&limit=15&startDate=2024-01-01&endDate=2024-01-31"
        )

    def test_update_stock(self, api_client, api_config):
        products = ApiProductRepository(api_client, api_config)
        reply = ok({"id": "1", "name": "Crema", "price": 25.5, "stock": 11})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            product = asyncio.run(products.update_stock("1", -4, "Venta"))
        assert isinstance(product, Product)
        assert product.stock == 11
        assert sent(mock_request) == (
            "PATCH",
            f"{BASE}/product/1/stock",
            {"quantity": -4, "reason": "Venta"},
        )

    def test_product_with_embedded_category(self, api_client, api_config):
        products = ApiProductRepository(api_client, api_config)
        reply = ok({"_id": "1", "name": "Crema", "categoryId": {"_id": "2", "name": "Cremas"}})
        with patch("requests.Session.request", return_value=reply):
            product = asyncio.run(products.get_by_id("1"))
        assert product.category_id == "2"
        assert product.category.name == "Cremas"

    def test_categories_with_counts(self, api_client, api_config):
        categories = ApiProductCategoryRepository(api_client, api_config)
        reply = ok([{"id": "1", "name": "Cremas", "productCount": 3}])
        with patch("requests.Session.request", return_value=reply) as mock_request:
            result = asyncio.run(categories.get_categories_with_product_count())
        assert result[0].category.name == "Cremas"
        assert result[0].product_count == 3
        assert sent(mock_request)[1] == f"{BASE}/product-category/with-counts"

    def test_income_stats(self, api_client, api_config):
        payments = ApiPaymentRepository(api_client, api_config)
        reply = ok({"today": 50, "thisWeek": 200, "thisMonth": 225.5, "total": 900})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            stats = asyncio.run(payments.get_income_stats())
        assert stats == IncomeStats(today=50, this_week=200, this_month=225.5, total=900)
        assert sent(mock_request)[1] == f"{BASE}/payment/income-stats"

    def test_create_sale_with_items(self, api_client, api_config):
        sales = ApiSaleRepository(api_client, api_config)
        reply = ok(
            {
                "id": "s1",
                "totalAmount": 51.0,
                "patientId": "1",
                "items": [{"id": "i1", "saleId": "s1", "productId": "1", "quantity": 2, "price": 25.5}],
            }
        )
        with patch("requests.Session.request", return_value=reply) as mock_request:
            sale = asyncio.run(
                sales.create_sale_with_items(
                    {"patient_id": "1"}, [{"product_id": "1", "quantity": 2, "price": 25.5}]
                )
            )
        assert sale.items[0].subtotal == 51.0
        assert sent(mock_request) == (
            "POST",
            f"{BASE}/sale/with-items",
            {
                "sale": {"patientId": "1"},
                "items": [{"productId": "1", "quantity": 2, "price": 25.5}],
            },
        )

    def test_bare_sale_reply(self, api_client, api_config):
        sales = ApiSaleRepository(api_client, api_config)
        reply = make_response(
            200, {"id": "9", "state": "activa", "totalAmount": 40.0, "patientId": "1"}
        )
        with patch("requests.Session.request", return_value=reply):
            sale = asyncio.run(sales.get_by_id("9"))
        assert sale.id == "9"
        assert sale.state == "activa"
        assert sale.total_amount == 40.0

    def test_sale_without_items_is_rejected_locally(self, api_client, api_config):
        sales = ApiSaleRepository(api_client, api_config)
        with patch("requests.Session.request") as mock_request:
            with pytest.raises(ValidationError):
                asyncio.run(sales.create_sale_with_items({"patient_id": "1"}, []))
        mock_request.assert_not_called()

    def test_use_abono(self, api_client, api_config):
        abonos = ApiAbonoRepository(api_client, api_config)
        reply = ok({"id": "u1", "abonoId": "1", "amount": 30, "usedAt": "2024-01-26T12:00:00.000Z"})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            usage = asyncio.run(abonos.use_abono("1", 30, appointment_id="3"))
        assert isinstance(usage, AbonoUsage)
        assert sent(mock_request) == (
            "POST",
            f"{BASE}/abono/1/use",
            {"amount": 30, "appointmentId": "3"},
        )

    def test_use_abono_insufficient_balance_from_server(self, api_client, api_config):
        abonos = ApiAbonoRepository(api_client, api_config)
        with patch("requests.Session.request", return_value=error(400, "Saldo insuficiente")):
            with pytest.raises(ValidationError, match="Saldo insuficiente"):
                asyncio.run(abonos.use_abono("1", 500))

    @pytest.mark.parametrize("data", [{"balance": 75}, 75])
    def test_abono_balance(self, api_client, api_config, data):
        abonos = ApiAbonoRepository(api_client, api_config)
        with patch("requests.Session.request", return_value=ok(data)) as mock_request:
            assert asyncio.run(abonos.get_patient_abono_balance("1")) == 75.0
        assert sent(mock_request)[1] == f"{BASE}/abono/patient/1/balance"

    def test_abono_usage_history(self, api_client, api_config):
        abonos = ApiAbonoRepository(api_client, api_config)
        reply = ok({"data": [{"id": "u1", "abonoId": "1", "amount": 25}], "total": 1, "page": 1, "limit": 15})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            page = asyncio.run(abonos.get_abono_usage_history("1"))
        assert page.items[0].amount == 25
        assert sent(mock_request)[1] == f"{BASE}/abono/1/usage?page=1&limit=15"

    def test_use_session_and_history(self, api_client, api_config):
        patient_packages = ApiPatientPackageRepository(api_client, api_config)
        reply = ok({"id": "ps1", "patientPackageId": "1", "appointmentId": "3"})
        with patch("requests.Session.request", return_value=reply) as mock_request:
            session = asyncio.run(patient_packages.use_session("1", "3"))
        assert isinstance(session, PackageSession)
        assert sent(mock_request) == (
            "POST",
            f"{BASE}/patient-package/1/use-session",
            {"appointmentId": "3"},
        )

        with patch("requests.Session.request", return_value=ok([reply.json()["data"]])) as mock_request:
            history = asyncio.run(patient_packages.get_session_history("1"))
        assert [s.id for s in history] == ["ps1"]
        assert sent(mock_request)[1] == f"{BASE}/patient-package/1/sessions"
