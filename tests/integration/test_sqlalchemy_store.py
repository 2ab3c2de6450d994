"""
Integration tests for the SQLAlchemy-backed key-value store.

Runs the local repositories end to end against SQLite:
- collections land in the kv_store table under the configured prefix
- data survives a new store on the same database file
- side collections are written alongside the primary one
"""

import asyncio
import json

import pytest

from podocare.core.exceptions import NotFoundError, ValidationError
from podocare.db.storage import SqlAlchemyStore
from podocare.repositories import create_repositories
from podocare.repositories.local import NoDelay


@pytest.fixture
def sqlite_store():
    store = SqlAlchemyStore("sqlite:///:memory:")
    yield store
    store.dispose()


@pytest.fixture
def repos(sqlite_store, local_config):
    return create_repositories(local_config, store=sqlite_store, delay=NoDelay())


@pytest.mark.integration
@pytest.mark.database
class TestSqlAlchemyStore:
    """Key-value semantics on a real database."""

    def test_set_get_remove(self, sqlite_store):
        assert sqlite_store.get("test_patients") is None

        sqlite_store.set("test_patients", "[]")
        sqlite_store.set("test_patients", '[{"id": "1"}]')
        assert sqlite_store.get("test_patients") == '[{"id": "1"}]'

        sqlite_store.remove("test_patients")
        sqlite_store.remove("test_patients")
        assert sqlite_store.get("test_patients") is None

    def test_keys_are_filtered_by_prefix(self, sqlite_store):
        sqlite_store.set("test_patients", "[]")
        sqlite_store.set("test_abonos", "[]")
        sqlite_store.set("other_patients", "[]")

        assert sqlite_store.keys("test_") == ["test_abonos", "test_patients"]
        assert len(sqlite_store.keys()) == 3


@pytest.mark.integration
@pytest.mark.database
class TestLocalRepositoriesOnDatabase:
    """Local repositories with a SqlAlchemyStore underneath."""

    def test_patient_lifecycle(self, repos, sqlite_store):
        created = asyncio.run(
            repos.patients.create(
                {"document_number": "70000001", "first_name": "Rosa", "paternal_surname": "Quispe"}
            )
        )

        stored = json.loads(sqlite_store.get("test_patients"))
        assert created.id in [p["id"] for p in stored]
        assert len(stored) == 6

        asyncio.run(repos.patients.delete(created.id))
        with pytest.raises(NotFoundError):
            asyncio.run(repos.patients.delete(created.id))

    def test_side_collections_are_persisted(self, repos, sqlite_store):
        asyncio.run(repos.abonos.use_abono("1", 30.0, appointment_id="3"))
        asyncio.run(
            repos.sales.create_sale_with_items(
                {"patient_id": "3", "seller_id": "1", "payment_method": "cash"},
                [{"product_id": "1", "quantity": 2, "price": 25.5}],
            )
        )

        keys = sqlite_store.keys("test_")
        for key in ("test_abonos", "test_abono_usage", "test_sales", "test_sale_items"):
            assert key in keys
        history = asyncio.run(repos.abonos.get_abono_usage_history("1"))
        assert 30.0 in [u.amount for u in history.items]

    def test_overdraw_is_rejected(self, repos):
        abono = asyncio.run(repos.abonos.create({"patient_id": "4", "amount": 100.0}))

        async def spend_twice():
            return await asyncio.gather(
                repos.abonos.use_abono(abono.id, 60.0),
                repos.abonos.use_abono(abono.id, 60.0),
                return_exceptions=True,
            )

        results = asyncio.run(spend_twice())

        assert sum(isinstance(r, ValidationError) for r in results) == 1
        assert asyncio.run(repos.abonos.get_by_id(abono.id)).remaining_amount == 40.0

    def test_data_survives_a_new_store(self, tmp_path, local_config):
        url = f"sqlite:///{tmp_path / 'podocare.db'}"

        first = SqlAlchemyStore(url)
        repos = create_repositories(local_config, store=first, delay=NoDelay())
        created = asyncio.run(
            repos.products.create({"name": "Crema podológica", "price": 32.0, "stock": 4})
        )
        first.dispose()

        second = SqlAlchemyStore(url)
        reopened = create_repositories(local_config, store=second, delay=NoDelay())
        assert asyncio.run(reopened.products.get_by_id(created.id)) == created
        second.dispose()
