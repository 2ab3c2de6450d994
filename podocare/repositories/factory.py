"""
Repository factory - builds the repository aggregate for a configuration.

Usage:
    from podocare.repositories import create_repositories, create_repository_config

    repos = create_repositories(create_repository_config("hybrid", api_base_url=url))
    page = await repos.patients.get_all({"page": 1, "search": "garcia"})
    repos.close()  # releases the HTTP session the factory opened
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from podocare.core.config import (
    RepositoryConfig,
    create_repository_config,
    load_repository_config,
)
from podocare.db.storage import InMemoryStore, KeyValueStore

from .api import (
    ApiAbonoRepository,
    ApiAppointmentRepository,
    ApiClient,
    ApiPackageRepository,
    ApiPatientPackageRepository,
    ApiPatientRepository,
    ApiPaymentRepository,
    ApiProductCategoryRepository,
    ApiProductMovementRepository,
    ApiProductRepository,
    ApiSaleRepository,
    ApiWorkerRepository,
)
from .hybrid import HybridRepository
from .local import (
    LatencySimulator,
    LocalAbonoRepository,
    LocalAppointmentRepository,
    LocalPackageRepository,
    LocalPatientPackageRepository,
    LocalPatientRepository,
    LocalPaymentRepository,
    LocalProductCategoryRepository,
    LocalProductMovementRepository,
    LocalProductRepository,
    LocalSaleRepository,
    LocalWorkerRepository,
    delay_for,
)

logger = logging.getLogger(__name__)

__all__ = [
    "Repositories",
    "RepositoryFactory",
    "create_repositories",
    "create_repository_config",
    "load_repository_config",
]

# Aggregate field -> (API implementation, local implementation)
REPOSITORY_CLASSES = {
    "patients": (ApiPatientRepository, LocalPatientRepository),
    "workers": (ApiWorkerRepository, LocalWorkerRepository),
    "appointments": (ApiAppointmentRepository, LocalAppointmentRepository),
    "products": (ApiProductRepository, LocalProductRepository),
    "product_categories": (ApiProductCategoryRepository, LocalProductCategoryRepository),
    "product_movements": (ApiProductMovementRepository, LocalProductMovementRepository),
    "payments": (ApiPaymentRepository, LocalPaymentRepository),
    "sales": (ApiSaleRepository, LocalSaleRepository),
    "abonos": (ApiAbonoRepository, LocalAbonoRepository),
    "packages": (ApiPackageRepository, LocalPackageRepository),
    "patient_packages": (ApiPatientPackageRepository, LocalPatientPackageRepository),
}


@dataclass(frozen=True)
class Repositories:
    """One repository per entity, all built from the same configuration."""

    patients: Any
    workers: Any
    appointments: Any
    products: Any
    product_categories: Any
    product_movements: Any
    payments: Any
    sales: Any
    abonos: Any
    packages: Any
    patient_packages: Any
    _owned_client: Optional[ApiClient] = field(default=None, repr=False, compare=False)

    def as_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in REPOSITORY_CLASSES}

    def close(self) -> None:
        """Close the API client the factory built for this aggregate.

        A client passed in by the caller is left open; its owner closes it.
        """
        if self._owned_client is not None:
            self._owned_client.close()


class RepositoryFactory:
    """
    Creates the repository aggregate for ``config.type``.

    ``store`` backs the local repositories (an InMemoryStore when omitted) and
    ``api_client`` is shared by every API repository (built from the config
    when omitted). ``delay`` overrides the simulated latency of the local
    backend.
    """

    def __init__(
        self,
        config: Optional[RepositoryConfig] = None,
        store: Optional[KeyValueStore] = None,
        api_client: Optional[ApiClient] = None,
        delay: Optional[LatencySimulator] = None,
    ):
        self.config = config or RepositoryConfig()
        self.store = store
        self.api_client = api_client
        self.delay = delay
        self._owns_client = False

    def create_repositories(self) -> Repositories:
        repository_type = self.config.type
        if repository_type == "api":
            repos = self._build_api()
        elif repository_type == "local":
            repos = self._build_local()
        else:
            api_repos = self._build_api()
            local_repos = self._build_local()
            repos = {
                name: HybridRepository(
                    api_repos[name],
                    local_repos[name],
                    enable_fallback=self.config.enable_local_fallback,
                )
                for name in REPOSITORY_CLASSES
            }

        logger.info(
            "Repositories created",
            extra={
                "context": {
                    "type": repository_type,
                    "repositories": len(repos),
                    "local_fallback": repository_type == "hybrid"
                    and self.config.enable_local_fallback,
                }
            },
        )
        owned = self.api_client if self._owns_client else None
        return Repositories(**repos, _owned_client=owned)

    def _get_api_client(self) -> ApiClient:
        if self.api_client is None:
            self.api_client = ApiClient.from_config(self.config)
            self._owns_client = True
        return self.api_client

    def _get_store(self) -> KeyValueStore:
        if self.store is None:
            self.store = InMemoryStore()
        return self.store

    def _build_api(self) -> Dict[str, Any]:
        client = self._get_api_client()
        return {
            name: api_class(client, self.config)
            for name, (api_class, _) in REPOSITORY_CLASSES.items()
        }

    def _build_local(self) -> Dict[str, Any]:
        store = self._get_store()
        delay = self.delay if self.delay is not None else delay_for(self.config)
        return {
            name: local_class(store, self.config, delay=delay)
            for name, (_, local_class) in REPOSITORY_CLASSES.items()
        }


def create_repositories(
    config: Optional[RepositoryConfig] = None,
    store: Optional[KeyValueStore] = None,
    api_client: Optional[ApiClient] = None,
    delay: Optional[LatencySimulator] = None,
) -> Repositories:
    """Build the repository aggregate for ``config`` (local mode by default)."""
    return RepositoryFactory(config, store, api_client, delay).create_repositories()
