# Repositories package initialization
# Exposes the factory and accessor; backends live in the api/ and local/ subpackages.

from .context import get_repositories, repository_provider
from .factory import (
    Repositories,
    RepositoryFactory,
    create_repositories,
    create_repository_config,
    load_repository_config,
)
from .hybrid import HybridRepository

__all__ = [
    "Repositories",
    "RepositoryFactory",
    "HybridRepository",
    "create_repositories",
    "create_repository_config",
    "load_repository_config",
    "repository_provider",
    "get_repositories",
]
