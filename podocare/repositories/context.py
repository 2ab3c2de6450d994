"""
Repository accessor.

``repository_provider`` installs an aggregate for the duration of a block;
code running inside it (including tasks spawned from it) reaches the same
aggregate through ``get_repositories()``.
"""

import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional

from podocare.core.config import RepositoryConfig
from podocare.core.exceptions import RepositoryError

from .factory import Repositories, create_repositories

_current_repositories = contextvars.ContextVar("current_repositories", default=None)


@contextmanager
def repository_provider(
    config: Optional[RepositoryConfig] = None,
    repositories: Optional[Repositories] = None,
) -> Iterator[Repositories]:
    """
    Make ``repositories`` (or an aggregate built from ``config``) current.
    An aggregate built here is closed when the block exits.
    """
    built = repositories is None
    if built:
        repositories = create_repositories(config)
    token = _current_repositories.set(repositories)
    try:
        yield repositories
    finally:
        _current_repositories.reset(token)
        if built:
            repositories.close()


def get_repositories() -> Repositories:
    repositories = _current_repositories.get()
    if repositories is None:
        raise RepositoryError("get_repositories() called outside of a repository_provider")
    return repositories
