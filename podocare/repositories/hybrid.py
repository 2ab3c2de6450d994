"""
Hybrid repositories: API first, local backend when the API is unreachable.
"""

import functools
import inspect
import logging
from typing import Any

from podocare.core.exceptions import TransportError

logger = logging.getLogger(__name__)

# Operations that mutate state. Writes served by the fallback stay local.
WRITE_OPERATIONS = frozenset(
    {
        "create",
        "update",
        "delete",
        "update_status",
        "update_stock",
        "update_active_status",
        "create_sale_with_items",
        "use_abono",
        "use_session",
    }
)


class HybridRepository:
    """
    Wraps an API repository and a local repository with the same contract.

    Every async operation is tried against ``primary``. When it fails with a
    TransportError that marks the API as unavailable (network error, timeout
    or 5xx) and fallback is enabled, the same call is replayed on
    ``fallback``. Client errors propagate unchanged. There are no retries.
    """

    def __init__(self, primary: Any, fallback: Any, enable_fallback: bool = True):
        self._primary = primary
        self._fallback = fallback
        self._enable_fallback = enable_fallback

    @property
    def primary(self) -> Any:
        return self._primary

    @property
    def fallback(self) -> Any:
        return self._fallback

    @property
    def enable_fallback(self) -> bool:
        return self._enable_fallback

    def __getattr__(self, item):
        if item.startswith("_"):
            raise AttributeError(item)
        target = getattr(self._primary, item)
        if not inspect.iscoroutinefunction(target):
            return target

        @functools.wraps(target)
        async def call(*args, **kwargs):
            return await self._call(item, *args, **kwargs)

        return call

    async def _call(self, operation: str, *args, **kwargs) -> Any:
        try:
            return await getattr(self._primary, operation)(*args, **kwargs)
        except TransportError as e:
            if not (self._enable_fallback and e.is_unavailable):
                raise
            context = {
                "repository": type(self._primary).__name__,
                "operation": operation,
                "status_code": e.status_code,
                "error": str(e),
            }
            if operation in WRITE_OPERATIONS:
                logger.warning(
                    "API unavailable, writing to local storage; "
                    "this change will not be synchronized to the API",
                    extra={"context": context},
                )
            else:
                logger.warning(
                    "API unavailable, serving from local storage",
                    extra={"context": context},
                )
        return await getattr(self._fallback, operation)(*args, **kwargs)

    def __repr__(self):
        return (
            f"<HybridRepository(primary={type(self._primary).__name__}, "
            f"fallback={type(self._fallback).__name__})>"
        )
