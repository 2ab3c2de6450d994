"""
API repository base - executes the repository contract via the REST API.

Each repository owns a resource path (``/patient``, ``/product`` ...) and an
injected ApiClient. Responses are unwrapped from the envelope and normalized
into entities by ``normalizers``.
"""

import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar
from urllib.parse import quote, urlencode

from podocare.core.config import RepositoryConfig
from podocare.core.exceptions import NotFoundError
from podocare.domain.entities import Entity, PageParams, Paginated, check_payload

from .client import ApiClient
from .normalizers import (
    normalize_record,
    snake_to_camel,
    to_wire,
    unwrap_items,
    unwrap_page,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


def build_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """
    Canonical query string: None values omitted, booleans as true/false,
    keys camelCased, values URL-encoded. Returns "" when nothing remains.

    >>> build_query_string({"page": 2, "patient_id": "7", "active": True, "search": None})
    '?page=2&patientId=7&active=true'
    """
    if not params:
        return ""
    pairs = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((snake_to_camel(str(key)), str(value)))
    if not pairs:
        return ""
    return "?" + urlencode(pairs)


def path_id(entity_id: Any) -> str:
    return quote(str(entity_id), safe="")


def compact(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None so partial updates leave them untouched."""
    return {k: v for k, v in payload.items() if v is not None}


class ApiRepository(Generic[T]):
    """
    Shared request plumbing for API repositories.

    Subclasses declare ``entity_class`` and ``endpoint``.
    """

    entity_class: Type[T]
    endpoint: str

    def __init__(self, client: ApiClient, config: Optional[RepositoryConfig] = None):
        self.client = client
        self.config = config or RepositoryConfig(type="api")

    def _coerce_params(self, params: Any) -> PageParams:
        return PageParams.coerce(params).resolved(self.config.page_size)

    def _path(self, suffix: str = "", query: Optional[Mapping[str, Any]] = None) -> str:
        return f"{self.endpoint}{suffix}{build_query_string(query)}"

    async def _get_page(self, suffix: str = "", params: Any = None, **filters: Any) -> Paginated[T]:
        page_params = self._coerce_params(params).with_filters(**filters)
        data = await self.client.request("GET", self._path(suffix, page_params.to_query()))
        return unwrap_page(self.entity_class, data, page_params)

    async def _get_list(self, suffix: str = "", entity_class: Optional[Type[Entity]] = None, **query: Any) -> List[Any]:
        data = await self.client.request("GET", self._path(suffix, query))
        return unwrap_items(entity_class or self.entity_class, data)

    async def _get_data(self, suffix: str = "", **query: Any) -> Any:
        return await self.client.request("GET", self._path(suffix, query))

    async def _send(
        self,
        method: str,
        suffix: str,
        body: Optional[Mapping[str, Any]] = None,
        entity_class: Optional[Type[Entity]] = None,
    ) -> Any:
        data = await self.client.request(
            method, self._path(suffix), to_wire(body) if body is not None else None
        )
        return normalize_record(entity_class or self.entity_class, data)

    # ---- contract ----

    async def get_all(self, params: Any = None) -> Paginated[T]:
        return await self._get_page(params=params)

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        try:
            data = await self.client.request("GET", self._path(f"/{path_id(entity_id)}"))
        except NotFoundError:
            return None
        return normalize_record(self.entity_class, data)

    async def create(self, payload: Mapping[str, Any]) -> T:
        data = check_payload(self.entity_class, payload)
        # Run the entity's own rules before anything is sent.
        self.entity_class.from_dict(data)
        return await self._send("POST", "", compact(data))

    async def update(self, entity_id: str, changes: Mapping[str, Any]) -> T:
        data = compact(check_payload(self.entity_class, changes))
        try:
            return await self._send("PATCH", f"/{path_id(entity_id)}", data)
        except NotFoundError as e:
            raise NotFoundError(
                f"{self.entity_class.__name__} with id {entity_id} not found",
                entity_id=entity_id,
            ) from e

    async def delete(self, entity_id: str) -> None:
        try:
            await self.client.request(
                "DELETE", self._path(f"/{path_id(entity_id)}"), allow_empty=True
            )
        except NotFoundError as e:
            raise NotFoundError(
                f"{self.entity_class.__name__} with id {entity_id} not found",
                entity_id=entity_id,
            ) from e
        logger.debug(
            "Record deleted",
            extra={"context": {"endpoint": self.endpoint, "id": entity_id}},
        )
