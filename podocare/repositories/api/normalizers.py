"""
Wire <-> domain translation for the API backend.

The server speaks camelCase JSON and sometimes embeds a referenced record in
place of its id (``"patientId": {...patient...}``). Every API response goes
through ``normalize_record`` so repositories always receive entities with a
bare ``x_id`` plus, when the server sent one, the embedded ``x`` entity.
"""

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from podocare.core.exceptions import TransportError, ValidationError
from podocare.domain.entities import Entity, PageParams, Paginated

E = TypeVar("E", bound=Entity)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_wire(value: Any) -> Any:
    """Recursively camelCase mapping keys for a request body."""
    if isinstance(value, Mapping):
        return {snake_to_camel(str(k)): to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    return value


def from_wire(value: Any) -> Any:
    """Recursively snake_case mapping keys of a response payload."""
    if isinstance(value, Mapping):
        return {camel_to_snake(str(k)): from_wire(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_wire(v) for v in value]
    return value


def split_references(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Split embedded references: ``{"patient_id": {...}}`` becomes
    ``{"patient_id": "<id>", "patient": {...}}``. Also maps a Mongo-style
    ``_id`` to ``id``.
    """
    result = dict(record)
    if "id" not in result and "_id" in result:
        result["id"] = result.pop("_id")
    for key, value in record.items():
        if not key.endswith("_id") or not isinstance(value, Mapping):
            continue
        embedded = split_references(dict(value))
        result[key] = embedded.get("id")
        result.setdefault(key[: -len("_id")], embedded)
    if result.get("id") is not None:
        result["id"] = str(result["id"])
    return result


def normalize_record(entity_class: Type[E], record: Any) -> E:
    if not isinstance(record, Mapping):
        raise TransportError(
            f"Expected a {entity_class.__name__} object, got {type(record).__name__}"
        )
    try:
        return entity_class.from_dict(split_references(from_wire(record)))
    except (ValidationError, TypeError) as e:
        raise TransportError(f"Invalid {entity_class.__name__} in response: {e}") from e


def normalize_records(entity_class: Type[E], records: Any) -> List[E]:
    if not isinstance(records, list):
        raise TransportError(
            f"Expected a list of {entity_class.__name__}, got {type(records).__name__}"
        )
    return [normalize_record(entity_class, r) for r in records]


def unwrap_page(
    entity_class: Type[E], data: Any, params: Optional[PageParams] = None
) -> Paginated[E]:
    """
    Turn the ``data`` of a list response into a Paginated envelope.

    Accepts ``{data: [...], total, page, limit}`` and, for endpoints that
    return a bare list, the list itself. The wire format carries no
    total_pages; it is always computed here.
    """
    params = params or PageParams()
    if isinstance(data, list):
        items = normalize_records(entity_class, data)
        return Paginated.build(items, len(items), params.page, params.limit)

    if not isinstance(data, Mapping):
        raise TransportError(f"Malformed page payload: {type(data).__name__}")

    raw_items = data.get("data", data.get("items"))
    if raw_items is None:
        raise TransportError("Page payload has no items")
    items = normalize_records(entity_class, raw_items)
    try:
        total = int(data["total"]) if "total" in data else len(items)
        page = int(data.get("page") or params.page)
        limit = int(data.get("limit") or params.limit or len(items) or 1)
    except (TypeError, ValueError) as e:
        raise TransportError(f"Malformed page payload: {e}") from e
    if total < 0 or limit < 1:
        raise TransportError(f"Malformed page payload: total={total}, limit={limit}")
    return Paginated(
        items=items,
        total=total,
        page=max(1, page),
        limit=limit,
        total_pages=math.ceil(total / limit) if limit > 0 else 1,
    )


def unwrap_items(entity_class: Type[E], data: Any) -> List[E]:
    """Items of a list response, whether paginated or bare."""
    return unwrap_page(entity_class, data).items


def to_stats(stats_class, data: Any):
    """Build a stats record from a camelCase object, ignoring unknown keys."""
    if not isinstance(data, Mapping):
        raise TransportError(f"Malformed stats payload for {stats_class.__name__}")
    snake = from_wire(data)
    known = set(stats_class.__dataclass_fields__)
    return stats_class(**{k: v for k, v in snake.items() if k in known})
