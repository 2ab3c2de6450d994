"""
Local repository base - executes the repository contract against a key-value
store holding one JSON array per collection.

Every operation re-reads its collection; nothing is cached between calls.
Every public operation first awaits the configured latency and then runs its
load / compute / save section without further suspension points.
"""

import asyncio
import copy
import json
import logging
import random
import string
from abc import ABC, abstractmethod
from datetime import datetime
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from podocare.core.config import RepositoryConfig
from podocare.core.dates import in_range, parse_timestamp, to_iso, utc_now
from podocare.core.exceptions import (
    NotFoundError,
    PartialWriteError,
    StorageError,
    ValidationError,
)
from podocare.core.pagination import paginate_array
from podocare.db.storage import KeyValueStore
from podocare.domain.entities import Entity, PageParams, Paginated, check_payload

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)
Record = Dict[str, Any]

_ID_ALPHABET = string.ascii_lowercase + string.digits

# Filter keys that select a date window instead of an equality match.
RANGE_FILTERS = ("start_date", "end_date")


# ===========================
# Latency simulation
# ===========================


class LatencySimulator(ABC):
    @abstractmethod
    async def wait(self) -> None:
        pass


class NetworkDelay(LatencySimulator):
    """Random delay in ``[min_seconds, max_seconds]``."""

    def __init__(self, min_seconds: float = 0.1, max_seconds: float = 0.3):
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds

    async def wait(self) -> None:
        await asyncio.sleep(random.uniform(self.min_seconds, self.max_seconds))


class NoDelay(LatencySimulator):
    """Yields to the event loop once; used by tests and when latency is disabled."""

    async def wait(self) -> None:
        await asyncio.sleep(0)


def delay_for(config: RepositoryConfig) -> LatencySimulator:
    if not config.simulate_latency:
        return NoDelay()
    return NetworkDelay(*config.latency_range)


# ===========================
# Base repository
# ===========================


class LocalRepository(Generic[T]):
    """
    Shared algorithms for the local backend.

    Subclasses declare:
        entity_class: dataclass the collection holds
        collection: collection name; the storage key is '<prefix>_<collection>'
        seed_factory: callable returning the default dataset
        search_fields: string fields matched by free-text search
        date_field: field used by date-range filters
        default_sort: sort applied when the caller gives none
    """

    entity_class: Type[T]
    collection: str
    seed_factory: Callable[[], List[Record]] = staticmethod(list)
    search_fields: Tuple[str, ...] = ()
    date_field: str = "created_at"
    default_sort: Optional[str] = None

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[RepositoryConfig] = None,
        delay: Optional[LatencySimulator] = None,
        seed: Optional[List[Record]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.config = config or RepositoryConfig()
        self.delay = delay if delay is not None else delay_for(self.config)
        self.clock = clock
        self.storage_key = self.config.storage_key(self.collection)
        self._seed = list(seed) if seed is not None else self.seed_factory()

    # ---- storage ----

    def _read_collection(self, key: str, seed: List[Record]) -> List[Record]:
        """
        Read a raw collection. An absent key persists and returns the seed; an
        unreadable one logs a warning and returns a copy of the seed.
        """
        try:
            raw = self.store.get(key)
        except StorageError as e:
            logger.warning(
                "Failed to read collection, using seed data",
                extra={"context": {"storage_key": key, "error": str(e)}},
            )
            return copy.deepcopy(seed)

        if raw is None:
            records = copy.deepcopy(seed)
            try:
                self._write_collection(key, records)
            except StorageError as e:
                logger.warning(
                    "Failed to persist seed data",
                    extra={"context": {"storage_key": key, "error": str(e)}},
                )
            return records

        try:
            records = json.loads(raw)
        except ValueError as e:
            logger.warning(
                "Corrupt collection in storage, using seed data",
                extra={"context": {"storage_key": key, "error": str(e)}},
            )
            return copy.deepcopy(seed)

        if not isinstance(records, list):
            logger.warning(
                "Stored collection is not a list, using seed data",
                extra={"context": {"storage_key": key}},
            )
            return copy.deepcopy(seed)
        return records

    def _write_collection(self, key: str, records: Sequence[Record]) -> None:
        try:
            raw = json.dumps(list(records), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(
                "Failed to serialize collection",
                extra={"context": {"storage_key": key, "error": str(e)}},
            )
            raise StorageError(f"Failed to serialize '{key}': {e}", storage_key=key) from e
        try:
            self.store.set(key, raw)
        except StorageError:
            logger.error(
                "Failed to save collection",
                extra={"context": {"storage_key": key, "records": len(records)}},
            )
            raise

    def _hydrate(self, records: Iterable[Record], entity_class: Type[Entity]) -> List[Any]:
        return [entity_class.from_dict(r) for r in records if isinstance(r, Mapping)]

    def _load(self) -> List[T]:
        records = self._read_collection(self.storage_key, self._seed)
        try:
            return self._hydrate(records, self.entity_class)
        except (ValidationError, TypeError) as e:
            logger.warning(
                "Stored records failed validation, using seed data",
                extra={"context": {"storage_key": self.storage_key, "error": str(e)}},
            )
            return self._hydrate(copy.deepcopy(self._seed), self.entity_class)

    def _save(self, items: Sequence[T]) -> None:
        self._write_collection(self.storage_key, [item.to_dict() for item in items])

    def _load_side(
        self, collection: str, entity_class: Type[Entity], seed: List[Record]
    ) -> List[Any]:
        key = self.config.storage_key(collection)
        records = self._read_collection(key, seed)
        try:
            return self._hydrate(records, entity_class)
        except (ValidationError, TypeError) as e:
            logger.warning(
                "Stored records failed validation, using seed data",
                extra={"context": {"storage_key": key, "error": str(e)}},
            )
            return self._hydrate(copy.deepcopy(seed), entity_class)

    def _append_side_records(
        self,
        collection: str,
        seed: List[Record],
        records: Sequence[Entity],
        result: Any,
        applied: Any,
    ) -> None:
        """
        Append records to a side collection after the primary write.

        The primary collection is already saved at this point, so a failure
        here is raised as PartialWriteError carrying both halves.
        """
        key = self.config.storage_key(collection)
        try:
            existing = self._read_collection(key, seed)
            existing.extend(r.to_dict() for r in records)
            self._write_collection(key, existing)
        except StorageError as e:
            logger.error(
                "Side collection write failed after primary write; state is partially applied",
                extra={
                    "context": {
                        "primary_key": self.storage_key,
                        "side_key": key,
                        "primary_id": getattr(applied, "id", None),
                        "error": str(e),
                    }
                },
            )
            raise PartialWriteError(
                f"Saved {self.collection} but failed to write {collection}: {e}",
                storage_key=key,
                result=result,
                applied=applied,
            ) from e

    # ---- helpers ----

    def _now(self) -> str:
        return to_iso(self.clock())

    def _generate_id(self) -> str:
        millis = int(self.clock().timestamp() * 1000)
        suffix = "".join(random.choices(_ID_ALPHABET, k=9))
        return f"{millis}{suffix}"

    def _check_payload(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return check_payload(self.entity_class, payload)

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        """Hook for entity-specific values filled in on create."""
        return data

    def _check_update(self, items: Sequence[T], index: int, data: Dict[str, Any]) -> None:
        """Hook for entity-specific rules on update; ``items[index]`` is the target."""

    @staticmethod
    def _index_of(items: Sequence[Entity], entity_id: str) -> int:
        for index, item in enumerate(items):
            if item.id == entity_id:
                return index
        return -1

    def _require_index(self, items: Sequence[Entity], entity_id: str) -> int:
        index = self._index_of(items, entity_id)
        if index == -1:
            raise NotFoundError(
                f"{self.entity_class.__name__} with id {entity_id} not found",
                entity_id=entity_id,
            )
        return index

    def _coerce_params(self, params: Any) -> PageParams:
        return PageParams.coerce(params).resolved(self.config.page_size)

    def _search(self, items: List[T], query: Optional[str]) -> List[T]:
        """Case-insensitive substring match over ``search_fields``."""
        if not query or not query.strip():
            return items
        needle = query.strip().lower()
        matches = []
        for item in items:
            for field_name in self.search_fields:
                value = getattr(item, field_name, None)
                if isinstance(value, str) and needle in value.lower():
                    matches.append(item)
                    break
        return matches

    def _filter_by_field(self, items: List[T], field_name: str, value: Any) -> List[T]:
        return [item for item in items if getattr(item, field_name, None) == value]

    def _filter_by_date_range(
        self,
        items: List[T],
        start_date: str,
        end_date: str,
        field_name: Optional[str] = None,
    ) -> List[T]:
        """Inclusive on both bounds; records without a parseable date are dropped."""
        start = parse_timestamp(start_date)
        end = parse_timestamp(end_date)
        if start is None or end is None:
            raise ValidationError(f"Invalid date range: {start_date!r} - {end_date!r}")
        field_name = field_name or self.date_field
        return [item for item in items if in_range(getattr(item, field_name, None), start, end)]

    def _apply_filters(self, items: List[T], filters: Mapping[str, Any]) -> List[T]:
        start = filters.get("start_date")
        end = filters.get("end_date")
        if start or end:
            items = self._filter_by_date_range(
                items, start or "0001-01-01", end or "9999-12-31T23:59:59.999+00:00"
            )
        known = set(self.entity_class.field_names())
        for key, value in filters.items():
            if key in RANGE_FILTERS or value is None:
                continue
            if key not in known:
                raise ValidationError(f"Unknown filter field: {key}")
            items = self._filter_by_field(items, key, value)
        return items

    @staticmethod
    def _sort(items: List[T], sort: Optional[str]) -> List[T]:
        if not sort:
            return items
        descending = sort.startswith("-")
        field_name = sort.lstrip("-")
        present = [i for i in items if getattr(i, field_name, None) is not None]
        missing = [i for i in items if getattr(i, field_name, None) is None]
        present.sort(key=lambda i: getattr(i, field_name), reverse=descending)
        return present + missing

    def _paginate(self, items: List[T], params: Any = None) -> Paginated[T]:
        """Filter, search and sort, then slice; ``total`` is the pre-slice count."""
        page_params = self._coerce_params(params)
        filtered = self._apply_filters(items, page_params.filters)
        filtered = self._search(filtered, page_params.search)
        filtered = self._sort(filtered, page_params.sort or self.default_sort)
        page_items = paginate_array(filtered, page_params.page, page_params.limit)
        return Paginated.build(page_items, len(filtered), page_params.page, page_params.limit)

    async def _find_by_field(self, field_name: str, value: Any, params: Any = None) -> Paginated[T]:
        await self.delay.wait()
        return self._paginate(self._filter_by_field(self._load(), field_name, value), params)

    async def _find_by_date_range(
        self, start_date: str, end_date: str, params: Any = None, field_name: Optional[str] = None
    ) -> Paginated[T]:
        await self.delay.wait()
        items = self._filter_by_date_range(self._load(), start_date, end_date, field_name)
        return self._paginate(items, params)

    # ---- contract ----

    async def get_all(self, params: Any = None) -> Paginated[T]:
        await self.delay.wait()
        return self._paginate(self._load(), params)

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        await self.delay.wait()
        items = self._load()
        index = self._index_of(items, entity_id)
        return items[index] if index != -1 else None

    async def create(self, payload: Mapping[str, Any]) -> T:
        data = self._check_payload(payload)
        await self.delay.wait()
        now = self._now()
        data = self._defaults(data, now)
        entity = self.entity_class.from_dict(
            {**data, "id": self._generate_id(), "created_at": now, "updated_at": now}
        )
        items = self._load()
        items.append(entity)
        self._save(items)
        logger.debug(
            "Record created",
            extra={"context": {"storage_key": self.storage_key, "id": entity.id}},
        )
        return entity

    async def update(self, entity_id: str, changes: Mapping[str, Any]) -> T:
        # None means "not given", matching the API backend's PATCH body
        data = {k: v for k, v in self._check_payload(changes).items() if v is not None}
        await self.delay.wait()
        items = self._load()
        index = self._require_index(items, entity_id)
        self._check_update(items, index, data)
        current = items[index]
        merged = {
            **current.to_dict(),
            **data,
            "id": current.id,
            "created_at": current.created_at,
            "updated_at": self._now(),
        }
        updated = self.entity_class.from_dict(merged)
        items[index] = updated
        self._save(items)
        return updated

    async def delete(self, entity_id: str) -> None:
        await self.delay.wait()
        items = self._load()
        index = self._require_index(items, entity_id)
        del items[index]
        self._save(items)
        logger.debug(
            "Record deleted",
            extra={"context": {"storage_key": self.storage_key, "id": entity_id}},
        )

    # ---- maintenance ----

    def clear_storage(self) -> None:
        self.store.remove(self.storage_key)

    def seed_data(self, records: Sequence[Any]) -> None:
        """Replace the stored collection with ``records`` (entities or dicts)."""
        self._write_collection(
            self.storage_key,
            [r.to_dict() if isinstance(r, Entity) else dict(r) for r in records],
        )

    def reset(self) -> None:
        """Restore the seed dataset."""
        self._write_collection(self.storage_key, copy.deepcopy(self._seed))
