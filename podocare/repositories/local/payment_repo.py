"""Local payment and sale repositories."""

import logging
from typing import Any, Dict, List, Mapping

from podocare.core.dates import in_range, parse_timestamp, period_starts
from podocare.core.exceptions import ValidationError
from podocare.db.seed import payments_seed, sale_items_seed, sales_seed
from podocare.domain.entities import (
    IncomeStats,
    Paginated,
    Payment,
    Sale,
    SaleItem,
    SaleStats,
)
from podocare.domain.interfaces import IPaymentRepository, ISaleRepository

from .base import LocalRepository

logger = logging.getLogger(__name__)


class LocalPaymentRepository(LocalRepository[Payment], IPaymentRepository):
    entity_class = Payment
    collection = "payments"
    seed_factory = staticmethod(payments_seed)
    search_fields = ("notes", "method")
    date_field = "paid_at"
    default_sort = "-created_at"

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        if data.get("status") == "completed" and not data.get("paid_at"):
            data["paid_at"] = now
        return data

    async def get_by_appointment_id(self, appointment_id: str, params: Any = None) -> Paginated[Payment]:
        return await self._find_by_field("appointment_id", appointment_id, params)

    async def get_by_sale_id(self, sale_id: str, params: Any = None) -> Paginated[Payment]:
        return await self._find_by_field("sale_id", sale_id, params)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[Payment]:
        """Filters on ``paid_at``; payments never paid are excluded."""
        return await self._find_by_date_range(start_date, end_date, params)

    async def get_by_method(self, method: str, params: Any = None) -> Paginated[Payment]:
        return await self._find_by_field("method", method, params)

    async def get_income_stats(self) -> IncomeStats:
        await self.delay.wait()
        completed = [p for p in self._load() if p.status == "completed"]
        now = self.clock()
        today, week, month = period_starts(now)

        def total_since(start) -> float:
            return round(sum(p.amount for p in completed if in_range(p.paid_at, start, now)), 2)

        return IncomeStats(
            today=total_since(today),
            this_week=total_since(week),
            this_month=total_since(month),
            total=round(sum(p.amount for p in completed), 2),
        )


class LocalSaleRepository(LocalRepository[Sale], ISaleRepository):
    """
    Sales keep their items embedded; every item is also appended to the
    ``sale_items`` collection, which is written after the sale itself.
    """

    entity_class = Sale
    collection = "sales"
    seed_factory = staticmethod(sales_seed)
    search_fields = ("payment_method", "cancel_reason", "state")
    date_field = "date"
    default_sort = "-date"
    items_collection = "sale_items"

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        data.setdefault("date", now)
        return data

    async def get_by_customer_id(self, customer_id: str, params: Any = None) -> Paginated[Sale]:
        return await self._find_by_field("patient_id", customer_id, params)

    async def get_by_seller_id(self, seller_id: str, params: Any = None) -> Paginated[Sale]:
        return await self._find_by_field("seller_id", seller_id, params)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[Sale]:
        return await self._find_by_date_range(start_date, end_date, params)

    async def create_sale_with_items(
        self, sale: Mapping[str, Any], items: List[Mapping[str, Any]]
    ) -> Sale:
        """
        Create a sale and its line items. ``total_amount`` defaults to the sum
        of the item subtotals.
        """
        data = self._check_payload(sale)
        data.pop("items", None)
        if not items:
            raise ValidationError("A sale needs at least one item")
        for item in items:
            unknown = sorted(set(item) - set(SaleItem.field_names()))
            if unknown:
                raise ValidationError(f"Unknown fields for SaleItem: {', '.join(unknown)}")

        await self.delay.wait()
        now = self._now()
        sale_id = self._generate_id()
        sale_items = [
            SaleItem.from_dict(
                {
                    **item,
                    "id": self._generate_id(),
                    "sale_id": sale_id,
                    "created_at": now,
                    "updated_at": now,
                }
            )
            for item in items
        ]
        if data.get("total_amount") is None:
            data["total_amount"] = round(sum(i.subtotal for i in sale_items), 2)

        created = Sale.from_dict(
            {
                **self._defaults(data, now),
                "id": sale_id,
                "items": [i.to_dict() for i in sale_items],
                "created_at": now,
                "updated_at": now,
            }
        )
        sales = self._load()
        sales.append(created)
        self._save(sales)

        self._append_side_records(
            self.items_collection,
            sale_items_seed(),
            sale_items,
            result=created,
            applied=created,
        )
        logger.info(
            "Sale created",
            extra={
                "context": {
                    "sale_id": sale_id,
                    "items": len(sale_items),
                    "total_amount": created.total_amount,
                }
            },
        )
        return created

    async def get_sale_stats(self) -> SaleStats:
        """Counts active (non-cancelled) sales per period."""
        await self.delay.wait()
        active = [s for s in self._load() if s.state == "activa"]
        now = self.clock()
        today, week, month = period_starts(now)
        dates = [parse_timestamp(s.date) for s in active]

        def count_since(start) -> int:
            return sum(1 for d in dates if d is not None and start <= d <= now)

        return SaleStats(
            today=count_since(today),
            this_week=count_since(week),
            this_month=count_since(month),
            total=len(active),
            total_amount=round(sum(s.total_amount for s in active), 2),
        )
