"""API payment and sale repositories."""

from typing import Any, List, Mapping

from podocare.core.exceptions import ValidationError
from podocare.domain.entities import (
    IncomeStats,
    Paginated,
    Payment,
    Sale,
    SaleItem,
    SaleStats,
    check_payload,
)
from podocare.domain.interfaces import IPaymentRepository, ISaleRepository

from .base import ApiRepository, compact
from .normalizers import to_stats


class ApiPaymentRepository(ApiRepository[Payment], IPaymentRepository):
    entity_class = Payment
    endpoint = "/payment"

    async def get_by_appointment_id(self, appointment_id: str, params: Any = None) -> Paginated[Payment]:
        return await self._get_page(params=params, appointment_id=appointment_id)

    async def get_by_sale_id(self, sale_id: str, params: Any = None) -> Paginated[Payment]:
        return await self._get_page(params=params, sale_id=sale_id)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[Payment]:
        return await self._get_page(params=params, start_date=start_date, end_date=end_date)

    async def get_by_method(self, method: str, params: Any = None) -> Paginated[Payment]:
        return await self._get_page(params=params, method=method)

    async def get_income_stats(self) -> IncomeStats:
        return to_stats(IncomeStats, await self._get_data("/income-stats"))


class ApiSaleRepository(ApiRepository[Sale], ISaleRepository):
    entity_class = Sale
    endpoint = "/sale"

    async def get_by_customer_id(self, customer_id: str, params: Any = None) -> Paginated[Sale]:
        return await self._get_page(params=params, customer_id=customer_id)

    async def get_by_seller_id(self, seller_id: str, params: Any = None) -> Paginated[Sale]:
        return await self._get_page(params=params, seller_id=seller_id)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[Sale]:
        return await self._get_page(params=params, start_date=start_date, end_date=end_date)

    async def create_sale_with_items(
        self, sale: Mapping[str, Any], items: List[Mapping[str, Any]]
    ) -> Sale:
        if not items:
            raise ValidationError("A sale needs at least one item")
        sale_data = compact(check_payload(Sale, sale))
        sale_data.pop("items", None)
        item_data = []
        for item in items:
            data = compact(check_payload(SaleItem, item))
            SaleItem.from_dict(data)
            item_data.append(data)
        return await self._send("POST", "/with-items", {"sale": sale_data, "items": item_data})

    async def get_sale_stats(self) -> SaleStats:
        return to_stats(SaleStats, await self._get_data("/stats"))
