"""API inventory repositories: products, categories and kardex movements."""

from typing import Any, List

from podocare.core.exceptions import TransportError
from podocare.domain.entities import (
    CategoryWithCount,
    Paginated,
    Product,
    ProductCategory,
    ProductMovement,
    ProductStats,
)
from podocare.domain.interfaces import (
    IProductCategoryRepository,
    IProductMovementRepository,
    IProductRepository,
)

from .base import ApiRepository, path_id
from .normalizers import from_wire, normalize_record, to_stats


class ApiProductRepository(ApiRepository[Product], IProductRepository):
    entity_class = Product
    endpoint = "/product"

    async def get_by_category_id(self, category_id: str, params: Any = None) -> Paginated[Product]:
        return await self._get_page(params=params, category_id=category_id)

    async def get_active_products(self, params: Any = None) -> Paginated[Product]:
        return await self._get_page(params=params, active=True)

    async def get_low_stock_products(self, threshold: int = 5, params: Any = None) -> Paginated[Product]:
        return await self._get_page(params=params, low_stock=threshold)

    async def update_stock(self, product_id: str, quantity: int, reason: str) -> Product:
        return await self._send(
            "PATCH",
            f"/{path_id(product_id)}/stock",
            {"quantity": quantity, "reason": reason},
        )

    async def search_products(self, params: Any) -> Paginated[Product]:
        return await self._get_page(params=params)

    async def get_product_stats(self) -> ProductStats:
        return to_stats(ProductStats, await self._get_data("/stats"))


class ApiProductCategoryRepository(ApiRepository[ProductCategory], IProductCategoryRepository):
    entity_class = ProductCategory
    endpoint = "/product-category"

    async def get_categories_with_product_count(self) -> List[CategoryWithCount]:
        data = await self._get_data("/with-counts")
        records = data.get("data", data.get("items")) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise TransportError("Malformed category count payload")
        return [
            CategoryWithCount(
                category=normalize_record(ProductCategory, record),
                product_count=int(from_wire(record).get("product_count", 0)),
            )
            for record in records
        ]


class ApiProductMovementRepository(ApiRepository[ProductMovement], IProductMovementRepository):
    """Kardex ledger."""

    entity_class = ProductMovement
    endpoint = "/kardex"

    async def get_by_product_id(self, product_id: str, params: Any = None) -> Paginated[ProductMovement]:
        return await self._get_page(params=params, product_id=product_id)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[ProductMovement]:
        return await self._get_page(params=params, start_date=start_date, end_date=end_date)
