"""
Local inventory repositories: products, product categories and the kardex
(product movement ledger).

Stock adjustments write the product collection first and then append a
kardex movement, so a failed ledger write surfaces as PartialWriteError.
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Any, Dict, List

from podocare.core.exceptions import ValidationError
from podocare.db.seed import (
    product_categories_seed,
    product_movements_seed,
    products_seed,
)
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

from .base import LocalRepository

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 5
STOCK_ADJUSTMENT = "stock_adjustment"


class LocalProductRepository(LocalRepository[Product], IProductRepository):
    entity_class = Product
    collection = "products"
    seed_factory = staticmethod(products_seed)
    search_fields = ("name", "description", "sku")
    default_sort = "name"

    async def get_by_category_id(self, category_id: str, params: Any = None) -> Paginated[Product]:
        return await self._find_by_field("category_id", category_id, params)

    async def get_active_products(self, params: Any = None) -> Paginated[Product]:
        return await self._find_by_field("status", "active", params)

    async def get_low_stock_products(
        self, threshold: int = LOW_STOCK_THRESHOLD, params: Any = None
    ) -> Paginated[Product]:
        await self.delay.wait()
        low = [p for p in self._load() if p.is_active and p.stock <= threshold]
        return self._paginate(low, params)

    async def update_stock(self, product_id: str, quantity: int, reason: str) -> Product:
        """
        Add ``quantity`` to the stock (negative removes). Stock never goes
        below zero; the movement records the quantity actually applied.
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise ValidationError("Stock quantity must be an integer")
        await self.delay.wait()
        products = self._load()
        index = self._require_index(products, product_id)
        product = products[index]

        new_stock = max(0, product.stock + quantity)
        applied = new_stock - product.stock
        if new_stock != product.stock + quantity:
            logger.warning(
                "Stock adjustment clamped at zero",
                extra={
                    "context": {
                        "product_id": product_id,
                        "requested": quantity,
                        "applied": applied,
                    }
                },
            )

        now = self._now()
        updated = replace(product, stock=new_stock, updated_at=now)
        products[index] = updated
        self._save(products)

        movement = ProductMovement(
            id=self._generate_id(),
            created_at=now,
            updated_at=now,
            product_id=product_id,
            date=now,
            type="entrada" if applied >= 0 else "salida",
            quantity=abs(applied),
            stock_after=new_stock,
            sale_price=product.price,
            related_table=STOCK_ADJUSTMENT,
            related_id=product_id,
            notes=reason,
        )
        self._append_side_records(
            LocalProductMovementRepository.collection,
            product_movements_seed(),
            [movement],
            result=updated,
            applied=updated,
        )
        return updated

    async def search_products(self, params: Any) -> Paginated[Product]:
        return await self.get_all(params)

    async def get_product_stats(self) -> ProductStats:
        """Over active products only."""
        await self.delay.wait()
        active = [p for p in self._load() if p.is_active]
        return ProductStats(
            total=len(active),
            low_stock=sum(1 for p in active if 0 < p.stock <= LOW_STOCK_THRESHOLD),
            out_of_stock=sum(1 for p in active if p.stock == 0),
        )


class LocalProductCategoryRepository(LocalRepository[ProductCategory], IProductCategoryRepository):
    entity_class = ProductCategory
    collection = "product_categories"
    seed_factory = staticmethod(product_categories_seed)
    search_fields = ("name", "slug", "description")
    default_sort = "name"

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        if not data.get("slug") and data.get("name"):
            data["slug"] = "-".join(data["name"].lower().split())
        return data

    async def get_categories_with_product_count(self) -> List[CategoryWithCount]:
        """Active products per category, read from the product collection of the same store."""
        await self.delay.wait()
        categories = self._load()
        products = self._load_side(
            LocalProductRepository.collection, Product, products_seed()
        )
        counts = Counter(p.category_id for p in products if p.is_active)
        return [
            CategoryWithCount(category=c, product_count=counts.get(c.id, 0))
            for c in categories
        ]


class LocalProductMovementRepository(LocalRepository[ProductMovement], IProductMovementRepository):
    """Kardex ledger of stock entries and exits."""

    entity_class = ProductMovement
    collection = "product_movements"
    seed_factory = staticmethod(product_movements_seed)
    search_fields = ("notes", "related_table")
    date_field = "date"
    default_sort = "-date"

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        data.setdefault("date", now)
        if not data.get("total_cost") and data.get("cost_unit"):
            data["total_cost"] = round(data["cost_unit"] * data.get("quantity", 0), 2)
        return data

    async def get_by_product_id(self, product_id: str, params: Any = None) -> Paginated[ProductMovement]:
        return await self._find_by_field("product_id", product_id, params)

    async def get_by_date_range(
        self, start_date: str, end_date: str, params: Any = None
    ) -> Paginated[ProductMovement]:
        return await self._find_by_date_range(start_date, end_date, params)
