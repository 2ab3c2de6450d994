"""
Local abono (prepaid credit) repository.

use_abono loads, validates and saves the abono collection with no suspension
point in between, so concurrent calls on one event loop apply one after the
other and an overdraw is rejected instead of silently applied. The usage log
is written afterwards to its own collection.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from podocare.core.exceptions import ValidationError
from podocare.core.pagination import paginate_array
from podocare.db.seed import abono_usage_seed, abonos_seed
from podocare.domain.entities import Abono, AbonoUsage, Paginated
from podocare.domain.interfaces import IAbonoRepository

from .base import LocalRepository

logger = logging.getLogger(__name__)


class LocalAbonoRepository(LocalRepository[Abono], IAbonoRepository):
    entity_class = Abono
    collection = "abonos"
    seed_factory = staticmethod(abonos_seed)
    search_fields = ("notes", "method")
    date_field = "registered_at"
    default_sort = "-registered_at"
    usage_collection = "abono_usage"

    def _defaults(self, data: Dict[str, Any], now: str) -> Dict[str, Any]:
        data.setdefault("registered_at", now)
        data.setdefault("used_amount", 0.0)
        if data.get("remaining_amount") is None:
            data["remaining_amount"] = round(
                (data.get("amount") or 0) - (data.get("used_amount") or 0), 2
            )
        data.setdefault("is_active", data["remaining_amount"] > 0)
        return data

    async def get_by_patient_id(self, patient_id: str, params: Any = None) -> Paginated[Abono]:
        return await self._find_by_field("patient_id", patient_id, params)

    async def get_active_abonos_by_patient_id(
        self, patient_id: str, params: Any = None
    ) -> Paginated[Abono]:
        await self.delay.wait()
        active = [
            a
            for a in self._load()
            if a.patient_id == patient_id and a.is_active and a.remaining_amount > 0
        ]
        return self._paginate(active, params)

    async def use_abono(
        self,
        abono_id: str,
        amount: float,
        appointment_id: Optional[str] = None,
        sale_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AbonoUsage:
        if amount is None:
            raise ValidationError("Usage amount must be positive")
        # Money has two decimals; compare and record the rounded amount
        amount = round(amount, 2)
        if amount <= 0:
            raise ValidationError("Usage amount must be positive")

        await self.delay.wait()
        abonos = self._load()
        index = self._require_index(abonos, abono_id)
        abono = abonos[index]
        if not abono.is_active:
            raise ValidationError(f"Abono {abono_id} is not active")
        if amount > round(abono.remaining_amount, 2):
            raise ValidationError(
                f"Insufficient balance: requested {amount:.2f}, "
                f"remaining {abono.remaining_amount:.2f}"
            )

        now = self._now()
        remaining = max(0.0, round(abono.remaining_amount - amount, 2))
        updated = replace(
            abono,
            used_amount=round(abono.used_amount + amount, 2),
            remaining_amount=remaining,
            is_active=remaining > 0,
            updated_at=now,
        )
        abonos[index] = updated
        self._save(abonos)

        usage = AbonoUsage(
            id=self._generate_id(),
            created_at=now,
            updated_at=now,
            abono_id=abono_id,
            appointment_id=appointment_id,
            sale_id=sale_id,
            amount=amount,
            used_at=now,
            notes=notes,
        )
        self._append_side_records(
            self.usage_collection,
            abono_usage_seed(),
            [usage],
            result=usage,
            applied=updated,
        )
        logger.info(
            "Abono used",
            extra={
                "context": {
                    "abono_id": abono_id,
                    "amount": amount,
                    "remaining_amount": remaining,
                }
            },
        )
        return usage

    async def get_patient_abono_balance(self, patient_id: str) -> float:
        await self.delay.wait()
        return round(
            sum(
                a.remaining_amount
                for a in self._load()
                if a.patient_id == patient_id and a.is_active
            ),
            2,
        )

    async def get_abono_usage_history(self, abono_id: str, params: Any = None) -> Paginated[AbonoUsage]:
        """Most recent usage first."""
        await self.delay.wait()
        usages = [
            u
            for u in self._load_side(self.usage_collection, AbonoUsage, abono_usage_seed())
            if u.abono_id == abono_id
        ]
        usages.sort(key=lambda u: u.used_at or "", reverse=True)
        page_params = self._coerce_params(params)
        page_items = paginate_array(usages, page_params.page, page_params.limit)
        return Paginated.build(page_items, len(usages), page_params.page, page_params.limit)
