"""Carry-over query selector."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import CarryOverInfo, CarryOverSummary
from mes_kernel.models.carry_over import CarryOverModel
from mes_kernel.selectors.base import BaseSelector

_ZERO = Decimal("0")


class CarryOverSelector(BaseSelector[CarryOverModel]):
    """Reads carry-overs; lists are oldest first."""

    def _query(self, product_id: UUID | None = None, process_code: str | None = None):
        query = select(CarryOverModel).order_by(CarryOverModel.carried_at, CarryOverModel.id)
        if product_id is not None:
            query = query.where(CarryOverModel.product_id == product_id)
        if process_code is not None:
            query = query.where(
                CarryOverModel.process_code == normalize_process_code(process_code)
            )
        return query

    def get(self, carry_over_id: UUID) -> CarryOverInfo | None:
        model = self.session.get(CarryOverModel, carry_over_id)
        return CarryOverInfo.from_model(model) if model is not None else None

    def by_product(self, product_id: UUID) -> list[CarryOverInfo]:
        rows = self.session.execute(self._query(product_id=product_id)).scalars().all()
        return [CarryOverInfo.from_model(r) for r in rows]

    def by_process(self, process_code: str) -> list[CarryOverInfo]:
        rows = self.session.execute(self._query(process_code=process_code)).scalars().all()
        return [CarryOverInfo.from_model(r) for r in rows]

    def available(
        self,
        product_id: UUID | None = None,
        process_code: str | None = None,
    ) -> list[CarryOverInfo]:
        """Carry-overs with something left, oldest first."""
        rows = self.session.execute(self._query(product_id, process_code)).scalars().all()
        return [CarryOverInfo.from_model(r) for r in rows if r.quantity > r.used_qty]

    def summary(
        self,
        product_id: UUID | None = None,
        process_code: str | None = None,
    ) -> CarryOverSummary:
        rows = self.session.execute(self._query(product_id, process_code)).scalars().all()
        return CarryOverSummary(
            count=len(rows),
            total_quantity=sum((r.quantity for r in rows), _ZERO),
            total_used=sum((r.used_qty for r in rows), _ZERO),
            available_count=sum(1 for r in rows if r.quantity > r.used_qty),
        )
