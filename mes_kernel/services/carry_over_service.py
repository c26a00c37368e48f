"""
Service layer for carry-overs.

Carry-overs share the stock ledger's quantity/used/available triad but
never go negative: over-consumption is refused.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from mes_kernel.db.types import ZERO, to_quantity
from mes_kernel.domain.clock import Clock, SystemClock
from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import CarryOverInfo, CarryOverUsage
from mes_kernel.exceptions import (
    CarryOverCancelExceedsUsageError,
    CarryOverNotFoundError,
    CarryOverShortageError,
    InvalidQuantityError,
)
from mes_kernel.logging_config import get_logger
from mes_kernel.models.carry_over import CarryOverModel
from mes_kernel.services.base import BaseService

logger = get_logger("services.carry_over")


class CarryOverService(BaseService[CarryOverModel]):
    """Creates, consumes and restores carry-overs."""

    def __init__(self, session, clock: Clock | None = None):
        super().__init__(session)
        self.clock = clock or SystemClock()

    def _get_model(self, carry_over_id: UUID) -> CarryOverModel:
        model = self.session.get(CarryOverModel, carry_over_id)
        if model is None:
            raise CarryOverNotFoundError(str(carry_over_id))
        return model

    @staticmethod
    def _positive(value: Decimal | int | str) -> Decimal:
        qty = to_quantity(value)
        if qty <= 0:
            raise InvalidQuantityError(str(qty))
        return qty

    def create(
        self,
        product_id: UUID,
        process_code: str,
        quantity: Decimal | int | str,
        actor_id: UUID,
        line_code: str | None = None,
        source_lot_number: str | None = None,
    ) -> CarryOverInfo:
        model = CarryOverModel(
            product_id=product_id,
            process_code=normalize_process_code(process_code),
            line_code=line_code,
            source_lot_number=source_lot_number,
            quantity=self._positive(quantity),
            used_qty=ZERO,
            carried_at=self.clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "carry_over_created",
            extra={
                "product_id": str(product_id),
                "process_code": model.process_code,
                "quantity": str(model.quantity),
            },
        )
        return CarryOverInfo.from_model(model)

    def use(
        self,
        carry_over_id: UUID,
        quantity: Decimal | int | str,
        actor_id: UUID,
    ) -> CarryOverInfo:
        """
        Raises:
            CarryOverShortageError: If quantity exceeds what is available.
        """
        qty = self._positive(quantity)
        model = self._get_model(carry_over_id)
        available = model.quantity - model.used_qty
        if qty > available:
            raise CarryOverShortageError(str(qty), str(available))
        model.used_qty = model.used_qty + qty
        model.updated_by_id = actor_id
        self.session.flush()
        return CarryOverInfo.from_model(model)

    def cancel_usage(
        self,
        carry_over_id: UUID,
        quantity: Decimal | int | str,
        actor_id: UUID,
    ) -> CarryOverInfo:
        """
        Raises:
            CarryOverCancelExceedsUsageError: If quantity exceeds used_qty.
        """
        qty = self._positive(quantity)
        model = self._get_model(carry_over_id)
        if qty > model.used_qty:
            raise CarryOverCancelExceedsUsageError(str(qty), str(model.used_qty))
        model.used_qty = model.used_qty - qty
        model.updated_by_id = actor_id
        self.session.flush()
        return CarryOverInfo.from_model(model)

    def delete(self, carry_over_id: UUID) -> None:
        model = self._get_model(carry_over_id)
        self.session.delete(model)
        self.session.flush()
        logger.info("carry_over_deleted", extra={"carry_over_id": str(carry_over_id)})

    def consume_fifo(
        self,
        product_id: UUID,
        process_code: str,
        quantity: Decimal | int | str,
        actor_id: UUID,
    ) -> list[CarryOverUsage]:
        """
        Consume oldest carry-overs first.

        All-or-nothing: when the total available is short, raises
        CarryOverShortageError before touching any row.
        """
        qty = self._positive(quantity)
        rows = self.session.execute(
            select(CarryOverModel)
            .where(
                CarryOverModel.product_id == product_id,
                CarryOverModel.process_code == normalize_process_code(process_code),
            )
            .order_by(CarryOverModel.carried_at, CarryOverModel.id)
            .with_for_update()
        ).scalars().all()
        rows = [r for r in rows if r.quantity > r.used_qty]

        total = sum((r.quantity - r.used_qty for r in rows), ZERO)
        if qty > total:
            raise CarryOverShortageError(str(qty), str(total))

        usages: list[CarryOverUsage] = []
        remaining = qty
        for row in rows:
            if remaining <= 0:
                break
            take = min(row.quantity - row.used_qty, remaining)
            row.used_qty = row.used_qty + take
            row.updated_by_id = actor_id
            usages.append(CarryOverUsage(carry_over_id=row.id, used_qty=take))
            remaining -= take
        self.session.flush()

        logger.info(
            "carry_over_consumed",
            extra={
                "product_id": str(product_id),
                "process_code": normalize_process_code(process_code),
                "quantity": str(qty),
                "rows": len(usages),
            },
        )
        return usages
