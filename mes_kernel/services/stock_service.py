"""
StockService -- write side of the lot-tracked stock ledger.

Responsibility:
    Receives stock lots, records consumption against a specific lot,
    adjusts and deletes lots, and reverses every consumption recorded for
    a production lot.

Architecture position:
    Kernel > Services -- imperative shell.  The FIFO allocation decision is
    made by the pure FifoEngine one layer up; this service only applies
    the per-lot mutations it is handed.

Invariants enforced:
    - (material_id, lot_number) is unique; lot numbers are normalized.
    - used_qty only increases here, except in reverse_production_lot(),
      which decreases it by exactly the amounts recorded for that
      production lot and deletes those bridge rows.
    - When a production lot id is given, every used_qty increment is paired
      with one LotMaterialConsumptionModel row of the same quantity.

Failure modes:
    - InvalidQuantityError for a non-positive quantity.
    - MaterialNotFoundError / StockLotNotFoundError for unknown references.
    - DuplicateStockLotError when a lot number is received twice.
    - InsufficientStockError from consume_lot() with allow_negative=False.
    - StockLotReferencedError from delete_lot() while history exists.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from mes_kernel.db.types import ZERO, to_quantity
from mes_kernel.domain.clock import Clock, SystemClock
from mes_kernel.domain.codes import normalize_lot_number
from mes_kernel.domain.dtos import (
    LotUsage,
    ReceiveBatchResult,
    ReceiveOutcome,
    ReceiveRequest,
    StockLotInfo,
)
from mes_kernel.exceptions import (
    DuplicateStockLotError,
    InsufficientStockError,
    InvalidQuantityError,
    MaterialNotFoundError,
    StockError,
    StockLotNotFoundError,
    StockLotReferencedError,
)
from mes_kernel.logging_config import get_logger
from mes_kernel.models.material import MaterialModel
from mes_kernel.models.stock import LotMaterialConsumptionModel, StockLotModel
from mes_kernel.services.base import BaseService

logger = get_logger("services.stock")


def _positive(value: Decimal | int | str, field: str = "quantity") -> Decimal:
    qty = to_quantity(value, field=field)
    if qty <= 0:
        raise InvalidQuantityError(str(qty), field=field)
    return qty


class StockService(BaseService[StockLotModel]):
    """
    Stock lot mutations.

    Args:
        session: Caller-owned session.
        clock: Source of receipt timestamps.  Defaults to SystemClock.
    """

    def __init__(self, session, clock: Clock | None = None):
        super().__init__(session)
        self.clock = clock or SystemClock()

    # =========================================================================
    # Lookups used by mutations
    # =========================================================================

    def _get_lot(self, material_id: UUID, lot_number: str) -> StockLotModel:
        normalized = normalize_lot_number(lot_number)
        lot = self.session.execute(
            select(StockLotModel)
            .where(
                StockLotModel.material_id == material_id,
                StockLotModel.lot_number == normalized,
            )
            .with_for_update()
        ).scalar_one_or_none()
        if lot is None:
            raise StockLotNotFoundError(normalized, str(material_id))
        return lot

    def lots_for_update(self, material_id: UUID) -> list[StockLotModel]:
        """Every lot of a material in FIFO order, row-locked where supported."""
        return list(
            self.session.execute(
                select(StockLotModel)
                .where(StockLotModel.material_id == material_id)
                .order_by(StockLotModel.received_at, StockLotModel.lot_number)
                .with_for_update()
            ).scalars().all()
        )

    # =========================================================================
    # Receiving
    # =========================================================================

    def receive(
        self,
        material_id: UUID,
        lot_number: str,
        quantity: Decimal | int | str,
        actor_id: UUID,
        location: str | None = None,
        received_at: datetime | None = None,
    ) -> StockLotInfo:
        """
        Create a new lot with used_qty = 0.

        Raises:
            InvalidQuantityError: If quantity is not positive.
            MaterialNotFoundError: If the material does not exist.
            DuplicateStockLotError: If the lot number was already received.
        """
        qty = _positive(quantity)
        if self.session.get(MaterialModel, material_id) is None:
            raise MaterialNotFoundError(str(material_id))

        normalized = normalize_lot_number(lot_number)
        existing = self.session.execute(
            select(StockLotModel.id).where(
                StockLotModel.material_id == material_id,
                StockLotModel.lot_number == normalized,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateStockLotError(str(material_id), normalized)

        lot = StockLotModel(
            material_id=material_id,
            lot_number=normalized,
            quantity=qty,
            used_qty=ZERO,
            received_at=received_at or self.clock.now(),
            location=location,
            created_by_id=actor_id,
        )
        self.session.add(lot)
        self.session.flush()

        logger.info(
            "stock_received",
            extra={
                "material_id": str(material_id),
                "lot_number": normalized,
                "quantity": str(qty),
                "location": location,
            },
        )
        return StockLotInfo.from_model(lot)

    def receive_batch(
        self,
        requests: Iterable[ReceiveRequest],
        actor_id: UUID,
    ) -> ReceiveBatchResult:
        """
        Receive several lots.  A failing line is reported, not raised, and
        does not stop the remaining lines.
        """
        outcomes: list[ReceiveOutcome] = []
        for request in requests:
            try:
                lot = self.receive(
                    request.material_id,
                    request.lot_number,
                    request.quantity,
                    actor_id,
                    location=request.location,
                )
            except StockError as exc:
                logger.warning(
                    "stock_receive_line_failed",
                    extra={
                        "material_id": str(request.material_id),
                        "lot_number": request.lot_number,
                        "error_code": exc.code,
                    },
                )
                outcomes.append(
                    ReceiveOutcome(
                        material_id=request.material_id,
                        lot_number=request.lot_number,
                        success=False,
                        error=str(exc),
                    )
                )
            else:
                outcomes.append(
                    ReceiveOutcome(
                        material_id=request.material_id,
                        lot_number=lot.lot_number,
                        success=True,
                        lot=lot,
                    )
                )

        result = ReceiveBatchResult(outcomes=tuple(outcomes))
        logger.info(
            "stock_batch_received",
            extra={"success": result.success_count, "failed": result.failed_count},
        )
        return result

    # =========================================================================
    # Consumption
    # =========================================================================

    def record_consumption(
        self,
        lot: StockLotModel,
        quantity: Decimal,
        actor_id: UUID,
        production_lot_id: UUID | None = None,
    ) -> LotUsage:
        """
        Add quantity to a lot's used_qty, with no availability check.

        Writes the bridge row when production_lot_id is given.
        """
        lot.used_qty = lot.used_qty + quantity
        lot.updated_by_id = actor_id
        if production_lot_id is not None:
            self.session.add(
                LotMaterialConsumptionModel(
                    production_lot_id=production_lot_id,
                    material_id=lot.material_id,
                    lot_number=lot.lot_number,
                    quantity=quantity,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()

        if lot.used_qty > lot.quantity:
            logger.warning(
                "negative_stock_forced",
                extra={
                    "material_id": str(lot.material_id),
                    "lot_number": lot.lot_number,
                    "available_qty": str(lot.quantity - lot.used_qty),
                },
            )
        return LotUsage(lot_number=lot.lot_number, used_qty=quantity)

    def consume_lot(
        self,
        material_id: UUID,
        lot_number: str,
        quantity: Decimal | int | str,
        actor_id: UUID,
        production_lot_id: UUID | None = None,
        allow_negative: bool = True,
    ) -> LotUsage:
        """
        Consume from one named lot.

        Raises:
            StockLotNotFoundError: If the lot does not exist.
            InsufficientStockError: If the lot cannot cover quantity and
                allow_negative is False.  Nothing is mutated.
        """
        qty = _positive(quantity)
        lot = self._get_lot(material_id, lot_number)
        if not allow_negative and qty > lot.available_qty:
            raise InsufficientStockError(
                str(material_id),
                str(qty),
                str(lot.available_qty),
                lot_number=lot.lot_number,
            )
        usage = self.record_consumption(lot, qty, actor_id, production_lot_id)
        logger.info(
            "lot_consumed",
            extra={
                "material_id": str(material_id),
                "lot_number": lot.lot_number,
                "quantity": str(qty),
            },
        )
        return usage

    # =========================================================================
    # Corrections
    # =========================================================================

    def adjust_quantity(
        self,
        material_id: UUID,
        lot_number: str,
        quantity: Decimal | int | str,
        actor_id: UUID,
    ) -> StockLotInfo:
        """Correct the received quantity of a lot (e.g. after a recount)."""
        qty = to_quantity(quantity)
        if qty < 0:
            raise InvalidQuantityError(str(qty))
        lot = self._get_lot(material_id, lot_number)
        previous = lot.quantity
        lot.quantity = qty
        lot.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "stock_quantity_adjusted",
            extra={
                "material_id": str(material_id),
                "lot_number": lot.lot_number,
                "previous_quantity": str(previous),
                "quantity": str(qty),
            },
        )
        return StockLotInfo.from_model(lot)

    def delete_lot(self, material_id: UUID, lot_number: str) -> None:
        """
        Destructively remove a lot.

        Raises:
            StockLotReferencedError: While consumption rows reference the lot.
        """
        lot = self._get_lot(material_id, lot_number)
        references = self.session.execute(
            select(func.count(LotMaterialConsumptionModel.id)).where(
                LotMaterialConsumptionModel.material_id == material_id,
                LotMaterialConsumptionModel.lot_number == lot.lot_number,
            )
        ).scalar_one()
        if references:
            raise StockLotReferencedError(lot.lot_number, references)

        self.session.delete(lot)
        self.session.flush()
        logger.warning(
            "stock_lot_deleted",
            extra={"material_id": str(material_id), "lot_number": lot.lot_number},
        )

    def reverse_production_lot(self, production_lot_id: UUID, actor_id: UUID) -> int:
        """
        Undo every consumption recorded for a production lot.

        Each bridge row's quantity is subtracted from its stock lot's
        used_qty (floored at zero) and the row is deleted.  A second call
        finds no rows and returns 0.

        Returns:
            Number of distinct stock lots restored.
        """
        rows = self.session.execute(
            select(LotMaterialConsumptionModel)
            .where(LotMaterialConsumptionModel.production_lot_id == production_lot_id)
            .order_by(LotMaterialConsumptionModel.created_at)
        ).scalars().all()

        restored: set[UUID] = set()
        for row in rows:
            lot = self.session.execute(
                select(StockLotModel)
                .where(
                    StockLotModel.material_id == row.material_id,
                    StockLotModel.lot_number == row.lot_number,
                )
                .with_for_update()
            ).scalar_one_or_none()
            if lot is None:
                logger.warning(
                    "consumption_lot_missing",
                    extra={
                        "production_lot_id": str(production_lot_id),
                        "material_id": str(row.material_id),
                        "lot_number": row.lot_number,
                    },
                )
            else:
                lot.used_qty = max(ZERO, lot.used_qty - row.quantity)
                lot.updated_by_id = actor_id
                restored.add(lot.id)
            self.session.delete(row)
        self.session.flush()

        logger.info(
            "production_lot_consumption_reversed",
            extra={
                "production_lot_id": str(production_lot_id),
                "rows": len(rows),
                "lots_restored": len(restored),
            },
        )
        return len(restored)
