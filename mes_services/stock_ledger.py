"""
mes_services.stock_ledger -- Lot-tracked stock ledger with FIFO consumption.

Responsibility:
    The public face of stock: receiving, FIFO consumption with the
    negative-stock tolerance policy, single-lot consumption, availability
    and stock reports classified with the configured danger ratio.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes FifoEngine (pure allocation plan), StockService (lot
    mutations and consumption bridge rows) and StockSelector (reads).

Invariants enforced:
    - FIFO: lots are scanned by received_at ascending, lot_number ascending;
      only lots with positive availability absorb real consumption.
    - All-or-nothing: with allow_negative=False an infeasible request
      raises InsufficientStockError before any lot is touched.
    - Negative tolerance: with allow_negative=True the unfulfilled
      remainder is forced onto the most recently received lot, pushing its
      availability below zero.
    - Every consumed quantity, real or forced, gets a bridge row when a
      production lot id is supplied.

Failure modes:
    - InvalidQuantityError for a non-positive quantity.
    - InsufficientStockError when stock is short and negative stock is
      disallowed, or when the material has no lots at all.

Usage:
    ledger = StockLedger(session, config=get_active_config())
    ledger.receive(material_id, "L-001", Decimal("5"), actor_id)
    result = ledger.consume_fifo(material_id, Decimal("6"), actor_id)
    result.lots  # (LotUsage("L-001", 5), ...)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from mes_config import MesConfig
from mes_engines.fifo import FifoEngine, LotBalance
from mes_kernel.db.types import to_quantity
from mes_kernel.domain.clock import Clock
from mes_kernel.domain.dtos import (
    FifoConsumption,
    LocationStock,
    LotReconciliation,
    LotUsage,
    ReceiveBatchResult,
    ReceiveRequest,
    StockLotInfo,
    StockSummary,
)
from mes_kernel.exceptions import InsufficientStockError, InvalidQuantityError
from mes_kernel.logging_config import get_logger
from mes_kernel.selectors.stock_selector import DEFAULT_DANGER_RATIO, StockSelector
from mes_kernel.services.stock_service import StockService

logger = get_logger("services.stock_ledger")


class StockLedger:
    """
    Stock ledger facade.

    Contract:
        Receives Session, optional MesConfig and optional Clock via
        constructor injection.  Flushes only; the caller commits.
    Guarantees:
        - consume_fifo() returns a FifoConsumption whose lots list every lot
          touched in consumption order.
        - available_qty() may be negative.
    Non-goals:
        - Does not serialize concurrent consumers beyond the row locks the
          database grants.
    """

    def __init__(
        self,
        session: Session,
        config: MesConfig | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.config = config
        self.stock = StockService(session, clock=clock)
        self.selector = StockSelector(session)
        self.fifo = FifoEngine()

    @property
    def allow_negative_default(self) -> bool:
        if self.config is None:
            return True
        return self.config.stock.allow_negative_default

    @property
    def danger_ratio(self) -> Decimal:
        if self.config is None:
            return DEFAULT_DANGER_RATIO
        return self.config.stock.danger_ratio

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
        return self.stock.receive(
            material_id,
            lot_number,
            quantity,
            actor_id,
            location=location,
            received_at=received_at,
        )

    def receive_batch(
        self,
        requests: Iterable[ReceiveRequest],
        actor_id: UUID,
    ) -> ReceiveBatchResult:
        return self.stock.receive_batch(requests, actor_id)

    # =========================================================================
    # Consumption
    # =========================================================================

    def consume_fifo(
        self,
        material_id: UUID,
        quantity: Decimal | int | str,
        actor_id: UUID,
        production_lot_id: UUID | None = None,
        allow_negative: bool | None = None,
    ) -> FifoConsumption:
        """
        Consume quantity from the material's lots, oldest first.

        Args:
            material_id: Material to consume.
            quantity: Positive quantity.
            actor_id: Who is consuming.
            production_lot_id: When given, one bridge row is written per
                lot touched so the consumption can be rolled back.
            allow_negative: Overrides the configured default.

        Raises:
            InsufficientStockError: If the plan cannot be fulfilled and
                negative stock is disallowed (or the material has no lots).
                No lot is mutated.
        """
        qty = to_quantity(quantity)
        if qty <= 0:
            raise InvalidQuantityError(str(qty))
        if allow_negative is None:
            allow_negative = self.allow_negative_default

        lots = self.stock.lots_for_update(material_id)
        plan = self.fifo.plan(
            lots=[LotBalance(lot.lot_number, lot.available_qty) for lot in lots],
            quantity=qty,
            allow_negative=allow_negative,
        )
        if not plan.is_complete:
            logger.warning(
                "fifo_insufficient_stock",
                extra={
                    "material_id": str(material_id),
                    "requested": str(qty),
                    "available": str(plan.total_available),
                    "allow_negative": allow_negative,
                },
            )
            raise InsufficientStockError(
                str(material_id), str(qty), str(plan.total_available)
            )

        by_number = {lot.lot_number: lot for lot in lots}
        usages: list[LotUsage] = []
        for allocation in plan.allocations:
            usages.append(
                self.stock.record_consumption(
                    by_number[allocation.lot_number],
                    allocation.quantity,
                    actor_id,
                    production_lot_id=production_lot_id,
                )
            )

        result = FifoConsumption(
            lots=tuple(usages),
            deducted_qty=plan.planned_qty,
            remaining_qty=plan.shortfall,
            forced_negative_qty=plan.forced_qty,
        )
        logger.info(
            "fifo_consumed",
            extra={
                "material_id": str(material_id),
                "quantity": str(qty),
                "lots": [u.lot_number for u in usages],
                "forced_negative_qty": str(result.forced_negative_qty),
                "production_lot_id": str(production_lot_id) if production_lot_id else None,
            },
        )
        return result

    def consume_lot(
        self,
        material_id: UUID,
        lot_number: str,
        quantity: Decimal | int | str,
        actor_id: UUID,
        production_lot_id: UUID | None = None,
        allow_negative: bool | None = None,
    ) -> LotUsage:
        """Consume from one named lot under the same negative-stock policy."""
        if allow_negative is None:
            allow_negative = self.allow_negative_default
        return self.stock.consume_lot(
            material_id,
            lot_number,
            quantity,
            actor_id,
            production_lot_id=production_lot_id,
            allow_negative=allow_negative,
        )

    def rollback_production_lot(self, production_lot_id: UUID, actor_id: UUID) -> int:
        return self.stock.reverse_production_lot(production_lot_id, actor_id)

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
        return self.stock.adjust_quantity(material_id, lot_number, quantity, actor_id)

    def delete_lot(self, material_id: UUID, lot_number: str) -> None:
        self.stock.delete_lot(material_id, lot_number)

    # =========================================================================
    # Queries
    # =========================================================================

    def available_qty(self, material_id: UUID) -> Decimal:
        return self.selector.available_qty(material_id)

    def lots_for_material(self, material_id: UUID) -> list[StockLotInfo]:
        return self.selector.lots_for_material(material_id)

    def lot_by_number(self, material_id: UUID, lot_number: str) -> StockLotInfo | None:
        return self.selector.lot_by_number(material_id, lot_number)

    def available_lots(self, material_id: UUID) -> list[StockLotInfo]:
        return self.selector.available_lots(material_id)

    def lots_by_location(self, location: str) -> list[StockLotInfo]:
        return self.selector.lots_by_location(location)

    def locations(self) -> list[str]:
        return self.selector.locations()

    def stock_by_location(self, material_id: UUID) -> list[LocationStock]:
        return self.selector.stock_by_location(material_id)

    def receivings_since(self, since: datetime) -> list[StockLotInfo]:
        return self.selector.receivings_since(since)

    def stock_summary(self, material_id: UUID | None = None) -> list[StockSummary]:
        return self.selector.stock_summary(
            danger_ratio=self.danger_ratio, material_id=material_id
        )

    def low_stock(self) -> list[StockSummary]:
        return self.selector.low_stock(danger_ratio=self.danger_ratio)

    def reconcile_lot(self, material_id: UUID, lot_number: str) -> LotReconciliation | None:
        return self.selector.reconcile_lot(material_id, lot_number)
