"""
Module: mes_engines.fifo
Responsibility:
    Plan how a requested quantity of one material is taken from its stock
    lots: oldest-received lot first, with an optional forced-negative
    remainder when stock runs out.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import mes_kernel.domain and logging.

Invariants enforced:
    - Conservation: sum(allocation quantities) + shortfall == requested.
    - Ordering: lots are consumed strictly in the order supplied (callers
      pass them sorted by received_at, lot_number).
    - Only lots with positive availability absorb real consumption.
    - Forced-negative tie-break: when negative stock is allowed, the whole
      unfulfilled remainder lands on the LAST lot in the scan, which is the
      most recently received one.

Failure modes:
    - ValueError on a non-positive requested quantity.
    - A plan with shortfall > 0 when negative stock is disallowed (or when
      the material has no lots at all).  The engine never raises for
      shortage; the ledger decides what to do with an infeasible plan.

Usage:
    from mes_engines.fifo import FifoEngine, LotBalance

    plan = FifoEngine().plan(
        lots=[LotBalance("L1", Decimal("5")), LotBalance("L2", Decimal("3"))],
        quantity=Decimal("6"),
        allow_negative=False,
    )
    plan.usages  # (LotUsage("L1", 5), LotUsage("L2", 1))
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from mes_engines.tracer import traced_engine
from mes_kernel.domain.dtos import LotUsage
from mes_kernel.logging_config import get_logger

logger = get_logger("engines.fifo")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LotBalance:
    """A lot's identity and current available quantity (may be negative)."""

    lot_number: str
    available_qty: Decimal


@dataclass(frozen=True)
class FifoAllocation:
    """
    Quantity planned against one lot.

    Guarantees:
        - 0 <= forced_qty <= quantity
    """

    lot_number: str
    quantity: Decimal
    forced_qty: Decimal = _ZERO


@dataclass(frozen=True)
class FifoPlan:
    """
    Complete consumption plan for one material.

    Guarantees:
        - planned_qty + shortfall == requested
        - forced_qty > 0 only when negative stock was allowed
    """

    requested: Decimal
    allocations: tuple[FifoAllocation, ...]
    shortfall: Decimal
    total_available: Decimal

    @property
    def planned_qty(self) -> Decimal:
        return sum((a.quantity for a in self.allocations), _ZERO)

    @property
    def forced_qty(self) -> Decimal:
        return sum((a.forced_qty for a in self.allocations), _ZERO)

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0

    @property
    def usages(self) -> tuple[LotUsage, ...]:
        return tuple(LotUsage(a.lot_number, a.quantity) for a in self.allocations)


class FifoEngine:
    """
    Oldest-first lot consumption planner.

    Contract:
        Pure function of (lots, quantity, allow_negative).  No I/O, no
        clock, no database access.

    Non-goals:
        - Does not sort lots.  Receipt order is a storage concern.
        - Does not spread a negative remainder across lots.
    """

    @traced_engine("fifo", "1.0", fingerprint_fields=("lots", "quantity", "allow_negative"))
    def plan(
        self,
        *,
        lots: Sequence[LotBalance],
        quantity: Decimal,
        allow_negative: bool,
    ) -> FifoPlan:
        if quantity <= 0:
            raise ValueError(f"FIFO quantity must be positive, got {quantity}")

        total_available = sum(
            (lot.available_qty for lot in lots if lot.available_qty > 0), _ZERO
        )

        planned: dict[str, Decimal] = {}
        order: list[str] = []
        remaining = quantity

        for lot in lots:
            if remaining <= 0:
                break
            if lot.available_qty <= 0:
                continue
            take = min(lot.available_qty, remaining)
            planned[lot.lot_number] = take
            order.append(lot.lot_number)
            remaining -= take

        forced_lot: str | None = None
        forced = _ZERO
        if remaining > 0 and allow_negative and lots:
            forced_lot = lots[-1].lot_number
            forced = remaining
            if forced_lot not in planned:
                planned[forced_lot] = _ZERO
                order.append(forced_lot)
            planned[forced_lot] += forced
            remaining = _ZERO
            logger.info(
                "fifo_negative_forced",
                extra={
                    "lot_number": forced_lot,
                    "forced_qty": str(forced),
                    "requested": str(quantity),
                },
            )

        allocations = tuple(
            FifoAllocation(
                lot_number=lot_number,
                quantity=planned[lot_number],
                forced_qty=forced if lot_number == forced_lot else _ZERO,
            )
            for lot_number in order
        )

        return FifoPlan(
            requested=quantity,
            allocations=allocations,
            shortfall=remaining,
            total_available=total_available,
        )
