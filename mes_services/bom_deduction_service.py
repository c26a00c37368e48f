"""
mes_services.bom_deduction_service -- BOM-driven material deduction.

Responsibility:
    Turn a production run (product, process, quantity) into stock
    consumption: resolve the BOM requirements, take scanned lots first,
    fall through to FIFO for the remainder, and report per-material
    outcomes.  Also reverses a production lot's deductions and offers a
    non-mutating availability check.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes a BomResolver (BomSelector by default), StockLedger (FIFO and
    single-lot consumption), the pure hint planner from
    mes_engines.requirements, and ProcessSelector (process capability).

Invariants enforced:
    - Lot hints are applied before FIFO, in scan order, never taking more
      than the material still needs.
    - success is True when every item succeeded or negative stock is
      allowed; errors are collected only when negative stock is disallowed.
    - A shortfall on one material does NOT undo deductions already made
      for other materials in the same call.  Callers needing cross-material
      atomicity roll back the production lot (or the transaction).
    - Rollback decrements each touched lot by exactly the recorded amounts
      and deletes the bridge rows, so a second rollback restores nothing.

Failure modes:
    - InvalidProcessCodeError when the process is unknown or inactive.
    - InvalidQuantityError for a non-positive production quantity.
    - Resolver and storage errors propagate unchanged.  Stock shortage is
      never raised from deduct_by_bom(); it is reported per item.

Usage:
    deduction = BomDeductionService(session, config=get_active_config())
    result = deduction.deduct_by_bom(
        product_id, "CA", Decimal("100"), actor_id,
        production_lot_id=lot_id,
        inputs=[MaterialInput(wire_id, "W-2024-001")],
    )
    if not result.success:
        deduction.rollback_bom_deduction(lot_id, actor_id)
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from mes_config import MesConfig
from mes_engines.requirements import group_inputs_by_material, plan_hint_use
from mes_kernel.db.types import to_quantity
from mes_kernel.domain.clock import Clock
from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import (
    AvailabilityItem,
    AvailabilityReport,
    DeductionItem,
    DeductionResult,
    LotUsage,
    MaterialInput,
    MaterialRequirement,
)
from mes_kernel.exceptions import (
    InsufficientStockError,
    InvalidProcessCodeError,
    InvalidQuantityError,
)
from mes_kernel.logging_config import LogContext, get_logger
from mes_kernel.selectors.bom_selector import BomSelector
from mes_kernel.selectors.process_selector import ProcessSelector
from mes_services.stock_ledger import StockLedger

logger = get_logger("services.bom_deduction")


class BomResolver(Protocol):
    """Anything that can scale a product's BOM for one process run."""

    def calculate_required_materials(
        self,
        product_id: UUID,
        process_code: str,
        qty: Decimal,
    ) -> list[MaterialRequirement]: ...


class BomDeductionService:
    """
    Deducts BOM materials from the stock ledger.

    Contract:
        Receives Session, optional MesConfig, BomResolver and Clock via
        constructor injection.  Flushes only; the caller commits.
    Guarantees:
        - Every consumption made with a production_lot_id is recorded in a
          bridge row and therefore reversible by rollback_bom_deduction().
        - check_bom_availability() never mutates the ledger.
    Non-goals:
        - Does not create or close production lots.
        - Does not roll back other materials when one material falls short.
    """

    def __init__(
        self,
        session: Session,
        config: MesConfig | None = None,
        resolver: BomResolver | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.ledger = StockLedger(session, config=config, clock=clock)
        self.processes = ProcessSelector(session)
        self.resolver: BomResolver = resolver or BomSelector(session)

    def _requirements(
        self,
        product_id: UUID,
        process_code: str,
        production_qty: Decimal | int | str,
    ) -> tuple[str, list[MaterialRequirement] | None]:
        qty = to_quantity(production_qty, field="production_qty")
        if qty <= 0:
            raise InvalidQuantityError(str(qty), field="production_qty")

        code = normalize_process_code(process_code)
        process = self.processes.get(code)
        if process is None or not process.is_active:
            raise InvalidProcessCodeError(code)
        if not process.has_material_input:
            return code, None
        return code, self.resolver.calculate_required_materials(product_id, code, qty)

    # =========================================================================
    # Deduction
    # =========================================================================

    def deduct_by_bom(
        self,
        product_id: UUID,
        process_code: str,
        production_qty: Decimal | int | str,
        actor_id: UUID,
        production_lot_id: UUID | None = None,
        inputs: Sequence[MaterialInput] = (),
        allow_negative: bool | None = None,
    ) -> DeductionResult:
        """
        Deduct the materials one production run consumes.

        Args:
            product_id: Product being made.
            process_code: Process being run (normalized).
            production_qty: Units produced; BOM quantities are scaled by it.
            actor_id: Who is deducting.
            production_lot_id: When given, every consumption is recorded so
                the run can be rolled back.
            inputs: Scanned lot hints, consumed before FIFO.
            allow_negative: Overrides the configured default.

        Returns:
            DeductionResult with one DeductionItem per required material.
        """
        if allow_negative is None:
            allow_negative = self.ledger.allow_negative_default

        code, requirements = self._requirements(product_id, process_code, production_qty)
        if requirements is None:
            logger.info(
                "bom_deduction_skipped",
                extra={"process_code": code, "reason": "no_material_input"},
            )
            return DeductionResult(success=True)
        if not requirements:
            return DeductionResult(success=True)

        hints = group_inputs_by_material(inputs)
        items: list[DeductionItem] = []
        errors: list[str] = []

        with LogContext.bind(
            product_id=str(product_id),
            production_lot_id=str(production_lot_id) if production_lot_id else None,
        ):
            for requirement in requirements:
                item = self._deduct_material(
                    requirement,
                    hints.get(requirement.material_id, []),
                    actor_id,
                    production_lot_id,
                    allow_negative,
                )
                items.append(item)
                if not item.success and not allow_negative:
                    errors.append(f"{item.material_code}: {item.error or 'deduction failed'}")

            result = DeductionResult(
                success=allow_negative or all(i.success for i in items),
                items=tuple(items),
                errors=tuple(errors),
            )
            logger.info(
                "bom_deduction_completed",
                extra={
                    "process_code": code,
                    "production_qty": str(production_qty),
                    "success": result.success,
                    "item_count": len(items),
                    "total_deducted": str(result.total_deducted),
                    "any_negative": result.any_negative,
                    "allow_negative": allow_negative,
                },
            )
        return result

    def _deduct_material(
        self,
        requirement: MaterialRequirement,
        hints: Sequence[MaterialInput],
        actor_id: UUID,
        production_lot_id: UUID | None,
        allow_negative: bool,
    ) -> DeductionItem:
        material_id = requirement.material_id
        remaining = requirement.required_qty
        lots: list[LotUsage] = []
        pushed_negative = False
        error: str | None = None

        for hint in hints:
            if remaining <= 0:
                break
            if not hint.lot_number:
                continue
            lot = self.ledger.lot_by_number(material_id, hint.lot_number)
            if lot is None:
                logger.warning(
                    "deduction_hint_lot_missing",
                    extra={"material_id": str(material_id), "lot_number": hint.lot_number},
                )
                continue

            decision = plan_hint_use(
                hint_qty=hint.quantity,
                available=lot.available_qty,
                remaining=remaining,
                allow_negative=allow_negative,
            )
            if decision.blocked:
                error = (
                    f"Insufficient stock in lot {lot.lot_number} "
                    f"(available {lot.available_qty}, needed {decision.quantity})"
                )
                continue
            if decision.quantity <= 0:
                continue

            usage = self.ledger.consume_lot(
                material_id,
                lot.lot_number,
                decision.quantity,
                actor_id,
                production_lot_id=production_lot_id,
                allow_negative=True,
            )
            lots.append(usage)
            remaining -= usage.used_qty
            pushed_negative = pushed_negative or decision.pushes_negative

        if remaining > 0:
            try:
                fifo = self.ledger.consume_fifo(
                    material_id,
                    remaining,
                    actor_id,
                    production_lot_id=production_lot_id,
                    allow_negative=allow_negative,
                )
            except InsufficientStockError as exc:
                error = f"{error}; {exc}" if error else str(exc)
            else:
                lots.extend(fifo.lots)
                remaining = fifo.remaining_qty
                pushed_negative = pushed_negative or fifo.allowed_negative

        deducted = requirement.required_qty - remaining
        if remaining == 0:
            error = None
        return DeductionItem(
            material_id=material_id,
            material_code=requirement.material_code,
            material_name=requirement.material_name,
            required_qty=requirement.required_qty,
            deducted_qty=deducted,
            remaining_qty=remaining,
            lots=tuple(lots),
            allowed_negative=pushed_negative,
            error=error,
        )

    # =========================================================================
    # Rollback
    # =========================================================================

    def rollback_bom_deduction(self, production_lot_id: UUID, actor_id: UUID) -> int:
        """
        Restore every lot a production lot consumed from.

        Returns:
            Number of distinct stock lots restored; 0 when nothing was
            recorded (or it was already rolled back).
        """
        restored = self.ledger.rollback_production_lot(production_lot_id, actor_id)
        logger.info(
            "bom_deduction_rolled_back",
            extra={"production_lot_id": str(production_lot_id), "lots_restored": restored},
        )
        return restored

    # =========================================================================
    # Dry run
    # =========================================================================

    def check_bom_availability(
        self,
        product_id: UUID,
        process_code: str,
        production_qty: Decimal | int | str,
    ) -> AvailabilityReport:
        """Shortage per material for a run, without touching the ledger."""
        _, requirements = self._requirements(product_id, process_code, production_qty)
        if not requirements:
            return AvailabilityReport()
        return AvailabilityReport(
            items=tuple(
                AvailabilityItem(
                    material_id=r.material_id,
                    material_code=r.material_code,
                    material_name=r.material_name,
                    required_qty=r.required_qty,
                    available_qty=self.ledger.available_qty(r.material_id),
                )
                for r in requirements
            )
        )
