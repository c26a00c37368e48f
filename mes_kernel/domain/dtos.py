"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures returned by selectors, engines and
    services: process and routing snapshots, stock lot snapshots, FIFO
    consumption results, BOM requirements, deduction results, availability
    reports and routing validation results.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from selectors and services (never from engines).

Invariants enforced:
    - Quantities are Decimal, never float.
    - available_qty is always derived (quantity - used_qty); it is never
      stored, so it cannot drift from its inputs.
    - Validation results carry an enumerable ValidationErrorKind next to the
      display text.

Data flow:
    MaterialRequirement + MaterialInput -> DeductionItem -> DeductionResult
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from mes_kernel.models.carry_over import CarryOverModel
    from mes_kernel.models.material import MaterialModel
    from mes_kernel.models.process import ProcessModel
    from mes_kernel.models.routing import RoutingEntryModel
    from mes_kernel.models.stock import StockLotModel


# =============================================================================
# Process catalog and routing
# =============================================================================


@dataclass(frozen=True)
class ProcessInfo:
    """
    Immutable snapshot of a process definition.

    Guarantees:
        - code and short_code are already normalized (uppercase).
    """

    id: UUID
    code: str
    name: str
    seq: int
    has_material_input: bool
    is_inspection: bool
    is_active: bool
    short_code: str | None = None
    description: str | None = None

    @classmethod
    def from_model(cls, model: ProcessModel) -> ProcessInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            seq=model.seq,
            has_material_input=model.has_material_input,
            is_inspection=model.is_inspection,
            is_active=model.is_active,
            short_code=model.short_code,
            description=model.description,
        )


@dataclass(frozen=True)
class RoutingStep:
    """
    One entry of a product's routing, joined with its process definition.

    Contract:
        Routing order is determined by seq only.  Selectors always return
        RoutingStep tuples sorted by seq ascending.
    """

    id: UUID
    product_id: UUID
    process_code: str
    seq: int
    is_required: bool
    process_name: str | None = None
    has_material_input: bool = False
    is_inspection: bool = False

    @classmethod
    def from_model(cls, model: RoutingEntryModel) -> RoutingStep:
        process = model.process
        return cls(
            id=model.id,
            product_id=model.product_id,
            process_code=model.process_code,
            seq=model.seq,
            is_required=model.is_required,
            process_name=process.name if process is not None else None,
            has_material_input=process.has_material_input if process is not None else False,
            is_inspection=process.is_inspection if process is not None else False,
        )


@dataclass(frozen=True)
class SeedResult:
    """Outcome of seeding the process catalog from configuration."""

    created: int
    skipped: int


class ValidationErrorKind(str, Enum):
    """
    Enumerable reason a routing validation failed.

    Routing-level kinds are checked in declaration order by the routing
    validator; the first failing check wins.
    """

    # validate_routing
    EMPTY_ROUTING = "empty_routing"
    DUPLICATE_SEQUENCE = "duplicate_sequence"
    DUPLICATE_PROCESS = "duplicate_process"
    MISSING_START_PROCESS = "missing_start_process"
    END_NOT_INSPECTION = "end_not_inspection"
    # validate_order
    SAME_PROCESS = "same_process"
    NOT_IN_ROUTING = "not_in_routing"
    BACKWARD_ORDER = "backward_order"
    # validate_process_codes
    EMPTY_CODES = "empty_codes"
    INVALID_PROCESS_CODE = "invalid_process_code"
    DUPLICATE_CODE = "duplicate_code"


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of a routing validation.

    Contract:
        valid is True only when error and kind are both None.

    Guarantees:
        - bool(result) == result.valid for convenience.

    Non-goals:
        - Does NOT raise; validators return this object so a screen can show
          every problem without exception handling.
    """

    valid: bool
    error: str | None = None
    kind: ValidationErrorKind | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, kind: ValidationErrorKind, error: str) -> ValidationResult:
        return cls(valid=False, error=error, kind=kind)

    def __bool__(self) -> bool:
        return self.valid


# =============================================================================
# Materials and stock
# =============================================================================


@dataclass(frozen=True)
class MaterialInfo:
    """Immutable snapshot of a material master row."""

    id: UUID
    code: str
    name: str
    unit: str
    safe_stock: Decimal
    is_active: bool

    @classmethod
    def from_model(cls, model: MaterialModel) -> MaterialInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            unit=model.unit,
            safe_stock=model.safe_stock,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class StockLotInfo:
    """
    Immutable snapshot of a stock lot.

    Guarantees:
        - available_qty == quantity - used_qty, and may be negative.
    """

    id: UUID
    material_id: UUID
    lot_number: str
    quantity: Decimal
    used_qty: Decimal
    received_at: datetime
    location: str | None = None

    @property
    def available_qty(self) -> Decimal:
        return self.quantity - self.used_qty

    @property
    def is_negative(self) -> bool:
        return self.available_qty < 0

    @classmethod
    def from_model(cls, model: StockLotModel) -> StockLotInfo:
        return cls(
            id=model.id,
            material_id=model.material_id,
            lot_number=model.lot_number,
            quantity=model.quantity,
            used_qty=model.used_qty,
            received_at=model.received_at,
            location=model.location,
        )


@dataclass(frozen=True)
class LotUsage:
    """Quantity taken from one stock lot during a consumption."""

    lot_number: str
    used_qty: Decimal


@dataclass(frozen=True)
class FifoConsumption:
    """
    Result of a FIFO consumption against one material.

    Contract:
        lots lists every lot touched, in consumption order.  The last lot
        may include the forced-negative remainder.

    Guarantees:
        - deducted_qty == sum(lot.used_qty for lot in lots)
        - deducted_qty + remaining_qty == requested quantity
        - forced_negative_qty <= deducted_qty
    """

    lots: tuple[LotUsage, ...]
    deducted_qty: Decimal
    remaining_qty: Decimal
    forced_negative_qty: Decimal = Decimal("0")

    @property
    def allowed_negative(self) -> bool:
        return self.forced_negative_qty > 0


class StockStatus(str, Enum):
    """Stock health classification used by summaries."""

    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"
    EXHAUSTED = "exhausted"

    @classmethod
    def classify(
        cls,
        available: Decimal,
        safe_stock: Decimal,
        danger_ratio: Decimal,
    ) -> StockStatus:
        """
        exhausted when available <= 0, danger below danger_ratio * safe_stock,
        warning below safe_stock, otherwise good.
        """
        if available <= 0:
            return cls.EXHAUSTED
        if available < safe_stock * danger_ratio:
            return cls.DANGER
        if available < safe_stock:
            return cls.WARNING
        return cls.GOOD


@dataclass(frozen=True)
class StockSummary:
    """Per-material aggregation across all lots."""

    material_id: UUID
    material_code: str
    material_name: str
    total_quantity: Decimal
    total_used: Decimal
    available_qty: Decimal
    lot_count: int
    safe_stock: Decimal
    status: StockStatus


@dataclass(frozen=True)
class LocationStock:
    """Available quantity of one material at one location."""

    location: str
    material_id: UUID
    available_qty: Decimal
    lot_count: int


@dataclass(frozen=True)
class ReceiveRequest:
    """One line of a batch receipt."""

    material_id: UUID
    lot_number: str
    quantity: Decimal
    location: str | None = None


@dataclass(frozen=True)
class ReceiveOutcome:
    """Per-line outcome of a receipt.  material_id is None when a scan named no known material."""

    material_id: UUID | None
    lot_number: str
    success: bool
    lot: StockLotInfo | None = None
    error: str | None = None


@dataclass(frozen=True)
class ReceiveBatchResult:
    """Outcome of receive_batch: failures are reported, not raised."""

    outcomes: tuple[ReceiveOutcome, ...]

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)


@dataclass(frozen=True)
class LotReconciliation:
    """
    Comparison of a lot's used_qty with the consumption rows recorded for it.

    consistent is True when the recorded consumption accounts for the whole
    used_qty.  Consumption taken without a production lot leaves no rows, so
    such lots show a positive unrecorded_qty.
    """

    material_id: UUID
    lot_number: str
    quantity: Decimal
    used_qty: Decimal
    recorded_qty: Decimal
    record_count: int

    @property
    def unrecorded_qty(self) -> Decimal:
        return self.used_qty - self.recorded_qty

    @property
    def consistent(self) -> bool:
        return self.unrecorded_qty == 0


# =============================================================================
# BOM deduction
# =============================================================================


@dataclass(frozen=True)
class MaterialRequirement:
    """
    One material needed for a (product, process, quantity) production run.

    required_qty is already scaled by the production quantity.
    """

    material_id: UUID
    material_code: str
    material_name: str
    required_qty: Decimal


@dataclass(frozen=True)
class MaterialInput:
    """
    Caller-supplied lot hint, typically from a scanned barcode.

    quantity None (or a non-positive value) means "as much as the lot holds,
    up to what is needed".
    """

    material_id: UUID
    lot_number: str | None
    quantity: Decimal | None = None


@dataclass(frozen=True)
class DeductionItem:
    """
    Per-material outcome of a BOM deduction.

    Guarantees:
        - success == (remaining_qty == 0)
        - deducted_qty + remaining_qty == required_qty

    Non-goals:
        - allowed_negative is a diagnostic flag.  It reports that this call
          pushed at least one lot below zero; it is not a reconciliation of
          the ledger's final sign.
    """

    material_id: UUID
    material_code: str
    material_name: str
    required_qty: Decimal
    deducted_qty: Decimal
    remaining_qty: Decimal
    lots: tuple[LotUsage, ...] = ()
    allowed_negative: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.remaining_qty == 0


@dataclass(frozen=True)
class DeductionResult:
    """
    Aggregate outcome of deduct_by_bom.

    Contract:
        success is True when every item succeeded or negative stock was
        allowed.  errors is populated only when negative stock is disallowed.
    """

    success: bool
    items: tuple[DeductionItem, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def total_deducted(self) -> Decimal:
        return sum((i.deducted_qty for i in self.items), Decimal("0"))

    @property
    def any_negative(self) -> bool:
        return any(i.allowed_negative for i in self.items)


@dataclass(frozen=True)
class AvailabilityItem:
    """Dry-run shortage for one material: max(0, required - available)."""

    material_id: UUID
    material_code: str
    material_name: str
    required_qty: Decimal
    available_qty: Decimal

    @property
    def shortage(self) -> Decimal:
        return max(Decimal("0"), self.required_qty - self.available_qty)


@dataclass(frozen=True)
class AvailabilityReport:
    """Result of check_bom_availability.  available is True when no item is short."""

    items: tuple[AvailabilityItem, ...] = ()

    @property
    def available(self) -> bool:
        return all(i.shortage == 0 for i in self.items)

    @property
    def shortages(self) -> tuple[AvailabilityItem, ...]:
        return tuple(i for i in self.items if i.shortage > 0)


# =============================================================================
# Carry-over
# =============================================================================


@dataclass(frozen=True)
class CarryOverInfo:
    """Immutable snapshot of a carry-over quantity."""

    id: UUID
    product_id: UUID
    process_code: str
    line_code: str | None
    source_lot_number: str | None
    quantity: Decimal
    used_qty: Decimal
    carried_at: datetime

    @property
    def available_qty(self) -> Decimal:
        return self.quantity - self.used_qty

    @classmethod
    def from_model(cls, model: CarryOverModel) -> CarryOverInfo:
        return cls(
            id=model.id,
            product_id=model.product_id,
            process_code=model.process_code,
            line_code=model.line_code,
            source_lot_number=model.source_lot_number,
            quantity=model.quantity,
            used_qty=model.used_qty,
            carried_at=model.carried_at,
        )


@dataclass(frozen=True)
class CarryOverSummary:
    """Totals across a set of carry-overs."""

    count: int
    total_quantity: Decimal = Decimal("0")
    total_used: Decimal = Decimal("0")
    available_count: int = 0

    @property
    def total_available(self) -> Decimal:
        return self.total_quantity - self.total_used


@dataclass(frozen=True)
class CarryOverUsage:
    """Quantity taken from one carry-over during consume_fifo."""

    carry_over_id: UUID
    used_qty: Decimal


@dataclass(frozen=True)
class ScanResolution:
    """
    Result of turning scanned barcodes into lot hints.

    unresolved keeps every scan that was invalid or named an unknown
    material; it never raises.
    """

    inputs: tuple[MaterialInput, ...] = ()
    unresolved: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConsumptionInfo:
    """A recorded (production lot -> stock lot) consumption row."""

    id: UUID
    production_lot_id: UUID
    material_id: UUID
    lot_number: str
    quantity: Decimal
