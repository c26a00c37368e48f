"""
Pure domain layer.

DTOs, code normalization and the clock abstraction.  No dependencies on
the ORM, the database or I/O (SystemClock excepted).
"""

from mes_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from mes_kernel.domain.codes import (
    normalize_lot_number,
    normalize_process_code,
    normalize_process_codes,
    normalize_short_code,
)
from mes_kernel.domain.dtos import (
    AvailabilityItem,
    AvailabilityReport,
    CarryOverInfo,
    CarryOverSummary,
    CarryOverUsage,
    ConsumptionInfo,
    DeductionItem,
    DeductionResult,
    FifoConsumption,
    LocationStock,
    LotReconciliation,
    LotUsage,
    MaterialInfo,
    MaterialInput,
    MaterialRequirement,
    ProcessInfo,
    ReceiveBatchResult,
    ReceiveOutcome,
    ReceiveRequest,
    RoutingStep,
    ScanResolution,
    SeedResult,
    StockLotInfo,
    StockStatus,
    StockSummary,
    ValidationErrorKind,
    ValidationResult,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "normalize_lot_number",
    "normalize_process_code",
    "normalize_process_codes",
    "normalize_short_code",
    "AvailabilityItem",
    "AvailabilityReport",
    "CarryOverInfo",
    "CarryOverSummary",
    "CarryOverUsage",
    "ConsumptionInfo",
    "DeductionItem",
    "DeductionResult",
    "FifoConsumption",
    "LocationStock",
    "LotReconciliation",
    "LotUsage",
    "MaterialInfo",
    "MaterialInput",
    "MaterialRequirement",
    "ProcessInfo",
    "ReceiveBatchResult",
    "ReceiveOutcome",
    "ReceiveRequest",
    "RoutingStep",
    "ScanResolution",
    "SeedResult",
    "StockLotInfo",
    "StockStatus",
    "StockSummary",
    "ValidationErrorKind",
    "ValidationResult",
]
