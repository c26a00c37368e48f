"""
mes_services -- orchestration over config, engines and the kernel.

Architecture position:
    Services -- the only layer that may import mes_config, mes_engines and
    mes_kernel together.  Everything here flushes within the caller's
    transaction; callers own commit/rollback through session_scope().
"""

from mes_services.barcode_inputs import (
    BarcodeDecoder,
    BarcodeInputService,
    HqBarcodeDecoder,
    MaterialScan,
)
from mes_services.bom_deduction_service import BomDeductionService, BomResolver
from mes_services.catalog import seed_process_catalog
from mes_services.routing_patterns import RoutingPatternService
from mes_services.routing_validator import RoutingValidator
from mes_services.stock_ledger import StockLedger

__all__ = [
    "BarcodeDecoder",
    "BarcodeInputService",
    "BomDeductionService",
    "BomResolver",
    "HqBarcodeDecoder",
    "MaterialScan",
    "RoutingPatternService",
    "RoutingValidator",
    "StockLedger",
    "seed_process_catalog",
]
