"""
Kernel services: write operations that flush within the caller's
transaction.
"""

from mes_kernel.services.base import BaseService
from mes_kernel.services.bom_service import BomService
from mes_kernel.services.carry_over_service import CarryOverService
from mes_kernel.services.material_service import MaterialService
from mes_kernel.services.process_service import ProcessDefinition, ProcessService
from mes_kernel.services.routing_service import DEFAULT_SEQ_STEP, RoutingService
from mes_kernel.services.stock_service import StockService

__all__ = [
    "BaseService",
    "BomService",
    "CarryOverService",
    "DEFAULT_SEQ_STEP",
    "MaterialService",
    "ProcessDefinition",
    "ProcessService",
    "RoutingService",
    "StockService",
]
