"""Read-only selectors returning domain DTOs."""

from mes_kernel.selectors.bom_selector import BomSelector
from mes_kernel.selectors.carry_over_selector import CarryOverSelector
from mes_kernel.selectors.material_selector import MaterialSelector
from mes_kernel.selectors.process_selector import ProcessSelector
from mes_kernel.selectors.routing_navigator import RoutingNavigator
from mes_kernel.selectors.routing_selector import RoutingSelector
from mes_kernel.selectors.stock_selector import StockSelector

__all__ = [
    "BomSelector",
    "CarryOverSelector",
    "MaterialSelector",
    "ProcessSelector",
    "RoutingNavigator",
    "RoutingSelector",
    "StockSelector",
]
