"""ORM models for the MES kernel."""

from mes_kernel.models.bom import BomItemModel
from mes_kernel.models.carry_over import CarryOverModel
from mes_kernel.models.material import MaterialModel
from mes_kernel.models.process import ProcessModel
from mes_kernel.models.routing import RoutingEntryModel
from mes_kernel.models.stock import LotMaterialConsumptionModel, StockLotModel

__all__ = [
    "BomItemModel",
    "CarryOverModel",
    "LotMaterialConsumptionModel",
    "MaterialModel",
    "ProcessModel",
    "RoutingEntryModel",
    "StockLotModel",
]
