"""
Stock ledger query selector.

Provides read-only access to stock lots, derived availability and stock
reports.

Key design decisions:
- Availability is always derived (quantity - used_qty) and may be negative.
- Sums are computed over Decimal values in Python so SQLite and PostgreSQL
  agree to the last digit.
- FIFO order is received_at ascending, lot_number ascending.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from mes_kernel.domain.codes import normalize_lot_number
from mes_kernel.domain.dtos import (
    ConsumptionInfo,
    LocationStock,
    LotReconciliation,
    StockLotInfo,
    StockStatus,
    StockSummary,
)
from mes_kernel.models.material import MaterialModel
from mes_kernel.models.stock import LotMaterialConsumptionModel, StockLotModel
from mes_kernel.selectors.base import BaseSelector

_ZERO = Decimal("0")
DEFAULT_DANGER_RATIO = Decimal("0.3")


class StockSelector(BaseSelector[StockLotModel]):
    """Queries over stock lots and consumption history."""

    def _fifo_query(self, material_id: UUID):
        return (
            select(StockLotModel)
            .where(StockLotModel.material_id == material_id)
            .order_by(StockLotModel.received_at, StockLotModel.lot_number)
        )

    # =========================================================================
    # Lot queries
    # =========================================================================

    def lots_for_material(self, material_id: UUID) -> list[StockLotInfo]:
        """All lots of a material in FIFO order."""
        lots = self.session.execute(self._fifo_query(material_id)).scalars().all()
        return [StockLotInfo.from_model(lot) for lot in lots]

    def lot_by_number(self, material_id: UUID, lot_number: str) -> StockLotInfo | None:
        lot = self.session.execute(
            select(StockLotModel).where(
                StockLotModel.material_id == material_id,
                StockLotModel.lot_number == normalize_lot_number(lot_number),
            )
        ).scalar_one_or_none()
        return StockLotInfo.from_model(lot) if lot is not None else None

    def find_lots_by_number(self, lot_number: str) -> list[StockLotInfo]:
        """Lots with this number across all materials (barcode lookups)."""
        lots = self.session.execute(
            select(StockLotModel)
            .where(StockLotModel.lot_number == normalize_lot_number(lot_number))
            .order_by(StockLotModel.received_at)
        ).scalars().all()
        return [StockLotInfo.from_model(lot) for lot in lots]

    def available_lots(self, material_id: UUID) -> list[StockLotInfo]:
        """Lots with positive availability, FIFO order."""
        return [lot for lot in self.lots_for_material(material_id) if lot.available_qty > 0]

    def available_qty(self, material_id: UUID) -> Decimal:
        """Sum of (quantity - used_qty) across every lot; may be negative."""
        return sum((lot.available_qty for lot in self.lots_for_material(material_id)), _ZERO)

    def lots_by_location(self, location: str) -> list[StockLotInfo]:
        lots = self.session.execute(
            select(StockLotModel)
            .where(StockLotModel.location == location)
            .order_by(StockLotModel.received_at, StockLotModel.lot_number)
        ).scalars().all()
        return [StockLotInfo.from_model(lot) for lot in lots]

    def locations(self) -> list[str]:
        rows = self.session.execute(
            select(StockLotModel.location)
            .where(StockLotModel.location.is_not(None))
            .distinct()
        ).scalars().all()
        return sorted(rows)

    def receivings_since(self, since: datetime) -> list[StockLotInfo]:
        lots = self.session.execute(
            select(StockLotModel)
            .where(StockLotModel.received_at >= since)
            .order_by(StockLotModel.received_at, StockLotModel.lot_number)
        ).scalars().all()
        return [StockLotInfo.from_model(lot) for lot in lots]

    # =========================================================================
    # Reports
    # =========================================================================

    def stock_by_location(self, material_id: UUID | None = None) -> list[LocationStock]:
        """Available quantity per (location, material).  Lots without a location are skipped."""
        query = select(StockLotModel).where(StockLotModel.location.is_not(None))
        if material_id is not None:
            query = query.where(StockLotModel.material_id == material_id)

        buckets: dict[tuple[str, UUID], list[StockLotModel]] = {}
        for lot in self.session.execute(query).scalars().all():
            buckets.setdefault((lot.location, lot.material_id), []).append(lot)

        return [
            LocationStock(
                location=location,
                material_id=mat_id,
                available_qty=sum((lot.available_qty for lot in lots), _ZERO),
                lot_count=len(lots),
            )
            for (location, mat_id), lots in sorted(buckets.items(), key=lambda kv: (kv[0][0], str(kv[0][1])))
        ]

    def stock_summary(
        self,
        danger_ratio: Decimal = DEFAULT_DANGER_RATIO,
        material_id: UUID | None = None,
    ) -> list[StockSummary]:
        """
        Per-material totals with a status classification.

        Materials without any lot are included as exhausted so a screen can
        show what has never been received.

        Args:
            danger_ratio: Fraction of safe stock below which status is danger.
            material_id: Optional single-material filter.
        """
        material_query = select(MaterialModel).order_by(MaterialModel.code)
        if material_id is not None:
            material_query = material_query.where(MaterialModel.id == material_id)
        materials = self.session.execute(material_query).scalars().all()

        summaries = []
        for material in materials:
            lots = self.session.execute(self._fifo_query(material.id)).scalars().all()
            total_quantity = sum((lot.quantity for lot in lots), _ZERO)
            total_used = sum((lot.used_qty for lot in lots), _ZERO)
            available = total_quantity - total_used
            summaries.append(
                StockSummary(
                    material_id=material.id,
                    material_code=material.code,
                    material_name=material.name,
                    total_quantity=total_quantity,
                    total_used=total_used,
                    available_qty=available,
                    lot_count=len(lots),
                    safe_stock=material.safe_stock,
                    status=StockStatus.classify(available, material.safe_stock, danger_ratio),
                )
            )
        return summaries

    def low_stock(self, danger_ratio: Decimal = DEFAULT_DANGER_RATIO) -> list[StockSummary]:
        """Summaries whose status is not good."""
        return [
            s for s in self.stock_summary(danger_ratio) if s.status != StockStatus.GOOD
        ]

    # =========================================================================
    # Consumption history
    # =========================================================================

    def consumptions_for_production_lot(self, production_lot_id: UUID) -> list[ConsumptionInfo]:
        rows = self.session.execute(
            select(LotMaterialConsumptionModel)
            .where(LotMaterialConsumptionModel.production_lot_id == production_lot_id)
            .order_by(LotMaterialConsumptionModel.created_at, LotMaterialConsumptionModel.lot_number)
        ).scalars().all()
        return [
            ConsumptionInfo(
                id=r.id,
                production_lot_id=r.production_lot_id,
                material_id=r.material_id,
                lot_number=r.lot_number,
                quantity=r.quantity,
            )
            for r in rows
        ]

    def reconcile_lot(self, material_id: UUID, lot_number: str) -> LotReconciliation | None:
        """
        Compare a lot's used_qty with its recorded consumption rows.

        Returns:
            LotReconciliation, or None when the lot does not exist.
        """
        lot = self.lot_by_number(material_id, lot_number)
        if lot is None:
            return None
        rows = self.session.execute(
            select(LotMaterialConsumptionModel.quantity).where(
                LotMaterialConsumptionModel.material_id == material_id,
                LotMaterialConsumptionModel.lot_number == lot.lot_number,
            )
        ).scalars().all()
        return LotReconciliation(
            material_id=material_id,
            lot_number=lot.lot_number,
            quantity=lot.quantity,
            used_qty=lot.used_qty,
            recorded_qty=sum(rows, _ZERO),
            record_count=len(rows),
        )
