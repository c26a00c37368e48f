"""
BOM query selector.

The database-backed BOM resolver: per-unit requirements and requirements
scaled by a production quantity.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import MaterialRequirement
from mes_kernel.models.bom import BomItemModel
from mes_kernel.selectors.base import BaseSelector


class BomSelector(BaseSelector[BomItemModel]):
    """
    Reads BOM lines.

    Satisfies the BomResolver protocol used by the deduction service.
    Lines with no process code are listed by requirements() but never
    returned for a specific process.
    """

    def requirements(
        self,
        product_id: UUID,
        process_code: str | None = None,
    ) -> list[MaterialRequirement]:
        """Per-unit requirements, optionally for one process."""
        query = select(BomItemModel).where(BomItemModel.product_id == product_id)
        if process_code is not None:
            query = query.where(
                BomItemModel.process_code == normalize_process_code(process_code)
            )
        items = self.session.execute(query).scalars().all()
        items = sorted(items, key=lambda i: (i.process_code or "", i.material.code))
        return [
            MaterialRequirement(
                material_id=item.material_id,
                material_code=item.material.code,
                material_name=item.material.name,
                required_qty=item.quantity_per_unit,
            )
            for item in items
        ]

    def calculate_required_materials(
        self,
        product_id: UUID,
        process_code: str,
        qty: Decimal,
    ) -> list[MaterialRequirement]:
        """Requirements for one process scaled by the production quantity."""
        return [
            MaterialRequirement(
                material_id=r.material_id,
                material_code=r.material_code,
                material_name=r.material_name,
                required_qty=r.required_qty * qty,
            )
            for r in self.requirements(product_id, process_code)
        ]

    def has_bom(self, product_id: UUID) -> bool:
        count = self.session.execute(
            select(func.count(BomItemModel.id)).where(BomItemModel.product_id == product_id)
        ).scalar_one()
        return count > 0
