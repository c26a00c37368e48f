"""
Service layer for bill-of-materials lines.

The default BOM resolver reads what this service writes.  Other resolvers
may be injected into the deduction service instead; this one exists so the
whole deduction path can run against the database.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select

from mes_kernel.db.types import to_quantity
from mes_kernel.domain.codes import normalize_process_code
from mes_kernel.domain.dtos import MaterialRequirement
from mes_kernel.exceptions import (
    InvalidProcessCodeError,
    InvalidQuantityError,
    MaterialNotFoundError,
)
from mes_kernel.logging_config import get_logger
from mes_kernel.models.bom import BomItemModel
from mes_kernel.models.material import MaterialModel
from mes_kernel.models.process import ProcessModel
from mes_kernel.services.base import BaseService

logger = get_logger("services.bom")


class BomService(BaseService[BomItemModel]):
    """Maintains BOM lines."""

    def add_item(
        self,
        product_id: UUID,
        process_code: str | None,
        material_id: UUID,
        quantity_per_unit: Decimal | int | str,
        actor_id: UUID,
    ) -> MaterialRequirement:
        """
        Add a BOM line, or update its per-unit quantity if it exists.

        Raises:
            InvalidProcessCodeError: If process_code names no process.
            MaterialNotFoundError: If the material does not exist.
            InvalidQuantityError: If quantity_per_unit is not positive.
        """
        code = normalize_process_code(process_code) if process_code else None
        if code is not None:
            exists = self.session.execute(
                select(ProcessModel.id).where(ProcessModel.code == code)
            ).scalar_one_or_none()
            if exists is None:
                raise InvalidProcessCodeError(code)

        material = self.session.get(MaterialModel, material_id)
        if material is None:
            raise MaterialNotFoundError(str(material_id))

        qty = to_quantity(quantity_per_unit)
        if qty <= 0:
            raise InvalidQuantityError(str(qty), field="quantity_per_unit")

        query = select(BomItemModel).where(
            BomItemModel.product_id == product_id,
            BomItemModel.material_id == material_id,
        )
        if code is None:
            query = query.where(BomItemModel.process_code.is_(None))
        else:
            query = query.where(BomItemModel.process_code == code)
        item = self.session.execute(query).scalar_one_or_none()

        if item is None:
            item = BomItemModel(
                product_id=product_id,
                process_code=code,
                material_id=material_id,
                quantity_per_unit=qty,
                created_by_id=actor_id,
            )
            self.session.add(item)
        else:
            item.quantity_per_unit = qty
            item.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "bom_item_saved",
            extra={
                "product_id": str(product_id),
                "process_code": code,
                "material_code": material.code,
                "quantity_per_unit": str(qty),
            },
        )
        return MaterialRequirement(
            material_id=material.id,
            material_code=material.code,
            material_name=material.name,
            required_qty=qty,
        )

    def delete_product_bom(self, product_id: UUID) -> int:
        """Remove every BOM line of a product.  Returns the number removed."""
        result = self.session.execute(
            delete(BomItemModel).where(BomItemModel.product_id == product_id)
        )
        self.session.flush()
        return result.rowcount or 0
