"""Service layer for the material master."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from mes_kernel.db.types import to_quantity
from mes_kernel.domain.dtos import MaterialInfo
from mes_kernel.exceptions import (
    InvalidQuantityError,
    MaterialAlreadyExistsError,
    MaterialNotFoundError,
)
from mes_kernel.logging_config import get_logger
from mes_kernel.models.material import MaterialModel
from mes_kernel.services.base import BaseService

logger = get_logger("services.material")


class MaterialService(BaseService[MaterialModel]):
    """Creates and maintains material master rows."""

    def _get_model(self, material_id: UUID) -> MaterialModel:
        model = self.session.get(MaterialModel, material_id)
        if model is None:
            raise MaterialNotFoundError(str(material_id))
        return model

    def create_material(
        self,
        code: str,
        name: str,
        actor_id: UUID,
        unit: str = "EA",
        safe_stock: Decimal | int | str = 0,
    ) -> MaterialInfo:
        """
        Create a material.

        Raises:
            MaterialAlreadyExistsError: If the code is taken.
            InvalidQuantityError: If safe_stock is negative.
        """
        code = code.strip()
        existing = self.session.execute(
            select(MaterialModel).where(MaterialModel.code == code)
        ).scalar_one_or_none()
        if existing is not None:
            raise MaterialAlreadyExistsError(code)

        safe = to_quantity(safe_stock)
        if safe < 0:
            raise InvalidQuantityError(str(safe), field="safe_stock")

        model = MaterialModel(
            code=code,
            name=name,
            unit=unit,
            safe_stock=safe,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info("material_created", extra={"material_code": code})
        return MaterialInfo.from_model(model)

    def set_safe_stock(
        self,
        material_id: UUID,
        safe_stock: Decimal | int | str,
        actor_id: UUID,
    ) -> MaterialInfo:
        model = self._get_model(material_id)
        safe = to_quantity(safe_stock)
        if safe < 0:
            raise InvalidQuantityError(str(safe), field="safe_stock")
        model.safe_stock = safe
        model.updated_by_id = actor_id
        self.session.flush()
        return MaterialInfo.from_model(model)

    def deactivate_material(self, material_id: UUID, actor_id: UUID) -> MaterialInfo:
        model = self._get_model(material_id)
        model.is_active = False
        model.updated_by_id = actor_id
        self.session.flush()
        logger.info("material_deactivated", extra={"material_code": model.code})
        return MaterialInfo.from_model(model)
