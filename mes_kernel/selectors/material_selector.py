"""Material master query selector."""

from uuid import UUID

from sqlalchemy import select

from mes_kernel.domain.dtos import MaterialInfo
from mes_kernel.models.material import MaterialModel
from mes_kernel.selectors.base import BaseSelector


class MaterialSelector(BaseSelector[MaterialModel]):
    """Lookups by id and code."""

    def get(self, material_id: UUID) -> MaterialInfo | None:
        model = self.session.get(MaterialModel, material_id)
        return MaterialInfo.from_model(model) if model is not None else None

    def get_by_code(self, code: str) -> MaterialInfo | None:
        model = self.session.execute(
            select(MaterialModel).where(MaterialModel.code == code.strip())
        ).scalar_one_or_none()
        return MaterialInfo.from_model(model) if model is not None else None

    def list_materials(self, is_active: bool | None = None) -> list[MaterialInfo]:
        query = select(MaterialModel).order_by(MaterialModel.code)
        if is_active is not None:
            query = query.where(MaterialModel.is_active == is_active)
        return [MaterialInfo.from_model(m) for m in self.session.execute(query).scalars().all()]
