"""
Service layer for the process catalog.

Creates, edits, deactivates and (when unreferenced) deletes process
definitions, and seeds the catalog from configuration.  Returns
ProcessInfo DTOs, never ORM rows.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from sqlalchemy import func, select

from mes_kernel.domain.codes import normalize_process_code, normalize_short_code
from mes_kernel.domain.dtos import ProcessInfo, SeedResult
from mes_kernel.exceptions import (
    DuplicateShortCodeError,
    ProcessAlreadyExistsError,
    ProcessNotFoundError,
    ProcessReferencedError,
)
from mes_kernel.logging_config import get_logger
from mes_kernel.models.bom import BomItemModel
from mes_kernel.models.process import ProcessModel
from mes_kernel.models.routing import RoutingEntryModel
from mes_kernel.services.base import BaseService

logger = get_logger("services.process")


class ProcessDefinition(Protocol):
    """Anything shaped like a seed catalog row (e.g. mes_config.ProcessDef)."""

    code: str
    name: str
    seq: int
    has_material_input: bool
    is_inspection: bool
    short_code: str | None
    description: str | None


class ProcessService(BaseService[ProcessModel]):
    """
    Write side of the process catalog.

    Enforces unique codes and unique short codes before touching the
    database so callers get typed errors instead of IntegrityError.
    """

    def _get_model(self, code: str) -> ProcessModel:
        normalized = normalize_process_code(code)
        model = self.session.execute(
            select(ProcessModel).where(ProcessModel.code == normalized)
        ).scalar_one_or_none()
        if model is None:
            raise ProcessNotFoundError(normalized)
        return model

    def _check_short_code(self, short_code: str, owner_code: str | None) -> None:
        holder = self.session.execute(
            select(ProcessModel).where(ProcessModel.short_code == short_code)
        ).scalar_one_or_none()
        if holder is not None and holder.code != owner_code:
            raise DuplicateShortCodeError(short_code, holder.code)

    def create_process(
        self,
        code: str,
        name: str,
        seq: int,
        actor_id: UUID,
        has_material_input: bool = False,
        is_inspection: bool = False,
        short_code: str | None = None,
        description: str | None = None,
    ) -> ProcessInfo:
        """
        Create a process definition.

        Raises:
            ProcessAlreadyExistsError: If the code is taken.
            DuplicateShortCodeError: If the short code is taken.
        """
        normalized = normalize_process_code(code)
        existing = self.session.execute(
            select(ProcessModel).where(ProcessModel.code == normalized)
        ).scalar_one_or_none()
        if existing is not None:
            raise ProcessAlreadyExistsError(normalized)

        short = normalize_short_code(short_code) if short_code else None
        if short is not None:
            self._check_short_code(short, owner_code=None)

        model = ProcessModel(
            code=normalized,
            name=name,
            seq=seq,
            has_material_input=has_material_input,
            is_inspection=is_inspection,
            short_code=short,
            description=description,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "process_created",
            extra={"process_code": normalized, "seq": seq, "short_code": short},
        )
        return ProcessInfo.from_model(model)

    def update_process(
        self,
        code: str,
        actor_id: UUID,
        *,
        name: str | None = None,
        seq: int | None = None,
        has_material_input: bool | None = None,
        is_inspection: bool | None = None,
        short_code: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> ProcessInfo:
        """Update the given fields; None leaves a field unchanged."""
        model = self._get_model(code)

        if short_code is not None:
            short = normalize_short_code(short_code)
            self._check_short_code(short, owner_code=model.code)
            model.short_code = short
        if name is not None:
            model.name = name
        if seq is not None:
            model.seq = seq
        if has_material_input is not None:
            model.has_material_input = has_material_input
        if is_inspection is not None:
            model.is_inspection = is_inspection
        if description is not None:
            model.description = description
        if is_active is not None:
            model.is_active = is_active

        model.updated_by_id = actor_id
        self.session.flush()

        logger.info("process_updated", extra={"process_code": model.code})
        return ProcessInfo.from_model(model)

    def deactivate_process(self, code: str, actor_id: UUID) -> ProcessInfo:
        """Soft delete: the process stays in the catalog but is no longer valid for routing."""
        return self.update_process(code, actor_id, is_active=False)

    def hard_delete_process(self, code: str) -> None:
        """
        Remove a process row.

        Raises:
            ProcessNotFoundError: If the code does not exist.
            ProcessReferencedError: While routing entries or BOM lines reference it.
        """
        model = self._get_model(code)

        routing_count = self.session.execute(
            select(func.count(RoutingEntryModel.id)).where(
                RoutingEntryModel.process_code == model.code
            )
        ).scalar_one()
        bom_count = self.session.execute(
            select(func.count(BomItemModel.id)).where(BomItemModel.process_code == model.code)
        ).scalar_one()
        if routing_count or bom_count:
            raise ProcessReferencedError(model.code, routing_count, bom_count)

        self.session.delete(model)
        self.session.flush()
        logger.warning("process_hard_deleted", extra={"process_code": model.code})

    def seed_processes(
        self,
        definitions: Iterable[ProcessDefinition],
        actor_id: UUID,
    ) -> SeedResult:
        """
        Insert catalog rows that do not exist yet.

        Idempotent: existing codes are skipped, never overwritten.
        """
        existing = set(self.session.execute(select(ProcessModel.code)).scalars().all())
        created = skipped = 0
        for definition in definitions:
            code = normalize_process_code(definition.code)
            if code in existing:
                skipped += 1
                continue
            self.session.add(
                ProcessModel(
                    code=code,
                    name=definition.name,
                    seq=definition.seq,
                    has_material_input=definition.has_material_input,
                    is_inspection=definition.is_inspection,
                    short_code=(
                        normalize_short_code(definition.short_code)
                        if definition.short_code
                        else None
                    ),
                    description=definition.description,
                    is_active=True,
                    created_by_id=actor_id,
                )
            )
            existing.add(code)
            created += 1
        self.session.flush()

        logger.info(
            "process_catalog_seeded",
            extra={"created_count": created, "skipped_count": skipped},
        )
        return SeedResult(created=created, skipped=skipped)
