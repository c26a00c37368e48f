"""
mes_services.catalog -- Process catalog bootstrap from configuration.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from mes_config import MesConfig
from mes_kernel.domain.dtos import SeedResult
from mes_kernel.logging_config import get_logger
from mes_kernel.services.process_service import ProcessService

logger = get_logger("services.catalog")


def seed_process_catalog(session: Session, config: MesConfig, actor_id: UUID) -> SeedResult:
    """
    Insert the configured process catalog.  Existing codes are left as
    they are, so running this on every start-up is safe.
    """
    result = ProcessService(session).seed_processes(config.processes, actor_id)
    logger.info(
        "process_catalog_bootstrapped",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "created_count": result.created,
            "skipped_count": result.skipped,
        },
    )
    return result
