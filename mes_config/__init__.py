"""
mes_config -- single public entrypoint for MES configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``: the process catalog seed, routing patterns,
    start-process set, seq step and stock policy.

Architecture position:
    Configuration -- sits above ``mes_kernel`` and below ``mes_services``.
    The kernel MUST NEVER import from ``mes_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through get_active_config().
    - Validation before use: an inconsistent document never produces a
      MesConfig.
    - Deterministic checksum: same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- config_path does not exist.
    - ``ConfigValidationError`` -- the document is inconsistent.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mes_config.loader import load_config
from mes_config.schema import MesConfig, PatternDef, ProcessDef, RoutingPolicy, StockPolicy

_logger = logging.getLogger("mes_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "mes.yaml"


def get_active_config(config_path: Path | str | None = None) -> MesConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a YAML document.  Defaults to the
            bundled ``mes_config/defaults/mes.yaml``.

    Returns:
        MesConfig -- frozen, validated runtime configuration.

    Raises:
        FileNotFoundError: If the document does not exist.
        ConfigValidationError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_config(path)

    _logger.info(
        "MES_CONFIG_TRACE",
        extra={
            "trace_type": "MES_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "process_count": len(config.processes),
            "pattern_count": len(config.available_patterns()),
            "allow_negative_default": config.stock.allow_negative_default,
        },
    )

    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "MesConfig",
    "PatternDef",
    "ProcessDef",
    "RoutingPolicy",
    "StockPolicy",
    "get_active_config",
]
