"""
Configuration Loader (``mes_config.loader``).

Responsibility
--------------
Loads the YAML document, parses it into ``mes_config.schema`` dataclasses
and validates it.  Callers use ``mes_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Codes are normalized on the way in.
* ``validate_document`` reports every problem at once.
* ``compute_checksum`` is deterministic for identical documents.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Inconsistent document  -> ``ConfigValidationError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from mes_config.schema import (
    MesConfig,
    PatternDef,
    ProcessDef,
    RoutingPolicy,
    StockPolicy,
)
from mes_kernel.domain.codes import normalize_process_code, normalize_short_code
from mes_kernel.exceptions import ConfigValidationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_process(data: dict[str, Any]) -> ProcessDef:
    short = data.get("short_code")
    return ProcessDef(
        code=normalize_process_code(str(data["code"])),
        name=str(data["name"]),
        seq=int(data["seq"]),
        has_material_input=bool(data.get("has_material_input", False)),
        is_inspection=bool(data.get("is_inspection", False)),
        short_code=normalize_short_code(str(short)) if short else None,
        description=data.get("description"),
    )


def parse_pattern(name: str, data: Any) -> PatternDef:
    # Accept both the long form and a bare list of codes
    if isinstance(data, list):
        codes, description = data, ""
    else:
        codes, description = data.get("processes", []), data.get("description", "")
    return PatternDef(
        name=name.strip().lower(),
        processes=tuple(normalize_process_code(str(c)) for c in codes),
        description=description,
    )


def parse_document(data: dict[str, Any], checksum: str = "") -> MesConfig:
    routing = data.get("routing", {})
    stock = data.get("stock", {})
    return MesConfig(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        processes=tuple(parse_process(p) for p in data.get("processes", [])),
        routing=RoutingPolicy(
            seq_step=int(routing.get("seq_step", 10)),
            start_processes=frozenset(
                normalize_process_code(str(c))
                for c in routing.get("start_processes", ["CA", "MC"])
            ),
            patterns=tuple(
                parse_pattern(name, p)
                for name, p in routing.get("patterns", {}).items()
            ),
        ),
        stock=StockPolicy(
            allow_negative_default=bool(stock.get("allow_negative_default", True)),
            danger_ratio=Decimal(str(stock.get("danger_ratio", "0.3"))),
        ),
        checksum=checksum,
    )


def validate_document(data: dict[str, Any]) -> list[str]:
    """Return every problem found in a raw document (empty when valid)."""
    errors: list[str] = []

    codes: list[str] = []
    shorts: list[str] = []
    for i, p in enumerate(data.get("processes", []) or []):
        if not isinstance(p, dict) or "code" not in p or "name" not in p or "seq" not in p:
            errors.append(f"processes[{i}] needs code, name and seq")
            continue
        codes.append(normalize_process_code(str(p["code"])))
        if p.get("short_code"):
            shorts.append(normalize_short_code(str(p["short_code"])))

    for code in sorted({c for c in codes if codes.count(c) > 1}):
        errors.append(f"duplicate process code: {code}")
    for short in sorted({s for s in shorts if shorts.count(s) > 1}):
        errors.append(f"duplicate short code: {short}")

    known = set(codes)
    routing = data.get("routing", {}) or {}

    step = routing.get("seq_step", 10)
    if not isinstance(step, int) or step <= 0:
        errors.append(f"routing.seq_step must be a positive integer, got {step!r}")

    for code in routing.get("start_processes", ["CA", "MC"]) or []:
        if normalize_process_code(str(code)) not in known:
            errors.append(f"start process {code} is not in the catalog")

    for name, pattern in (routing.get("patterns", {}) or {}).items():
        pattern_codes = pattern if isinstance(pattern, list) else (pattern or {}).get("processes", [])
        if not pattern_codes:
            errors.append(f"pattern {name} has no processes")
        for code in pattern_codes:
            if normalize_process_code(str(code)) not in known:
                errors.append(f"pattern {name} references unknown process {code}")

    ratio_raw = (data.get("stock", {}) or {}).get("danger_ratio", "0.3")
    try:
        ratio = Decimal(str(ratio_raw))
        if not (0 <= ratio <= 1):
            errors.append(f"stock.danger_ratio must be within 0..1, got {ratio_raw}")
    except InvalidOperation:
        errors.append(f"stock.danger_ratio is not a number: {ratio_raw!r}")

    return errors


def load_config(path: Path) -> MesConfig:
    """Load, validate and parse one configuration file."""
    data = load_yaml_file(path)
    errors = validate_document(data)
    if errors:
        raise ConfigValidationError(errors, source=str(path))
    return parse_document(data, checksum=compute_checksum(data))
