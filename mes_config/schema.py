"""
MES configuration schema.

Frozen dataclasses parsed from the YAML document by the loader.  MesConfig
is the runtime artifact handed to services; routing patterns are exposed
through lookup methods, never as a mutable module global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from mes_kernel.domain.codes import normalize_process_code, normalize_short_code
from mes_kernel.exceptions import UnknownPatternError


@dataclass(frozen=True)
class ProcessDef:
    """One process of the seed catalog."""

    code: str
    name: str
    seq: int
    has_material_input: bool = False
    is_inspection: bool = False
    short_code: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class PatternDef:
    """A named routing preset: an exact ordered code sequence."""

    name: str
    processes: tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class RoutingPolicy:
    seq_step: int = 10
    start_processes: frozenset[str] = frozenset({"CA", "MC"})
    patterns: tuple[PatternDef, ...] = ()


@dataclass(frozen=True)
class StockPolicy:
    allow_negative_default: bool = True
    danger_ratio: Decimal = Decimal("0.3")


@dataclass(frozen=True)
class MesConfig:
    """
    Validated runtime configuration.

    Guarantees:
        - Codes and short codes are normalized (uppercase).
        - checksum is the SHA-256 of the canonical source document.
    """

    config_id: str
    version: int
    processes: tuple[ProcessDef, ...]
    routing: RoutingPolicy
    stock: StockPolicy
    checksum: str = ""
    _patterns: Mapping[str, PatternDef] = field(
        default_factory=lambda: MappingProxyType({}), repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_patterns",
            MappingProxyType({p.name: p for p in self.routing.patterns}),
        )

    # -- Patterns ----------------------------------------------------------

    def available_patterns(self) -> tuple[str, ...]:
        return tuple(self._patterns)

    def get_pattern(self, name: str) -> tuple[str, ...]:
        """Ordered codes of a named pattern; UnknownPatternError otherwise."""
        pattern = self._patterns.get(name.strip().lower()) if name else None
        if pattern is None:
            raise UnknownPatternError(name, self.available_patterns())
        return pattern.processes

    def pattern_map(self) -> Mapping[str, tuple[str, ...]]:
        return MappingProxyType({n: p.processes for n, p in self._patterns.items()})

    def pattern_description(self, name: str) -> str:
        self.get_pattern(name)
        return self._patterns[name.strip().lower()].description

    # -- Short codes -------------------------------------------------------

    def short_code_for(self, process_code: str) -> str | None:
        code = normalize_process_code(process_code)
        for p in self.processes:
            if p.code == code:
                return p.short_code
        return None

    def process_code_for_short(self, short_code: str) -> str | None:
        short = normalize_short_code(short_code)
        for p in self.processes:
            if p.short_code == short:
                return p.code
        return None

    @property
    def start_processes(self) -> frozenset[str]:
        return self.routing.start_processes

    @property
    def seq_step(self) -> int:
        return self.routing.seq_step
