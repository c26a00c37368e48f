"""
mes_services.barcode_inputs -- Scanned barcodes as stock inputs.

Responsibility:
    Turn material barcodes into lot hints for BOM deduction and receive
    stock straight from a supplier (HQ) label.

Architecture position:
    Services -- orchestration over the kernel.  Barcode parsing itself is
    an injected collaborator (BarcodeDecoder); HqBarcodeDecoder is the
    default for the supplier label format.

Invariants enforced:
    - Scans never raise: an invalid scan or an unknown material code is
      collected in ScanResolution.unresolved (or a failed ReceiveOutcome).
    - The quantity printed on the label wins over the caller's fallback.

Usage:
    scans = BarcodeInputService(session)
    resolution = scans.resolve_material_inputs(["P682028Q20000S250922V1"])
    deduction.deduct_by_bom(..., inputs=resolution.inputs)
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from mes_kernel.domain.dtos import MaterialInput, ReceiveOutcome, ScanResolution
from mes_kernel.exceptions import StockError
from mes_kernel.logging_config import get_logger
from mes_kernel.selectors.material_selector import MaterialSelector
from mes_services.stock_ledger import StockLedger

logger = get_logger("services.barcode_inputs")


@dataclass(frozen=True)
class MaterialScan:
    """Decoded material label."""

    raw: str
    material_code: str
    lot_number: str
    quantity: Decimal | None = None
    is_valid: bool = True


class BarcodeDecoder(Protocol):
    def decode_material(self, barcode: str) -> MaterialScan: ...


class HqBarcodeDecoder:
    """
    Supplier label decoder.

    Recognized forms:
        P{code}Q{qty}S{lot}[V{version}]   e.g. P682028Q20000S250922V1
        {prefix}{code}:{qty}:...          e.g. KH1200030-22:12000:50603KDR
    The whole label is the lot number.  Anything else is invalid.
    """

    _PQS = re.compile(r"^P([A-Z0-9-]+)Q(\d+)S(.+?)(?:V(\d+))?$", re.IGNORECASE)

    def decode_material(self, barcode: str) -> MaterialScan:
        raw = barcode.strip()
        if not raw:
            return MaterialScan(raw=raw, material_code="", lot_number="", is_valid=False)

        match = self._PQS.match(raw)
        if match:
            return MaterialScan(
                raw=raw,
                material_code=match.group(1),
                lot_number=raw,
                quantity=Decimal(match.group(2)),
            )

        parts = raw.split(":")
        if len(parts) >= 2 and parts[0]:
            code = re.sub(r"^[A-Z]+", "", parts[0], flags=re.IGNORECASE) or parts[0]
            qty = Decimal(parts[1]) if parts[1].isdigit() else None
            return MaterialScan(raw=raw, material_code=code, lot_number=raw, quantity=qty)

        return MaterialScan(raw=raw, material_code="", lot_number="", is_valid=False)


class BarcodeInputService:
    """Resolves scans against the material master."""

    def __init__(
        self,
        session: Session,
        decoder: BarcodeDecoder | None = None,
        ledger: StockLedger | None = None,
    ):
        self.session = session
        self.decoder: BarcodeDecoder = decoder or HqBarcodeDecoder()
        self.materials = MaterialSelector(session)
        self.ledger = ledger or StockLedger(session)

    def resolve_material_inputs(self, barcodes: Iterable[str]) -> ScanResolution:
        """
        Decode scans into MaterialInput hints, in scan order.

        Invalid scans and unknown material codes go to ``unresolved``.
        """
        inputs: list[MaterialInput] = []
        unresolved: list[str] = []
        for barcode in barcodes:
            scan = self.decoder.decode_material(barcode)
            if not scan.is_valid:
                unresolved.append(barcode)
                continue
            material = self.materials.get_by_code(scan.material_code)
            if material is None:
                unresolved.append(barcode)
                continue
            inputs.append(
                MaterialInput(
                    material_id=material.id,
                    lot_number=scan.lot_number,
                    quantity=scan.quantity,
                )
            )

        if unresolved:
            logger.warning("barcode_scans_unresolved", extra={"count": len(unresolved)})
        return ScanResolution(inputs=tuple(inputs), unresolved=tuple(unresolved))

    def receive_by_barcode(
        self,
        barcode: str,
        actor_id: UUID,
        quantity: Decimal | int | str | None = None,
        location: str | None = None,
    ) -> ReceiveOutcome:
        """
        Receive a lot from a supplier label.

        Failures (invalid label, unknown material, duplicate lot, missing
        quantity) are returned as an unsuccessful outcome.
        """
        scan = self.decoder.decode_material(barcode)
        if not scan.is_valid:
            return ReceiveOutcome(
                material_id=None,
                lot_number=barcode,
                success=False,
                error=f"Invalid barcode: {barcode}",
            )

        material = self.materials.get_by_code(scan.material_code)
        if material is None:
            return ReceiveOutcome(
                material_id=None,
                lot_number=scan.lot_number,
                success=False,
                error=f"Material not found: {scan.material_code}",
            )

        qty = scan.quantity if scan.quantity is not None else quantity
        if qty is None:
            return ReceiveOutcome(
                material_id=material.id,
                lot_number=scan.lot_number,
                success=False,
                error="Barcode carries no quantity and none was given",
            )

        try:
            lot = self.ledger.receive(
                material.id, scan.lot_number, qty, actor_id, location=location
            )
        except StockError as exc:
            return ReceiveOutcome(
                material_id=material.id,
                lot_number=scan.lot_number,
                success=False,
                error=str(exc),
            )
        return ReceiveOutcome(
            material_id=material.id,
            lot_number=lot.lot_number,
            success=True,
            lot=lot,
        )
