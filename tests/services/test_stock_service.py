"""
Tests for StockService (per-lot mutations of the stock ledger).

Covers:
- Receiving single lots and batches
- Per-lot consumption with and without negative tolerance
- Bridge rows and their reversal
- Quantity corrections and guarded lot deletion
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from mes_kernel.domain.dtos import ReceiveRequest
from mes_kernel.exceptions import (
    DuplicateStockLotError,
    InsufficientStockError,
    InvalidQuantityError,
    MaterialNotFoundError,
    StockLotNotFoundError,
    StockLotReferencedError,
)
from mes_kernel.selectors.stock_selector import StockSelector
from mes_kernel.services.stock_service import StockService


@pytest.fixture
def service(session, deterministic_clock):
    return StockService(session, clock=deterministic_clock)


@pytest.fixture
def selector(session):
    return StockSelector(session)


class TestReceive:

    def test_receive_creates_unused_lot(self, service, material, test_actor_id):
        lot = service.receive(material.id, " l-001 ", "100", test_actor_id, location="A-01")

        assert lot.lot_number == "L-001"
        assert lot.quantity == Decimal("100")
        assert lot.used_qty == Decimal("0")
        assert lot.available_qty == Decimal("100")
        assert lot.location == "A-01"

    def test_duplicate_lot_number(self, service, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)

        with pytest.raises(DuplicateStockLotError):
            service.receive(material.id, "l-001", 5, test_actor_id)

    def test_same_lot_number_for_other_material(self, service, material, create_material, test_actor_id):
        other = create_material()
        service.receive(material.id, "L-001", 10, test_actor_id)
        lot = service.receive(other.id, "L-001", 10, test_actor_id)

        assert lot.material_id == other.id

    @pytest.mark.parametrize("quantity", [0, -5, "0"])
    def test_non_positive_quantity(self, service, material, test_actor_id, quantity):
        with pytest.raises(InvalidQuantityError):
            service.receive(material.id, "L-001", quantity, test_actor_id)

    @pytest.mark.parametrize("quantity", [1.5, "abc", "NaN", "Infinity"])
    def test_malformed_quantity_rejected(self, service, material, test_actor_id, quantity):
        with pytest.raises(InvalidQuantityError):
            service.receive(material.id, "L-001", quantity, test_actor_id)

    def test_unknown_material(self, service, test_actor_id):
        with pytest.raises(MaterialNotFoundError):
            service.receive(uuid4(), "L-001", 10, test_actor_id)

    def test_batch_reports_failures_and_continues(self, service, selector, material, test_actor_id):
        result = service.receive_batch(
            [
                ReceiveRequest(material.id, "L-001", Decimal("10")),
                ReceiveRequest(material.id, "L-001", Decimal("5")),
                ReceiveRequest(uuid4(), "L-009", Decimal("5")),
                ReceiveRequest(material.id, "L-002", Decimal("7")),
            ],
            test_actor_id,
        )

        assert result.success_count == 2
        assert result.failed_count == 2
        assert [o.success for o in result.outcomes] == [True, False, False, True]
        assert "already received" in result.outcomes[1].error
        assert selector.available_qty(material.id) == Decimal("17")

    def test_batch_reports_malformed_quantity(self, service, selector, material, test_actor_id):
        result = service.receive_batch(
            [
                ReceiveRequest(material.id, "OK-1", Decimal("5")),
                ReceiveRequest(material.id, "BAD-1", "abc"),
                ReceiveRequest(material.id, "OK-2", Decimal("3")),
            ],
            test_actor_id,
        )

        assert result.success_count == 2
        assert result.failed_count == 1
        assert "not a number" in result.outcomes[1].error
        assert selector.lot_by_number(material.id, "BAD-1") is None
        assert selector.available_qty(material.id) == Decimal("8")


class TestConsumeLot:

    def test_consume_within_lot(self, service, selector, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)

        usage = service.consume_lot(material.id, "l-001", "4", test_actor_id)

        assert usage.lot_number == "L-001"
        assert usage.used_qty == Decimal("4")
        assert selector.lot_by_number(material.id, "L-001").available_qty == Decimal("6")

    def test_overdraw_allowed_by_default(self, service, selector, material, test_actor_id, captured_logs):
        service.receive(material.id, "L-001", 10, test_actor_id)

        service.consume_lot(material.id, "L-001", 15, test_actor_id)

        lot = selector.lot_by_number(material.id, "L-001")
        assert lot.available_qty == Decimal("-5")
        assert lot.is_negative
        assert any(r["message"] == "negative_stock_forced" for r in captured_logs())

    def test_overdraw_refused_without_negative(self, service, selector, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)

        with pytest.raises(InsufficientStockError) as exc_info:
            service.consume_lot(material.id, "L-001", 15, test_actor_id, allow_negative=False)

        assert exc_info.value.lot_number == "L-001"
        assert selector.lot_by_number(material.id, "L-001").used_qty == Decimal("0")

    def test_unknown_lot(self, service, material, test_actor_id):
        with pytest.raises(StockLotNotFoundError):
            service.consume_lot(material.id, "NOPE", 1, test_actor_id)

    def test_bridge_row_written_for_production_lot(self, service, selector, material, test_actor_id):
        production_lot_id = uuid4()
        service.receive(material.id, "L-001", 10, test_actor_id)

        service.consume_lot(material.id, "L-001", 3, test_actor_id, production_lot_id=production_lot_id)

        rows = selector.consumptions_for_production_lot(production_lot_id)
        assert [(r.lot_number, r.quantity) for r in rows] == [("L-001", Decimal("3"))]
        assert selector.reconcile_lot(material.id, "L-001").consistent

    def test_consumption_without_production_lot_is_unrecorded(
        self, service, selector, material, test_actor_id
    ):
        service.receive(material.id, "L-001", 10, test_actor_id)
        service.consume_lot(material.id, "L-001", 3, test_actor_id)

        reconciliation = selector.reconcile_lot(material.id, "L-001")
        assert reconciliation.record_count == 0
        assert reconciliation.unrecorded_qty == Decimal("3")
        assert not reconciliation.consistent


class TestCorrections:

    def test_adjust_quantity(self, service, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)
        service.consume_lot(material.id, "L-001", 4, test_actor_id)

        lot = service.adjust_quantity(material.id, "L-001", 8, test_actor_id)

        assert lot.quantity == Decimal("8")
        assert lot.available_qty == Decimal("4")

    def test_adjust_rejects_negative(self, service, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)
        with pytest.raises(InvalidQuantityError):
            service.adjust_quantity(material.id, "L-001", -1, test_actor_id)

    def test_delete_unreferenced_lot(self, service, selector, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)

        service.delete_lot(material.id, "L-001")

        assert selector.lot_by_number(material.id, "L-001") is None

    def test_delete_refused_while_referenced(self, service, material, test_actor_id):
        service.receive(material.id, "L-001", 10, test_actor_id)
        service.consume_lot(material.id, "L-001", 1, test_actor_id, production_lot_id=uuid4())

        with pytest.raises(StockLotReferencedError) as exc_info:
            service.delete_lot(material.id, "L-001")
        assert exc_info.value.consumption_count == 1


class TestReverseProductionLot:

    def test_reverse_restores_and_removes_rows(
        self, service, selector, material, deterministic_clock, test_actor_id
    ):
        production_lot_id = uuid4()
        service.receive(material.id, "L-001", 10, test_actor_id)
        deterministic_clock.tick()
        service.receive(material.id, "L-002", 10, test_actor_id)
        service.consume_lot(material.id, "L-001", 6, test_actor_id, production_lot_id=production_lot_id)
        service.consume_lot(material.id, "L-002", 2, test_actor_id, production_lot_id=production_lot_id)
        service.consume_lot(material.id, "L-002", 1, test_actor_id)

        restored = service.reverse_production_lot(production_lot_id, test_actor_id)

        assert restored == 2
        assert selector.lot_by_number(material.id, "L-001").used_qty == Decimal("0")
        assert selector.lot_by_number(material.id, "L-002").used_qty == Decimal("1")
        assert selector.consumptions_for_production_lot(production_lot_id) == []

    def test_reverse_is_idempotent(self, service, material, test_actor_id):
        production_lot_id = uuid4()
        service.receive(material.id, "L-001", 10, test_actor_id)
        service.consume_lot(material.id, "L-001", 6, test_actor_id, production_lot_id=production_lot_id)

        assert service.reverse_production_lot(production_lot_id, test_actor_id) == 1
        assert service.reverse_production_lot(production_lot_id, test_actor_id) == 0

    def test_reverse_floors_at_zero(self, service, selector, material, test_actor_id):
        production_lot_id = uuid4()
        service.receive(material.id, "L-001", 10, test_actor_id)
        service.consume_lot(material.id, "L-001", 6, test_actor_id, production_lot_id=production_lot_id)
        service.adjust_quantity(material.id, "L-001", 10, test_actor_id)
        lot = service._get_lot(material.id, "L-001")
        lot.used_qty = Decimal("2")
        service.session.flush()

        service.reverse_production_lot(production_lot_id, test_actor_id)

        assert selector.lot_by_number(material.id, "L-001").used_qty == Decimal("0")

    def test_unknown_production_lot(self, service, test_actor_id):
        assert service.reverse_production_lot(uuid4(), test_actor_id) == 0
