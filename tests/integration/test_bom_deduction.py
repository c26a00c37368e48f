"""
Integration tests for BomDeductionService -- BOM + hints + FIFO end-to-end.

Tests verify that:
1. Requirements are scaled by production quantity and deducted FIFO
2. Scanned lot hints are consumed before FIFO
3. Shortages are reported per item, never raised
4. Rollback restores exactly what a production lot consumed
5. The availability check never mutates stock
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from mes_kernel.domain.dtos import MaterialInput, MaterialRequirement
from mes_kernel.exceptions import InvalidProcessCodeError, InvalidQuantityError
from mes_kernel.services.bom_service import BomService
from mes_kernel.services.process_service import ProcessService
from mes_services.bom_deduction_service import BomDeductionService


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def deduction(session, mes_config, deterministic_clock, seeded_processes):
    return BomDeductionService(session, config=mes_config, clock=deterministic_clock)


@pytest.fixture
def wire(create_material):
    return create_material("WIRE-RED", "AVSS 0.5 red")


@pytest.fixture
def terminal(create_material):
    return create_material("TERM-250", "250 terminal")


@pytest.fixture
def bom(session, seeded_processes, product_id, wire, terminal, test_actor_id):
    """CA consumes 1.5 of wire and 2 terminals per unit."""
    service = BomService(session)
    service.add_item(product_id, "CA", wire.id, "1.5", test_actor_id)
    service.add_item(product_id, "CA", terminal.id, 2, test_actor_id)
    return product_id


@pytest.fixture
def stocked(deduction, wire, terminal, test_actor_id, deterministic_clock):
    ledger = deduction.ledger
    ledger.receive(wire.id, "W-1", 10, test_actor_id)
    ledger.receive(terminal.id, "T-1", 20, test_actor_id)
    deterministic_clock.advance_days(1)
    ledger.receive(wire.id, "W-2", 10, test_actor_id)
    ledger.receive(terminal.id, "T-2", 20, test_actor_id)
    return ledger


def _item(result, material):
    return next(i for i in result.items if i.material_id == material.id)


# =============================================================================
# Deduction
# =============================================================================


class TestDeductByBom:

    def test_fifo_deduction(self, deduction, bom, stocked, wire, terminal, test_actor_id):
        result = deduction.deduct_by_bom(bom, "ca", 10, test_actor_id)

        assert result.success
        assert result.errors == ()
        wire_item = _item(result, wire)
        assert wire_item.required_qty == Decimal("15")
        assert [(u.lot_number, u.used_qty) for u in wire_item.lots] == [
            ("W-1", Decimal("10")),
            ("W-2", Decimal("5")),
        ]
        assert _item(result, terminal).deducted_qty == Decimal("20")
        assert result.total_deducted == Decimal("35")
        assert stocked.available_qty(wire.id) == Decimal("5")

    def test_hint_consumed_before_fifo(self, deduction, bom, stocked, wire, test_actor_id):
        result = deduction.deduct_by_bom(
            bom, "CA", 4, test_actor_id, inputs=[MaterialInput(wire.id, "w-2")]
        )

        assert [(u.lot_number, u.used_qty) for u in _item(result, wire).lots] == [
            ("W-2", Decimal("6")),
        ]
        assert stocked.lot_by_number(wire.id, "W-1").used_qty == Decimal("0")

    def test_hint_quantity_is_capped_then_fifo(self, deduction, bom, stocked, wire, test_actor_id):
        result = deduction.deduct_by_bom(
            bom,
            "CA",
            10,
            test_actor_id,
            inputs=[MaterialInput(wire.id, "W-2", Decimal("8"))],
        )

        assert [(u.lot_number, u.used_qty) for u in _item(result, wire).lots] == [
            ("W-2", Decimal("8")),
            ("W-1", Decimal("7")),
        ]

    def test_zero_hint_quantity_takes_lot_availability(self, deduction, bom, stocked, wire, test_actor_id):
        result = deduction.deduct_by_bom(
            bom,
            "CA",
            10,
            test_actor_id,
            inputs=[MaterialInput(wire.id, "W-2", Decimal("0"))],
        )

        assert [(u.lot_number, u.used_qty) for u in _item(result, wire).lots] == [
            ("W-2", Decimal("10")),
            ("W-1", Decimal("5")),
        ]

    def test_missing_hint_lot_falls_through_to_fifo(
        self, deduction, bom, stocked, wire, test_actor_id, captured_logs
    ):
        result = deduction.deduct_by_bom(
            bom, "CA", 2, test_actor_id, inputs=[MaterialInput(wire.id, "NOPE")]
        )

        assert [u.lot_number for u in _item(result, wire).lots] == ["W-1"]
        assert any(r["message"] == "deduction_hint_lot_missing" for r in captured_logs())

    def test_hint_without_lot_number_is_ignored(self, deduction, bom, stocked, wire, test_actor_id):
        result = deduction.deduct_by_bom(
            bom, "CA", 2, test_actor_id, inputs=[MaterialInput(wire.id, None)]
        )
        assert _item(result, wire).success

    def test_shortage_with_negative_allowed(self, deduction, bom, stocked, wire, test_actor_id):
        result = deduction.deduct_by_bom(bom, "CA", 20, test_actor_id, allow_negative=True)

        wire_item = _item(result, wire)
        assert result.success
        assert result.any_negative
        assert wire_item.allowed_negative
        assert wire_item.deducted_qty == Decimal("30")
        assert stocked.available_qty(wire.id) == Decimal("-10")

    def test_shortage_without_negative_reports_errors(
        self, deduction, bom, stocked, wire, terminal, test_actor_id
    ):
        result = deduction.deduct_by_bom(bom, "CA", 20, test_actor_id, allow_negative=False)

        assert not result.success
        wire_item = _item(result, wire)
        assert not wire_item.success
        assert wire_item.deducted_qty == Decimal("0")
        assert wire_item.remaining_qty == Decimal("30")
        assert len(result.errors) == 1
        assert result.errors[0].startswith("WIRE-RED: ")
        # the terminal line was still deducted
        assert _item(result, terminal).success
        assert stocked.available_qty(wire.id) == Decimal("20")

    def test_blocked_hint_reports_lot_error(self, deduction, bom, stocked, wire, test_actor_id):
        result = deduction.deduct_by_bom(
            bom,
            "CA",
            20,
            test_actor_id,
            inputs=[MaterialInput(wire.id, "W-1", Decimal("30"))],
            allow_negative=False,
        )

        wire_item = _item(result, wire)
        assert not wire_item.success
        assert "Insufficient stock in lot W-1 (available 10" in result.errors[0]
        assert stocked.lot_by_number(wire.id, "W-1").used_qty == Decimal("0")

    def test_process_without_material_input_is_skipped(self, deduction, bom, stocked, test_actor_id):
        result = deduction.deduct_by_bom(bom, "CI", 10, test_actor_id)

        assert result.success
        assert result.items == ()

    def test_process_without_bom_lines(self, deduction, bom, stocked, test_actor_id):
        result = deduction.deduct_by_bom(bom, "PA", 10, test_actor_id)

        assert result.success
        assert result.items == ()

    def test_unknown_process(self, deduction, bom, test_actor_id):
        with pytest.raises(InvalidProcessCodeError):
            deduction.deduct_by_bom(bom, "XX", 10, test_actor_id)

    def test_inactive_process(self, session, deduction, bom, test_actor_id):
        ProcessService(session).deactivate_process("CA", test_actor_id)

        with pytest.raises(InvalidProcessCodeError):
            deduction.deduct_by_bom(bom, "CA", 10, test_actor_id)

    def test_non_positive_production_qty(self, deduction, bom, test_actor_id):
        with pytest.raises(InvalidQuantityError) as exc_info:
            deduction.deduct_by_bom(bom, "CA", 0, test_actor_id)
        assert exc_info.value.field == "production_qty"

    def test_completion_logged_with_context(self, deduction, bom, stocked, test_actor_id, captured_logs):
        production_lot_id = uuid4()
        deduction.deduct_by_bom(bom, "CA", 1, test_actor_id, production_lot_id=production_lot_id)

        record = next(r for r in captured_logs() if r["message"] == "bom_deduction_completed")
        assert record["production_lot_id"] == str(production_lot_id)
        assert record["success"] is True


class TestInjectedResolver:

    def test_custom_resolver(self, session, mes_config, seeded_processes, material, test_actor_id):
        class FixedResolver:
            def calculate_required_materials(self, product_id, process_code, qty):
                return [
                    MaterialRequirement(material.id, material.code, material.name, qty * 3)
                ]

        service = BomDeductionService(session, config=mes_config, resolver=FixedResolver())
        service.ledger.receive(material.id, "L-1", 100, test_actor_id)

        result = service.deduct_by_bom(uuid4(), "PA", 2, test_actor_id)

        assert result.items[0].deducted_qty == Decimal("6")


# =============================================================================
# Rollback
# =============================================================================


class TestRollback:

    def test_rollback_restores_every_lot(self, deduction, bom, stocked, wire, terminal, test_actor_id):
        production_lot_id = uuid4()
        deduction.deduct_by_bom(
            bom, "CA", 10, test_actor_id, production_lot_id=production_lot_id
        )

        restored = deduction.rollback_bom_deduction(production_lot_id, test_actor_id)

        assert restored == 3
        assert stocked.available_qty(wire.id) == Decimal("20")
        assert stocked.available_qty(terminal.id) == Decimal("40")

    def test_rollback_twice_restores_nothing(self, deduction, bom, stocked, wire, test_actor_id):
        production_lot_id = uuid4()
        deduction.deduct_by_bom(bom, "CA", 4, test_actor_id, production_lot_id=production_lot_id)

        deduction.rollback_bom_deduction(production_lot_id, test_actor_id)

        assert deduction.rollback_bom_deduction(production_lot_id, test_actor_id) == 0
        assert stocked.available_qty(wire.id) == Decimal("20")

    def test_rollback_after_negative_deduction(self, deduction, bom, stocked, wire, test_actor_id):
        production_lot_id = uuid4()
        deduction.deduct_by_bom(
            bom, "CA", 20, test_actor_id, production_lot_id=production_lot_id, allow_negative=True
        )

        deduction.rollback_bom_deduction(production_lot_id, test_actor_id)

        assert stocked.available_qty(wire.id) == Decimal("20")
        assert [lot.used_qty for lot in stocked.lots_for_material(wire.id)] == [
            Decimal("0"),
            Decimal("0"),
        ]


# =============================================================================
# Availability
# =============================================================================


class TestAvailability:

    def test_enough_stock(self, deduction, bom, stocked, test_actor_id):
        report = deduction.check_bom_availability(bom, "CA", 10)

        assert report.available
        assert report.shortages == ()

    def test_shortage_reported_without_mutation(self, deduction, bom, stocked, wire):
        report = deduction.check_bom_availability(bom, "CA", 20)

        assert not report.available
        [short] = report.shortages
        assert short.material_id == wire.id
        assert short.shortage == Decimal("10")
        assert stocked.available_qty(wire.id) == Decimal("20")

    def test_process_without_material_input(self, deduction, bom):
        assert deduction.check_bom_availability(bom, "VI", 10).available
