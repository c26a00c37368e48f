"""
Tests for the Routing Store (RoutingService + RoutingSelector).

Covers:
- Full replace semantics and seq assignment
- Input validation (empty, unknown, inactive, duplicate codes)
- Single-entry edits, clear and copy
- Ordering by seq regardless of insertion order
"""

from uuid import uuid4

import pytest

from mes_kernel.exceptions import (
    DuplicateRoutingEntryError,
    EmptyRoutingInputError,
    InvalidProcessCodeError,
    NothingToCopyError,
    RoutingEntryNotFoundError,
)
from mes_kernel.selectors.routing_selector import RoutingSelector
from mes_kernel.services.process_service import ProcessService
from mes_kernel.services.routing_service import RoutingService


@pytest.fixture
def service(session, seeded_processes):
    return RoutingService(session)


@pytest.fixture
def selector(session):
    return RoutingSelector(session)


class TestSetRouting:

    def test_codes_and_seq(self, service, selector, product_id, test_actor_id):
        steps = service.set_routing(product_id, ["ca", "Pa", "CI"], test_actor_id)

        assert [s.process_code for s in steps] == ["CA", "PA", "CI"]
        assert [s.seq for s in steps] == [10, 20, 30]
        assert all(s.is_required for s in steps)
        assert selector.get_process_codes(product_id) == ["CA", "PA", "CI"]

    def test_input_order_wins_over_catalog_order(self, service, product_id, test_actor_id):
        steps = service.set_routing(product_id, ["PA", "CA", "VI"], test_actor_id)
        assert [s.process_code for s in steps] == ["PA", "CA", "VI"]

    def test_replace_removes_previous_entries(self, service, selector, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "MC", "PA", "CI", "VI"], test_actor_id)
        service.set_routing(product_id, ["MC", "VI"], test_actor_id)

        assert selector.count_routings(product_id) == 2
        assert selector.get_process_codes(product_id) == ["MC", "VI"]

    def test_replace_can_reuse_codes(self, service, selector, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "PA", "CI"], test_actor_id)
        steps = service.set_routing(product_id, ["PA", "CA", "CI"], test_actor_id)

        assert [s.process_code for s in steps] == ["PA", "CA", "CI"]

    def test_custom_seq_step(self, session, seeded_processes, product_id, test_actor_id):
        steps = RoutingService(session, seq_step=100).set_routing(
            product_id, ["CA", "VI"], test_actor_id
        )
        assert [s.seq for s in steps] == [100, 200]

    def test_products_are_independent(self, service, selector, test_actor_id):
        a, b = uuid4(), uuid4()
        service.set_routing(a, ["CA", "VI"], test_actor_id)
        service.set_routing(b, ["MC", "PA", "CI"], test_actor_id)

        assert selector.count_routings(a) == 2
        assert selector.count_routings(b) == 3

    def test_empty_input(self, service, product_id, test_actor_id):
        with pytest.raises(EmptyRoutingInputError):
            service.set_routing(product_id, [], test_actor_id)

    def test_unknown_code(self, service, selector, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "VI"], test_actor_id)

        with pytest.raises(InvalidProcessCodeError) as exc_info:
            service.set_routing(product_id, ["CA", "XX"], test_actor_id)

        assert exc_info.value.process_code == "XX"
        assert selector.get_process_codes(product_id) == ["CA", "VI"]

    def test_inactive_code(self, session, service, product_id, test_actor_id):
        ProcessService(session).deactivate_process("HS", test_actor_id)

        with pytest.raises(InvalidProcessCodeError):
            service.set_routing(product_id, ["CA", "HS"], test_actor_id)

    def test_duplicate_code_in_input(self, service, product_id, test_actor_id):
        with pytest.raises(DuplicateRoutingEntryError):
            service.set_routing(product_id, ["CA", "ca"], test_actor_id)

    def test_update_routing_is_full_replace(self, service, selector, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "PA", "CI"], test_actor_id)
        service.update_routing(product_id, ["MC"], test_actor_id)

        assert selector.get_process_codes(product_id) == ["MC"]

    def test_replace_logged(self, service, product_id, test_actor_id, captured_logs):
        service.set_routing(product_id, ["CA", "VI"], test_actor_id)

        record = next(r for r in captured_logs() if r["message"] == "routing_replaced")
        assert record["process_codes"] == ["CA", "VI"]
        assert record["created_count"] == 2


class TestSingleEntries:

    def test_create_single_entry(self, service, selector, product_id, test_actor_id):
        step = service.create_single_entry(product_id, "pa", 25, test_actor_id, is_required=False)

        assert step.process_code == "PA"
        assert step.seq == 25
        assert not step.is_required
        assert step.has_material_input

    def test_create_single_entry_validates_code(self, service, product_id, test_actor_id):
        with pytest.raises(InvalidProcessCodeError):
            service.create_single_entry(product_id, "XX", 10, test_actor_id)

    def test_create_single_entry_rejects_duplicate(self, service, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "PA"], test_actor_id)

        with pytest.raises(DuplicateRoutingEntryError):
            service.create_single_entry(product_id, "PA", 50, test_actor_id)

    def test_get_routing_orders_by_seq(self, service, selector, product_id, test_actor_id):
        service.create_single_entry(product_id, "VI", 50, test_actor_id)
        service.create_single_entry(product_id, "CA", 10, test_actor_id)
        service.create_single_entry(product_id, "PA", 30, test_actor_id)

        assert selector.get_process_codes(product_id) == ["CA", "PA", "VI"]

    def test_update_entry(self, service, selector, product_id, test_actor_id):
        steps = service.set_routing(product_id, ["CA", "PA", "CI"], test_actor_id)

        updated = service.update_entry(steps[0].id, test_actor_id, seq=35, is_required=False)

        assert updated.seq == 35
        assert not updated.is_required
        assert selector.get_process_codes(product_id) == ["PA", "CI", "CA"]

    def test_update_missing_entry(self, service, test_actor_id):
        with pytest.raises(RoutingEntryNotFoundError):
            service.update_entry(uuid4(), test_actor_id, seq=10)

    def test_delete_entry(self, service, selector, product_id, test_actor_id):
        steps = service.set_routing(product_id, ["CA", "PA", "CI"], test_actor_id)

        service.delete_entry(steps[1].id)

        assert selector.get_process_codes(product_id) == ["CA", "CI"]

    def test_delete_missing_entry(self, service):
        with pytest.raises(RoutingEntryNotFoundError):
            service.delete_entry(uuid4())


class TestClearAndCopy:

    def test_clear_returns_count(self, service, selector, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "PA", "CI"], test_actor_id)

        assert service.clear_routing(product_id) == 3
        assert not selector.has_routing(product_id)

    def test_clear_empty(self, service, product_id):
        assert service.clear_routing(product_id) == 0

    def test_copy_routing(self, service, selector, test_actor_id):
        source, target = uuid4(), uuid4()
        service.set_routing(source, ["CA", "PA", "CI"], test_actor_id)
        service.create_single_entry(source, "VI", 45, test_actor_id, is_required=False)
        service.set_routing(target, ["MC", "VI"], test_actor_id)

        copied = service.copy_routing(source, target, test_actor_id)

        assert [(s.process_code, s.seq, s.is_required) for s in copied] == [
            ("CA", 10, True),
            ("PA", 20, True),
            ("CI", 30, True),
            ("VI", 45, False),
        ]
        assert selector.count_routings(source) == 4

    def test_copy_from_empty_source(self, service, selector, test_actor_id):
        target = uuid4()
        service.set_routing(target, ["MC", "VI"], test_actor_id)

        with pytest.raises(NothingToCopyError):
            service.copy_routing(uuid4(), target, test_actor_id)
        assert selector.count_routings(target) == 2


class TestRoutingQueries:

    def test_capability_views(self, service, selector, product_id, test_actor_id):
        service.set_routing(product_id, ["CA", "MS", "PA", "CI", "VI"], test_actor_id)

        assert [s.process_code for s in selector.material_input_entries(product_id)] == ["CA", "PA"]
        assert [s.process_code for s in selector.inspection_entries(product_id)] == ["CI", "VI"]
        assert len(selector.required_entries(product_id)) == 5

    def test_process_usage(self, service, selector, test_actor_id):
        a, b = uuid4(), uuid4()
        service.set_routing(a, ["CA", "VI"], test_actor_id)
        service.set_routing(b, ["MC", "VI"], test_actor_id)

        assert selector.count_by_process("vi") == 2
        assert set(selector.products_using_process("VI")) == {a, b}

    def test_get_entry(self, service, selector, product_id, test_actor_id):
        steps = service.set_routing(product_id, ["CA"], test_actor_id)

        assert selector.get_entry(steps[0].id).process_name == "Auto cut & crimp"
        assert selector.get_entry(uuid4()) is None
