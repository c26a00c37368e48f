"""
Integration tests for barcode-driven stock inputs.
"""

from decimal import Decimal

import pytest

from mes_services.barcode_inputs import BarcodeInputService, HqBarcodeDecoder, MaterialScan


class TestHqBarcodeDecoder:

    @pytest.fixture
    def decoder(self):
        return HqBarcodeDecoder()

    def test_pqs_label(self, decoder):
        scan = decoder.decode_material("P682028Q20000S250922V1")

        assert scan.is_valid
        assert scan.material_code == "682028"
        assert scan.quantity == Decimal("20000")
        assert scan.lot_number == "P682028Q20000S250922V1"

    def test_pqs_label_without_version(self, decoder):
        scan = decoder.decode_material("PAB-12Q50SLOT7")
        assert scan.material_code == "AB-12"
        assert scan.quantity == Decimal("50")

    def test_colon_label(self, decoder):
        scan = decoder.decode_material("KH1200030-22:12000:50603KDR")

        assert scan.material_code == "1200030-22"
        assert scan.quantity == Decimal("12000")
        assert scan.lot_number == "KH1200030-22:12000:50603KDR"

    def test_colon_label_lowercase_prefix(self, decoder):
        scan = decoder.decode_material("kh1200030-22:12000:50603KDR")

        assert scan.material_code == "1200030-22"
        assert scan.quantity == Decimal("12000")

    def test_colon_label_without_numeric_quantity(self, decoder):
        assert decoder.decode_material("KH1200:ABC").quantity is None

    @pytest.mark.parametrize("barcode", ["", "   ", "GARBAGE"])
    def test_invalid(self, decoder, barcode):
        assert not decoder.decode_material(barcode).is_valid


class TestResolveInputs:

    def test_resolution_keeps_scan_order(self, session, create_material):
        first = create_material("682028")
        second = create_material("1200030-22")
        service = BarcodeInputService(session)

        resolution = service.resolve_material_inputs(
            ["KH1200030-22:100:A", "P682028Q20S1", "P999999Q1S1", "NONSENSE"]
        )

        assert [i.material_id for i in resolution.inputs] == [second.id, first.id]
        assert resolution.inputs[1].quantity == Decimal("20")
        assert resolution.unresolved == ("P999999Q1S1", "NONSENSE")

    def test_custom_decoder(self, session, material):
        class PlainDecoder:
            def decode_material(self, barcode):
                code, lot = barcode.split("/")
                return MaterialScan(raw=barcode, material_code=code, lot_number=lot)

        resolution = BarcodeInputService(session, decoder=PlainDecoder()).resolve_material_inputs(
            ["WIRE-001/L-9"]
        )

        assert resolution.inputs[0].lot_number == "L-9"
        assert resolution.inputs[0].quantity is None


class TestReceiveByBarcode:

    @pytest.fixture
    def service(self, session):
        return BarcodeInputService(session)

    def test_label_quantity_wins(self, service, create_material, test_actor_id):
        material = create_material("682028")

        outcome = service.receive_by_barcode(
            "P682028Q200S250922V1", test_actor_id, quantity=5, location="RACK-1"
        )

        assert outcome.success
        assert outcome.material_id == material.id
        assert outcome.lot.quantity == Decimal("200")
        assert outcome.lot.location == "RACK-1"

    def test_fallback_quantity(self, service, create_material, test_actor_id):
        create_material("1200")
        outcome = service.receive_by_barcode("KH1200:X:LOT", test_actor_id, quantity="30")

        assert outcome.success
        assert outcome.lot.quantity == Decimal("30")

    def test_missing_quantity(self, service, create_material, test_actor_id):
        create_material("1200")
        outcome = service.receive_by_barcode("KH1200:X:LOT", test_actor_id)

        assert not outcome.success
        assert "no quantity" in outcome.error

    def test_non_numeric_fallback_quantity(self, service, create_material, test_actor_id):
        create_material("1200")
        outcome = service.receive_by_barcode("KH1200:X:LOT", test_actor_id, quantity="abc")

        assert not outcome.success
        assert "not a number" in outcome.error

    def test_invalid_label(self, service, test_actor_id):
        outcome = service.receive_by_barcode("GARBAGE", test_actor_id)

        assert not outcome.success
        assert outcome.material_id is None

    def test_unknown_material(self, service, test_actor_id):
        outcome = service.receive_by_barcode("P424242Q1S1", test_actor_id)

        assert not outcome.success
        assert "424242" in outcome.error

    def test_duplicate_label(self, service, create_material, test_actor_id):
        create_material("682028")
        service.receive_by_barcode("P682028Q200S1", test_actor_id)

        outcome = service.receive_by_barcode("P682028Q200S1", test_actor_id)

        assert not outcome.success
        assert "already received" in outcome.error
