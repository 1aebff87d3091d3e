"""Unit tests for manufacturer data dispatch and the Offline Finding dissector entry point."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from offline_finding.correlation import get_correlation_id
from offline_finding.dispatch import (
    DissectionResult,
    ManufacturerDissectorTable,
    dissect_offline_finding,
    manufacturer_dissector_table,
    register_offline_finding,
    split_company_id,
)
from offline_finding.protocol.exceptions import PacketDecodeError
from offline_finding.protocol.packet_types import APPLE_COMPANY_ID
from offline_finding.render import render_tree
from tests.fixtures.real_packets import (
    DEVICE_ADDRESS,
    MANUFACTURER_DATA_NEARBY,
    MANUFACTURER_DATA_OF,
    NOT_OF_NEARBY_INFO,
    NOT_OF_TOO_SHORT,
    OF_FULL_CRITICAL,
    OF_LENGTH_MISMATCH,
    OF_NO_TAIL,
)
from tests.helpers.expectations import expect_exception

# Test constants
OTHER_COMPANY_ID = 0x0006


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


@pytest.fixture
def table() -> ManufacturerDissectorTable:
    return register_offline_finding(ManufacturerDissectorTable())


class TestSplitCompanyId:
    """Tests for split_company_id()."""

    def test_little_endian(self):
        company_id, payload = split_company_id(MANUFACTURER_DATA_OF)
        assert company_id == APPLE_COMPANY_ID
        assert payload == OF_FULL_CRITICAL

    def test_identifier_only(self):
        assert split_company_id(b"\x4c\x00") == (APPLE_COMPANY_ID, b"")

    def test_too_short(self):
        error = expect_exception(split_company_id, PacketDecodeError, b"\x4c")
        assert error.reason == "too_short"


class TestDissectOfflineFinding:
    """Tests for dissect_offline_finding()."""

    def test_accepts_valid_payload(self):
        result = dissect_offline_finding(OF_FULL_CRITICAL, DEVICE_ADDRESS)

        assert isinstance(result, DissectionResult)
        assert result.protocol == "OfflineFinding"
        assert result.info == "Apple Offline Finding Advertisement"
        assert result.record.reconstructed_key is not None
        assert result.tree == tuple(render_tree(result.record))

    @pytest.mark.parametrize(
        ("payload", "reason"),
        [(NOT_OF_NEARBY_INFO, "wrong_type"), (NOT_OF_TOO_SHORT, "too_short")],
    )
    def test_declines_other_payloads(self, payload: bytes, reason: str):
        rejected_before = _sample("of_dissector_packets_total", {"outcome": "rejected"})
        reason_before = _sample("of_dissector_rejections_total", {"reason": reason})

        assert dissect_offline_finding(payload) is None

        assert _sample("of_dissector_packets_total", {"outcome": "rejected"}) == rejected_before + 1
        assert _sample("of_dissector_rejections_total", {"reason": reason}) == reason_before + 1

    def test_records_accepted_metrics(self):
        accepted_before = _sample("of_dissector_packets_total", {"outcome": "accepted"})
        complete_before = _sample("of_dissector_decoded_total", {"completeness": "complete"})
        rebuilt_before = _sample("of_dissector_key_reconstruction_total", {"outcome": "reconstructed"})

        dissect_offline_finding(OF_FULL_CRITICAL, DEVICE_ADDRESS)

        assert _sample("of_dissector_packets_total", {"outcome": "accepted"}) == accepted_before + 1
        assert _sample("of_dissector_decoded_total", {"completeness": "complete"}) == complete_before + 1
        assert (
            _sample("of_dissector_key_reconstruction_total", {"outcome": "reconstructed"}) == rebuilt_before + 1
        )

    def test_records_key_reconstruction_outcomes(self):
        no_address_before = _sample("of_dissector_key_reconstruction_total", {"outcome": "no_address"})
        no_fragment_before = _sample("of_dissector_key_reconstruction_total", {"outcome": "no_fragment"})

        dissect_offline_finding(OF_FULL_CRITICAL)
        dissect_offline_finding(OF_NO_TAIL, DEVICE_ADDRESS)

        assert _sample("of_dissector_key_reconstruction_total", {"outcome": "no_address"}) == no_address_before + 1
        assert _sample("of_dissector_key_reconstruction_total", {"outcome": "no_fragment"}) == no_fragment_before + 1

    def test_records_length_mismatch(self):
        before = _sample("of_dissector_length_mismatch_total")

        dissect_offline_finding(OF_LENGTH_MISMATCH)
        dissect_offline_finding(OF_FULL_CRITICAL)

        assert _sample("of_dissector_length_mismatch_total") == before + 1


class TestManufacturerDissectorTable:
    """Tests for ManufacturerDissectorTable."""

    def test_register_offline_finding(self, table: ManufacturerDissectorTable):
        assert APPLE_COMPANY_ID in table
        assert table.get(APPLE_COMPANY_ID) is dissect_offline_finding

    def test_register_defaults_to_module_table(self):
        assert register_offline_finding() is manufacturer_dissector_table
        assert APPLE_COMPANY_ID in manufacturer_dissector_table

    def test_dissect_routes_by_company_id(self, table: ManufacturerDissectorTable):
        result = table.dissect(APPLE_COMPANY_ID, OF_FULL_CRITICAL, DEVICE_ADDRESS)
        assert result is not None
        assert result.record.rotation_counter == 7

    def test_unregistered_company_id(self, table: ManufacturerDissectorTable):
        assert table.dissect(OTHER_COMPANY_ID, OF_FULL_CRITICAL) is None

    def test_other_apple_type_falls_through(self, table: ManufacturerDissectorTable):
        assert table.dissect_manufacturer_data(MANUFACTURER_DATA_NEARBY) is None

    def test_dissect_manufacturer_data(self, table: ManufacturerDissectorTable):
        result = table.dissect_manufacturer_data(MANUFACTURER_DATA_OF, DEVICE_ADDRESS)
        assert result is not None
        assert result.record.reconstructed_key is not None

    def test_remove(self, table: ManufacturerDissectorTable):
        table.remove(APPLE_COMPANY_ID)
        table.remove(APPLE_COMPANY_ID)
        assert APPLE_COMPANY_ID not in table
        assert table.dissect(APPLE_COMPANY_ID, OF_FULL_CRITICAL) is None

    @pytest.mark.parametrize("company_id", [-1, 0x10000])
    def test_add_rejects_out_of_range_ids(self, company_id: int):
        with pytest.raises(ValueError, match="Company identifier"):
            ManufacturerDissectorTable().add(company_id, dissect_offline_finding)

    def test_dissect_runs_in_correlation_scope(self):
        seen: list[str | None] = []

        def recording_dissector(payload: bytes, device_address: bytes | None) -> DissectionResult | None:
            seen.append(get_correlation_id())
            return None

        table = ManufacturerDissectorTable()
        table.add(OTHER_COMPANY_ID, recording_dissector)

        table.dissect(OTHER_COMPANY_ID, b"")
        table.dissect(OTHER_COMPANY_ID, b"")

        assert all(seen)
        assert seen[0] != seen[1]
        assert get_correlation_id() is None
