"""Unit tests for display field definitions."""

from __future__ import annotations

from offline_finding.protocol.advertisement import OfflineFindingProtocol
from offline_finding.protocol.fields import (
    BATTERY_LEVEL_STRINGS,
    FIELD_BATTERY_LEVEL,
    FIELD_RESERVED_BITS,
    FIELDS,
    FIELDS_BY_NAME,
    PROTOCOL_FILTER_NAME,
    field_values,
)
from tests.fixtures.real_packets import DEVICE_ADDRESS, FRAGMENT_SEQUENTIAL, OF_FULL_CRITICAL, OF_STATUS_ONLY

EXPECTED_FILTER_NAMES = {
    "offlineFinding.type",
    "offlineFinding.payloadLength",
    "offlineFinding.status",
    "offlineFinding.status.battery",
    "offlineFinding.status.reserved",
    "offlineFinding.keyFragment",
    "offlineFinding.fullPublicKey",
    "offlineFinding.keyHint",
    "offlineFinding.counter",
}


def test_filter_names_are_unique_and_namespaced():
    assert {spec.filter_name for spec in FIELDS} == EXPECTED_FILTER_NAMES
    assert len(FIELDS_BY_NAME) == len(FIELDS)
    assert all(name.startswith(f"{PROTOCOL_FILTER_NAME}.") for name in FIELDS_BY_NAME)


def test_status_subfield_masks():
    assert FIELD_BATTERY_LEVEL.mask == 0xC0
    assert FIELD_RESERVED_BITS.mask == 0x3F


def test_battery_value_strings():
    assert BATTERY_LEVEL_STRINGS == {0: "Full", 1: "Medium", 2: "Low", 3: "Critical"}


def test_field_values_full_frame():
    """Every field of a complete frame is exposed under its filter name."""
    record = OfflineFindingProtocol.decode_packet(OF_FULL_CRITICAL, DEVICE_ADDRESS)

    values = field_values(record)

    assert values[PROTOCOL_FILTER_NAME] is True
    assert values["offlineFinding.type"] == 0x12
    assert values["offlineFinding.status.battery"] == 3
    assert values["offlineFinding.status.reserved"] == 0x03
    assert values["offlineFinding.keyFragment"] == FRAGMENT_SEQUENTIAL
    assert values["offlineFinding.fullPublicKey"] == (DEVICE_ADDRESS + FRAGMENT_SEQUENTIAL).hex()
    assert values["offlineFinding.keyHint"] == 0xAB
    assert values["offlineFinding.counter"] == 7


def test_field_values_omit_absent_fields():
    record = OfflineFindingProtocol.decode_packet(OF_STATUS_ONLY)

    values = field_values(record)

    assert "offlineFinding.status" in values
    assert "offlineFinding.keyFragment" not in values
    assert "offlineFinding.fullPublicKey" not in values
    assert "offlineFinding.counter" not in values
