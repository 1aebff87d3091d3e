"""Display field definitions for the Offline Finding protocol tree.

Each decoded value is exposed under a dotted filter name so hosts can
display and filter on it. Sub-fields of the status byte carry the bitmask
they are read from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from offline_finding.protocol.buffer import bytes_to_hex
from offline_finding.protocol.packet_types import (
    STATUS_BATTERY_FIELD,
    STATUS_RESERVED_FIELD,
    BatteryLevel,
    DecodedRecord,
)

PROTOCOL_FILTER_NAME = "offlineFinding"
PROTOCOL_DISPLAY_NAME = "Apple Offline Finding Protocol"
PROTOCOL_SHORT_NAME = "OfflineFinding"
PROTOCOL_INFO = "Apple Offline Finding Advertisement"


class DisplayBase(Enum):
    """How a field value is rendered."""

    HEX = "hex"
    DEC = "dec"
    BYTES = "bytes"
    STRING = "string"


@dataclass(frozen=True)
class FieldSpec:
    """Protocol tree field.

    Attributes:
        filter_name: Dotted name used for display filters
        display_name: Label shown in the protocol tree
        base: Display base
        mask: Bitmask within the octet, for bit-packed sub-fields
        value_strings: Labels for enumerated values

    """

    filter_name: str
    display_name: str
    base: DisplayBase
    mask: int | None = None
    value_strings: dict[int, str] | None = None


BATTERY_LEVEL_STRINGS: dict[int, str] = {level.value: level.label for level in BatteryLevel}

FIELD_TYPE = FieldSpec("offlineFinding.type", "Advertisement Type", DisplayBase.HEX)
FIELD_PAYLOAD_LENGTH = FieldSpec("offlineFinding.payloadLength", "Payload Length", DisplayBase.DEC)
FIELD_STATUS = FieldSpec("offlineFinding.status", "Status Byte", DisplayBase.HEX)
FIELD_BATTERY_LEVEL = FieldSpec(
    "offlineFinding.status.battery",
    "Battery Level",
    DisplayBase.DEC,
    mask=STATUS_BATTERY_FIELD.mask,
    value_strings=BATTERY_LEVEL_STRINGS,
)
FIELD_RESERVED_BITS = FieldSpec(
    "offlineFinding.status.reserved",
    "Reserved Bits",
    DisplayBase.HEX,
    mask=STATUS_RESERVED_FIELD.mask,
)
FIELD_KEY_FRAGMENT = FieldSpec("offlineFinding.keyFragment", "Public Key Fragment", DisplayBase.BYTES)
FIELD_FULL_PUBLIC_KEY = FieldSpec("offlineFinding.fullPublicKey", "Full EC P-224 Public Key", DisplayBase.STRING)
FIELD_KEY_HINT = FieldSpec("offlineFinding.keyHint", "Key Hint", DisplayBase.HEX)
FIELD_COUNTER = FieldSpec("offlineFinding.counter", "Rotation Counter", DisplayBase.DEC)

FIELDS: tuple[FieldSpec, ...] = (
    FIELD_TYPE,
    FIELD_PAYLOAD_LENGTH,
    FIELD_STATUS,
    FIELD_BATTERY_LEVEL,
    FIELD_RESERVED_BITS,
    FIELD_KEY_FRAGMENT,
    FIELD_FULL_PUBLIC_KEY,
    FIELD_KEY_HINT,
    FIELD_COUNTER,
)

FIELDS_BY_NAME: dict[str, FieldSpec] = {spec.filter_name: spec for spec in FIELDS}


def field_values(record: DecodedRecord) -> dict[str, object]:
    """Flatten a record into {filter_name: value} for filtering.

    Fields absent from the record are omitted. Byte fields are bytes, the
    reconstructed key is its lowercase hex string and the rest are ints.
    """
    values: dict[str, object] = {PROTOCOL_FILTER_NAME: True}

    if record.advertisement_type is not None:
        values[FIELD_TYPE.filter_name] = record.advertisement_type
    if record.payload_length is not None:
        values[FIELD_PAYLOAD_LENGTH.filter_name] = record.payload_length
    if record.status is not None:
        values[FIELD_STATUS.filter_name] = record.status.raw
        values[FIELD_BATTERY_LEVEL.filter_name] = int(record.status.battery_level)
        values[FIELD_RESERVED_BITS.filter_name] = record.status.reserved
    if record.key_fragment is not None:
        values[FIELD_KEY_FRAGMENT.filter_name] = record.key_fragment.data
    if record.reconstructed_key is not None:
        values[FIELD_FULL_PUBLIC_KEY.filter_name] = bytes_to_hex(record.reconstructed_key.data)
    if record.key_hint is not None:
        values[FIELD_KEY_HINT.filter_name] = record.key_hint
    if record.rotation_counter is not None:
        values[FIELD_COUNTER.filter_name] = record.rotation_counter

    return values
