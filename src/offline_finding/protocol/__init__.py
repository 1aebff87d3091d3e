"""Offline Finding protocol package - advertisement validation and decoding.

Public API:
- Protocol constants (OF_TYPE, EXPECTED_PAYLOAD_LEN, ...)
- Record dataclasses (DecodedRecord, StatusByte, KeyFragment, ...)
- Validator/decoder (OfflineFindingProtocol)
- Bounds-safe accessor and hex helpers
"""

from offline_finding.protocol.advertisement import OfflineFindingProtocol
from offline_finding.protocol.buffer import (
    bytes_to_hex,
    format_device_address,
    parse_device_address,
    parse_hex_payload,
    safe_slice,
)
from offline_finding.protocol.exceptions import (
    DeviceAddressError,
    OfflineFindingError,
    PacketDecodeError,
)
from offline_finding.protocol.packet_types import (
    APPLE_COMPANY_ID,
    DEVICE_ADDRESS_LEN,
    EXPECTED_PAYLOAD_LEN,
    FULL_PUBLIC_KEY_LEN,
    MIN_BUFFER_LEN,
    OF_TYPE,
    PUBLIC_KEY_FRAG_LEN,
    BatteryLevel,
    BitField,
    DecodedRecord,
    ExpertNote,
    KeyFragment,
    ReconstructedPublicKey,
    StatusByte,
)

__all__ = [
    # Validator/decoder
    "OfflineFindingProtocol",
    # Constants
    "APPLE_COMPANY_ID",
    "DEVICE_ADDRESS_LEN",
    "EXPECTED_PAYLOAD_LEN",
    "FULL_PUBLIC_KEY_LEN",
    "MIN_BUFFER_LEN",
    "OF_TYPE",
    "PUBLIC_KEY_FRAG_LEN",
    # Dataclasses
    "BatteryLevel",
    "BitField",
    "DecodedRecord",
    "ExpertNote",
    "KeyFragment",
    "ReconstructedPublicKey",
    "StatusByte",
    # Helpers
    "bytes_to_hex",
    "format_device_address",
    "parse_device_address",
    "parse_hex_payload",
    "safe_slice",
    # Exceptions
    "DeviceAddressError",
    "OfflineFindingError",
    "PacketDecodeError",
]
