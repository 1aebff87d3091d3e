"""Custom exception types for Offline Finding dissection errors.

The core validate/decode pair never raises for buffer content: short buffers
degrade the decoded record instead. These exceptions are raised at the edges,
by the host-facing dissect() entry point when validation rejects a buffer and
by the device address helpers when an address cannot be parsed.
"""

from __future__ import annotations


class OfflineFindingError(Exception):
    """Base exception for all Offline Finding dissector errors."""


class PacketDecodeError(OfflineFindingError):
    """Buffer is not an Offline Finding advertisement.

    Attributes:
        reason: Specific rejection reason ("too_short", "wrong_type")
        data_preview: First 16 bytes of the buffer

    """

    def __init__(self, reason: str, data: bytes = b""):
        self.reason = reason
        self.data_preview = bytes(data[:16]) if data else b""
        super().__init__(f"Packet decode failed: {reason}")


class DeviceAddressError(OfflineFindingError):
    """Device address cannot be parsed into exactly 6 octets.

    Attributes:
        reason: Specific failure reason ("invalid_length", "invalid_format")
        value: The rejected input, as given

    """

    def __init__(self, reason: str, value: object = None):
        self.reason = reason
        self.value = value
        super().__init__(f"Invalid device address: {reason}")
