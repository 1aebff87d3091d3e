"""Bounds-safe buffer access and byte/hex helpers."""

from __future__ import annotations

import re

from offline_finding.protocol.exceptions import DeviceAddressError
from offline_finding.protocol.packet_types import DEVICE_ADDRESS_LEN

# 00:00:00:00:00:00, 00-00-00-00-00-00, 00_00_00_00_00_00
_SEPARATED_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{2}([:\-_])(?:[0-9A-Fa-f]{2}\1){4}[0-9A-Fa-f]{2}$")
# 0000.0000.0000
_DOTTED_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{4}\.[0-9A-Fa-f]{4}\.[0-9A-Fa-f]{4}$")
# 000000000000
_PLAIN_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{12}$")

_HEX_SEPARATORS_RE = re.compile(r"[\s:\-_.]")


def safe_slice(buffer: bytes | bytearray | memoryview, offset: int, length: int) -> bytes | None:
    """Return buffer[offset:offset + length], or None when out of range.

    An out-of-range read is reported as an absent field instead of an error,
    which lets the decoder stop quietly on truncated advertisements.

    Example:
        >>> safe_slice(b"\\x12\\x19\\x00", 2, 1)
        b'\\x00'
        >>> safe_slice(b"\\x12\\x19", 2, 1) is None
        True

    """
    if offset < 0 or length < 0:
        return None
    if offset + length > len(buffer):
        return None
    return bytes(buffer[offset : offset + length])


def bytes_to_hex(data: bytes | bytearray, sep: str = "") -> str:
    """Lowercase hex string, two digits per byte."""
    return bytes(data).hex(sep) if sep else bytes(data).hex()


def parse_hex_payload(text: str) -> bytes:
    """Parse a hex dump such as "12 19 c3 ..." or "1219c3...".

    Whitespace, colons, dashes, underscores and dots between digits are
    ignored; an optional "0x" prefix is accepted.

    Raises:
        ValueError: If the text is not an even-length run of hex digits

    """
    cleaned = text.strip()
    if cleaned[:2].lower() == "0x":
        cleaned = cleaned[2:]
    cleaned = _HEX_SEPARATORS_RE.sub("", cleaned)
    if not cleaned:
        error_msg = "empty hex payload"
        raise ValueError(error_msg)
    return bytes.fromhex(cleaned)


def parse_device_address(value: str | bytes | bytearray) -> bytes:
    """Parse a 6-octet BLE device address.

    Text forms are read in display order, so "AA:BB:CC:DD:EE:FF" becomes
    bytes AA BB CC DD EE FF. Binary input must already be 6 octets long.

    Raises:
        DeviceAddressError: If the value is not a 6-octet address

    """
    if isinstance(value, bytes | bytearray):
        if len(value) != DEVICE_ADDRESS_LEN:
            error_reason = "invalid_length"
            raise DeviceAddressError(error_reason, value)
        return bytes(value)

    text = value.strip()
    if _SEPARATED_ADDRESS_RE.match(text):
        digits = text[0:2] + text[3:5] + text[6:8] + text[9:11] + text[12:14] + text[15:17]
    elif _DOTTED_ADDRESS_RE.match(text):
        digits = text.replace(".", "")
    elif _PLAIN_ADDRESS_RE.match(text):
        digits = text
    else:
        error_reason = "invalid_format"
        raise DeviceAddressError(error_reason, value)
    return bytes.fromhex(digits)


def format_device_address(address: bytes) -> str:
    """Format a device address as AA:BB:CC:DD:EE:FF."""
    return address.hex(":").upper()
