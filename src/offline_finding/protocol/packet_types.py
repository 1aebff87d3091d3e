"""Offline Finding advertisement constants and dataclass structures.

Wire layout of the manufacturer-specific payload (company identifier already
stripped by the host):

- Byte 0: Advertisement type (0x12 - Offline Finding)
- Byte 1: Payload length (0x19 = 25 bytes, advisory only)
- Byte 2: Status byte (battery[7:6] + reserved[5:0])
- Bytes 3-24: Public key fragment (bytes 6-27 of the EC P-224 key)
- Byte 25: Key hint (derived from the first byte of the key)
- Byte 26: Rotation counter

Full 28-byte EC P-224 public key reconstruction:
    device address (6 bytes) + key fragment (22 bytes) = full key (28 bytes)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

# Company identifier the OF dissector is registered under
APPLE_COMPANY_ID = 0x004C

# Protocol constants
OF_TYPE = 0x12
EXPECTED_PAYLOAD_LEN = 0x19
PUBLIC_KEY_FRAG_LEN = 22
KEY_TAIL_LEN = 2  # Key hint (1) + rotation counter (1)
MIN_BUFFER_LEN = 3  # Type (1) + length (1) + status (1)
DEVICE_ADDRESS_LEN = 6
FULL_PUBLIC_KEY_LEN = DEVICE_ADDRESS_LEN + PUBLIC_KEY_FRAG_LEN
STANDARD_ADVERTISEMENT_LEN = MIN_BUFFER_LEN + PUBLIC_KEY_FRAG_LEN + KEY_TAIL_LEN

# Record completeness labels
COMPLETENESS_COMPLETE = "complete"
COMPLETENESS_TRUNCATED = "truncated"
COMPLETENESS_STATUS_ONLY = "status_only"
COMPLETENESS_HEADER_ONLY = "header_only"


class BatteryLevel(IntEnum):
    """Battery level carried in bits 7-6 of the status byte."""

    FULL = 0
    MEDIUM = 1
    LOW = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class BitField:
    """Sub-field packed into a single octet, described by (shift, width).

    Attributes:
        name: Sub-field name
        shift: Position of the least significant bit
        width: Number of bits

    """

    name: str
    shift: int
    width: int

    @property
    def mask(self) -> int:
        """Mask of the sub-field in place (e.g. 0xC0 for bits 7-6)."""
        return ((1 << self.width) - 1) << self.shift

    def extract(self, value: int) -> int:
        """Return the sub-field value from an octet."""
        return (value >> self.shift) & ((1 << self.width) - 1)


STATUS_BATTERY_FIELD = BitField("battery", shift=6, width=2)
STATUS_RESERVED_FIELD = BitField("reserved", shift=0, width=6)


@dataclass(frozen=True)
class StatusByte:
    """Status byte (offset 2) with its bit-packed sub-fields.

    Attributes:
        raw: The octet as received
        battery_level: Bits 7-6 mapped to a BatteryLevel
        reserved: Bits 5-0, kept verbatim and never interpreted

    """

    raw: int
    battery_level: BatteryLevel
    reserved: int

    @classmethod
    def from_byte(cls, value: int) -> StatusByte:
        return cls(
            raw=value,
            battery_level=BatteryLevel(STATUS_BATTERY_FIELD.extract(value)),
            reserved=STATUS_RESERVED_FIELD.extract(value),
        )


@dataclass(frozen=True)
class KeyFragment:
    """Public key fragment taken verbatim from the payload.

    A fragment is truncated when the buffer ran out before the 22 fragment
    bytes plus the hint and counter bytes were available.
    """

    data: bytes
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ReconstructedPublicKey:
    """Full EC P-224 public key rebuilt from device address + key fragment.

    Generated data, never received on the wire. The address is whatever the
    host associated with the advertisement; with rotating addresses it is not
    guaranteed to be the one the key was derived with, so the result is a
    best-effort concatenation rather than a verified key.
    """

    device_address: bytes
    fragment: bytes

    def __post_init__(self) -> None:
        if len(self.device_address) != DEVICE_ADDRESS_LEN:
            error_msg = f"Device address must be {DEVICE_ADDRESS_LEN} bytes, got {len(self.device_address)}"
            raise ValueError(error_msg)
        if len(self.fragment) != PUBLIC_KEY_FRAG_LEN:
            error_msg = f"Key fragment must be {PUBLIC_KEY_FRAG_LEN} bytes, got {len(self.fragment)}"
            raise ValueError(error_msg)

    @property
    def data(self) -> bytes:
        """The 28 key bytes, address first."""
        return self.device_address + self.fragment

    def __len__(self) -> int:
        return FULL_PUBLIC_KEY_LEN


@dataclass(frozen=True)
class ExpertNote:
    """Informational finding attached to a record (not an error).

    Attributes:
        field: Filter name of the field the note refers to
        message: Human-readable description
        severity: Severity label ("note" for every finding this dissector emits)

    """

    field: str
    message: str
    severity: str = "note"


@dataclass(frozen=True)
class DecodedRecord:
    """Fields decoded from one Offline Finding advertisement.

    Optional fields are None when the buffer ran out before they could be
    read. advertisement_type and payload_length are only None when a caller
    skipped validation and passed a buffer shorter than the header.

    Attributes:
        advertisement_type: Byte 0 (0x12)
        payload_length: Byte 1, declared length (advisory)
        status: Byte 2 unpacked
        key_fragment: Bytes 3-24, or whatever remained when truncated
        reconstructed_key: Address + fragment, when an address was supplied
        key_hint: Byte 25
        rotation_counter: Byte 26
        notes: Informational findings (e.g. payload length mismatch)

    """

    advertisement_type: int | None
    payload_length: int | None
    status: StatusByte | None = None
    key_fragment: KeyFragment | None = None
    reconstructed_key: ReconstructedPublicKey | None = None
    key_hint: int | None = None
    rotation_counter: int | None = None
    notes: tuple[ExpertNote, ...] = ()

    @property
    def completeness(self) -> str:
        """Classify how much of the advertisement structure was present."""
        if self.status is None:
            return COMPLETENESS_HEADER_ONLY
        if self.key_fragment is None:
            return COMPLETENESS_STATUS_ONLY
        if self.key_fragment.truncated or self.key_hint is None or self.rotation_counter is None:
            return COMPLETENESS_TRUNCATED
        return COMPLETENESS_COMPLETE

    @property
    def payload_length_matches(self) -> bool:
        return self.payload_length == EXPECTED_PAYLOAD_LEN
