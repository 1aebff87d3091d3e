"""Offline Finding advertisement validator and decoder.

Decoding is a single linear pass over the payload. Every read goes through
safe_slice(), so a short buffer yields a record with fewer fields populated
instead of an error. The only hard rejection is validate_packet().
"""

from __future__ import annotations

import logging

from offline_finding.protocol.buffer import bytes_to_hex, safe_slice
from offline_finding.protocol.exceptions import PacketDecodeError
from offline_finding.protocol.fields import FIELD_FULL_PUBLIC_KEY, FIELD_PAYLOAD_LENGTH
from offline_finding.protocol.packet_types import (
    DEVICE_ADDRESS_LEN,
    EXPECTED_PAYLOAD_LEN,
    KEY_TAIL_LEN,
    MIN_BUFFER_LEN,
    OF_TYPE,
    PUBLIC_KEY_FRAG_LEN,
    DecodedRecord,
    ExpertNote,
    KeyFragment,
    ReconstructedPublicKey,
    StatusByte,
)

logger = logging.getLogger(__name__)


class OfflineFindingProtocol:
    """Offline Finding advertisement decoder.

    Provides static methods only. No state is kept between calls, so one
    decoder can serve any number of threads.
    """

    @staticmethod
    def validate_packet(buffer: bytes | bytearray | memoryview) -> bool:
        """Cheap pre-check that buffer holds an Offline Finding advertisement.

        Rejects buffers shorter than 3 bytes (type, length and status) and
        buffers whose first byte is not the 0x12 type code.

        Example:
            >>> OfflineFindingProtocol.validate_packet(bytes([0x12, 0x19, 0x00]))
            True
            >>> OfflineFindingProtocol.validate_packet(bytes([0x10, 0x05, 0x00]))
            False

        """
        if len(buffer) < MIN_BUFFER_LEN:
            return False
        return buffer[0] == OF_TYPE

    @staticmethod
    def rejection_reason(buffer: bytes | bytearray | memoryview) -> str | None:
        """Return why validate_packet() rejects buffer, or None if it passes."""
        if len(buffer) < MIN_BUFFER_LEN:
            return "too_short"
        if buffer[0] != OF_TYPE:
            return "wrong_type"
        return None

    @staticmethod
    def decode_status(value: int) -> StatusByte:
        """Unpack the status byte into battery level and reserved bits."""
        return StatusByte.from_byte(value)

    @staticmethod
    def reconstruct_public_key(
        device_address: bytes | None,
        fragment: bytes,
    ) -> ReconstructedPublicKey | None:
        """Concatenate device address and key fragment into the 28-byte key.

        Returns None unless the address is 6 bytes and the fragment 22 bytes;
        a partial key is never produced.
        """
        if device_address is None:
            return None
        if len(device_address) != DEVICE_ADDRESS_LEN or len(fragment) != PUBLIC_KEY_FRAG_LEN:
            return None
        return ReconstructedPublicKey(device_address=bytes(device_address), fragment=bytes(fragment))

    @staticmethod
    def decode_packet(
        buffer: bytes | bytearray | memoryview,
        device_address: bytes | None = None,
    ) -> DecodedRecord:
        """Decode every field present in an Offline Finding advertisement.

        Steps:
        1. Type (byte 0)
        2. Declared payload length (byte 1); a value other than 0x19 adds a note
        3. Status byte (byte 2); stop if absent
        4. With >= 24 bytes left: 22-byte key fragment (+ reconstructed key when
           an address is given), then key hint and rotation counter
        5. With 1-23 bytes left: the remainder as a truncated key fragment

        Precondition: validate_packet(buffer) returned True. Without it the
        field values are meaningless but no read goes past the buffer.

        Args:
            buffer: Manufacturer-specific payload, company identifier stripped
            device_address: 6-byte link-layer address of the advertiser

        Returns:
            DecodedRecord with the fields that fit in the buffer

        Example:
            >>> record = OfflineFindingProtocol.decode_packet(bytes([0x12, 0x19, 0xC3]))
            >>> record.status.battery_level.label
            'Critical'

        """
        logger.debug("Decoding advertisement (%d bytes)", len(buffer))

        notes: list[ExpertNote] = []
        offset = 0

        type_bytes = safe_slice(buffer, offset, 1)
        advertisement_type = type_bytes[0] if type_bytes is not None else None
        offset += 1

        length_bytes = safe_slice(buffer, offset, 1)
        payload_length = length_bytes[0] if length_bytes is not None else None
        offset += 1
        if payload_length is not None and payload_length != EXPECTED_PAYLOAD_LEN:
            notes.append(
                ExpertNote(
                    field=FIELD_PAYLOAD_LENGTH.filter_name,
                    message=f"Payload length {payload_length} differs from standard {EXPECTED_PAYLOAD_LEN}",
                ),
            )

        if device_address is not None and len(device_address) != DEVICE_ADDRESS_LEN:
            notes.append(
                ExpertNote(
                    field=FIELD_FULL_PUBLIC_KEY.filter_name,
                    message=(
                        f"Device address is {len(device_address)} bytes, expected {DEVICE_ADDRESS_LEN}; "
                        "key not reconstructed"
                    ),
                ),
            )
            device_address = None

        status_bytes = safe_slice(buffer, offset, 1)
        if status_bytes is None:
            return DecodedRecord(
                advertisement_type=advertisement_type,
                payload_length=payload_length,
                notes=tuple(notes),
            )
        status = OfflineFindingProtocol.decode_status(status_bytes[0])
        offset += 1

        key_fragment: KeyFragment | None = None
        reconstructed_key: ReconstructedPublicKey | None = None
        key_hint: int | None = None
        rotation_counter: int | None = None

        remaining = len(buffer) - offset
        if remaining >= PUBLIC_KEY_FRAG_LEN + KEY_TAIL_LEN:
            fragment_bytes = safe_slice(buffer, offset, PUBLIC_KEY_FRAG_LEN)
            if fragment_bytes is not None:
                key_fragment = KeyFragment(data=fragment_bytes)
                reconstructed_key = OfflineFindingProtocol.reconstruct_public_key(device_address, fragment_bytes)
                offset += PUBLIC_KEY_FRAG_LEN

            hint_bytes = safe_slice(buffer, offset, 1)
            if hint_bytes is not None:
                key_hint = hint_bytes[0]
                offset += 1

            counter_bytes = safe_slice(buffer, offset, 1)
            if counter_bytes is not None:
                rotation_counter = counter_bytes[0]
        elif remaining > 0:
            truncated_bytes = safe_slice(buffer, offset, remaining)
            if truncated_bytes is not None:
                key_fragment = KeyFragment(data=truncated_bytes, truncated=True)

        record = DecodedRecord(
            advertisement_type=advertisement_type,
            payload_length=payload_length,
            status=status,
            key_fragment=key_fragment,
            reconstructed_key=reconstructed_key,
            key_hint=key_hint,
            rotation_counter=rotation_counter,
            notes=tuple(notes),
        )

        logger.debug(
            "Decoded advertisement: battery=%s, reserved=0x%02x, fragment=%s, completeness=%s",
            status.battery_level.label,
            status.reserved,
            bytes_to_hex(key_fragment.data) if key_fragment is not None else "-",
            record.completeness,
        )

        return record

    @staticmethod
    def dissect(
        buffer: bytes | bytearray | memoryview,
        device_address: bytes | None = None,
    ) -> DecodedRecord:
        """Validate then decode, raising when the buffer is rejected.

        Raises:
            PacketDecodeError: If the buffer is too short or not type 0x12

        """
        reason = OfflineFindingProtocol.rejection_reason(buffer)
        if reason is not None:
            raise PacketDecodeError(reason, bytes(buffer))
        return OfflineFindingProtocol.decode_packet(buffer, device_address)
