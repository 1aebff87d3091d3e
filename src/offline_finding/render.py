"""Human- and machine-readable rendering of decoded advertisements."""

from __future__ import annotations

from offline_finding.protocol.buffer import bytes_to_hex, format_device_address
from offline_finding.protocol.fields import (
    FIELD_BATTERY_LEVEL,
    FIELD_COUNTER,
    FIELD_FULL_PUBLIC_KEY,
    FIELD_KEY_FRAGMENT,
    FIELD_KEY_HINT,
    FIELD_PAYLOAD_LENGTH,
    FIELD_RESERVED_BITS,
    FIELD_STATUS,
    FIELD_TYPE,
    PROTOCOL_DISPLAY_NAME,
    DisplayBase,
    FieldSpec,
)
from offline_finding.protocol.packet_types import DecodedRecord, ExpertNote

INDENT = "    "
RECONSTRUCTED_SUFFIX = " [Reconstructed: MAC + Fragment]"
TRUNCATED_SUFFIX = " [Truncated]"


def format_bitmask(value: int, mask: int) -> str:
    """Render an octet as a bit pattern, dots outside the mask.

    Example:
        >>> format_bitmask(0xC3, 0xC0)
        '11.. ....'

    """
    bits = "".join(
        str((value >> bit) & 1) if (mask >> bit) & 1 else "." for bit in range(7, -1, -1)
    )
    return f"{bits[:4]} {bits[4:]}"


def format_value(spec: FieldSpec, value: int) -> str:
    """Render an integer field value according to its display base."""
    if spec.value_strings is not None:
        label = spec.value_strings.get(value, "Unknown")
        return f"{label} ({value})"
    if spec.base is DisplayBase.HEX:
        return f"0x{value:02x}"
    return str(value)


def _line(depth: int, text: str) -> str:
    return f"{INDENT * depth}{text}"


def _note_lines(notes: tuple[ExpertNote, ...], field: str, depth: int) -> list[str]:
    return [
        _line(depth, f"[Expert Info ({note.severity.capitalize()}/Protocol): {note.message}]")
        for note in notes
        if note.field == field
    ]


def render_tree(record: DecodedRecord) -> list[str]:
    """Render a record as protocol tree lines, one field per line.

    Fields appear in wire order. Generated fields are wrapped in brackets and
    expert notes are nested under the field they refer to.
    """
    lines = [PROTOCOL_DISPLAY_NAME]

    if record.advertisement_type is not None:
        lines.append(_line(1, f"{FIELD_TYPE.display_name}: {format_value(FIELD_TYPE, record.advertisement_type)}"))

    if record.payload_length is not None:
        lines.append(
            _line(1, f"{FIELD_PAYLOAD_LENGTH.display_name}: {format_value(FIELD_PAYLOAD_LENGTH, record.payload_length)}"),
        )
        lines.extend(_note_lines(record.notes, FIELD_PAYLOAD_LENGTH.filter_name, 2))

    status = record.status
    if status is not None:
        lines.append(_line(1, f"{FIELD_STATUS.display_name}: {format_value(FIELD_STATUS, status.raw)}"))
        for spec, value in (
            (FIELD_BATTERY_LEVEL, int(status.battery_level)),
            (FIELD_RESERVED_BITS, status.reserved),
        ):
            mask = spec.mask if spec.mask is not None else 0xFF
            lines.append(
                _line(2, f"{format_bitmask(status.raw, mask)} = {spec.display_name}: {format_value(spec, value)}"),
            )

    fragment = record.key_fragment
    if fragment is not None:
        suffix = TRUNCATED_SUFFIX if fragment.truncated else ""
        lines.append(_line(1, f"{FIELD_KEY_FRAGMENT.display_name}: {bytes_to_hex(fragment.data)}{suffix}"))

    if record.reconstructed_key is not None:
        full_key = bytes_to_hex(record.reconstructed_key.data)
        lines.append(_line(1, f"[{FIELD_FULL_PUBLIC_KEY.display_name}: {full_key}]{RECONSTRUCTED_SUFFIX}"))
    lines.extend(_note_lines(record.notes, FIELD_FULL_PUBLIC_KEY.filter_name, 1))

    if record.key_hint is not None:
        lines.append(_line(1, f"{FIELD_KEY_HINT.display_name}: {format_value(FIELD_KEY_HINT, record.key_hint)}"))

    if record.rotation_counter is not None:
        lines.append(_line(1, f"{FIELD_COUNTER.display_name}: {format_value(FIELD_COUNTER, record.rotation_counter)}"))

    return lines


def record_to_dict(record: DecodedRecord) -> dict[str, object]:
    """Convert a record to a JSON-serialisable dict.

    Byte fields become lowercase hex strings. Absent fields are present with
    a None value so consumers can tell "absent" from "zero".
    """
    status = record.status
    fragment = record.key_fragment
    full_key = record.reconstructed_key

    return {
        "advertisement_type": record.advertisement_type,
        "payload_length": record.payload_length,
        "status": None
        if status is None
        else {
            "raw": status.raw,
            "battery_level": status.battery_level.label,
            "battery_level_value": int(status.battery_level),
            "reserved": status.reserved,
        },
        "key_fragment": None
        if fragment is None
        else {
            "hex": bytes_to_hex(fragment.data),
            "length": len(fragment),
            "truncated": fragment.truncated,
        },
        "reconstructed_key": None
        if full_key is None
        else {
            "hex": bytes_to_hex(full_key.data),
            "device_address": format_device_address(full_key.device_address),
            "generated": True,
        },
        "key_hint": record.key_hint,
        "rotation_counter": record.rotation_counter,
        "completeness": record.completeness,
        "notes": [{"field": note.field, "severity": note.severity, "message": note.message} for note in record.notes],
    }
