"""Manufacturer-specific data dispatch for advertisement dissectors.

Hosts route the payload of a manufacturer-specific AD structure to a
dissector by its 16-bit company identifier. The Offline Finding dissector is
registered under Apple's identifier once at process start with
register_offline_finding(); after that, every payload goes through
ManufacturerDissectorTable.dissect().
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from offline_finding import __version__
from offline_finding.correlation import correlation_context
from offline_finding.logging_abstraction import get_logger
from offline_finding.metrics import (
    record_decoded,
    record_key_reconstruction,
    record_length_mismatch,
    record_packet,
    record_rejection,
)
from offline_finding.protocol.advertisement import OfflineFindingProtocol
from offline_finding.protocol.buffer import bytes_to_hex
from offline_finding.protocol.exceptions import PacketDecodeError
from offline_finding.protocol.fields import PROTOCOL_INFO, PROTOCOL_SHORT_NAME
from offline_finding.protocol.packet_types import APPLE_COMPANY_ID, DecodedRecord
from offline_finding.render import render_tree

__all__ = [
    "COMPANY_ID_LEN",
    "DissectionResult",
    "Dissector",
    "ManufacturerDissectorTable",
    "dissect_offline_finding",
    "manufacturer_dissector_table",
    "register_offline_finding",
    "split_company_id",
]

logger = get_logger(__name__)

COMPANY_ID_LEN = 2
MAX_COMPANY_ID = 0xFFFF


@dataclass(frozen=True)
class DissectionResult:
    """Outcome of a dissector accepting a payload.

    Attributes:
        protocol: Short protocol name for the packet list
        info: One-line summary for the packet list
        record: Decoded fields
        tree: Rendered protocol tree lines

    """

    protocol: str
    info: str
    record: DecodedRecord
    tree: tuple[str, ...]


Dissector = Callable[[bytes, bytes | None], DissectionResult | None]


def split_company_id(data: bytes) -> tuple[int, bytes]:
    """Split raw manufacturer-specific data into (company_id, payload).

    The company identifier is the first two bytes, little-endian.

    Raises:
        PacketDecodeError: If data is shorter than the company identifier

    """
    if len(data) < COMPANY_ID_LEN:
        error_reason = "too_short"
        raise PacketDecodeError(error_reason, data)
    company_id = int.from_bytes(data[:COMPANY_ID_LEN], byteorder="little")
    return company_id, bytes(data[COMPANY_ID_LEN:])


def _key_reconstruction_outcome(record: DecodedRecord) -> str:
    if record.key_fragment is None or record.key_fragment.truncated:
        return "no_fragment"
    if record.reconstructed_key is None:
        return "no_address"
    return "reconstructed"


def dissect_offline_finding(payload: bytes, device_address: bytes | None = None) -> DissectionResult | None:
    """Dissect an Apple manufacturer payload as an Offline Finding advertisement.

    Returns None when the validator rejects the payload, so other Apple
    advertisement types fall through untouched.
    """
    reason = OfflineFindingProtocol.rejection_reason(payload)
    if reason is not None:
        record_packet("rejected")
        record_rejection(reason)
        logger.debug(
            "Payload is not an Offline Finding advertisement",
            extra={"reason": reason, "length": len(payload)},
        )
        return None

    record = OfflineFindingProtocol.decode_packet(payload, device_address)

    record_packet("accepted")
    record_decoded(record.completeness)
    record_key_reconstruction(_key_reconstruction_outcome(record))
    if record.payload_length is not None and not record.payload_length_matches:
        record_length_mismatch()

    logger.debug(
        "Dissected Offline Finding advertisement",
        extra={
            "completeness": record.completeness,
            "battery": record.status.battery_level.label if record.status else None,
            "fragment": bytes_to_hex(record.key_fragment.data) if record.key_fragment else None,
            "notes": len(record.notes),
        },
    )

    return DissectionResult(
        protocol=PROTOCOL_SHORT_NAME,
        info=PROTOCOL_INFO,
        record=record,
        tree=tuple(render_tree(record)),
    )


class ManufacturerDissectorTable:
    """Dissectors keyed by 16-bit Bluetooth company identifier."""

    def __init__(self) -> None:
        self._dissectors: dict[int, Dissector] = {}

    def add(self, company_id: int, dissector: Dissector) -> None:
        """Register dissector for company_id, replacing any previous one.

        Raises:
            ValueError: If company_id is not a 16-bit value

        """
        if not 0 <= company_id <= MAX_COMPANY_ID:
            error_msg = f"Company identifier must be 0x0000-0xFFFF, got {company_id:#x}"
            raise ValueError(error_msg)
        self._dissectors[company_id] = dissector

    def remove(self, company_id: int) -> None:
        self._dissectors.pop(company_id, None)

    def get(self, company_id: int) -> Dissector | None:
        return self._dissectors.get(company_id)

    def __contains__(self, company_id: object) -> bool:
        return company_id in self._dissectors

    def dissect(
        self,
        company_id: int,
        payload: bytes,
        device_address: bytes | None = None,
    ) -> DissectionResult | None:
        """Hand payload to the dissector registered for company_id.

        Returns None when no dissector is registered or the dissector
        declines the payload.
        """
        dissector = self._dissectors.get(company_id)
        if dissector is None:
            logger.debug("No dissector registered", extra={"company_id": f"0x{company_id:04x}"})
            return None

        with correlation_context():
            return dissector(payload, device_address)

    def dissect_manufacturer_data(
        self,
        data: bytes,
        device_address: bytes | None = None,
    ) -> DissectionResult | None:
        """Dissect manufacturer-specific data that still carries its company identifier.

        Raises:
            PacketDecodeError: If data is shorter than the company identifier

        """
        company_id, payload = split_company_id(data)
        return self.dissect(company_id, payload, device_address)


manufacturer_dissector_table = ManufacturerDissectorTable()


def register_offline_finding(table: ManufacturerDissectorTable | None = None) -> ManufacturerDissectorTable:
    """Register the Offline Finding dissector under Apple's company identifier.

    Called once at process start. Registers into the module-level table
    unless another table is given, and returns the table used.
    """
    target = table if table is not None else manufacturer_dissector_table
    target.add(APPLE_COMPANY_ID, dissect_offline_finding)
    logger.info(
        "Apple Offline Finding Protocol dissector loaded (v%s)",
        __version__,
        extra={"company_id": f"0x{APPLE_COMPANY_ID:04x}"},
    )
    return target
