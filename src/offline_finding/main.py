"""Command-line front end for the Offline Finding dissector.

Usage:
    # Dissect one payload (company identifier already stripped)
    offline-finding 1219c3<22 bytes>ab07 --address AA:BB:CC:DD:EE:FF

    # Payloads that still start with the 4c00 company identifier
    offline-finding --company-id 4c001219c3...

    # Capture file: one "HEX [AA:BB:CC:DD:EE:FF]" per line, '#' starts a comment
    offline-finding --file captures/airtags.txt --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

import dotenv

from offline_finding import __version__, const
from offline_finding.dispatch import ManufacturerDissectorTable, register_offline_finding
from offline_finding.logging_abstraction import get_logger, set_namespace_level
from offline_finding.metrics import start_metrics_server
from offline_finding.protocol.buffer import parse_device_address, parse_hex_payload
from offline_finding.protocol.exceptions import DeviceAddressError, PacketDecodeError
from offline_finding.protocol.packet_types import APPLE_COMPANY_ID
from offline_finding.render import record_to_dict

logger = get_logger(__name__)

# Protocol modules log through plain stdlib loggers; give their records a handler
protocol_logger = get_logger("offline_finding.protocol")

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2


@dataclass(frozen=True)
class CaptureEntry:
    """One advertisement to dissect, as read from the command line or a file."""

    source: str
    payload_hex: str
    address: str | None = None


# Bare 12-digit hex is indistinguishable from a 6-byte payload group
_ADDRESS_SEPARATORS = frozenset(":-_.")


def _is_device_address(token: str) -> bool:
    if not _ADDRESS_SEPARATORS.intersection(token):
        return False
    try:
        parse_device_address(token)
    except DeviceAddressError:
        return False
    return True


def parse_capture_lines(lines: Sequence[str], source: str) -> Iterator[CaptureEntry]:
    """Parse capture file lines of the form "HEX [ADDRESS]".

    Blank lines and text after '#' are ignored. The address, when present,
    is the last whitespace-separated token that parses as a separated device
    address (AA:BB:CC:DD:EE:FF, AA-BB-..., AA_BB_..., AABB.CCDD.EEFF);
    everything before it is the hex payload.
    """
    for line_no, raw_line in enumerate(lines, start=1):
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue

        tokens = line.split()
        address: str | None = None
        if len(tokens) > 1 and _is_device_address(tokens[-1]):
            address = tokens[-1]
            tokens = tokens[:-1]

        yield CaptureEntry(source=f"{source}:{line_no}", payload_hex=" ".join(tokens), address=address)


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="offline-finding",
        description="Decode Apple Offline Finding BLE advertisements",
    )
    parser.add_argument("payloads", nargs="*", metavar="HEX", help="Manufacturer payload as hex")
    parser.add_argument(
        "-f",
        "--file",
        type=Path,
        action="append",
        default=[],
        help='Capture file with one "HEX [ADDRESS]" per line (repeatable)',
    )
    parser.add_argument(
        "-a",
        "--address",
        help="Device address used for key reconstruction (AA:BB:CC:DD:EE:FF)",
    )
    parser.add_argument(
        "--company-id",
        action="store_true",
        dest="company_id",
        help="Payloads still carry the 2-byte little-endian company identifier",
    )
    parser.add_argument("--json", action="store_true", help="Emit one JSON object per input")
    parser.add_argument(
        "--metrics",
        action="store_true",
        default=None,
        help="Start the Prometheus metrics exporter (default from OF_METRICS_ENABLED)",
    )
    parser.add_argument("--metrics-port", type=int, default=None, help="Metrics exporter port")
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--env", type=Path, default=None, help="Path to an environment file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _collect_entries(args: argparse.Namespace) -> Iterator[CaptureEntry]:
    for index, payload in enumerate(args.payloads, start=1):
        yield CaptureEntry(source=f"arg:{index}", payload_hex=payload)

    for path in args.file:
        with path.open(encoding="utf-8") as f:
            lines = f.readlines()
        yield from parse_capture_lines(lines, str(path))


def _dissect_entry(
    table: ManufacturerDissectorTable,
    entry: CaptureEntry,
    default_address: bytes | None,
    has_company_id: bool,
) -> dict[str, object]:
    """Dissect one entry and return its JSON-ready outcome."""
    outcome: dict[str, object] = {
        "source": entry.source,
        "input": entry.payload_hex,
        "dissected": False,
        "error": None,
        "protocol": None,
        "record": None,
        "tree": None,
    }

    try:
        data = parse_hex_payload(entry.payload_hex)
    except ValueError as e:
        outcome["error"] = f"Invalid hex payload: {e}"
        return outcome

    try:
        address = parse_device_address(entry.address) if entry.address else default_address
        if has_company_id:
            result = table.dissect_manufacturer_data(data, address)
        else:
            result = table.dissect(APPLE_COMPANY_ID, data, address)
    except (DeviceAddressError, PacketDecodeError) as e:
        outcome["error"] = str(e)
        return outcome

    if result is None:
        outcome["error"] = "not an Offline Finding advertisement"
        return outcome

    outcome["dissected"] = True
    outcome["protocol"] = result.protocol
    outcome["record"] = record_to_dict(result.record)
    outcome["tree"] = list(result.tree)
    return outcome


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_cli(argv)

    if args.env:
        env_path = args.env.expanduser().resolve()
        if not env_path.exists():
            logger.error("Environment file not found", extra={"path": str(env_path)})
            return EXIT_USAGE
        if dotenv.load_dotenv(env_path, override=True):
            const.reload_env()
            logger.info("Environment variables loaded", extra={"source": str(env_path)})
        else:
            logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})

    if args.debug or const.OF_DEBUG:
        set_namespace_level(logging.DEBUG)
        logger.info("Debug logging enabled")

    default_address: bytes | None = None
    if args.address:
        try:
            default_address = parse_device_address(args.address)
        except DeviceAddressError:
            logger.error("Invalid device address", extra={"address": args.address})
            return EXIT_USAGE

    metrics_enabled = const.OF_METRICS_ENABLED if args.metrics is None else args.metrics
    if metrics_enabled:
        port = args.metrics_port if args.metrics_port is not None else const.OF_METRICS_PORT
        start_metrics_server(port)
        logger.info("Metrics exporter started", extra={"port": port})

    table = register_offline_finding(ManufacturerDissectorTable())

    try:
        entries = list(_collect_entries(args))
    except OSError as e:
        logger.error("Failed to read capture file", extra={"error": str(e)})
        return EXIT_USAGE

    if not entries:
        logger.error("No payloads given; pass HEX arguments or --file")
        return EXIT_USAGE

    exit_code = EXIT_OK
    for entry in entries:
        outcome = _dissect_entry(table, entry, default_address, args.company_id)
        if not outcome["dissected"]:
            exit_code = EXIT_REJECTED
            logger.warning(
                "Input not dissected",
                extra={"source": entry.source, "error": outcome["error"]},
            )

        if args.json:
            print(json.dumps(outcome))
        elif outcome["dissected"]:
            print(f"# {entry.source}")
            print("\n".join(outcome["tree"]))  # type: ignore[arg-type]
            print()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
