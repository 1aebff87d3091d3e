"""Prometheus metrics registry for advertisement dissection."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    start_http_server,
)

# Metric definitions
of_dissector_packets_total: Final = Counter(  # type: ignore[assignment]
    "of_dissector_packets_total",
    "Total manufacturer payloads offered to the Offline Finding dissector",
    ["outcome"],
)

of_dissector_rejections_total: Final = Counter(  # type: ignore[assignment]
    "of_dissector_rejections_total",
    "Total payloads rejected by the validator",
    ["reason"],
)

of_dissector_decoded_total: Final = Counter(  # type: ignore[assignment]
    "of_dissector_decoded_total",
    "Total advertisements decoded, by how much of the structure was present",
    ["completeness"],
)

of_dissector_length_mismatch_total: Final = Counter(  # type: ignore[assignment]
    "of_dissector_length_mismatch_total",
    "Total advertisements whose declared payload length differs from 25",
)

of_dissector_key_reconstruction_total: Final = Counter(  # type: ignore[assignment]
    "of_dissector_key_reconstruction_total",
    "Total public key reconstruction attempts",
    ["outcome"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_packet(outcome: str) -> None:
    """Record a payload offered to the dissector ("accepted" or "rejected")."""
    of_dissector_packets_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_rejection(reason: str) -> None:
    """Record a validator rejection."""
    of_dissector_rejections_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]


def record_decoded(completeness: str) -> None:
    """Record a decoded advertisement."""
    of_dissector_decoded_total.labels(completeness=completeness).inc()  # type: ignore[no-untyped-call]


def record_length_mismatch() -> None:
    """Record a declared payload length other than the standard one."""
    of_dissector_length_mismatch_total.inc()  # type: ignore[no-untyped-call]


def record_key_reconstruction(outcome: str) -> None:
    """Record a key reconstruction outcome."""
    of_dissector_key_reconstruction_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]
