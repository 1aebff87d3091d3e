"""Unit tests for the Prometheus metrics registry."""

from __future__ import annotations

import pytest

from offline_finding.metrics import registry
from offline_finding.metrics.registry import (
    record_decoded,
    record_key_reconstruction,
    record_length_mismatch,
    record_packet,
    record_rejection,
    start_metrics_server,
)

# Test constants
TEST_PORT = 9555


def _value(counter: object, **labels: str) -> float:
    """Read the current _total sample of a counter, 0.0 if never incremented."""
    for metric in counter.collect():  # type: ignore[attr-defined]
        for sample in metric.samples:
            if sample.name.endswith("_total") and sample.labels == labels:
                return sample.value
    return 0.0


class TestRecordHelpers:
    """Tests for the record_* helpers."""

    def test_record_packet(self):
        before = _value(registry.of_dissector_packets_total, outcome="accepted")
        record_packet("accepted")
        assert _value(registry.of_dissector_packets_total, outcome="accepted") == before + 1

    def test_record_rejection(self):
        before = _value(registry.of_dissector_rejections_total, reason="wrong_type")
        record_rejection("wrong_type")
        assert _value(registry.of_dissector_rejections_total, reason="wrong_type") == before + 1

    def test_record_decoded(self):
        before = _value(registry.of_dissector_decoded_total, completeness="truncated")
        record_decoded("truncated")
        assert _value(registry.of_dissector_decoded_total, completeness="truncated") == before + 1

    def test_record_length_mismatch(self):
        before = _value(registry.of_dissector_length_mismatch_total)
        record_length_mismatch()
        assert _value(registry.of_dissector_length_mismatch_total) == before + 1

    def test_record_key_reconstruction(self):
        before = _value(registry.of_dissector_key_reconstruction_total, outcome="no_address")
        record_key_reconstruction("no_address")
        assert _value(registry.of_dissector_key_reconstruction_total, outcome="no_address") == before + 1


class TestStartMetricsServer:
    """Tests for start_metrics_server()."""

    def test_starts_once(self, monkeypatch: pytest.MonkeyPatch):
        ports: list[int] = []
        monkeypatch.setattr(registry, "start_http_server", ports.append)
        monkeypatch.setitem(registry._server_state, "started", False)

        start_metrics_server(TEST_PORT)
        start_metrics_server(TEST_PORT)

        assert ports == [TEST_PORT]
