"""Metrics module."""

from .registry import (
    record_decoded,
    record_key_reconstruction,
    record_length_mismatch,
    record_packet,
    record_rejection,
    start_metrics_server,
)

__all__ = [
    "record_decoded",
    "record_key_reconstruction",
    "record_length_mismatch",
    "record_packet",
    "record_rejection",
    "start_metrics_server",
]
