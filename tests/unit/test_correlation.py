"""Unit tests for correlation ID tracking."""

from __future__ import annotations

import threading
from collections.abc import Generator

import pytest

from offline_finding.correlation import (
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)

UUID_HEX_LENGTH = 32


@pytest.fixture(autouse=True)
def clear_correlation_id() -> Generator[None]:
    set_correlation_id(None)
    yield
    set_correlation_id(None)


def test_generate_correlation_id():
    first = generate_correlation_id()
    assert len(first) == UUID_HEX_LENGTH
    assert "-" not in first
    assert first != generate_correlation_id()


def test_set_and_get():
    assert get_correlation_id() is None
    set_correlation_id("abc123")
    assert get_correlation_id() == "abc123"


def test_context_generates_and_restores():
    set_correlation_id("outer")

    with correlation_context() as corr_id:
        assert corr_id is not None
        assert corr_id != "outer"
        assert get_correlation_id() == corr_id

    assert get_correlation_id() == "outer"


def test_context_with_explicit_id():
    with correlation_context("fixed-id") as corr_id:
        assert corr_id == "fixed-id"
        assert get_correlation_id() == "fixed-id"
    assert get_correlation_id() is None


def test_context_without_auto_generate():
    with correlation_context(auto_generate=False) as corr_id:
        assert corr_id is None
        assert get_correlation_id() is None


def test_context_restores_after_exception():
    with pytest.raises(RuntimeError), correlation_context("inner"):
        raise RuntimeError("boom")
    assert get_correlation_id() is None


def test_threads_do_not_share_ids():
    """IDs set in a worker thread never leak into the caller."""
    seen: list[str | None] = []

    def worker() -> None:
        with correlation_context("worker") as corr_id:
            seen.append(corr_id)

    set_correlation_id("main")
    thread = threading.Thread(target=worker)
    thread.start()
    thread.join()

    assert seen == ["worker"]
    assert get_correlation_id() == "main"
