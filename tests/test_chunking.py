"""Tests for chunk counting, ranges and iteration."""
from __future__ import annotations

import pytest

from backend.chunking import chunk_range, count_chunks, iter_chunks

MIB = 1024 * 1024


def test_count_chunks_rounds_up():
    assert count_chunks(10, 10) == 1
    assert count_chunks(11, 10) == 2
    assert count_chunks(10 * MIB, int(3.5 * MIB)) == 3


def test_empty_payload_still_yields_one_chunk():
    assert count_chunks(0, 10) == 1
    chunks = list(iter_chunks(b"", 10, session_id="s", file_name="a.pdf"))
    assert len(chunks) == 1
    descriptor, payload = chunks[0]
    assert payload == b""
    assert (descriptor.start, descriptor.end) == (0, 0)


def test_chunk_range_last_chunk_is_shorter():
    assert chunk_range(0, 25, 10) == (0, 10)
    assert chunk_range(2, 25, 10) == (20, 25)
    with pytest.raises(IndexError):
        chunk_range(3, 25, 10)


def test_iter_chunks_covers_payload_in_order():
    data = bytes(range(256)) * 3
    chunks = list(iter_chunks(data, 100, session_id="abc", file_name="big.pdf"))

    assert [d.index for d, _ in chunks] == list(range(len(chunks)))
    assert b"".join(p for _, p in chunks) == data
    for descriptor, payload in chunks:
        assert descriptor.total_chunks == len(chunks)
        assert descriptor.session_id == "abc"
        assert descriptor.file_name == "big.pdf"
        assert len(payload) == descriptor.length


def test_invalid_chunk_size_is_rejected():
    with pytest.raises(ValueError):
        count_chunks(10, 0)
