"""Tests for chunker."""

import math

import pytest

from brain_kb.ingest.chunker import CHUNK_SIZE, chunk_text, estimate_tokens


def _long_text() -> str:
    sentences = [f"Sentence number {index} talks about retrieval and ranking." for index in range(120)]
    return " ".join(sentences)


def test_short_text_is_single_chunk(sample_text: str) -> None:
    chunks = chunk_text(sample_text)
    assert len(chunks) == 1
    assert chunks[0].content == sample_text
    assert (chunks[0].start, chunks[0].end) == (0, len(sample_text))
    assert chunks[0].token_count == estimate_tokens(sample_text) == math.ceil(len(sample_text) / 4)


def test_chunks_cover_input_without_gaps() -> None:
    text = _long_text()
    chunks = chunk_text(text)
    assert len(chunks) > 1
    assert chunks[0].start == 0
    assert chunks[-1].end == len(text)
    for previous, current in zip(chunks, chunks[1:]):
        assert current.start <= previous.end, "Consecutive chunks must not leave a gap"
        assert current.start > previous.start


def test_chunk_size_bound_and_sentence_snap() -> None:
    text = _long_text()
    chunks = chunk_text(text)
    assert all(len(chunk.content) <= CHUNK_SIZE for chunk in chunks)
    assert all(chunk.end - chunk.start <= CHUNK_SIZE for chunk in chunks)
    for chunk in chunks[:-1]:
        assert text[chunk.end - 1] == ".", "Interior chunks should end on a sentence break"


def test_consecutive_chunks_overlap() -> None:
    text = _long_text()
    chunks = chunk_text(text, chunk_size=300, overlap=50)
    for previous, current in zip(chunks, chunks[1:]):
        assert previous.end - current.start == 50


def test_hard_cut_without_break_points() -> None:
    text = "x" * 2500
    chunks = chunk_text(text)
    assert [(chunk.start, chunk.end) for chunk in chunks] == [(0, 1000), (800, 1800), (1600, 2500)]


def test_offsets_are_recorded_before_stripping() -> None:
    text = "  padded text  "
    chunk = chunk_text(text)[0]
    assert chunk.content == "padded text"
    assert (chunk.start, chunk.end) == (0, len(text))


@pytest.mark.parametrize("size,overlap", [(0, 0), (100, 50), (100, -1)])
def test_invalid_parameters_rejected(size: int, overlap: int) -> None:
    with pytest.raises(ValueError):
        chunk_text("anything", chunk_size=size, overlap=overlap)
