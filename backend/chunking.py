"""Split a byte payload into fixed-size upload chunks."""

from typing import Iterator, Tuple

from core.models import ChunkDescriptor


def count_chunks(length: int, chunk_size: int) -> int:
    """Return ceil(length / chunk_size); an empty payload still needs one chunk."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if length <= 0:
        return 1
    return (length + chunk_size - 1) // chunk_size


def chunk_range(index: int, length: int, chunk_size: int) -> Tuple[int, int]:
    """Return the half-open byte range [start, end) of chunk `index`."""
    total = count_chunks(length, chunk_size)
    if not 0 <= index < total:
        raise IndexError(f"chunk index {index} out of range (0..{total - 1})")
    start = index * chunk_size
    return start, min(start + chunk_size, length)


def iter_chunks(
    data: bytes,
    chunk_size: int,
    *,
    session_id: str,
    file_name: str,
) -> Iterator[Tuple[ChunkDescriptor, bytes]]:
    """Yield (descriptor, chunk bytes) in index order."""
    length = len(data)
    total = count_chunks(length, chunk_size)
    view = memoryview(data)
    for index in range(total):
        start, end = chunk_range(index, length, chunk_size)
        descriptor = ChunkDescriptor(
            index=index,
            start=start,
            end=end,
            total_chunks=total,
            session_id=session_id,
            file_name=file_name,
        )
        yield descriptor, bytes(view[start:end])
