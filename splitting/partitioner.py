"""Split an opened PDF into N contiguous page ranges.

A page that cannot be copied becomes a blank placeholder and a warning; a part
that cannot be built is skipped with a warning. The file only fails when no
part at all could be produced.

Page numbers refer to the document as loaded. A page object the reader could
not resolve is already missing from its page tree, so it gets no placeholder.
"""

import io
from typing import List, Sequence, Tuple

from pypdf import PdfReader, PdfWriter

from core.errors import InsufficientPagesError, SplitFailedError
from core.logging_utils import describe_size, get_logger
from core.models import LoadAttemptResult, PagePlan, SplitPart
from core.results import Outcome

LOGGER = get_logger()

# US Letter, used when the source page size cannot be read.
DEFAULT_PAGE_SIZE = (612.0, 792.0)


def plan_pages(total_pages: int, part_count: int) -> PagePlan:
    """Compute contiguous, non-empty page ranges for `part_count` parts.

    Parts hold ceil(total/parts) pages; a part is cut short only when the
    remaining parts would otherwise get no page at all.

    Raises:
        ValueError: part_count < 1
        InsufficientPagesError: total_pages < part_count
    """
    if part_count < 1:
        raise ValueError("part_count must be at least 1")
    if total_pages < part_count:
        raise InsufficientPagesError(total_pages, part_count)

    pages_per_part = -(-total_pages // part_count)
    ranges: List[Tuple[int, int]] = []
    start = 0
    for i in range(part_count):
        parts_after = part_count - i - 1
        end = min(start + pages_per_part, total_pages - parts_after)
        if end > start:
            ranges.append((start, end))
        start = end

    return PagePlan(
        total_pages=total_pages,
        part_count=part_count,
        pages_per_part=pages_per_part,
        ranges=tuple(ranges),
    )


def copy_page_range(writer: PdfWriter, reader: PdfReader, indices: Sequence[int]) -> None:
    """Copy all pages in one library call."""
    writer.append(reader, pages=list(indices), import_outline=False)


def copy_page(writer: PdfWriter, reader: PdfReader, index: int) -> None:
    writer.add_page(reader.pages[index])


def source_page_size(reader: PdfReader, index: int) -> Tuple[float, float]:
    try:
        box = reader.pages[index].mediabox
        width, height = float(box.width), float(box.height)
    except Exception:
        return DEFAULT_PAGE_SIZE
    if width <= 0 or height <= 0:
        return DEFAULT_PAGE_SIZE
    return width, height


def add_placeholder_page(writer: PdfWriter, reader: PdfReader, index: int) -> None:
    width, height = source_page_size(reader, index)
    writer.add_blank_page(width=width, height=height)


def serialize(writer: PdfWriter) -> bytes:
    # pypdf writes classic xref tables without object streams.
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def copy_page_or_placeholder(writer: PdfWriter, reader: PdfReader, index: int) -> Outcome[None]:
    """Copy one page; on failure insert a blank page and return a warning."""
    try:
        copy_page(writer, reader, index)
        return Outcome.success(None)
    except Exception as e:
        LOGGER.warning("Page %d could not be copied, inserting placeholder: %s", index + 1, e)
        add_placeholder_page(writer, reader, index)
        return Outcome.success(None, warnings=[f"page {index + 1} could not be copied"])


def build_part_writer(reader: PdfReader, start: int, end: int) -> Outcome[PdfWriter]:
    indices = list(range(start, end))
    writer = PdfWriter()
    try:
        copy_page_range(writer, reader, indices)
        return Outcome.success(writer)
    except Exception as e:
        LOGGER.info("Batch copy of pages %d-%d failed, copying one by one: %s", start + 1, end, e)

    # Fresh target so pages from the failed batch are not duplicated.
    writer = PdfWriter()
    outcome: Outcome[PdfWriter] = Outcome.success(writer)
    for index in indices:
        outcome.warnings.extend(copy_page_or_placeholder(writer, reader, index).warnings)
    return outcome


def build_part(
    loaded: LoadAttemptResult,
    original_name: str,
    part_number: int,
    page_range: Tuple[int, int],
    total_parts: int,
) -> Outcome[SplitPart]:
    """Build one part; any exception becomes a part-level failure."""
    start, end = page_range
    try:
        writer_outcome = build_part_writer(loaded.document, start, end)
        data = serialize(writer_outcome.value)
    except Exception as e:
        LOGGER.warning("Part %d of %s could not be created: %s", part_number, original_name, e)
        return Outcome.failure(f"part {part_number} could not be created: {e}")

    part = SplitPart(
        source_file_name=original_name,
        part_number=part_number,
        total_parts=total_parts,
        page_count=end - start,
        data=data,
        load_strategy_used=loaded.strategy_used or "",
        warnings=tuple(writer_outcome.warnings),
    )
    LOGGER.info(
        "Built %s (pages %d-%d, %s)", part.file_name, start + 1, end, describe_size(len(data))
    )
    return Outcome.success(part, warnings=writer_outcome.warnings)


def split_document(
    loaded: LoadAttemptResult,
    original_name: str,
    part_count: int,
) -> Tuple[List[SplitPart], List[str]]:
    """Split an opened document into `part_count` parts.

    Args:
        loaded: Successful LoadAttemptResult from the loader
        original_name: Source file name, used to derive part names
        part_count: Requested number of parts

    Returns:
        (parts in increasing part number, warnings for the whole file)

    Raises:
        InsufficientPagesError: Fewer pages than parts
        SplitFailedError: Not a single part could be produced
    """
    plan = plan_pages(loaded.page_count, part_count)
    total_parts = len(plan.ranges)

    parts: List[SplitPart] = []
    warnings: List[str] = []
    for part_number, page_range in enumerate(plan.ranges, start=1):
        outcome = build_part(loaded, original_name, part_number, page_range, total_parts)
        warnings.extend(outcome.warnings)
        if outcome.ok:
            parts.append(outcome.value)
        else:
            warnings.append(outcome.error)

    if not parts:
        raise SplitFailedError(
            f"None of the {total_parts} parts of {original_name} could be created: " + "; ".join(warnings)
        )
    return parts, warnings
