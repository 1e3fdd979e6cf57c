"""Input validation run before any network or parse work."""

from typing import Iterable, List, Optional, Tuple

from core.errors import UnsupportedInputError
from core.models import InputFile


PDF_SIGNATURE = b"%PDF-"
# Readers accept the header anywhere in the first kilobyte.
SIGNATURE_SEARCH_WINDOW = 1024

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


def has_pdf_signature(data: bytes) -> bool:
    """Return True if the %PDF- header appears near the start of the data."""
    return PDF_SIGNATURE in data[:SIGNATURE_SEARCH_WINDOW]


def looks_like_pdf_name(file: InputFile) -> bool:
    return file.name.lower().endswith(".pdf") or file.content_type in PDF_CONTENT_TYPES


def validate_input_file(file: InputFile) -> None:
    """Raise UnsupportedInputError if the file is not a PDF."""
    if not looks_like_pdf_name(file):
        raise UnsupportedInputError(f"{file.name} is not a PDF file (type {file.content_type or 'unknown'})")
    if not file.data:
        raise UnsupportedInputError(f"{file.name} is empty")
    if not has_pdf_signature(file.data):
        raise UnsupportedInputError(f"{file.name} is not a valid PDF (missing %PDF header)")


def partition_inputs(files: Iterable[InputFile]) -> Tuple[List[InputFile], List[Tuple[InputFile, str]]]:
    """Split files into (accepted, rejected-with-reason), preserving input order."""
    accepted: List[InputFile] = []
    rejected: List[Tuple[InputFile, str]] = []
    for f in files:
        try:
            validate_input_file(f)
        except UnsupportedInputError as e:
            rejected.append((f, str(e)))
        else:
            accepted.append(f)
    return accepted, rejected


def validate_part_count(part_count: Optional[int], allowed: Iterable[int]) -> int:
    """Check the requested part count against the configured allowed set."""
    allowed_sorted = sorted(set(allowed))
    if part_count is None:
        raise ValueError("part_count is required for split mode")
    if isinstance(part_count, bool) or not isinstance(part_count, int):
        raise ValueError(f"part_count must be an integer, got {part_count!r}")
    if part_count not in allowed_sorted:
        raise ValueError(f"part_count must be one of {allowed_sorted}, got {part_count}")
    return part_count
