"""Error types raised while uploading or splitting documents."""

from typing import List, Optional


class LabUploadError(Exception):
    """Base class for per-file failures reported in a BatchReport."""


class UnsupportedInputError(LabUploadError):
    """File is not a PDF and was rejected before any work was done."""


class TransportError(LabUploadError):
    """Upload request failed (network error or non-2xx response)."""

    def __init__(self, message: str, *, chunk_index: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.status_code = status_code


class UploadCancelled(LabUploadError):
    """Upload stopped because the caller set the cancel event."""


class ExtractionError(LabUploadError):
    """Server accepted the upload but returned no usable summaries."""


class DocumentLoadError(LabUploadError):
    """Every load strategy failed."""

    def __init__(self, message: str, *, failures: Optional[List[str]] = None):
        super().__init__(message)
        self.failures = list(failures or [])


class ProtectedDocumentError(DocumentLoadError):
    """Document is encrypted and none of the known passwords opened it."""


class InvalidDocumentError(DocumentLoadError):
    """Document is structurally broken (not an encryption problem)."""


class InsufficientPagesError(LabUploadError):
    """Document has fewer pages than the requested number of parts."""

    def __init__(self, total_pages: int, part_count: int):
        super().__init__(
            f"Document has {total_pages} page(s) but splitting into {part_count} parts "
            f"requires at least {part_count} pages"
        )
        self.total_pages = total_pages
        self.part_count = part_count


class SplitFailedError(LabUploadError):
    """No part of the document could be produced."""


PROTECTED_DOCUMENT_MESSAGE = (
    "The PDF is protected or encrypted and none of the known passwords opened it. "
    "Remove the protection (e.g. print it to a new PDF), try fewer parts, "
    "or upload the file directly so the server can process it."
)

PDF_ERROR_HINTS = [
    "Check that the PDF is not password protected or encrypted",
    "Save the PDF again using 'Save as' in Adobe Reader",
    "If possible, print the document to a new PDF",
    "Convert the PDF to another format and back to PDF",
]

SERVER_ERROR_HINTS = [
    "Check your internet connection",
    "The server may be temporarily unavailable, try again later",
    "If the problem persists, contact technical support",
]


def looks_like_document_error(message: str) -> bool:
    """Check if an error message points at the PDF itself."""
    m = (message or "").lower()
    return any(s in m for s in ["pdf", "document", "file", "page", "encrypt", "password"])


def looks_like_server_error(message: str) -> bool:
    """Check if an error message points at the server or the network."""
    m = (message or "").lower()
    return any(
        s in m
        for s in [
            "server",
            "500",
            "502",
            "503",
            "connection",
            "timed out",
            "timeout",
            "chunk",
            "finalization",
        ]
    )


def error_hints(message: str) -> List[str]:
    """Return remediation suggestions for an error message (may be empty)."""
    if looks_like_server_error(message):
        return list(SERVER_ERROR_HINTS)
    if looks_like_document_error(message):
        return list(PDF_ERROR_HINTS)
    return []
