"""Open PDF payloads that may be encrypted, damaged or malformed.

Strategies are tried in order from cheapest and safest to most invasive:
plain open, open ignoring the encryption layer, a short list of common
passwords, and finally a lossy recovery parse. Only encryption failures move
on to the next strategy; any other failure ends the attempt.

Recovery is reached only after every earlier attempt hit the encryption
layer, so it repairs the byte envelope (junk before %PDF- or after the last
%%EOF) and then tries the candidate passwords again on the repaired reader.
It cannot open a file whose password is unknown.

Parsing is non-strict throughout. pypdf drops page objects it cannot resolve
while building the page tree, so a document with an unreadable page object
opens with fewer pages and no error. Placeholders in the partitioner only
cover pages that load but fail to copy.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from pypdf import PasswordType, PdfReader
from pypdf.errors import DependencyError, FileNotDecryptedError, WrongPasswordError

from core.config import DEFAULT_CANDIDATE_PASSWORDS
from core.errors import InvalidDocumentError, PROTECTED_DOCUMENT_MESSAGE, ProtectedDocumentError
from core.logging_utils import get_logger, mask_password
from core.models import LoadAttemptResult, LoadStrategy
from core.validation import PDF_SIGNATURE

LOGGER = get_logger()

EOF_MARKER = b"%%EOF"

_ENCRYPTION_ERRORS = (FileNotDecryptedError, WrongPasswordError, DependencyError)
_ENCRYPTION_WORDS = ("encrypt", "decrypt", "password")


class EncryptedDocument(Exception):
    """Raised by the direct strategy when the document carries an /Encrypt entry."""


@dataclass(frozen=True)
class LoadOptions:
    ignore_encryption: bool = False
    password: Optional[str] = None
    strict: bool = False
    repair: bool = False
    # Tried on the already opened reader, in order, until one decrypts it.
    passwords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Strategy:
    kind: LoadStrategy
    options: LoadOptions

    @property
    def label(self) -> str:
        if self.kind == LoadStrategy.PASSWORD:
            return f"password:{self.options.password}"
        return self.kind.value

    @property
    def log_label(self) -> str:
        if self.kind == LoadStrategy.PASSWORD:
            return f"password ({mask_password(self.options.password or '')})"
        return self.kind.value


def build_strategies(candidate_passwords: Iterable[str] = DEFAULT_CANDIDATE_PASSWORDS) -> List[Strategy]:
    """Return the ordered strategy list for the given password dictionary."""
    candidate_passwords = tuple(candidate_passwords)
    strategies = [
        Strategy(LoadStrategy.DIRECT, LoadOptions()),
        Strategy(LoadStrategy.IGNORE_ENCRYPTION, LoadOptions(ignore_encryption=True)),
    ]
    strategies += [
        Strategy(LoadStrategy.PASSWORD, LoadOptions(password=pw)) for pw in candidate_passwords
    ]
    strategies.append(
        Strategy(
            LoadStrategy.RECOVERY,
            LoadOptions(ignore_encryption=True, repair=True, passwords=candidate_passwords),
        )
    )
    return strategies


def repair_bytes(data: bytes) -> bytes:
    """Drop junk before the %PDF- header and after the last %%EOF marker."""
    start = data.find(PDF_SIGNATURE)
    if start > 0:
        data = data[start:]
    end = data.rfind(EOF_MARKER)
    if end != -1:
        data = data[: end + len(EOF_MARKER)] + b"\n"
    return data


def is_encryption_error(exc: BaseException) -> bool:
    if isinstance(exc, (EncryptedDocument,) + _ENCRYPTION_ERRORS):
        return True
    message = str(exc).lower()
    return any(word in message for word in _ENCRYPTION_WORDS)


def read_document(data: bytes, options: LoadOptions) -> Tuple[PdfReader, int]:
    """Open `data` under one set of options and resolve the page tree.

    Returns:
        (reader, page_count)
    """
    if options.repair:
        data = repair_bytes(data)
    reader = PdfReader(io.BytesIO(data), strict=options.strict, password=options.password)
    if reader.is_encrypted and options.passwords:
        for pw in options.passwords:
            if reader.decrypt(pw) != PasswordType.NOT_DECRYPTED:
                break
    if reader.is_encrypted and not options.ignore_encryption and options.password is None:
        raise EncryptedDocument("document is encrypted")
    # Touching the page tree surfaces decryption failures here, not later.
    page_count = len(reader.pages)
    return reader, page_count


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def open_document(
    data: bytes,
    *,
    candidate_passwords: Sequence[str] = DEFAULT_CANDIDATE_PASSWORDS,
    file_name: str = "",
) -> LoadAttemptResult:
    """Open a PDF under the first strategy that works.

    Args:
        data: Raw PDF bytes
        candidate_passwords: Passwords tried in order (empty string included)
        file_name: Used for log lines only

    Returns:
        LoadAttemptResult with the winning strategy label and the reader

    Raises:
        ProtectedDocumentError: Encrypted and no strategy could open it
        InvalidDocumentError: Structurally broken (first strategy's error text)
    """
    failures: List[str] = []
    first_error: Optional[BaseException] = None

    for strategy in build_strategies(candidate_passwords):
        try:
            reader, page_count = read_document(data, strategy.options)
        except Exception as e:  # pypdf raises a wide range of types on bad input
            if first_error is None:
                first_error = e
            failures.append(f"{strategy.log_label}: {_describe(e)}")
            if not is_encryption_error(e):
                LOGGER.info("Load of %s stopped at %s: %s", file_name or "<bytes>", strategy.log_label, _describe(e))
                break
            continue

        if failures:
            LOGGER.info(
                "Opened %s with %s after %d failed attempt(s)",
                file_name or "<bytes>", strategy.log_label, len(failures),
            )
        return LoadAttemptResult(
            success=True,
            strategy_used=strategy.label,
            document=reader,
            page_count=page_count,
            failures=failures,
        )

    if first_error is not None and is_encryption_error(first_error):
        LOGGER.warning("No strategy could open protected document %s", file_name or "<bytes>")
        raise ProtectedDocumentError(PROTECTED_DOCUMENT_MESSAGE, failures=failures)

    LOGGER.warning("Document %s is not a readable PDF: %s", file_name or "<bytes>", failures[0] if failures else "")
    raise InvalidDocumentError(
        f"Could not read PDF: {first_error}" if first_error is not None else "Could not read PDF",
        failures=failures,
    )
