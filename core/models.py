"""Data types shared by the upload transport, the splitter and the batch processor."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class InputFile:
    name: str
    data: bytes
    content_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_upload(cls, uploaded: Any) -> "InputFile":
        """Adapt a Streamlit UploadedFile (anything with name/getvalue/type)."""
        return cls(
            name=uploaded.name,
            data=bytes(uploaded.getvalue()),
            content_type=getattr(uploaded, "type", None) or "application/octet-stream",
        )


@dataclass(frozen=True)
class UploadSession:
    session_id: str
    file_name: str
    total_chunks: int
    chunk_size: int


@dataclass(frozen=True)
class ChunkDescriptor:
    index: int
    start: int
    end: int
    total_chunks: int
    session_id: str
    file_name: str

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class UploadResult:
    """Acknowledgement returned by the extraction service for one file."""

    file_name: str
    summaries: List[Dict[str, Any]]
    patient_name: Optional[str] = None
    extraction_method: Optional[str] = None
    chunked: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)


class LoadStrategy(str, enum.Enum):
    DIRECT = "direct"
    IGNORE_ENCRYPTION = "ignore-encryption"
    PASSWORD = "password"
    RECOVERY = "recovery"


@dataclass
class LoadAttemptResult:
    success: bool
    strategy_used: Optional[str] = None
    document: Any = None
    page_count: int = 0
    failures: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PagePlan:
    total_pages: int
    part_count: int
    pages_per_part: int
    ranges: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class SplitPart:
    source_file_name: str
    part_number: int
    total_parts: int
    page_count: int
    data: bytes
    load_strategy_used: str
    warnings: Tuple[str, ...] = ()

    @property
    def file_name(self) -> str:
        return part_file_name(self.source_file_name, self.part_number, self.total_parts)


def part_file_name(original_name: str, part_number: int, total_parts: int) -> str:
    """Return '<base>_parte<k>de<N>.pdf' for the k-th of N parts."""
    base = original_name
    if base.lower().endswith(".pdf"):
        base = base[:-4]
    return f"{base}_parte{part_number}de{total_parts}.pdf"


class BatchMode(str, enum.Enum):
    UPLOAD = "upload"
    SPLIT = "split"


class FileStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_WARNINGS = "succeeded-with-warnings"
    FAILED = "failed"
    SKIPPED = "skipped"


BATCH_SUCCESS = "success"
BATCH_PARTIAL_SUCCESS = "partial success"
BATCH_TOTAL_FAILURE = "total failure"

Artifact = Union[SplitPart, UploadResult]


@dataclass
class BatchReport:
    mode: BatchMode
    file_names: List[str] = field(default_factory=list)
    statuses: Dict[str, FileStatus] = field(default_factory=dict)
    per_file_errors: Dict[str, str] = field(default_factory=dict)
    per_file_warnings: Dict[str, List[str]] = field(default_factory=dict)
    produced_artifacts: List[Artifact] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded_count(self) -> int:
        return sum(
            1
            for s in self.statuses.values()
            if s in (FileStatus.SUCCEEDED, FileStatus.SUCCEEDED_WITH_WARNINGS)
        )

    @property
    def failed_count(self) -> int:
        return sum(1 for s in self.statuses.values() if s == FileStatus.FAILED)

    @property
    def skipped_files(self) -> List[str]:
        return [n for n in self.file_names if self.statuses.get(n) == FileStatus.SKIPPED]

    @property
    def status(self) -> str:
        if not self.produced_artifacts:
            return BATCH_TOTAL_FAILURE
        if self.failed_count == 0:
            return BATCH_SUCCESS
        return BATCH_PARTIAL_SUCCESS

    @property
    def summaries(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for artifact in self.produced_artifacts:
            if isinstance(artifact, UploadResult):
                out.extend(artifact.summaries)
        return out

    @property
    def patient_name(self) -> Optional[str]:
        """Patient name reported for the first successfully uploaded file."""
        for artifact in self.produced_artifacts:
            if isinstance(artifact, UploadResult):
                return artifact.patient_name
        return None

    @property
    def parts(self) -> List[SplitPart]:
        return [a for a in self.produced_artifacts if isinstance(a, SplitPart)]

    def summary_message(self) -> str:
        """Single aggregated message, itemized per file name."""
        total = len(self.file_names)
        errors = "\n".join(f"{name}: {msg}" for name, msg in self.per_file_errors.items())
        warnings = "\n".join(
            f"{name}: {w}" for name, items in self.per_file_warnings.items() for w in items
        )

        status = self.status
        if status == BATCH_TOTAL_FAILURE:
            lines = [f"All {total} file(s) failed:", "", errors]
        elif status == BATCH_SUCCESS and not self.skipped_files:
            lines = [f"All {self.succeeded_count} of {total} file(s) succeeded."]
        elif status == BATCH_SUCCESS:
            lines = [f"{self.succeeded_count} of {total} file(s) succeeded; none failed."]
        else:
            lines = [
                f"{self.succeeded_count} of {total} file(s) succeeded.",
                "",
                "Some files failed:",
                errors,
            ]
        if warnings:
            lines += ["", "Warnings:", warnings]
        if self.cancelled:
            lines += ["", f"Cancelled; {len(self.skipped_files)} file(s) were not processed."]
        return "\n".join(lines).strip()
