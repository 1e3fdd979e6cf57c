"""Batch processing of uploaded lab report PDFs.

Runs every input file through either the upload transport or the
load-and-split pipeline, isolating failures per file and aggregating results,
warnings and errors into a single BatchReport.
"""

from __future__ import annotations

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from backend.upload_api import UploadClient, adjustment_warning
from core.config import AppConfig
from core.errors import LabUploadError, UnsupportedInputError, UploadCancelled
from core.logging_utils import get_logger
from core.models import Artifact, BatchMode, BatchReport, FileStatus, InputFile, LoadStrategy
from core.results import Outcome
from core.validation import validate_input_file, validate_part_count
from splitting.loader import open_document
from splitting.partitioner import split_document

LOGGER = get_logger()

RECOVERY_WARNING = "opened with recovery parsing; some content may be missing"

ProgressCallback = Callable[[str, float], None]


@dataclass
class FileResult:
    name: str
    status: FileStatus = FileStatus.PENDING
    artifacts: List[Artifact] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None


def unique_names(files: Sequence[InputFile]) -> List[str]:
    """Report keys per file; repeated names get a ' (2)', ' (3)' suffix."""
    seen: Dict[str, int] = {}
    names: List[str] = []
    for f in files:
        count = seen.get(f.name, 0) + 1
        seen[f.name] = count
        names.append(f.name if count == 1 else f"{f.name} ({count})")
    return names


def part_source_name(file_name: str, report_name: str) -> str:
    """Name used for a file's parts, folding a duplicate suffix into the base.

    "x.pdf" reported as "x.pdf (2)" yields "x (2).pdf", so its parts become
    "x (2)_parte1de2.pdf" and never collide with the first file's parts.
    """
    suffix = report_name[len(file_name):] if report_name.startswith(file_name) else ""
    if not suffix:
        return file_name
    base, ext = os.path.splitext(file_name)
    return f"{base}{suffix}{ext}"


class BatchProcessor:
    """Processes a list of files in upload or split mode."""

    def __init__(self, cfg: AppConfig, *, upload_client: Optional[UploadClient] = None):
        self.cfg = cfg
        self.upload_client = upload_client or UploadClient(cfg)

    # Per-file work ---------------------------------------------------------------

    def upload_one(
        self,
        file: InputFile,
        *,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Outcome[List[Artifact]]:
        result = self.upload_client.upload(
            file, progress_callback=progress_callback, cancel_event=cancel_event
        )
        warning = adjustment_warning(result)
        return Outcome.success([result], warnings=[warning] if warning else [])

    def split_one(
        self, file: InputFile, part_count: int, *, report_name: Optional[str] = None
    ) -> Outcome[List[Artifact]]:
        loaded = open_document(
            file.data,
            candidate_passwords=self.cfg.candidate_passwords,
            file_name=file.name,
        )
        LOGGER.info("Opened %s (%d pages) using %s", file.name, loaded.page_count,
                    (loaded.strategy_used or "").split(":")[0])
        source_name = part_source_name(file.name, report_name or file.name)
        parts, warnings = split_document(loaded, source_name, part_count)
        if loaded.strategy_used == LoadStrategy.RECOVERY.value:
            warnings = [RECOVERY_WARNING] + warnings
        return Outcome.success(list(parts), warnings=warnings)

    def _process_file(
        self,
        name: str,
        file: InputFile,
        mode: BatchMode,
        part_count: Optional[int],
        cancel_event: Optional[threading.Event],
        chunk_progress: Optional[Callable[[int], None]] = None,
    ) -> FileResult:
        result = FileResult(name=name, status=FileStatus.IN_PROGRESS)
        if cancel_event is not None and cancel_event.is_set():
            result.status = FileStatus.SKIPPED
            return result

        try:
            if mode == BatchMode.UPLOAD:
                outcome = self.upload_one(file, progress_callback=chunk_progress, cancel_event=cancel_event)
            else:
                outcome = self.split_one(file, part_count, report_name=name)
        except UploadCancelled as e:
            LOGGER.info("%s", e)
            result.status = FileStatus.SKIPPED
            return result
        except LabUploadError as e:
            LOGGER.warning("Failed to process %s: %s", name, e)
            result.status = FileStatus.FAILED
            result.error = str(e)
            return result
        except Exception as e:
            LOGGER.exception("Unexpected error while processing %s", name)
            result.status = FileStatus.FAILED
            result.error = f"Unexpected error: {e}"
            return result

        result.artifacts = list(outcome.value or [])
        result.warnings = list(outcome.warnings)
        result.status = FileStatus.SUCCEEDED_WITH_WARNINGS if result.warnings else FileStatus.SUCCEEDED
        return result

    # Batch -----------------------------------------------------------------------

    def run(
        self,
        files: Sequence[InputFile],
        mode: BatchMode,
        *,
        part_count: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchReport:
        """Process every file and return the aggregated report.

        Args:
            files: Input files, processed and reported in this order
            mode: BatchMode.UPLOAD or BatchMode.SPLIT
            part_count: Number of parts (split mode only)
            progress_callback: Receives (message, fraction 0.0-1.0)
            cancel_event: Checked between files and between chunks

        Raises:
            ValueError: Empty file list or a part count outside the allowed set
        """
        mode = BatchMode(mode)
        if not files:
            raise ValueError("Select at least one PDF file")
        if mode == BatchMode.SPLIT:
            part_count = validate_part_count(part_count, self.cfg.allowed_part_counts)

        names = unique_names(files)
        report = BatchReport(mode=mode, file_names=list(names))
        for name in names:
            report.statuses[name] = FileStatus.PENDING

        # Non-PDF input never reaches the transport or the loader.
        work = []
        for name, f in zip(names, files):
            try:
                validate_input_file(f)
            except UnsupportedInputError as e:
                LOGGER.warning("Rejected %s: %s", name, e)
                report.statuses[name] = FileStatus.FAILED
                report.per_file_errors[name] = str(e)
            else:
                work.append((name, f))

        notify = progress_callback or (lambda msg, frac: None)
        verb = "Uploading" if mode == BatchMode.UPLOAD else "Splitting"
        LOGGER.info("%s %d file(s), %d rejected", verb, len(work), len(files) - len(work))

        if self.cfg.max_workers > 1 and len(work) > 1:
            results = self._run_parallel(work, mode, part_count, notify, cancel_event, report)
        else:
            results = self._run_sequential(work, mode, part_count, notify, cancel_event, report, verb)

        # Merge in input order.
        for item in results:
            report.statuses[item.name] = item.status
            if item.status == FileStatus.SKIPPED:
                report.cancelled = True
            if item.error is not None:
                report.per_file_errors[item.name] = item.error
            if item.warnings:
                report.per_file_warnings[item.name] = list(item.warnings)
            report.produced_artifacts.extend(item.artifacts)

        notify("Done", 1.0)
        LOGGER.info(
            "Batch finished: %s (%d succeeded, %d failed)",
            report.status, report.succeeded_count, report.failed_count,
        )
        return report

    def _run_sequential(self, work, mode, part_count, notify, cancel_event, report, verb) -> List[FileResult]:
        total = len(work)
        results: List[FileResult] = []
        for i, (name, file) in enumerate(work):
            if cancel_event is not None and cancel_event.is_set():
                results.append(FileResult(name=name, status=FileStatus.SKIPPED))
                continue

            report.statuses[name] = FileStatus.IN_PROGRESS
            notify(f"{verb} {i + 1}/{total}: {name}", i / total)

            def chunk_progress(pct: int, _i: int = i) -> None:
                notify(f"{verb} {_i + 1}/{total}: {name} ({pct}%)", (_i + pct / 100.0) / total)

            results.append(self._process_file(name, file, mode, part_count, cancel_event, chunk_progress))
        return results

    def _run_parallel(self, work, mode, part_count, notify, cancel_event, report) -> List[FileResult]:
        total = len(work)
        # One slot per input position so workers never share report state.
        slots: List[Optional[FileResult]] = [None] * total
        with ThreadPoolExecutor(max_workers=self.cfg.max_workers) as pool:
            futures = {
                pool.submit(self._process_file, name, file, mode, part_count, cancel_event): idx
                for idx, (name, file) in enumerate(work)
            }
            for name, _ in work:
                report.statuses[name] = FileStatus.IN_PROGRESS
            done = 0
            for future in as_completed(futures):
                idx = futures[future]
                slots[idx] = future.result()
                done += 1
                notify(f"Finished {done}/{total}: {work[idx][0]}", done / total)
        return [slot for slot in slots if slot is not None]

