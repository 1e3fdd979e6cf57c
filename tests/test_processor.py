"""Tests for batch orchestration in upload and split mode."""
from __future__ import annotations

import dataclasses
import threading

import pytest

from conftest import FakeResponse, make_pdf, ok_payload, pdf_file
from core.errors import TransportError
from core.models import (
    BATCH_PARTIAL_SUCCESS,
    BATCH_SUCCESS,
    BATCH_TOTAL_FAILURE,
    BatchMode,
    FileStatus,
    InputFile,
    SplitPart,
    UploadResult,
)
from processor import BatchProcessor, part_source_name, unique_names
from splitting import partitioner


def test_split_batch_isolates_invalid_file(small_cfg):
    files = [
        pdf_file("a.pdf", make_pdf(4)),
        pdf_file("b.pdf", b"this is not a pdf at all"),
        pdf_file("c.pdf", make_pdf(6)),
    ]
    report = BatchProcessor(small_cfg).run(files, BatchMode.SPLIT, part_count=2)

    assert report.succeeded_count == 2
    assert report.failed_count == 1
    assert report.status == BATCH_PARTIAL_SUCCESS
    assert "not a valid PDF" in report.per_file_errors["b.pdf"]
    assert report.statuses == {
        "a.pdf": FileStatus.SUCCEEDED,
        "b.pdf": FileStatus.FAILED,
        "c.pdf": FileStatus.SUCCEEDED,
    }
    assert [p.file_name for p in report.parts] == [
        "a_parte1de2.pdf",
        "a_parte2de2.pdf",
        "c_parte1de2.pdf",
        "c_parte2de2.pdf",
    ]
    message = report.summary_message()
    assert message.startswith("2 of 3 file(s) succeeded.")
    assert "b.pdf:" in message


def test_rejected_file_never_reaches_transport(small_cfg, fake_post):
    files = [InputFile(name="notes.txt", data=b"hello", content_type="text/plain")]
    report = BatchProcessor(small_cfg).run(files, BatchMode.UPLOAD)

    assert fake_post.calls == []
    assert report.status == BATCH_TOTAL_FAILURE
    assert "is not a PDF file" in report.per_file_errors["notes.txt"]


def test_upload_batch_collects_summaries_in_input_order(small_cfg, fake_post):
    def responder(call):
        name = call["files"]["pdf"][0]
        return FakeResponse(200, ok_payload(name=f"Patient {name}"))

    fake_post.responder = responder
    files = [pdf_file("first.pdf", b"%PDF-1 one"), pdf_file("second.pdf", b"%PDF-1 two")]
    report = BatchProcessor(small_cfg).run(files, BatchMode.UPLOAD)

    assert report.status == BATCH_SUCCESS
    assert [a.file_name for a in report.produced_artifacts] == ["first.pdf", "second.pdf"]
    assert all(isinstance(a, UploadResult) for a in report.produced_artifacts)
    assert report.patient_name == "Patient first.pdf"
    assert [s["fileName"] for s in report.summaries] == ["first.pdf", "second.pdf"]
    assert report.summary_message() == "All 2 of 2 file(s) succeeded."


def test_upload_failures_are_itemized(small_cfg, fake_post):
    fake_post.responder = lambda call: FakeResponse(500, {"message": "Erro interno"})
    files = [pdf_file("a.pdf", b"%PDF-1 a"), pdf_file("b.pdf", b"%PDF-1 b")]
    report = BatchProcessor(small_cfg).run(files, BatchMode.UPLOAD)

    assert report.status == BATCH_TOTAL_FAILURE
    assert report.failed_count == 2
    assert report.per_file_errors == {"a.pdf": "Erro interno", "b.pdf": "Erro interno"}
    assert report.summary_message().startswith("All 2 file(s) failed:")


def test_adjusted_upload_is_success_with_warnings(small_cfg, fake_post):
    fake_post.responder = lambda call: FakeResponse(200, ok_payload(method="desprotegido"))
    report = BatchProcessor(small_cfg).run([pdf_file("a.pdf", b"%PDF-1 a")], BatchMode.UPLOAD)

    assert report.statuses["a.pdf"] == FileStatus.SUCCEEDED_WITH_WARNINGS
    assert report.per_file_warnings["a.pdf"] == ["processed with adjustments (protection removed)"]
    assert report.status == BATCH_SUCCESS


def test_corrupt_page_marks_file_succeeded_with_warnings(small_cfg, monkeypatch):
    original = partitioner.copy_page

    def flaky_range(writer, reader, indices):
        raise ValueError("batch copy failed")

    def flaky_page(writer, reader, index):
        if index == 3:
            raise ValueError("bad page")
        original(writer, reader, index)

    monkeypatch.setattr(partitioner, "copy_page_range", flaky_range)
    monkeypatch.setattr(partitioner, "copy_page", flaky_page)

    report = BatchProcessor(small_cfg).run([pdf_file("r.pdf", make_pdf(5))], BatchMode.SPLIT, part_count=3)

    assert report.statuses["r.pdf"] == FileStatus.SUCCEEDED_WITH_WARNINGS
    assert report.per_file_warnings["r.pdf"] == ["page 4 could not be copied"]
    assert len(report.parts) == 3


def test_insufficient_pages_fails_only_that_file(small_cfg):
    files = [pdf_file("short.pdf", make_pdf(1)), pdf_file("long.pdf", make_pdf(5))]
    report = BatchProcessor(small_cfg).run(files, BatchMode.SPLIT, part_count=3)

    assert report.statuses["short.pdf"] == FileStatus.FAILED
    assert "requires at least 3 pages" in report.per_file_errors["short.pdf"]
    assert [p.source_file_name for p in report.parts] == ["long.pdf"] * 3


def test_protected_pdf_reports_remediation(small_cfg):
    data = make_pdf(3, user_password="unknown-pass", owner_password="o")
    report = BatchProcessor(small_cfg).run([pdf_file("locked.pdf", data)], BatchMode.SPLIT, part_count=2)

    assert report.status == BATCH_TOTAL_FAILURE
    assert "protected" in report.per_file_errors["locked.pdf"].lower()


def test_unexpected_exception_does_not_stop_the_batch(small_cfg, monkeypatch):
    calls = []
    original = BatchProcessor.split_one

    def boom(self, file, part_count, **kwargs):
        calls.append(file.name)
        if file.name == "a.pdf":
            raise RuntimeError("kaboom")
        return original(self, file, part_count, **kwargs)

    monkeypatch.setattr(BatchProcessor, "split_one", boom)

    files = [pdf_file("a.pdf", make_pdf(2)), pdf_file("b.pdf", make_pdf(2))]
    report = BatchProcessor(small_cfg).run(files, BatchMode.SPLIT, part_count=2)

    assert calls == ["a.pdf", "b.pdf"]
    assert report.per_file_errors["a.pdf"] == "Unexpected error: kaboom"
    assert report.statuses["b.pdf"] == FileStatus.SUCCEEDED


def test_part_count_must_be_allowed(small_cfg):
    with pytest.raises(ValueError, match="part_count must be one of"):
        BatchProcessor(small_cfg).run([pdf_file("a.pdf", make_pdf(9))], BatchMode.SPLIT, part_count=9)


def test_empty_batch_is_rejected(small_cfg):
    with pytest.raises(ValueError):
        BatchProcessor(small_cfg).run([], BatchMode.UPLOAD)


class _CancellingClient:
    """Upload client stub that cancels the batch after the first file."""

    def __init__(self, cancel_event: threading.Event):
        self.cancel_event = cancel_event
        self.uploaded = []

    def upload(self, file, *, progress_callback=None, cancel_event=None):
        self.uploaded.append(file.name)
        self.cancel_event.set()
        return UploadResult(file_name=file.name, summaries=[{"content": "ok"}])


def test_cancel_between_files(small_cfg):
    cancel = threading.Event()
    client = _CancellingClient(cancel)
    files = [pdf_file(n, b"%PDF-1 x") for n in ("a.pdf", "b.pdf", "c.pdf")]

    report = BatchProcessor(small_cfg, upload_client=client).run(files, BatchMode.UPLOAD, cancel_event=cancel)

    assert client.uploaded == ["a.pdf"]
    assert report.cancelled is True
    assert report.skipped_files == ["b.pdf", "c.pdf"]
    assert report.status == BATCH_SUCCESS
    message = report.summary_message()
    assert message.startswith("1 of 3 file(s) succeeded; none failed.")
    assert not message.startswith("All")
    assert message.endswith("Cancelled; 2 file(s) were not processed.")


def test_transport_error_mid_batch_keeps_going(small_cfg):
    class FlakyClient:
        def upload(self, file, *, progress_callback=None, cancel_event=None):
            if file.name == "b.pdf":
                raise TransportError("Upload of chunk 2 of 3 failed: HTTP 502", chunk_index=2)
            return UploadResult(file_name=file.name, summaries=[{"content": file.name}])

    files = [pdf_file(n, b"%PDF-1 x") for n in ("a.pdf", "b.pdf", "c.pdf")]
    report = BatchProcessor(small_cfg, upload_client=FlakyClient()).run(files, BatchMode.UPLOAD)

    assert report.succeeded_count == 2
    assert "chunk 2" in report.per_file_errors["b.pdf"]
    assert [a.file_name for a in report.produced_artifacts] == ["a.pdf", "c.pdf"]


def test_parallel_run_keeps_input_order(small_cfg):
    cfg = dataclasses.replace(small_cfg, max_workers=3)
    files = [pdf_file(f"f{i}.pdf", make_pdf(2 + i)) for i in range(4)]

    report = BatchProcessor(cfg).run(files, BatchMode.SPLIT, part_count=2)

    assert report.succeeded_count == 4
    assert [p.file_name for p in report.parts] == [
        f"f{i}_parte{k}de2.pdf" for i in range(4) for k in (1, 2)
    ]
    assert all(isinstance(a, SplitPart) for a in report.produced_artifacts)


def test_progress_is_reported_per_chunk(small_cfg, fake_post):
    events = []
    files = [pdf_file("big.pdf", b"%PDF-" + b"y" * 30), pdf_file("small.pdf", b"%PDF-1")]
    BatchProcessor(small_cfg).run(files, BatchMode.UPLOAD, progress_callback=lambda m, f: events.append(f))

    assert events == sorted(events)
    assert events[-1] == 1.0
    assert len(fake_post.chunk_calls()) == 4


def test_duplicate_names_get_their_own_report_slot():
    files = [pdf_file("x.pdf", b""), pdf_file("x.pdf", b""), pdf_file("y.pdf", b"")]
    assert unique_names(files) == ["x.pdf", "x.pdf (2)", "y.pdf"]


def test_duplicate_source_names_produce_distinct_parts(small_cfg):
    files = [pdf_file("x.pdf", make_pdf(4)), pdf_file("x.pdf", make_pdf(4))]
    report = BatchProcessor(small_cfg).run(files, BatchMode.SPLIT, part_count=2)

    names = [p.file_name for p in report.parts]
    assert len(set(names)) == len(names)
    assert names == [
        "x_parte1de2.pdf",
        "x_parte2de2.pdf",
        "x (2)_parte1de2.pdf",
        "x (2)_parte2de2.pdf",
    ]
    assert report.file_names == ["x.pdf", "x.pdf (2)"]


def test_part_source_name_folds_suffix_before_extension():
    assert part_source_name("x.pdf", "x.pdf") == "x.pdf"
    assert part_source_name("x.pdf", "x.pdf (3)") == "x (3).pdf"
    assert part_source_name("scan", "scan (2)") == "scan (2)"
