"""Shared fixtures: in-memory PDFs and a fake HTTP layer for the upload transport."""
from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
from pypdf import PdfWriter

from backend import upload_api
from core.config import AppConfig
from core.models import InputFile


def page_width(index: int) -> float:
    """Every generated page gets its own width so order can be checked after a split."""
    return 300.0 + 10.0 * index


def make_pdf(
    pages: int = 5,
    *,
    user_password: Optional[str] = None,
    owner_password: Optional[str] = None,
) -> bytes:
    writer = PdfWriter()
    for i in range(pages):
        writer.add_blank_page(width=page_width(i), height=500)
    if user_password is not None or owner_password is not None:
        writer.encrypt(
            user_password=user_password or "",
            owner_password=owner_password,
            algorithm="RC4-128",
        )
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


@pytest.fixture
def pdf_factory():
    return make_pdf


@pytest.fixture
def five_page_pdf() -> bytes:
    return make_pdf(5)


@pytest.fixture
def small_cfg() -> AppConfig:
    """Tiny thresholds so chunking can be exercised with a few bytes."""
    return AppConfig(
        api_base_url="http://lab.test/",
        chunk_size_bytes=10,
        single_shot_threshold_bytes=25,
        candidate_passwords=("", "1234", "senha"),
        allowed_part_counts=frozenset({1, 2, 3, 4, 5}),
    )


@dataclass
class FakeResponse:
    status_code: int = 200
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self.payload is None:
            raise ValueError("no JSON body")
        return self.payload


@dataclass
class FakePost:
    """Records every requests.post call and answers from a routing function."""

    responder: Any = None
    calls: List[Dict[str, Any]] = field(default_factory=list)

    def __call__(self, url, **kwargs):
        call = {"url": url, **kwargs}
        self.calls.append(call)
        if self.responder is not None:
            result = self.responder(call)
            if isinstance(result, Exception):
                raise result
            return result
        return default_responder(call)

    def paths(self) -> List[str]:
        return [c["url"].split("lab.test", 1)[-1] for c in self.calls]

    def chunk_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["url"].endswith(upload_api.CHUNK_PATH)]

    def finalize_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["url"].endswith(upload_api.FINALIZE_PATH)]

    def single_calls(self) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["url"].endswith(upload_api.UPLOAD_PATH)]


def ok_payload(name: str = "Maria Silva", method: str = "direto") -> Dict[str, Any]:
    return {
        "summaries": [{"title": "Hemograma", "content": "Hemoglobina: 13.5 g/dL"}],
        "patientName": name,
        "extractionMethod": method,
    }


def default_responder(call: Dict[str, Any]) -> FakeResponse:
    if call["url"].endswith(upload_api.CHUNK_PATH):
        return FakeResponse(200, {"received": True})
    return FakeResponse(200, ok_payload())


@pytest.fixture
def fake_post(monkeypatch) -> FakePost:
    fake = FakePost()
    monkeypatch.setattr(upload_api.requests, "post", fake)
    return fake


def pdf_file(name: str, data: bytes) -> InputFile:
    return InputFile(name=name, data=data, content_type="application/pdf")
