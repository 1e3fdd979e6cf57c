"""Upload transport for the lab report extraction service.

Small files go up in one multipart request. Files above the single-shot
threshold are sent as sequential chunks under one upload id, then finalized so
the server can reassemble and process them.
"""

import secrets
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import requests

from backend.chunking import count_chunks, iter_chunks
from core.config import AppConfig
from core.errors import ExtractionError, TransportError, UploadCancelled
from core.logging_utils import describe_size, get_logger
from core.models import InputFile, UploadResult, UploadSession

LOGGER = get_logger()

UPLOAD_PATH = "/api/upload"
CHUNK_PATH = "/api/upload-chunk"
FINALIZE_PATH = "/api/finalize-upload"

# Share of the progress bar spent on chunk sends; finalize covers the rest.
CHUNK_PROGRESS_SHARE = 90

EXTRACTION_METHOD_DESCRIPTIONS = {
    'direto': 'direct processing',
    'desprotegido': 'protection removed',
    'reparado': 'structure repaired',
    'gs_reparado': 'advanced repair',
    'partes': 'processed in parts',
    'falha': 'processing failed',
}

ADJUSTED_EXTRACTION_METHODS = {'desprotegido', 'reparado', 'gs_reparado', 'partes'}

ProgressCallback = Callable[[int], None]


def normalize_base_url(url: str) -> str:
    """Normalize backend base URL by stripping trailing slashes."""
    s = (url or '').strip()
    while s.endswith('/'):
        s = s[:-1]
    return s


def new_session_id() -> str:
    """Millisecond timestamp plus random suffix; unique per concurrent session."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def describe_extraction_method(method: Optional[str]) -> str:
    if not method:
        return ''
    return EXTRACTION_METHOD_DESCRIPTIONS.get(method, method)


def adjustment_warning(result: UploadResult) -> Optional[str]:
    """Warning text when the server had to adjust the document to read it."""
    if result.extraction_method in ADJUSTED_EXTRACTION_METHODS:
        return f"processed with adjustments ({describe_extraction_method(result.extraction_method)})"
    return None


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get('message'):
        return str(payload['message'])
    return f"HTTP {resp.status_code}"


def _parse_upload_response(
    resp: requests.Response, file_name: str, *, chunked: bool, error_prefix: str = ""
) -> UploadResult:
    try:
        data = resp.json()
    except ValueError:
        raise TransportError(
            f"{error_prefix}Server response for {file_name} was not JSON", status_code=resp.status_code
        ) from None
    if not isinstance(data, dict):
        raise TransportError(
            f"{error_prefix}Server response for {file_name} must be a JSON object", status_code=resp.status_code
        )

    summaries = data.get('summaries')
    if not isinstance(summaries, list) or not summaries or data.get('extractionMethod') == 'falha':
        raise ExtractionError("Could not extract information from this document.")

    patient_name = data.get('patientName') if isinstance(data.get('patientName'), str) else None
    method = data.get('extractionMethod') if isinstance(data.get('extractionMethod'), str) else None
    processed_at = datetime.now().strftime('%H:%M:%S')

    annotated = []
    for summary in summaries:
        item: Dict[str, Any] = dict(summary) if isinstance(summary, dict) else {'content': summary}
        item['fileName'] = file_name
        item['patientName'] = patient_name
        item['processedAt'] = processed_at
        annotated.append(item)

    return UploadResult(
        file_name=file_name,
        summaries=annotated,
        patient_name=patient_name,
        extraction_method=method,
        chunked=chunked,
        raw=data,
    )


class UploadClient:
    """Sends one file at a time to the extraction service."""

    def __init__(self, cfg: AppConfig):
        self.cfg = cfg
        self.base_url = normalize_base_url(cfg.api_base_url)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def upload(
        self,
        file: InputFile,
        *,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> UploadResult:
        """Upload a file, choosing single-shot or chunked transfer by size.

        Args:
            file: PDF to upload
            progress_callback: Receives non-decreasing percentages ending at 100
            cancel_event: Checked before every chunk; when set the upload stops

        Returns:
            Parsed extraction response for the file

        Raises:
            TransportError: A request failed or the server answered non-2xx
            ExtractionError: The server returned no summaries
            UploadCancelled: cancel_event was set mid-upload
        """
        report = progress_callback or (lambda pct: None)
        if file.size <= self.cfg.single_shot_threshold_bytes:
            return self._upload_single(file, report)
        return self._upload_chunked(file, report, cancel_event)

    def _upload_single(self, file: InputFile, report: ProgressCallback) -> UploadResult:
        LOGGER.info("Uploading %s in one request (%s)", file.name, describe_size(file.size))
        report(0)
        try:
            resp = requests.post(
                self._url(UPLOAD_PATH),
                files={'pdf': (file.name, file.data, 'application/pdf')},
                timeout=self.cfg.request_timeout_s,
                verify=self.cfg.verify_tls,
            )
        except requests.RequestException as e:
            raise TransportError(f"Upload request failed: {e}") from e

        if not resp.ok:
            raise TransportError(_error_message(resp), status_code=resp.status_code)

        result = _parse_upload_response(resp, file.name, chunked=False)
        report(100)
        return result

    def _upload_chunked(
        self,
        file: InputFile,
        report: ProgressCallback,
        cancel_event: Optional[threading.Event],
    ) -> UploadResult:
        session = UploadSession(
            session_id=new_session_id(),
            file_name=file.name,
            total_chunks=count_chunks(file.size, self.cfg.chunk_size_bytes),
            chunk_size=self.cfg.chunk_size_bytes,
        )
        LOGGER.info(
            "Uploading %s in %d chunks (%s, session %s)",
            file.name, session.total_chunks, describe_size(file.size), session.session_id,
        )
        report(0)

        chunks = iter_chunks(
            file.data,
            session.chunk_size,
            session_id=session.session_id,
            file_name=session.file_name,
        )
        for descriptor, payload in chunks:
            if cancel_event is not None and cancel_event.is_set():
                raise UploadCancelled(
                    f"Upload of {file.name} cancelled before chunk {descriptor.index}"
                )

            where = f"chunk {descriptor.index} of {descriptor.total_chunks}"
            try:
                resp = requests.post(
                    self._url(CHUNK_PATH),
                    files={'chunk': (file.name, payload, 'application/octet-stream')},
                    data={
                        'chunkIndex': str(descriptor.index),
                        'totalChunks': str(descriptor.total_chunks),
                        'uploadId': descriptor.session_id,
                        'fileName': descriptor.file_name,
                    },
                    timeout=self.cfg.request_timeout_s,
                    verify=self.cfg.verify_tls,
                )
            except requests.RequestException as e:
                raise TransportError(
                    f"Upload of {where} failed: {e}", chunk_index=descriptor.index
                ) from e

            if not resp.ok:
                raise TransportError(
                    f"Upload of {where} failed: {_error_message(resp)}",
                    chunk_index=descriptor.index,
                    status_code=resp.status_code,
                )

            LOGGER.info("Sent %s for %s", where, file.name)
            report(int(CHUNK_PROGRESS_SHARE * (descriptor.index + 1) / descriptor.total_chunks))

        try:
            resp = requests.post(
                self._url(FINALIZE_PATH),
                json={'uploadId': session.session_id},
                timeout=self.cfg.request_timeout_s,
                verify=self.cfg.verify_tls,
            )
        except requests.RequestException as e:
            raise TransportError(f"Upload finalization failed: {e}") from e

        if not resp.ok:
            raise TransportError(
                f"Upload finalization failed: {_error_message(resp)}", status_code=resp.status_code
            )

        result = _parse_upload_response(
            resp, file.name, chunked=True, error_prefix="Upload finalization failed: "
        )
        report(100)
        return result


def upload_file(
    file: InputFile,
    cfg: AppConfig,
    *,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> UploadResult:
    """Convenience wrapper around UploadClient.upload."""
    return UploadClient(cfg).upload(file, progress_callback=progress_callback, cancel_event=cancel_event)
