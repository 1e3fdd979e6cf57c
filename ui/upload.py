"""Upload section UI and document processing."""

from datetime import datetime

import streamlit as st

from core.logging_utils import describe_size
from core.models import BatchMode, InputFile
from core.validation import partition_inputs
from processor import BatchProcessor
from ui.export import render_export_section
from ui.results import render_batch_report


def render_upload_section():
    """Render the upload tab: file picker, process button and results."""

    st.header("📄 Upload Reports")

    uploaded_files = st.file_uploader(
        "Choose PDF files",
        type=['pdf'],
        accept_multiple_files=True,
        help="Files above the single-request limit are sent in chunks automatically.",
        label_visibility="collapsed",
        key="upload_files",
    )

    if uploaded_files:
        files = [InputFile.from_upload(f) for f in uploaded_files]
        accepted, rejected = partition_inputs(files)
        for f, reason in rejected:
            st.warning(reason)

        total_size = sum(f.size for f in accepted)
        col1, col2 = st.columns(2)
        with col1:
            st.info(f"**Files:** {len(accepted)}")
        with col2:
            st.info(f"**Total size:** {describe_size(total_size)}")

        col1, col2, col3 = st.columns([1, 2, 1])
        with col2:
            if st.button("Process Documents", use_container_width=True, type="primary", disabled=not accepted):
                process_documents(files)
    else:
        st.markdown("""
        <div style='text-align: center; padding: 3rem; background-color: #f8f9fa; border-radius: 10px; border: 2px dashed #ccc;'>
            <h3 style='color: #666;'>No file selected</h3>
            <p style='color: #999;'>Drag and drop lab report PDFs here, or click to browse</p>
        </div>
        """, unsafe_allow_html=True)

    report = st.session_state.get('upload_report')
    if report is not None:
        render_batch_report(report)
        render_summaries(report)
        render_export_section(report)


def process_documents(files):
    """Send the files to the extraction service and store the report."""

    with st.spinner("Uploading and processing... This may take a few minutes."):
        progress_bar = st.progress(0)
        status_text = st.empty()

        def update_progress(msg: str, pct: float):
            status_text.text(msg)
            progress_bar.progress(min(100, int(pct * 100)))

        try:
            processor = BatchProcessor(st.session_state.config)
            report = processor.run(files, BatchMode.UPLOAD, progress_callback=update_progress)
        except ValueError as e:
            st.error(str(e))
            return

        st.session_state.upload_report = report
        st.session_state.patient_name = report.patient_name
        progress_bar.progress(100)
        status_text.text(f"Finished at {datetime.now().strftime('%H:%M:%S')}")


def render_summaries(report):
    summaries = report.summaries
    if not summaries:
        return

    st.header("📊 Extracted Results")
    if report.patient_name:
        st.subheader(report.patient_name)

    for summary in summaries:
        title = summary.get('title') or summary.get('fileName', 'Result')
        with st.expander(f"{title} ({summary.get('fileName', '')})"):
            st.text(summary.get('content', ''))
