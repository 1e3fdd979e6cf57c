"""Split section UI: cut large PDFs into parts locally."""

import streamlit as st

from core.models import BatchMode, InputFile
from processor import BatchProcessor
from ui.export import parts_frame
from ui.results import render_batch_report


def render_split_section():
    """Render the split tab: file picker, part count and downloads."""

    st.header("✂️ Split PDFs")
    cfg = st.session_state.config

    uploaded_files = st.file_uploader(
        "Choose PDF files to split",
        type=['pdf'],
        accept_multiple_files=True,
        label_visibility="collapsed",
        key="split_files",
    )

    options = sorted(cfg.allowed_part_counts)
    current = st.session_state.get('part_count')
    part_count = st.select_slider(
        "Number of parts",
        options=options,
        value=current if current in options else options[0],
        help="Each file is cut into this many parts with roughly the same number of pages",
    )
    st.session_state.part_count = part_count

    if uploaded_files:
        if st.button("Split", use_container_width=True, type="primary"):
            files = [InputFile.from_upload(f) for f in uploaded_files]
            split_documents(files, part_count)

    report = st.session_state.get('split_report')
    if report is not None:
        render_batch_report(report)
        render_parts(report)


def split_documents(files, part_count: int):
    progress_bar = st.progress(0)
    status_text = st.empty()

    def update_progress(msg: str, pct: float):
        status_text.text(msg)
        progress_bar.progress(min(100, int(pct * 100)))

    try:
        report = BatchProcessor(st.session_state.config).run(
            files, BatchMode.SPLIT, part_count=part_count, progress_callback=update_progress
        )
    except ValueError as e:
        st.error(str(e))
        return

    st.session_state.split_report = report


def render_parts(report):
    parts = report.parts
    if not parts:
        return

    st.header("📥 Parts")
    st.dataframe(parts_frame(report), use_container_width=True, hide_index=True)

    for i, part in enumerate(parts):
        st.download_button(
            label=f"Download {part.file_name} ({part.page_count} pages)",
            data=part.data,
            file_name=part.file_name,
            mime="application/pdf",
            key=f"download_part_{i}",
        )
