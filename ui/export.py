"""Export section UI for downloading results."""

import json
from datetime import datetime
from typing import List

import streamlit as st
import pandas as pd

from core.models import BatchReport, FileStatus


def summaries_frame(report: BatchReport) -> pd.DataFrame:
    """One row per extracted summary, tagged with its source file."""
    rows = []
    for summary in report.summaries:
        rows.append({
            'File': summary.get('fileName', ''),
            'Patient': summary.get('patientName') or '',
            'Title': summary.get('title', ''),
            'Content': summary.get('content', ''),
            'ProcessedAt': summary.get('processedAt', ''),
        })
    return pd.DataFrame(rows, columns=['File', 'Patient', 'Title', 'Content', 'ProcessedAt'])


def report_frame(report: BatchReport) -> pd.DataFrame:
    """One row per input file with its status, error and warnings."""
    rows = []
    for name in report.file_names:
        status = report.statuses.get(name, FileStatus.PENDING)
        rows.append({
            'File': name,
            'Status': status.value,
            'Error': report.per_file_errors.get(name, ''),
            'Warnings': "; ".join(report.per_file_warnings.get(name, [])),
        })
    return pd.DataFrame(rows, columns=['File', 'Status', 'Error', 'Warnings'])


def parts_frame(report: BatchReport) -> pd.DataFrame:
    rows = [
        {
            'Part': p.file_name,
            'Source': p.source_file_name,
            'Pages': p.page_count,
            'Strategy': p.load_strategy_used.split(':')[0],
            'Warnings': len(p.warnings),
        }
        for p in report.parts
    ]
    return pd.DataFrame(rows, columns=['Part', 'Source', 'Pages', 'Strategy', 'Warnings'])


def _stamp() -> str:
    return datetime.now().strftime('%Y%m%d_%H%M%S')


def render_export_section(report: BatchReport):
    """Render the export section with download options."""

    summaries: List[dict] = report.summaries
    if not summaries:
        return

    st.header("💾 Export Results")

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("JSON Format")
        json_str = json.dumps(
            {'patientName': report.patient_name, 'summaries': summaries},
            indent=2,
            ensure_ascii=False,
        )
        st.download_button(
            label="Download JSON",
            data=json_str,
            file_name=f"results_{_stamp()}.json",
            mime="application/json",
            use_container_width=True
        )

    with col2:
        st.subheader("CSV Format")
        csv = summaries_frame(report).to_csv(index=False)
        st.download_button(
            label="Download CSV",
            data=csv,
            file_name=f"results_{_stamp()}.csv",
            mime="text/csv",
            use_container_width=True
        )
