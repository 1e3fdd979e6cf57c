"""Rendering of a BatchReport: status banner, per-file errors and warnings."""

import streamlit as st

from core.errors import error_hints
from core.models import BATCH_PARTIAL_SUCCESS, BATCH_SUCCESS, BatchReport, FileStatus

STATUS_ICONS = {
    FileStatus.SUCCEEDED: "✅",
    FileStatus.SUCCEEDED_WITH_WARNINGS: "⚠️",
    FileStatus.FAILED: "❌",
    FileStatus.SKIPPED: "⏭️",
    FileStatus.PENDING: "⏳",
    FileStatus.IN_PROGRESS: "⟳",
}


def render_batch_report(report: BatchReport):
    """Render the aggregated outcome of a batch run."""

    if report.status == BATCH_SUCCESS:
        st.success(report.summary_message())
    elif report.status == BATCH_PARTIAL_SUCCESS:
        st.warning(report.summary_message())
    else:
        st.error(report.summary_message())

    with st.expander("Files", expanded=report.status != BATCH_SUCCESS):
        for name in report.file_names:
            status = report.statuses.get(name, FileStatus.PENDING)
            st.markdown(f"{STATUS_ICONS.get(status, '')} **{name}** ({status.value})")

            error = report.per_file_errors.get(name)
            if error:
                st.caption(error)
                hints = error_hints(error)
                if hints:
                    st.markdown("\n".join(f"- {h}" for h in hints))

            for warning in report.per_file_warnings.get(name, []):
                st.caption(f"⚠️ {warning}")

    if report.per_file_warnings and report.produced_artifacts:
        st.info(
            "Some documents were processed with adjustments. "
            "Check the results carefully before using them."
        )
