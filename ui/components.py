"""Common UI components and utilities."""

import streamlit as st


def render_header():
    """Render the application header."""
    st.title("Lab Report Uploader")
    st.markdown("""
    <div style='text-align: center; padding: 1rem 0; color: #666;'>
        Send laboratory report PDFs for extraction, or split large PDFs into smaller parts
    </div>
    """, unsafe_allow_html=True)

    # Quick stats if results exist
    report = st.session_state.get('upload_report')
    if report is not None:
        col1, col2, col3 = st.columns(3)

        with col1:
            st.metric("Results", len(report.summaries))
        with col2:
            st.metric("Files", f"{report.succeeded_count}/{len(report.file_names)}")
        with col3:
            st.metric("Patient", st.session_state.get('patient_name') or "N/A")

    st.divider()


def render_footer():
    """Render the application footer."""
    st.divider()
    st.markdown("""
    <div style='text-align: center; color: #999; padding: 2rem 0;'>
        <p>Made with Streamlit and pypdf</p>
    </div>
    """, unsafe_allow_html=True)


def load_css():
    """Load custom CSS styles."""
    st.markdown("""
    <style>
        .block-container {
            padding-top: 1.5rem;
            max-width: 1100px;
        }

        h1 {
            color: #2e7d5b;
        }

        .stTabs [data-baseweb="tab"] {
            font-size: 1.05rem;
            padding: 0.5rem 1.25rem;
        }

        .stDownloadButton button {
            width: 100%;
            border-radius: 6px;
        }

        .stProgress > div > div > div {
            background-color: #2e7d5b;
        }

        [data-testid="stFileUploaderDropzone"] {
            border: 2px dashed #9ccfb6;
            border-radius: 10px;
        }

        [data-testid="stMetric"] {
            background-color: #f3f8f5;
            padding: 0.75rem 1rem;
            border-radius: 8px;
        }
    </style>
    """, unsafe_allow_html=True)
