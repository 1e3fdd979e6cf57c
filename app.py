"""
Lab Report Uploader - laboratory report PDF upload and splitting
Send reports to the extraction service or split large PDFs into parts
"""

import streamlit as st

from core.config import initialize_session_state
from core.logging_utils import get_logger
from ui.components import load_css, render_footer, render_header
from ui.sidebar import render_sidebar
from ui.split import render_split_section
from ui.upload import render_upload_section

LOGGER = get_logger()

# Page Configuration - MUST be the first Streamlit command
st.set_page_config(
    page_title="Lab Report Uploader",
    page_icon="🧪",
    layout="wide",
    initial_sidebar_state="expanded",
)


def main():
    """Main application entry point"""

    initialize_session_state()
    load_css()

    render_sidebar()
    render_header()

    upload_tab, split_tab = st.tabs(["Upload", "Split"])
    with upload_tab:
        render_upload_section()
    with split_tab:
        render_split_section()

    render_footer()


if __name__ == "__main__":
    main()
