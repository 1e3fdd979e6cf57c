"""Streamlit sidebar component for configuration."""

import dataclasses

import streamlit as st

from backend.upload_api import normalize_base_url
from core.logging_utils import describe_size


def render_sidebar():
    """Render the sidebar with API URL, transfer settings and actions."""

    cfg = st.session_state.config

    with st.sidebar:
        st.title("⚙️ Configuration")

        # Backend Configuration
        st.subheader("Extraction API")

        base_url = st.text_input(
            "Base URL",
            value=st.session_state.api_base_url,
            help="Example: http://localhost:5000",
        )
        st.session_state.api_base_url = normalize_base_url(base_url)

        verify_tls = st.checkbox(
            "Verify TLS",
            value=cfg.verify_tls,
            help="Disable only for local dev with self-signed certs",
        )

        if st.session_state.api_base_url != cfg.api_base_url or verify_tls != cfg.verify_tls:
            st.session_state.config = dataclasses.replace(
                cfg, api_base_url=st.session_state.api_base_url, verify_tls=verify_tls
            )

        st.markdown("---")

        # Transfer settings are read-only here; change them through the environment.
        st.subheader("Transfer")
        st.caption(f"Single request up to {describe_size(cfg.single_shot_threshold_bytes)}")
        st.caption(f"Larger files are sent in {describe_size(cfg.chunk_size_bytes)} chunks")
        st.caption(f"Known passwords tried when splitting: {len(cfg.candidate_passwords)}")

        st.markdown("---")

        # Actions
        st.subheader("Actions")

        if st.button("Clear results", use_container_width=True, type="secondary"):
            st.session_state.upload_report = None
            st.session_state.split_report = None
            st.session_state.patient_name = None
            st.rerun()
