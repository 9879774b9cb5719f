"""Streamlit views: sidebar controls, the CQ map and the detail panel."""
