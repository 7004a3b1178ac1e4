# app.py - Sales Reports Main Entry Point
import logging

import streamlit as st

from sales_reports.config import APP_CONFIG
from sales_reports.db import check_db_connection, reset_db_engine

# Configure logging
logging.basicConfig(
    level=getattr(logging, str(APP_CONFIG["LOG_LEVEL"]).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Sales Reports",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 1rem;
        color: #1f77b4;
    }
    .stButton>button {
        width: 100%;
    }
</style>
""", unsafe_allow_html=True)

st.markdown('<p class="main-header">📊 Sales Reports</p>', unsafe_allow_html=True)

st.markdown("""
Revenue, orders and dealer performance for any date range.

- **KPIs** with changes against the previous period
- **Trend charts** by day, week, month or quarter
- **Dealer and order tables** with drill-down to orders and line items
- **Export** of the current view to CSV, Excel or PDF
""")

# Database status
with st.spinner("Checking database connection..."):
    connected, error = check_db_connection()

if connected:
    st.success("✅ Database connected")
    st.page_link("pages/1_📊_Sales_Reports.py", label="Open Sales Reports", icon="📊")
else:
    logger.error(f"Database unavailable: {error}")
    st.error(f"❌ {error}")
    st.info("Set REPORTS_DB_URL (or REPORTS_DB_HOST / REPORTS_DB_USER / REPORTS_DB_PASSWORD / "
            "REPORTS_DB_NAME) and retry.")
    if st.button("🔄 Retry connection"):
        reset_db_engine()
        st.rerun()
