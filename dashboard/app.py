"""
Streamlit Dashboard
===================
Dashboard giám sát phòng máy chủ với 5 tabs:
    1. Overview - Reading mới nhất của các sensors và trạng thái cửa
    2. Temperature - Analytics nhiệt độ
    3. Humidity - Analytics độ ẩm
    4. Air Quality - Analytics khói (ppm)
    5. Access Control - Lịch sử RFID access

Mỗi tab là một st.fragment tự chạy lại theo chu kỳ polling trong config;
dữ liệu được cache với TTL bằng cùng chu kỳ đó.

Run:
    streamlit run dashboard/app.py
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from serverroom.config import get_config
from serverroom.data.access_log import (
    parse_access_logs, compute_access_stats, filter_access_attempts
)
from serverroom.data.exceptions import DataSourceError
from serverroom.data.loader import build_sources
from serverroom.data.sensor_series import SensorSeriesNormalizer, series_stats

CONFIG = get_config()

# Page config
st.set_page_config(
    page_title="Server Room Monitoring",
    page_icon="🖥️",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Ngưỡng vẽ trên chart: (warning, error) hoặc dải normal cho humidity
SENSOR_META = {
    'temperature': {'title': 'Temperature', 'icon': '🌡️', 'color': 'orange', 'lines': [35.0, 40.0]},
    'humidity': {'title': 'Humidity', 'icon': '💧', 'color': 'steelblue', 'lines': [30.0, 70.0]},
    'smoke': {'title': 'Air Quality', 'icon': '💨', 'color': 'gray', 'lines': [1000.0, 1500.0]},
}

STATUS_BADGES = {
    'normal': '🟢 Normal',
    'warning': '🟠 Warning',
    'error': '🔴 Error',
}

TIME_RANGES = ['day', 'week', 'month', 'year']

# =============================================================================
# Data Loading Functions
# =============================================================================

@st.cache_resource
def load_sources():
    """Tạo data sources từ config."""
    return build_sources(CONFIG)


@st.cache_data(ttl=CONFIG.polling.sensor_interval)
def load_sensor(sensor_type):
    """Load raw sensor document. Trả về (document, error message)."""
    sensors, _ = load_sources()
    try:
        return sensors.load(sensor_type), None
    except DataSourceError as e:
        return None, str(e)


@st.cache_data(ttl=CONFIG.polling.access_interval)
def load_access_log():
    """Load raw access log. Trả về (text, error message)."""
    _, access_log = load_sources()
    try:
        return access_log.load(), None
    except DataSourceError as e:
        return None, str(e)


# =============================================================================
# Helper Functions
# =============================================================================

def format_value(value, unit):
    """Format value với 1 chữ số thập phân."""
    if value is None or pd.isna(value):
        return "-"
    return f"{value:.1f} {unit or ''}".strip()


# =============================================================================
# Tab 1: Overview
# =============================================================================

@st.fragment(run_every=CONFIG.polling.access_interval)
def render_overview_tab():
    """Render Overview tab."""
    st.header("📊 Server Room Overview")

    columns = st.columns(len(SENSOR_META))

    for col, (sensor_type, meta) in zip(columns, SENSOR_META.items()):
        with col:
            raw, error = load_sensor(sensor_type)
            if error:
                st.error(f"{meta['title']}: {error}")
                continue

            latest = SensorSeriesNormalizer(raw, sensor_type).latest()
            st.metric(
                f"{meta['icon']} {meta['title']}",
                format_value(latest.value, latest.unit),
                help=f"Cập nhật: {latest.timestamp}"
            )
            st.caption(STATUS_BADGES.get(latest.status, 'No data'))

    st.markdown("---")

    st.subheader("🔐 Door Status")
    raw_log, error = load_access_log()
    if error:
        st.error(error)
        return

    stats = compute_access_stats(parse_access_logs(raw_log))
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Controller", stats.status.capitalize())
    with col2:
        st.metric("Door", "Locked" if stats.door_locked else "Unlocked")
    with col3:
        st.metric("Successful (24h)", stats.successful_accesses)
    with col4:
        st.metric("Failed (24h)", stats.failed_attempts)


# =============================================================================
# Tab 2-4: Sensor Analytics
# =============================================================================

@st.fragment(run_every=CONFIG.polling.sensor_interval)
def render_sensor_tab(sensor_type):
    """Render analytics tab cho một sensor type."""
    meta = SENSOR_META[sensor_type]
    st.header(f"{meta['icon']} {meta['title']} Analytics")

    time_range = st.radio(
        "Time Range",
        TIME_RANGES,
        horizontal=True,
        key=f"range_{sensor_type}"
    )

    raw, error = load_sensor(sensor_type)
    if error:
        st.error(f"Failed to load {sensor_type} data: {error}")
        return

    normalizer = SensorSeriesNormalizer(raw, sensor_type)
    df = normalizer.to_frame(time_range)
    stats = series_stats(normalizer.normalize(time_range))

    if stats is None:
        st.warning("Không có dữ liệu trong khoảng thời gian này.")
        return

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Current", format_value(stats.current, stats.unit))
    with col2:
        st.metric("Minimum", format_value(stats.minimum, stats.unit))
    with col3:
        st.metric("Maximum", format_value(stats.maximum, stats.unit))
    with col4:
        st.metric("Average", format_value(stats.average, stats.unit))

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df['timestamp'],
        y=df['value'],
        mode='lines+markers',
        name=meta['title'],
        line=dict(color=meta['color']),
        customdata=df['formatted_time'],
        hovertemplate="%{customdata}: %{y:.1f}<extra></extra>"
    ))

    for level in meta['lines']:
        fig.add_hline(
            y=level,
            line_dash="dash",
            line_color="red",
            opacity=0.5,
            annotation_text=f"{level:g} {stats.unit}",
            annotation_position="top left"
        )

    fig.update_layout(
        title=f"{meta['title']} ({time_range})",
        xaxis_title="Time",
        yaxis_title=stats.unit,
        height=400
    )
    st.plotly_chart(fig, use_container_width=True)

    st.caption(f"Last updated: {df['time'].iloc[-1]} · {stats.count} points")


# =============================================================================
# Tab 5: Access Control
# =============================================================================

@st.fragment(run_every=CONFIG.polling.access_interval)
def render_access_tab():
    """Render Access Control tab."""
    st.header("🔐 RFID Access History")

    raw_log, error = load_access_log()
    if error:
        st.error(f"Failed to load access logs: {error}")
        return

    attempts = parse_access_logs(raw_log)
    stats = compute_access_stats(attempts)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Attempts", len(attempts))
    with col2:
        st.metric("Successful (24h)", stats.successful_accesses)
    with col3:
        st.metric("Failed (24h)", stats.failed_attempts)

    col1, col2 = st.columns([1, 2])
    with col1:
        status_filter = st.selectbox("Filter", ['all', 'success', 'failed'])
    with col2:
        search = st.text_input("Search card or user")

    filtered = filter_access_attempts(attempts, status=status_filter, search=search)

    if not filtered:
        st.info("Không có access attempt nào khớp với bộ lọc.")
        return

    table = pd.DataFrame([a.to_dict() for a in filtered])
    table['status'] = table['status'].map(
        {'success': '✅ Granted', 'failed': '❌ Denied'}
    ).fillna('❔ Unknown')
    st.dataframe(
        table[['timestamp', 'user', 'card_id', 'status']],
        hide_index=True,
        use_container_width=True
    )
    st.caption(f"Showing {len(filtered)} results")


# =============================================================================
# Main
# =============================================================================

def main():
    st.sidebar.title("🖥️ Server Room")
    st.sidebar.caption(f"Sensor refresh: {CONFIG.polling.sensor_interval:g}s")
    st.sidebar.caption(f"Access log refresh: {CONFIG.polling.access_interval:g}s")

    if st.sidebar.button("Refresh now"):
        st.cache_data.clear()

    tabs = st.tabs(["Overview", "Temperature", "Humidity", "Air Quality", "Access Control"])

    with tabs[0]:
        render_overview_tab()
    with tabs[1]:
        render_sensor_tab('temperature')
    with tabs[2]:
        render_sensor_tab('humidity')
    with tabs[3]:
        render_sensor_tab('smoke')
    with tabs[4]:
        render_access_tab()


if __name__ == "__main__":
    main()
