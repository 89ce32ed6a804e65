"""
Shared fixtures cho tests: data files tạm thời.
"""

import json
import pytest
from datetime import datetime, timedelta, timezone


ACCESS_LOG_TEXT = """2025-04-23 02:21:19,402 - INFO - Using Wi-Fi interface: wlp5s0
2025-04-23 02:21:47,489 - INFO - Received: AUTH:83151058:1111
2025-04-23 02:21:47,489 - INFO - Access Granted
2025-04-23 02:21:47,489 - INFO - Connection closed
2025-04-23 02:22:01,887 - INFO - Received: AUTH:83151058:0000
2025-04-23 02:22:01,887 - INFO - Access denied
2025-04-23 02:22:01,887 - INFO - Connection closed"""


def recent_readings(values, suffix):
    """Readings cách nhau 10 phút, reading cuối là 10 phút trước."""
    now = datetime.now(timezone.utc)
    start = now - timedelta(minutes=10 * len(values))
    return {
        'readings': [
            {f"{value}{suffix}": (start + timedelta(minutes=10 * i)).strftime('%Y-%m-%dT%H:%M:%SZ')}
            for i, value in enumerate(values)
        ]
    }


@pytest.fixture
def data_dir(tmp_path):
    """Thư mục chứa sensor files và access log."""
    (tmp_path / "temp.json").write_text(
        json.dumps(recent_readings([22.0, 24.5, 36.2], 'C')), encoding='utf-8'
    )
    (tmp_path / "humidity.json").write_text(
        json.dumps(recent_readings([45.0, 50.5], '%')), encoding='utf-8'
    )
    (tmp_path / "smoke.json").write_text("{not json", encoding='utf-8')
    (tmp_path / "server.log").write_text(ACCESS_LOG_TEXT, encoding='utf-8')
    return tmp_path


@pytest.fixture
def sensor_files(data_dir):
    return {
        'temperature': str(data_dir / "temp.json"),
        'humidity': str(data_dir / "humidity.json"),
        'smoke': str(data_dir / "smoke.json"),
    }
