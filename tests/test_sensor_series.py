"""
Test Sensor Series Module
=========================
Unit tests cho SensorSeriesNormalizer và các helpers.
"""

import math
import pytest
import pandas as pd
from datetime import datetime, timedelta, timezone
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from serverroom.data.sensor_series import (
    SensorSeriesNormalizer,
    parse_value,
    classify_status,
    normalize_series,
    latest_reading,
    series_stats,
    MAX_POINTS
)


NOW = datetime(2025, 4, 23, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.strftime('%Y-%m-%dT%H:%M:%SZ')


def make_document(values, start, step, suffix='C'):
    """Tạo raw document với các readings cách nhau `step`."""
    return {
        'readings': [
            {f"{value}{suffix}": iso(start + step * i)}
            for i, value in enumerate(values)
        ]
    }


class TestParseValue:
    """Test cases cho parse_value."""

    def test_smoke_value(self):
        """Test '807.17ppm' → 807.17 ppm."""
        value, unit = parse_value("807.17ppm", "smoke")

        assert value == 807.17
        assert unit == "ppm"

    def test_temperature_value(self):
        value, unit = parse_value("43.7C", "temperature")

        assert value == 43.7
        assert unit == "°C"

    def test_humidity_value(self):
        value, unit = parse_value("13.6%", "humidity")

        assert value == 13.6
        assert unit == "%"

    def test_negative_and_integer_values(self):
        """Test giá trị âm và số nguyên."""
        assert parse_value("-4.5C", "temperature")[0] == -4.5
        assert parse_value("22C", "temperature")[0] == 22.0

    def test_numeric_prefix(self):
        """Test chỉ lấy phần số đứng đầu."""
        assert parse_value("12.5 ppm", "smoke")[0] == 12.5
        assert parse_value("55.2%rh", "humidity")[0] == 55.2

    def test_malformed_value(self):
        """Test value không hợp lệ → NaN."""
        value, unit = parse_value("n/a", "smoke")

        assert math.isnan(value)
        assert unit == "ppm"

    def test_unknown_sensor_type(self):
        with pytest.raises(ValueError):
            parse_value("1.0", "pressure")


class TestClassifyStatus:
    """Test cases cho classify_status."""

    def test_temperature_thresholds(self):
        """Test ngưỡng nhiệt độ, bao gồm biên 35 và 40."""
        assert classify_status(34.9, 'temperature') == 'normal'
        assert classify_status(35, 'temperature') == 'warning'
        assert classify_status(39.9, 'temperature') == 'warning'
        assert classify_status(40, 'temperature') == 'error'

    def test_humidity_thresholds(self):
        """Test ngưỡng độ ẩm ở cả hai phía."""
        assert classify_status(50, 'humidity') == 'normal'
        assert classify_status(30, 'humidity') == 'warning'
        assert classify_status(20.5, 'humidity') == 'warning'
        assert classify_status(20, 'humidity') == 'error'
        assert classify_status(70, 'humidity') == 'warning'
        assert classify_status(79.9, 'humidity') == 'warning'
        assert classify_status(80, 'humidity') == 'error'
        assert classify_status(13.6, 'humidity') == 'error'

    def test_smoke_thresholds(self):
        assert classify_status(807.17, 'smoke') == 'normal'
        assert classify_status(1000, 'smoke') == 'warning'
        assert classify_status(1500, 'smoke') == 'error'

    def test_nan_is_error(self):
        """Test NaN luôn là error."""
        for sensor_type in ['temperature', 'humidity', 'smoke']:
            assert classify_status(float('nan'), sensor_type) == 'error'


class TestNormalizeSeries:
    """Test cases cho normalize_series."""

    def test_missing_readings(self):
        """Test document không có readings → list rỗng."""
        assert normalize_series({}, 'smoke', 'day', now=NOW) == []
        assert normalize_series(None, 'smoke', 'day', now=NOW) == []
        assert normalize_series({'readings': 'oops'}, 'smoke', 'day', now=NOW) == []
        assert normalize_series({'readings': []}, 'smoke', 'year', now=NOW) == []

    def test_day_filter(self):
        """Test time range 'day' chỉ giữ 24h gần nhất."""
        doc = make_document([20, 21, 22, 23], NOW - timedelta(hours=30), timedelta(hours=10))
        points = normalize_series(doc, 'temperature', 'day', now=NOW)

        # 30h, 20h, 10h, 0h trước → giữ 3 điểm cuối
        assert [p.value for p in points] == [21.0, 22.0, 23.0]
        assert all(p.unit == '°C' for p in points)

    def test_week_and_month_filter(self):
        """Test cửa sổ 7 ngày, 30 ngày (bao gồm biên) và year không lọc."""
        doc = make_document([1, 2, 3, 4], NOW - timedelta(days=45), timedelta(days=15), suffix='ppm')

        week = normalize_series(doc, 'smoke', 'week', now=NOW)
        month = normalize_series(doc, 'smoke', 'month', now=NOW)
        year = normalize_series(doc, 'smoke', 'year', now=NOW)

        assert [p.value for p in week] == [4.0]
        assert [p.value for p in month] == [2.0, 3.0, 4.0]
        assert [p.value for p in year] == [1.0, 2.0, 3.0, 4.0]

    def test_formatted_time(self):
        """Test format thời gian theo time range."""
        doc = {'readings': [{"50%": "2025-04-22T14:05:00Z"}]}

        assert normalize_series(doc, 'humidity', 'day', now=NOW)[0].formatted_time == '14:05'
        assert normalize_series(doc, 'humidity', 'week', now=NOW)[0].formatted_time == 'Tue'
        assert normalize_series(doc, 'humidity', 'month', now=NOW)[0].formatted_time == '22 Apr'
        assert normalize_series(doc, 'humidity', 'year', now=NOW)[0].formatted_time == 'Apr'

    def test_keeps_original_time_string(self):
        doc = {'readings': [{"50%": "2025-04-22T14:05:00Z"}]}
        point = normalize_series(doc, 'humidity', 'year', now=NOW)[0]

        assert point.time == "2025-04-22T14:05:00Z"

    def test_sorted_ascending(self):
        """Test output sort theo thời gian tăng dần dù input đảo thứ tự."""
        doc = make_document(list(range(10)), NOW - timedelta(hours=10), timedelta(hours=1))
        doc['readings'].reverse()

        points = normalize_series(doc, 'temperature', 'day', now=NOW)
        times = [pd.Timestamp(p.time) for p in points]

        assert times == sorted(times)
        assert [p.value for p in points] == [float(v) for v in range(10)]

    def test_downsample(self):
        """Test > 50 điểm → lấy mỗi điểm thứ k = ceil(n / 50)."""
        doc = make_document(list(range(120)), NOW - timedelta(minutes=120), timedelta(minutes=1))
        points = normalize_series(doc, 'temperature', 'day', now=NOW)

        # k = ceil(120 / 50) = 3
        assert len(points) == 40
        assert [p.value for p in points[:4]] == [0.0, 3.0, 6.0, 9.0]

    @pytest.mark.parametrize("count", [51, 99, 101, 250, 1000])
    def test_downsample_bound(self, count):
        """Test output không vượt quá MAX_POINTS."""
        doc = make_document([1] * count, NOW - timedelta(days=300), timedelta(minutes=5))
        points = normalize_series(doc, 'temperature', 'year', now=NOW)

        assert 0 < len(points) <= MAX_POINTS

    def test_exactly_max_points_not_sampled(self):
        doc = make_document(list(range(MAX_POINTS)), NOW - timedelta(hours=5), timedelta(minutes=1))

        assert len(normalize_series(doc, 'temperature', 'day', now=NOW)) == MAX_POINTS

    def test_malformed_value_kept_as_nan(self):
        """Test value lỗi vẫn giữ lại với NaN."""
        doc = {'readings': [
            {"abcC": iso(NOW - timedelta(hours=1))},
            {"21.5C": iso(NOW - timedelta(minutes=30))},
        ]}
        points = normalize_series(doc, 'temperature', 'day', now=NOW)

        assert len(points) == 2
        assert math.isnan(points[0].value)
        assert points[1].value == 21.5

    def test_relative_keyword_timestamps_dropped(self):
        """Test timestamp 'today' / 'now' bị bỏ, không lọt qua filter 24h."""
        doc = {'readings': [
            {"20C": "today"},
            {"21C": "now"},
            {"22C": iso(NOW - timedelta(hours=1))},
        ]}
        points = normalize_series(doc, 'temperature', 'day', now=NOW)

        assert [p.value for p in points] == [22.0]

    def test_malformed_readings_dropped(self):
        """Test reading không phải một cặp hoặc timestamp lỗi bị bỏ qua."""
        doc = {'readings': [
            {"20C": iso(NOW - timedelta(hours=3))},
            "21C",
            {},
            {"22C": iso(NOW - timedelta(hours=2)), "23C": iso(NOW - timedelta(hours=1))},
            {"24C": "not a time"},
            {"25C": iso(NOW - timedelta(minutes=5))},
        ]}
        points = normalize_series(doc, 'temperature', 'year', now=NOW)

        assert [p.value for p in points] == [20.0, 25.0]

    def test_to_frame_columns(self):
        doc = make_document([20, 21], NOW - timedelta(hours=2), timedelta(hours=1))
        df = SensorSeriesNormalizer(doc, 'temperature').to_frame('day', now=NOW)

        assert list(df.columns) == ['time', 'timestamp', 'formatted_time', 'value', 'unit']
        assert len(df) == 2

    def test_to_frame_empty(self):
        df = SensorSeriesNormalizer({}, 'smoke').to_frame('day', now=NOW)

        assert len(df) == 0
        assert 'formatted_time' in df.columns


class TestLatestReading:
    """Test cases cho latest_reading."""

    def test_temperature_scenario(self):
        """Test reading cuối 43.7C → 43.7 °C, vượt ngưỡng 40."""
        doc = {'readings': [
            {"22.0C": "2025-01-01T00:00:00Z"},
            {"43.7C": "2025-01-01T01:00:00Z"},
        ]}
        latest = latest_reading(doc, 'temperature')

        assert latest.value == 43.7
        assert latest.unit == '°C'
        assert latest.timestamp == "2025-01-01T01:00:00Z"
        assert latest.status == 'error'

    def test_uses_sequence_position(self):
        """Test lấy phần tử cuối theo thứ tự, không theo timestamp."""
        doc = {'readings': [
            {"1200ppm": "2025-01-02T00:00:00Z"},
            {"807.17ppm": "2025-01-01T00:00:00Z"},
        ]}
        latest = latest_reading(doc, 'smoke')

        assert latest.value == 807.17
        assert latest.status == 'normal'

    def test_empty_document(self):
        """Test không có reading → value 0, timestamp = now, không có unit/status."""
        latest = latest_reading({'readings': []}, 'humidity', now=NOW)

        assert latest.value == 0
        assert latest.timestamp == "2025-04-23T12:00:00.000Z"
        assert latest.unit is None
        assert latest.status is None


class TestSeriesStats:
    """Test cases cho series_stats."""

    def test_empty_series(self):
        assert series_stats([]) is None

    def test_stats(self):
        """Test current / min / max / avg."""
        doc = make_document([20, 30, 25], NOW - timedelta(hours=3), timedelta(hours=1))
        stats = series_stats(normalize_series(doc, 'temperature', 'day', now=NOW))

        assert stats.current == 25.0
        assert stats.minimum == 20.0
        assert stats.maximum == 30.0
        assert stats.average == pytest.approx(25.0)
        assert stats.unit == '°C'
        assert stats.count == 3

    def test_stats_skip_nan(self):
        doc = {'readings': [
            {"20C": iso(NOW - timedelta(hours=2))},
            {"xC": iso(NOW - timedelta(hours=1))},
        ]}
        stats = series_stats(normalize_series(doc, 'temperature', 'day', now=NOW))

        assert math.isnan(stats.current)
        assert stats.minimum == 20.0
        assert stats.average == 20.0


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
