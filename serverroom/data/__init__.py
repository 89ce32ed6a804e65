"""
Data Module
===========
Chứa các công cụ để parse access log và chuẩn hóa sensor data.

Classes:
- AccessLogParser: Parse log của bộ điều khiển cửa RFID
- SensorSeriesNormalizer: Chuẩn hóa sensor readings thành time series
- SensorSource, AccessLogSource: Đọc raw data từ file
"""

from .access_log import AccessLogParser, parse_access_logs, compute_access_stats
from .sensor_series import SensorSeriesNormalizer, normalize_series, latest_reading
from .loader import SensorSource, AccessLogSource

__all__ = [
    'AccessLogParser', 'parse_access_logs', 'compute_access_stats',
    'SensorSeriesNormalizer', 'normalize_series', 'latest_reading',
    'SensorSource', 'AccessLogSource'
]
