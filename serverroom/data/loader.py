"""
Data Sources
============
Đọc raw data từ các file do thiết bị trong phòng máy ghi ra.

    - SensorSource: File JSON của từng sensor type
    - AccessLogSource: File log của bộ điều khiển cửa RFID

Lỗi I/O (file không tồn tại, không đọc được, JSON hỏng) raise DataSourceError.
Nội dung bên trong file không được validate ở đây: normalizers tự bỏ qua
các phần không hợp lệ.
"""

import json
import os
from typing import Any, Dict

from .exceptions import DataSourceError, UnknownSensorError


# Log mẫu cho môi trường development khi không có file log thật
MOCK_ACCESS_LOG = """2025-04-23 02:21:19,402 - INFO - Using Wi-Fi interface: wlp5s0
2025-04-23 02:21:19,403 - INFO - Generated hostapd configuration at /tmp/hostapd.conf
2025-04-23 02:21:19,403 - INFO - Generated dnsmasq configuration at /tmp/dnsmasq.conf
2025-04-23 02:21:47,489 - INFO - Received: AUTH:83151058:1111
2025-04-23 02:21:47,489 - INFO - Access Granted
2025-04-23 02:21:47,489 - INFO - Connection closed
2025-04-23 02:22:01,887 - INFO - Received: AUTH:83151058:0000
2025-04-23 02:22:01,887 - INFO - Access denied
2025-04-23 02:22:01,887 - INFO - Connection closed
2025-04-23 02:22:12,092 - INFO - Received: AUTH:83151058:1111
2025-04-23 02:22:12,092 - INFO - Access Granted
2025-04-23 02:22:12,092 - INFO - Connection closed"""


class SensorSource:
    """
    Đọc sensor documents theo sensor type.

    Attributes:
        sensor_files: Mapping sensor type → đường dẫn file JSON

    Usage:
        >>> source = SensorSource({'smoke': '/home/capstone/smoke.json'})
        >>> doc = source.load('smoke')
    """

    def __init__(self, sensor_files: Dict[str, str]):
        self.sensor_files = dict(sensor_files)

    def path_for(self, sensor_type: str) -> str:
        """
        Đường dẫn file của sensor type.

        Raises:
            UnknownSensorError: Nếu sensor type không được cấu hình
        """
        path = self.sensor_files.get(sensor_type)
        if not path:
            raise UnknownSensorError(sensor_type)
        return path

    def load(self, sensor_type: str) -> Any:
        """
        Đọc và decode file JSON của sensor.

        Args:
            sensor_type: 'temperature', 'humidity' hoặc 'smoke'

        Returns:
            Decoded JSON document

        Raises:
            UnknownSensorError: Sensor type không có trong cấu hình
            DataSourceError: Không đọc được file hoặc JSON không hợp lệ
        """
        path = self.path_for(sensor_type)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = f.read()
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {sensor_type} data: {e}")
            raise DataSourceError(f"Failed to read {sensor_type} data") from e

        try:
            return json.loads(data)
        except ValueError as e:
            print(f"Error parsing {sensor_type} data: {e}")
            raise DataSourceError(f"Failed to parse {sensor_type} data") from e

    def available(self) -> Dict[str, bool]:
        """Sensor type nào có file tồn tại."""
        return {
            sensor_type: os.path.exists(path)
            for sensor_type, path in self.sensor_files.items()
        }


class AccessLogSource:
    """
    Đọc file log của bộ điều khiển cửa RFID.

    Attributes:
        log_file: Đường dẫn file log
        mock_fallback: Trả về MOCK_ACCESS_LOG khi file không tồn tại
    """

    def __init__(self, log_file: str, mock_fallback: bool = True):
        self.log_file = log_file
        self.mock_fallback = mock_fallback

    def load(self) -> str:
        """
        Đọc toàn bộ nội dung file log.

        Returns:
            Nội dung log (text)

        Raises:
            DataSourceError: Không đọc được file (và không dùng mock)
        """
        try:
            with open(self.log_file, 'r', encoding='utf-8', errors='replace') as f:
                return f.read()
        except FileNotFoundError as e:
            if self.mock_fallback:
                print(f"Access log not found at {self.log_file}, using mock data")
                return MOCK_ACCESS_LOG
            print(f"Error reading RFID access logs: {e}")
            raise DataSourceError("Failed to read RFID access logs") from e
        except OSError as e:
            print(f"Error reading RFID access logs: {e}")
            raise DataSourceError("Failed to read RFID access logs") from e

    def available(self) -> bool:
        return os.path.exists(self.log_file)


def build_sources(config=None):
    """
    Tạo data sources từ AppConfig.

    Args:
        config: AppConfig (mặc định: get_config())

    Returns:
        Tuple (SensorSource, AccessLogSource)
    """
    if config is None:
        from ..config import get_config
        config = get_config()

    sensors = SensorSource(config.sources.sensor_files)
    access_log = AccessLogSource(
        config.sources.access_log_file,
        mock_fallback=config.sources.mock_fallback
    )
    return sensors, access_log
