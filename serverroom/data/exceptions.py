"""
Data Source Exceptions
======================
Lỗi I/O từ data sources. Nội dung lỗi (JSON sai format, log lines không
parse được) không raise exception, chỉ lỗi đọc file mới raise.
"""


class DataSourceError(Exception):
    """File không đọc được hoặc không phải JSON hợp lệ."""


class UnknownSensorError(DataSourceError):
    """Sensor type không có trong cấu hình."""

    def __init__(self, sensor_type: str):
        super().__init__(f"Sensor type '{sensor_type}' not found")
        self.sensor_type = sensor_type
