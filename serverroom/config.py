"""
Configuration
=============
Cấu hình cho data sources, polling và API server.

Giá trị đọc từ environment variables (hoặc file .env qua python-dotenv):
    SENSOR_TEMPERATURE_FILE   (mặc định /home/capstone/temp.json)
    SENSOR_HUMIDITY_FILE      (mặc định /home/capstone/humidity.json)
    SENSOR_SMOKE_FILE         (mặc định /home/capstone/smoke.json)
    ACCESS_LOG_FILE           (mặc định /home/capstone/server.log)
    ACCESS_LOG_MOCK_FALLBACK  (mặc định true)
    SENSOR_POLL_SECONDS       (mặc định 30)
    ACCESS_POLL_SECONDS       (mặc định 10)
    API_HOST / API_PORT       (mặc định 0.0.0.0 / 5000)

Usage:
    >>> from serverroom.config import get_config
    >>> config = get_config()
    >>> config.sources.sensor_files['smoke']
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _default_sensor_files() -> Dict[str, str]:
    return {
        'temperature': '/home/capstone/temp.json',
        'humidity': '/home/capstone/humidity.json',
        'smoke': '/home/capstone/smoke.json',
    }


@dataclass
class SourceConfig:
    """
    Cấu hình đường dẫn data files.

    Attributes:
        sensor_files: Mapping sensor type → đường dẫn file JSON
        access_log_file: Đường dẫn file log của bộ điều khiển cửa
        mock_fallback: Trả về log mẫu khi file log không tồn tại
    """
    sensor_files: Dict[str, str] = field(default_factory=_default_sensor_files)
    access_log_file: str = '/home/capstone/server.log'
    mock_fallback: bool = True


@dataclass
class PollingConfig:
    """Chu kỳ polling (giây)."""
    sensor_interval: float = 30.0
    access_interval: float = 10.0


@dataclass
class ApiConfig:
    """Cấu hình API server."""
    host: str = '0.0.0.0'
    port: int = 5000


@dataclass
class AppConfig:
    sources: SourceConfig = field(default_factory=SourceConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)


_config: Optional[AppConfig] = None


def load_config() -> AppConfig:
    """
    Đọc cấu hình từ environment (sau khi load .env).

    Returns:
        AppConfig mới
    """
    load_dotenv()

    defaults = _default_sensor_files()
    sensor_files = {
        sensor_type: os.getenv(f'SENSOR_{sensor_type.upper()}_FILE', path)
        for sensor_type, path in defaults.items()
    }

    sources = SourceConfig(
        sensor_files=sensor_files,
        access_log_file=os.getenv('ACCESS_LOG_FILE', SourceConfig.access_log_file),
        mock_fallback=_env_bool('ACCESS_LOG_MOCK_FALLBACK', True)
    )
    polling = PollingConfig(
        sensor_interval=float(os.getenv('SENSOR_POLL_SECONDS', PollingConfig.sensor_interval)),
        access_interval=float(os.getenv('ACCESS_POLL_SECONDS', PollingConfig.access_interval))
    )
    api = ApiConfig(
        host=os.getenv('API_HOST', ApiConfig.host),
        port=int(os.getenv('API_PORT', ApiConfig.port))
    )

    return AppConfig(sources=sources, polling=polling, api=api)


def get_config() -> AppConfig:
    """Trả về cùng một AppConfig cho các lần gọi sau."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config():
    """Xóa config đã cache (dùng trong tests)."""
    global _config
    _config = None
