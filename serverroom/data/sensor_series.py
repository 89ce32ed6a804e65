"""
Sensor Series Normalizer
========================
Module chuẩn hóa sensor readings thành time series cho chart.

Định dạng raw document:
    {"readings": [{"43.7C": "2025-01-01T01:00:00Z"}, ...]}

Mỗi reading là một cặp duy nhất value-string → timestamp. Value có hậu tố
đơn vị khác nhau theo sensor type:
    - temperature: "43.7C"     → 43.7 °C
    - humidity:    "13.6%"     → 13.6 %
    - smoke:       "807.17ppm" → 807.17 ppm

Chức năng chính:
    - Parse value theo sensor type (value lỗi → NaN, không bị lọc)
    - Lọc theo time range (day / week / month / year)
    - Downsample khi quá 50 điểm (lấy mỗi điểm thứ k)
    - Phân loại status theo ngưỡng (normal / warning / error)
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .timestamps import ensure_utc, parse_timestamp, to_iso


class SensorType(str, Enum):
    """Các loại sensor được hỗ trợ."""
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    SMOKE = "smoke"


class TimeRange(str, Enum):
    """Time range cho lọc và format thời gian."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# sensor type → (hậu tố trong value string, đơn vị hiển thị)
UNIT_RULES = {
    SensorType.TEMPERATURE: ('C', '°C'),
    SensorType.HUMIDITY: ('%', '%'),
    SensorType.SMOKE: ('ppm', 'ppm'),
}

# Cửa sổ giữ lại dữ liệu, None = giữ tất cả
RETENTION_WINDOWS = {
    TimeRange.DAY: pd.Timedelta(hours=24),
    TimeRange.WEEK: pd.Timedelta(days=7),
    TimeRange.MONTH: pd.Timedelta(days=30),
    TimeRange.YEAR: None,
}

TIME_FORMATS = {
    TimeRange.DAY: '%H:%M',
    TimeRange.WEEK: '%a',
    TimeRange.MONTH: '%d %b',
    TimeRange.YEAR: '%b',
}

MAX_POINTS = 50

# Phần số đứng đầu chuỗi, phần còn lại bị bỏ qua
NUMBER_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


@dataclass
class NormalizedPoint:
    """Một điểm dữ liệu đã chuẩn hóa."""
    time: str
    formatted_time: str
    value: float
    unit: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time,
            'formatted_time': self.formatted_time,
            'value': self.value,
            'unit': self.unit
        }


@dataclass
class LatestReading:
    """Reading cuối cùng của sensor kèm status."""
    value: float
    timestamp: str
    unit: Optional[str] = None
    status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': self.value,
            'unit': self.unit,
            'timestamp': self.timestamp,
            'status': self.status
        }


@dataclass
class SeriesStats:
    """Thống kê current / min / max / avg của một series."""
    current: float
    minimum: float
    maximum: float
    average: float
    unit: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current': self.current,
            'minimum': self.minimum,
            'maximum': self.maximum,
            'average': self.average,
            'unit': self.unit,
            'count': self.count
        }


def parse_value(raw_value, sensor_type) -> Tuple[float, str]:
    """
    Parse value string theo sensor type.

    Args:
        raw_value: Value string, vd: "807.17ppm"
        sensor_type: SensorType hoặc tên sensor

    Returns:
        Tuple (value, unit), value = NaN nếu không parse được
    """
    suffix, unit = UNIT_RULES[SensorType(sensor_type)]
    text = str(raw_value).replace(suffix, '', 1)

    match = NUMBER_PREFIX.match(text)
    if not match:
        return float('nan'), unit
    return float(match.group(1)), unit


def classify_status(value: float, sensor_type) -> str:
    """
    Phân loại status theo ngưỡng của từng sensor type.

    Ngưỡng:
        - temperature: normal < 35 <= warning < 40 <= error
        - humidity: normal trong (30, 70), warning trong (20, 30] hoặc [70, 80)
        - smoke: normal < 1000 <= warning < 1500 <= error

    Value NaN luôn là 'error'.
    """
    sensor_type = SensorType(sensor_type)

    if sensor_type == SensorType.TEMPERATURE:
        if value < 35:
            return 'normal'
        if value < 40:
            return 'warning'
        return 'error'

    if sensor_type == SensorType.HUMIDITY:
        if 30 < value < 70:
            return 'normal'
        if 20 < value <= 30 or 70 <= value < 80:
            return 'warning'
        return 'error'

    if value < 1000:
        return 'normal'
    if value < 1500:
        return 'warning'
    return 'error'


def extract_pairs(raw: Any) -> List[Tuple[str, str]]:
    """
    Lấy các cặp (value, timestamp) từ raw document.

    Readings không phải mapping một cặp duy nhất bị bỏ qua.

    Args:
        raw: Decoded JSON document

    Returns:
        List các tuple (value_string, timestamp_string) theo thứ tự gốc
    """
    if not isinstance(raw, dict):
        return []
    readings = raw.get('readings')
    if not isinstance(readings, list):
        return []

    pairs = []
    for reading in readings:
        if not isinstance(reading, dict) or len(reading) != 1:
            continue
        value, timestamp = next(iter(reading.items()))
        pairs.append((str(value), str(timestamp)))
    return pairs


class SensorSeriesNormalizer:
    """
    Normalizer cho sensor readings của một sensor type.

    Xử lý:
        - Value có hậu tố đơn vị → float + unit
        - Timestamp không hợp lệ → bỏ reading
        - Retention filter theo time range
        - Downsample index-modulo khi > MAX_POINTS

    Attributes:
        sensor_type: SensorType của document
        pairs: Các cặp (value, timestamp) hợp lệ theo thứ tự gốc
        df: DataFrame với các cột time, timestamp, value, unit

    Usage:
        >>> normalizer = SensorSeriesNormalizer(raw_doc, 'smoke')
        >>> points = normalizer.normalize('week')
        >>> latest = normalizer.latest()
    """

    COLUMNS = ['time', 'timestamp', 'value', 'unit']

    def __init__(self, raw: Any, sensor_type):
        """
        Khởi tạo normalizer với raw document.

        Args:
            raw: Decoded JSON document {"readings": [...]}
            sensor_type: 'temperature', 'humidity' hoặc 'smoke'
        """
        self.sensor_type = SensorType(sensor_type)
        self.pairs = extract_pairs(raw)
        self.df = self._build_frame()

    def _build_frame(self) -> pd.DataFrame:
        records = []
        for raw_value, raw_time in self.pairs:
            timestamp = parse_timestamp(raw_time)
            if timestamp is None:
                continue
            value, unit = parse_value(raw_value, self.sensor_type)
            records.append({
                'time': raw_time,
                'timestamp': timestamp,
                'value': value,
                'unit': unit
            })

        df = pd.DataFrame(records, columns=self.COLUMNS)
        df['timestamp'] = pd.to_datetime(df['timestamp'], utc=True)
        df['value'] = df['value'].astype(float)
        return df

    def to_frame(
        self,
        time_range='day',
        now: Optional[datetime] = None
    ) -> pd.DataFrame:
        """
        Lọc, downsample và sort series theo time range.

        Args:
            time_range: 'day', 'week', 'month' hoặc 'year'
            now: Mốc thời gian cho retention filter (mặc định: hiện tại)

        Returns:
            DataFrame với các cột time, timestamp, formatted_time, value, unit,
            sort theo timestamp tăng dần
        """
        time_range = TimeRange(time_range)
        df = self.df

        window = RETENTION_WINDOWS[time_range]
        if window is not None:
            cutoff = pd.Timestamp(ensure_utc(now)) - window
            df = df[df['timestamp'] >= cutoff]

        if len(df) > MAX_POINTS:
            sampling_rate = math.ceil(len(df) / MAX_POINTS)
            df = df.iloc[::sampling_rate]

        df = df.sort_values('timestamp', kind='stable').copy()
        df['formatted_time'] = df['timestamp'].dt.strftime(TIME_FORMATS[time_range])

        return df[['time', 'timestamp', 'formatted_time', 'value', 'unit']].reset_index(drop=True)

    def normalize(
        self,
        time_range='day',
        now: Optional[datetime] = None
    ) -> List[NormalizedPoint]:
        """
        Chuẩn hóa series thành list NormalizedPoint cho chart.

        Args:
            time_range: 'day', 'week', 'month' hoặc 'year'
            now: Mốc thời gian cho retention filter

        Returns:
            List NormalizedPoint theo thứ tự thời gian
        """
        df = self.to_frame(time_range, now)
        return [
            NormalizedPoint(
                time=row.time,
                formatted_time=row.formatted_time,
                value=float(row.value),
                unit=row.unit
            )
            for row in df.itertuples(index=False)
        ]

    def latest(self, now: Optional[datetime] = None) -> LatestReading:
        """
        Reading cuối cùng theo thứ tự trong document.

        Không so sánh timestamp: document được giả định ghi theo thứ tự thời gian.

        Returns:
            LatestReading, hoặc value=0 và timestamp=now nếu không có reading
        """
        if not self.pairs:
            return LatestReading(value=0, timestamp=to_iso(ensure_utc(now)))

        raw_value, raw_time = self.pairs[-1]
        value, unit = parse_value(raw_value, self.sensor_type)

        return LatestReading(
            value=value,
            unit=unit,
            timestamp=raw_time,
            status=classify_status(value, self.sensor_type)
        )


def normalize_series(
    raw: Any,
    sensor_type,
    time_range='day',
    now: Optional[datetime] = None
) -> List[NormalizedPoint]:
    """Chuẩn hóa raw sensor document thành list điểm cho chart."""
    return SensorSeriesNormalizer(raw, sensor_type).normalize(time_range, now)


def latest_reading(
    raw: Any,
    sensor_type,
    now: Optional[datetime] = None
) -> LatestReading:
    """Reading cuối cùng (theo thứ tự document) kèm status."""
    return SensorSeriesNormalizer(raw, sensor_type).latest(now)


def series_stats(points: List[NormalizedPoint]) -> Optional[SeriesStats]:
    """
    Tính current / min / max / avg cho một series đã chuẩn hóa.

    Args:
        points: Output của normalize_series

    Returns:
        SeriesStats, None nếu series rỗng
    """
    if not points:
        return None

    values = np.array([p.value for p in points], dtype=float)
    if np.isnan(values).all():
        minimum = maximum = average = float('nan')
    else:
        minimum = float(np.nanmin(values))
        maximum = float(np.nanmax(values))
        average = float(np.nanmean(values))

    return SeriesStats(
        current=float(values[-1]),
        minimum=minimum,
        maximum=maximum,
        average=average,
        unit=points[-1].unit,
        count=len(points)
    )
