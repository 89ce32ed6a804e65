"""
API Schemas
===========
Pydantic schemas cho FastAPI endpoints.
"""

import math
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict
from datetime import datetime
from enum import Enum


class AccessStatusFilter(str, Enum):
    """Filter cho access attempts."""
    ALL = "all"
    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"


def nan_to_none(value: Optional[float]) -> Optional[float]:
    """NaN không encode được trong JSON → None."""
    if value is None:
        return None
    return None if math.isnan(value) else value


# =============================================================================
# Sensor Schemas
# =============================================================================

class SeriesPoint(BaseModel):
    """Một điểm trong sensor series."""
    time: str
    formatted_time: str
    value: Optional[float] = Field(
        description="Giá trị đã bỏ đơn vị (null nếu value string không hợp lệ)"
    )
    unit: str


class SeriesResponse(BaseModel):
    """Response cho sensor series endpoint."""
    sensor_type: str
    time_range: str
    count: int
    points: List[SeriesPoint]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "sensor_type": "smoke",
            "time_range": "day",
            "count": 1,
            "points": [
                {
                    "time": "2025-04-23T02:21:47Z",
                    "formatted_time": "02:21",
                    "value": 807.17,
                    "unit": "ppm"
                }
            ]
        }
    })


class LatestReadingResponse(BaseModel):
    """Reading cuối cùng của sensor."""
    sensor_type: str
    value: Optional[float]
    unit: Optional[str] = None
    timestamp: str
    status: Optional[str] = None


class SeriesStatsResponse(BaseModel):
    """Thống kê current / min / max / avg."""
    sensor_type: str
    time_range: str
    current: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    average: Optional[float] = None
    unit: Optional[str] = None
    count: int = 0


# =============================================================================
# Access Control Schemas
# =============================================================================

class AccessAttemptSchema(BaseModel):
    """Một access attempt."""
    id: int
    timestamp: str
    card_id: str
    pin: str
    user: str
    status: str


class AccessAttemptsResponse(BaseModel):
    """Danh sách access attempts (mới nhất trước)."""
    total: int
    attempts: List[AccessAttemptSchema]


class AccessStatsResponse(BaseModel):
    """Thống kê access trong 24h."""
    status: str
    last_check: str
    door_locked: bool
    failed_attempts: int
    successful_accesses: int

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "status": "online",
            "last_check": "2025-04-23T02:22:12.092Z",
            "door_locked": False,
            "failed_attempts": 1,
            "successful_accesses": 2
        }
    })


# =============================================================================
# Health Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    sensors_available: Dict[str, bool]
    access_log_available: bool
    version: str
