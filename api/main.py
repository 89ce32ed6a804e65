"""
FastAPI Application
===================
API endpoints cho Server Room Monitoring dashboard.

Endpoints:
    - GET /api/sensor/{type}: Raw sensor JSON document
    - GET /api/sensor/{type}/series: Normalized series cho chart
    - GET /api/sensor/{type}/latest: Reading cuối cùng kèm status
    - GET /api/sensor/{type}/stats: Current / min / max / avg
    - GET /api/security/rfid-logs: Raw access log (text/plain)
    - GET /api/security/access-attempts: Parsed access attempts
    - GET /api/security/access-stats: Thống kê access 24h
    - GET /health: Health check

Run:
    uvicorn api.main:app --reload --port 5000
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from datetime import datetime
from typing import Optional
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from serverroom import __version__
from serverroom.data.access_log import (
    parse_access_logs, compute_access_stats, filter_access_attempts
)
from serverroom.data.exceptions import DataSourceError, UnknownSensorError
from serverroom.data.loader import build_sources
from serverroom.data.sensor_series import (
    SensorType, TimeRange, SensorSeriesNormalizer, series_stats
)
from api.schemas import (
    SeriesPoint, SeriesResponse, LatestReadingResponse, SeriesStatsResponse,
    AccessAttemptSchema, AccessAttemptsResponse, AccessStatsResponse,
    AccessStatusFilter, HealthResponse, nan_to_none
)

# =============================================================================
# App Configuration
# =============================================================================

app = FastAPI(
    title="Server Room Monitoring API",
    description="""
    API cho dashboard giám sát phòng máy chủ.

    ## Features
    - **Sensors**: Raw và normalized data cho temperature, humidity, smoke
    - **Access Control**: RFID access attempts và thống kê 24h
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Data Sources
# =============================================================================

SOURCES = {
    "sensors": None,
    "access_log": None
}


def configure_sources(sensors, access_log):
    """Thay data sources (dùng khi chạy với cấu hình khác hoặc trong tests)."""
    SOURCES["sensors"] = sensors
    SOURCES["access_log"] = access_log


def get_sources():
    """Tạo data sources từ config nếu chưa có."""
    if SOURCES["sensors"] is None or SOURCES["access_log"] is None:
        sensors, access_log = build_sources()
        configure_sources(sensors, access_log)
    return SOURCES["sensors"], SOURCES["access_log"]


def load_sensor(sensor_type: str):
    """
    Đọc raw document của sensor, chuyển lỗi I/O thành HTTP errors.

    Raises:
        HTTPException: 404 nếu sensor type không tồn tại, 500 nếu lỗi đọc file
    """
    sensors, _ = get_sources()
    try:
        return sensors.load(sensor_type)
    except UnknownSensorError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DataSourceError as e:
        raise HTTPException(status_code=500, detail=str(e))


def load_normalizer(sensor_type: str) -> SensorSeriesNormalizer:
    if sensor_type not in [t.value for t in SensorType]:
        raise HTTPException(status_code=404, detail=f"Sensor type '{sensor_type}' not found")
    return SensorSeriesNormalizer(load_sensor(sensor_type), sensor_type)


def load_attempts():
    _, access_log = get_sources()
    try:
        raw_text = access_log.load()
    except DataSourceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return parse_access_logs(raw_text)


# =============================================================================
# Startup Event
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Khởi tạo data sources khi startup."""
    print("Starting Server Room Monitoring API...")
    sensors, access_log = get_sources()
    for sensor_type, exists in sensors.available().items():
        print(f"  - {sensor_type}: {'found' if exists else 'missing'} ({sensors.sensor_files[sensor_type]})")
    print(f"  - access log: {'found' if access_log.available() else 'missing'} ({access_log.log_file})")
    print("API ready!")


# =============================================================================
# Health Endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Trả về trạng thái API và các data files.
    """
    sensors, access_log = get_sources()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        sensors_available=sensors.available(),
        access_log_available=access_log.available(),
        version=__version__
    )


# =============================================================================
# Sensor Endpoints
# =============================================================================

@app.get("/api/sensor/{sensor_type}", tags=["Sensors"])
def get_sensor_data(sensor_type: str):
    """
    Raw sensor document như trong file JSON.
    """
    return JSONResponse(content=load_sensor(sensor_type))


@app.get("/api/sensor/{sensor_type}/series", response_model=SeriesResponse, tags=["Sensors"])
def get_sensor_series(
    sensor_type: str,
    time_range: TimeRange = Query(TimeRange.DAY)
):
    """
    Series đã chuẩn hóa: lọc theo time range, tối đa 50 điểm, sort theo thời gian.
    """
    points = load_normalizer(sensor_type).normalize(time_range)

    return SeriesResponse(
        sensor_type=sensor_type,
        time_range=time_range.value,
        count=len(points),
        points=[
            SeriesPoint(
                time=p.time,
                formatted_time=p.formatted_time,
                value=nan_to_none(p.value),
                unit=p.unit
            )
            for p in points
        ]
    )


@app.get("/api/sensor/{sensor_type}/latest", response_model=LatestReadingResponse, tags=["Sensors"])
def get_latest_reading(sensor_type: str):
    """
    Reading cuối cùng trong document kèm status (normal / warning / error).
    """
    latest = load_normalizer(sensor_type).latest()

    return LatestReadingResponse(
        sensor_type=sensor_type,
        value=nan_to_none(latest.value),
        unit=latest.unit,
        timestamp=latest.timestamp,
        status=latest.status
    )


@app.get("/api/sensor/{sensor_type}/stats", response_model=SeriesStatsResponse, tags=["Sensors"])
def get_sensor_stats(
    sensor_type: str,
    time_range: TimeRange = Query(TimeRange.DAY)
):
    """
    Thống kê current / min / max / avg của series trong time range.
    """
    points = load_normalizer(sensor_type).normalize(time_range)
    stats = series_stats(points)

    if stats is None:
        return SeriesStatsResponse(sensor_type=sensor_type, time_range=time_range.value)

    return SeriesStatsResponse(
        sensor_type=sensor_type,
        time_range=time_range.value,
        current=nan_to_none(stats.current),
        minimum=nan_to_none(stats.minimum),
        maximum=nan_to_none(stats.maximum),
        average=nan_to_none(stats.average),
        unit=stats.unit,
        count=stats.count
    )


# =============================================================================
# Access Control Endpoints
# =============================================================================

@app.get("/api/security/rfid-logs", response_class=PlainTextResponse, tags=["Access Control"])
def get_rfid_logs():
    """
    Raw log của bộ điều khiển cửa RFID.
    """
    _, access_log = get_sources()
    try:
        return PlainTextResponse(access_log.load())
    except DataSourceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/security/access-attempts", response_model=AccessAttemptsResponse, tags=["Access Control"])
def get_access_attempts(
    status: AccessStatusFilter = Query(AccessStatusFilter.ALL),
    search: Optional[str] = Query(None)
):
    """
    Access attempts đã parse, mới nhất trước, lọc theo status và search term.
    """
    attempts = filter_access_attempts(load_attempts(), status=status.value, search=search)

    return AccessAttemptsResponse(
        total=len(attempts),
        attempts=[AccessAttemptSchema(**a.to_dict()) for a in attempts]
    )


@app.get("/api/security/access-stats", response_model=AccessStatsResponse, tags=["Access Control"])
def get_access_stats():
    """
    Thống kê access trong 24h gần nhất và trạng thái cửa.
    """
    stats = compute_access_stats(load_attempts())
    return AccessStatsResponse(**stats.to_dict())


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    from serverroom.config import get_config

    config = get_config()
    uvicorn.run(app, host=config.api.host, port=config.api.port)
