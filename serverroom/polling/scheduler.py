"""
Polling Scheduler
=================
Poll data sources định kỳ và đẩy kết quả cho presentation layer.

Mỗi feed là một job của APScheduler BackgroundScheduler:
    - Mỗi lần chạy gọi fetch() và đẩy PollResult vào queue
    - Fetch lỗi → PollResult với error, không retry (chờ lần poll kế tiếp)
    - Không chạy chồng: max_instances=1

Usage:
    >>> poller = Poller()
    >>> handle = poller.every('smoke', 30, lambda: sensors.load('smoke'))
    >>> poller.start()
    >>> result = poller.results.get()
    >>> handle.cancel()
"""

import queue
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..data.access_log import compute_access_stats, parse_access_logs
from ..data.sensor_series import SensorType, latest_reading, normalize_series
from ..data.timestamps import utcnow


@dataclass
class PollResult:
    """Kết quả một lần poll."""
    name: str
    data: Any = None
    error: Optional[str] = None
    fetched_at: datetime = field(default_factory=utcnow)

    @property
    def ok(self) -> bool:
        return self.error is None


class PollHandle:
    """Handle để hủy một feed đã đăng ký."""

    def __init__(self, poller: 'Poller', name: str):
        self.poller = poller
        self.name = name

    def cancel(self) -> bool:
        """
        Hủy feed.

        Returns:
            True nếu feed còn tồn tại và đã bị hủy
        """
        return self.poller.cancel(self.name)

    @property
    def active(self) -> bool:
        return self.name in self.poller.feeds


class Poller:
    """
    Scheduler cho các feed polling.

    Attributes:
        results: queue.Queue nhận PollResult
        feeds: Mapping tên feed → fetch function
        scheduler: APScheduler BackgroundScheduler
    """

    def __init__(self, results: Optional[queue.Queue] = None):
        self.results = results if results is not None else queue.Queue()
        self.feeds: Dict[str, Callable[[], Any]] = {}
        self.scheduler = BackgroundScheduler()
        self.is_running = False

    def every(
        self,
        name: str,
        seconds: float,
        fetch: Callable[[], Any],
        run_immediately: bool = True
    ) -> PollHandle:
        """
        Đăng ký feed chạy mỗi `seconds` giây.

        Args:
            name: Tên feed (cũng là job id)
            seconds: Chu kỳ polling
            fetch: Hàm lấy dữ liệu, không nhận tham số
            run_immediately: Chạy lần đầu ngay khi scheduler start

        Returns:
            PollHandle để hủy feed
        """
        self.feeds[name] = fetch

        job_kwargs = {}
        if run_immediately:
            job_kwargs['next_run_time'] = datetime.now()

        self.scheduler.add_job(
            func=self.poll_once,
            args=[name],
            trigger=IntervalTrigger(seconds=seconds),
            id=name,
            name=f"Poll {name}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            **job_kwargs
        )
        return PollHandle(self, name)

    def poll_once(self, name: str) -> Optional[PollResult]:
        """
        Chạy fetch của một feed và đẩy kết quả vào queue.

        Args:
            name: Tên feed

        Returns:
            PollResult đã đẩy vào queue, None nếu feed không còn đăng ký
            (vd: bị cancel trong lúc job đang chờ chạy)
        """
        fetch = self.feeds.get(name)
        if fetch is None:
            return None

        try:
            result = PollResult(name=name, data=fetch())
        except Exception as e:
            print(f"Error polling {name}: {e}")
            result = PollResult(name=name, error=str(e))

        self.results.put(result)
        return result

    def cancel(self, name: str) -> bool:
        if name not in self.feeds:
            return False
        del self.feeds[name]
        if self.scheduler.get_job(name) is not None:
            self.scheduler.remove_job(name)
        return True

    def start(self):
        """Start scheduler."""
        if self.is_running:
            print("Poller is already running")
            return
        self.scheduler.start()
        self.is_running = True
        print(f"Poller started with {len(self.feeds)} feeds")

    def stop(self):
        """Stop scheduler, không chờ các job đang chạy."""
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            print("Poller stopped")


def register_default_feeds(poller: Poller, sensors, access_log, config=None, time_range='day') -> Dict[str, PollHandle]:
    """
    Đăng ký các feed của dashboard.

    Feeds:
        - sensor:<type>: {'series': [...], 'latest': LatestReading}
        - access: {'attempts': [...], 'stats': AccessStats}

    Args:
        poller: Poller để đăng ký
        sensors: SensorSource
        access_log: AccessLogSource
        config: AppConfig (mặc định: get_config())
        time_range: Time range cho sensor series

    Returns:
        Dict tên feed → PollHandle
    """
    if config is None:
        from ..config import get_config
        config = get_config()

    handles = {}

    for sensor_type in SensorType:
        if sensor_type.value not in sensors.sensor_files:
            continue

        def fetch_sensor(sensor_type=sensor_type.value):
            raw = sensors.load(sensor_type)
            return {
                'series': normalize_series(raw, sensor_type, time_range),
                'latest': latest_reading(raw, sensor_type)
            }

        name = f"sensor:{sensor_type.value}"
        handles[name] = poller.every(name, config.polling.sensor_interval, fetch_sensor)

    def fetch_access():
        attempts = parse_access_logs(access_log.load())
        return {
            'attempts': attempts,
            'stats': compute_access_stats(attempts)
        }

    handles['access'] = poller.every('access', config.polling.access_interval, fetch_access)
    return handles
