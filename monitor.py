"""
Console monitor: poll sensor files và access log, in trạng thái ra terminal.

Run:
    python monitor.py
    python monitor.py --time-range week
    python monitor.py --parse-log /home/capstone/server.log
"""
import argparse
import math
import os
import sys

# Set working directory to script location
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, SCRIPT_DIR)

from serverroom.config import get_config
from serverroom.data.access_log import AccessLogParser, compute_access_stats
from serverroom.data.loader import build_sources
from serverroom.data.sensor_series import series_stats
from serverroom.polling import Poller, register_default_feeds


def format_value(value, unit):
    if value is None or math.isnan(value):
        return "-"
    return f"{value:.1f} {unit or ''}".strip()


def print_sensor(name, data):
    latest = data['latest']
    stats = series_stats(data['series'])
    line = f"[{name}] latest={format_value(latest.value, latest.unit)} ({latest.status or 'no data'})"
    if stats is not None:
        line += (f" | min={format_value(stats.minimum, stats.unit)}"
                 f" max={format_value(stats.maximum, stats.unit)}"
                 f" avg={format_value(stats.average, stats.unit)}"
                 f" points={stats.count}")
    print(line)


def print_access(data):
    stats = data['stats']
    print(f"[access] {stats.status} | door={'locked' if stats.door_locked else 'unlocked'}"
          f" | 24h: {stats.successful_accesses} granted, {stats.failed_attempts} denied"
          f" | total attempts={len(data['attempts'])}")


def summarize_log(filepath):
    """Parse một file access log một lần và in thống kê."""
    log_parser = AccessLogParser()
    attempts = log_parser.parse_file(filepath)
    stats = log_parser.get_statistics()

    print(f"\n{'='*50}")
    print("ACCESS LOG SUMMARY")
    print(f"{'='*50}")
    print(f"Tổng số dòng:     {stats['total_lines']:>12,}")
    print(f"Dòng AUTH:        {stats['auth_lines']:>12,}")
    print(f"Parse thành công: {stats['parsed']:>12,} ({stats['success_rate']:.2f}%)")
    print(f"Skipped:          {stats['skipped']:>12,}")
    print(f"{'='*50}")

    if attempts:
        print_access({'attempts': attempts, 'stats': compute_access_stats(attempts)})


def main():
    parser = argparse.ArgumentParser(description="Server room console monitor")
    parser.add_argument('--time-range', default='day', choices=['day', 'week', 'month', 'year'])
    parser.add_argument('--parse-log', metavar='FILE', help="Parse một file access log rồi thoát")
    args = parser.parse_args()

    if args.parse_log:
        summarize_log(args.parse_log)
        return

    config = get_config()
    sensors, access_log = build_sources(config)

    print("=" * 60)
    print("           SERVER ROOM MONITOR")
    print("=" * 60)
    print(f"Sensor refresh: {config.polling.sensor_interval:g}s, "
          f"access log refresh: {config.polling.access_interval:g}s")
    print("Ctrl+C để dừng\n")

    poller = Poller()
    register_default_feeds(poller, sensors, access_log, config=config, time_range=args.time_range)
    poller.start()

    try:
        while True:
            result = poller.results.get()
            if not result.ok:
                print(f"[{result.name}] failed to load: {result.error}")
            elif result.name == 'access':
                print_access(result.data)
            else:
                print_sensor(result.name, result.data)
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        poller.stop()


if __name__ == "__main__":
    main()
