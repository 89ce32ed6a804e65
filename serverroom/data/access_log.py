"""
RFID Access Log Parser
======================
Module parse log của bộ điều khiển cửa RFID thành các access attempts.

Định dạng log:
    timestamp - level - message

Ví dụ:
    2025-04-23 02:21:47,489 - INFO - Received: AUTH:83151058:1111
    2025-04-23 02:21:47,489 - INFO - Access Granted

Mỗi access attempt gồm 2 dòng liền nhau:
    - Dòng credential: "Received: AUTH:<card>:<pin>"
    - Dòng kết quả: "Access Granted" hoặc "Access denied"

Edge cases xử lý:
    - Timestamp không đúng format → lấy phần trước " - "
    - Dòng AUTH thiếu field hoặc timestamp không parse được → Skip
    - Không có dòng kết quả → status = unknown
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from .timestamps import ensure_utc, parse_timestamp, to_iso


class AccessStatus(str, Enum):
    """Kết quả của một access attempt."""
    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class AccessAttempt:
    """Một access attempt đã parse từ 2 dòng log liền nhau."""
    id: int
    timestamp: datetime
    card_id: str
    pin: str
    user: str
    status: AccessStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'timestamp': to_iso(self.timestamp),
            'card_id': self.card_id,
            'pin': self.pin,
            'user': self.user,
            'status': self.status.value
        }


@dataclass
class AccessStats:
    """
    Thống kê access trong 24h gần nhất.

    Attributes:
        status: 'online' nếu có log, 'offline' nếu không
        last_check: Timestamp của event gần nhất
        door_locked: False nếu attempt gần nhất thành công
        failed_attempts: Số lần bị từ chối trong 24h
        successful_accesses: Số lần thành công trong 24h
    """
    status: str
    last_check: datetime
    door_locked: bool
    failed_attempts: int
    successful_accesses: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'last_check': to_iso(self.last_check),
            'door_locked': self.door_locked,
            'failed_attempts': self.failed_attempts,
            'successful_accesses': self.successful_accesses
        }


class AccessLogParser:
    """
    Parser cho log của bộ điều khiển cửa RFID.

    Parser không raise exception với nội dung lỗi: các dòng không parse
    được bị bỏ qua và được đếm trong stats.

    Attributes:
        stats (Dict): Thống kê parsing (total_lines, auth_lines, parsed, skipped)

    Usage:
        >>> parser = AccessLogParser()
        >>> attempts = parser.parse_text(log_content)
        >>> print(parser.get_statistics())
    """

    AUTH_MARKER = 'Received: AUTH:'

    # Timestamp đầu dòng, milliseconds phân cách bằng dấu phẩy
    TIMESTAMP_PATTERN = re.compile(r'^(\d{4}-\d{2}-\d{2}\s\d{2}:\d{2}:\d{2}),(\d+)')

    # Groups: card_id, pin
    AUTH_PATTERN = re.compile(r'Received: AUTH:([^:]+):([^:]+)')

    GRANTED_PATTERN = re.compile(r'Access (?i:granted)')
    DENIED_PATTERN = re.compile(r'Access (?i:denied)')

    FIELD_SEPARATOR = ' - '

    def __init__(self):
        """Khởi tạo parser với stats rỗng."""
        self.stats = {'total_lines': 0, 'auth_lines': 0, 'parsed': 0, 'skipped': 0}

    def reset_stats(self):
        """Reset thống kê về trạng thái ban đầu."""
        self.stats = {'total_lines': 0, 'auth_lines': 0, 'parsed': 0, 'skipped': 0}

    def extract_timestamp(self, line: str) -> Optional[datetime]:
        """
        Lấy timestamp từ đầu dòng log.

        '2025-04-23 02:21:47,489' → 2025-04-23 02:21:47.489 UTC.
        Nếu không match thì lấy phần trước " - " (best-effort).

        Args:
            line: Dòng log

        Returns:
            datetime UTC, hoặc None nếu không parse được
        """
        match = self.TIMESTAMP_PATTERN.match(line.strip())
        if match:
            ts_str = f"{match.group(1)}.{match.group(2)}"
        else:
            ts_str = line.split(self.FIELD_SEPARATOR)[0]
        return parse_timestamp(ts_str)

    def classify_outcome(self, card_id: str, next_line: Optional[str]):
        """
        Xác định status và display label từ dòng kết quả.

        Args:
            card_id: Mã thẻ RFID
            next_line: Dòng ngay sau dòng AUTH (None nếu hết file)

        Returns:
            Tuple (AccessStatus, user label)
        """
        if next_line is not None:
            if self.GRANTED_PATTERN.search(next_line):
                return AccessStatus.SUCCESS, f"Card #{card_id}"
            if self.DENIED_PATTERN.search(next_line):
                return AccessStatus.FAILED, f"Card #{card_id} (Invalid PIN)"
        return AccessStatus.UNKNOWN, card_id

    def parse_text(self, raw_text: str, show_progress: bool = False) -> List[AccessAttempt]:
        """
        Parse toàn bộ nội dung log thành danh sách access attempts.

        Args:
            raw_text: Nội dung file log
            show_progress: Hiển thị progress bar (cho file lớn)

        Returns:
            List AccessAttempt, sort theo timestamp giảm dần (mới nhất trước)
        """
        self.reset_stats()
        lines = (raw_text or '').splitlines()
        attempts: List[AccessAttempt] = []

        iterator = enumerate(lines)
        if show_progress:
            iterator = tqdm(iterator, total=len(lines), desc="Parsing access log")

        for i, line in iterator:
            self.stats['total_lines'] += 1

            if self.AUTH_MARKER not in line:
                continue
            self.stats['auth_lines'] += 1

            auth_match = self.AUTH_PATTERN.search(line)
            timestamp = self.extract_timestamp(line)
            if not auth_match or timestamp is None:
                self.stats['skipped'] += 1
                continue

            card_id = auth_match.group(1).strip()
            pin = auth_match.group(2).strip()
            next_line = lines[i + 1] if i + 1 < len(lines) else None
            status, user = self.classify_outcome(card_id, next_line)

            attempts.append(AccessAttempt(
                id=len(attempts) + 1,
                timestamp=timestamp,
                card_id=card_id,
                pin=pin,
                user=user,
                status=status
            ))
            self.stats['parsed'] += 1

        # Sort stable: các attempts cùng timestamp giữ thứ tự trong log
        attempts.sort(key=lambda a: a.timestamp, reverse=True)
        return attempts

    def parse_file(self, filepath: str, encoding: str = 'utf-8', show_progress: bool = True) -> List[AccessAttempt]:
        """
        Parse file log.

        Args:
            filepath: Đường dẫn tới file log
            encoding: Encoding của file
            show_progress: Hiển thị progress bar

        Returns:
            List AccessAttempt

        Raises:
            OSError: Nếu không đọc được file
        """
        with open(filepath, 'r', encoding=encoding, errors='replace') as f:
            attempts = self.parse_text(f.read(), show_progress=show_progress)

        print(f"Parsed {filepath}: {self.stats['parsed']} attempts "
              f"({self.stats['skipped']} skipped / {self.stats['auth_lines']} AUTH lines)")
        return attempts

    def get_statistics(self) -> Dict[str, Any]:
        """
        Lấy thống kê parsing.

        Returns:
            Dict với total_lines, auth_lines, parsed, skipped, success_rate
        """
        auth = self.stats['auth_lines']
        success_rate = self.stats['parsed'] / auth * 100 if auth > 0 else 0
        return {
            **self.stats,
            'success_rate': success_rate
        }


def parse_access_logs(raw_text: str) -> List[AccessAttempt]:
    """Parse nội dung log thành access attempts (mới nhất trước)."""
    return AccessLogParser().parse_text(raw_text)


def compute_access_stats(
    attempts: List[AccessAttempt],
    now: Optional[datetime] = None
) -> AccessStats:
    """
    Tính thống kê access từ danh sách attempts.

    door_locked được suy ra từ attempt gần nhất: cửa mở nếu attempt đó
    thành công. Log không có event khóa/mở cửa riêng.

    Args:
        attempts: Output của parse_access_logs
        now: Thời điểm tính cửa sổ 24h (mặc định: hiện tại)

    Returns:
        AccessStats
    """
    now = ensure_utc(now)

    if not attempts:
        return AccessStats(
            status='offline',
            last_check=now,
            door_locked=True,
            failed_attempts=0,
            successful_accesses=0
        )

    last_check = max(a.timestamp for a in attempts)

    one_day_ago = now - timedelta(hours=24)
    recent = [a for a in attempts if a.timestamp >= one_day_ago]

    successful = sum(1 for a in recent if a.status == AccessStatus.SUCCESS)
    failed = sum(1 for a in recent if a.status == AccessStatus.FAILED)

    most_recent = sorted(attempts, key=lambda a: a.timestamp, reverse=True)[0]

    return AccessStats(
        status='online',
        last_check=last_check,
        door_locked=most_recent.status != AccessStatus.SUCCESS,
        failed_attempts=failed,
        successful_accesses=successful
    )


def filter_access_attempts(
    attempts: List[AccessAttempt],
    status: str = 'all',
    search: Optional[str] = None
) -> List[AccessAttempt]:
    """
    Lọc access attempts theo status và search term.

    Args:
        attempts: Danh sách attempts
        status: 'all', 'success', 'failed' hoặc 'unknown'
        search: Chuỗi tìm kiếm (không phân biệt hoa thường) trong user hoặc card_id

    Returns:
        List đã lọc, giữ nguyên thứ tự
    """
    filtered = attempts

    if status and status != 'all':
        filtered = [a for a in filtered if a.status.value == status]

    if search:
        term = search.lower()
        filtered = [
            a for a in filtered
            if term in a.user.lower() or term in a.card_id.lower()
        ]

    return filtered
