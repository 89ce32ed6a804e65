"""
SERVER ROOM MONITORING
======================
Backend cho dashboard giám sát phòng máy chủ: đọc các file sensor JSON
và log của bộ điều khiển cửa RFID, chuẩn hóa thành dữ liệu cho chart.

Modules:
- data: Parser cho access log, normalizer cho sensor series, data sources
- polling: Periodic polling cho presentation layer
- config: Cấu hình từ environment / .env
"""

__version__ = "1.0.0"
__author__ = "Server Room Monitoring Team"
