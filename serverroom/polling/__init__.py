"""
Polling Module
==============
Periodic polling data sources cho presentation layer.

Classes:
- Poller: Đăng ký các feed định kỳ, đẩy kết quả vào queue
- PollHandle: Handle để hủy một feed
- PollResult: Kết quả một lần poll
"""

from .scheduler import Poller, PollHandle, PollResult, register_default_feeds

__all__ = ['Poller', 'PollHandle', 'PollResult', 'register_default_feeds']
