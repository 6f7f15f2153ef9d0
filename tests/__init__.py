# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import png_bytes, CountingFetch, RecordingTarget
"""

from .utils import CountingFetch, EventLog, FakeResp, PlainTarget, RecordingTarget, make_policy, png_bytes, wait_until

__all__ = [
    "CountingFetch",
    "EventLog",
    "FakeResp",
    "PlainTarget",
    "RecordingTarget",
    "make_policy",
    "png_bytes",
    "wait_until",
]
