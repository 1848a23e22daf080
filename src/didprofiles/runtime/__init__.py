"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .coalescing import RequestCoalescer
from .rate_limit import RequestGate
from .timeouts import await_with_timeout

__all__ = [
    "RequestCoalescer",
    "RequestGate",
    "await_with_timeout",
]
