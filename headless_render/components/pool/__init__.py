"""
Pool component: long-lived browser processes and per-request attachment.
"""
from .browser_pool import BrowserPool, ConnectionSelector, LAUNCH_ARGS

__all__ = [
    "BrowserPool",
    "ConnectionSelector",
    "LAUNCH_ARGS",
]
