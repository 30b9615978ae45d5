"""
Process uptime and memory figures reported by /health and /webhook/status
"""

import time
from typing import Any, Dict

import psutil

_STARTED_AT = time.monotonic()


def uptime_seconds() -> float:
    return round(time.monotonic() - _STARTED_AT, 3)


def memory_usage() -> Dict[str, Any]:
    process = psutil.Process()
    mem_info = process.memory_info()
    return {
        "rss": mem_info.rss,
        "vms": mem_info.vms,
        "percent": round(process.memory_percent(), 2),
    }
