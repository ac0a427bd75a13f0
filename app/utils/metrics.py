# =============================================
# File: app/utils/metrics.py
# Purpose: In-process request counters, rolling latency window and health probes
# =============================================
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, Optional
import os
import threading
import time

MAX_SAMPLES: int = 1000
MEMORY_THRESHOLD_PCT: float = 90.0


@dataclass(frozen=True)
class MemoryUsage:
    used: int = 0   # bytes resident for this process
    total: int = 0  # bytes of physical memory on the host

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 0.0
        return round(self.used / self.total * 100, 2)


@dataclass(frozen=True)
class CpuUsage:
    user: float = 0.0
    system: float = 0.0


@dataclass(frozen=True)
class MetricsSnapshot:
    total_requests: int
    successful_requests: int
    failed_requests: int
    average_response_time_ms: float
    uptime_ms: int
    memory: MemoryUsage = field(default_factory=MemoryUsage)
    cpu: CpuUsage = field(default_factory=CpuUsage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRequests": self.total_requests,
            "successfulRequests": self.successful_requests,
            "failedRequests": self.failed_requests,
            "averageResponseTimeMs": self.average_response_time_ms,
            "uptimeMs": self.uptime_ms,
            "memoryUsage": {"used": self.memory.used, "total": self.memory.total},
            "cpuUsage": {"user": self.cpu.user, "system": self.cpu.system},
        }


# ---------- Host probes (best-effort, zeros when unavailable) ----------

def _page_size() -> int:
    return int(os.sysconf("SC_PAGE_SIZE"))


def _rss_bytes() -> int:
    try:
        with open("/proc/self/statm", "r", encoding="ascii") as f:
            return int(f.read().split()[1]) * _page_size()
    except (OSError, ValueError, IndexError):
        pass
    import resource  # POSIX only
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports KiB, macOS bytes
    return int(peak) if os.uname().sysname == "Darwin" else int(peak) * 1024


def read_memory_usage() -> MemoryUsage:
    """
    Process RSS against host physical memory (there is no heap used/total pair here).
    The percentage only nears 90 on a host whose RAM this process nearly fills.
    """
    try:
        total = _page_size() * int(os.sysconf("SC_PHYS_PAGES"))
        return MemoryUsage(used=_rss_bytes(), total=total)
    except (OSError, ValueError, AttributeError, ImportError):
        return MemoryUsage()


def read_cpu_usage() -> CpuUsage:
    try:
        t = os.times()
        return CpuUsage(user=t.user, system=t.system)
    except OSError:
        return CpuUsage()


def format_uptime(ms: int) -> str:
    seconds = int(ms) // 1000
    minutes, hours, days = seconds // 60, seconds // 3600, seconds // 86400
    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m {seconds % 60}s"
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MetricsAggregator:
    """
    Process-wide request telemetry.
    - counters: total / successful / failed
    - window: last MAX_SAMPLES response times (FIFO)
    One lock guards counters and window together, so every read observes
    successful + failed == total. Host probes run outside the lock.
    """

    def __init__(
        self,
        max_samples: int = MAX_SAMPLES,
        memory_probe: Callable[[], MemoryUsage] = read_memory_usage,
        cpu_probe: Callable[[], CpuUsage] = read_cpu_usage,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._max_samples = max_samples
        self.memory_probe = memory_probe
        self.cpu_probe = cpu_probe
        self._clock = clock
        self._reset_state()

    def _reset_state(self) -> None:
        self._total = 0
        self._successful = 0
        self._failed = 0
        self._window: Deque[float] = deque(maxlen=self._max_samples)
        self._started = self._clock()

    def reset(self) -> None:
        with self._lock:
            self._reset_state()

    def record_request(self, success: bool, response_time_ms: float) -> None:
        with self._lock:
            self._total += 1
            if success:
                self._successful += 1
            else:
                self._failed += 1
            self._window.append(float(response_time_ms))

    def uptime_ms(self) -> int:
        return int((self._clock() - self._started) * 1000)

    def _counters(self) -> tuple[int, int, int, float]:
        with self._lock:
            avg = sum(self._window) / len(self._window) if self._window else 0.0
            return self._total, self._successful, self._failed, avg

    def snapshot(self) -> MetricsSnapshot:
        total, ok, failed, avg = self._counters()
        return MetricsSnapshot(
            total_requests=total,
            successful_requests=ok,
            failed_requests=failed,
            average_response_time_ms=avg,
            uptime_ms=self.uptime_ms(),
            memory=_safe_probe(self.memory_probe, MemoryUsage),
            cpu=_safe_probe(self.cpu_probe, CpuUsage),
        )

    def health_status(self) -> Dict[str, Any]:
        total, ok, _, _ = self._counters()
        uptime = self.uptime_ms()
        mem = _safe_probe(self.memory_probe, MemoryUsage)
        pct = mem.percentage
        return {
            "status": "healthy" if pct < MEMORY_THRESHOLD_PCT else "unhealthy",
            "timestamp": _iso_now(),
            "uptime": {"value": uptime, "formatted": format_uptime(uptime)},
            "memory": {"used": mem.used, "total": mem.total, "percentage": pct},
            "requests": {
                "total": total,
                "successRate": round(ok / total * 100, 2) if total > 0 else 100,
            },
        }

    @staticmethod
    def is_ready(health: Dict[str, Any]) -> bool:
        # same threshold as health today; kept separate so the probes can diverge
        return health["status"] == "healthy" and health["memory"]["percentage"] < MEMORY_THRESHOLD_PCT


def _safe_probe(probe: Callable[[], Any], default: Callable[[], Any]) -> Any:
    try:
        return probe()
    except Exception:
        # telemetry never fails the caller
        return default()


# Global instance
METRICS = MetricsAggregator()


def record_request(success: bool, response_time_ms: float) -> None:
    METRICS.record_request(success, response_time_ms)


def snapshot() -> Dict[str, Any]:
    return METRICS.snapshot().to_dict()


def health_status() -> Dict[str, Any]:
    return METRICS.health_status()


def readiness(health: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    health = health or METRICS.health_status()
    ready = METRICS.is_ready(health)
    return {"status": "ready" if ready else "not ready", "timestamp": _iso_now()}


def reset() -> None:
    METRICS.reset()
