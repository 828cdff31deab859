"""
Metrics Collection for the Reconciliation Engine

Collects in-memory counters for:
- Consistency checks (passed / failed per check id)
- Reconstructions (per reconstructed field)
- Reconciliation timings (average, p95)
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class CheckMetrics:
    """Outcomes of consistency checks."""
    passed: int = 0
    failed: int = 0

    # By check id
    by_check: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(lambda: {"passed": 0, "failed": 0}))


@dataclass
class ReconstructionMetrics:
    """Fields filled in by reconstruction."""
    total: int = 0
    by_field: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Keep last N samples for percentile calculations
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    def add_sample(self, duration_ms: float):
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

    def get_average(self) -> float:
        return statistics.mean(self.samples) if self.samples else 0.0

    def get_p95(self) -> float:
        if not self.samples:
            return 0.0
        sorted_samples = sorted(self.samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_check("TAXES_MATCH_TOTAL_INCL", passed=True)
        metrics.record_reconstruction("total_excl")
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.checks = CheckMetrics()
        self.reconstructions = ReconstructionMetrics()
        self.timings = TimingMetrics()
        self.reconciliations = 0
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def record_check(self, check_id: str, passed: bool):
        """Record the outcome of one consistency check."""
        outcome = "passed" if passed else "failed"
        with self._lock:
            if passed:
                self.checks.passed += 1
            else:
                self.checks.failed += 1
            self.checks.by_check[check_id][outcome] += 1

    def record_reconstruction(self, field_name: str):
        """Record a field filled in by reconstruction."""
        with self._lock:
            self.reconstructions.total += 1
            self.reconstructions.by_field[field_name] += 1

    def record_reconciliation(self, duration_ms: Optional[float] = None):
        """Record a completed reconciliation pass."""
        with self._lock:
            self.reconciliations += 1
            if duration_ms is not None:
                self.timings.add_sample(duration_ms)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "reconciliations": self.reconciliations,
                "checks": {
                    "passed": self.checks.passed,
                    "failed": self.checks.failed,
                    "by_check": {k: dict(v) for k, v in self.checks.by_check.items()},
                },
                "reconstructions": {
                    "total": self.reconstructions.total,
                    "by_field": dict(self.reconstructions.by_field),
                },
                "timings": {
                    "average_ms": self.timings.get_average(),
                    "p95_ms": self.timings.get_p95(),
                    "sample_count": len(self.timings.samples),
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_check(check_id: str, passed: bool):
    get_metrics().record_check(check_id, passed)


def record_reconstruction(field_name: str):
    get_metrics().record_reconstruction(field_name)


def record_reconciliation(duration_ms: Optional[float] = None):
    get_metrics().record_reconciliation(duration_ms)
