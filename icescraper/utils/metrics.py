"""
Metrics Collector - Count what happened during a pass
"""
from collections import Counter
from typing import Dict, List

from icescraper.utils.timezone import get_local_time


class MetricsCollector:
    """Collects counters and recent errors for the current process"""

    def __init__(self, max_errors: int = 50):
        self.counters = Counter()
        self.errors: List[Dict] = []
        self.max_errors = max_errors

    def increment(self, name: str, amount: int = 1):
        """Bump a named counter"""
        self.counters[name] += amount

    def record_action(self, action):
        """Record the outcome of a change-detection call"""
        self.counters[f"sessions_{action.value}"] += 1

    def record_error(self, error_type: str, error_message: str):
        """Count an error and keep a short message for diagnostics"""
        self.counters[error_type] += 1
        self.errors.append({
            'timestamp': get_local_time(),
            'error_type': error_type,
            'error_message': error_message[:200]  # Truncate long messages
        })
        if len(self.errors) > self.max_errors:
            self.errors.pop(0)

    def get(self, name: str) -> int:
        return self.counters[name]

    def snapshot(self) -> Dict[str, int]:
        """Copy of all counters"""
        return dict(self.counters)

    def diff(self, before: Dict[str, int]) -> Dict[str, int]:
        """Counters accumulated since an earlier snapshot"""
        return {
            name: count - before.get(name, 0)
            for name, count in self.counters.items()
            if count - before.get(name, 0)
        }
