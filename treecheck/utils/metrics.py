"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Traversal time per file
- Nodes visited, frames opened and symbols declared
- Rule callbacks and diagnostics per rule
- Rule failures
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from treecheck.utils.logging import get_logger

logger = get_logger(__name__)


class TraversalMetrics:
    """
    Collects metrics during one traversal.

    Tracks:
    - Traversal start/end time
    - Nodes visited and frames opened
    - Callbacks and diagnostics per rule
    - Failures
    """

    def __init__(self, file_path: str):
        """
        Initialize metrics collector.

        Args:
            file_path: File whose tree is being walked
        """
        self.file_path = file_path

        # Timing metrics
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration_ms: Optional[int] = None

        # Walk metrics
        self.nodes_visited: int = 0
        self.frames_opened: int = 0
        self.max_frame_depth: int = 0
        self.symbols_declared: int = 0

        # Rule metrics
        self.callbacks: Dict[str, int] = {}
        self.diagnostics: Dict[str, int] = {}
        self.suppressed: int = 0
        self.failures: int = 0

        # Status
        self.status: str = "running"

    def start(self) -> None:
        """Mark traversal start."""
        self.start_time = datetime.now(timezone.utc)
        self.status = "running"
        logger.debug(
            f"Metrics collection started for {self.file_path}",
            extra={"file_path": self.file_path}
        )

    def complete(self, status: str = "completed") -> None:
        """
        Mark traversal completion.

        Args:
            status: Final status ('completed' or 'failed')
        """
        self.end_time = datetime.now(timezone.utc)
        self.status = status

        if self.start_time:
            duration = (self.end_time - self.start_time).total_seconds()
            self.duration_ms = int(duration * 1000)

        logger.info(
            f"Traversal {status} for {self.file_path}",
            extra={
                "file_path": self.file_path,
                "status": self.status,
                "duration_ms": self.duration_ms,
                "nodes_visited": self.nodes_visited,
                "frames_opened": self.frames_opened,
                "diagnostics_count": self.diagnostics_count,
                "failures": self.failures,
            }
        )

    def record_node(self) -> None:
        self.nodes_visited += 1

    def record_frame(self, depth: int) -> None:
        """
        Record a pushed frame.

        Args:
            depth: Frame stack depth after the push
        """
        self.frames_opened += 1
        self.max_frame_depth = max(self.max_frame_depth, depth)

    def record_callback(self, rule: str) -> None:
        self.callbacks[rule] = self.callbacks.get(rule, 0) + 1

    def record_diagnostic(self, rule: str) -> None:
        self.diagnostics[rule] = self.diagnostics.get(rule, 0) + 1

    def record_suppressed(self) -> None:
        self.suppressed += 1

    def record_failure(self) -> None:
        self.failures += 1

    @property
    def diagnostics_count(self) -> int:
        return sum(self.diagnostics.values())

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        return {
            "file_path": self.file_path,
            "status": self.status,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_ms": self.duration_ms,
            "nodes_visited": self.nodes_visited,
            "frames_opened": self.frames_opened,
            "max_frame_depth": self.max_frame_depth,
            "symbols_declared": self.symbols_declared,
            "callbacks": dict(self.callbacks),
            "diagnostics": dict(self.diagnostics),
            "diagnostics_count": self.diagnostics_count,
            "suppressed": self.suppressed,
            "failures": self.failures,
        }


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric as a structured log entry.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
