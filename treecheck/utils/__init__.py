"""
Utility modules for treecheck.
"""

from treecheck.utils.logging import (
    get_logger,
    setup_logging,
    LogContext,
    log_traversal_phase,
    log_rule_failure,
    log_error_with_context,
)
from treecheck.utils.metrics import (
    TraversalMetrics,
    emit_metric,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "log_traversal_phase",
    "log_rule_failure",
    "log_error_with_context",
    "TraversalMetrics",
    "emit_metric",
]
