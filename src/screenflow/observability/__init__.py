"""
Logging redaction helpers and runtime counters.
"""

from .logging_utils import redact_payload, redact_text
from .metrics import RuntimeMetrics, default_metrics

__all__ = ["redact_payload", "redact_text", "RuntimeMetrics", "default_metrics"]
