"""
Domain error taxonomy plus error aggregation to keep repeated failures quiet.
"""
import hashlib
import time
from collections import defaultdict
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from fastapi import HTTPException

from salonbook.core.config import settings

if TYPE_CHECKING:
    from salonbook.services.availability import AvailabilityVerdict

logger = structlog.get_logger(__name__)


# ---------- Domain errors ----------

class SalonError(Exception):
    """Base class for errors the API layer maps to client responses."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SalonError):
    """A service, user or appointment lookup missed."""

    status_code = 404

    def __init__(self, resource: str, key: Any):
        super().__init__(f"{resource} not found: {key}")
        self.resource = resource
        self.key = key


class InvalidRequestError(SalonError):
    status_code = 400


class SlotUnavailableError(InvalidRequestError):
    """A booking was refused; carries the reason and any alternative start times."""

    def __init__(self, message: str, alternative_slots: Optional[List[datetime]] = None):
        super().__init__(message)
        self.alternative_slots = list(alternative_slots or [])

    @classmethod
    def from_verdict(cls, verdict: "AvailabilityVerdict") -> "SlotUnavailableError":
        return cls(verdict.message, verdict.alternative_slots)


class SlotConflictError(SalonError):
    """The store refused an insert/update because the interval is taken."""

    status_code = 409


# ---------- Aggregation ----------

class ErrorSeverity(Enum):
    """Error severity levels for alerting."""
    LOW = "low"           # 404s, validation errors, expected failures
    MEDIUM = "medium"     # 500s, timeouts, recoverable errors
    HIGH = "high"         # data errors, service degradation
    CRITICAL = "critical" # service down, data loss

class ErrorPattern:
    """Track error patterns to reduce duplicate logging."""

    def __init__(self, error_type: str, message: str, context: Dict[str, Any]):
        self.error_type = error_type
        self.message = message[:100]  # Truncate for fingerprinting
        self.context = {k: v for k, v in context.items() if k in ['endpoint', 'component', 'method']}
        self.fingerprint = self._generate_fingerprint()
        self.first_seen = time.time()
        self.last_seen = time.time()
        self.count = 1

    def _generate_fingerprint(self) -> str:
        content = f"{self.error_type}:{self.message}:{self.context.get('endpoint', '')}:{self.context.get('component', '')}"
        return hashlib.md5(content.encode(), usedforsecurity=False).hexdigest()[:8]

    def update(self):
        self.last_seen = time.time()
        self.count += 1

class ErrorAggregator:
    """Aggregate and deduplicate errors so a flapping dependency does not flood the logs."""

    def __init__(self, log_threshold: int = 10, time_window: int = 300):
        self.log_threshold = log_threshold  # Log every Nth occurrence
        self.time_window = time_window      # 5 minutes
        self.patterns: Dict[str, ErrorPattern] = {}
        self.severity_override = {
            "NotFoundError": ErrorSeverity.LOW,
            "InvalidRequestError": ErrorSeverity.LOW,
            "SlotUnavailableError": ErrorSeverity.LOW,
            "SlotConflictError": ErrorSeverity.LOW,
            "ValidationError": ErrorSeverity.LOW,
            "HTTPException": ErrorSeverity.LOW,
            "TimeoutError": ErrorSeverity.MEDIUM,
            "ConnectionError": ErrorSeverity.MEDIUM,
            "DatabaseError": ErrorSeverity.HIGH,
            "OperationalError": ErrorSeverity.HIGH,
        }

    def _determine_severity(self, error: Exception, context: Dict[str, Any]) -> ErrorSeverity:
        error_type = type(error).__name__

        if error_type in self.severity_override:
            return self.severity_override[error_type]

        if isinstance(error, HTTPException):
            if error.status_code < 500:
                return ErrorSeverity.LOW
            elif error.status_code < 503:
                return ErrorSeverity.MEDIUM
            else:
                return ErrorSeverity.HIGH

        if "timeout" in str(error).lower():
            return ErrorSeverity.MEDIUM
        return ErrorSeverity.MEDIUM

    def should_log(self, pattern: ErrorPattern, severity: ErrorSeverity) -> bool:
        """Determine if error should be logged based on frequency and severity."""
        if severity in [ErrorSeverity.HIGH, ErrorSeverity.CRITICAL]:
            return True

        if pattern.count == 1:
            return True

        if severity == ErrorSeverity.MEDIUM and pattern.count % self.log_threshold == 0:
            return True

        if severity == ErrorSeverity.LOW and pattern.count % (self.log_threshold * 5) == 0:
            return True

        return False

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None,
                  severity: Optional[ErrorSeverity] = None) -> str:
        """Log error with deduplication and frequency control."""
        context = context or {}

        if severity is None:
            severity = self._determine_severity(error, context)

        error_type = type(error).__name__
        message = str(error)

        pattern = ErrorPattern(error_type, message, context)
        fingerprint = pattern.fingerprint

        if fingerprint in self.patterns:
            self.patterns[fingerprint].update()
            pattern = self.patterns[fingerprint]
        else:
            self.patterns[fingerprint] = pattern

        if self.should_log(pattern, severity):
            logger.error(
                "aggregated_error",
                error_hash=fingerprint,
                error_type=error_type,
                error=message,
                count=pattern.count,
                severity=severity.value,
                first_seen=pattern.first_seen,
                **context
            )

        return fingerprint

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of recent errors for monitoring."""
        now = time.time()
        recent_errors = {
            fp: pattern for fp, pattern in self.patterns.items()
            if now - pattern.last_seen < self.time_window
        }

        by_severity: Dict[str, int] = defaultdict(int)
        for pattern in recent_errors.values():
            if pattern.count > 100:
                severity = "high"
            elif pattern.count > 10:
                severity = "medium"
            else:
                severity = "low"
            by_severity[severity] += pattern.count

        top_errors = sorted(recent_errors.values(), key=lambda p: p.count, reverse=True)[:5]
        return {
            "total_unique_errors": len(recent_errors),
            "total_error_count": sum(p.count for p in recent_errors.values()),
            "by_severity": dict(by_severity),
            "top_errors": [
                {
                    "fingerprint": p.fingerprint,
                    "type": p.error_type,
                    "message": p.message,
                    "count": p.count
                }
                for p in top_errors
            ],
        }

    def cleanup_old_patterns(self):
        """Remove old error patterns to prevent memory leaks."""
        cutoff = time.time() - (self.time_window * 10)

        old_patterns = [
            fp for fp, pattern in self.patterns.items()
            if pattern.last_seen < cutoff
        ]

        for fp in old_patterns:
            del self.patterns[fp]

        if old_patterns:
            logger.info("error_cleanup", removed_patterns=len(old_patterns))

# Global error aggregator instance
error_aggregator = ErrorAggregator(log_threshold=settings.ERROR_AGGREGATION_THRESHOLD)

def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> str:
    """Convenience function to log errors through the global aggregator."""
    return error_aggregator.log_error(error, context, severity)

def get_error_summary() -> Dict[str, Any]:
    """Get error summary from global aggregator."""
    return error_aggregator.get_error_summary()
