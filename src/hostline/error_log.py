"""Operational error tracking.

Failures the caller never sees as a crash (a failed generation, a booking
write that errored, a call record that could not be persisted) are reported
to the store so operators can group and count them.  Reporting is best
effort: it is bounded by a timeout and never raises into the call.
"""

import asyncio
import base64
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

from hostline.session import CallSession

logger = logging.getLogger(__name__)

# Categories
RECOGNITION = "recognition"
SYNTHESIS = "synthesis"
GENERATION = "generation"
CARRIER = "carrier"
DATABASE = "database"
TIMEOUT = "timeout"
SYSTEM = "system"

# Severities
CRITICAL = "critical"
HIGH = "high"
MEDIUM = "medium"
LOW = "low"

# Repeats of the same fingerprint inside this window are grouped
DEDUP_WINDOW_SECONDS = 3600


def error_fingerprint(category: str, code: str, message: str) -> str:
    first_line = message.split("\n", 1)[0][:100]
    encoded = base64.b64encode(first_line.encode("utf-8")).decode("ascii")[:20]
    return f"{category}-{code or 'no-code'}-{encoded}"


@dataclass(frozen=True)
class ErrorReport:
    category: str
    severity: str
    message: str
    code: str = ""
    business_id: Optional[str] = None
    call_id: Optional[str] = None
    occurred_at: float = 0.0
    details: dict = field(default_factory=dict)

    @property
    def fingerprint(self) -> str:
        return error_fingerprint(self.category, self.code, self.message)

    def to_dict(self) -> dict:
        record = asdict(self)
        record["fingerprint"] = self.fingerprint
        record["occurred_at"] = datetime.fromtimestamp(self.occurred_at, tz=timezone.utc).isoformat()
        return record


async def report_error(
    store,
    session: Optional[CallSession],
    category: str,
    severity: str,
    error: BaseException | str,
    now: float,
    timeout: float,
    business_id: Optional[str] = None,
    **details,
) -> ErrorReport:
    """Record ``error`` on the session and forward it to the store."""
    code = type(error).__name__ if isinstance(error, BaseException) else ""
    report = ErrorReport(
        category=category,
        severity=severity,
        message=str(error) or code,
        code=code,
        business_id=business_id or (session.business_id if session else None) or None,
        call_id=session.id if session else None,
        occurred_at=now,
        details=details,
    )
    if session is not None:
        session.errors.append({
            "category": category,
            "severity": severity,
            "message": report.message,
            "fingerprint": report.fingerprint,
            "timestamp": now,
        })
    try:
        await asyncio.wait_for(store.log_error(report.to_dict()), timeout)
    except Exception as e:
        logger.warning("Reporting %s error for call %s failed: %r", category, report.call_id, e)
    return report
