"""Error tracking data models."""

from datetime import datetime, timezone
from enum import Enum
import traceback
from typing import Optional

from pydantic import BaseModel, Field


class FailurePhase(str, Enum):
    """Where a failure happened."""

    CONFIGURE = "configure"
    TRAVERSAL = "traversal"
    RULE = "rule"


class ErrorRecord(BaseModel):
    """Error record for a failed rule run or a failed file."""

    phase: FailurePhase
    error_type: str
    message: str
    rule: Optional[str] = None
    stack_trace: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        phase: FailurePhase,
        rule: Optional[str] = None,
    ) -> "ErrorRecord":
        return cls(
            phase=phase,
            error_type=type(error).__name__,
            message=str(error),
            rule=rule,
            stack_trace="".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
        )
