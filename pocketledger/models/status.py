"""
Status Models for Pocket Ledger

Every ledger operation, successful or not, produces one status event.
Events are handed to a StatusRelay, which logs them and passes them on
to whoever registered for them (a toast in the UI, a test, a queue).

DESIGN DECISION: Status events are immutable records. A failure event
carries the error class name so consumers can single out consistency
failures without parsing the message.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from pocketledger.models.ledger import utc_now


class StatusScope(str, Enum):
    """Which part of the ledger an operation belongs to."""
    ENTRIES = "entries"
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"


class StatusAction(str, Enum):
    """What was attempted."""
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"
    ADJUST = "adjust"
    UPSERT = "upsert"


class StatusState(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class StatusEvent(BaseModel):
    """A single operation outcome."""
    model_config = ConfigDict(frozen=True)
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    
    # Classification
    scope: StatusScope
    action: StatusAction
    state: StatusState
    
    message: str = Field(
        ...,
        max_length=500,
        description="Human-readable outcome"
    )
    
    # Error information (if applicable)
    error_type: Optional[str] = Field(
        default=None,
        description="Exception class name for failures"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    
    @property
    def is_error(self) -> bool:
        return self.state == StatusState.ERROR
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "scope": self.scope.value,
            "action": self.action.value,
            "state": self.state.value,
            "message": self.message,
            "error_type": self.error_type,
            "details": self.details,
        }


class StatusEventBuilder:
    """
    Helper class to build status events.
    
    Usage:
        event = StatusEventBuilder.success(scope, action, "Entry created")
        event = StatusEventBuilder.failure(scope, action, "Entry save failed", exc)
    """
    
    @staticmethod
    def success(
        scope: StatusScope,
        action: StatusAction,
        message: str,
        details: Optional[dict] = None,
    ) -> StatusEvent:
        return StatusEvent(
            scope=scope,
            action=action,
            state=StatusState.SUCCESS,
            message=message,
            details=details or {},
        )
    
    @staticmethod
    def failure(
        scope: StatusScope,
        action: StatusAction,
        message: str,
        error: BaseException,
        details: Optional[dict] = None,
    ) -> StatusEvent:
        reason = str(error) or type(error).__name__
        return StatusEvent(
            scope=scope,
            action=action,
            state=StatusState.ERROR,
            message=f"{message}: {reason}"[:500],
            error_type=type(error).__name__,
            details=details or {},
        )
