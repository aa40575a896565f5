"""
Status Relay

DESIGN DECISION: Every ledger operation reports its outcome as one
StatusEvent. The relay:
- Logs every event locally as structured JSON
- Hands the event to every registered subscriber
- Never lets a broken subscriber break the ledger operation

Subscribers are registered explicitly on the relay instance, and the
relay is passed to the engine at construction time. There is no
module-level listener.
"""

import inspect
from collections import deque
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, Union

import structlog

from pocketledger.errors import ConsistencyError
from pocketledger.models.status import (
    StatusAction,
    StatusEvent,
    StatusEventBuilder,
    StatusScope,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


StatusSubscriber = Callable[[StatusEvent], Union[None, Awaitable[None]]]


class TrackedOperation:
    """
    Handle yielded by StatusRelay.track().
    
    The operation may refine its action and success message and attach
    details before it finishes.
    """
    
    def __init__(self, action: StatusAction, success_message: Optional[str]):
        self.action = action
        self.success_message = success_message
        self.details: dict[str, Any] = {}


class StatusRelay:
    """
    Fans status events out to registered subscribers.
    
    Usage:
        relay = StatusRelay()
        relay.subscribe(toast.show)
        engine = LedgerEngine(entry_store, account_store, relay)
    """
    
    def __init__(
        self,
        subscribers: Optional[Iterable[StatusSubscriber]] = None,
    ):
        self._subscribers: list[StatusSubscriber] = list(subscribers or [])
        self._logger = structlog.get_logger("pocketledger.status")
    
    def subscribe(self, subscriber: StatusSubscriber) -> Callable[[], None]:
        """
        Register a subscriber.
        
        Returns a callable that removes the subscriber again.
        """
        self._subscribers.append(subscriber)
        
        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)
        
        return unsubscribe
    
    async def emit(self, event: StatusEvent) -> None:
        """
        Log an event and deliver it to every subscriber.
        
        Subscriber failures are logged, not raised.
        """
        log_dict = event.to_log_dict()
        if event.is_error:
            self._logger.error("status_event", **log_dict)
        else:
            self._logger.info("status_event", **log_dict)
        
        for subscriber in list(self._subscribers):
            try:
                result = subscriber(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._logger.error(
                    "status_subscriber_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
    
    @asynccontextmanager
    async def track(
        self,
        scope: StatusScope,
        action: StatusAction,
        error_message: str,
        success_message: Optional[str] = None,
        partial_message: Optional[str] = None,
    ) -> AsyncIterator[TrackedOperation]:
        """
        Wrap an operation so exactly one status event is emitted for it.
        
        On failure an error event is emitted and the exception re-raised.
        A ConsistencyError is reported with `partial_message` when one
        is given.
        On success an event is emitted only if a success message is set.
        """
        tracked = TrackedOperation(action, success_message)
        try:
            yield tracked
        except Exception as e:
            if partial_message and isinstance(e, ConsistencyError):
                message = partial_message
            else:
                message = error_message
            await self.emit(StatusEventBuilder.failure(
                scope=scope,
                action=tracked.action,
                message=message,
                error=e,
                details=tracked.details,
            ))
            raise
        if tracked.success_message:
            await self.emit(StatusEventBuilder.success(
                scope=scope,
                action=tracked.action,
                message=tracked.success_message,
                details=tracked.details,
            ))


class StatusHistory:
    """
    Subscriber that keeps the most recent events in memory.
    
    Useful for a "last status" toast and for tests.
    """
    
    def __init__(self, maxlen: int = 50):
        self._events: deque[StatusEvent] = deque(maxlen=maxlen)
    
    def __call__(self, event: StatusEvent) -> None:
        self._events.append(event)
    
    @property
    def last(self) -> Optional[StatusEvent]:
        return self._events[-1] if self._events else None
    
    def recent(self, limit: int = 10) -> list[StatusEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._events))[:limit]
    
    def clear(self) -> None:
        self._events.clear()
    
    def __len__(self) -> int:
        return len(self._events)
