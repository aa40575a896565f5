"""Status relay package."""

from pocketledger.status.relay import StatusHistory, StatusRelay, TrackedOperation

__all__ = ["StatusHistory", "StatusRelay", "TrackedOperation"]
