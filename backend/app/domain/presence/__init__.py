"""Process-local presence tracking."""

from app.domain.presence.tracker import PresenceTracker, get_tracker

__all__ = ["PresenceTracker", "get_tracker"]
