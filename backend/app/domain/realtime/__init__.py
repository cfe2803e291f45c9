"""Live channel: Socket.IO namespace, typed events and session push helpers."""
