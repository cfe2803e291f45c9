"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"jobboard_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"jobboard_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

REQUEST_TIMEOUTS = Counter(
	"jobboard_http_request_timeouts_total",
	"HTTP calls into the messaging core that exceeded the request timeout",
	["operation"],
)

SOCKET_CLIENTS = Gauge(
	"jobboard_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"jobboard_socketio_events_total",
	"Socket.IO events emitted or handled",
	["namespace", "event"],
)

SOCKET_CONNECT_REJECTS = Counter(
	"jobboard_socketio_connect_rejects_total",
	"Socket.IO handshakes refused",
	["reason"],
)

SOCKET_PUSH_FAILURES = Counter(
	"jobboard_socketio_push_failures_total",
	"Live pushes that raised while writing to a session",
	["event"],
)

PRESENCE_ONLINE_USERS = Gauge(
	"jobboard_presence_online_users",
	"Users with at least one live session",
)

PRESENCE_SESSIONS = Gauge(
	"jobboard_presence_sessions",
	"Live sessions tracked by the presence tracker",
)

PRESENCE_BROADCASTS = Counter(
	"jobboard_presence_broadcasts_total",
	"Full online-list broadcasts",
)

CHAT_SEND = Counter(
	"jobboard_chat_send_total",
	"Chat messages sent",
)

CHAT_SEND_REJECTS = Counter(
	"jobboard_chat_send_rejects_total",
	"Rejected chat send attempts",
	["reason"],
)

CHAT_CONVERSATIONS_CREATED = Counter(
	"jobboard_chat_conversations_created_total",
	"Conversations created on first message",
)

CHAT_DELIVERED_UPDATES = Counter(
	"jobboard_chat_delivered_updates_total",
	"Chat delivery receipts relayed to senders",
)

CHAT_DELIVERED_DROPPED = Counter(
	"jobboard_chat_delivered_dropped_total",
	"Delivery receipts dropped before relay",
	["reason"],
)

CHAT_READ_UPDATES = Counter(
	"jobboard_chat_read_updates_total",
	"Chat messages marked read",
)

NOTIFICATION_INSERT = Counter(
	"jobboard_notifications_persisted_total",
	"Notification persistence attempts",
	["result"],
)

NOTIFICATION_READ_UPDATES = Counter(
	"jobboard_notifications_read_total",
	"Notifications marked read",
	["scope"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def request_timeout(operation: str) -> None:
	REQUEST_TIMEOUTS.labels(operation=operation).inc()


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_connect_reject(reason: str) -> None:
	SOCKET_CONNECT_REJECTS.labels(reason=reason).inc()


def socket_push_failure(event: str) -> None:
	SOCKET_PUSH_FAILURES.labels(event=event).inc()


def presence_snapshot(users: int, sessions: int) -> None:
	PRESENCE_ONLINE_USERS.set(users)
	PRESENCE_SESSIONS.set(sessions)


def inc_presence_broadcast() -> None:
	PRESENCE_BROADCASTS.inc()


def inc_chat_send() -> None:
	CHAT_SEND.inc()


def inc_chat_send_reject(reason: str) -> None:
	CHAT_SEND_REJECTS.labels(reason=reason).inc()


def inc_conversation_created() -> None:
	CHAT_CONVERSATIONS_CREATED.inc()


def inc_chat_delivered() -> None:
	CHAT_DELIVERED_UPDATES.inc()


def inc_chat_delivered_dropped(reason: str) -> None:
	CHAT_DELIVERED_DROPPED.labels(reason=reason).inc()


def inc_chat_read(count: int = 1) -> None:
	if count > 0:
		CHAT_READ_UPDATES.inc(count)


def notification_persisted(result: str) -> None:
	NOTIFICATION_INSERT.labels(result=result).inc()


def notification_read(scope: str, count: int = 1) -> None:
	if count > 0:
		NOTIFICATION_READ_UPDATES.labels(scope=scope).inc(count)
