"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"sc_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"sc_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"sc_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"sc_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

CONVERSATIONS_CREATED = Counter(
	"sc_conversations_created_total",
	"Conversations created",
	["kind"],
)

CONVERSATIONS_REUSED = Counter(
	"sc_conversations_reused_total",
	"Direct conversation requests answered with an existing conversation",
)

MESSAGES_SENT = Counter(
	"sc_messages_sent_total",
	"Messages appended to conversations",
)

MESSAGE_READ_RECEIPTS = Counter(
	"sc_message_read_receipts_total",
	"Reader ids appended to message read sets",
)

DEGRADED_READS = Counter(
	"sc_degraded_reads_total",
	"Read-path fetches that fell back to an empty value",
	["field"],
)

NOTIFICATIONS_PERSISTED = Counter(
	"sc_notifications_persisted_total",
	"Notifications persisted",
	["result"],
)

ASSISTANT_COMPLETIONS = Counter(
	"sc_assistant_completions_total",
	"Text completion calls issued by the assistant",
	["purpose", "result"],
)

ENGAGEMENT_ACTIONS = Counter(
	"sc_engagement_actions_total",
	"Community and event membership actions",
	["action", "result"],
)

POSTGRES_UP = Gauge(
	"sc_postgres_up",
	"Postgres readiness (1 healthy, 0 unhealthy)",
)


def observe_request(route: str, method: str, status: int, duration_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(duration_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_conversation_created(kind: str) -> None:
	CONVERSATIONS_CREATED.labels(kind=kind).inc()


def inc_conversation_reused() -> None:
	CONVERSATIONS_REUSED.inc()


def inc_message_sent() -> None:
	MESSAGES_SENT.inc()


def inc_read_receipts(count: int) -> None:
	if count > 0:
		MESSAGE_READ_RECEIPTS.inc(count)


def inc_degraded_read(field: str) -> None:
	DEGRADED_READS.labels(field=field).inc()


def notification_persisted(result: str) -> None:
	NOTIFICATIONS_PERSISTED.labels(result=result).inc()


def assistant_completion(purpose: str, result: str) -> None:
	ASSISTANT_COMPLETIONS.labels(purpose=purpose, result=result).inc()


def engagement_action(action: str, result: str) -> None:
	ENGAGEMENT_ACTIONS.labels(action=action, result=result).inc()


def mark_postgres(ok: bool) -> None:
	POSTGRES_UP.set(1 if ok else 0)
