"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import asyncpg
import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import assistant, engagement, messages, notifications, ops
from app.api.errors import install_error_handlers
from app.api.middleware_request_id import RequestIdMiddleware
from app.domain.messaging.sockets import MessagesNamespace, set_namespace as set_messages_namespace
from app.domain.notifications.sockets import (
	NotificationsNamespace,
	set_namespace as set_notifications_namespace,
)
from app.infra import postgres
from app.obs import init as obs_init
from app.obs import metrics as obs_metrics
from app.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	try:
		await postgres.init_pool()
		obs_metrics.mark_postgres(True)
	except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError):
		obs_metrics.mark_postgres(False)
		if settings.is_prod():
			raise
		logger.warning("postgres unavailable, repositories use in-memory stores", exc_info=True)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Student Connect API", lifespan=lifespan)

if settings.cors_allow_origins:
	allow_origins = list(settings.cors_allow_origins)
elif settings.is_dev():
	allow_origins = [
		"http://localhost:3000",
		"http://127.0.0.1:3000",
		"http://localhost:5173",
		"http://127.0.0.1:5173",
	]
else:
	allow_origins = []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
messages_namespace = MessagesNamespace()
sio.register_namespace(messages_namespace)
set_messages_namespace(messages_namespace)
notifications_namespace = NotificationsNamespace()
sio.register_namespace(notifications_namespace)
set_notifications_namespace(notifications_namespace)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)

obs_init(app)
app.add_middleware(RequestIdMiddleware)
install_error_handlers(app)

app.include_router(messages.router)
app.include_router(notifications.router)
app.include_router(engagement.router)
app.include_router(assistant.router)
app.include_router(ops.router)
