"""Socket.IO namespace pushing new notifications to their recipient."""

from __future__ import annotations

from typing import Dict, Optional

import socketio

from app.domain.messaging.sockets import resolve_user
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

_namespace: "NotificationsNamespace" | None = None


class NotificationsNamespace(socketio.AsyncNamespace):
	def __init__(self) -> None:
		super().__init__("/notifications")
		self._sessions: Dict[str, AuthenticatedUser] = {}

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		user = resolve_user(environ, auth)
		if user is None:
			obs_metrics.socket_disconnected(self.namespace)
			raise ConnectionRefusedError("missing user id")
		self._sessions[sid] = user
		await self.enter_room(sid, self.user_room(user.id))

	async def on_disconnect(self, sid: str, *args) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		user = self._sessions.pop(sid, None)
		if user:
			await self.leave_room(sid, self.user_room(user.id))

	@staticmethod
	def user_room(user_id: str) -> str:
		return f"user:{user_id}"


def set_namespace(namespace: Optional[NotificationsNamespace]) -> None:
	global _namespace
	_namespace = namespace


async def emit_notification(user_id: str, payload: dict) -> None:
	if _namespace is None:
		return
	obs_metrics.socket_event(_namespace.namespace, "notification:new")
	await _namespace.emit("notification:new", payload, room=NotificationsNamespace.user_room(user_id))
