"""Socket.IO namespace delivering new messages to participants."""

from __future__ import annotations

from typing import Dict, Optional

import socketio

from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics

_namespace: "MessagesNamespace" | None = None


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def resolve_user(environ: dict, auth: Optional[dict]) -> Optional[AuthenticatedUser]:
	scope = environ.get("asgi.scope", environ)
	payload = auth or environ.get("auth") or scope.get("auth") or {}
	user_id = payload.get("userId") or _header(scope, "x-user-id")
	if not user_id:
		return None
	return AuthenticatedUser(id=str(user_id), display_name=payload.get("name") or _header(scope, "x-user-name"))


class MessagesNamespace(socketio.AsyncNamespace):
	"""Places each client in its per-user room."""

	def __init__(self) -> None:
		super().__init__("/messages")
		self._sessions: Dict[str, AuthenticatedUser] = {}

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		user = resolve_user(environ, auth)
		if user is None:
			obs_metrics.socket_disconnected(self.namespace)
			raise ConnectionRefusedError("missing user id")
		self._sessions[sid] = user
		await self.enter_room(sid, self.user_room(user.id))
		await self.emit("messages:ack", {"ok": True}, room=sid)

	async def on_disconnect(self, sid: str, *args) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		user = self._sessions.pop(sid, None)
		if user:
			await self.leave_room(sid, self.user_room(user.id))

	@staticmethod
	def user_room(user_id: str) -> str:
		return f"user:{user_id}"


def set_namespace(namespace: Optional[MessagesNamespace]) -> None:
	global _namespace
	_namespace = namespace


async def emit_message(user_id: str, payload: dict) -> None:
	if _namespace is None:
		return
	obs_metrics.socket_event(_namespace.namespace, "message:new")
	await _namespace.emit("message:new", payload, room=MessagesNamespace.user_room(user_id))
