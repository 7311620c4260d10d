"""Identity context for FastAPI endpoints.

Sessions are owned by the upstream identity provider. Requests reach this
service with the authenticated user id forwarded in ``X-User-Id``; every
domain operation receives that id explicitly instead of reading ambient
session state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, status


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
) -> AuthenticatedUser:
	"""Resolve the acting user from the identity provider headers."""
	user_id = (x_user_id or "").strip()
	if not user_id:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_identity")
	return AuthenticatedUser(id=user_id, display_name=x_user_name)
