"""Success/failure envelopes returned by mutating operations."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

UNEXPECTED_REASON = "unavailable"


class ActionResult(BaseModel):
	"""Uniform envelope: mutations never raise past the service boundary."""

	success: bool
	error: Optional[str] = None
	reason: Optional[str] = None

	@classmethod
	def ok(cls, **fields) -> "ActionResult":
		return cls(success=True, **fields)

	@classmethod
	def failed(cls, exc: BaseException, **fields) -> "ActionResult":
		return cls(
			success=False,
			error=str(exc) or exc.__class__.__name__,
			reason=getattr(exc, "reason", UNEXPECTED_REASON),
			**fields,
		)
