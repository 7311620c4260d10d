"""Liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from app.infra import postgres
from app.obs import metrics
from app.settings import settings

LOGGER = logging.getLogger(__name__)

CORE_TABLES = (
	"conversations",
	"conversation_participants",
	"messages",
	"notifications",
	"chat_sessions",
	"chat_messages",
	"community_members",
	"event_participants",
)


async def _postgres_status(timeout: float = 0.3) -> Dict[str, Any]:
	try:
		pool = await postgres.get_pool()
	except Exception as exc:
		metrics.mark_postgres(False)
		LOGGER.warning("postgres pool unavailable", exc_info=True)
		return {"ok": False, "error": str(exc) or exc.__class__.__name__}

	start = perf_counter()
	try:
		async with pool.acquire() as conn:
			missing = await asyncio.wait_for(
				conn.fetchval(
					"SELECT array_agg(t) FROM unnest($1::text[]) AS t WHERE to_regclass(t) IS NULL",
					list(CORE_TABLES),
				),
				timeout=timeout,
			)
	except Exception as exc:  # pragma: no cover - depends on runtime
		metrics.mark_postgres(False)
		LOGGER.warning("postgres readiness query failed", exc_info=True)
		return {"ok": False, "error": str(exc)}
	latency_ms = round((perf_counter() - start) * 1000, 2)
	if missing:
		metrics.mark_postgres(False)
		return {"ok": False, "error": "schema_missing", "missing": list(missing), "latency_ms": latency_ms}
	metrics.mark_postgres(True)
	return {"ok": True, "latency_ms": latency_ms}


def _assistant_status() -> Dict[str, Any]:
	# Informational only: chat degrades per request when the provider is unset.
	return {"ok": True, "configured": bool(settings.openai_api_key), "model": settings.assistant_model}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	postgres_state = await _postgres_status()
	ok = bool(postgres_state.get("ok"))
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {"postgres": postgres_state, "assistant": _assistant_status()},
		},
	)
