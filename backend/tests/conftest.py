import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from app.domain import assistant, engagement, messaging, notifications
from app.infra import postgres
from app.main import app
from app.settings import settings


# Ensure a selector-based event loop policy on Windows to avoid Proactor issues with async IO
if hasattr(asyncio, "WindowsSelectorEventLoopPolicy"):
	try:
		asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
	except Exception:
		pass


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	"""Keep every repository on its in-memory store."""

	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)
	postgres.set_pool(None)


@pytest_asyncio.fixture(autouse=True)
async def reset_memory_stores():
	await messaging.reset_memory_state()
	await notifications.reset_memory_state()
	await engagement.reset_memory_state()
	await assistant.reset_memory_state()
	yield


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Pin the settings the assertions depend on."""
	original_env = settings.environment
	original_default = settings.messages_default_limit
	original_max = settings.messages_max_limit
	settings.environment = "dev"
	settings.messages_default_limit = 50
	settings.messages_max_limit = 200
	try:
		yield
	finally:
		settings.environment = original_env
		settings.messages_default_limit = original_default
		settings.messages_max_limit = original_max


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
