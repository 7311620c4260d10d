import pytest

from app.domain.assistant.schemas import ChatExchangeResult, TurnView

ALICE = {"X-User-Id": "alice"}


@pytest.mark.asyncio
async def test_session_lifecycle(api_client):
    created = await api_client.post("/assistant/sessions", headers=ALICE)
    assert created.status_code == 201
    session_id = created.json()["session"]["id"]

    sessions = await api_client.get("/assistant/sessions", headers=ALICE)
    assert [s["id"] for s in sessions.json()] == [session_id]

    other = await api_client.get(f"/assistant/sessions/{session_id}/messages", headers={"X-User-Id": "bob"})
    assert other.status_code == 200
    assert other.json() == []


@pytest.mark.asyncio
async def test_send_returns_exchange(api_client, monkeypatch):
    from datetime import datetime, timezone

    from app.domain.assistant import service

    now = datetime.now(timezone.utc)

    async def fake_send(session_id, user_id, message):
        return ChatExchangeResult.ok(
            user_message=TurnView(id="u1", role="user", content=message, timestamp=now),
            assistant_message=TurnView(
                id="a1", role="assistant", content="Hi!", timestamp=now, suggestions=["What next?"]
            ),
        )

    monkeypatch.setattr(service, "send_chat_message", fake_send)
    response = await api_client.post(
        "/assistant/sessions/s1/messages",
        json={"message": "Hello"},
        headers=ALICE,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["assistant_message"]["suggestions"] == ["What next?"]


@pytest.mark.asyncio
async def test_completion_failure_reports_saved_user_turn(api_client, monkeypatch):
    from datetime import datetime, timezone

    from app.domain.assistant import service
    from app.domain.assistant.exceptions import CompletionError

    now = datetime.now(timezone.utc)

    async def fake_send(session_id, user_id, message):
        return ChatExchangeResult.failed(
            CompletionError("service down"),
            user_message=TurnView(id="u1", role="user", content=message, timestamp=now),
        )

    monkeypatch.setattr(service, "send_chat_message", fake_send)
    response = await api_client.post(
        "/assistant/sessions/s1/messages",
        json={"message": "Hello"},
        headers=ALICE,
    )
    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["user_message"]["content"] == "Hello"
    assert detail["assistant_message"] is None


@pytest.mark.asyncio
async def test_unknown_session_is_not_found(api_client):
    response = await api_client.post(
        "/assistant/sessions/missing/messages",
        json={"message": "Hello"},
        headers=ALICE,
    )
    assert response.status_code == 404
