import pytest

from app.domain.notifications import NotificationType, ReferenceKind, notify

ALICE = {"X-User-Id": "alice"}


@pytest.mark.asyncio
async def test_notification_inbox_flow(api_client):
    first = await notify("alice", NotificationType.PROJECT_UPDATE, "Project updated", "p1", ReferenceKind.PROJECT)
    await notify("alice", NotificationType.MESSAGE, "New message", "m1", ReferenceKind.MESSAGE)

    listing = await api_client.get("/notifications", headers=ALICE)
    assert listing.status_code == 200
    body = listing.json()
    assert body["unread_count"] == 2
    assert {item["link"] for item in body["items"]} == {"/projects/p1", "/messages"}

    marked = await api_client.post(f"/notifications/{first.notification.id}/read", headers=ALICE)
    assert marked.status_code == 200
    unread = await api_client.get("/notifications", params={"unread_only": "true"}, headers=ALICE)
    assert [item["content"] for item in unread.json()["items"]] == ["New message"]

    read_all = await api_client.post("/notifications/read-all", headers=ALICE)
    assert read_all.json()["updated"] == 1
    assert (await api_client.get("/notifications", headers=ALICE)).json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_marking_someone_elses_notification_is_not_found(api_client):
    created = await notify("bob", NotificationType.MESSAGE, "For bob", "m1", ReferenceKind.MESSAGE)
    response = await api_client.post(f"/notifications/{created.notification.id}/read", headers=ALICE)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_engagement_routes_fan_out_notifications(api_client):
    joined = await api_client.post("/communities/c1/members", headers=ALICE)
    assert joined.status_code == 200
    assert joined.json()["message"] == "Successfully joined community"

    duplicate = await api_client.post("/communities/c1/members", headers=ALICE)
    assert duplicate.status_code == 409

    member = await api_client.get("/communities/c1/members/me", headers=ALICE)
    assert member.json() == {"member": True}

    registered = await api_client.post("/events/e1/participants", headers=ALICE)
    assert registered.status_code == 200

    listing = (await api_client.get("/notifications", headers=ALICE)).json()
    assert sorted(item["type"] for item in listing["items"]) == ["community_join", "event_registration"]

    left = await api_client.delete("/events/e1/participants", headers=ALICE)
    assert left.status_code == 200
    gone = await api_client.delete("/events/e1/participants", headers=ALICE)
    assert gone.status_code == 404
    assert (await api_client.get("/events/e1/participants/me", headers=ALICE)).json() == {"registered": False}
