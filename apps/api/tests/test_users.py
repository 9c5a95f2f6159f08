import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from models.saved_video import SavedVideo
from models.search_history import SearchHistory
from models.user import User
from models.video_assignment import VideoAssignment
from models.watch_history import WatchHistory
from models.watch_later import WatchLater


@pytest.mark.asyncio
async def test_create_and_list_users(catalog_client, auth_headers):
    client, _ = catalog_client

    first = await client.post("/users", json={"name": " Ada ", "avatar_url": "https://cdn.test/ada.png"}, headers=auth_headers(1))
    second = await client.post("/users", json={"name": "Grace"}, headers=auth_headers(1))
    listing = await client.get("/users", headers=auth_headers(1))

    assert first.status_code == 200
    assert first.json()["user"]["name"] == "Ada"
    assert second.json()["user"]["avatar_url"] is None
    assert [user["name"] for user in listing.json()["users"]] == ["Ada", "Grace"]


@pytest.mark.asyncio
async def test_create_user_requires_name(catalog_client, auth_headers):
    client, _ = catalog_client

    response = await client.post("/users", json={"avatar_url": "https://cdn.test/x.png"}, headers=auth_headers(1))

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Name is required"}


@pytest.mark.asyncio
async def test_get_user(catalog_client, auth_headers, seed_users):
    client, _ = catalog_client
    await seed_users(6)

    found = await client.get("/users/6", headers=auth_headers(1))
    missing = await client.get("/users/99", headers=auth_headers(1))

    assert found.json()["user"]["name"] == "viewer-6"
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_update_user_is_self_scoped(catalog_client, auth_headers, seed_users):
    client, _ = catalog_client
    await seed_users(6)

    updated = await client.put("/users/6", json={"name": "Renamed"}, headers=auth_headers(6))
    foreign = await client.put("/users/6", json={"name": "Hijacked"}, headers=auth_headers(7))

    assert updated.json()["user"]["name"] == "Renamed"
    assert foreign.status_code == 403


@pytest.mark.asyncio
async def test_delete_user_removes_their_rows(catalog_client, fake_youtube, auth_headers, seed_users):
    client, session_maker = catalog_client
    await seed_users(6, 7)
    created = await client.post(
        "/videos",
        json={"video_url": "https://youtu.be/abc", "assigned_user_ids": [6, 7]},
        headers=auth_headers(1),
    )
    video_id = created.json()["video"]["id"]
    async with session_maker() as session:
        for user_id in (6, 7):
            session.add_all(
                [
                    WatchHistory(user_id=user_id, video_id=video_id, progress=1),
                    WatchLater(user_id=user_id, video_id=video_id),
                    SavedVideo(user_id=user_id, video_id=video_id),
                    SearchHistory(user_id=user_id, query="cells"),
                ]
            )
        await session.commit()

    response = await client.delete("/users/6", headers=auth_headers(6))

    assert response.status_code == 200
    assert response.json()["user"]["id"] == 6
    async with session_maker() as session:
        for model in (WatchHistory, WatchLater, SavedVideo, SearchHistory, VideoAssignment):
            remaining = await session.execute(select(model.user_id).select_from(model))
            assert set(remaining.scalars().all()) == {7}
        users = await session.execute(select(func.count()).select_from(User))
        assert users.scalar_one() == 1

    assert (await client.delete("/users/6", headers=auth_headers(6))).status_code == 404


@pytest.mark.asyncio
async def test_deleting_the_only_assignee_keeps_video_restricted(catalog_client, fake_youtube, auth_headers, seed_users):
    client, session_maker = catalog_client
    await seed_users(6, 7)
    created = await client.post(
        "/videos",
        json={"video_url": "https://youtu.be/private1", "category": "Genetics", "assigned_user_ids": [6]},
        headers=auth_headers(1),
    )
    video_id = created.json()["video"]["id"]

    response = await client.delete("/users/6", headers=auth_headers(6))

    assert response.status_code == 200
    assert (await client.get("/videos")).json()["videos"] == []
    assert (await client.get("/videos", headers=auth_headers(7))).json()["videos"] == []
    assert (await client.get("/search?q=genetics", headers=auth_headers(7))).json()["videos"] == []
    async with session_maker() as session:
        remaining = await session.execute(
            select(VideoAssignment.user_id).where(VideoAssignment.video_id == video_id)
        )
        assert remaining.scalars().all() == [None]
