"""Posts, comments, replies, upvotes and the explore feed."""

import pytest_asyncio
from httpx import AsyncClient

from tests.conftest import create_event


@pytest_asyncio.fixture
async def arena(client: AsyncClient, make_user) -> dict:
    """An active event with its host, one participant and one outsider."""
    host, host_headers = await make_user("host@example.com", name="Host")
    player, player_headers = await make_user("player@example.com", name="Player")
    outsider, outsider_headers = await make_user("outsider@example.com", name="Outsider")
    event = await create_event(client, host_headers)
    response = await client.patch(f"/api/event/{event['id']}/join", headers=player_headers)
    assert response.status_code == 200
    return {
        "event": event,
        "host": (host, host_headers),
        "player": (player, player_headers),
        "outsider": (outsider, outsider_headers),
    }


async def _post(client: AsyncClient, event_id: str, headers: dict, content: str = "Day one progress") -> dict:
    response = await client.post(f"/api/event/{event_id}/post", json={"content": content}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _comment(client: AsyncClient, post_id: str, headers: dict, content: str) -> dict:
    response = await client.post(f"/api/event/post/{post_id}/comment", json={"content": content}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _reply(client: AsyncClient, comment_id: str, headers: dict, content: str) -> dict:
    response = await client.post(f"/api/event/comment/{comment_id}/reply", json={"content": content}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreatePost:
    async def test_participant_posts(self, client: AsyncClient, arena):
        player, headers = arena["player"]
        response = await client.post(
            f"/api/event/{arena['event']['id']}/post",
            json={"content": "Hello", "image": "https://img.example.com/1.png"},
            headers=headers,
        )
        assert response.status_code == 201
        post = response.json()["data"]
        assert post["content"] == "Hello"
        assert post["image"] == "https://img.example.com/1.png"
        assert post["author"]["id"] == player.id
        assert post["event_id"] == arena["event"]["id"]
        assert post["upvote_count"] == 0
        assert post["comments"] == []

    async def test_outsider_rejected(self, client: AsyncClient, arena):
        _, headers = arena["outsider"]
        response = await client.post(
            f"/api/event/{arena['event']['id']}/post", json={"content": "Hi"}, headers=headers
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You must join this event before posting"

    async def test_creator_cannot_post(self, client: AsyncClient, arena):
        _, headers = arena["host"]
        response = await client.post(
            f"/api/event/{arena['event']['id']}/post", json={"content": "Welcome"}, headers=headers
        )
        assert response.status_code == 403
        assert "Event creators cannot post" in response.json()["message"]

    async def test_inactive_event(self, client: AsyncClient, arena):
        await client.patch(f"/api/event/{arena['event']['id']}/close", headers=arena["host"][1])
        response = await client.post(
            f"/api/event/{arena['event']['id']}/post", json={"content": "Late"}, headers=arena["player"][1]
        )
        assert response.status_code == 400
        assert response.json()["message"] == "This event is not active"

    async def test_missing_event(self, client: AsyncClient, arena):
        response = await client.post("/api/event/nope/post", json={"content": "x"}, headers=arena["player"][1])
        assert response.status_code == 404

    async def test_empty_content(self, client: AsyncClient, arena):
        response = await client.post(
            f"/api/event/{arena['event']['id']}/post", json={"content": ""}, headers=arena["player"][1]
        )
        assert response.status_code == 422


class TestComments:
    async def test_participant_and_creator_comment(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        by_player = await _comment(client, post["id"], arena["player"][1], "Nice")
        by_host = await _comment(client, post["id"], arena["host"][1], "Keep going")
        assert by_player["post_id"] == post["id"]
        assert by_player["parent_id"] is None
        assert by_host["author"]["id"] == arena["host"][0].id

    async def test_outsider_cannot_comment(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        response = await client.post(
            f"/api/event/post/{post['id']}/comment", json={"content": "?"}, headers=arena["outsider"][1]
        )
        assert response.status_code == 403

    async def test_missing_post(self, client: AsyncClient, arena):
        response = await client.post(
            "/api/event/post/nope/comment", json={"content": "?"}, headers=arena["player"][1]
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"

    async def test_inactive_event(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        await client.patch(f"/api/event/{arena['event']['id']}/close", headers=arena["host"][1])
        response = await client.post(
            f"/api/event/post/{post['id']}/comment", json={"content": "late"}, headers=arena["host"][1]
        )
        assert response.status_code == 400

    async def test_reply_lands_on_parent_post(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        comment = await _comment(client, post["id"], arena["player"][1], "Question?")
        reply = await _reply(client, comment["id"], arena["host"][1], "Answer.")
        assert reply["parent_id"] == comment["id"]
        assert reply["post_id"] == post["id"]

    async def test_reply_to_missing_comment(self, client: AsyncClient, arena):
        response = await client.post(
            "/api/event/comment/nope/reply", json={"content": "x"}, headers=arena["player"][1]
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Comment not found"

    async def test_outsider_cannot_reply(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        comment = await _comment(client, post["id"], arena["player"][1], "Question?")
        response = await client.post(
            f"/api/event/comment/{comment['id']}/reply", json={"content": "x"}, headers=arena["outsider"][1]
        )
        assert response.status_code == 403

    async def test_event_page_threads(self, client: AsyncClient, arena):
        event_id = arena["event"]["id"]
        player_headers = arena["player"][1]
        host_headers = arena["host"][1]
        older = await _post(client, event_id, player_headers, "First post")
        newer = await _post(client, event_id, player_headers, "Second post")
        root = await _comment(client, older["id"], player_headers, "root")
        child = await _reply(client, root["id"], host_headers, "child")
        await _reply(client, child["id"], player_headers, "grandchild")
        await _comment(client, older["id"], host_headers, "second root")

        response = await client.get(f"/api/event/{event_id}", headers=player_headers)
        data = response.json()["data"]
        assert data["post_count"] == 2
        assert [p["id"] for p in data["posts"]] == [newer["id"], older["id"]]

        threaded = data["posts"][1]
        assert threaded["comment_count"] == 4
        assert [c["content"] for c in threaded["comments"]] == ["root", "second root"]
        first = threaded["comments"][0]
        assert [r["content"] for r in first["replies"]] == ["child"]
        assert [r["content"] for r in first["replies"][0]["replies"]] == ["grandchild"]


class TestUpvotes:
    async def test_upvote_and_remove(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        response = await client.post(f"/api/event/post/{post['id']}/upvote", headers=arena["outsider"][1])
        assert response.status_code == 200
        assert response.json()["data"] == {"post_id": post["id"], "upvote_count": 1, "is_upvoted_by_user": True}

        response = await client.post(f"/api/event/post/{post['id']}/remove-upvote", headers=arena["outsider"][1])
        assert response.status_code == 200
        assert response.json()["data"]["upvote_count"] == 0

    async def test_double_upvote(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        await client.post(f"/api/event/post/{post['id']}/upvote", headers=arena["host"][1])
        response = await client.post(f"/api/event/post/{post['id']}/upvote", headers=arena["host"][1])
        assert response.status_code == 400
        assert response.json()["message"] == "You have already upvoted this post"

    async def test_remove_without_upvote(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        response = await client.post(f"/api/event/post/{post['id']}/remove-upvote", headers=arena["host"][1])
        assert response.status_code == 400
        assert response.json()["message"] == "You have not upvoted this post"

    async def test_missing_post(self, client: AsyncClient, arena):
        response = await client.post("/api/event/post/nope/upvote", headers=arena["host"][1])
        assert response.status_code == 404

    async def test_viewer_flag_on_event_page(self, client: AsyncClient, arena):
        post = await _post(client, arena["event"]["id"], arena["player"][1])
        await client.post(f"/api/event/post/{post['id']}/upvote", headers=arena["outsider"][1])

        mine = await client.get(f"/api/event/{arena['event']['id']}", headers=arena["outsider"][1])
        theirs = await client.get(f"/api/event/{arena['event']['id']}", headers=arena["host"][1])
        assert mine.json()["data"]["posts"][0]["is_upvoted_by_user"] is True
        assert theirs.json()["data"]["posts"][0]["is_upvoted_by_user"] is False
        assert theirs.json()["data"]["posts"][0]["upvote_count"] == 1


class TestExplore:
    async def test_feed_from_active_events(self, client: AsyncClient, arena, make_user):
        _, other_host = await make_user("other-host@example.com")
        _, other_player = await make_user("other-player@example.com")
        closed = await create_event(client, other_host, title="Closed")
        await client.patch(f"/api/event/{closed['id']}/join", headers=other_player)
        await _post(client, closed["id"], other_player, "hidden soon")
        await client.patch(f"/api/event/{closed['id']}/close", headers=other_host)

        older = await _post(client, arena["event"]["id"], arena["player"][1], "older")
        newer = await _post(client, arena["event"]["id"], arena["player"][1], "newer")
        await _comment(client, older["id"], arena["host"][1], "nice")

        response = await client.get("/api/event/explore")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert [p["id"] for p in data["posts"]] == [newer["id"], older["id"]]

        item = data["posts"][1]
        assert item["event"]["id"] == arena["event"]["id"]
        assert item["event"]["title"] == "Hackathon"
        assert item["event"]["creator"]["name"] == "Host"
        assert item["author"]["name"] == "Player"
        assert item["comment_count"] == 1
        assert item["comments"][0]["content"] == "nice"
        assert item["is_upvoted_by_user"] is False

    async def test_explore_paginated(self, client: AsyncClient, arena):
        for i in range(3):
            await _post(client, arena["event"]["id"], arena["player"][1], f"post {i}")
        response = await client.get("/api/event/explore", params={"page": 2, "per_page": 2})
        data = response.json()["data"]
        assert data["total"] == 3
        assert [p["content"] for p in data["posts"]] == ["post 0"]
