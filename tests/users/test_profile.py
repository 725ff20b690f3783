"""Profile, profile update and wallet endpoints."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from httpx import AsyncClient

from eventhub.db.models import Transaction, TransactionStatus, TransactionType
from eventhub.users.wallet_service import get_or_create_wallet
from tests.conftest import create_event

ADDRESS = "0x52908400098527886e0f7030069857d2e4169ee7"
CHECKSUMMED = "0x52908400098527886E0F7030069857D2E4169EE7"


class TestProfile:
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/user/me")
        assert response.status_code == 401

    async def test_empty_profile(self, client: AsyncClient, make_user):
        user, headers = await make_user("ada@example.com", name="Ada")
        response = await client.get("/api/user/me", headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == user.id
        assert data["user"]["name"] == "Ada"
        assert data["user"]["role"] == "USER"
        assert data["created_events"] == []
        assert all(v == 0 for v in data["stats"].values())

    async def test_activity_and_stats(self, client: AsyncClient, make_user):
        host, host_headers = await make_user("host@example.com", name="Host")
        player, player_headers = await make_user("player@example.com", name="Player")
        event = await create_event(client, host_headers, title="Marathon")
        event_id = event["id"]

        await client.patch(f"/api/event/{event_id}/join", headers=player_headers)
        await client.post(f"/api/event/{event_id}/like", headers=player_headers)
        post = (await client.post(
            f"/api/event/{event_id}/post", json={"content": "Mile 1"}, headers=player_headers
        )).json()["data"]
        await client.post(f"/api/event/post/{post['id']}/upvote", headers=host_headers)
        await client.post(f"/api/event/post/{post['id']}/upvote", headers=player_headers)
        comment = (await client.post(
            f"/api/event/post/{post['id']}/comment", json={"content": "Go!"}, headers=host_headers
        )).json()["data"]
        await client.post(
            f"/api/event/comment/{comment['id']}/reply", json={"content": "Thanks"}, headers=player_headers
        )
        await client.patch(f"/api/event/{event_id}/winner", json={"winner_id": player.id}, headers=host_headers)

        data = (await client.get("/api/user/me", headers=player_headers)).json()["data"]
        assert data["stats"] == {
            "total_events_hosted": 0,
            "total_events_joined": 1,
            "total_events_won": 1,
            "total_posts": 1,
            "total_comments": 1,
            "total_upvotes_given": 1,
            "total_event_likes": 1,
            "total_upvotes_received": 2,
        }
        assert data["joined_events"][0]["title"] == "Marathon"
        assert data["joined_events"][0]["creator_name"] == "Host"
        assert data["won_events"][0]["id"] == event_id
        assert data["posts"][0]["event"] == {"id": event_id, "title": "Marathon"}
        reply = data["comments"][0]
        assert reply["content"] == "Thanks"
        assert reply["post_content"] == "Mile 1"
        assert reply["parent_author_name"] == "Host"
        assert data["upvotes"][0]["post_id"] == post["id"]
        assert data["event_likes"][0]["event"]["title"] == "Marathon"

        host_data = (await client.get("/api/user/me", headers=host_headers)).json()["data"]
        assert host_data["stats"]["total_events_hosted"] == 1
        assert host_data["created_events"][0]["winner_id"] == player.id
        assert host_data["comments"][0]["parent_id"] is None
        assert host_data["comments"][0]["parent_author_name"] is None


class TestUpdateProfile:
    async def test_update_name_and_avatar(self, client: AsyncClient, make_user):
        _, headers = await make_user("ada@example.com", name="Ada")
        response = await client.patch(
            "/api/user/me", json={"name": "Ada L.", "avatar": "https://img.example.com/a.png"}, headers=headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Ada L."
        assert data["avatar"] == "https://img.example.com/a.png"
        assert data["wallet_address"] is None

    async def test_wallet_address_checksummed(self, client: AsyncClient, make_user):
        _, headers = await make_user("ada@example.com")
        response = await client.patch("/api/user/me", json={"wallet_address": ADDRESS}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["wallet_address"] == CHECKSUMMED

    async def test_invalid_wallet_address(self, client: AsyncClient, make_user):
        _, headers = await make_user("ada@example.com")
        response = await client.patch("/api/user/me", json={"wallet_address": "0x1234"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Ethereum wallet address"

    async def test_omitted_fields_untouched(self, client: AsyncClient, make_user):
        _, headers = await make_user("ada@example.com", name="Ada")
        await client.patch("/api/user/me", json={"wallet_address": ADDRESS}, headers=headers)
        response = await client.patch("/api/user/me", json={"name": "Ada"}, headers=headers)
        assert response.json()["data"]["wallet_address"] == CHECKSUMMED


class TestWallet:
    async def test_empty_wallet(self, client: AsyncClient, make_user):
        _, headers = await make_user("ada@example.com")
        response = await client.get("/api/user/me/wallet", headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert Decimal(data["balance"]) == 0
        assert Decimal(data["locked_balance"]) == 0
        assert data["transactions"] == []

    async def test_recent_transactions_newest_first(self, client: AsyncClient, make_user, db_session):
        user, headers = await make_user("ada@example.com")
        wallet = await get_or_create_wallet(db_session, user.id)
        db_session.add(Transaction(
            wallet_id=wallet.id,
            type=TransactionType.DEPOSIT.value,
            status=TransactionStatus.COMPLETED.value,
            amount=Decimal("1.5"),
            description="Top up",
            created_at=datetime.now(timezone.utc) - timedelta(minutes=5),
        ))
        db_session.add(Transaction(
            wallet_id=wallet.id,
            type=TransactionType.PRIZE_LOCK.value,
            amount=Decimal("0.5"),
        ))
        await db_session.commit()

        response = await client.get("/api/user/me/wallet", params={"limit": 10}, headers=headers)
        data = response.json()["data"]
        assert [t["type"] for t in data["transactions"]] == ["PRIZE_LOCK", "DEPOSIT"]
        assert data["transactions"][0]["status"] == "PENDING"
        assert Decimal(data["transactions"][1]["amount"]) == Decimal("1.5")
