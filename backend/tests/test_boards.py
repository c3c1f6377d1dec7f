# tests/test_boards.py — Boards, default columns, sharing and visibility
import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers, create_board, board_columns, create_task


@pytest.mark.asyncio
class TestBoardCreate:
    async def test_new_board_gets_default_columns(self, client: AsyncClient, test_user):
        board = await create_board(client, test_user, "Launch")
        assert board["title"] == "Launch"
        assert board["ownerId"] == test_user.id

        cols = await board_columns(client, test_user, board["id"])
        assert [c["title"] for c in cols] == ["TO DO", "IN PROGRESS", "COMPLETE"]
        assert [c["order"] for c in cols] == [0, 1, 2]
        assert [c["kind"] for c in cols] == ["todo", "in_progress", "done"]

    async def test_client_supplied_id_is_kept(self, client: AsyncClient, test_user):
        headers = get_auth_headers(test_user)
        res = await client.post("/api/v1/boards", json={"id": "board-1700000000000", "title": "Mine"}, headers=headers)
        assert res.status_code == 201
        assert res.json()["id"] == "board-1700000000000"

        res = await client.post("/api/v1/boards", json={"id": "board-1700000000000", "title": "Again"}, headers=headers)
        assert res.status_code == 409

    async def test_empty_title_rejected(self, client: AsyncClient, test_user):
        res = await client.post("/api/v1/boards", json={"title": ""}, headers=get_auth_headers(test_user))
        assert res.status_code == 422

    async def test_rename(self, client: AsyncClient, test_user):
        board = await create_board(client, test_user)
        res = await client.put(
            f"/api/v1/boards/{board['id']}", json={"title": "Renamed"}, headers=get_auth_headers(test_user),
        )
        assert res.status_code == 200
        assert res.json()["title"] == "Renamed"


@pytest.mark.asyncio
class TestBoardVisibility:
    async def test_list_only_own_boards(self, client: AsyncClient, test_user, other_user):
        await create_board(client, test_user, "Mine")
        await create_board(client, other_user, "Theirs")

        res = await client.get("/api/v1/boards", headers=get_auth_headers(test_user))
        assert res.status_code == 200
        assert [b["title"] for b in res.json()] == ["Mine"]

    async def test_user_id_param_must_match_caller(self, client: AsyncClient, test_user, other_user):
        headers = get_auth_headers(test_user)
        res = await client.get("/api/v1/boards", params={"userId": test_user.id}, headers=headers)
        assert res.status_code == 200
        res = await client.get("/api/v1/boards", params={"userId": other_user.id}, headers=headers)
        assert res.status_code == 403

    async def test_shared_board_is_listed_for_member(self, client: AsyncClient, test_user, other_user):
        board = await create_board(client, test_user, "Shared")
        res = await client.post(
            f"/api/v1/boards/{board['id']}/share", json={"email": other_user.email},
            headers=get_auth_headers(test_user),
        )
        assert res.status_code == 200

        res = await client.get("/api/v1/boards", headers=get_auth_headers(other_user))
        assert [b["id"] for b in res.json()] == [board["id"]]

    async def test_assigned_task_makes_board_visible(self, client: AsyncClient, test_user, other_user):
        board = await create_board(client, test_user, "Assigned")
        cols = await board_columns(client, test_user, board["id"])
        await create_task(client, test_user, cols[0]["id"], "Ship it", assigneeIds=[other_user.id])

        res = await client.get("/api/v1/boards", headers=get_auth_headers(other_user))
        assert [b["id"] for b in res.json()] == [board["id"]]

    async def test_outsider_gets_404(self, client: AsyncClient, test_user, other_user):
        board = await create_board(client, test_user)
        res = await client.get(f"/api/v1/boards/{board['id']}/columns", headers=get_auth_headers(other_user))
        assert res.status_code == 404


@pytest.mark.asyncio
class TestSharing:
    async def test_share_unknown_email(self, client: AsyncClient, test_user):
        board = await create_board(client, test_user)
        res = await client.post(
            f"/api/v1/boards/{board['id']}/share", json={"email": "ghost@nowhere.dev"},
            headers=get_auth_headers(test_user),
        )
        assert res.status_code == 404
        assert res.json()["detail"] == "User not found"

    async def test_share_twice_is_idempotent(self, client: AsyncClient, test_user, other_user):
        board = await create_board(client, test_user)
        headers = get_auth_headers(test_user)
        for _ in range(2):
            res = await client.post(
                f"/api/v1/boards/{board['id']}/share", json={"email": other_user.email}, headers=headers,
            )
            assert res.status_code == 200

        res = await client.get(f"/api/v1/boards/{board['id']}/members", headers=headers)
        ids = sorted(u["id"] for u in res.json())
        assert ids == sorted([test_user.id, other_user.id])


@pytest.mark.asyncio
class TestBoardDelete:
    async def test_delete_cascades(self, client: AsyncClient, test_user):
        headers = get_auth_headers(test_user)
        board = await create_board(client, test_user)
        cols = await board_columns(client, test_user, board["id"])
        task = await create_task(client, test_user, cols[0]["id"], "Doomed")

        res = await client.delete(f"/api/v1/boards/{board['id']}", headers=headers)
        assert res.status_code == 200

        res = await client.get("/api/v1/boards", headers=headers)
        assert res.json() == []
        res = await client.get(f"/api/v1/tasks/{task['id']}", headers=headers)
        assert res.status_code == 404

    async def test_only_owner_may_delete(self, client: AsyncClient, test_user, other_user):
        board = await create_board(client, test_user)
        await client.post(
            f"/api/v1/boards/{board['id']}/share", json={"email": other_user.email},
            headers=get_auth_headers(test_user),
        )
        res = await client.delete(f"/api/v1/boards/{board['id']}", headers=get_auth_headers(other_user))
        assert res.status_code == 403
