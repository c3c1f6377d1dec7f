# tests/test_ai.py — AI description and subtask generation
import json

import pytest
from httpx import AsyncClient

from routers import ai
from tests.conftest import get_auth_headers


class TestParseSubtasks:
    def test_parses_array(self):
        text = json.dumps([
            {"title": "Sketch layout", "completed": False},
            {"title": "  Build it  ", "completed": True},
        ])
        subtasks = ai.parse_subtasks(text)
        assert [s.title for s in subtasks] == ["Sketch layout", "Build it"]
        assert [s.completed for s in subtasks] == [False, True]
        assert len({s.id for s in subtasks}) == 2

    def test_caps_and_skips_malformed(self):
        items = [{"title": ""}, "junk"] + [{"title": f"Step {i}"} for i in range(8)]
        subtasks = ai.parse_subtasks(json.dumps(items))
        assert [s.title for s in subtasks] == ["Step 0", "Step 1", "Step 2"]

    def test_rejects_non_array(self):
        with pytest.raises(ValueError):
            ai.parse_subtasks('{"title": "x"}')
        with pytest.raises(ValueError):
            ai.parse_subtasks("not json")


def test_prompts_mention_the_task():
    assert '"Ship v2"' in ai.description_prompt("Ship v2", "")
    assert "3-5" in ai.subtasks_prompt("Ship v2")


@pytest.mark.asyncio
class TestStubResponses:
    async def test_description_stub(self, client: AsyncClient, test_user):
        res = await client.post(
            "/api/v1/ai/description", json={"title": "Ship v2"}, headers=get_auth_headers(test_user),
        )
        assert res.status_code == 200
        data = res.json()
        assert data["modelUsed"] == "stub-model"
        assert "Ship v2" in data["description"]

    async def test_subtasks_stub(self, client: AsyncClient, test_user):
        res = await client.post(
            "/api/v1/ai/subtasks", json={"title": "Ship v2"}, headers=get_auth_headers(test_user),
        )
        assert res.status_code == 200
        subtasks = res.json()["subtasks"]
        assert len(subtasks) == 3
        assert all(not s["completed"] for s in subtasks)

    async def test_requires_auth(self, client: AsyncClient):
        res = await client.post("/api/v1/ai/description", json={"title": "x"})
        assert res.status_code in (401, 403)


@pytest.mark.asyncio
class TestProviderErrors:
    async def test_description_error_is_502(self, client: AsyncClient, test_user, monkeypatch):
        async def failing(prompt, generation_config=None):
            raise ai.AIProviderError("boom")

        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setattr(ai, "_call_gemini", failing)
        res = await client.post(
            "/api/v1/ai/description", json={"title": "x"}, headers=get_auth_headers(test_user),
        )
        assert res.status_code == 502

    async def test_subtask_error_yields_empty_list(self, client: AsyncClient, test_user, monkeypatch):
        async def garbage(prompt, generation_config=None):
            return "definitely not json"

        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setattr(ai, "_call_gemini", garbage)
        res = await client.post(
            "/api/v1/ai/subtasks", json={"title": "x"}, headers=get_auth_headers(test_user),
        )
        assert res.status_code == 200
        assert res.json()["subtasks"] == []

    async def test_description_from_provider(self, client: AsyncClient, test_user, monkeypatch):
        seen = {}

        async def fake(prompt, generation_config=None):
            seen["prompt"] = prompt
            return "  A crisp description.  "

        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        monkeypatch.setattr(ai, "_call_gemini", fake)
        res = await client.post(
            "/api/v1/ai/description", json={"title": "Launch", "description": "beta users"},
            headers=get_auth_headers(test_user),
        )
        assert res.json()["description"] == "A crisp description."
        assert "beta users" in seen["prompt"]
