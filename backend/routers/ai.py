# routers/ai.py — AI assistance for task cards (Gemini, with stub fallback)
import os as _os
import json as _json
import uuid
import logging as _logging
from typing import Optional, List, Dict, Any

import httpx as _httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from auth import get_current_user, CurrentUser
from schemas import ApiModel, Subtask

_logger = _logging.getLogger("taskboard.ai")

router = APIRouter(prefix="/api/v1/ai", tags=["AI"])

GEMINI_BASE_URL = _os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_MODEL = _os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
AI_TIMEOUT_SECONDS = float(_os.getenv("AI_TIMEOUT_SECONDS", "60"))

MIN_SUBTASKS = 3
MAX_SUBTASKS = 5

SUBTASK_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "completed": {"type": "BOOLEAN"},
        },
        "required": ["title", "completed"],
    },
}


class AIProviderError(Exception):
    """The generative API could not produce a usable answer"""


# --- Schemas ---

class DescriptionRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""


class DescriptionResponse(ApiModel):
    description: str
    model_used: str


class SubtasksRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=500)


class SubtasksResponse(ApiModel):
    subtasks: List[Subtask]
    model_used: str


# --- Provider ---

def _api_key() -> Optional[str]:
    return _os.getenv("GEMINI_API_KEY") or _os.getenv("API_KEY")


def description_prompt(title: str, current: str) -> str:
    return (
        "You are an expert project manager.\n"
        f'Write a concise but professional description for a task titled "{title}".\n'
        f'Context provided: "{current}".\n'
        "If the context is empty, invent a realistic description suitable for a software development task.\n"
        "Keep it under 3 sentences."
    )


def subtasks_prompt(title: str) -> str:
    return f'Break down the task "{title}" into {MIN_SUBTASKS}-{MAX_SUBTASKS} actionable subtasks.'


async def _call_gemini(prompt: str, generation_config: Optional[Dict[str, Any]] = None) -> str:
    """Single generateContent call. Raises AIProviderError on any failure."""
    body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
    if generation_config:
        body["generationConfig"] = generation_config
    url = f"{GEMINI_BASE_URL}/models/{GEMINI_MODEL}:generateContent"
    try:
        async with _httpx.AsyncClient(timeout=AI_TIMEOUT_SECONDS) as client:
            resp = await client.post(url, params={"key": _api_key()}, json=body)
            resp.raise_for_status()
            data = resp.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (_httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
        raise AIProviderError(str(e)) from e


def parse_subtasks(text: str) -> List[Subtask]:
    """Turn the model's JSON array into subtasks, dropping malformed items."""
    items = _json.loads(text)
    if not isinstance(items, list):
        raise ValueError("expected a JSON array")
    subtasks = []
    for item in items[:MAX_SUBTASKS]:
        if not isinstance(item, dict) or not str(item.get("title", "")).strip():
            continue
        subtasks.append(Subtask(
            id=uuid.uuid4().hex,
            title=str(item["title"]).strip()[:500],
            completed=bool(item.get("completed", False)),
        ))
    return subtasks


# --- Endpoints ---

@router.post("/description", response_model=DescriptionResponse)
async def generate_description(
    request: DescriptionRequest,
    user: CurrentUser = Depends(get_current_user),
):
    """Draft a short task description from its title and any existing text"""
    if not _api_key():
        return DescriptionResponse(
            description=f"[Stub] {request.title}: describe the goal, scope and definition of done.",
            model_used="stub-model",
        )
    try:
        text = await _call_gemini(description_prompt(request.title, request.description))
    except AIProviderError as e:
        _logger.warning(f"Description generation failed: {e}")
        raise HTTPException(status_code=502, detail="AI provider request failed")
    return DescriptionResponse(description=text.strip() or "Could not generate description.", model_used=GEMINI_MODEL)


@router.post("/subtasks", response_model=SubtasksResponse)
async def generate_subtasks(
    request: SubtasksRequest,
    user: CurrentUser = Depends(get_current_user),
):
    """Break a task into 3-5 subtasks. Provider errors yield an empty list."""
    if not _api_key():
        steps = ["Plan", "Implement", "Review"]
        return SubtasksResponse(
            subtasks=[Subtask(id=uuid.uuid4().hex, title=f"{s}: {request.title}", completed=False) for s in steps],
            model_used="stub-model",
        )
    try:
        text = await _call_gemini(
            subtasks_prompt(request.title),
            {"responseMimeType": "application/json", "responseSchema": SUBTASK_SCHEMA},
        )
        subtasks = parse_subtasks(text)
    except (AIProviderError, ValueError) as e:
        _logger.warning(f"Subtask generation failed: {e}")
        subtasks = []
    return SubtasksResponse(subtasks=subtasks, model_used=GEMINI_MODEL)
