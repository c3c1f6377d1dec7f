# routers/attachments.py — Task file attachments stored on local disk
import os
import re
import uuid
import logging
from typing import Iterable

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from board_access import get_task
from database import get_db_session
from models import utcnow
from schemas import Attachment, TaskOut, task_to_out

logger = logging.getLogger("taskboard.attachments")

router = APIRouter(prefix="/api/v1", tags=["Attachments"])

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./data/uploads")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
UPLOAD_URL_PREFIX = "/api/v1/uploads"

_STORED_NAME = re.compile(r"^[0-9a-f]{32}(\.[A-Za-z0-9]{1,16})?$")


def _stored_path(stored_name: str) -> str:
    return os.path.join(UPLOAD_DIR, stored_name)


def remove_stored_files(attachments: Iterable[dict]) -> None:
    """Delete the files behind attachment records. Missing files are skipped."""
    for att in attachments:
        stored_name = (att.get("file_url") or "").rsplit("/", 1)[-1]
        if not _STORED_NAME.match(stored_name):
            continue
        try:
            os.remove(_stored_path(stored_name))
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning(f"Could not remove attachment file {stored_name}: {e}")


@router.post("/tasks/{task_id}/attachments", response_model=Attachment, status_code=201)
async def upload_attachment(
    task_id: str,
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Store an uploaded file and append its record to the task"""
    task = await get_task(task_id, user.id, db)

    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Attachment too large")

    os.makedirs(UPLOAD_DIR, exist_ok=True)
    ext = os.path.splitext(file.filename or "")[1]
    if not re.fullmatch(r"\.[A-Za-z0-9]{1,16}", ext):
        ext = ""
    stored_name = f"{uuid.uuid4().hex}{ext}"
    with open(_stored_path(stored_name), "wb") as f:
        f.write(data)

    record = Attachment(
        id=uuid.uuid4().hex,
        file_name=file.filename or stored_name,
        file_type=file.content_type or "application/octet-stream",
        file_url=f"{UPLOAD_URL_PREFIX}/{stored_name}",
        uploaded_at=utcnow().isoformat(),
    )
    task.attachments = [*(task.attachments or []), record.model_dump()]
    await db.commit()
    logger.info(f"Attachment {record.id} ({len(data)} bytes) added to task {task_id}")
    return record


@router.delete("/tasks/{task_id}/attachments/{attachment_id}", response_model=TaskOut)
async def delete_attachment(
    task_id: str,
    attachment_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    task = await get_task(task_id, user.id, db)
    current = task.attachments or []
    removed = [a for a in current if a.get("id") == attachment_id]
    if not removed:
        raise HTTPException(status_code=404, detail="Attachment not found")

    task.attachments = [a for a in current if a.get("id") != attachment_id]
    await db.commit()
    await db.refresh(task)
    remove_stored_files(removed)
    return task_to_out(task)


@router.get("/uploads/{stored_name}")
async def download_attachment(stored_name: str):
    """Serve a stored file. Names are random and unguessable."""
    if not _STORED_NAME.match(stored_name):
        raise HTTPException(status_code=404, detail="File not found")
    path = _stored_path(stored_name)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path=path)
