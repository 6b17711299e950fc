from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models import Note
from ..observability.metrics import NOTES_CREATED
from ..repos import notes as notes_repo

logger = logging.getLogger(__name__)


def _parse_id(note_id: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(note_id)
    except (ValueError, TypeError):
        return None


async def list_notes(db: AsyncSession, *, owner_id: uuid.UUID) -> List[Note]:
    return await notes_repo.list_for_owner(db, owner_id)


async def create_note(
    db: AsyncSession,
    *,
    owner_id: uuid.UUID,
    title: Optional[str],
    content: Optional[str],
) -> Note:
    title = (title or "").strip()
    if not title or not content or not content.strip():
        raise ValidationError("Please provide both title and content")

    note = await notes_repo.create(db, owner_id=owner_id, title=title, content=content)
    await db.commit()
    NOTES_CREATED.inc()
    return note


async def get_owned_note(db: AsyncSession, *, note_id: Union[str, uuid.UUID], requester_id: uuid.UUID) -> Note:
    """Fetch a note, 404 when it does not exist and 401 when it belongs to someone else."""
    nid = _parse_id(note_id)
    note = await notes_repo.get_by_id(db, nid) if nid else None
    if note is None:
        raise NotFoundError("Note not found")
    if note.user_id != requester_id:
        logger.info("user %s denied access to note %s", requester_id, note.id)
        raise AuthorizationError("Not authorized")
    return note


async def delete_note(db: AsyncSession, *, note_id: Union[str, uuid.UUID], requester_id: uuid.UUID) -> uuid.UUID:
    note = await get_owned_note(db, note_id=note_id, requester_id=requester_id)
    deleted_id = note.id
    await notes_repo.delete(db, note)
    await db.commit()
    return deleted_id
