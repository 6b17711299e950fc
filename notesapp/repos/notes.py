from __future__ import annotations
import uuid
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ..models import Note


async def get_by_id(db: AsyncSession, note_id: uuid.UUID) -> Optional[Note]:
    res = await db.execute(select(Note).where(Note.id == note_id))
    return res.scalar_one_or_none()


async def list_for_owner(db: AsyncSession, owner_id: uuid.UUID) -> List[Note]:
    res = await db.execute(
        select(Note).where(Note.user_id == owner_id).order_by(Note.created_at.desc())
    )
    return list(res.scalars().all())


async def create(db: AsyncSession, *, owner_id: uuid.UUID, title: str, content: str) -> Note:
    note = Note(user_id=owner_id, title=title, content=content)
    db.add(note)
    # no commit here; caller's transaction should commit
    await db.flush()
    return note


async def delete(db: AsyncSession, note: Note) -> None:
    await db.delete(note)
    await db.flush()
