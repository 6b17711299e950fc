from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.deps import get_current_user
from ...db import get_db
from ...models import User
from ...services import notes as notes_service
from ...domain.schemas.notes import NoteDeletedOut, NoteIn, NoteOut

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=list[NoteOut])
async def list_notes(current: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    notes = await notes_service.list_notes(db, owner_id=current.id)
    return [NoteOut.from_model(n) for n in notes]


@router.post("", response_model=NoteOut, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteIn,
    current: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    note = await notes_service.create_note(
        db, owner_id=current.id, title=payload.title, content=payload.content
    )
    return NoteOut.from_model(note)


@router.get("/{note_id}", response_model=NoteOut)
async def get_note(note_id: str, current: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    note = await notes_service.get_owned_note(db, note_id=note_id, requester_id=current.id)
    return NoteOut.from_model(note)


@router.delete("/{note_id}", response_model=NoteDeletedOut)
async def delete_note(note_id: str, current: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    deleted_id = await notes_service.delete_note(db, note_id=note_id, requester_id=current.id)
    return NoteDeletedOut(id=deleted_id)
