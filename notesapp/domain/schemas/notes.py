from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from .auth import CamelModel
from ...models import Note


class NoteIn(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None


class NoteOut(CamelModel):
    id: uuid.UUID
    title: str
    content: str
    user: uuid.UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, n: Note) -> "NoteOut":
        return cls(
            id=n.id,
            title=n.title,
            content=n.content,
            user=n.user_id,
            created_at=n.created_at,
            updated_at=n.updated_at,
        )


class NoteDeletedOut(CamelModel):
    id: uuid.UUID
