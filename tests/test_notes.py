import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notesapp.db import SessionLocal
from notesapp.errors import AuthorizationError, NotFoundError, ValidationError
from notesapp.repos import users as users_repo
from notesapp.services import notes as notes_service
from tests.conftest import mk_user

pytestmark = pytest.mark.asyncio


@pytest.mark.parametrize("title,content", [("", "c"), ("t", ""), (None, "c"), ("t", None), ("   ", "c"), ("t", "  ")])
async def test_create_requires_title_and_content(db: AsyncSession, title, content):
    uid = await mk_user(db, "ann@x.com", "Ann")
    with pytest.raises(ValidationError) as ei:
        await notes_service.create_note(db, owner_id=uid, title=title, content=content)
    assert ei.value.status_code == 400


async def test_create_sets_owner_and_trims_title(db: AsyncSession):
    uid = await mk_user(db, "ann@x.com", "Ann")
    note = await notes_service.create_note(db, owner_id=uid, title="  groceries ", content="milk\n")
    assert note.user_id == uid
    assert note.title == "groceries"
    assert note.content == "milk\n"
    assert note.created_at is not None


async def test_list_returns_only_own_notes_newest_first(db: AsyncSession):
    ann = await mk_user(db, "ann@x.com", "Ann")
    bob = await mk_user(db, "bob@x.com", "Bob")
    first = await notes_service.create_note(db, owner_id=ann, title="first", content="1")
    await notes_service.create_note(db, owner_id=bob, title="bob's", content="b")
    second = await notes_service.create_note(db, owner_id=ann, title="second", content="2")

    notes = await notes_service.list_notes(db, owner_id=ann)
    assert [n.id for n in notes] == [second.id, first.id]
    assert await notes_service.list_notes(db, owner_id=uuid.uuid4()) == []


async def test_get_owned_note(db: AsyncSession):
    ann = await mk_user(db, "ann@x.com", "Ann")
    note = await notes_service.create_note(db, owner_id=ann, title="t", content="c")

    got = await notes_service.get_owned_note(db, note_id=str(note.id), requester_id=ann)
    assert got.id == note.id


async def test_other_users_note_is_unauthorized_not_missing(db: AsyncSession):
    ann = await mk_user(db, "ann@x.com", "Ann")
    bob = await mk_user(db, "bob@x.com", "Bob")
    note = await notes_service.create_note(db, owner_id=ann, title="t", content="c")

    with pytest.raises(AuthorizationError) as ei:
        await notes_service.get_owned_note(db, note_id=note.id, requester_id=bob)
    assert ei.value.status_code == 401

    with pytest.raises(AuthorizationError):
        await notes_service.delete_note(db, note_id=note.id, requester_id=bob)

    # still there for its owner
    assert (await notes_service.get_owned_note(db, note_id=note.id, requester_id=ann)).id == note.id


@pytest.mark.parametrize("note_id", [str(uuid.uuid4()), "not-a-uuid", "507f1f77bcf86cd799439011"])
async def test_unknown_note_is_not_found(db: AsyncSession, note_id):
    ann = await mk_user(db, "ann@x.com", "Ann")
    with pytest.raises(NotFoundError) as ei:
        await notes_service.get_owned_note(db, note_id=note_id, requester_id=ann)
    assert ei.value.status_code == 404
    with pytest.raises(NotFoundError):
        await notes_service.delete_note(db, note_id=note_id, requester_id=ann)


async def test_delete_removes_note(db: AsyncSession):
    ann = await mk_user(db, "ann@x.com", "Ann")
    note = await notes_service.create_note(db, owner_id=ann, title="t", content="c")

    deleted = await notes_service.delete_note(db, note_id=str(note.id), requester_id=ann)
    assert deleted == note.id
    assert await notes_service.list_notes(db, owner_id=ann) == []
    with pytest.raises(NotFoundError):
        await notes_service.get_owned_note(db, note_id=note.id, requester_id=ann)


async def test_deleting_owner_removes_their_notes(db: AsyncSession):
    uid = await mk_user(db, "ann@x.com", "Ann")
    await notes_service.create_note(db, owner_id=uid, title="t", content="c")

    await users_repo.delete(db, await users_repo.get_by_id(db, uid))
    await db.commit()

    async with SessionLocal() as s:
        assert await notes_service.list_notes(s, owner_id=uid) == []
