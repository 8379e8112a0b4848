"""
NoteVault Backend — NoteService Tests
=======================================

What:  Tests for owner-scoped note CRUD, pinning and search.
Why:   Every note operation must see only the calling account's notes; a
       guessed id belonging to someone else behaves exactly like a missing one.
How:   Two accounts (Alice, Bob) in a real in-memory SQLite session.
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from notevault.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from notevault.schemas.note import NoteUpdate
from notevault.services.note_service import NoteService


@pytest_asyncio.fixture
async def owners(db_session, make_account):
    alice = make_account(email="alice@x.com", full_name="Alice A")
    bob = make_account(email="bob@x.com", full_name="Bob B")
    db_session.add_all([alice, bob])
    await db_session.flush()
    return alice.id, bob.id


class TestNoteServiceCreateAndGet:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_then_get(self, db_session, owners):
        alice, _ = owners
        created = await self.service.create_note(db_session, alice, "Groceries", "milk, eggs", ["home"])

        fetched = await self.service.get_note(db_session, alice, created.id)

        assert fetched.title == "Groceries"
        assert fetched.content == "milk, eggs"
        assert fetched.tags == ["home"]
        assert fetched.is_pinned is False

    @pytest.mark.asyncio
    async def test_tags_default_to_empty(self, db_session, owners):
        alice, _ = owners
        created = await self.service.create_note(db_session, alice, "T", "C")
        assert created.tags == []

    @pytest.mark.asyncio
    async def test_get_missing_note(self, db_session, owners):
        alice, _ = owners
        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, alice, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_store_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(StoreUnavailableError):
            await self.service.get_note(mock_db_session, uuid.uuid4(), uuid.uuid4())

    @pytest.mark.asyncio
    async def test_create_commit_failure(self, mock_db_session):
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))

        with pytest.raises(StoreUnavailableError) as exc_info:
            await self.service.create_note(mock_db_session, uuid.uuid4(), "T", "C")

        assert "disk I/O" not in exc_info.value.message


class TestNoteServiceList:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_pinned_first(self, db_session, owners):
        alice, _ = owners
        first = await self.service.create_note(db_session, alice, "first", "c")
        await self.service.create_note(db_session, alice, "second", "c")
        await self.service.create_note(db_session, alice, "third", "c")
        await self.service.set_pinned(db_session, alice, first.id, True)

        listing = await self.service.list_notes(db_session, alice)

        assert listing.total_count == 3
        assert listing.notes[0].id == first.id
        assert [n.is_pinned for n in listing.notes] == [True, False, False]

    @pytest.mark.asyncio
    async def test_newest_first_among_unpinned(self, db_session, owners):
        alice, _ = owners
        older = await self.service.create_note(db_session, alice, "older", "c")
        newer = await self.service.create_note(db_session, alice, "newer", "c")

        listing = await self.service.list_notes(db_session, alice)

        assert [n.id for n in listing.notes] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_empty_for_new_account(self, db_session, owners):
        _, bob = owners
        listing = await self.service.list_notes(db_session, bob)
        assert listing.total_count == 0
        assert listing.notes == []


class TestNoteServiceUpdate:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, owners):
        alice, _ = owners
        note = await self.service.create_note(db_session, alice, "Title", "Body", ["a"])

        updated = await self.service.update_note(
            db_session, alice, note.id, NoteUpdate(content="New body")
        )

        assert updated.title == "Title"
        assert updated.content == "New body"
        assert updated.tags == ["a"]

    @pytest.mark.asyncio
    async def test_explicit_unpin_applies(self, db_session, owners):
        alice, _ = owners
        note = await self.service.create_note(db_session, alice, "Title", "Body")
        await self.service.set_pinned(db_session, alice, note.id, True)

        updated = await self.service.update_note(
            db_session, alice, note.id, NoteUpdate(is_pinned=False)
        )

        assert updated.is_pinned is False

    @pytest.mark.asyncio
    async def test_no_changes_rejected(self, db_session, owners):
        alice, _ = owners
        note = await self.service.create_note(db_session, alice, "Title", "Body")

        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_note(db_session, alice, note.id, NoteUpdate())

        assert exc_info.value.message == "No changes provided"


class TestNoteServiceDelete:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_delete_then_get(self, db_session, owners):
        alice, _ = owners
        note = await self.service.create_note(db_session, alice, "Title", "Body")

        await self.service.delete_note(db_session, alice, note.id)

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, alice, note.id)

    @pytest.mark.asyncio
    async def test_delete_twice(self, db_session, owners):
        alice, _ = owners
        note = await self.service.create_note(db_session, alice, "Title", "Body")
        await self.service.delete_note(db_session, alice, note.id)

        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, alice, note.id)


class TestNoteServiceSearch:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_matches_title_or_content_case_insensitive(self, db_session, owners):
        alice, _ = owners
        await self.service.create_note(db_session, alice, "Meeting NOTES", "agenda")
        await self.service.create_note(db_session, alice, "Recipe", "some notes on bread")
        await self.service.create_note(db_session, alice, "Unrelated", "nothing here")

        result = await self.service.search_notes(db_session, alice, "notes")

        assert sorted(n.title for n in result.notes) == ["Meeting NOTES", "Recipe"]
        assert result.total_count == 2

    @pytest.mark.asyncio
    async def test_wildcards_match_literally(self, db_session, owners):
        alice, _ = owners
        await self.service.create_note(db_session, alice, "Progress", "100% done")
        await self.service.create_note(db_session, alice, "Other", "1000 done")

        result = await self.service.search_notes(db_session, alice, "0%")

        assert [n.title for n in result.notes] == ["Progress"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_empty_query_rejected(self, db_session, owners, query):
        alice, _ = owners
        with pytest.raises(ValidationError) as exc_info:
            await self.service.search_notes(db_session, alice, query)
        assert exc_info.value.message == "Search query is needed"


class TestNoteServiceIsolation:
    """Bob guessing Alice's note id gets the same answer as a missing note."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_other_owner_cannot_touch_note(self, db_session, owners):
        alice, bob = owners
        note = await self.service.create_note(db_session, alice, "Secret", "alice only", ["private"])

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, bob, note.id)
        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, bob, note.id, NoteUpdate(title="pwned"))
        with pytest.raises(NotFoundError):
            await self.service.set_pinned(db_session, bob, note.id, True)
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, bob, note.id)

        intact = await self.service.get_note(db_session, alice, note.id)
        assert intact.title == "Secret"
        assert intact.is_pinned is False

    @pytest.mark.asyncio
    async def test_list_and_search_scoped_to_owner(self, db_session, owners):
        alice, bob = owners
        await self.service.create_note(db_session, alice, "Secret", "alice only")
        await self.service.create_note(db_session, bob, "Bob's", "bob only")

        bob_list = await self.service.list_notes(db_session, bob)
        bob_search = await self.service.search_notes(db_session, bob, "secret")

        assert [n.title for n in bob_list.notes] == ["Bob's"]
        assert bob_search.total_count == 0
