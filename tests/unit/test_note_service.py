from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import (
    AttachmentInUseError,
    MetadataDeleteError,
    MetadataReadError,
    MetadataWriteError,
    NoteValidationError,
    ObjectDeleteError,
    ObjectWriteError,
    UploadTooLargeError,
)
from app.schemas.note import Note
from app.services.note import NoteService


@pytest.mark.unit
class TestCreateNote:
    """Unit tests for NoteService.create_note."""

    async def test_create_note_echoes_fields(self, note_service, metadata_store, fixed_now):
        """Test creating a plain note."""
        note = await note_service.create_note("Groceries", "Milk, eggs")

        assert note.title == "Groceries"
        assert note.content == "Milk, eggs"
        assert note.attachment_ref is None
        assert note.created_at == fixed_now
        assert metadata_store.records[note.id] == note

    async def test_create_note_ids_are_unique(self, note_service):
        """Test repeated creates produce distinct identities."""
        notes = [await note_service.create_note("Title", "Body") for _ in range(20)]

        assert len({note.id for note in notes}) == 20

    async def test_create_note_writes_metadata_once(self, note_service, journal):
        """Test create touches only the metadata store, once."""
        await note_service.create_note(
            "Receipt", "Lunch", attachment_ref="https://store/notes/abc/receipt.png"
        )

        assert journal == ["metadata.find_by_attachment", "metadata.put"]

    async def test_create_note_keeps_attachment_ref(self, note_service):
        """Test the attachment reference is stored verbatim."""
        ref = "https://store/notes/abc/receipt.png"
        note = await note_service.create_note("Receipt", "Lunch", attachment_ref=ref)

        fetched = await note_service.get_note(note.id)
        assert fetched.attachment_ref == ref

    async def test_create_note_does_not_trim_fields(self, note_service):
        """Test fields are stored exactly as given."""
        note = await note_service.create_note("  Title ", " Body\n")

        assert note.title == "  Title "
        assert note.content == " Body\n"

    @pytest.mark.parametrize(
        "title,content",
        [("", "Body"), ("   ", "Body"), ("Title", ""), ("Title", " \n\t")],
    )
    async def test_create_note_rejects_blank_fields(
        self, note_service, journal, title, content
    ):
        """Test blank title or content fails before any backend call."""
        with pytest.raises(NoteValidationError):
            await note_service.create_note(title, content)

        assert journal == []

    async def test_create_note_rejects_non_url_attachment(self, note_service, journal):
        """Test a malformed attachment reference is rejected."""
        with pytest.raises(NoteValidationError):
            await note_service.create_note("Title", "Body", attachment_ref="receipt.png")

        assert journal == []

    async def test_create_note_title_length_limit(self, note_service, journal):
        """Test an overlong title is a validation error, not a schema crash."""
        note = await note_service.create_note("t" * 255, "Body")
        assert len(note.title) == 255
        journal.clear()

        with pytest.raises(NoteValidationError):
            await note_service.create_note("t" * 256, "Body")

        assert journal == []

    async def test_create_note_rejects_overlong_attachment_ref(self, note_service, journal):
        ref = "https://store/notes/abc/" + "a" * 2048

        with pytest.raises(NoteValidationError):
            await note_service.create_note("Title", "Body", attachment_ref=ref)

        assert journal == []

    @pytest.mark.parametrize(
        "ref",
        [
            "https://elsewhere.example/notes/abc/receipt.png",
            "https://store/config/secrets.json",
            "https://store/notesextra/receipt.png",
        ],
    )
    async def test_create_note_rejects_foreign_attachment(self, note_service, journal, ref):
        """Test references outside the attachment namespace are refused."""
        with pytest.raises(NoteValidationError):
            await note_service.create_note("Title", "Body", attachment_ref=ref)

        assert journal == []

    async def test_create_note_rejects_non_canonical_attachment(
        self, note_service, object_store, journal
    ):
        """Test a second spelling of an attachment URL is refused."""
        object_store.url_for = lambda key: f"{object_store.base_url}/{key.upper()}"

        with pytest.raises(NoteValidationError):
            await note_service.create_note(
                "Title", "Body", attachment_ref="https://store/notes/abc/receipt.png"
            )

        assert journal == []

    async def test_create_note_rejects_shared_attachment(
        self, note_service, metadata_store, object_store
    ):
        """Test an attachment can belong to one note only."""
        ref = "https://store/notes/abc/receipt.png"
        await object_store.put("notes/abc/receipt.png", b"data", "image/png")
        first = await note_service.create_note("Receipt", "Lunch", attachment_ref=ref)

        with pytest.raises(NoteValidationError) as exc_info:
            await note_service.create_note("Copy", "Lunch", attachment_ref=ref)

        assert isinstance(exc_info.value, AttachmentInUseError)
        assert list(metadata_store.records) == [first.id]

        # Deleting the owner still removes the object it alone references
        assert await note_service.delete_note(first.id) is True
        assert object_store.objects == {}

    async def test_create_note_attachment_lookup_failure(self, note_service, metadata_store):
        """Test a failing ownership lookup surfaces before any write."""
        metadata_store.fail_on["find_by_attachment"] = MetadataReadError()

        with pytest.raises(MetadataReadError):
            await note_service.create_note(
                "Receipt", "Lunch", attachment_ref="https://store/notes/abc/receipt.png"
            )

        assert metadata_store.records == {}

    async def test_create_note_metadata_failure(self, note_service, metadata_store, object_store):
        """Test a failing metadata write surfaces and leaves objects alone."""
        await object_store.put("notes/abc/receipt.png", b"data", "image/png")
        metadata_store.fail_on["put"] = MetadataWriteError()

        with pytest.raises(MetadataWriteError):
            await note_service.create_note(
                "Receipt", "Lunch", attachment_ref="https://store/notes/abc/receipt.png"
            )

        assert "notes/abc/receipt.png" in object_store.objects
        assert metadata_store.records == {}

    async def test_create_note_uses_id_factory(self, metadata_store, object_store):
        """Test ids come from the service, not the caller."""
        service = NoteService(metadata_store, object_store, id_factory=lambda: "fixed-id")

        note = await service.create_note("Title", "Body")

        assert note.id == "fixed-id"


@pytest.mark.unit
class TestCreateNoteWithAttachment:
    """Unit tests for NoteService.create_note_with_attachment."""

    async def test_upload_then_record(self, note_service, object_store, journal):
        """Test the object is written before the record, under the note namespace."""
        note = await note_service.create_note_with_attachment(
            "Receipt", "Lunch", "my receipt.png", "image/png", b"\x89PNG"
        )

        key = f"notes/{note.id}/my_receipt.png"
        assert journal == ["object.put", "metadata.put"]
        assert object_store.objects[key] == (b"\x89PNG", "image/png")
        assert note.attachment_ref == f"https://store/{key}"

    async def test_upload_failure_writes_no_record(
        self, note_service, object_store, metadata_store
    ):
        """Test a failed upload leaves no metadata behind."""
        object_store.fail_on["put"] = ObjectWriteError()

        with pytest.raises(ObjectWriteError):
            await note_service.create_note_with_attachment(
                "Receipt", "Lunch", "receipt.png", "image/png", b"data"
            )

        assert metadata_store.records == {}

    async def test_record_failure_discards_object(
        self, note_service, object_store, metadata_store, journal
    ):
        """Test the uploaded object is removed when the record write fails."""
        metadata_store.fail_on["put"] = MetadataWriteError()

        with pytest.raises(MetadataWriteError):
            await note_service.create_note_with_attachment(
                "Receipt", "Lunch", "receipt.png", "image/png", b"data"
            )

        assert journal == ["object.put", "metadata.put", "object.delete"]
        assert object_store.objects == {}

    async def test_record_failure_with_failing_discard(
        self, note_service, object_store, metadata_store
    ):
        """Test the metadata error wins when the compensating delete also fails."""
        metadata_store.fail_on["put"] = MetadataWriteError()
        object_store.fail_on["delete"] = ObjectDeleteError()

        with pytest.raises(MetadataWriteError):
            await note_service.create_note_with_attachment(
                "Receipt", "Lunch", "receipt.png", "image/png", b"data"
            )

    async def test_rejects_oversized_body(self, note_service, journal):
        """Test bodies over the limit never reach the object store."""
        with pytest.raises(UploadTooLargeError):
            await note_service.create_note_with_attachment(
                "Big", "File", "big.bin", "application/octet-stream", b"x" * 1025
            )

        assert journal == []

    async def test_rejects_overlong_title_before_upload(
        self, note_service, object_store, journal
    ):
        """Test title limits are checked before the object is written."""
        with pytest.raises(NoteValidationError):
            await note_service.create_note_with_attachment(
                "t" * 256, "Body", "receipt.png", "image/png", b"data"
            )

        assert journal == []
        assert object_store.objects == {}

    async def test_rejects_invalid_content_type(self, note_service, journal):
        """Test malformed content types are rejected."""
        with pytest.raises(NoteValidationError):
            await note_service.create_note_with_attachment(
                "Title", "Body", "file.txt", "not a mime type", b"data"
            )

        assert journal == []

    async def test_rejects_type_outside_allow_list(self, metadata_store, object_store):
        """Test the allow-list is enforced when configured."""
        service = NoteService(metadata_store, object_store, allowed_types=["image/png"])

        with pytest.raises(NoteValidationError):
            await service.create_note_with_attachment(
                "Title", "Body", "doc.pdf", "application/pdf", b"data"
            )


@pytest.mark.unit
class TestFetchNotes:
    """Unit tests for NoteService.get_note and list_notes."""

    async def test_get_note_round_trip(self, note_service):
        """Test get returns what create returned."""
        created = await note_service.create_note("Groceries", "Milk, eggs")

        assert await note_service.get_note(created.id) == created

    async def test_get_note_missing(self, note_service):
        """Test unknown ids return None."""
        assert await note_service.get_note("missing") is None

    async def test_get_note_never_touches_object_store(
        self, note_service, stored_note_with_attachment, journal
    ):
        """Test reads do not check the attachment."""
        await note_service.get_note(stored_note_with_attachment.id)

        assert journal == ["metadata.get"]

    async def test_get_note_read_failure(self, note_service, metadata_store):
        """Test backend read errors propagate."""
        metadata_store.fail_on["get"] = MetadataReadError()

        with pytest.raises(MetadataReadError):
            await note_service.get_note("any")

    async def test_list_notes_after_creates_and_deletes(self, note_service):
        """Test listing returns exactly the surviving notes."""
        created = [
            await note_service.create_note(f"Note {i}", f"Body {i}") for i in range(5)
        ]
        for note in created[:2]:
            assert await note_service.delete_note(note.id) is True

        listed = [note async for note in note_service.list_notes()]

        assert sorted(listed, key=lambda n: n.id) == sorted(
            created[2:], key=lambda n: n.id
        )

    async def test_list_notes_empty(self, note_service):
        """Test listing an empty store."""
        assert [note async for note in note_service.list_notes()] == []

    async def test_list_notes_is_lazy(self, note_service, journal):
        """Test nothing is read until the sequence is consumed."""
        notes = note_service.list_notes()

        assert journal == []
        assert [note async for note in notes] == []
        assert journal == ["metadata.scan"]


@pytest.mark.unit
class TestDeleteNote:
    """Unit tests for NoteService.delete_note."""

    async def test_delete_without_attachment(self, note_service, journal):
        """Test a plain note never causes an object store call."""
        note = await note_service.create_note("Groceries", "Milk, eggs")
        journal.clear()

        assert await note_service.delete_note(note.id) is True
        assert journal == ["metadata.get", "metadata.delete"]
        assert await note_service.get_note(note.id) is None

    async def test_delete_removes_object_before_record(
        self, note_service, stored_note_with_attachment, object_store, journal
    ):
        """Test the attachment is deleted strictly before the record."""
        assert await note_service.delete_note(stored_note_with_attachment.id) is True

        assert journal == ["metadata.get", "object.delete", "metadata.delete"]
        assert object_store.objects == {}

    async def test_delete_unknown_note(self, note_service, journal):
        """Test deleting an unknown id reports not found without side effects."""
        assert await note_service.delete_note("missing") is False
        assert journal == ["metadata.get"]

    async def test_delete_tolerates_missing_object(
        self, note_service, stored_note_with_attachment, object_store, metadata_store
    ):
        """Test an already-deleted attachment does not block the record delete."""
        object_store.objects.clear()

        assert await note_service.delete_note(stored_note_with_attachment.id) is True
        assert metadata_store.records == {}

    async def test_delete_tolerates_object_backend_error(
        self, note_service, stored_note_with_attachment, object_store, metadata_store
    ):
        """Test other object store errors are soft failures."""
        object_store.fail_on["delete"] = ObjectDeleteError()

        assert await note_service.delete_note(stored_note_with_attachment.id) is True
        assert metadata_store.records == {}

    async def test_delete_skips_foreign_attachment(
        self, note_service, metadata_store, journal, sample_note
    ):
        """Test references outside the object store are left alone."""
        foreign = sample_note.model_copy(
            update={"attachment_ref": "https://elsewhere.example/file.png"}
        )
        await metadata_store.put(foreign)
        journal.clear()

        assert await note_service.delete_note(foreign.id) is True
        assert journal == ["metadata.get", "metadata.delete"]

    async def test_delete_metadata_failure_after_object_delete(
        self, note_service, stored_note_with_attachment, object_store, metadata_store
    ):
        """Test a failing record delete surfaces, and a retry converges."""
        metadata_store.fail_on["delete"] = MetadataDeleteError()

        with pytest.raises(MetadataDeleteError):
            await note_service.delete_note(stored_note_with_attachment.id)

        assert object_store.objects == {}
        assert stored_note_with_attachment.id in metadata_store.records

        del metadata_store.fail_on["delete"]
        assert await note_service.delete_note(stored_note_with_attachment.id) is True
        assert metadata_store.records == {}

    async def test_delete_read_failure_stops_everything(
        self, note_service, stored_note_with_attachment, metadata_store, journal
    ):
        """Test nothing is deleted when the record cannot be read."""
        metadata_store.fail_on["get"] = MetadataReadError()

        with pytest.raises(MetadataReadError):
            await note_service.delete_note(stored_note_with_attachment.id)

        assert journal == ["metadata.get"]

    async def test_delete_lost_race_counts_as_deleted(self, sample_note):
        """Test a record removed concurrently still reports success."""
        metadata_store = AsyncMock()
        metadata_store.get.return_value = sample_note
        metadata_store.delete.return_value = False
        service = NoteService(metadata_store, MagicMock())

        assert await service.delete_note(sample_note.id) is True
        metadata_store.delete.assert_awaited_once_with(sample_note.id)

    async def test_delete_ordering_with_mocks(self, sample_note):
        """Test call order against mocked stores."""
        manager = MagicMock()
        metadata_store = AsyncMock()
        object_store = AsyncMock()
        object_store.key_for = MagicMock(return_value="notes/abc/receipt.png")
        manager.attach_mock(metadata_store, "metadata")
        manager.attach_mock(object_store, "objects")

        note = Note(**{**sample_note.model_dump(), "attachment_ref": "https://store/x"})
        metadata_store.get.return_value = note
        metadata_store.delete.return_value = True

        service = NoteService(metadata_store, object_store)
        await service.delete_note(note.id)

        called = [c[0] for c in manager.mock_calls if c[0] != "objects.key_for"]
        assert called == ["metadata.get", "objects.delete", "metadata.delete"]
