"""Tests for document lifecycle operations."""

import sqlite3
from unittest.mock import patch

import pytest

from docstore.exceptions import (
    AccessDeniedError,
    ContentStoreError,
    NodeNotFoundError,
    QuotaExceededError,
    ValidationError,
)
from docstore.repositories.event_repository import EventRepository
from docstore.repositories.node_repository import NodeRepository
from docstore.repositories.user_repository import UserRepository
from docstore.services.collaboration_service import CollaborationService
from docstore.services.document_service import DocumentService
from docstore.types import EffectivePermission, EventType


def sent_messages(transport, event_type=None):
    messages = [call.args[0] for call in transport.send.await_args_list]
    if event_type is not None:
        messages = [m for m in messages if m["event_type"] == event_type.value]
    return messages


def used(user):
    return UserRepository.get_by_user_id(user.user_id).storage_used


@pytest.fixture
def alice(make_user):
    return make_user("alice", storage_limit=100)


@pytest.fixture
def bob(make_user):
    return make_user("bob", storage_limit=100)


@pytest.fixture
def documents(services):
    return DocumentService()


class TestCreateFile:
    @pytest.mark.asyncio
    async def test_create_stores_content_and_charges_owner(self, documents, content_store, alice):
        doc = await documents.create_file(alice, "  notes.md ", "# hi")

        assert doc.title == "notes.md"
        assert doc.content_size == 4
        assert doc.content_key == f"files/{doc.node_id}.md"
        assert content_store.objects[doc.content_key] == b"# hi"
        assert doc.content_ref == f"http://content-store.test/{doc.content_key}"
        assert used(alice) == 4

    @pytest.mark.asyncio
    async def test_untitled_extension_defaults_to_txt(self, documents, alice):
        doc = await documents.create_file(alice, "README", "")
        assert doc.content_key.endswith(".txt")

    @pytest.mark.asyncio
    async def test_quota_exceeded_leaves_nothing_behind(self, documents, content_store, alice):
        with pytest.raises(QuotaExceededError):
            await documents.create_file(alice, "big.txt", "x" * 101)

        assert documents.list_documents(alice) == []
        assert content_store.objects == {}
        assert used(alice) == 0

    @pytest.mark.asyncio
    async def test_content_failure_releases_reservation(self, documents, content_store, alice):
        content_store.put.side_effect = ContentStoreError("store down")

        with pytest.raises(ContentStoreError):
            await documents.create_file(alice, "a.txt", "hello")

        assert documents.list_documents(alice) == []
        assert used(alice) == 0

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, documents, content_store, alice):
        with pytest.raises(ValidationError):
            await documents.create_file(alice, "   ", "x")
        content_store.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parent_must_exist(self, documents, alice):
        with pytest.raises(NodeNotFoundError):
            await documents.create_file(alice, "a.txt", "", parent_folder_id="missing")
        assert used(alice) == 0

    @pytest.mark.asyncio
    async def test_creation_in_folder_notifies_folder_audience(self, documents, transport, alice):
        folder = await documents.create_folder(alice, "Projects")

        doc = await documents.create_file(alice, "plan.md", "", parent_folder_id=folder.node_id)

        [message] = sent_messages(transport, EventType.DOCUMENT_CREATED)
        assert message["target_id"] == folder.node_id
        assert message["payload"]["document"]["node_id"] == doc.node_id
        assert message["payload"]["created_by"]["email"] == alice.email


class TestListAndRead:
    @pytest.mark.asyncio
    async def test_list_shows_owned_and_shared(self, documents, alice, bob):
        mine = await documents.create_file(alice, "mine.txt", "")
        shared = await documents.create_file(bob, "shared.txt", "")
        await documents.create_file(bob, "private.txt", "")
        await CollaborationService().add_collaborator(shared.node_id, bob.user_id, user_id=alice.user_id)

        listing = {node.node_id: perm for node, perm in documents.list_documents(alice)}

        assert listing == {mine.node_id: EffectivePermission.OWNER, shared.node_id: EffectivePermission.VIEW}

    @pytest.mark.asyncio
    async def test_list_rejects_file_as_folder(self, documents, alice):
        doc = await documents.create_file(alice, "a.txt", "")
        with pytest.raises(ValidationError):
            documents.list_documents(alice, doc.node_id)

    @pytest.mark.asyncio
    async def test_get_document_requires_access(self, documents, alice, bob):
        doc = await documents.create_file(alice, "a.txt", "")

        node, permission = documents.get_document(alice, doc.node_id)
        assert node.node_id == doc.node_id
        assert permission is EffectivePermission.OWNER

        with pytest.raises(AccessDeniedError):
            documents.get_document(bob, doc.node_id)
        with pytest.raises(AccessDeniedError):
            documents.get_permission(bob, doc.node_id)

    @pytest.mark.asyncio
    async def test_is_owner(self, documents, alice, bob):
        doc = await documents.create_file(alice, "a.txt", "")

        assert documents.is_owner(alice, doc.node_id) is True
        assert documents.is_owner(bob, doc.node_id) is False

    def test_missing_document(self, documents, alice):
        with pytest.raises(NodeNotFoundError):
            documents.get_document(alice, "missing")


class TestRename:
    @pytest.mark.asyncio
    async def test_rename_emits_event(self, documents, transport, alice):
        doc = await documents.create_file(alice, "old.txt", "")

        renamed = await documents.rename(alice, doc.node_id, "new.txt")

        assert renamed.title == "new.txt"
        assert NodeRepository.get_by_id(doc.node_id).title == "new.txt"
        [message] = sent_messages(transport, EventType.DOCUMENT_RENAMED)
        assert message["payload"]["old_title"] == "old.txt"
        assert message["payload"]["new_title"] == "new.txt"

    @pytest.mark.asyncio
    async def test_viewer_cannot_rename(self, documents, alice, bob):
        doc = await documents.create_file(alice, "a.txt", "")
        await CollaborationService().add_collaborator(doc.node_id, alice.user_id, user_id=bob.user_id)

        with pytest.raises(AccessDeniedError):
            await documents.rename(bob, doc.node_id, "b.txt")


class TestSaveContent:
    @pytest.mark.asyncio
    async def test_growth_and_shrink_adjust_owner_usage(self, documents, alice):
        doc = await documents.create_file(alice, "a.txt", "12345")

        await documents.save_content(alice, doc.node_id, "1234567890")
        assert used(alice) == 10

        saved = await documents.save_content(alice, doc.node_id, "12")
        assert used(alice) == 2
        assert saved.content_size == 2

    @pytest.mark.asyncio
    async def test_editor_save_is_charged_to_owner(self, documents, alice, bob):
        doc = await documents.create_file(alice, "a.txt", "")
        await CollaborationService().add_collaborator(doc.node_id, alice.user_id, user_id=bob.user_id, permission="edit")

        await documents.save_content(bob, doc.node_id, "from bob")

        assert used(alice) == 8
        assert used(bob) == 0
        assert NodeRepository.get_by_id(doc.node_id).last_modified_by == bob.user_id

    @pytest.mark.asyncio
    async def test_save_over_quota_keeps_old_content(self, documents, content_store, alice):
        doc = await documents.create_file(alice, "a.txt", "small")

        with pytest.raises(QuotaExceededError):
            await documents.save_content(alice, doc.node_id, "x" * 200)

        assert content_store.objects[doc.content_key] == b"small"
        assert used(alice) == 5

    @pytest.mark.asyncio
    async def test_folder_has_no_content(self, documents, alice):
        folder = await documents.create_folder(alice, "F")
        with pytest.raises(ValidationError):
            await documents.save_content(alice, folder.node_id, "x")

    @pytest.mark.asyncio
    async def test_extension_change_discards_old_object(self, documents, content_store, alice):
        doc = await documents.create_file(alice, "a.txt", "v1")
        old_key = doc.content_key
        await documents.rename(alice, doc.node_id, "a.md")

        saved = await documents.save_content(alice, doc.node_id, "v2")

        assert saved.content_key.endswith(".md")
        assert old_key not in content_store.objects
        assert content_store.objects[saved.content_key] == b"v2"

    @pytest.mark.asyncio
    async def test_failed_record_update_keeps_previous_object(self, documents, content_store, alice):
        doc = await documents.create_file(alice, "a.txt", "v1")

        with patch.object(documents.tree, "update_content", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(sqlite3.OperationalError):
                await documents.save_content(alice, doc.node_id, "version two")

        stored = NodeRepository.get_by_id(doc.node_id)
        assert stored.content_key == doc.content_key
        assert stored.content_size == 2
        assert content_store.objects == {doc.content_key: b"v1"}
        assert used(alice) == 2


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_folder_reclaims_every_file(self, documents, content_store, alice):
        folder = await documents.create_folder(alice, "F")
        sub = await documents.create_folder(alice, "sub", parent_folder_id=folder.node_id)
        await documents.create_file(alice, "a.txt", "aaa", parent_folder_id=folder.node_id)
        await documents.create_file(alice, "b.txt", "bbbbb", parent_folder_id=sub.node_id)
        keep = await documents.create_file(alice, "keep.txt", "kk")

        result = await documents.delete_document(alice, folder.node_id)

        assert len(result.deleted_node_ids) == 4
        assert result.deleted_node_ids[-1] == folder.node_id
        assert result.reclaimed_bytes == 8
        assert used(alice) == 2
        assert list(content_store.objects) == [keep.content_key]

    @pytest.mark.asyncio
    async def test_content_delete_failure_does_not_stop_deletion(self, documents, content_store, alice):
        doc = await documents.create_file(alice, "a.txt", "abc")
        content_store.delete.side_effect = ContentStoreError("store down")

        result = await documents.delete_document(alice, doc.node_id)

        assert result.content_failures == [doc.node_id]
        assert NodeRepository.get_by_id(doc.node_id) is None
        assert used(alice) == 0

    @pytest.mark.asyncio
    async def test_interrupted_delete_reclaims_files_already_removed(self, documents, alice):
        folder = await documents.create_folder(alice, "F")
        first = await documents.create_file(alice, "a.txt", "1234", parent_folder_id=folder.node_id)
        second = await documents.create_file(alice, "b.txt", "123456", parent_folder_id=folder.node_id)
        assert used(alice) == 10

        real_delete = documents.tree.delete
        deleted = []

        def delete_once(node_id, conn=None):
            if deleted:
                raise sqlite3.OperationalError("disk I/O error")
            deleted.append(node_id)
            return real_delete(node_id, conn=conn)

        with patch.object(documents.tree, "delete", side_effect=delete_once):
            with pytest.raises(sqlite3.OperationalError):
                await documents.delete_document(alice, folder.node_id)

        sizes = {first.node_id: 4, second.node_id: 6}
        [gone] = deleted
        assert NodeRepository.get_by_id(gone) is None
        assert used(alice) == 10 - sizes[gone]

    @pytest.mark.asyncio
    async def test_files_of_other_owners_are_credited_to_them(self, documents, alice, bob):
        folder = await documents.create_folder(alice, "F")
        await CollaborationService().add_collaborator(folder.node_id, alice.user_id, user_id=bob.user_id, permission="edit")
        await documents.create_file(bob, "bob.txt", "1234", parent_folder_id=folder.node_id)
        assert used(bob) == 4

        await documents.delete_document(alice, folder.node_id)

        assert used(bob) == 0

    @pytest.mark.asyncio
    async def test_only_owner_may_delete(self, documents, alice, bob):
        doc = await documents.create_file(alice, "a.txt", "")
        await CollaborationService().add_collaborator(doc.node_id, alice.user_id, user_id=bob.user_id, permission="edit")

        with pytest.raises(AccessDeniedError):
            await documents.delete_document(bob, doc.node_id)

    @pytest.mark.asyncio
    async def test_delete_notifies_node_and_parent(self, documents, transport, alice):
        folder = await documents.create_folder(alice, "F")
        doc = await documents.create_file(alice, "a.txt", "", parent_folder_id=folder.node_id)

        await documents.delete_document(alice, doc.node_id)

        messages = sent_messages(transport, EventType.DOCUMENT_DELETED)
        assert {m["target_id"] for m in messages} == {doc.node_id, folder.node_id}
        parent_message = next(m for m in messages if m["target_id"] == folder.node_id)
        assert parent_message["payload"]["deleted_id"] == doc.node_id


@pytest.mark.asyncio
async def test_failed_delivery_keeps_event_pending(documents, transport, alice):
    from docstore.exceptions import NotificationDeliveryError

    transport.send.side_effect = NotificationDeliveryError("transport down")
    doc = await documents.create_file(alice, "a.txt", "")

    renamed = await documents.rename(alice, doc.node_id, "b.txt")

    assert renamed.title == "b.txt"
    [event] = EventRepository.get_pending()
    assert event.event_type == EventType.DOCUMENT_RENAMED.value
    assert event.attempts == 1
