"""Tests for the DocStore HTTP API."""

import pytest
from fastapi.testclient import TestClient

from docstore.main import app
from docstore.repositories.user_repository import UserRepository

INTERNAL = {"X-Internal-Token": "internal-secret"}


@pytest.fixture
def client(services, monkeypatch):
    """Create FastAPI test client backed by a temporary database."""
    monkeypatch.setattr("docstore.auth.INTERNAL_TOKEN", "internal-secret")
    return TestClient(app)


@pytest.fixture
def alice(make_user):
    return make_user("alice", storage_limit=1000)


@pytest.fixture
def bob(make_user):
    return make_user("bob", storage_limit=1000)


def auth(user):
    return {"Authorization": f"Bearer {user.api_key}"}


def test_root_endpoint(client):
    response = client.get('/')
    assert response.status_code == 200
    assert response.json()['status'] == 'running'


def test_health_endpoint(client):
    response = client.get('/health')
    assert response.json() == {"status": "healthy", "service": "docstore"}


def test_ready_endpoint(client, alice):
    response = client.get('/ready')
    assert response.status_code == 200
    data = response.json()
    assert data['ready'] is True
    assert data['outbox'] == {"pending": 0, "delivered": 0, "failed": 0}


def test_request_id_is_echoed(client):
    response = client.get('/health', headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


class TestAuthentication:
    def test_missing_header(self, client):
        response = client.get('/documents')
        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_API_KEY'

    def test_unknown_key(self, client, alice):
        response = client.get('/documents', headers={"Authorization": "Bearer dsk_unknown"})
        assert response.status_code == 401

    def test_malformed_header(self, client, alice):
        response = client.get('/documents', headers={"Authorization": alice.api_key})
        assert response.status_code == 401


class TestProvisioning:
    def test_provision_user(self, client):
        response = client.post('/internal/users', headers=INTERNAL, json={
            "name": "Dana", "email": "Dana@Example.com", "storage_limit": 500,
        })

        assert response.status_code == 201
        data = response.json()
        assert data['email'] == 'dana@example.com'
        assert data['api_key'].startswith('dsk_')
        assert UserRepository.get_by_user_id(data['user_id']).storage_limit == 500

    def test_duplicate_email(self, client, alice):
        response = client.post('/internal/users', headers=INTERNAL, json={
            "name": "Other", "email": alice.email,
        })
        assert response.status_code == 409
        assert response.json()['code'] == 'USER_ALREADY_EXISTS'

    def test_wrong_token(self, client):
        response = client.post('/internal/users', headers={"X-Internal-Token": "nope"}, json={
            "name": "Dana", "email": "dana@example.com",
        })
        assert response.status_code == 403

    def test_disabled_without_token(self, client, monkeypatch):
        monkeypatch.setattr("docstore.auth.INTERNAL_TOKEN", "")
        response = client.post('/internal/users', headers=INTERNAL, json={
            "name": "Dana", "email": "dana@example.com",
        })
        assert response.status_code == 403

    def test_malformed_body(self, client):
        response = client.post('/internal/users', headers=INTERNAL, json={"name": "Dana"})
        assert response.status_code == 400
        assert response.json()['code'] == 'VALIDATION_ERROR'


def test_users_me(client, alice):
    client.post('/documents', headers=auth(alice), json={"title": "a.txt", "content": "hello"})

    response = client.get('/users/me', headers=auth(alice))

    assert response.status_code == 200
    data = response.json()
    assert data['email'] == alice.email
    assert data['storage'] == {"used": 5, "limit": 1000, "available": 995}


class TestDocuments:
    def test_create_and_fetch_file(self, client, alice, content_store):
        created = client.post('/documents', headers=auth(alice), json={"title": "notes.md", "content": "# hi"})

        assert created.status_code == 201
        node_id = created.json()['node_id']
        assert created.json()['permission'] == 'owner'

        fetched = client.get(f'/documents/{node_id}', headers=auth(alice))
        assert fetched.status_code == 200
        assert fetched.json()['content_size'] == 4
        assert fetched.json()['content_url'].endswith('.md')

    def test_blank_title(self, client, alice):
        response = client.post('/documents', headers=auth(alice), json={"title": "  "})
        assert response.status_code == 400

    def test_quota_exceeded(self, client, make_user):
        tiny = make_user("tiny", storage_limit=3)

        response = client.post('/documents', headers=auth(tiny), json={"title": "a.txt", "content": "abcd"})

        assert response.status_code == 413
        data = response.json()
        assert data['code'] == 'QUOTA_EXCEEDED'
        assert (data['used'], data['limit'], data['required']) == (0, 3, 4)

    def test_content_store_failure(self, client, alice, content_store):
        from docstore.exceptions import ContentStoreError

        content_store.put.side_effect = ContentStoreError("store down")

        response = client.post('/documents', headers=auth(alice), json={"title": "a.txt", "content": "x"})

        assert response.status_code == 500
        assert response.json()['code'] == 'DEPENDENCY_FAILURE'

    def test_folder_listing(self, client, alice):
        folder = client.post('/documents/folders', headers=auth(alice), json={"title": "Projects"}).json()
        client.post('/documents', headers=auth(alice), json={
            "title": "plan.md", "content": "", "parent_folder_id": folder['node_id'],
        })

        root = client.get('/documents', headers=auth(alice)).json()['documents']
        inside = client.get(f"/documents?folder={folder['node_id']}", headers=auth(alice)).json()['documents']

        assert [d['title'] for d in root] == ['Projects']
        assert [d['title'] for d in inside] == ['plan.md']

    def test_listing_unknown_folder(self, client, alice):
        response = client.get('/documents?folder=missing', headers=auth(alice))
        assert response.status_code == 404
        assert response.json()['code'] == 'DOCUMENT_NOT_FOUND'

    def test_rename_and_save(self, client, alice):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']

        renamed = client.put(f'/documents/{node_id}', headers=auth(alice), json={"title": "b.txt"})
        saved = client.put(f'/documents/{node_id}/content', headers=auth(alice), json={"content": "1234567"})

        assert renamed.json()['title'] == 'b.txt'
        assert saved.json()['content_size'] == 7

    def test_stranger_is_denied(self, client, alice, bob):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']

        assert client.get(f'/documents/{node_id}', headers=auth(bob)).status_code == 403
        assert client.get(f'/documents/{node_id}/permission', headers=auth(bob)).status_code == 403
        assert client.get(f'/documents/{node_id}/ownership', headers=auth(bob)).json() == {"is_owner": False}

    def test_delete_folder(self, client, alice):
        folder = client.post('/documents/folders', headers=auth(alice), json={"title": "F"}).json()
        client.post('/documents', headers=auth(alice), json={
            "title": "a.txt", "content": "abc", "parent_folder_id": folder['node_id'],
        })

        response = client.delete(f"/documents/{folder['node_id']}", headers=auth(alice))

        assert response.status_code == 200
        assert response.json()['deleted_count'] == 2
        assert response.json()['reclaimed_bytes'] == 3
        assert client.get(f"/documents/{folder['node_id']}", headers=auth(alice)).status_code == 404


class TestCollaborators:
    def _share(self, client, owner, node_id, **body):
        return client.post(f'/collaborators/{node_id}', headers=auth(owner), json=body)

    def test_share_cascades_to_files(self, client, alice, bob):
        folder = client.post('/documents/folders', headers=auth(alice), json={"title": "F"}).json()
        doc = client.post('/documents', headers=auth(alice), json={
            "title": "a.txt", "parent_folder_id": folder['node_id'],
        }).json()

        response = self._share(client, alice, folder['node_id'], email=bob.email, permission="edit")

        assert response.status_code == 200
        assert set(response.json()['affected_node_ids']) == {folder['node_id'], doc['node_id']}
        permission = client.get(f"/documents/{doc['node_id']}/permission", headers=auth(bob))
        assert permission.json() == {"permission": "edit"}

    def test_share_again_is_no_content(self, client, alice, bob):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']
        self._share(client, alice, node_id, user_id=bob.user_id)

        response = self._share(client, alice, node_id, user_id=bob.user_id)

        assert response.status_code == 204

    def test_invalid_permission(self, client, alice, bob):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']
        response = self._share(client, alice, node_id, user_id=bob.user_id, permission="admin")
        assert response.status_code == 400

    def test_unknown_user(self, client, alice):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']
        response = self._share(client, alice, node_id, email="ghost@example.com")
        assert response.status_code == 404
        assert response.json()['code'] == 'USER_NOT_FOUND'

    def test_update_list_and_remove(self, client, alice, bob):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']
        self._share(client, alice, node_id, user_id=bob.user_id)

        updated = client.put(f'/collaborators/{node_id}/{bob.user_id}', headers=auth(alice), json={"permission": "edit"})
        listing = client.get(f'/collaborators/{node_id}', headers=auth(bob)).json()
        removed = client.delete(f'/collaborators/{node_id}/{bob.user_id}', headers=auth(alice))

        assert updated.json()['permission'] == 'edit'
        assert listing['owner']['email'] == alice.email
        assert [(c['email'], c['permission']) for c in listing['collaborators']] == [(bob.email, 'edit')]
        assert removed.json()['affected_node_ids'] == [node_id]
        assert client.get(f'/documents/{node_id}', headers=auth(bob)).status_code == 403

    def test_non_owner_cannot_share(self, client, alice, bob):
        node_id = client.post('/documents', headers=auth(alice), json={"title": "a.txt"}).json()['node_id']
        self._share(client, alice, node_id, user_id=bob.user_id, permission="edit")

        response = self._share(client, bob, node_id, user_id=alice.user_id)

        assert response.status_code == 403
        assert response.json()['code'] == 'ACCESS_DENIED'
