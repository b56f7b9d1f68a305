"""Tests for permission resolution on nodes."""

from datetime import datetime

import pytest

from docstore.exceptions import AccessDeniedError
from docstore.repositories.collaborator_repository import Collaborator
from docstore.repositories.node_repository import Node
from docstore.services.permission_service import PermissionResolver
from docstore.types import EffectivePermission, NodeType, Permission


@pytest.fixture
def node():
    now = datetime.utcnow()
    return Node(
        node_id="doc-1",
        title="plan.md",
        node_type=NodeType.FILE,
        owner_id="alice",
        parent_id=None,
        created_at=now,
        last_modified=now,
        collaborators={
            "bob": Collaborator("bob", Permission.VIEW, now, "alice"),
            "carol": Collaborator("carol", Permission.EDIT, now, "alice"),
        },
    )


@pytest.fixture
def resolver():
    return PermissionResolver()


@pytest.mark.parametrize("user_id,expected", [
    ("alice", EffectivePermission.OWNER),
    ("carol", EffectivePermission.EDIT),
    ("bob", EffectivePermission.VIEW),
    ("mallory", EffectivePermission.NONE),
])
def test_resolve(resolver, node, user_id, expected):
    assert resolver.resolve(node, user_id) is expected


def test_owner_wins_over_collaborator_entry(resolver, node):
    node.collaborators["alice"] = Collaborator("alice", Permission.VIEW, datetime.utcnow(), "bob")
    assert resolver.resolve(node, "alice") is EffectivePermission.OWNER


def test_require_read(resolver, node):
    assert resolver.require_read(node, "bob") is EffectivePermission.VIEW

    with pytest.raises(AccessDeniedError, match="read this file"):
        resolver.require_read(node, "mallory")


def test_require_write(resolver, node):
    assert resolver.require_write(node, "carol") is EffectivePermission.EDIT
    assert resolver.require_write(node, "alice") is EffectivePermission.OWNER

    with pytest.raises(AccessDeniedError, match="modify this file"):
        resolver.require_write(node, "bob")


def test_require_owner(resolver, node):
    assert resolver.require_owner(node, "alice") is EffectivePermission.OWNER

    with pytest.raises(AccessDeniedError, match="manage this file"):
        resolver.require_owner(node, "carol")
