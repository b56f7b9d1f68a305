"""Tests for the node hierarchy and subtree traversal."""

from datetime import datetime

import pytest

from docstore.database import get_db_connection
from docstore.exceptions import NodeNotFoundError, ValidationError
from docstore.repositories.node_repository import Node
from docstore.services.document_tree import MAX_TITLE_LENGTH, DocumentTree
from docstore.types import NodeType


@pytest.fixture
def tree(test_db):
    return DocumentTree()


@pytest.fixture
def owner_id(make_user):
    return make_user("alice").user_id


def _new(node_id, owner_id, node_type=NodeType.FILE, parent_id=None, title=None):
    now = datetime.utcnow()
    return Node(
        node_id=node_id,
        title=title or node_id,
        node_type=node_type,
        owner_id=owner_id,
        parent_id=parent_id,
        created_at=now,
        last_modified=now,
    )


@pytest.fixture
def nested(tree, owner_id):
    """
    root/
      b.txt
      a.txt
      sub/
        c.txt
        deep/
          d.txt
      empty/
    """
    for node in [
        _new("root", owner_id, NodeType.FOLDER),
        _new("b", owner_id, parent_id="root", title="b.txt"),
        _new("a", owner_id, parent_id="root", title="a.txt"),
        _new("sub", owner_id, NodeType.FOLDER, parent_id="root", title="sub"),
        _new("c", owner_id, parent_id="sub", title="c.txt"),
        _new("deep", owner_id, NodeType.FOLDER, parent_id="sub", title="deep"),
        _new("d", owner_id, parent_id="deep", title="d.txt"),
        _new("empty", owner_id, NodeType.FOLDER, parent_id="root", title="empty"),
    ]:
        tree.create(node)
    return tree


class TestValidation:
    @pytest.mark.parametrize("title", [None, "", "   "])
    def test_blank_title_rejected(self, title):
        with pytest.raises(ValidationError):
            DocumentTree.validate_title(title)

    def test_title_is_trimmed(self):
        assert DocumentTree.validate_title("  notes.md ") == "notes.md"

    def test_title_length_limit(self):
        assert DocumentTree.validate_title("x" * MAX_TITLE_LENGTH)
        with pytest.raises(ValidationError):
            DocumentTree.validate_title("x" * (MAX_TITLE_LENGTH + 1))

    def test_parent_must_exist(self, tree, owner_id):
        with pytest.raises(NodeNotFoundError):
            tree.create(_new("f", owner_id, parent_id="missing"))

    def test_parent_must_be_folder(self, tree, owner_id):
        tree.create(_new("file", owner_id))
        with pytest.raises(ValidationError):
            tree.create(_new("child", owner_id, parent_id="file"))

    def test_owner_required(self, tree):
        with pytest.raises(ValidationError):
            tree.create(_new("f", ""))

    def test_get_folder_rejects_file(self, tree, owner_id):
        tree.create(_new("file", owner_id))
        with pytest.raises(ValidationError):
            tree.get_folder("file")


class TestWalk:
    def test_walk_yields_every_descendant_file(self, nested):
        assert {node.node_id for node in nested.walk("root")} == {"a", "b", "c", "d"}

    def test_walk_empty_folder(self, nested):
        assert nested.find_descendant_files("empty") == []

    def test_walk_survives_cycle(self, nested):
        with get_db_connection() as conn:
            conn.execute("UPDATE nodes SET parent_id = 'deep' WHERE node_id = 'sub'")
            conn.commit()

        assert {node.node_id for node in nested.walk("sub")} == {"c", "d"}


class TestPostOrder:
    def test_files_before_subfolders_folder_last(self, nested):
        root = nested.get("root")

        order = [node.node_id for node in nested.subtree_post_order(root)]

        assert order == ["a", "b", "empty", "c", "d", "deep", "sub", "root"]

    def test_every_child_precedes_its_parent(self, nested):
        order = [node.node_id for node in nested.subtree_post_order(nested.get("root"))]
        position = {node_id: i for i, node_id in enumerate(order)}

        for child, parent in [("a", "root"), ("c", "sub"), ("d", "deep"), ("deep", "sub"), ("sub", "root")]:
            assert position[child] < position[parent]

    def test_single_file(self, nested):
        node = nested.get("a")
        assert nested.subtree_post_order(node) == [node]


def test_delete_removes_only_that_record(nested):
    assert nested.delete("sub") is True

    with pytest.raises(NodeNotFoundError):
        nested.get("sub")
    assert nested.get("c").parent_id == "sub"
