"""Tests for node adapters and value wrapping."""
import pytest

from ax_nodes import (
    CollectionNode,
    NodeAccessError,
    ObjectNode,
    StaleNodeError,
    application_root,
    role_description,
    sort_keys,
    wrap_value,
)
from conftest import FakeElement


class TestObjectNode:

    def test_identity_equality(self, provider, app_tree):
        a = ObjectNode(provider, app_tree)
        b = ObjectNode(provider, app_tree)
        other = ObjectNode(provider, FakeElement("AXApplication"))
        assert a == b
        assert hash(a) == hash(b)
        assert a != other
        assert a.is_object_node() and not a.is_collection_node()

    def test_attribute_wrapping(self, provider, app_tree):
        app = ObjectNode(provider, app_tree)
        assert app.attribute("count") == 7
        children = app.attribute("children")
        assert isinstance(children, CollectionNode)
        assert children.owner == app
        assert children.attribute == "children"
        assert children.path == ()
        assert isinstance(children[0], ObjectNode)

    def test_unsupported_capabilities_are_empty(self, provider):
        element = FakeElement("AXGroup", title="x")
        element.actions_supported = False
        group = ObjectNode(provider, element)
        assert group.action_names() == []
        assert group.attribute_names() == ["title"]
        assert group.is_settable("title") is False

    def test_read_errors_propagate(self, provider):
        element = FakeElement("AXGroup", title="x")
        element.failing.add("title")
        with pytest.raises(NodeAccessError):
            ObjectNode(provider, element).attribute("title")
        assert ObjectNode(provider, element).safe_attribute("title") is None

    def test_call_replays_path_steps(self, provider, app_tree):
        button = app_tree.attrs["children"][0].attrs["AXCloseButton"]
        button.writable.add("AXDescription")
        app = ObjectNode(provider, app_tree)

        close = app("children")[0]("AXCloseButton")
        assert close == ObjectNode(provider, button)
        close("doAXPress")
        assert button.performed == ["AXPress"]
        close("setAXDescription", "Dismiss")
        assert button.attrs["AXDescription"] == "Dismiss"
        with pytest.raises(ValueError):
            close("AXBoundsForRange", 1, 2)

    def test_validity_and_parent(self, provider, app_tree):
        window = ObjectNode(provider, app_tree.attrs["children"][1])
        assert window.is_valid()
        assert window.parent() == ObjectNode(provider, app_tree)
        app_tree.attrs["children"][1].valid = False
        assert not window.is_valid()


class TestCollectionNode:

    def test_reads_live_value(self, provider, app_tree):
        children = ObjectNode(provider, app_tree).attribute("children")
        assert len(children) == 3
        app_tree.attrs["children"].append(FakeElement("AXWindow"))
        assert len(children) == 4

    def test_nested_path(self, provider, app_tree):
        rows = ObjectNode(provider, app_tree).attribute("rows")
        table = rows[1]
        assert isinstance(table, CollectionNode)
        assert table.path == (1,)
        assert table.is_mapping()
        assert table.keys() == ["x", "y"]
        assert table["y"] == 5

    def test_vanished_entry_is_stale(self, provider, app_tree):
        table = ObjectNode(provider, app_tree).attribute("rows")[1]
        app_tree.attrs["rows"] = []
        with pytest.raises(StaleNodeError):
            table.items()


def test_wrap_value_shapes(provider, app_tree):
    owner = ObjectNode(provider, app_tree)
    assert wrap_value("text", owner, "a", ()) == "text"
    assert isinstance(wrap_value([], owner, "a", ()), CollectionNode)
    assert isinstance(wrap_value({"k": 1}, owner, "a", ()), CollectionNode)
    assert isinstance(wrap_value(app_tree, owner, "a", ()), ObjectNode)


def test_sort_keys_numeric_before_strings():
    assert sort_keys([9, 10, 2]) == [2, 9, 10]
    assert sort_keys(["b", 3, "a", 1]) == [1, 3, "a", "b"]


def test_role_description(provider, app_tree):
    button = ObjectNode(provider, app_tree.attrs["children"][0].attrs["AXCloseButton"])
    assert role_description(button) == "Role: AXButton, Subrole: unknown, Description: Close"
    bare = ObjectNode(provider, FakeElement("AXGroup"))
    assert role_description(bare) == "Role: AXGroup, Subrole: unknown, Description: unknown"


def test_application_root_climbs_parents(provider, app_tree):
    button = app_tree.attrs["children"][0].attrs["AXCloseButton"]
    assert application_root(ObjectNode(provider, button)) == ObjectNode(provider, app_tree)
    assert application_root(ObjectNode(provider, app_tree)) == ObjectNode(provider, app_tree)
