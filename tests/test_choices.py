"""Tests for ChoiceBuilder ordering and annotations."""
from ax_browse import BACK_TEXT, ChoiceBuilder, ChoiceKind
from ax_nodes import ObjectNode
from ax_path import PathFragment
from conftest import FakeElement


def texts(choices):
    return [c.text for c in choices]


class TestObjectChoices:

    def test_attribute_ordering_and_shapes(self, provider, app_tree):
        choices = ChoiceBuilder().build(ObjectNode(provider, app_tree))
        assert texts(choices) == [
            "Attribute: children { ... }   -->",
            "Attribute: count",
            "Attribute: rows { ... }   -->",
        ]
        children, count, rows = choices
        assert children.kind is ChoiceKind.ATTRIBUTE
        assert children.sub_text == "3 entries"
        assert count.kind is ChoiceKind.VALUE
        assert count.sub_text == "Value: 7"
        assert count.value == 7
        assert rows.fragment == PathFragment.attribute("rows")

    def test_back_actions_attributes_parameterized(self, provider, app_tree):
        button = app_tree.attrs["children"][0].attrs["AXCloseButton"]
        button.parameterized = ["AXStringForRange", "AXLineForIndex"]
        choices = ChoiceBuilder().build(ObjectNode(provider, button), offer_back=True)
        assert texts(choices) == [
            BACK_TEXT,
            "Action: AXCancel",
            "Action: AXPress",
            "Attribute: AXDescription",
            "Parameterized Attribute: AXLineForIndex",
            "Parameterized Attribute: AXStringForRange",
        ]
        cancel, press = choices[1], choices[2]
        assert cancel.sub_text == "no description, hold down ⌘ when selecting to perform"
        assert press.sub_text == "press, hold down ⌘ when selecting to perform"
        assert press.requires_modifier
        assert press.fragment == PathFragment.invoke("AXPress")
        assert choices[-1].kind is ChoiceKind.PARAMETERIZED_ACTION

    def test_element_attribute_subtext(self, provider, app_tree):
        window = app_tree.attrs["children"][0]
        choices = ChoiceBuilder().build(ObjectNode(provider, window))
        close = next(c for c in choices if c.key == "AXCloseButton")
        assert close.text == "Attribute: AXCloseButton   -->"
        assert close.sub_text == "Role: AXButton, Subrole: unknown, Description: Close"

    def test_settable_annotation(self, provider, app_tree):
        window = app_tree.attrs["children"][0]
        window.writable.add("AXTitle")
        choices = ChoiceBuilder(modifier_label="⌥").build(ObjectNode(provider, window))
        title = next(c for c in choices if c.key == "AXTitle")
        assert title.settable and title.requires_modifier
        assert title.sub_text == (
            "Value: Window 0, is settable (hold down ⌥ when selecting to see format)"
        )
        assert title.alt_fragment == PathFragment.set("AXTitle")

    def test_unsupported_actions_yield_attributes_only(self, provider):
        element = FakeElement("AXStaticText", AXValue="hi")
        element.actions_supported = False
        choices = ChoiceBuilder().build(ObjectNode(provider, element))
        assert texts(choices) == ["Attribute: AXValue"]

    def test_unreadable_attribute_is_skipped(self, provider):
        element = FakeElement("AXGroup", a=1, b=2)
        element.failing.add("a")
        choices = ChoiceBuilder().build(ObjectNode(provider, element))
        assert texts(choices) == ["Attribute: b"]

    def test_build_is_deterministic(self, provider, app_tree):
        builder = ChoiceBuilder()
        node = ObjectNode(provider, app_tree)
        assert builder.build(node) == builder.build(node)


class TestCollectionChoices:

    def test_numeric_keys_sort_numerically(self, provider):
        owner = FakeElement("AXGroup", items=list(range(11)))
        collection = ObjectNode(provider, owner).attribute("items")
        choices = ChoiceBuilder().build(collection)
        assert [c.key for c in choices] == list(range(11))
        assert all(c.kind is ChoiceKind.VALUE for c in choices)
        assert choices[10].text == "10"
        assert choices[10].fragment == PathFragment.index(10)

    def test_entries_of_elements_and_tables(self, provider, app_tree):
        rows = ObjectNode(provider, app_tree).attribute("rows")
        choices = ChoiceBuilder().build(rows, offer_back=True)
        assert texts(choices) == [BACK_TEXT, "0 { ... }   -->", "1 { ... }   -->"]
        assert choices[1].sub_text == "2 entries"
        assert choices[2].sub_text == "key-value table"
        assert all(c.kind is ChoiceKind.INDEX for c in choices[1:])

        table = rows[1]
        inner = ChoiceBuilder().build(table)
        assert texts(inner) == ["x: AXButton   -->", "y"]
        assert inner[0].fragment == PathFragment.index("x")
        assert inner[1].sub_text == "Value: 5"
        assert not inner[1].settable

    def test_empty_table_counts_entries(self, provider):
        owner = FakeElement("AXGroup", frame={})
        choices = ChoiceBuilder().build(ObjectNode(provider, owner))
        assert choices[0].sub_text == "0 entries"


def test_each_attribute_is_read_once(provider, app_tree):
    ChoiceBuilder().build(ObjectNode(provider, app_tree))
    assert provider.reads["children"] == 1
    assert provider.reads["rows"] == 1
    assert provider.reads["count"] == 1
