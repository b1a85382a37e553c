"""Tests for access-path fragments and the path recorder."""
import pytest

from ax_nodes import ObjectNode, StackUnderflowError, StaleNodeError
from ax_path import FragmentKind, PathFragment, PathRecorder


@pytest.mark.parametrize("fragment, expected", [
    (PathFragment.attribute("AXChildren"), '("AXChildren")'),
    (PathFragment.index(2), "[2]"),
    (PathFragment.index("AXFrame"), '["AXFrame"]'),
    (PathFragment.invoke("AXPress"), '("doAXPress")'),
    (PathFragment.set("AXTitle"), '("setAXTitle", ...)'),
    (PathFragment.parameterized("AXLineForIndex"), '("AXLineForIndex", ...)'),
])
def test_fragment_rendering(fragment, expected):
    assert fragment.render() == expected


def test_fragment_kinds():
    assert PathFragment.index(0).kind is FragmentKind.INDEX
    assert PathFragment.attribute("a") == PathFragment(FragmentKind.ATTRIBUTE, "a")


class TestPathRecorder:

    def test_starts_at_root_token(self):
        assert PathRecorder().current_path() == "obj"
        assert PathRecorder("app").current_path() == "app"

    def test_append_and_remove(self):
        recorder = PathRecorder()
        recorder.append(PathFragment.attribute("AXChildren"))
        recorder.append(PathFragment.index(2))
        assert recorder.current_path() == 'obj("AXChildren")[2]'
        assert len(recorder) == 2

        removed = recorder.remove_last()
        assert removed == PathFragment.index(2)
        assert recorder.current_path() == 'obj("AXChildren")'

    def test_remove_at_root_underflows(self):
        recorder = PathRecorder()
        with pytest.raises(StackUnderflowError):
            recorder.remove_last()

    def test_preview_does_not_record(self):
        recorder = PathRecorder()
        recorder.append(PathFragment.attribute("AXWindows"))
        assert recorder.preview(PathFragment.invoke("AXRaise")) == 'obj("AXWindows")("doAXRaise")'
        assert recorder.preview(None) == 'obj("AXWindows")'
        assert len(recorder) == 1

    def test_reset(self):
        recorder = PathRecorder()
        recorder.append(PathFragment.attribute("a"))
        recorder.reset()
        assert recorder.current_path() == "obj"


class TestResolve:

    def test_replays_attribute_and_index_steps(self, provider, app_tree):
        recorder = PathRecorder()
        recorder.append(PathFragment.attribute("rows"))
        recorder.append(PathFragment.index(1))
        recorder.append(PathFragment.index("x"))
        button = app_tree.attrs["children"][0].attrs["AXCloseButton"]
        assert recorder.resolve(ObjectNode(provider, app_tree)) == ObjectNode(provider, button)

    def test_missing_entry_is_stale(self, provider, app_tree):
        recorder = PathRecorder()
        recorder.append(PathFragment.attribute("children"))
        recorder.append(PathFragment.index(5))
        with pytest.raises(StaleNodeError):
            recorder.resolve(ObjectNode(provider, app_tree))

    def test_index_on_element_is_rejected(self, provider, app_tree):
        recorder = PathRecorder()
        recorder.append(PathFragment.index(0))
        with pytest.raises(ValueError):
            recorder.resolve(ObjectNode(provider, app_tree))
