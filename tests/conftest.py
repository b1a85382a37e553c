"""
Shared fixtures: an in-memory attributed tree and a recording chooser UI.
"""
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from ax_browse import BrowseSession, Choice  # noqa: E402
from ax_nodes import NodeAccessError, ObjectNode, TreeProvider  # noqa: E402

UNSUPPORTED = -25205


class FakeElement:
    """A tree element with plain-dict attributes."""

    def __init__(self, role: str, parent: "FakeElement" = None, **attrs: Any):
        self.role = role
        self.parent = parent
        self.attrs: Dict[str, Any] = dict(attrs)
        self.writable = set()
        self.actions: Dict[str, Optional[str]] = {}
        self.parameterized: List[str] = []
        self.valid = True
        self.actions_supported = True
        self.failing = set()
        self.performed: List[str] = []

    def __repr__(self):
        return f"FakeElement({self.role})"


class FakeProvider(TreeProvider):
    def __init__(self):
        self.reads: Dict[str, int] = {}  # attribute name -> read_attribute calls

    def is_element(self, value):
        return isinstance(value, FakeElement)

    def list_attributes(self, element):
        return list(element.attrs)

    def read_attribute(self, element, name):
        self.reads[name] = self.reads.get(name, 0) + 1
        if name in element.failing:
            raise NodeAccessError(f"reading {name} failed", code=UNSUPPORTED)
        if name in element.attrs:
            return element.attrs[name]
        if name == "AXRole":
            return element.role
        if name == "AXParent":
            return element.parent
        raise NodeAccessError(f"{name} unsupported", code=UNSUPPORTED)

    def is_attribute_writable(self, element, name):
        return name in element.writable

    def write_attribute(self, element, name, value):
        if name not in element.writable:
            raise NodeAccessError(f"{name} is not settable", code=UNSUPPORTED)
        element.attrs[name] = value

    def list_actions(self, element):
        if not element.actions_supported:
            raise NodeAccessError("actions unsupported", code=-25206)
        return list(element.actions)

    def describe_action(self, element, name):
        return element.actions.get(name)

    def invoke_action(self, element, name):
        if name in element.failing:
            raise NodeAccessError(f"performing {name} failed", code=-25204)
        element.performed.append(name)

    def list_parameterized_actions(self, element):
        return list(element.parameterized)

    def is_valid(self, element):
        return element.valid

    def role_of(self, element):
        return element.role


class FakeUI:
    """Records what the session posts."""

    def __init__(self):
        self.posts: List[List[Choice]] = []
        self.statuses = []
        self.shown = False
        self.dismissed = 0

    def post(self, choices, preselected_index=0):
        self.posts.append(list(choices))
        self.shown = True

    def is_currently_shown(self):
        return self.shown

    def dismiss(self):
        self.shown = False
        self.dismissed += 1

    def set_status(self, text, error=False):
        self.statuses.append((text, error))

    @property
    def choices(self) -> List[Choice]:
        return self.posts[-1]

    def find(self, prefix: str) -> Choice:
        for choice in self.choices:
            if choice.text.startswith(prefix):
                return choice
        raise AssertionError(f"no choice starting with {prefix!r} in {[c.text for c in self.choices]}")


def pick(session: BrowseSession, ui: FakeUI, prefix: str):
    """Select the first posted choice whose text starts with *prefix*."""
    choice = ui.find(prefix)
    ui.shown = False  # a real chooser hides itself on selection
    return session.on_selection(choice)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def ui():
    return FakeUI()


@pytest.fixture
def app_tree():
    """Application with a scalar, a sequence of windows and nested tables."""
    app = FakeElement("AXApplication")
    windows = [FakeElement("AXWindow", parent=app, AXTitle=f"Window {i}") for i in range(3)]
    button = FakeElement("AXButton", parent=windows[0], AXDescription="Close")
    button.actions = {"AXPress": "press", "AXCancel": None}
    app.attrs.update({
        "count": 7,
        "children": windows,
        "rows": [[windows[0], button], {"x": button, "y": 5}],
    })
    windows[0].attrs["AXCloseButton"] = button
    return app


@pytest.fixture
def make_session(provider, ui):
    def _make(modifier=False, default_root=None, lines=None):
        held = {"value": modifier}
        out = lines if lines is not None else []
        session = BrowseSession(
            ui=ui,
            modifier_held=lambda: held["value"],
            sink=out.append,
            default_root=default_root,
        )
        session.held = held  # test hook to flip the modifier
        session.lines = out
        return session
    return _make


def node(provider, element) -> ObjectNode:
    return ObjectNode(provider, element)
