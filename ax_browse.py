"""
Interactive browsing of attributed trees.

:class:`BrowseSession` drives a pick-one-at-a-time chooser over a tree of
:class:`~ax_nodes.ObjectNode` / :class:`~ax_nodes.CollectionNode` values.
Each screen of choices is produced by :class:`ChoiceBuilder`; where the
operator is in the tree lives on a :class:`NavigationStack`; the accessor
expression for the displayed node is kept by a :class:`~ax_path.PathRecorder`
and echoed to a text sink after every selection, ready to paste into a
script (replace the leading ``obj`` with the element browsing started from).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, List, Optional, Protocol, Sequence

from ax_nodes import (
    AXBrowseError,
    CollectionNode,
    Node,
    NodeAccessError,
    ObjectNode,
    StackUnderflowError,
    StaleNodeError,
    application_root,
    is_node,
    role_description,
    sort_keys,
    wrap_value,
)
from ax_path import DEFAULT_ROOT_TOKEN, PathFragment, PathRecorder

logger = logging.getLogger("ax_browser")

BACK_TEXT = "<-- Go back"
ATTRIBUTE_PREFIX = "Attribute: "
EXPAND_MARKER = "   -->"
STALE_ELEMENT_MESSAGE = "** recently visited element no longer valid; resetting to application root"
STALE_APPLICATION_MESSAGE = (
    "** recently visited application no longer valid; resetting to frontmost application"
)


# ---------------------------------------------------------------------------
# Choices
# ---------------------------------------------------------------------------

class ChoiceKind(Enum):
    ATTRIBUTE = "attribute"
    INDEX = "index"
    ACTION = "action"
    PARAMETERIZED_ACTION = "parameterized_action"
    BACK = "back"
    VALUE = "value"


@dataclass
class Choice:
    """One selectable line in the chooser."""
    text: str
    kind: ChoiceKind
    sub_text: str = ""
    key: Hashable = None
    settable: bool = False
    requires_modifier: bool = False
    fragment: Optional[PathFragment] = None
    alt_fragment: Optional[PathFragment] = None
    value: Any = None  # scalar shown by VALUE choices


class ChoiceBuilder:
    """Turns a node into an ordered list of :class:`Choice` objects."""

    def __init__(self, modifier_label: str = "⌘"):
        self.modifier_label = modifier_label

    def build(self, node: Node, offer_back: bool = False) -> List[Choice]:
        choices: List[Choice] = []
        if offer_back:
            choices.append(Choice(BACK_TEXT, ChoiceKind.BACK))

        if node.is_object_node():
            choices.extend(self._action_choices(node))
            for name in sort_keys(node.attribute_names()):
                # one read per attribute; count and shape come from this snapshot
                try:
                    raw = node.raw_attribute(name)
                except NodeAccessError as exc:
                    logger.debug(f"skipping attribute {name} of {node!r}: {exc}")
                    continue
                value = wrap_value(raw, node, name, ())
                choices.append(self._entry_choice(node, name, value, raw))
            choices.extend(self._parameterized_choices(node))
        else:
            entries = dict(node.items())
            for key in sort_keys(list(entries)):
                raw = entries[key]
                value = wrap_value(raw, node.owner, node.attribute, node.path + (key,))
                choices.append(self._entry_choice(node, key, value, raw))
        return choices

    def _action_choices(self, node: ObjectNode) -> List[Choice]:
        choices = []
        for action in sorted(node.action_names()):
            description = node.action_description(action) or "no description"
            choices.append(Choice(
                text=f"Action: {action}",
                kind=ChoiceKind.ACTION,
                sub_text=(f"{description}, hold down {self.modifier_label} "
                          f"when selecting to perform"),
                key=action,
                requires_modifier=True,
                fragment=PathFragment.invoke(action),
            ))
        return choices

    def _parameterized_choices(self, node: ObjectNode) -> List[Choice]:
        return [
            Choice(
                text=f"Parameterized Attribute: {name}",
                kind=ChoiceKind.PARAMETERIZED_ACTION,
                key=name,
                fragment=PathFragment.parameterized(name),
            )
            for name in sorted(node.parameterized_action_names())
        ]

    def _entry_choice(self, node: Node, key: Hashable, value: Any, raw: Any) -> Choice:
        in_collection = node.is_collection_node()
        prefix = "" if in_collection else ATTRIBUTE_PREFIX
        kind = ChoiceKind.INDEX if in_collection else ChoiceKind.ATTRIBUTE
        fragment = PathFragment.index(key) if in_collection else PathFragment.attribute(key)

        if isinstance(value, CollectionNode):
            count = len(raw)
            choice = Choice(
                text=f"{prefix}{key} {{ ... }}{EXPAND_MARKER}",
                kind=kind,
                sub_text="key-value table" if isinstance(raw, dict) and count else f"{count} entries",
                key=key,
                fragment=fragment,
            )
        elif isinstance(value, ObjectNode):
            if in_collection:
                text = f"{key}: {value.role()}"
            else:
                text = f"{prefix}{key}"
            choice = Choice(
                text=text + EXPAND_MARKER,
                kind=kind,
                sub_text=role_description(value),
                key=key,
                fragment=fragment,
            )
        else:
            choice = Choice(
                text=f"{prefix}{key}",
                kind=ChoiceKind.VALUE,
                sub_text=f"Value: {value}",
                key=key,
                fragment=fragment,
                value=value,
            )

        if not in_collection and node.is_settable(key):
            choice.sub_text += (f", is settable (hold down {self.modifier_label} "
                                f"when selecting to see format)")
            choice.settable = True
            choice.requires_modifier = True
            choice.alt_fragment = PathFragment.set(key)
        return choice


# ---------------------------------------------------------------------------
# Navigation stack
# ---------------------------------------------------------------------------

@dataclass
class Frame:
    """How to reach (and recompute) one displayed node.

    ``element`` is the owning element; for collection views ``attribute`` is
    read from it and ``path`` walked through the result.  A collection frame
    records the key it descended through at the end of ``path``;
    ``table_attribute`` is set on an element frame that descended into a
    collection-valued attribute.
    """
    element: ObjectNode
    attribute: Optional[str] = None
    path: List[Hashable] = field(default_factory=list)
    table_attribute: Optional[str] = None


class NavigationStack:
    def __init__(self):
        self._frames: List[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> List[Frame]:
        return list(self._frames)

    def push(self, frame: Frame) -> None:
        self._frames.append(frame)

    def pop(self) -> Frame:
        if not self._frames:
            raise StackUnderflowError("navigation stack is empty")
        return self._frames.pop()

    def current(self) -> Frame:
        if not self._frames:
            raise StackUnderflowError("navigation stack is empty")
        return self._frames[-1]

    def clear(self) -> None:
        self._frames.clear()

    def select_index(self, key: Hashable) -> None:
        """Record that the top (collection) frame descended through *key*."""
        self.current().path.append(key)

    def enter(self, node: Node) -> Frame:
        """Push the frame for *node*, which is about to be displayed."""
        if node.is_object_node():
            frame = Frame(element=node)
        elif self._frames:
            below = self._frames[-1]
            frame = Frame(
                element=below.element,
                attribute=below.table_attribute or below.attribute,
                path=list(below.path),
            )
        else:
            frame = Frame(element=node.owner, attribute=node.attribute, path=list(node.path))
        self.push(frame)
        return frame

    @staticmethod
    def resolve(frame: Frame) -> Node:
        """Recompute the node a frame denotes from the live tree."""
        if frame.attribute is None:
            return frame.element
        node = frame.element.attribute(frame.attribute)
        for key in frame.path:
            if not isinstance(node, CollectionNode):
                raise StaleNodeError(
                    f"{frame.attribute} no longer holds a collection at {key!r}"
                )
            try:
                node = node[key]
            except (KeyError, IndexError) as exc:
                raise StaleNodeError(f"entry {key!r} of {frame.attribute} disappeared") from exc
        if not is_node(node):
            raise StaleNodeError(f"{frame.attribute} no longer resolves to a node")
        return node

    def back_target(self) -> Node:
        """Recompute the node that :meth:`back` would return, without popping.

        The frame being returned to is resolved minus its last index, so a
        failed read leaves the stack as it was.
        """
        if len(self._frames) < 2:
            raise StackUnderflowError("nothing to go back to")
        returning = self._frames[-2]
        return self.resolve(Frame(
            element=returning.element,
            attribute=returning.attribute,
            path=returning.path[:-1],
            table_attribute=returning.table_attribute,
        ))

    def back(self) -> Node:
        """Undo one descent and return the recomputed node to display.

        Both the displayed frame and the frame being returned to are
        removed; the caller re-enters the returned node.
        """
        node = self.back_target()
        del self._frames[-2:]
        return node


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class SelectionUI(Protocol):
    """What the session needs from the chooser window."""

    def post(self, choices: Sequence[Choice], preselected_index: int = 0) -> None: ...

    def is_currently_shown(self) -> bool: ...

    def dismiss(self) -> None: ...

    def set_status(self, text: str, error: bool = False) -> None: ...


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_SELECTION = "awaiting_selection"


class OutcomeKind(Enum):
    CANCELLED = "cancelled"
    DESCENDED = "descended"
    ASCENDED = "ascended"
    VALUE = "value"
    SET = "set"
    INVOKED = "invoked"
    DESCRIBED = "described"
    PARAMETERIZED = "parameterized"
    FAILED = "failed"


@dataclass
class SelectionOutcome:
    kind: OutcomeKind
    path: str
    value: Any = None
    message: Optional[str] = None


class BrowseSession:
    """Stack-based browsing session over one root element."""

    def __init__(
        self,
        ui: SelectionUI,
        modifier_held: Callable[[], bool] = lambda: False,
        sink: Callable[[str], None] = print,
        default_root: Optional[Callable[[], Optional[ObjectNode]]] = None,
        root_token: str = DEFAULT_ROOT_TOKEN,
        modifier_label: str = "⌘",
        debug: bool = False,
    ):
        self.ui = ui
        self.modifier_held = modifier_held
        self.sink = sink
        self.default_root = default_root
        self.debug = debug
        self.builder = ChoiceBuilder(modifier_label)
        self.stack = NavigationStack()
        self.recorder = PathRecorder(root_token)
        self.state = SessionState.IDLE
        self.root: Optional[ObjectNode] = None
        self.context_root: Optional[ObjectNode] = None
        self._choices: List[Choice] = []

    @property
    def path(self) -> str:
        return self.recorder.current_path()

    @property
    def choices(self) -> List[Choice]:
        return list(self._choices)

    # -- entry points ------------------------------------------------------

    def start(self, root: ObjectNode, status: Optional[str] = None) -> None:
        """Begin a fresh session on *root*.

        The root's choices are built before the previous session is reset,
        so a failed read leaves that session in place.
        """
        context = application_root(root)
        choices = self.builder.build(root)
        self.stack.clear()
        self.recorder.reset()
        self.root = root
        self.context_root = context
        logger.info(f"Browsing {root!r} (application root {context!r})")
        self.stack.enter(root)
        self._post(choices, status=status)

    def browse(self, root: Optional[ObjectNode] = None) -> None:
        """Start on *root*, or with no root toggle / resume the last session.

        Provider failures are reported to the sink and the status line; the
        session is left idle with its stack unchanged.
        """
        try:
            self._browse(root)
        except AXBrowseError as exc:
            self._report_failure(exc)

    def _browse(self, root: Optional[ObjectNode]) -> None:
        if root is not None:
            self.start(root)
            return

        if self.ui.is_currently_shown():
            self.ui.dismiss()
            self.state = SessionState.IDLE
            return

        if len(self.stack):
            if not self.stack.current().element.is_valid():
                self._recover_stale()
                return
            try:
                self._repost()
            except StaleNodeError as exc:
                logger.warning(f"Resume failed: {exc}")
                self._recover_stale()
            return

        self._start_default()

    def discard(self) -> None:
        self.stack.clear()
        self.recorder.reset()
        self.root = None
        self.context_root = None
        self._choices = []
        self.state = SessionState.IDLE

    # -- selection handling ------------------------------------------------

    def on_selection(self, choice: Optional[Choice]) -> SelectionOutcome:
        if self.debug:
            logger.debug(f"selection: {choice!r}")
            logger.debug(f"stack: {self.stack.frames!r}")

        if choice is None:
            self.state = SessionState.IDLE
            return SelectionOutcome(OutcomeKind.CANCELLED, self.path)

        try:
            return self._handle(choice)
        except StaleNodeError as exc:
            logger.warning(f"Stale node during selection: {exc}")
            self._recover_stale()
            return SelectionOutcome(OutcomeKind.FAILED, self.path, message=str(exc))
        except StackUnderflowError as exc:
            logger.error(f"Navigation invariant violated: {exc}")
            self.sink(f"** {exc}")
            self.discard()
            return SelectionOutcome(OutcomeKind.FAILED, self.path, message=str(exc))
        except AXBrowseError as exc:
            message = f"** {choice.text}: {exc}"
            logger.warning(f"Selection failed: {message}")
            self.sink(message)
            self._post(self._choices, status=message)
            return SelectionOutcome(OutcomeKind.FAILED, self.path, message=message)

    def _handle(self, choice: Choice) -> SelectionOutcome:
        if choice.kind is ChoiceKind.BACK:
            node = self.stack.back_target()
            choices = self.builder.build(node, offer_back=len(self.stack) > 2)
            self.stack.pop()
            self.stack.pop()
            self.recorder.remove_last()
            self.sink(self.path)
            self.stack.enter(node)
            self._post(choices)
            return SelectionOutcome(OutcomeKind.ASCENDED, self.path)

        top = self.stack.current()
        modifier = self.modifier_held() if choice.requires_modifier else False

        if choice.settable and modifier:
            value = top.element.raw_attribute(choice.key)
            path = self.recorder.preview(choice.alt_fragment)
            self.sink(path)
            self.sink(f"    current value: {value!r}")
            self.state = SessionState.IDLE
            return SelectionOutcome(OutcomeKind.SET, path, value=value)

        if choice.kind is ChoiceKind.ACTION:
            path = self.recorder.preview(choice.fragment)
            self.sink(path)
            if modifier:
                logger.info(f"Performing {choice.key} on {top.element!r}")
                top.element.perform_action(choice.key)
                self.state = SessionState.IDLE
                return SelectionOutcome(OutcomeKind.INVOKED, path)
            self._post(self._choices)
            return SelectionOutcome(OutcomeKind.DESCRIBED, path)

        if choice.kind is ChoiceKind.PARAMETERIZED_ACTION:
            path = self.recorder.preview(choice.fragment)
            self.sink(path)
            self.state = SessionState.IDLE
            return SelectionOutcome(OutcomeKind.PARAMETERIZED, path)

        if choice.kind is ChoiceKind.VALUE:
            path = self.recorder.preview(choice.fragment)
            self.sink(path)
            self.state = SessionState.IDLE
            return SelectionOutcome(OutcomeKind.VALUE, path, value=choice.value)

        node = self._read_entry(top, choice)
        if not is_node(node):
            # the entry stopped being expandable since the choices were built
            path = self.recorder.preview(choice.fragment)
            self.sink(path)
            self.state = SessionState.IDLE
            return SelectionOutcome(OutcomeKind.VALUE, path, value=node)

        choices = self.builder.build(node, offer_back=True)
        if choice.kind is ChoiceKind.ATTRIBUTE and node.is_collection_node():
            top.table_attribute = choice.key
        elif choice.kind is ChoiceKind.INDEX:
            self.stack.select_index(choice.key)
        self.recorder.append(choice.fragment)
        self.sink(self.path)
        self.stack.enter(node)
        self._post(choices)
        return SelectionOutcome(OutcomeKind.DESCENDED, self.path)

    def _read_entry(self, top: Frame, choice: Choice) -> Any:
        if choice.kind is ChoiceKind.ATTRIBUTE:
            return top.element.attribute(choice.key)
        collection = self.stack.resolve(top)
        if not isinstance(collection, CollectionNode):
            raise StaleNodeError(f"{collection!r} is no longer a collection")
        try:
            return collection[choice.key]
        except (KeyError, IndexError) as exc:
            raise StaleNodeError(f"entry {choice.key!r} disappeared") from exc

    # -- display -----------------------------------------------------------

    def _repost(self) -> None:
        node = self.stack.resolve(self.stack.current())
        self._post(self.builder.build(node, offer_back=len(self.stack) > 1))

    def _post(self, choices: List[Choice], status: Optional[str] = None) -> None:
        self._choices = list(choices)
        if status:
            self.ui.set_status(status, error=True)
        else:
            self.ui.set_status(self.path)
        self.ui.post(self._choices, 0)
        self.state = SessionState.AWAITING_SELECTION

    # -- stale recovery ----------------------------------------------------

    def _recover_stale(self) -> None:
        logger.warning(STALE_ELEMENT_MESSAGE)
        self.sink(STALE_ELEMENT_MESSAGE)
        try:
            context = self.context_root
            if context is not None and context.is_valid():
                self.start(context, status=STALE_ELEMENT_MESSAGE)
                return
            logger.warning(STALE_APPLICATION_MESSAGE)
            self.sink(STALE_APPLICATION_MESSAGE)
            self.discard()
            self._start_default(status=STALE_APPLICATION_MESSAGE)
        except AXBrowseError as exc:
            self._report_failure(exc)

    def _report_failure(self, exc: AXBrowseError) -> None:
        message = f"** {exc}"
        logger.warning(f"Browse failed: {message}")
        self.sink(message)
        self.ui.set_status(message, error=True)
        self.state = SessionState.IDLE

    def _start_default(self, status: Optional[str] = None) -> None:
        root = self.default_root() if self.default_root is not None else None
        if root is None:
            message = "** no application available to browse"
            logger.warning(message)
            self.sink(message)
            self.state = SessionState.IDLE
            return
        self.start(root, status=status)
