"""
Node adapters for attributed trees.

A tree is supplied by a :class:`TreeProvider` (the macOS accessibility API in
production, an in-memory fake in tests).  The browser never touches provider
elements directly; it works with two node shapes:

  * :class:`ObjectNode` wraps one provider element and exposes its
    attributes, actions and parameterized attributes.
  * :class:`CollectionNode` is a live view over a list or dict found in an
    element attribute (possibly nested), always re-read through its owner.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Hashable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger("ax_browser")

PARENT_ATTRIBUTE = "AXParent"
TOP_LEVEL_ATTRIBUTE = "AXTopLevelUIElement"
ROLE_ATTRIBUTE = "AXRole"
SUBROLE_ATTRIBUTE = "AXSubrole"
# Tried in order for the "Description" part of a node summary
DESCRIPTION_ATTRIBUTES = ("AXValueDescription", "AXDescription", "AXRoleDescription")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class AXBrowseError(Exception):
    """Base class for all browser errors."""


class NodeAccessError(AXBrowseError):
    """The provider refused an operation on an element."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class StaleNodeError(AXBrowseError):
    """A node (or the path to it) is no longer valid in the live tree."""


class StackUnderflowError(AXBrowseError):
    """Back was requested with nothing left to go back to."""


# ---------------------------------------------------------------------------
# Provider contract
# ---------------------------------------------------------------------------

class TreeProvider(ABC):
    """Supplies elements and their capabilities.

    Every method may raise :class:`NodeAccessError` when the underlying API
    refuses the request.
    """

    @abstractmethod
    def is_element(self, value: Any) -> bool:
        """True if *value* is an element this provider can wrap."""

    @abstractmethod
    def list_attributes(self, element: Any) -> List[str]: ...

    @abstractmethod
    def read_attribute(self, element: Any, name: str) -> Any: ...

    @abstractmethod
    def is_attribute_writable(self, element: Any, name: str) -> bool: ...

    @abstractmethod
    def write_attribute(self, element: Any, name: str, value: Any) -> None: ...

    @abstractmethod
    def list_actions(self, element: Any) -> List[str]: ...

    @abstractmethod
    def describe_action(self, element: Any, name: str) -> Optional[str]: ...

    @abstractmethod
    def invoke_action(self, element: Any, name: str) -> None: ...

    @abstractmethod
    def list_parameterized_actions(self, element: Any) -> List[str]: ...

    @abstractmethod
    def is_valid(self, element: Any) -> bool: ...

    def parent_of(self, element: Any) -> Optional[Any]:
        try:
            parent = self.read_attribute(element, PARENT_ATTRIBUTE)
        except NodeAccessError:
            return None
        return parent if self.is_element(parent) else None

    def role_of(self, element: Any) -> Optional[str]:
        try:
            role = self.read_attribute(element, ROLE_ATTRIBUTE)
        except NodeAccessError:
            return None
        return str(role) if role is not None else None

    def identity_key(self, element: Any) -> Hashable:
        """Key under which two references to the same element compare equal."""
        return id(element)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

class ObjectNode:
    """Capability view over a single provider element."""

    def __init__(self, provider: TreeProvider, element: Any):
        self.provider = provider
        self.element = element

    def is_object_node(self) -> bool:
        return True

    def is_collection_node(self) -> bool:
        return False

    @property
    def identity(self) -> Hashable:
        return self.provider.identity_key(self.element)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectNode):
            return NotImplemented
        return self.provider is other.provider and self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        return f"<ObjectNode {self.role() or 'unknown'}>"

    # -- capability queries (unsupported capabilities degrade to "none") --

    def attribute_names(self) -> List[str]:
        try:
            return list(self.provider.list_attributes(self.element) or [])
        except NodeAccessError as exc:
            logger.debug(f"attribute names unavailable for {self!r}: {exc}")
            return []

    def action_names(self) -> List[str]:
        try:
            return list(self.provider.list_actions(self.element) or [])
        except NodeAccessError as exc:
            logger.debug(f"actions unavailable for {self!r}: {exc}")
            return []

    def parameterized_action_names(self) -> List[str]:
        try:
            return list(self.provider.list_parameterized_actions(self.element) or [])
        except NodeAccessError as exc:
            logger.debug(f"parameterized attributes unavailable for {self!r}: {exc}")
            return []

    def is_settable(self, name: str) -> bool:
        try:
            return bool(self.provider.is_attribute_writable(self.element, name))
        except NodeAccessError:
            return False

    def action_description(self, name: str) -> Optional[str]:
        try:
            return self.provider.describe_action(self.element, name)
        except NodeAccessError:
            return None

    # -- reads and writes (errors propagate) --

    def raw_attribute(self, name: str) -> Any:
        return self.provider.read_attribute(self.element, name)

    def attribute(self, name: str) -> "NodeValue":
        return wrap_value(self.raw_attribute(name), self, name, ())

    def set_attribute(self, name: str, value: Any) -> None:
        self.provider.write_attribute(self.element, name, value)

    def perform_action(self, name: str) -> None:
        self.provider.invoke_action(self.element, name)

    def is_valid(self) -> bool:
        try:
            return bool(self.provider.is_valid(self.element))
        except NodeAccessError:
            return False

    def parent(self) -> Optional["ObjectNode"]:
        parent = self.provider.parent_of(self.element)
        return ObjectNode(self.provider, parent) if parent is not None else None

    def role(self) -> Optional[str]:
        return self.provider.role_of(self.element)

    def safe_attribute(self, name: str) -> Any:
        """Raw attribute value, or None when it cannot be read."""
        try:
            return self.raw_attribute(name)
        except NodeAccessError:
            return None

    def __call__(self, name: str, *args: Any) -> "NodeValue":
        """Replay a recorded path step: ``("attr")``, ``("doAction")`` or
        ``("setAttr", value)``."""
        if not args:
            if name.startswith("do") and name[2:] in self.action_names():
                self.perform_action(name[2:])
                return None
            return self.attribute(name)
        if name.startswith("set") and len(args) == 1:
            self.set_attribute(name[3:], args[0])
            return None
        raise ValueError(f"cannot replay {name!r} with {len(args)} argument(s)")


class CollectionNode:
    """Live view over ``owner(attribute)[path[0]][path[1]]...``."""

    def __init__(self, owner: ObjectNode, attribute: str,
                 path: Sequence[Hashable] = ()):
        self.owner = owner
        self.attribute = attribute
        self.path: Tuple[Hashable, ...] = tuple(path)

    def is_object_node(self) -> bool:
        return False

    def is_collection_node(self) -> bool:
        return True

    def __repr__(self) -> str:
        keys = "".join(f"[{k!r}]" for k in self.path)
        return f"<CollectionNode {self.attribute}{keys}>"

    @property
    def value(self) -> Union[list, tuple, dict]:
        """The live collection, re-read through the owning element."""
        value = self.owner.raw_attribute(self.attribute)
        for key in self.path:
            try:
                value = value[key]
            except (KeyError, IndexError, TypeError) as exc:
                raise StaleNodeError(
                    f"{self!r} no longer resolves: missing entry {key!r}"
                ) from exc
        if not is_collection(value):
            raise StaleNodeError(f"{self!r} is no longer a collection")
        return value

    def is_mapping(self) -> bool:
        return isinstance(self.value, dict)

    def keys(self) -> List[Hashable]:
        data = self.value
        if isinstance(data, dict):
            return list(data.keys())
        return list(range(len(data)))

    def items(self) -> List[Tuple[Hashable, Any]]:
        return collection_items(self.value)

    def __len__(self) -> int:
        return len(self.value)

    def __getitem__(self, key: Hashable) -> "NodeValue":
        data = self.value
        return wrap_value(data[key], self.owner, self.attribute, self.path + (key,))


Node = Union[ObjectNode, CollectionNode]
NodeValue = Union[ObjectNode, CollectionNode, Any]


def is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, dict))


def is_node(value: Any) -> bool:
    return isinstance(value, (ObjectNode, CollectionNode))


def collection_items(data: Union[list, tuple, dict]) -> List[Tuple[Hashable, Any]]:
    """(key, value) pairs of a raw collection; sequences use their indices."""
    if isinstance(data, dict):
        return list(data.items())
    return list(enumerate(data))


def wrap_value(value: Any, owner: ObjectNode, attribute: str,
               path: Sequence[Hashable]) -> NodeValue:
    """Wrap a raw attribute (or entry) value into the matching node shape."""
    if owner.provider.is_element(value):
        return ObjectNode(owner.provider, value)
    if is_collection(value):
        return CollectionNode(owner, attribute, path)
    return value


def _key_order(key: Hashable) -> Tuple[int, Any]:
    if isinstance(key, (int, float)) and not isinstance(key, bool):
        return (0, key)
    return (1, str(key))


def sort_keys(keys: Sequence[Hashable]) -> List[Hashable]:
    """Numbers in numeric order first, everything else by its string form."""
    return sorted(keys, key=_key_order)


def role_description(node: ObjectNode) -> str:
    role = node.safe_attribute(ROLE_ATTRIBUTE)
    subrole = node.safe_attribute(SUBROLE_ATTRIBUTE)
    description = None
    for attr in DESCRIPTION_ATTRIBUTES:
        description = node.safe_attribute(attr)
        if description:
            break
    return (
        f"Role: {role if role is not None else 'unknown'}, "
        f"Subrole: {subrole if subrole is not None else 'unknown'}, "
        f"Description: {description if description else 'unknown'}"
    )


def application_root(node: ObjectNode, max_hops: int = 500) -> ObjectNode:
    """Climb parents until the top of the tree (the application element)."""
    current = node
    for _ in range(max_hops):
        try:
            parent = current.parent()
        except NodeAccessError:
            break
        if parent is None or parent == current:
            break
        current = parent
    return current
