"""
Access-path recording.

Each step taken while browsing is kept as a typed :class:`PathFragment`.
The text form (``obj("AXChildren")[2]("AXRole")``) is produced only when
the path is displayed, so undoing a step is a list pop, never a string edit.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Hashable, List, Optional

from ax_nodes import CollectionNode, Node, ObjectNode, StackUnderflowError, StaleNodeError

DEFAULT_ROOT_TOKEN = "obj"


class FragmentKind(Enum):
    ATTRIBUTE = "attribute"
    INDEX = "index"
    INVOKE = "invoke"
    SET = "set"
    PARAMETERIZED = "parameterized"


@dataclass(frozen=True)
class PathFragment:
    kind: FragmentKind
    key: Hashable

    def render(self) -> str:
        if self.kind is FragmentKind.INDEX:
            if isinstance(self.key, int) and not isinstance(self.key, bool):
                return f"[{self.key}]"
            return f"[{_quote(self.key)}]"
        if self.kind is FragmentKind.ATTRIBUTE:
            return f"({_quote(self.key)})"
        if self.kind is FragmentKind.INVOKE:
            return f"({_quote('do' + str(self.key))})"
        if self.kind is FragmentKind.SET:
            return f"({_quote('set' + str(self.key))}, ...)"
        return f"({_quote(self.key)}, ...)"

    @classmethod
    def attribute(cls, name: str) -> "PathFragment":
        return cls(FragmentKind.ATTRIBUTE, name)

    @classmethod
    def index(cls, key: Hashable) -> "PathFragment":
        return cls(FragmentKind.INDEX, key)

    @classmethod
    def invoke(cls, action: str) -> "PathFragment":
        return cls(FragmentKind.INVOKE, action)

    @classmethod
    def set(cls, name: str) -> "PathFragment":
        return cls(FragmentKind.SET, name)

    @classmethod
    def parameterized(cls, name: str) -> "PathFragment":
        return cls(FragmentKind.PARAMETERIZED, name)


def _quote(key: Hashable) -> str:
    return json.dumps(str(key), ensure_ascii=False)


class PathRecorder:
    """Growable access path seeded with a root token."""

    def __init__(self, root_token: str = DEFAULT_ROOT_TOKEN):
        self.root_token = root_token
        self._fragments: List[PathFragment] = []

    @property
    def fragments(self) -> List[PathFragment]:
        return list(self._fragments)

    def __len__(self) -> int:
        return len(self._fragments)

    def append(self, fragment: PathFragment) -> None:
        self._fragments.append(fragment)

    def remove_last(self) -> PathFragment:
        if not self._fragments:
            raise StackUnderflowError("path is already at the root token")
        return self._fragments.pop()

    def reset(self) -> None:
        self._fragments.clear()

    def current_path(self) -> str:
        return self.root_token + "".join(f.render() for f in self._fragments)

    def preview(self, fragment: Optional[PathFragment]) -> str:
        """The current path with *fragment* appended, without recording it."""
        if fragment is None:
            return self.current_path()
        return self.current_path() + fragment.render()

    def resolve(self, root: ObjectNode) -> Node:
        """Replay the recorded attribute/index steps starting at *root*."""
        current = root
        for fragment in self._fragments:
            if fragment.kind is FragmentKind.ATTRIBUTE and isinstance(current, ObjectNode):
                current = current.attribute(fragment.key)
            elif fragment.kind is FragmentKind.INDEX and isinstance(current, CollectionNode):
                try:
                    current = current[fragment.key]
                except (KeyError, IndexError) as exc:
                    raise StaleNodeError(f"entry {fragment.key!r} disappeared") from exc
            else:
                raise ValueError(
                    f"cannot replay {fragment.render()} against {current!r}"
                )
        return current
