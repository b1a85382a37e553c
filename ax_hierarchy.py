"""
Non-interactive hierarchy dump.

Walks a tree depth-first and writes one line per element, attribute and
collection entry.  Elements are visited at most once per dump; later
references are printed as ``<seen before>``.  Parent and top-level
back-references are never followed.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, Iterator, Optional, Union

import aiofiles

from ax_nodes import (
    PARENT_ATTRIBUTE,
    TOP_LEVEL_ATTRIBUTE,
    CollectionNode,
    NodeAccessError,
    ObjectNode,
    collection_items,
    wrap_value,
)

logger = logging.getLogger("ax_browser")

DEFAULT_SKIP_ATTRIBUTES = {
    PARENT_ATTRIBUTE: "<parent>",
    TOP_LEVEL_ATTRIBUTE: "<topLevelUIElement>",
}
DEFAULT_MAX_DEPTH = 200

# Marks a finished element in the line stream; never written to a sink
_YIELD_POINT = object()


def _inline(value: Any) -> str:
    return " ".join(repr(value).split())


class HierarchyDumper:
    """Depth-first, cycle-safe text dump of an element tree.

    Args:
        sink: Receives each output line.
        yield_hook: Called every ``yield_every`` visited elements so a
            cooperative host (e.g. a Qt event loop via ``processEvents``)
            stays responsive.  Leave unset when dumping on a worker thread.
        yield_every: Number of elements between ``yield_hook`` calls.
        max_depth: Element nesting depth at which descent stops.
        skip_attributes: Attribute name -> marker text for back-references
            that are printed but never followed.
    """

    def __init__(
        self,
        sink: Callable[[str], None] = print,
        yield_hook: Optional[Callable[[], None]] = None,
        yield_every: int = 1,
        max_depth: int = DEFAULT_MAX_DEPTH,
        skip_attributes: Optional[Dict[str, str]] = None,
    ):
        self.sink = sink
        self.yield_hook = yield_hook
        self.yield_every = max(1, yield_every)
        self.max_depth = max_depth
        self.skip_attributes = (
            dict(DEFAULT_SKIP_ATTRIBUTES) if skip_attributes is None else dict(skip_attributes)
        )

    # -- drivers -----------------------------------------------------------

    def dump(self, node: Union[ObjectNode, CollectionNode]) -> int:
        """Write the hierarchy below *node* to the sink; returns elements visited."""
        visited = 0
        for item in self._walk(node, 0, {}, 0):
            if item is _YIELD_POINT:
                visited += 1
                if self.yield_hook is not None and visited % self.yield_every == 0:
                    self.yield_hook()
            else:
                self.sink(item)
        logger.debug(f"Hierarchy dump visited {visited} element(s)")
        return visited

    def lines(self, node: Union[ObjectNode, CollectionNode]) -> Iterator[str]:
        for item in self._walk(node, 0, {}, 0):
            if item is not _YIELD_POINT:
                yield item

    async def dump_async(self, node: Union[ObjectNode, CollectionNode]) -> int:
        """Like :meth:`dump` but hands control back to the event loop between elements."""
        visited = 0
        for item in self._walk(node, 0, {}, 0):
            if item is _YIELD_POINT:
                visited += 1
                if visited % self.yield_every == 0:
                    await asyncio.sleep(0)
            else:
                self.sink(item)
        return visited

    async def export_hierarchy(self, node: Union[ObjectNode, CollectionNode],
                               path: Union[str, Path]) -> int:
        """Write the dump to a text file; returns the number of lines written."""
        out_path = Path(path).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        async with aiofiles.open(out_path, "w", encoding="utf-8") as f:
            for item in self._walk(node, 0, {}, 0):
                if item is _YIELD_POINT:
                    await asyncio.sleep(0)
                    continue
                await f.write(item + "\n")
                count += 1
        logger.info(f"Hierarchy exported to {out_path} ({count} lines)")
        return count

    # -- traversal ---------------------------------------------------------

    def _walk(self, node: Any, indent: int, seen: Dict[Hashable, ObjectNode],
              depth: int) -> Iterator[Any]:
        if isinstance(node, ObjectNode):
            yield from self._walk_element(node, indent, seen, depth)
        elif isinstance(node, CollectionNode):
            yield from self._walk_entries(node.value, node, indent, seen, depth)

    def _walk_entries(self, data: Any, collection: CollectionNode, indent: int,
                      seen: Dict[Hashable, ObjectNode], depth: int) -> Iterator[Any]:
        # *data* is the raw collection already read for *collection*
        pad = " " * indent
        for key, raw in collection_items(data):
            path = collection.path + (key,)
            value = wrap_value(raw, collection.owner, collection.attribute, path)
            if isinstance(value, ObjectNode):
                if value.identity in seen:
                    yield f"{pad}[{key!r}]: <seen before>"
                else:
                    yield from self._walk_element(value, indent, seen, depth)
            elif isinstance(value, CollectionNode):
                yield from self._walk_entries(raw, value, indent, seen, depth)
            else:
                yield f"{pad}[{key!r}] = {value!r}"

    def _walk_element(self, node: ObjectNode, indent: int,
                      seen: Dict[Hashable, ObjectNode], depth: int) -> Iterator[Any]:
        if node.identity in seen:
            return
        seen[node.identity] = node

        role = node.role() or ""
        pad = " " * indent
        step = len(role) or 3
        inner = pad + " " * step
        yield f"{pad}{role}"

        if depth >= self.max_depth:
            yield f"{inner}<max depth {self.max_depth} reached>"
            yield _YIELD_POINT
            return

        for name in node.attribute_names():
            if name in self.skip_attributes:
                yield f"{inner}->{name}: {self.skip_attributes[name]}"
                continue
            try:
                raw = node.raw_attribute(name)
            except NodeAccessError as exc:
                yield f"{inner}->{name}: <error {exc}>"
                continue
            value = wrap_value(raw, node, name, ())

            if isinstance(value, ObjectNode):
                if value.identity in seen:
                    yield f"{inner}->{name}: <seen before>"
                else:
                    yield f"{inner}->{name}:"
                    yield from self._walk_element(value, indent + step, seen, depth + 1)
            elif isinstance(value, CollectionNode):
                if not raw or isinstance(raw, dict):
                    yield f"{inner}->{name} = {_inline(raw)}"
                else:
                    yield f"{inner}->{name} {{"
                    yield from self._walk_entries(raw, value, indent + step + len(name) + 6,
                                                  seen, depth + 1)
                    yield f"{inner}}}"
            else:
                yield f"{inner}->{name} = {value!r}"

        yield _YIELD_POINT


def dump_hierarchy(node: Union[ObjectNode, CollectionNode],
                   sink: Callable[[str], None] = print, **kwargs: Any) -> int:
    """Convenience wrapper around :meth:`HierarchyDumper.dump`."""
    return HierarchyDumper(sink=sink, **kwargs).dump(node)
