"""
macOS accessibility tree provider.

Wraps the ``ApplicationServices`` AXUIElement API (via pyobjc) behind the
:class:`~ax_nodes.TreeProvider` contract, and finds application elements to
browse (frontmost app through AppKit, by process name through psutil).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Hashable, List, Optional

import psutil

from ax_nodes import ROLE_ATTRIBUTE, NodeAccessError, ObjectNode, TreeProvider

# macOS accessibility bindings
try:
    from ApplicationServices import (
        AXIsProcessTrusted,
        AXUIElementCopyActionDescription,
        AXUIElementCopyActionNames,
        AXUIElementCopyAttributeNames,
        AXUIElementCopyAttributeValue,
        AXUIElementCopyParameterizedAttributeNames,
        AXUIElementCreateApplication,
        AXUIElementCreateSystemWide,
        AXUIElementGetTypeID,
        AXUIElementIsAttributeSettable,
        AXUIElementPerformAction,
        AXUIElementSetAttributeValue,
        AXValueGetTypeID,
    )
    from CoreFoundation import CFGetTypeID
    from Foundation import NSArray, NSDictionary
    _HAS_AX = True
except ImportError:
    _HAS_AX = False
    AXIsProcessTrusted = lambda: False  # type: ignore

try:
    from AppKit import NSWorkspace
    _HAS_APPKIT = True
except ImportError:
    _HAS_APPKIT = False

logger = logging.getLogger("ax_browser")

kAXErrorSuccess = 0
kAXErrorInvalidUIElement = -25202
kAXErrorCannotComplete = -25204
kAXErrorAttributeUnsupported = -25205
kAXErrorActionUnsupported = -25206
kAXErrorNotImplemented = -25208
kAXErrorNoValue = -25212

# Errors that mean "this element simply doesn't have that", not a failure
_EMPTY_RESULT_ERRORS = {kAXErrorNoValue}


class MacAXProvider(TreeProvider):
    """Tree provider backed by AXUIElement references."""

    def __init__(self):
        if not _HAS_AX:
            raise RuntimeError("ApplicationServices not available (macOS + pyobjc required).")

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _check(err: int, what: str) -> None:
        if err != kAXErrorSuccess:
            raise NodeAccessError(f"{what} failed (AXError {err})", code=err)

    def _convert(self, value: Any) -> Any:
        """Bridge Foundation containers and AXValue structs to Python values."""
        if value is None or isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, str):
            return str(value)
        if self.is_element(value):
            return value
        if isinstance(value, NSArray):
            return [self._convert(v) for v in value]
        if isinstance(value, NSDictionary):
            return {str(k): self._convert(v) for k, v in value.items()}
        try:
            if CFGetTypeID(value) == AXValueGetTypeID():
                return str(value)
        except TypeError:
            pass
        return value

    # -- TreeProvider ------------------------------------------------------

    def is_element(self, value: Any) -> bool:
        if value is None or isinstance(value, (str, bool, int, float, list, tuple, dict)):
            return False
        try:
            return CFGetTypeID(value) == AXUIElementGetTypeID()
        except TypeError:
            return False

    def identity_key(self, element: Any) -> Hashable:
        # AXUIElementRefs compare and hash through CFEqual / CFHash
        return element

    def list_attributes(self, element: Any) -> List[str]:
        err, names = AXUIElementCopyAttributeNames(element, None)
        if err in _EMPTY_RESULT_ERRORS:
            return []
        self._check(err, "AXUIElementCopyAttributeNames")
        return [str(n) for n in (names or [])]

    def read_attribute(self, element: Any, name: str) -> Any:
        err, value = AXUIElementCopyAttributeValue(element, name, None)
        if err in _EMPTY_RESULT_ERRORS:
            return None
        self._check(err, f"reading {name}")
        return self._convert(value)

    def is_attribute_writable(self, element: Any, name: str) -> bool:
        err, settable = AXUIElementIsAttributeSettable(element, name, None)
        self._check(err, f"checking {name} settable")
        return bool(settable)

    def write_attribute(self, element: Any, name: str, value: Any) -> None:
        self._check(AXUIElementSetAttributeValue(element, name, value), f"setting {name}")

    def list_actions(self, element: Any) -> List[str]:
        err, names = AXUIElementCopyActionNames(element, None)
        if err in _EMPTY_RESULT_ERRORS:
            return []
        self._check(err, "AXUIElementCopyActionNames")
        return [str(n) for n in (names or [])]

    def describe_action(self, element: Any, name: str) -> Optional[str]:
        err, description = AXUIElementCopyActionDescription(element, name, None)
        self._check(err, f"describing {name}")
        return str(description) if description else None

    def invoke_action(self, element: Any, name: str) -> None:
        self._check(AXUIElementPerformAction(element, name), f"performing {name}")

    def list_parameterized_actions(self, element: Any) -> List[str]:
        err, names = AXUIElementCopyParameterizedAttributeNames(element, None)
        if err in _EMPTY_RESULT_ERRORS:
            return []
        self._check(err, "AXUIElementCopyParameterizedAttributeNames")
        return [str(n) for n in (names or [])]

    def is_valid(self, element: Any) -> bool:
        err, _ = AXUIElementCopyAttributeValue(element, ROLE_ATTRIBUTE, None)
        return err != kAXErrorInvalidUIElement

    # -- roots -------------------------------------------------------------

    def application(self, pid: int) -> ObjectNode:
        return ObjectNode(self, AXUIElementCreateApplication(pid))

    def system_wide(self) -> ObjectNode:
        return ObjectNode(self, AXUIElementCreateSystemWide())

    def frontmost_application(self) -> Optional[ObjectNode]:
        pid = frontmost_pid()
        if pid is None:
            return None
        return self.application(pid)


def is_trusted() -> bool:
    """True when this process has been granted accessibility access."""
    return bool(AXIsProcessTrusted())


def frontmost_pid() -> Optional[int]:
    if not _HAS_APPKIT:
        return None
    app = NSWorkspace.sharedWorkspace().frontmostApplication()
    return int(app.processIdentifier()) if app is not None else None


def find_app_pids(query: str) -> List[int]:
    """PIDs whose process name contains *query* or whose executable path equals it."""
    lowered = query.lower()
    resolved = str(Path(query).expanduser().resolve()) if "/" in query else None
    pids: List[int] = []
    for proc in psutil.process_iter(["pid", "name", "exe"]):
        try:
            info = proc.info
            name = (info.get("name") or "").lower()
            exe = info.get("exe") or ""
            if lowered in name or (resolved and exe and str(Path(exe).resolve()) == resolved):
                pids.append(info["pid"])
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    logger.debug(f"find_app_pids({query!r}) -> {pids!r}")
    return sorted(pids)
