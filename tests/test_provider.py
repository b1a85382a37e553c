"""Tests for the platform-independent parts of the macOS provider module."""
import sys

import psutil
import pytest

import ax_provider
from ax_provider import MacAXProvider, find_app_pids


class FakeProcess:
    def __init__(self, pid, name, exe=None, error=None):
        self._info = {"pid": pid, "name": name, "exe": exe}
        self._error = error

    @property
    def info(self):
        if self._error is not None:
            raise self._error
        return self._info


@pytest.fixture
def processes(monkeypatch):
    procs = [
        FakeProcess(40, "Safari", "/Applications/Safari.app/Contents/MacOS/Safari"),
        FakeProcess(12, "SafariBookmarksSyncAgent"),
        FakeProcess(7, "Finder", "/System/Library/CoreServices/Finder.app/Contents/MacOS/Finder"),
        FakeProcess(99, "ghost", error=psutil.NoSuchProcess(99)),
    ]
    monkeypatch.setattr(ax_provider.psutil, "process_iter", lambda attrs=None: iter(procs))
    return procs


def test_find_by_name_substring(processes):
    assert find_app_pids("safari") == [12, 40]


def test_find_by_executable_path(processes):
    assert find_app_pids("/System/Library/CoreServices/Finder.app/Contents/MacOS/Finder") == [7]


def test_find_nothing(processes):
    assert find_app_pids("Mail") == []


@pytest.mark.skipif(sys.platform == "darwin", reason="bindings exist on macOS")
def test_provider_requires_accessibility_bindings():
    with pytest.raises(RuntimeError):
        MacAXProvider()
    assert ax_provider.is_trusted() is False
    assert ax_provider.frontmost_pid() is None
