"""
AX Browser version.

Read by ``gui.constants`` (window titles, ``--version``) and kept in step
with ``version`` in pyproject.toml.
"""

VERSION_MAJOR = 0
VERSION_MINOR = 3
VERSION_PATCH = 0

__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
