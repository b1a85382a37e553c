"""
AX Browser GUI package.

PyQt6 chooser and console windows that host a browse session over the
macOS accessibility tree, plus the shared constants, config and logging
setup. The application entry point is ``browse_app.main``.
"""
