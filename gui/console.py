"""
Console window: shows recorded access paths and dump output, and starts
browse sessions and hierarchy dumps.
"""
from pathlib import Path
from typing import Optional

from PyQt6.QtGui import QFont, QKeySequence, QShortcut
from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QTextEdit, QFileDialog,
)

from ax_browse import BrowseSession
from ax_hierarchy import HierarchyDumper
from ax_nodes import ObjectNode
from ax_provider import MacAXProvider
from gui.chooser import ChooserWindow, modifier_held
from gui.constants import APP_NAME, APP_VERSION, DEFAULT_DUMP_DIR, BrowserConfig, logger
from gui.styles import get_application_stylesheet
from gui.workers import HierarchyDumpWorker


class BrowserConsoleWindow(QMainWindow):
    """Main window owning the provider, chooser and browse session."""

    def __init__(self, provider: MacAXProvider, config: BrowserConfig, parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"{APP_NAME} {APP_VERSION}")
        self.setMinimumSize(720, 480)

        self._provider = provider
        self._config = config
        self._dump_worker: Optional[HierarchyDumpWorker] = None
        self._last_app: Optional[ObjectNode] = None

        self._chooser = ChooserWindow(search_sub_text=config.search_sub_text)
        self._session = BrowseSession(
            ui=self._chooser,
            modifier_held=lambda: modifier_held(config.modifier),
            sink=self.append_line,
            default_root=provider.frontmost_application,
            root_token=config.root_token,
            modifier_label=config.modifier_label,
            debug=config.debug,
        )
        self._chooser.selected.connect(self._session.on_selection)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        hint = QLabel(
            "Browse an application's accessibility tree. Each selection prints the "
            "access path here; replace the leading "
            f"“{config.root_token}” with the element you started from."
        )
        hint.setObjectName("secondary_label")
        hint.setWordWrap(True)
        layout.addWidget(hint)

        self._console = QTextEdit()
        self._console.setReadOnly(True)
        self._console.setFont(QFont("Menlo", 11))
        layout.addWidget(self._console, stretch=1)

        btn_row = QHBoxLayout()
        btn_row.setSpacing(8)

        self._browse_btn = QPushButton("Browse")
        self._browse_btn.setToolTip("Resume where you left off (or start on the frontmost app)")
        self._browse_btn.clicked.connect(lambda: self.browse())
        btn_row.addWidget(self._browse_btn)

        self._frontmost_btn = QPushButton("Browse Frontmost")
        self._frontmost_btn.clicked.connect(self.browse_frontmost)
        btn_row.addWidget(self._frontmost_btn)

        self._dump_btn = QPushButton("Dump Hierarchy")
        self._dump_btn.setToolTip("Print the current element's hierarchy to this console")
        self._dump_btn.clicked.connect(self._on_dump)
        btn_row.addWidget(self._dump_btn)

        self._export_btn = QPushButton("Export Hierarchy…")
        self._export_btn.clicked.connect(self._on_export)
        btn_row.addWidget(self._export_btn)

        btn_row.addStretch()

        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self._console.clear)
        btn_row.addWidget(clear_btn)
        layout.addLayout(btn_row)

        self._status = QLabel("")
        self._status.setObjectName("dialog_status")
        layout.addWidget(self._status)

        QShortcut(QKeySequence("Ctrl+B"), self, activated=lambda: self.browse())
        self._apply_theme()

    def _is_dark_mode(self) -> bool:
        """Determine if dark mode should be used based on theme setting."""
        if self._config.theme == "dark":
            return True
        elif self._config.theme == "light":
            return False
        else:  # "system"
            palette = QApplication.palette()
            return palette.window().color().lightness() < 128

    def _apply_theme(self) -> None:
        app = QApplication.instance()
        if app is not None:
            app.setStyleSheet(get_application_stylesheet(self._is_dark_mode()))

    # ------------------------------------------------------------------
    # Browsing
    # ------------------------------------------------------------------

    def append_line(self, text: str) -> None:
        self._console.append(text)

    def browse(self, root: Optional[ObjectNode] = None) -> None:
        """Start on *root*, or toggle / resume the last session."""
        if root is not None:
            self._last_app = root
        self._session.browse(root)
        self._update_title()

    def browse_frontmost(self) -> None:
        app = self._provider.frontmost_application()
        if app is None:
            self._status.setText("No frontmost application found.")
            return
        if self._last_app is not None and app == self._last_app:
            self.browse()  # same app: continue from where we left off
        else:
            self.browse(app)

    def _update_title(self) -> None:
        context = self._session.context_root
        title = context.safe_attribute("AXTitle") if context is not None else None
        self._chooser.set_title(str(title) if title else "")

    def _current_node(self) -> Optional[ObjectNode]:
        frames = self._session.stack.frames
        if frames:
            return frames[-1].element
        return self._provider.frontmost_application()

    # ------------------------------------------------------------------
    # Dumps
    # ------------------------------------------------------------------

    def _on_dump(self) -> None:
        node = self._current_node()
        if node is None:
            self._status.setText("Nothing to dump.")
            return
        # Runs on the UI thread; processEvents keeps the window responsive
        dumper = HierarchyDumper(
            sink=self.append_line,
            yield_hook=QApplication.processEvents,
            yield_every=self._config.dump_yield_every,
            max_depth=self._config.dump_max_depth,
            skip_attributes=self._config.skip_attribute_markers(),
        )
        self._dump_btn.setEnabled(False)
        try:
            visited = dumper.dump(node)
        except Exception as exc:
            logger.error(f"Hierarchy dump failed: {exc}")
            self._status.setText(f"Dump failed: {exc}")
        else:
            self._status.setText(f"Dumped {visited} element(s).")
        finally:
            self._dump_btn.setEnabled(True)

    def _on_export(self) -> None:
        node = self._current_node()
        if node is None:
            self._status.setText("Nothing to export.")
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Export Hierarchy", str(DEFAULT_DUMP_DIR / "hierarchy.txt"),
            "Text files (*.txt);;All files (*)",
        )
        if not path:
            return
        self._export_btn.setEnabled(False)
        self._status.setText("Exporting…")
        self._dump_worker = HierarchyDumpWorker(
            node,
            output_path=Path(path),
            max_depth=self._config.dump_max_depth,
            skip_attributes=self._config.skip_attribute_markers(),
            parent=self,
        )
        self._dump_worker.dump_finished.connect(self._on_export_finished)
        self._dump_worker.error.connect(self._on_export_error)
        self._dump_worker.start()

    def _on_export_finished(self, count: int, path: str) -> None:
        self._export_btn.setEnabled(True)
        self._status.setText(f"Exported {count} line(s) to {path}")

    def _on_export_error(self, message: str) -> None:
        self._export_btn.setEnabled(True)
        self._status.setText(f"Export failed: {message}")

    def closeEvent(self, event):
        self._chooser.close()
        if self._dump_worker is not None and self._dump_worker.isRunning():
            self._dump_worker.wait(2000)
        super().closeEvent(event)
