"""
Searchable pick-one chooser window used by the browse session.
"""
import sys
from typing import List, Optional, Sequence

from PyQt6.QtCore import QEvent, Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QApplication, QWidget, QVBoxLayout, QLabel, QLineEdit,
    QListWidget, QListWidgetItem,
)

from ax_browse import Choice
from gui.constants import logger

# Qt reports the Command key as ControlModifier on macOS
_MODIFIER_FLAGS = {
    "cmd": Qt.KeyboardModifier.ControlModifier,
    "ctrl": (Qt.KeyboardModifier.MetaModifier if sys.platform == "darwin"
             else Qt.KeyboardModifier.ControlModifier),
    "alt": Qt.KeyboardModifier.AltModifier,
    "shift": Qt.KeyboardModifier.ShiftModifier,
}


def modifier_held(name: str = "cmd") -> bool:
    """True if the named modifier key is down right now."""
    flag = _MODIFIER_FLAGS.get(name, Qt.KeyboardModifier.ControlModifier)
    return bool(QApplication.keyboardModifiers() & flag)


class ChooserWindow(QWidget):
    """Floating chooser with a title/path header.

    Emits ``selected`` exactly once per :meth:`post`: with the chosen
    :class:`~ax_browse.Choice`, or ``None`` when dismissed.
    """

    selected = pyqtSignal(object)

    def __init__(self, search_sub_text: bool = True, parent=None):
        super().__init__(parent, Qt.WindowType.Tool | Qt.WindowType.WindowStaysOnTopHint)
        self.setWindowTitle("Chooser")
        self.setMinimumSize(640, 420)
        self._search_sub_text = search_sub_text
        self._choices: List[Choice] = []
        self._pending = False

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(4)

        self._title_label = QLabel("")
        self._title_label.setObjectName("chooser_title")
        self._title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._title_label)

        self._status_label = QLabel("")
        self._status_label.setObjectName("chooser_path")
        self._status_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        layout.addWidget(self._status_label)

        self._query = QLineEdit()
        self._query.setPlaceholderText("Filter choices…")
        self._query.setClearButtonEnabled(True)
        self._query.textChanged.connect(self._apply_filter)
        self._query.installEventFilter(self)
        layout.addWidget(self._query)

        self._list = QListWidget()
        self._list.setAlternatingRowColors(True)
        self._list.itemActivated.connect(self._on_item_activated)
        layout.addWidget(self._list, stretch=1)

    # ------------------------------------------------------------------
    # SelectionUI
    # ------------------------------------------------------------------

    def post(self, choices: Sequence[Choice], preselected_index: int = 0) -> None:
        self._choices = list(choices)
        self._list.clear()
        for idx, choice in enumerate(self._choices):
            item = QListWidgetItem(
                f"{choice.text}\n    {choice.sub_text}" if choice.sub_text else choice.text
            )
            item.setData(Qt.ItemDataRole.UserRole, idx)
            item.setToolTip(choice.sub_text)
            self._list.addItem(item)
        self._query.blockSignals(True)
        self._query.clear()
        self._query.blockSignals(False)
        if self._choices:
            self._list.setCurrentRow(min(max(preselected_index, 0), len(self._choices) - 1))
        self._pending = True
        self.show()
        self.raise_()
        self.activateWindow()
        self._query.setFocus()

    def is_currently_shown(self) -> bool:
        return self.isVisible()

    def dismiss(self) -> None:
        self.hide()
        self._finish(None)

    def set_status(self, text: str, error: bool = False) -> None:
        self._status_label.setProperty("path_state", "error" if error else "ok")
        self._status_label.style().unpolish(self._status_label)
        self._status_label.style().polish(self._status_label)
        metrics = self._status_label.fontMetrics()
        width = max(self._status_label.width(), self.minimumWidth()) - 16
        self._status_label.setText(metrics.elidedText(text, Qt.TextElideMode.ElideLeft, width))
        self._status_label.setToolTip(text)

    def set_title(self, text: str) -> None:
        self._title_label.setText(text)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(self, choice: Optional[Choice]) -> None:
        if not self._pending:
            return
        self._pending = False
        logger.debug(f"Chooser: selected {choice.text if choice else None!r}")
        self.selected.emit(choice)

    def _apply_filter(self, text: str) -> None:
        needle = text.strip().lower()
        first_visible = None
        for row in range(self._list.count()):
            item = self._list.item(row)
            choice = self._choices[item.data(Qt.ItemDataRole.UserRole)]
            haystack = choice.text.lower()
            if self._search_sub_text:
                haystack += " " + choice.sub_text.lower()
            hidden = bool(needle) and needle not in haystack
            item.setHidden(hidden)
            if not hidden and first_visible is None:
                first_visible = row
        if first_visible is not None:
            self._list.setCurrentRow(first_visible)

    def _on_item_activated(self, item: QListWidgetItem) -> None:
        choice = self._choices[item.data(Qt.ItemDataRole.UserRole)]
        self.hide()
        self._finish(choice)

    def eventFilter(self, obj, event):
        # Arrow keys and Return in the filter box drive the list
        if obj is self._query and event.type() == QEvent.Type.KeyPress:
            key = event.key()
            if key == Qt.Key.Key_Escape:
                self.dismiss()
                return True
            if key in (Qt.Key.Key_Up, Qt.Key.Key_Down):
                self._list.keyPressEvent(event)
                return True
            if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
                item = self._list.currentItem()
                if item is not None and not item.isHidden():
                    self._on_item_activated(item)
                return True
        return super().eventFilter(obj, event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape:
            self.dismiss()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event):
        self._finish(None)
        super().closeEvent(event)
