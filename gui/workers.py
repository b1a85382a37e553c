"""
Background QThread worker for hierarchy exports.
"""
import asyncio
from pathlib import Path
from typing import Dict, Optional

from PyQt6.QtCore import QThread, pyqtSignal

from ax_hierarchy import DEFAULT_MAX_DEPTH, HierarchyDumper
from ax_nodes import Node
from gui.constants import logger


class HierarchyDumpWorker(QThread):
    """Export an element hierarchy to a text file off the UI thread.

    Runs on its own thread, so the dumper gets no cooperative yield hook.
    """

    dump_finished = pyqtSignal(int, str)  # (lines written, output path)
    error = pyqtSignal(str)

    def __init__(
        self,
        node: Node,
        output_path: Path,
        max_depth: int = DEFAULT_MAX_DEPTH,
        skip_attributes: Optional[Dict[str, str]] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.node = node
        self.output_path = output_path
        self.max_depth = max_depth
        self.skip_attributes = skip_attributes

    def run(self):
        try:
            dumper = HierarchyDumper(
                max_depth=self.max_depth,
                skip_attributes=self.skip_attributes,
            )
            logger.info(f"Hierarchy export started: {self.output_path}")
            count = asyncio.run(dumper.export_hierarchy(self.node, self.output_path))
            self.dump_finished.emit(count, str(self.output_path))
        except Exception as exc:
            logger.error(f"Hierarchy export failed: {exc}")
            self.error.emit(str(exc))
