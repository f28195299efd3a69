import os
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QPushButton, QVBoxLayout, QLabel,
    QTreeWidget, QTreeWidgetItem
)
from PySide6.QtCore import Qt, Slot, QTimer

from core.tree_manager import TreeManager


class MainWindow(QMainWindow):
    """Checkbox tree over the workspace with totals and a merge button."""

    PATH_DATA_ROLE = Qt.ItemDataRole.UserRole + 0
    IS_DIR_ROLE = Qt.ItemDataRole.UserRole + 1

    def __init__(self, root_path, settings=None, manager=None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Code Combiner")
        self.manager = manager or TreeManager(root_path, settings, parent=self)
        self.tree_items = {}
        self._is_programmatically_updating = False
        self._refresh_pending = False

        self._setup_ui()
        self._connect_signals()
        self.manager.activate()
        self.refresh_view()

    def _setup_ui(self):
        central = QWidget(self)
        layout = QVBoxLayout(central)

        title = QLabel("Select Files to Merge")
        title.setStyleSheet("font-weight: bold;")

        self.tree_widget = QTreeWidget()
        self.tree_widget.setHeaderHidden(True)

        self.total_files_label = QLabel("Total Selected Files: 0")
        self.total_lines_label = QLabel("Total Lines of Selected Files: 0")
        self.combine_button = QPushButton("Combine and Copy to Clipboard")

        layout.addWidget(title)
        layout.addWidget(self.tree_widget)
        layout.addWidget(self.total_files_label)
        layout.addWidget(self.total_lines_label)
        layout.addWidget(self.combine_button)
        self.setCentralWidget(central)

    def _connect_signals(self):
        self.tree_widget.itemChanged.connect(self._handle_item_changed)
        self.tree_widget.itemExpanded.connect(self._handle_item_expanded)
        self.tree_widget.itemCollapsed.connect(self._handle_item_collapsed)
        self.combine_button.clicked.connect(self.combine_and_copy)
        self.manager.state_changed.connect(self._schedule_refresh)

    # --- Rendering ---

    @Slot()
    def _schedule_refresh(self):
        # Rebuilding the tree inside one of its own item signals is unsafe.
        if self._refresh_pending:
            return
        self._refresh_pending = True
        QTimer.singleShot(0, self.refresh_view)

    def refresh_view(self):
        self._refresh_pending = False
        self._is_programmatically_updating = True
        try:
            self.tree_widget.clear()
            self.tree_items.clear()
            parents = []
            for row in self.manager.visible_rows():
                del parents[row.depth:]
                parent = parents[-1] if parents else self.tree_widget
                item = QTreeWidgetItem(parent, [os.path.basename(row.path) or row.path])
                item.setData(0, self.PATH_DATA_ROLE, row.path)
                item.setData(0, self.IS_DIR_ROLE, row.is_folder)
                item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
                item.setCheckState(0, Qt.CheckState.Checked if row.checked else Qt.CheckState.Unchecked)
                self.tree_items[row.path] = item
                if row.is_folder:
                    item.setChildIndicatorPolicy(QTreeWidgetItem.ChildIndicatorPolicy.ShowIndicator)
                    parents.append(item)
                    item.setExpanded(row.expanded)
        finally:
            self._is_programmatically_updating = False
        self._update_totals()

    def _update_totals(self):
        self.total_files_label.setText(f"Total Selected Files: {self.manager.selected_file_count()}")
        self.total_lines_label.setText(f"Total Lines of Selected Files: {self.manager.selected_line_count()}")

    # --- Item events ---

    @Slot(QTreeWidgetItem, int)
    def _handle_item_changed(self, item, column):
        if column != 0 or self._is_programmatically_updating:
            return
        path = item.data(0, self.PATH_DATA_ROLE)
        checked = item.checkState(0) == Qt.CheckState.Checked
        if item.data(0, self.IS_DIR_ROLE):
            self.manager.toggle_folder(path, checked)
        else:
            self.manager.toggle_file(path, checked)

    @Slot(QTreeWidgetItem)
    def _handle_item_expanded(self, item):
        if not self._is_programmatically_updating:
            self.manager.set_expanded(item.data(0, self.PATH_DATA_ROLE), True)

    @Slot(QTreeWidgetItem)
    def _handle_item_collapsed(self, item):
        if not self._is_programmatically_updating:
            self.manager.set_expanded(item.data(0, self.PATH_DATA_ROLE), False)

    # --- Merge ---

    @Slot()
    def combine_and_copy(self):
        result, copied = self.manager.combine_and_copy()
        if result.nothing_selected:
            self.statusBar().showMessage("No files selected.", 3000)
        elif result.file_count == 0:
            self.statusBar().showMessage(f"None of the selected files could be read ({len(result.errors)}).", 3000)
        elif copied:
            self.statusBar().showMessage(
                f"Copied {result.file_count} files ({result.line_count} lines) to clipboard.", 3000)
        else:
            self.statusBar().showMessage("Could not copy merged content to clipboard.", 3000)
        return result

    def closeEvent(self, event):
        """Flush selection state before the window goes away."""
        print("[WINDOW] 🚪 Closing, saving selection state...")
        self.manager.deactivate()
        event.accept()
