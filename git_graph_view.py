# git_graph_view.py

import logging
from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QAction, QPainter
from PyQt6.QtWidgets import QApplication, QGraphicsScene, QGraphicsView, QMenu

from git_graph_data import GraphNode
from git_graph_items import CommitMessageItem, CommitRowItem
from settings import settings
from threads import GraphLayoutRunner


class GitGraphView(QGraphicsView):
    commit_item_clicked = pyqtSignal(str)
    graph_loaded = pyqtSignal(int)  # number of rows shown
    graph_failed = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.scene = QGraphicsScene(self)
        self.setScene(self.scene)

        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)  # Enable panning
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)  # Zoom towards mouse

        self._row_items: dict[str, CommitRowItem] = {}
        self._message_items: list[CommitMessageItem] = []
        self._nodes: list[GraphNode] = []

        self._zoom_factor_base = 1.1  # Base factor for zooming

        self._runner = GraphLayoutRunner(self)
        self._runner.graph_ready.connect(self.populate_graph)
        self._runner.graph_failed.connect(self._on_layout_failed)

        # Set context menu policy
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)

    @property
    def nodes(self) -> list[GraphNode]:
        return self._nodes

    def row_item(self, sha: str) -> Optional[CommitRowItem]:
        return self._row_items.get(sha)

    def selected_sha(self) -> Optional[str]:
        for item in self.scene.selectedItems():
            if isinstance(item, CommitRowItem):
                return item.node.sha
        return None

    def select_sha(self, sha: str) -> bool:
        item = self._row_items.get(sha)
        if item is None:
            return False
        self.scene.clearSelection()
        item.setSelected(True)
        return True

    def clear_graph(self):
        self.scene.clear()
        self._row_items.clear()
        self._message_items.clear()
        self._nodes = []

    def populate_graph(self, nodes: list[GraphNode]):
        """Replaces the scene with `nodes`; the previously selected commit stays selected if still shown."""
        selected = self.selected_sha()
        self.clear_graph()
        self._nodes = list(nodes)

        if not nodes:
            self.graph_loaded.emit(0)
            return

        lane_width = settings.get_lane_width()
        row_height = settings.get_row_height()
        commit_radius = settings.get_commit_radius()
        lane_count = max(max((n.column for n in nodes), default=0), max((max(n.lines, default=0) for n in nodes)))
        graph_width = max((lane_count + 1) * lane_width, settings.get_column_width("graph"))

        for node in nodes:
            # rows are not renumbered when a path filter hides commits
            y = node.row * row_height

            row_item = CommitRowItem(node, lane_width, row_height, commit_radius, width=graph_width)
            row_item.setPos(0, y)
            self.scene.addItem(row_item)
            self._row_items[node.sha] = row_item

            message_item = CommitMessageItem(node)
            message_item.setPos(graph_width, y + (row_height - message_item.boundingRect().height()) / 2)
            self.scene.addItem(message_item)
            self._message_items.append(message_item)

        if selected is not None:
            self.select_sha(selected)

        # Adjust scene rect after all items are added and positioned
        self.scene.setSceneRect(self.scene.itemsBoundingRect().adjusted(0, 0, 50, 50))
        self.graph_loaded.emit(len(nodes))

    def load_repository(self, git_manager, branch: Optional[str] = None, path: Optional[str] = None) -> int:
        """Lays out the branch in the background and shows it when done."""
        return self._runner.request(git_manager, branch, path)

    def _on_layout_failed(self, message: str):
        # a partial graph would be misleading
        logging.error(f"无法显示提交图：{message}")
        self.clear_graph()
        self.graph_failed.emit(message)

    def wheelEvent(self, event):
        """Handle mouse wheel events for zooming."""
        # Check if Ctrl is pressed for zooming, otherwise default scroll behavior
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoom_in()
            else:
                self.zoom_out()
            event.accept()  # Indicate that the event has been handled
        else:
            super().wheelEvent(event)  # Default behavior (scrolling)

    def zoom_in(self):
        self.scale(self._zoom_factor_base, self._zoom_factor_base)

    def zoom_out(self):
        self.scale(1.0 / self._zoom_factor_base, 1.0 / self._zoom_factor_base)

    def keyPressEvent(self, event):
        """Handle key presses for zooming or other actions."""
        if event.key() == Qt.Key.Key_Plus or event.key() == Qt.Key.Key_Equal:
            if event.modifiers() & Qt.KeyboardModifier.ControlModifier:  # Ctrl + / Ctrl =
                self.zoom_in()
        elif event.key() == Qt.Key.Key_Minus:
            if event.modifiers() & Qt.KeyboardModifier.ControlModifier:  # Ctrl -
                self.zoom_out()
        else:
            super().keyPressEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            item = self.itemAt(event.pos())
            if isinstance(item, CommitRowItem):
                self.commit_item_clicked.emit(item.node.sha)
        super().mousePressEvent(event)  # Call super for other event processing (like panning)

    def _show_context_menu(self, pos):
        """Show context menu for right-click on a commit row."""
        scene_pos = self.mapToScene(pos)
        item = self.scene.itemAt(scene_pos, self.transform())

        if isinstance(item, CommitRowItem):
            menu = QMenu(self)

            # Add "Copy Commit" action
            copy_action = QAction("Copy Commit", self)
            copy_action.triggered.connect(lambda: self._copy_commit_sha(item.node.sha))
            menu.addAction(copy_action)

            # Show menu at cursor position
            menu.exec(self.viewport().mapToGlobal(pos))

    def _copy_commit_sha(self, sha):
        """Copy commit SHA to clipboard."""
        clipboard = QApplication.clipboard()
        clipboard.setText(sha)
