# git_graph_items.py

from typing import NamedTuple, Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainterPath, QPen
from PyQt6.QtWidgets import QGraphicsItem, QGraphicsTextItem

from git_graph_data import GraphNode

# --- Configuration for items ---
EDGE_THICKNESS = 1.5

# Colors (can be expanded and made configurable)
COLOR_PALETTE = [
    QColor("#1f77b4"),
    QColor("#ff7f0e"),
    QColor("#2ca02c"),
    QColor("#d62728"),
    QColor("#9467bd"),
    QColor("#8c564b"),
    QColor("#e377c2"),
    QColor("#7f7f7f"),
    QColor("#bcbd22"),
    QColor("#17becf"),
]
SELECTED_ROW_COLOR = QColor("#fff3b0")
HOVER_ROW_COLOR = QColor("#eeeeee")

# Configuration for CommitMessageItem
COMMIT_MSG_MAX_LENGTH = 60
COMMIT_MSG_COLOR = QColor("#444444")  # Dark gray for commit messages
COMMIT_MSG_FONT_FAMILY = "Arial"
COMMIT_MSG_FONT_SIZE = 9


def lane_color(lane: int) -> QColor:
    return COLOR_PALETTE[lane % len(COLOR_PALETTE)]


class RowStroke(NamedTuple):
    """
    One piece of graph drawn inside a single row, in lane units.

    kind:
        "through"   vertical line over the whole row height in `lane`
        "up"        from the commit centre to the top of the row
        "down"      from the commit centre to the bottom of the row
        "to_parent" horizontal from the commit to `target_lane`, curving down
        "to_child"  horizontal from the commit to `target_lane`, curving up
    """

    kind: str
    lane: int
    target_lane: int
    color_lane: int


def compute_row_strokes(node: GraphNode) -> list[RowStroke]:
    strokes: list[RowStroke] = []

    def add(stroke: RowStroke):
        if stroke not in strokes:
            strokes.append(stroke)

    # A commit with several children draws the curves towards them, otherwise
    # the child draws the connection from its own row.
    children = node.children
    if len(children) >= 2:
        for child in children:
            if not _child_connected_by_line(node, child):
                add(RowStroke("to_child", node.column, child.column, child.column))
    elif node.parent0 is None:
        add(RowStroke("up", node.column, node.column, node.column))

    for parent in node.parents:
        if _parent_connected_by_line(node, parent):
            add(RowStroke("down", node.column, node.column, node.column))
        else:
            add(RowStroke("to_parent", node.column, parent.column, parent.column))

    for lane in node.lines:
        add(RowStroke("through", lane, lane, lane))

    return strokes


def _child_connected_by_line(node: GraphNode, child: GraphNode) -> bool:
    if child.column == node.column or node.row + 1 == child.row:
        return True
    for other in (child.parent0, child.parent1):
        if other is not None and other is not node and other.column == child.column:
            return True
    return False


def _parent_connected_by_line(node: GraphNode, parent: GraphNode) -> bool:
    if parent.column == node.column:
        return True
    if len(parent.children) < 2:
        return False
    if node.row + 1 == parent.row:
        return True
    for child in parent.children:
        if child.column == parent.column and child.row > node.row:
            return True
    if node.parent0 is not None and node.parent1 is not None:
        return node.parent0.column != node.column and node.parent1.column != node.column
    return False


class CommitRowItem(QGraphicsItem):
    """Draws the graph part of one row: running lines, connectors and the commit dot."""

    def __init__(
        self,
        node: GraphNode,
        lane_width: float,
        row_height: float,
        commit_radius: float,
        width: Optional[float] = None,
        parent: QGraphicsItem = None,
    ):
        super().__init__(parent)
        self.node = node
        self.lane_width = lane_width
        self.row_height = row_height
        self.commit_radius = commit_radius
        self.strokes = compute_row_strokes(node)
        lanes = [node.column] + [s.target_lane for s in self.strokes] + [s.lane for s in self.strokes]
        self.width = width if width is not None else (max(lanes) + 1) * lane_width
        self.hovered = False

        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable, True)
        self.setAcceptHoverEvents(True)

        author = node.author
        when = author.when.strftime("%Y-%m-%d %H:%M:%S") if author and author.when else ""
        self.setToolTip(
            f"SHA: {node.sha}\n"
            f"Author: {author if author else ''}\n"
            f"Date: {when}\n"
            f"Message: {node.message_short}"
        )

    def lane_x(self, lane: int) -> float:
        return lane * self.lane_width + self.lane_width / 2.0

    def boundingRect(self) -> QRectF:
        return QRectF(0, 0, self.width, self.row_height)

    def stroke_path(self, stroke: RowStroke) -> QPainterPath:
        top = 0.0
        bottom = self.row_height
        mid_y = self.row_height / 2.0
        x = self.lane_x(stroke.lane)
        target_x = self.lane_x(stroke.target_lane)
        curve = min(self.row_height / 2.0, abs(target_x - x))
        direction = 1 if target_x > x else -1

        path = QPainterPath()
        if stroke.kind == "through":
            path.moveTo(x, top)
            path.lineTo(x, bottom)
        elif stroke.kind == "up":
            path.moveTo(x, mid_y)
            path.lineTo(x, top)
        elif stroke.kind == "down":
            path.moveTo(x, mid_y)
            path.lineTo(x, bottom)
        else:
            end_y = bottom if stroke.kind == "to_parent" else top
            path.moveTo(x, mid_y)
            path.lineTo(target_x - direction * curve, mid_y)
            path.quadTo(QPointF(target_x, mid_y), QPointF(target_x, end_y))
        return path

    def paint(self, painter, option, widget=None):
        if self.isSelected() or self.hovered:
            color = SELECTED_ROW_COLOR if self.isSelected() else HOVER_ROW_COLOR
            painter.fillRect(self.boundingRect(), color)

        painter.setBrush(Qt.BrushStyle.NoBrush)
        for stroke in self.strokes:
            painter.setPen(
                QPen(
                    lane_color(stroke.color_lane),
                    EDGE_THICKNESS,
                    Qt.PenStyle.SolidLine,
                    Qt.PenCapStyle.RoundCap,
                    Qt.PenJoinStyle.RoundJoin,
                )
            )
            painter.drawPath(self.stroke_path(stroke))

        color = lane_color(self.node.column)
        painter.setPen(QPen(color, 1))
        painter.setBrush(QBrush(color))
        center = QPointF(self.lane_x(self.node.column), self.row_height / 2.0)
        painter.drawEllipse(center, self.commit_radius, self.commit_radius)

    def hoverEnterEvent(self, event):
        self.hovered = True
        self.update()
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event):
        self.hovered = False
        self.update()
        super().hoverLeaveEvent(event)


class CommitMessageItem(QGraphicsTextItem):
    def __init__(self, node: GraphNode, parent: QGraphicsItem = None):
        super().__init__(parent)

        full_message = node.message_short

        # Truncate message for display
        if len(full_message) > COMMIT_MSG_MAX_LENGTH:
            display_text = full_message[: COMMIT_MSG_MAX_LENGTH - 3] + "..."
        else:
            display_text = full_message

        self.setPlainText(display_text)

        font = QFont(COMMIT_MSG_FONT_FAMILY, COMMIT_MSG_FONT_SIZE)
        self.setFont(font)
        self.setDefaultTextColor(COMMIT_MSG_COLOR)

        # Basic tooltip showing the full message if it was truncated
        if display_text != full_message:
            self.setToolTip(f"Full message: {full_message}")
