# git_graph_data.py

from datetime import datetime
from typing import NamedTuple, Optional


class CommitSignature(NamedTuple):
    name: str
    email: str
    when: Optional[datetime] = None

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class Segment:
    """A run of commits drawn in one lane.

    `start` is the newest commit of the run and `end` the oldest one; both are
    filled in once rows are known.
    """

    __slots__ = ("identifier", "start", "end")

    def __init__(self, identifier: int):
        self.identifier: int = identifier
        self.start: Optional[str] = None
        self.end: Optional[str] = None

    def __repr__(self) -> str:
        return f"Segment({self.identifier}, start={_short(self.start)}, end={_short(self.end)})"


class WorkingNode:
    """Mutable per-commit state used while the layout is computed.

    Parent and child links are row indices into the list of working nodes.
    """

    __slots__ = (
        "sha",
        "parent_shas",
        "topological_order",
        "row",
        "column",
        "parent0",
        "parent1",
        "children",
        "lines",
        "hidden",
        "message",
        "message_short",
        "author",
        "committer",
    )

    def __init__(self, sha: str, parent_shas: list[str], topological_order: int, details: dict):
        self.sha: str = sha
        self.parent_shas: list[str] = parent_shas
        self.topological_order: int = topological_order
        self.row: int = -1
        self.column: int = -1
        self.parent0: Optional[int] = None
        self.parent1: Optional[int] = None
        self.children: list[int] = []
        self.lines: set[int] = set()
        self.hidden: bool = False
        self.message: str = details.get("message", "")
        self.message_short: str = details.get("message_short", "")
        self.author: Optional[CommitSignature] = details.get("author")
        self.committer: Optional[CommitSignature] = details.get("committer")

    def __repr__(self) -> str:
        return f"WorkingNode(sha='{_short(self.sha)}', row={self.row}, column={self.column})"


class GraphNode:
    """A laid out commit, as handed to renderers.

    All nodes of one layout share `table`, which is indexed by row and also
    holds hidden nodes, so parent links from a visible node into filtered
    history still resolve.
    """

    __slots__ = (
        "_table",
        "_row",
        "_column",
        "_sha",
        "_message",
        "_message_short",
        "_author",
        "_committer",
        "_lines",
        "_hidden",
        "_parent0_row",
        "_parent1_row",
        "_children_rows",
    )

    def __init__(self, table: list["GraphNode"], working_node: WorkingNode):
        self._table = table
        self._row = working_node.row
        self._column = working_node.column
        self._sha = working_node.sha
        self._message = working_node.message
        self._message_short = working_node.message_short
        self._author = working_node.author
        self._committer = working_node.committer
        self._lines = tuple(sorted(working_node.lines))
        self._hidden = working_node.hidden
        self._parent0_row = working_node.parent0
        self._parent1_row = working_node.parent1
        self._children_rows = tuple(working_node.children)

    @property
    def row(self) -> int:
        return self._row

    @property
    def column(self) -> int:
        return self._column

    @property
    def sha(self) -> str:
        return self._sha

    @property
    def message(self) -> str:
        return self._message

    @property
    def message_short(self) -> str:
        return self._message_short

    @property
    def author(self) -> Optional[CommitSignature]:
        return self._author

    @property
    def committer(self) -> Optional[CommitSignature]:
        return self._committer

    @property
    def lines(self) -> tuple[int, ...]:
        """Lanes drawn as vertical lines through this row, ascending."""
        return self._lines

    @property
    def hidden(self) -> bool:
        return self._hidden

    @property
    def parent0(self) -> Optional["GraphNode"]:
        if self._parent0_row is None:
            return None
        return self._table[self._parent0_row]

    @property
    def parent1(self) -> Optional["GraphNode"]:
        if self._parent1_row is None:
            return None
        return self._table[self._parent1_row]

    @property
    def parents(self) -> list["GraphNode"]:
        return [p for p in (self.parent0, self.parent1) if p is not None]

    @property
    def children(self) -> tuple["GraphNode", ...]:
        return tuple(self._table[row] for row in self._children_rows)

    def __str__(self) -> str:
        return self._message_short

    def __repr__(self) -> str:
        return (
            f"GraphNode(sha='{_short(self._sha)}', "
            f"row={self._row}, column={self._column}, "
            f"lines={list(self._lines)}, "
            f"parents={[_short(p.sha) for p in self.parents]}, "
            f"message='{self._message_short[:20]}')"
        )


def _short(sha: Optional[str]) -> Optional[str]:
    return sha[:7] if sha else sha
