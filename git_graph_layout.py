# git_graph_layout.py

import itertools
import logging
from typing import Optional

from git_graph_data import GraphNode, Segment, WorkingNode
from utils import timeit


class GraphLayoutError(Exception):
    pass


class UnsupportedTopologyError(GraphLayoutError):
    """A commit has more parents than the layout can draw."""


class InternalInvariantError(GraphLayoutError):
    """Lane bookkeeping ended up in a state the algorithm never produces."""


@timeit
def calculate_commit_graph(provider, tip, path: Optional[str] = None) -> list[GraphNode]:
    """
    Lays out the history reachable from `tip`.

    `provider` answers the repository queries (see GitManager): get_sha,
    get_parents, get_commit_details and, when `path` is given,
    get_tree_entry_names and get_changed_paths.

    Returns GraphNodes newest first. Every reachable commit gets a row and a
    column; commits that do not touch `path` are left out of the returned list
    but keep their row, so rows may have gaps when a filter is active.
    """
    nodes, segments = _walk_commits(provider, tip, path)
    drawn_nodes = _assign_rows(nodes, segments)
    _link_parents(drawn_nodes)
    _assign_columns(drawn_nodes, segments)
    graph = _build_graph(drawn_nodes)

    logging.debug(
        "Graph layout: %d commits, %d shown, %d lanes",
        len(drawn_nodes),
        len(graph),
        max((n.column for n in drawn_nodes), default=-1) + 1,
    )
    return graph


def _walk_commits(provider, tip, path: Optional[str]) -> tuple[list[WorkingNode], dict[str, Segment]]:
    """Depth first walk from the tip.

    Each commit is pushed once to descend into its parents and again to be
    finalized, so a node is only created after everything below it on the
    current path. The creation index is the topological order.
    """
    segment_ids = itertools.count()
    visited: set[str] = set()
    nodes: list[WorkingNode] = []
    segments: dict[str, Segment] = {}

    # (commit, segment, parents); parents is None until the commit was descended into
    stack = [(tip, Segment(next(segment_ids)), None)]
    while stack:
        commit, segment, parents = stack.pop()
        sha = provider.get_sha(commit)
        if sha in visited:
            continue

        if parents is None:
            parents = list(provider.get_parents(commit))
            stack.append((commit, segment, parents))
            if len(parents) == 1:
                stack.append((parents[0], segment, None))
            elif len(parents) == 2:
                # first parent continues this lane, the merged-in one gets its own
                stack.append((parents[1], Segment(next(segment_ids)), None))
                stack.append((parents[0], segment, None))
            elif parents:
                raise UnsupportedTopologyError(f"Unsupported {len(parents)} parents of commit {sha}.")
            continue

        visited.add(sha)
        node = WorkingNode(
            sha,
            [provider.get_sha(p) for p in parents],
            len(nodes),
            provider.get_commit_details(commit),
        )
        node.column = segment.identifier
        if path is not None:
            node.hidden = not _touches_path(provider, commit, parents, path)

        nodes.append(node)
        segments[sha] = segment

    return nodes, segments


def _touches_path(provider, commit, parents, path: str) -> bool:
    if not parents:
        return any(name.startswith(path) for name in provider.get_tree_entry_names(commit))

    for parent in parents:
        for old_path, new_path in provider.get_changed_paths(parent, commit):
            if (new_path and new_path.startswith(path)) or (old_path and old_path.startswith(path)):
                return True
    return False


def _assign_rows(nodes: list[WorkingNode], segments: dict[str, Segment]) -> list[WorkingNode]:
    drawn_nodes = sorted(nodes, key=lambda n: n.topological_order, reverse=True)
    for row, node in enumerate(drawn_nodes):
        node.row = row
        segment = segments[node.sha]
        if segment.start is None:
            segment.start = node.sha
        segment.end = node.sha
    return drawn_nodes


def _link_parents(drawn_nodes: list[WorkingNode]):
    rows = {node.sha: node.row for node in drawn_nodes}
    for node in drawn_nodes:
        if node.parent_shas:
            node.parent0 = rows[node.parent_shas[0]]
            drawn_nodes[node.parent0].children.append(node.row)
        if len(node.parent_shas) == 2:
            node.parent1 = rows[node.parent_shas[1]]
            drawn_nodes[node.parent1].children.append(node.row)


def _assign_columns(drawn_nodes: list[WorkingNode], segments: dict[str, Segment]):
    """Gives every segment a lane and records the lanes running through each row.

    A lane is only handed back once the row of the segment's furthest parent
    has been reached, so no other branch can take it while the connector to
    that parent still crosses the rows in between.
    """
    active_branches: dict[Segment, int] = {}
    branch_removals: dict[int, list[Segment]] = {}

    for node in drawn_nodes:
        segment = segments[node.sha]

        column = active_branches.get(segment)
        if column is None:
            if segment.start != node.sha:
                raise InternalInvariantError(f"Segment {segment.identifier} activated at {node.sha}, not at its start.")
            used = set(active_branches.values())
            column = next(i for i in itertools.count() if i not in used)
            active_branches[segment] = column

            if node.children:
                # rows above were laid out before this lane existed
                highest_row = min(node.children)
                for row in range(node.row - 1, highest_row, -1):
                    drawn_nodes[row].lines.add(column)

        for retired in branch_removals.pop(node.row, []):
            del active_branches[retired]

        if segment.end == node.sha:
            if node.parent0 is None:
                del active_branches[segment]
            else:
                removal_row = node.parent0
                if node.parent1 is not None and node.parent1 > removal_row:
                    removal_row = node.parent1
                branch_removals.setdefault(removal_row, []).append(segment)

        node.lines.update(active_branches.values())
        node.column = column

    if branch_removals:
        raise InternalInvariantError(f"Lanes left queued for removal at rows {sorted(branch_removals)}.")
    if active_branches:
        raise InternalInvariantError(f"Lanes still active after the last row: {sorted(active_branches.values())}.")


def _build_graph(drawn_nodes: list[WorkingNode]) -> list[GraphNode]:
    table: list[GraphNode] = []
    for node in drawn_nodes:
        table.append(GraphNode(table, node))
    return [graph_node for graph_node in table if not graph_node.hidden]
