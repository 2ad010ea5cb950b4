import random
import unittest

from fake_repository import AUTHOR, FakeRepository
from git_graph_data import Segment, WorkingNode
from git_graph_layout import (
    GraphLayoutError,
    InternalInvariantError,
    UnsupportedTopologyError,
    _assign_columns,
    _walk_commits,
    calculate_commit_graph,
)


def layout(history, tip, path=None, **kwargs):
    return calculate_commit_graph(FakeRepository(history, **kwargs), tip, path)


def summary(nodes):
    return [(n.sha, n.row, n.column, n.lines) for n in nodes]


def random_history(seed, size=40):
    rng = random.Random(seed)
    history = [("c0", [])]
    for i in range(1, size):
        roll = rng.random()
        if roll < 0.04:
            parents = []
        elif roll < 0.35 and i >= 2:
            parents = [f"c{p}" for p in rng.sample(range(max(0, i - 8), i), 2)]
        else:
            parents = [f"c{rng.randrange(max(0, i - 4), i)}"]
        history.append((f"c{i}", parents))
    return history, f"c{size - 1}"


def reachable(history, tip):
    parents = dict(history)
    seen = set()
    stack = [tip]
    while stack:
        sha = stack.pop()
        if sha in seen:
            continue
        seen.add(sha)
        stack.extend(parents[sha])
    return seen


# M merges B into A; both branch off the root R
SINGLE_MERGE = [
    ("M", ["A", "B"]),
    ("A", ["R"]),
    ("B", ["R"]),
    ("R", []),
]

# T merges C, whose parent B was also merged into M on the first-parent line
LATE_BRANCH = [
    ("T", ["M", "C"]),
    ("C", ["B"]),
    ("M", ["A", "B"]),
    ("B", ["R"]),
    ("A", ["R"]),
    ("R", []),
]

# two feature branches merged one after the other
SEQUENTIAL_MERGES = [
    ("M2", ["M1", "F2"]),
    ("F2", ["M1"]),
    ("M1", ["R", "F1"]),
    ("F1", ["R"]),
    ("R", []),
]


class TestLinearHistory(unittest.TestCase):
    def test_rows_follow_age_in_one_lane(self):
        history = [(f"c{i}", [f"c{i - 1}"] if i else []) for i in range(6)]
        nodes = layout(list(reversed(history)), "c5")

        self.assertEqual([n.sha for n in nodes], ["c5", "c4", "c3", "c2", "c1", "c0"])
        self.assertEqual([n.row for n in nodes], list(range(6)))
        self.assertTrue(all(n.column == 0 for n in nodes))
        self.assertTrue(all(len(n.lines) <= 1 for n in nodes))

    def test_lines_and_links(self):
        nodes = layout([("c3", ["c2"]), ("c2", ["c1"]), ("c1", [])], "c3")
        c3, c2, c1 = nodes

        self.assertEqual([n.lines for n in nodes], [(0,), (0,), ()])
        self.assertIs(c3.parent0, c2)
        self.assertIsNone(c3.parent1)
        self.assertEqual(c2.children, (c3,))
        self.assertEqual(c1.children, (c2,))
        self.assertEqual(c3.children, ())

    def test_single_root_commit(self):
        (node,) = layout([("root", [])], "root")

        self.assertEqual((node.row, node.column, node.lines), (0, 0, ()))
        self.assertIsNone(node.parent0)
        self.assertIsNone(node.parent1)
        self.assertEqual(node.parents, [])
        self.assertEqual(node.children, ())

    def test_commit_details_are_copied(self):
        (node,) = layout([("root", [])], "root")

        self.assertEqual(node.message, "root message\n\nbody of root\n")
        self.assertEqual(node.message_short, "root message")
        self.assertEqual(node.author, AUTHOR)
        self.assertEqual(node.committer, AUTHOR)
        self.assertEqual(str(node), "root message")
        self.assertIn("row=0", repr(node))


class TestMerges(unittest.TestCase):
    def test_single_merge(self):
        nodes = layout(SINGLE_MERGE, "M")

        self.assertEqual(
            summary(nodes),
            [
                ("M", 0, 0, (0,)),
                ("B", 1, 1, (0, 1)),
                ("A", 2, 0, (0, 1)),
                ("R", 3, 0, ()),
            ],
        )

    def test_single_merge_links(self):
        m, b, a, r = layout(SINGLE_MERGE, "M")

        self.assertIs(m.parent0, a)
        self.assertIs(m.parent1, b)
        self.assertEqual(m.parents, [a, b])
        self.assertEqual(a.children, (m,))
        self.assertEqual(b.children, (m,))
        self.assertEqual(r.children, (b, a))

    def test_merged_lane_reserved_until_furthest_parent(self):
        nodes = layout(SINGLE_MERGE, "M")
        b = nodes[1]
        r = nodes[3]

        self.assertNotEqual(b.column, r.column)
        for node in nodes[b.row : r.row]:
            self.assertIn(b.column, node.lines)
        self.assertNotIn(b.column, r.lines)

    def test_diamond_visits_shared_ancestor_once(self):
        provider = FakeRepository(SINGLE_MERGE)
        nodes = calculate_commit_graph(provider, "M")

        self.assertEqual(len(nodes), 4)
        self.assertEqual(provider.parent_queries.count("R"), 1)

    def test_lane_backfilled_through_rows_laid_out_before_it(self):
        nodes = layout(LATE_BRANCH, "T")

        self.assertEqual(
            summary(nodes),
            [
                ("T", 0, 0, (0,)),
                ("C", 1, 1, (0, 1)),
                ("M", 2, 0, (0, 1, 2)),
                ("B", 3, 2, (0, 2)),
                ("A", 4, 0, (0, 2)),
                ("R", 5, 0, ()),
            ],
        )

    def test_freed_lane_is_reused_after_removal_row(self):
        nodes = layout(SEQUENTIAL_MERGES, "M2")

        self.assertEqual(
            summary(nodes),
            [
                ("M2", 0, 0, (0,)),
                ("F2", 1, 1, (0, 1)),
                ("M1", 2, 0, (0,)),
                ("F1", 3, 1, (0, 1)),
                ("R", 4, 0, ()),
            ],
        )

    def test_merge_of_unrelated_root(self):
        nodes = layout([("M", ["A", "X"]), ("A", []), ("X", [])], "M")

        self.assertEqual(
            summary(nodes),
            [
                ("M", 0, 0, (0,)),
                ("X", 1, 1, (0,)),
                ("A", 2, 0, ()),
            ],
        )
        self.assertEqual(nodes[1].children, (nodes[0],))

    def test_second_parent_already_on_first_parent_line(self):
        # B is both a second parent of M and the first-parent ancestor of A
        nodes = layout([("M", ["A", "B"]), ("A", ["B"]), ("B", [])], "M")

        self.assertEqual([n.sha for n in nodes], ["M", "A", "B"])
        self.assertTrue(all(n.column == 0 for n in nodes))

    def test_criss_cross_merge(self):
        # M1 and M2 each merge A and B, in opposite order
        history = [
            ("T", ["M1", "M2"]),
            ("M1", ["A", "B"]),
            ("M2", ["B", "A"]),
            ("A", ["R"]),
            ("B", ["R"]),
            ("R", []),
        ]
        nodes = layout(history, "T")

        self.assertEqual([n.row for n in nodes], list(range(6)))
        self.assertEqual(len({n.sha for n in nodes}), 6)
        for node in nodes:
            for parent in node.parents:
                self.assertGreater(parent.row, node.row)
            if node.parent0 is not None:
                for between in nodes[node.row + 1 : node.parent0.row]:
                    self.assertIn(node.column, between.lines)
        self.assertEqual(nodes[-1].sha, "R")
        self.assertEqual(nodes[-1].lines, ())


class TestErrors(unittest.TestCase):
    def test_octopus_merge_is_rejected(self):
        history = [("O", ["a", "b", "c"]), ("a", []), ("b", []), ("c", [])]
        with self.assertRaises(UnsupportedTopologyError) as ctx:
            layout(history, "O")
        self.assertIn("3 parents", str(ctx.exception))

    def test_octopus_deep_in_history_is_rejected(self):
        history = [("T", ["O"]), ("O", ["a", "b", "c", "d"]), ("a", []), ("b", []), ("c", []), ("d", [])]
        with self.assertRaises(GraphLayoutError):
            layout(history, "T")

    def test_provider_errors_propagate(self):
        with self.assertRaises(KeyError):
            layout([("c2", ["ghost"])], "c2")

    def test_segment_activated_away_from_its_start(self):
        node = WorkingNode("a", [], 0, {})
        node.row = 0
        segment = Segment(0)
        segment.start = "b"
        segment.end = "a"

        with self.assertRaises(InternalInvariantError):
            _assign_columns([node], {"a": segment})

    def test_undrained_lanes(self):
        node = WorkingNode("a", [], 0, {})
        node.row = 0
        segment = Segment(0)
        segment.start = "a"
        segment.end = "never-reached"

        with self.assertRaises(InternalInvariantError):
            _assign_columns([node], {"a": segment})


class TestPathFilter(unittest.TestCase):
    HISTORY = [("c3", ["c2"]), ("c2", ["c1"]), ("c1", [])]
    CHANGES = {"c3": ["src/a.py"], "c2": ["docs/guide.md"]}
    TREES = {"c1": ["src", "README.md"]}

    def filtered(self, path, changes=None):
        return layout(self.HISTORY, "c3", path, changes=changes or self.CHANGES, trees=self.TREES)

    def test_rows_are_not_renumbered(self):
        nodes = self.filtered("src")

        self.assertEqual([n.sha for n in nodes], ["c3", "c1"])
        self.assertEqual([n.row for n in nodes], [0, 2])

    def test_hidden_parent_still_linked(self):
        c3 = self.filtered("src")[0]

        self.assertEqual(c3.parent0.sha, "c2")
        self.assertTrue(c3.parent0.hidden)
        self.assertFalse(c3.hidden)

    def test_root_visible_through_tree_entries(self):
        self.assertEqual([n.sha for n in self.filtered("README")], ["c1"])
        self.assertEqual([n.sha for n in self.filtered("docs")], ["c2"])

    def test_rename_matches_old_and_new_path(self):
        changes = {"c2": [("src/old.py", "lib/new.py")]}

        self.assertIn("c2", [n.sha for n in self.filtered("src", changes)])
        self.assertIn("c2", [n.sha for n in self.filtered("lib", changes)])

    def test_layout_unchanged_by_filter(self):
        everything = {n.sha: (n.row, n.column, n.lines) for n in layout(self.HISTORY, "c3")}
        for node in self.filtered("src"):
            self.assertEqual((node.row, node.column, node.lines), everything[node.sha])

    def test_merge_visible_if_any_parent_diff_touches_path(self):
        nodes = layout(SINGLE_MERGE, "M", "lib", changes={"M": ["lib/x.py"]})
        self.assertEqual([(n.sha, n.row) for n in nodes], [("M", 0)])

    def test_no_filter_never_asks_for_diffs(self):
        class NoDiffRepository(FakeRepository):
            def get_changed_paths(self, parent, commit):
                raise AssertionError("diff requested without a path filter")

            def get_tree_entry_names(self, commit):
                raise AssertionError("tree requested without a path filter")

        nodes = calculate_commit_graph(NoDiffRepository(SINGLE_MERGE), "M")
        self.assertEqual(len(nodes), 4)


class TestLayoutProperties(unittest.TestCase):
    SEEDS = range(40)

    def test_deterministic(self):
        for seed in self.SEEDS:
            history, tip = random_history(seed)
            self.assertEqual(summary(layout(history, tip)), summary(layout(history, tip)))

    def test_rows_dense_and_parents_older(self):
        for seed in self.SEEDS:
            history, tip = random_history(seed)
            nodes = layout(history, tip)

            self.assertEqual([n.row for n in nodes], list(range(len(reachable(history, tip)))))
            for node in nodes:
                for parent in node.parents:
                    self.assertGreater(parent.row, node.row)
                    self.assertIn(node, parent.children)
                self.assertEqual(list(node.lines), sorted(set(node.lines)))

    def test_lane_held_until_first_parent(self):
        for seed in self.SEEDS:
            history, tip = random_history(seed)
            nodes = layout(history, tip)

            for node in nodes:
                if node.parent0 is None:
                    continue
                for between in nodes[node.row + 1 : node.parent0.row]:
                    self.assertIn(node.column, between.lines, f"seed {seed}, {node!r} -> {between!r}")
                    self.assertNotEqual(node.column, between.column, f"seed {seed}, {node!r} -> {between!r}")

    def test_retired_lane_not_reused_before_furthest_parent(self):
        for seed in self.SEEDS:
            history, tip = random_history(seed)
            nodes = layout(history, tip)
            by_sha = {n.sha: n for n in nodes}
            _, segments = _walk_commits(FakeRepository(history), tip, None)

            members: dict[int, list] = {}
            for sha, segment in segments.items():
                members.setdefault(segment.identifier, []).append(by_sha[sha])

            for segment_nodes in members.values():
                shas = {n.sha for n in segment_nodes}
                start = min(segment_nodes, key=lambda n: n.row)
                end = max(segment_nodes, key=lambda n: n.row)
                removal_row = max((p.row for p in end.parents), default=end.row)
                for other in nodes[start.row : removal_row + 1]:
                    if other.sha not in shas:
                        self.assertNotEqual(
                            start.column, other.column, f"seed {seed}, lane of {start!r} taken by {other!r}"
                        )

    def test_filter_keeps_relative_order(self):
        for seed in self.SEEDS:
            history, tip = random_history(seed)
            changes = {sha: ["src/x"] for i, (sha, _) in enumerate(history) if i % 3 == 0}
            everything = layout(history, tip)
            nodes = layout(history, tip, "src", changes=changes, trees={"c0": ["src"]})

            rows = [n.row for n in nodes]
            self.assertEqual(rows, sorted(rows))
            self.assertTrue(set(rows) <= {n.row for n in everything})
            self.assertLessEqual(len(nodes), len(everything))


if __name__ == "__main__":
    unittest.main()
