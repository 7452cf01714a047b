"""
调用栈前缀树单元测试
"""

import itertools
import unittest

from flame_stack_tool.stack_trie import StackTrie


def snapshot(trie):
    """前缀树的结构快照: 路径 -> (rank 集合, 终止 rank 集合, 是否终止)"""
    return {
        tuple(path): (node.ranks.frozen(), node.terminal_ranks.frozen(), node.is_stack_end)
        for path, node in trie.iter_nodes()
    }


class TestStackTrie(unittest.TestCase):
    def setUp(self):
        self.stacks = {
            0: ["main", "train", "allreduce"],
            1: ["main", "train", "allreduce"],
            2: ["main", "train", "barrier"],
            3: ["main"],
        }
        self.trie = StackTrie(range(5))
        for rank, keys in self.stacks.items():
            self.trie.insert(keys, rank)

    def test_shared_prefix(self):
        self.assertEqual(list(self.trie.root.children), ["main"])
        main = self.trie.root.children["main"]
        self.assertEqual(list(main.ranks), [0, 1, 2, 3])
        train = main.children["train"]
        self.assertEqual(sorted(train.children), ["allreduce", "barrier"])
        self.assertEqual(list(train.children["barrier"].ranks), [2])

    def test_stack_end_flags(self):
        main = self.trie.root.children["main"]
        self.assertTrue(main.is_stack_end)
        self.assertEqual(list(main.terminal_ranks), [3])
        self.assertFalse(main.children["train"].is_stack_end)
        self.assertFalse(self.trie.root.is_stack_end)

    def test_rank_subset_invariants(self):
        universe = self.trie.universe
        for _, node in self.trie.iter_nodes():
            self.assertTrue(node.ranks.issubset(universe))
            for child in node.children.values():
                self.assertTrue(child.ranks.issubset(node.ranks))

    def test_present_and_leaked_partition_universe(self):
        universe = self.trie.universe
        for _, node in self.trie.iter_nodes():
            leaked = self.trie.leaked_ranks(node)
            self.assertEqual(len(node.ranks.intersection(leaked)), 0)
            self.assertEqual(node.ranks.union(leaked), universe)

    def test_undeclared_rank_is_a_full_leak(self):
        for _, node in self.trie.iter_nodes():
            self.assertIn(4, self.trie.leaked_ranks(node))

    def test_insert_same_rank_twice(self):
        trie = StackTrie([0])
        trie.insert(["a", "b"], 0)
        trie.insert(["a", "b"], 0)
        self.assertEqual(list(trie.root.children["a"].children["b"].ranks), [0])

    def test_insert_rejects_unknown_rank(self):
        with self.assertRaises(ValueError):
            self.trie.insert(["main"], 9)

    def test_empty_stack_marks_root(self):
        trie = StackTrie([0, 1])
        trie.insert([], 1)
        self.assertTrue(trie.root.is_stack_end)
        self.assertIn(1, trie.root.ranks)
        self.assertEqual(trie.traverse_with_all_stack(), [" @1|0 1"])

    def test_universe_is_immutable(self):
        universe = self.trie.universe
        universe.add(100)
        self.assertNotIn(100, self.trie.universe)

    def test_insertion_order_invariance(self):
        items = list(self.stacks.items())
        expected = snapshot(self.trie)
        expected_lines = self.trie.traverse_with_all_stack()
        for permutation in itertools.permutations(items):
            trie = StackTrie(range(5))
            for rank, keys in permutation:
                trie.insert(keys, rank)
            self.assertEqual(snapshot(trie), expected)
            self.assertEqual(trie.traverse_with_all_stack(), expected_lines)

    def test_children_visited_in_sorted_order(self):
        trie = StackTrie(range(3))
        trie.insert(["root", "zeta"], 0)
        trie.insert(["root", "alpha"], 1)
        trie.insert(["root", "mid"], 2)
        frames = [node.frame for _, node in trie.iter_nodes()]
        self.assertEqual(frames, [None, "root", "alpha", "mid", "zeta"])

    def test_traverse_output(self):
        lines = self.trie.traverse_with_all_stack()
        self.assertEqual(lines, [
            "main@0-3|4 @3|0-2/4 1",
            "main@0-3|4;train@0-2|3-4;allreduce@0-1|2-4 @0-1|2-4 1",
            "main@0-3|4;train@0-2|3-4;barrier@2|0-1/3-4 @2|0-1/3-4 1",
        ])

    def test_deep_stack_without_recursion(self):
        depth = 3000
        keys = [f"f{i} (deep.c:{i})" for i in range(depth)]
        trie = StackTrie([0, 1])
        trie.insert(keys, 0)
        trie.insert(keys[:10], 1)
        lines = trie.traverse_with_all_stack()
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[1].count(";"), depth - 1)
        self.assertTrue(lines[1].endswith(" @0|1 1"))
        self.assertEqual(trie.get_tree_statistics()['max_depth'], depth)

    def test_iter_nodes_paths_after_backtracking(self):
        paths = [tuple(path) for path, _ in self.trie.iter_nodes()]
        self.assertEqual(paths, [
            (),
            ("main",),
            ("main", "train"),
            ("main", "train", "allreduce"),
            ("main", "train", "barrier"),
        ])

    def test_very_deep_branching_stacks(self):
        depth = 20000
        keys = [f"f{i} (deep.c:{i})" for i in range(depth)]
        trie = StackTrie([0, 1, 2])
        trie.insert(keys, 0)
        trie.insert(keys[:depth // 2] + ["branch (b.c:1)"], 1)
        trie.insert(keys[:5], 2)
        lines = trie.traverse_with_all_stack()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].endswith(" @2|0-1 1"))
        self.assertEqual(lines[1].count(";"), depth // 2)
        self.assertIn(";branch (b.c:1)@1|0/2 @1|0/2 1", lines[1])
        self.assertEqual(lines[2].count(";"), depth - 1)

    def test_tree_statistics(self):
        stats = self.trie.get_tree_statistics()
        self.assertEqual(stats['total_nodes'], 4)
        self.assertEqual(stats['max_depth'], 3)
        self.assertEqual(stats['terminal_paths'], 3)
        self.assertEqual(stats['divergence_points'], 1)
        self.assertEqual(stats['universe_size'], 5)


if __name__ == '__main__':
    unittest.main()
