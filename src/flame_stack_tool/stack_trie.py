"""
基于前缀树的多 rank 调用栈合并

每个节点记录经过它的 rank 集合；遍历时把每个节点的 rank 集合与全体 rank
做差得到缺失 (leak) 的 rank，输出为火焰图可读的折叠栈格式。
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
import logging

from .utils.rank_utils import RankSet, format_rank_annotation

logger = logging.getLogger(__name__)

FRAME_DELIMITER = ';'
# 尾部固定为 1: 表示一条不同的路径，而不是采样次数
PATH_WEIGHT = 1


class TrieNode:
    """前缀树节点"""

    __slots__ = ('frame', 'children', 'ranks', 'terminal_ranks', 'is_stack_end')

    def __init__(self, frame: Optional[str] = None):
        self.frame = frame
        self.children: Dict[str, 'TrieNode'] = {}
        self.ranks = RankSet()
        # 调用栈恰好结束于此节点的 rank
        self.terminal_ranks = RankSet()
        self.is_stack_end = False

    def get_child(self, frame: str) -> 'TrieNode':
        """获取子节点，不存在时创建"""
        child = self.children.get(frame)
        if child is None:
            child = TrieNode(frame)
            self.children[frame] = child
        return child

    def sorted_children(self) -> List['TrieNode']:
        """按帧键字典序返回子节点，保证遍历结果可复现"""
        return [self.children[key] for key in sorted(self.children)]

    def add_rank(self, rank: int):
        self.ranks.add(rank)

    def __repr__(self) -> str:
        return f"TrieNode({self.frame!r}, ranks={list(self.ranks)}, end={self.is_stack_end})"


class StackTrie:
    """多 rank 调用栈前缀树"""

    def __init__(self, all_ranks: Iterable[int]):
        """
        Args:
            all_ranks: 全体 rank，构造后不再改变
        """
        self.root = TrieNode()
        self._universe = RankSet(all_ranks).frozen()

    @property
    def universe(self) -> RankSet:
        return RankSet(self._universe)

    def insert(self, keys: Sequence[str], rank: int):
        """
        插入一个 rank 的调用栈

        Args:
            keys: 规范化帧键（根帧在前），可以为空
            rank: rank 编号，必须属于全体 rank
        """
        if rank not in self._universe:
            raise ValueError(f"rank {rank} 不在已声明的 rank 集合中")

        node = self.root
        # 所有调用栈都经过根节点
        node.add_rank(rank)
        for key in keys:
            node = node.get_child(key)
            node.add_rank(rank)

        node.is_stack_end = True
        node.terminal_ranks.add(rank)

    def leaked_ranks(self, node: TrieNode) -> RankSet:
        """没有到达该节点的 rank"""
        return self.universe.difference(node.ranks)

    def iter_nodes(self) -> Iterator[Tuple[List[str], TrieNode]]:
        """
        先序深度优先遍历（包含根节点），子节点按键排序

        使用显式栈，避免极深的调用栈触发递归深度限制。产出的路径列表在遍历过程中
        原地复用，调用方需要保留时应自行拷贝。

        Yields:
            (从根到该节点的帧键列表, 节点)
        """
        path: List[str] = []
        stack: List[Tuple[int, TrieNode]] = [(0, self.root)]
        while stack:
            depth, node = stack.pop()
            # 回退到父节点所在深度
            del path[max(depth - 1, 0):]
            if depth:
                path.append(node.frame)
            yield path, node
            # 逆序入栈，使字典序最小的子节点最先弹出
            for child in reversed(node.sorted_children()):
                stack.append((depth + 1, child))

    def traverse_with_all_stack(self) -> List[str]:
        """
        遍历前缀树，为每个调用栈终止节点生成一行折叠栈输出

        行格式: frame1@p|l;frame2@p|l;...;leaf@p|l @<terminal>|<other> 1

        Returns:
            List[str]: 输出行（不含换行符）
        """
        lines = []
        universe = self.universe
        # 每个节点的带注解帧标签只生成一次，只在终止节点处拼接整行
        labels: List[str] = []
        for path, node in self.iter_nodes():
            del labels[len(path) - 1 if path else 0:]
            if path:
                labels.append(f"{node.frame}{format_rank_annotation(node.ranks, universe)}")

            if node.is_stack_end:
                summary = format_rank_annotation(node.terminal_ranks, universe)
                lines.append(f"{FRAME_DELIMITER.join(labels)} {summary} {PATH_WEIGHT}")

        logger.debug(f"遍历完成，生成 {len(lines)} 条路径")
        return lines

    def get_tree_statistics(self) -> Dict[str, Any]:
        """
        获取前缀树的统计信息

        Returns:
            Dict[str, Any]: 节点数、最大深度、终止路径数、分叉点数
        """
        stats = {
            'total_nodes': 0,
            'max_depth': 0,
            'terminal_paths': 0,
            'divergence_points': 0,
            'universe_size': len(self._universe),
        }

        for path, node in self.iter_nodes():
            if node is not self.root:
                stats['total_nodes'] += 1
            stats['max_depth'] = max(stats['max_depth'], len(path))
            if node.is_stack_end:
                stats['terminal_paths'] += 1
            if len(node.children) > 1:
                stats['divergence_points'] += 1

        return stats
