"""
rank 集合与区间压缩工具模块

区间格式: 升序的连续段用 '/' 连接，单个数字原样输出，长度 >= 2 的段输出为 "start-end"。
例如 {0, 1, 2, 3, 7} -> "0-3/7"，空集 -> ""。
"""

import re
from typing import Iterable, Iterator, List, Tuple

RANGE_SEPARATOR = '/'

_TOKEN_RE = re.compile(r"^(\d+)(?:-(\d+))?$")


class RankSet:
    """有序的 rank 集合，迭代时总是升序"""

    __slots__ = ('_ranks',)

    def __init__(self, ranks: Iterable[int] = ()):
        self._ranks = set()
        for rank in ranks:
            self.add(rank)

    def add(self, rank: int):
        if isinstance(rank, bool) or not isinstance(rank, int) or rank < 0:
            raise ValueError(f"rank 必须是非负整数: {rank!r}")
        self._ranks.add(rank)

    def difference(self, other: 'RankSet') -> 'RankSet':
        return RankSet(self._ranks.difference(other._ranks))

    def union(self, other: 'RankSet') -> 'RankSet':
        return RankSet(self._ranks.union(other._ranks))

    def intersection(self, other: 'RankSet') -> 'RankSet':
        return RankSet(self._ranks.intersection(other._ranks))

    def issubset(self, other: 'RankSet') -> bool:
        return self._ranks.issubset(other._ranks)

    def frozen(self) -> frozenset:
        return frozenset(self._ranks)

    def __contains__(self, rank) -> bool:
        return rank in self._ranks

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ranks))

    def __len__(self) -> int:
        return len(self._ranks)

    def __eq__(self, other) -> bool:
        if isinstance(other, RankSet):
            return self._ranks == other._ranks
        if isinstance(other, (set, frozenset)):
            return self._ranks == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"RankSet({list(self)})"


def _iter_runs(ranks: Iterable[int]) -> Iterator[Tuple[int, int]]:
    """按升序扫描，产出最长连续段 (start, end)"""
    sorted_ranks = sorted(set(ranks))
    i = 0
    n = len(sorted_ranks)
    while i < n:
        start = end = sorted_ranks[i]
        while i + 1 < n and sorted_ranks[i + 1] == end + 1:
            i += 1
            end = sorted_ranks[i]
        yield start, end
        i += 1


def format_rank_ranges(ranks: Iterable[int]) -> str:
    """
    将 rank 集合压缩为区间字符串

    Args:
        ranks: rank 集合（任意顺序）

    Returns:
        str: 例如 "0-3/7"，空集返回空字符串
    """
    parts = []
    for start, end in _iter_runs(ranks):
        parts.append(str(start) if start == end else f"{start}-{end}")
    return RANGE_SEPARATOR.join(parts)


def parse_rank_ranges(text: str) -> RankSet:
    """
    format_rank_ranges 的逆操作，同时接受 ',' 作为分隔符（用于命令行 rank 列表）

    Args:
        text: 区间字符串，例如 "0-3/7" 或 "0,1,5-6"

    Returns:
        RankSet: 解析后的集合

    Raises:
        ValueError: 格式非法或区间降序
    """
    ranks = RankSet()
    text = text.strip()
    if not text:
        return ranks

    for token in re.split(r"[/,]", text):
        for rank in _parse_token(token):
            ranks.add(rank)
    return ranks


def parse_rank_list(text: str) -> List[int]:
    """
    解析命令行 rank 列表，保留书写顺序

    与 parse_rank_ranges 不同，这里的顺序决定了调用栈与 rank 的配对关系，
    重复的 rank 原样保留，由合并阶段报错。
    """
    ranks = []
    for token in re.split(r"[/,]", text.strip()):
        ranks.extend(_parse_token(token))
    return ranks


def _parse_token(token: str) -> range:
    """解析单个 "a" 或 "a-b" 片段"""
    token = token.strip()
    match = _TOKEN_RE.match(token)
    if not match:
        raise ValueError(f"无法解析的 rank 区间: {token!r}")
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else start
    if end < start:
        raise ValueError(f"rank 区间必须升序: {token!r}")
    return range(start, end + 1)


def format_rank_annotation(present: RankSet, universe: RankSet) -> str:
    """
    生成节点注解: "@<present>|<leaked>"

    leaked = universe - present，两部分都按区间压缩输出
    """
    leaked = universe.difference(present)
    return f"@{format_rank_ranges(present)}|{format_rank_ranges(leaked)}"
