"""
可视化模块: 各终止路径上的 rank 分布
"""

import logging
from pathlib import Path
from typing import List, Tuple, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .stack_trie import StackTrie
from .utils.rank_utils import RankSet, format_rank_ranges

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 60


def _shorten(label: str) -> str:
    if len(label) <= MAX_LABEL_LENGTH:
        return label
    return "..." + label[-(MAX_LABEL_LENGTH - 3):]


def collect_terminal_paths(trie: StackTrie) -> List[Tuple[str, RankSet]]:
    """
    按遍历顺序列出每条终止路径的叶子帧与调用栈结束于此的 rank

    Returns:
        List[Tuple[str, RankSet]]: (叶子帧标签, terminal_ranks)
    """
    entries = []
    for path, node in trie.iter_nodes():
        if node.is_stack_end:
            entries.append((_shorten(path[-1]) if path else "<empty stack>", node.terminal_ranks))
    return entries


def plot_path_divergence(trie: StackTrie, output_dir: Union[str, Path], base_name: str) -> Path:
    """
    绘制每条终止路径上调用栈结束于此的 rank 数量

    横轴为 rank 数量，纵轴为路径的叶子帧，条形上标注 rank 区间。

    Args:
        trie: 已构建的前缀树
        output_dir: 输出目录
        base_name: 文件名（不含扩展名）

    Returns:
        Path: 生成的 PNG 文件
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    entries = collect_terminal_paths(trie)
    labels = [label for label, _ in entries]
    counts = [len(ranks) for _, ranks in entries]
    rank_texts = [format_rank_ranges(ranks) for _, ranks in entries]

    plt.rcParams['font.sans-serif'] = ['DejaVu Sans', 'Arial', 'sans-serif']
    plt.rcParams['axes.unicode_minus'] = False

    height = max(3.0, 0.4 * len(labels) + 1.5)
    fig, ax = plt.subplots(figsize=(12, height))
    positions = list(range(len(labels)))
    bars = ax.barh(positions, counts, color='tab:orange')
    ax.set_yticks(positions)
    ax.set_yticklabels(labels, fontsize=8)
    ax.invert_yaxis()
    ax.set_xlim(0, max(len(trie.universe), 1))
    ax.set_xlabel('Ranks')
    ax.set_title(f'Stack Path Divergence ({len(labels)} paths, {len(trie.universe)} ranks)')

    for bar, text in zip(bars, rank_texts):
        ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2, f" {text}",
                va='center', fontsize=7)

    plt.tight_layout()
    filepath = output_path / f"{base_name}.png"
    plt.savefig(filepath, dpi=150, bbox_inches='tight')
    plt.close(fig)

    logger.info(f"路径分布图已生成: {filepath}")
    return filepath
