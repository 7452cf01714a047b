"""
merge 与 fetch 命令共用的输出逻辑
"""

from pathlib import Path
from typing import List

from ...models import MergeResult
from ...presenter import build_node_summary, export_node_summary
from ...utils.rank_utils import format_rank_ranges


def print_merge_report(result: MergeResult):
    """打印合并统计"""
    stats = result.trie.get_tree_statistics()
    print(f"调用栈数量: {result.stack_count}")
    print(f"全体 rank: {format_rank_ranges(result.rank_list)}")
    print(f"节点数: {stats['total_nodes']}, 最大深度: {stats['max_depth']}")
    print(f"不同路径数: {stats['terminal_paths']}, 分叉点数: {stats['divergence_points']}")


def export_extras(result: MergeResult, summary_formats: List[str], plot: bool) -> List[Path]:
    """按需生成节点汇总与路径分布图，输出到合并结果所在目录"""
    generated_files = []
    output_dir = result.output_path.parent
    stem = result.output_path.stem

    if summary_formats:
        rows = build_node_summary(result.trie)
        generated_files.extend(export_node_summary(rows, output_dir, f"{stem}_summary", summary_formats))

    if plot:
        # matplotlib 只在需要时导入
        from ...visualization import plot_path_divergence
        generated_files.append(plot_path_divergence(result.trie, output_dir, f"{stem}_divergence"))

    return generated_files
