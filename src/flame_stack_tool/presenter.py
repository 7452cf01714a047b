"""
合并结果的节点汇总导出（JSON / XLSX）
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import pandas as pd

from .stack_trie import FRAME_DELIMITER, StackTrie
from .utils.rank_utils import format_rank_ranges

logger = logging.getLogger(__name__)

VALID_OUTPUT_FORMATS = ('json', 'xlsx')


def build_node_summary(trie: StackTrie) -> List[Dict[str, Any]]:
    """
    为前缀树中每个节点生成一行汇总

    Args:
        trie: 已构建的前缀树

    Returns:
        List[Dict[str, Any]]: 按遍历顺序排列的行
    """
    rows = []
    for path, node in trie.iter_nodes():
        if node is trie.root:
            continue
        leaked = trie.leaked_ranks(node)
        rows.append({
            'path': FRAME_DELIMITER.join(path),
            'frame': node.frame,
            'depth': len(path),
            'present_ranks': format_rank_ranges(node.ranks),
            'present_count': len(node.ranks),
            'leaked_ranks': format_rank_ranges(leaked),
            'leaked_count': len(leaked),
            'is_stack_end': node.is_stack_end,
            'terminal_ranks': format_rank_ranges(node.terminal_ranks),
        })
    return rows


def export_node_summary(rows: List[Dict[str, Any]], output_dir: Union[str, Path], base_name: str,
                        output_formats: Sequence[str] = VALID_OUTPUT_FORMATS) -> List[Path]:
    """
    生成输出文件（JSON 和/或 XLSX）

    Args:
        rows: build_node_summary 的结果
        output_dir: 输出目录
        base_name: 文件名（不含扩展名）
        output_formats: 输出格式列表

    Returns:
        List[Path]: 生成的文件
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    generated_files = []

    if 'json' in output_formats:
        json_file = output_path / f"{base_name}.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        logger.info(f"JSON 文件已生成: {json_file}")
        generated_files.append(json_file)

    if 'xlsx' in output_formats:
        if rows:
            df = pd.DataFrame(rows)
            summary_df = pd.DataFrame([{
                'total_nodes': len(rows),
                'terminal_paths': int(df['is_stack_end'].sum()),
                'max_depth': int(df['depth'].max()),
                'min_present_count': int(df['present_count'].min()),
            }])
            xlsx_file = output_path / f"{base_name}.xlsx"
            with pd.ExcelWriter(xlsx_file, engine='openpyxl') as writer:
                df.to_excel(writer, sheet_name='节点汇总', index=False)
                summary_df.to_excel(writer, sheet_name='统计信息', index=False)
            logger.info(f"Excel 文件已生成: {xlsx_file}")
            generated_files.append(xlsx_file)
        else:
            logger.warning("没有数据可以生成 Excel 文件")

    return generated_files
