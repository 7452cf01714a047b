# -*- coding: utf-8 -*-
"""
CLI验证器模块
"""

from pathlib import Path
from typing import List

from ..utils.rank_utils import parse_rank_list


def parse_ranks_option(ranks_spec: str) -> List[int]:
    """
    解析 --ranks 参数

    Args:
        ranks_spec: 逗号或 '/' 分隔的 rank 与区间，例如 "0-7" 或 "0,2,4-5"

    Returns:
        List[int]: 保持书写顺序的 rank 列表

    Raises:
        ValueError: 为空或格式非法
    """
    if not ranks_spec or not ranks_spec.strip():
        raise ValueError("rank 列表不能为空")
    return parse_rank_list(ranks_spec)


def parse_summary_formats(summary_spec: str) -> List[str]:
    """
    解析 --summary 选项

    Args:
        summary_spec: 逗号分隔的输出格式，支持 json, xlsx

    Returns:
        List[str]: 去重后的格式列表，未指定时为空
    """
    valid_formats = {'json', 'xlsx'}

    formats = []
    if not summary_spec or not summary_spec.strip():
        return formats

    for fmt in (arg.strip() for arg in summary_spec.split(',')):
        if not fmt:
            continue
        if fmt not in valid_formats:
            raise ValueError(f"不支持的汇总格式: {fmt}。支持的格式: {', '.join(sorted(valid_formats))}")
        if fmt not in formats:
            formats.append(fmt)

    return formats


def validate_file(file_path: str) -> bool:
    """验证文件是否存在且为 JSON 格式"""
    path = Path(file_path)
    if not path.exists():
        print(f"错误: 文件不存在: {file_path}")
        return False

    if not path.is_file():
        print(f"错误: 路径不是文件: {file_path}")
        return False

    if path.suffix.lower() not in ('.json', '.gz'):
        print(f"警告: 文件可能不是 JSON 格式: {file_path}")

    return True
