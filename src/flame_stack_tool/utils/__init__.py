"""
工具模块
"""

from .frame_utils import normalize_stack, DEFAULT_PRIVATE_SYMBOL_MARKER
from .rank_utils import RankSet, format_rank_ranges, parse_rank_ranges, parse_rank_list, format_rank_annotation

__all__ = [
    'normalize_stack',
    'DEFAULT_PRIVATE_SYMBOL_MARKER',
    'RankSet',
    'format_rank_ranges',
    'parse_rank_ranges',
    'parse_rank_list',
    'format_rank_annotation',
]
