"""
Flame Stack Tool Package
"""

from .models import NativeFrame, InterpretedFrame, MergeResult
from .parser import parse_stack_batch, load_stack_batch
from .stack_trie import StackTrie, TrieNode
from .merger import merge_stacks, process_and_merge_callstacks
from .utils.rank_utils import RankSet, format_rank_ranges, parse_rank_ranges

__all__ = [
    'NativeFrame',
    'InterpretedFrame',
    'MergeResult',
    'parse_stack_batch',
    'load_stack_batch',
    'StackTrie',
    'TrieNode',
    'merge_stacks',
    'process_and_merge_callstacks',
    'RankSet',
    'format_rank_ranges',
    'parse_rank_ranges',
]
