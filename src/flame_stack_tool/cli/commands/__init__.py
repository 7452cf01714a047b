"""
CLI命令模块
"""

from .merge import MergeCommand
from .fetch import FetchCommand

__all__ = ['MergeCommand', 'FetchCommand']
