# -*- coding: utf-8 -*-
"""
调用栈数据模型定义
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union


def make_canonical_key(func: str, file: str, lineno: int) -> str:
    """生成帧的规范化键: "<func> (<file>:<lineno>)" """
    return f"{func} ({file}:{lineno})"


@dataclass
class NativeFrame:
    """C/C++ 原生帧"""
    file: str
    func: str
    ip: str
    lineno: int

    @property
    def canonical_key(self) -> str:
        # ip 不参与合并
        return make_canonical_key(self.func, self.file, self.lineno)


@dataclass
class InterpretedFrame:
    """Python 解释帧"""
    file: str
    func: str
    lineno: int
    locals: Any = field(default=None, compare=False)

    @property
    def canonical_key(self) -> str:
        return make_canonical_key(self.func, self.file, self.lineno)


Frame = Union[NativeFrame, InterpretedFrame]


@dataclass
class MergeResult:
    """一次合并的结果"""
    lines: List[str]
    trie: Any
    stack_count: int
    rank_list: List[int]
    output_path: Optional[Path] = None
