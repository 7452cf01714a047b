# -*- coding: utf-8 -*-
"""
调用栈合并过程中的异常定义
"""


class StackMergeError(Exception):
    """合并流程异常基类，携带异常类型标签"""

    error_type = "Merge error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.error_type}: {self.message}"


class StackDecodeError(StackMergeError, ValueError):
    """输入 JSON 格式错误或字段不匹配"""

    error_type = "Decode error"


class RankCardinalityError(StackMergeError):
    """调用栈数量与 rank 列表不匹配（或 rank 列表本身非法）"""

    error_type = "Cardinality error"


class EmptyInputError(StackMergeError):
    """没有可用的调用栈或没有声明任何 rank"""

    error_type = "Empty input"


class OutputWriteError(StackMergeError):
    """输出目录或文件写入失败"""

    error_type = "Output I/O error"


class FetchError(StackMergeError):
    """单个 rank 的调用栈获取失败，只在 collector 内部使用"""

    error_type = "Fetch error"

    def __init__(self, rank: int, message: str):
        super().__init__(message)
        self.rank = rank
