"""
帧规范化工具模块
"""

from typing import List, Optional, Sequence
import logging

from ..models import Frame

logger = logging.getLogger(__name__)

# 链接器生成的私有符号 (如 foo.lto_priv.0)
DEFAULT_PRIVATE_SYMBOL_MARKER = "lto_priv"


def normalize_stack(stack: Sequence[Frame], truncate_marker: Optional[str] = None) -> List[str]:
    """
    将单个 rank 的调用栈转换为可插入前缀树的键序列

    输入为最内层帧在前，输出为根帧在前。只有 func/file/lineno 参与键的生成，
    原生帧与解释帧一视同仁。

    Args:
        stack: 帧列表（最内层帧在前）
        truncate_marker: 可选的截断标记。指定后，第一个键中包含该标记的帧
            及其更深的所有帧都会被丢弃；为 None 时不做截断

    Returns:
        List[str]: 规范化键列表（根帧在前）
    """
    keys = [frame.canonical_key for frame in reversed(stack)]

    if truncate_marker:
        for idx, key in enumerate(keys):
            if truncate_marker in key:
                logger.debug(f"在第 {idx} 帧遇到标记 {truncate_marker!r}，截断 {len(keys) - idx} 帧")
                return keys[:idx]

    return keys
