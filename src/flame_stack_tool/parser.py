"""
多 rank 调用栈 JSON 解析器

输入是一个 JSON 数组，每个元素是某个 rank 的帧列表（最内层帧在前）。
帧按字段形状区分:
    native:      {file, func, ip, lineno}
    interpreted: {file, func, lineno, locals}
"""

import json
import gzip
import logging
import zlib
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import StackDecodeError
from .models import Frame, InterpretedFrame, NativeFrame

logger = logging.getLogger(__name__)


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise StackDecodeError(f"字段 '{key}' 必须是字符串, 实际为: {value!r}")
    return value


def _require_lineno(data: Dict[str, Any]) -> int:
    value = data.get('lineno')
    # bool 是 int 的子类，需要排除
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise StackDecodeError(f"字段 'lineno' 必须是非负整数, 实际为: {value!r}")
    return value


def parse_frame(data: Any) -> Frame:
    """
    解析单个帧记录

    Args:
        data: 帧数据字典

    Returns:
        Frame: NativeFrame 或 InterpretedFrame

    Raises:
        StackDecodeError: 字段形状无法识别
    """
    if not isinstance(data, dict):
        raise StackDecodeError(f"帧记录必须是 JSON 对象, 实际为: {type(data).__name__}")

    file = _require_str(data, 'file')
    func = _require_str(data, 'func')
    lineno = _require_lineno(data)

    if 'ip' in data:
        ip = data['ip']
        if not isinstance(ip, str):
            raise StackDecodeError(f"字段 'ip' 必须是字符串, 实际为: {ip!r}")
        return NativeFrame(file=file, func=func, ip=ip, lineno=lineno)

    if 'locals' in data:
        return InterpretedFrame(file=file, func=func, lineno=lineno, locals=data['locals'])

    raise StackDecodeError(f"无法识别的帧类型 (缺少 'ip' 或 'locals'): {sorted(data.keys())}")


def parse_stack_batch(json_text: Union[str, bytes]) -> List[List[Frame]]:
    """
    解析一批 rank 调用栈

    Args:
        json_text: JSON 文本

    Returns:
        List[List[Frame]]: 每个 rank 的帧列表，保持输入顺序（最内层帧在前）
    """
    try:
        data = json.loads(json_text)
    except ValueError as e:
        raise StackDecodeError(f"JSON 解析失败: {e}") from e
    except RecursionError as e:
        raise StackDecodeError("JSON 解析失败: 嵌套层级过深") from e
    return decode_stack_batch(data)


def decode_stack_batch(data: Any) -> List[List[Frame]]:
    """
    将已经反序列化的 JSON 数据转换为调用栈列表

    Args:
        data: 由 json.loads 得到的对象

    Returns:
        List[List[Frame]]: 每个 rank 的帧列表
    """
    if not isinstance(data, list):
        raise StackDecodeError(f"顶层必须是 JSON 数组, 实际为: {type(data).__name__}")

    stacks = []
    for stack_idx, raw_stack in enumerate(data):
        if not isinstance(raw_stack, list):
            raise StackDecodeError(f"第 {stack_idx} 个调用栈必须是数组, 实际为: {type(raw_stack).__name__}")
        frames = []
        for frame_idx, raw_frame in enumerate(raw_stack):
            try:
                frames.append(parse_frame(raw_frame))
            except StackDecodeError as e:
                raise StackDecodeError(f"第 {stack_idx} 个调用栈第 {frame_idx} 帧: {e.message}") from e
        stacks.append(frames)

    logger.debug(f"解析到 {len(stacks)} 个调用栈")
    return stacks


def load_stack_batch(file_path: Union[str, Path]) -> List[List[Frame]]:
    """
    从文件读取调用栈批次，支持 .gz

    Args:
        file_path: JSON 文件路径

    Returns:
        List[List[Frame]]: 解析后的调用栈
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise StackDecodeError(f"文件不存在: {file_path}")

    logger.info(f"正在解析文件: {file_path}")
    open_func = gzip.open if file_path.suffix == '.gz' else open
    try:
        with open_func(file_path, 'rt', encoding='utf-8') as f:
            content = f.read()
    except (OSError, EOFError, UnicodeDecodeError, zlib.error) as e:
        raise StackDecodeError(f"读取文件失败: {file_path}: {e}") from e

    return parse_stack_batch(content)
