"""
调用栈合并流程: 解码 -> 规范化 -> 插入前缀树 -> 遍历输出
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union
import logging

from .exceptions import EmptyInputError, OutputWriteError, RankCardinalityError
from .models import Frame, MergeResult
from .parser import load_stack_batch, parse_stack_batch
from .stack_trie import StackTrie
from .utils.file_utils import default_output_dir, timestamped_file
from .utils.frame_utils import normalize_stack

logger = logging.getLogger(__name__)

MERGED_STACK_DIR = "merged_stack"


def validate_rank_list(rank_list: Sequence[int]):
    """检查 rank 列表: 每个 rank 必须是非负整数且互不重复"""
    seen = set()
    for rank in rank_list:
        if isinstance(rank, bool) or not isinstance(rank, int) or rank < 0:
            raise RankCardinalityError(f"rank 必须是非负整数: {rank!r}")
        if rank in seen:
            raise RankCardinalityError(f"rank 列表中存在重复的 rank: {rank}")
        seen.add(rank)


def merge_stacks(stacks: Sequence[Sequence[Frame]], rank_list: Sequence[int],
                 truncate_marker: Optional[str] = None) -> MergeResult:
    """
    合并多个 rank 的调用栈

    调用栈与 rank 按位置配对；调用栈少于 rank 时，多出的 rank 仍计入全体 rank，
    在每个节点上都表现为缺失。

    Args:
        stacks: 每个 rank 的帧列表（最内层帧在前）
        rank_list: 有序的 rank 列表
        truncate_marker: 可选的私有符号截断标记，见 normalize_stack

    Returns:
        MergeResult: 输出行与前缀树

    Raises:
        EmptyInputError: 没有调用栈或没有 rank
        RankCardinalityError: rank 非法、重复，或调用栈数量超过 rank 数量
    """
    if not stacks:
        raise EmptyInputError("没有可用的调用栈")
    if not rank_list:
        raise EmptyInputError("没有声明任何 rank")

    validate_rank_list(rank_list)

    logger.info(f"调用栈数量: {len(stacks)}, rank 数量: {len(rank_list)}")
    if len(stacks) > len(rank_list):
        raise RankCardinalityError(
            f"调用栈数量 ({len(stacks)}) 超过 rank 数量 ({len(rank_list)})"
        )
    if len(stacks) < len(rank_list):
        logger.warning(f"rank {list(rank_list[len(stacks):])} 没有对应的调用栈，将全部标记为缺失")

    trie = StackTrie(rank_list)
    for stack, rank in zip(stacks, rank_list):
        keys = normalize_stack(stack, truncate_marker=truncate_marker)
        if not keys:
            logger.debug(f"rank {rank} 的调用栈为空")
        trie.insert(keys, rank)

    lines = trie.traverse_with_all_stack()
    logger.info(f"合并完成，共 {len(lines)} 条不同路径")
    return MergeResult(
        lines=lines,
        trie=trie,
        stack_count=len(stacks),
        rank_list=list(rank_list),
    )


def write_merged_output(lines: List[str], output_dir: Optional[Union[str, Path]] = None) -> Path:
    """
    写出合并结果文件 stacktrace_<timestamp>.txt

    Args:
        lines: 输出行
        output_dir: 输出目录，默认 /tmp/output_<date>/merged_stack

    Returns:
        Path: 输出文件路径
    """
    output_dir = Path(output_dir) if output_dir is not None else default_output_dir(MERGED_STACK_DIR)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = timestamped_file(output_dir, "txt")
        with open(output_path, 'w', encoding='utf-8', newline='\n') as f:
            for line in lines:
                f.write(f"{line}\n")
    except OSError as e:
        raise OutputWriteError(f"写入合并结果失败: {e}") from e

    logger.info(f"合并结果已写入: {output_path}")
    return output_path


def process_and_merge_callstacks(json_data: Union[str, bytes], rank_list: Sequence[int],
                                 output_dir: Optional[Union[str, Path]] = None,
                                 truncate_marker: Optional[str] = None) -> MergeResult:
    """
    解析 JSON 调用栈批次、合并并写出结果

    任何解码或校验错误都会在写文件之前抛出，不会产生输出文件。
    """
    stacks = parse_stack_batch(json_data)
    result = merge_stacks(stacks, rank_list, truncate_marker=truncate_marker)
    result.output_path = write_merged_output(result.lines, output_dir)
    return result


def merge_stack_file(file_path: Union[str, Path], rank_list: Sequence[int],
                     output_dir: Optional[Union[str, Path]] = None,
                     truncate_marker: Optional[str] = None) -> MergeResult:
    """从文件读取调用栈批次并合并"""
    stacks = load_stack_batch(file_path)
    result = merge_stacks(stacks, rank_list, truncate_marker=truncate_marker)
    result.output_path = write_merged_output(result.lines, output_dir)
    return result
