"""
从各 rank 的 HTTP 接口并发获取调用栈

每个 rank 使用独立的 requests.Session，互不共享可变状态；单个 rank 失败只记录
日志，不影响其余 rank。所有请求完成后才返回结果。
"""

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests

from .exceptions import FetchError, OutputWriteError
from .utils.file_utils import default_output_dir, timestamped_file

logger = logging.getLogger(__name__)

CALLSTACK_API_PATH = "/apis/pythonext/callstack"
URL_STACK_DIR = "url_stack"
DEFAULT_TIMEOUT = 10.0
MAX_POOL_SIZE = 32
RANK_ORDER_SUFFIX = ".ranks"

_RANK_KEY_RE = re.compile(r"^rank(\d+)$")


@dataclass
class CollectResult:
    """并发获取的结果，stacks 与 ranks 一一对应，保持声明顺序"""
    stacks: List[Any] = field(default_factory=list)
    ranks: List[int] = field(default_factory=list)
    failed_ranks: List[int] = field(default_factory=list)
    errors: Dict[int, str] = field(default_factory=dict)

    def ordered_rank_list(self) -> List[int]:
        """
        用于合并的 rank 列表: 成功的 rank 在前，失败的 rank 在后

        按位置配对时失败的 rank 不会分到调用栈，在输出中表现为全部缺失。
        """
        return self.ranks + self.failed_ranks


def build_callstack_url(address: str) -> str:
    """ip:port -> http://ip:port/apis/pythonext/callstack"""
    address = address.strip()
    if address.startswith("http://") or address.startswith("https://"):
        return address
    return f"http://{address}{CALLSTACK_API_PATH}"


def parse_rank_address(spec: str) -> Tuple[int, str]:
    """
    解析 RANK:IP:PORT 格式，允许使用尖括号，例如 <0>:<10.0.0.1:9000>

    Returns:
        Tuple[int, str]: (rank, url)
    """
    parts = spec.split(':', 1)
    if len(parts) != 2:
        raise ValueError(f"格式错误 '{spec}'，应为 RANK:IP:PORT")

    rank_part = parts[0].strip().strip('<>')
    address = parts[1].strip().strip('<>')
    if not rank_part.isdigit():
        raise ValueError(f"无法解析 rank: '{parts[0]}'")
    if not address:
        raise ValueError(f"缺少地址: '{spec}'")
    return int(rank_part), build_callstack_url(address)


def load_rank_url_config(file_path: Union[str, Path]) -> List[Tuple[int, str]]:
    """
    读取 rank 地址配置文件: {"rank0": "ip:port", "rank1": "ip:port", ...}

    Returns:
        List[Tuple[int, str]]: 按 rank 排序的 (rank, url) 列表
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"rank 配置文件顶层必须是 JSON 对象: {file_path}")

    rank_urls = []
    for key, value in data.items():
        match = _RANK_KEY_RE.match(key)
        if not match:
            logger.warning(f"跳过无法识别的键: {key}")
            continue
        if not isinstance(value, str):
            logger.warning(f"跳过 {key}: 地址必须是字符串")
            continue
        rank_urls.append((int(match.group(1)), build_callstack_url(value)))

    rank_urls.sort(key=lambda item: item[0])
    logger.info(f"从 {file_path} 读取到 {len(rank_urls)} 个 rank 地址")
    return rank_urls


def _fetch_single_stack(rank: int, url: str, timeout: float) -> Any:
    """获取单个 rank 的调用栈 JSON"""
    try:
        with requests.Session() as session:
            response = session.get(url, timeout=timeout)
            response.raise_for_status()
            data = response.json()
    except requests.RequestException as e:
        raise FetchError(rank, f"请求 {url} 失败: {e}") from e
    except ValueError as e:
        raise FetchError(rank, f"{url} 返回的不是合法 JSON: {e}") from e

    if not isinstance(data, list):
        raise FetchError(rank, f"{url} 返回的调用栈必须是数组, 实际为: {type(data).__name__}")
    return data


def fetch_stack_from_urls(rank_urls: Sequence[Tuple[int, str]], timeout: float = DEFAULT_TIMEOUT,
                          max_workers: Optional[int] = None) -> CollectResult:
    """
    并发获取所有 rank 的调用栈

    Args:
        rank_urls: (rank, url) 列表，顺序即声明顺序
        timeout: 单个请求超时时间（秒）
        max_workers: 线程池大小，默认为 rank 数量（最多 32）

    Returns:
        CollectResult: 成功的调用栈与失败的 rank
    """
    result = CollectResult()
    if not rank_urls:
        return result

    max_workers = max_workers or min(len(rank_urls), MAX_POOL_SIZE)
    logger.info(f"开始获取 {len(rank_urls)} 个 rank 的调用栈，线程池大小: {max_workers}")

    fetched: Dict[int, Any] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_rank = {
            executor.submit(_fetch_single_stack, rank, url, timeout): rank
            for rank, url in rank_urls
        }

        for future in as_completed(future_to_rank):
            rank = future_to_rank[future]
            try:
                fetched[rank] = future.result()
                logger.debug(f"rank {rank} 获取成功，帧数: {len(fetched[rank])}")
            except FetchError as e:
                logger.warning(f"rank {rank} 获取失败: {e.message}")
                result.errors[rank] = e.message

    for rank, _ in rank_urls:
        if rank in fetched:
            result.ranks.append(rank)
            result.stacks.append(fetched[rank])
        else:
            result.failed_ranks.append(rank)

    logger.info(f"获取完成: 成功 {len(result.ranks)} 个，失败 {len(result.failed_ranks)} 个")
    return result


def save_raw_stacks(result: CollectResult, output_dir: Optional[Union[str, Path]] = None) -> Tuple[Path, Path]:
    """
    将获取到的原始调用栈批次保存为 JSON

    同名的 .ranks 文件记录与批次配对的 rank 顺序（成功的在前，失败的在后），
    内容可以直接作为 merge 命令的 --ranks 参数重放。

    Returns:
        Tuple[Path, Path]: (调用栈 JSON 文件, rank 顺序文件)
    """
    output_dir = Path(output_dir) if output_dir is not None else default_output_dir(URL_STACK_DIR)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = timestamped_file(output_dir, "json")
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(result.stacks, f, indent=2, ensure_ascii=False)
        ranks_path = output_path.with_suffix(RANK_ORDER_SUFFIX)
        with open(ranks_path, 'w', encoding='utf-8') as f:
            f.write(",".join(str(rank) for rank in result.ordered_rank_list()) + "\n")
    except OSError as e:
        raise OutputWriteError(f"保存原始调用栈失败: {e}") from e

    logger.info(f"原始调用栈已保存到: {output_path}，rank 顺序: {ranks_path}")
    return output_path, ranks_path
