"""
输出路径工具模块
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

DEFAULT_OUTPUT_ROOT = Path("/tmp")


def default_output_dir(sub_dir: str, now: Optional[datetime] = None) -> Path:
    """
    默认输出目录: /tmp/output_<YYYYmmdd>/<sub_dir>

    Args:
        sub_dir: 子目录名，例如 merged_stack、url_stack
        now: 指定时间，默认为当前时间
    """
    now = now or datetime.now()
    return DEFAULT_OUTPUT_ROOT / f"output_{now.strftime('%Y%m%d')}" / sub_dir


def timestamped_file(output_dir: Union[str, Path], suffix: str, prefix: str = "stacktrace",
                     now: Optional[datetime] = None) -> Path:
    """生成 <prefix>_<YYYYmmddHHMMSS>.<suffix> 文件路径"""
    now = now or datetime.now()
    return Path(output_dir) / f"{prefix}_{now.strftime('%Y%m%d%H%M%S')}.{suffix}"
