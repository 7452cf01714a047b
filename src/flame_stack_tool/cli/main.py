"""
CLI主模块
"""

import argparse
import logging
import sys

from .commands import MergeCommand, FetchCommand
from ..utils.frame_utils import DEFAULT_PRIVATE_SYMBOL_MARKER


def _add_merge_options(parser: argparse.ArgumentParser):
    """merge 与 fetch 共用的选项"""
    parser.add_argument('--output-dir', default=None,
                        help='合并结果输出目录 (默认: /tmp/output_<日期>/merged_stack)')
    parser.add_argument('--truncate-private-symbols', action='store_true',
                        help='遇到包含私有符号标记的帧时截断调用栈，该帧及更深的帧都会被丢弃 (默认: 关闭)')
    parser.add_argument('--marker', default=DEFAULT_PRIVATE_SYMBOL_MARKER,
                        help=f'私有符号标记，需配合 --truncate-private-symbols 使用 (默认: {DEFAULT_PRIVATE_SYMBOL_MARKER})')
    parser.add_argument('--summary', type=str, default='',
                        help='额外导出节点汇总，使用逗号分隔的格式: json, xlsx\n'
                             '示例: --summary "json,xlsx"')
    parser.add_argument('--plot', action='store_true',
                        help='生成各终止路径 rank 分布图 (PNG) (默认: False)')


def parse_arguments(argv=None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        description="Flame Stack Tool - 合并多个 rank 的调用栈，定位执行路径分叉",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 合并已收集的调用栈 (8 个 rank)
  flame-stack-tool merge stacks.json --ranks 0-7

  # 合并时截断 lto_priv 私有符号，并导出节点汇总
  flame-stack-tool merge stacks.json --ranks 0-7 --truncate-private-symbols --summary json,xlsx

  # 从 rank 地址配置文件获取调用栈并合并
  flame-stack-tool fetch -f urls.json --output-dir ./merged

  # 指定部分 rank 的地址
  flame-stack-tool fetch -r 0:10.0.0.1:9000 -r 1:10.0.0.2:9000 --plot

输出格式 (每行一条不同的终止路径):
  frame1@<present>|<leaked>;...;leaf@<present>|<leaked> @<terminal>|<others> 1
  末尾的 1 表示一条路径，不是采样次数；rank 数量信息在 @ 注解中。
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # merge 命令 - 合并已收集的调用栈文件
    merge_parser = subparsers.add_parser('merge', help='合并已收集的调用栈 JSON 文件',
                                         formatter_class=argparse.RawTextHelpFormatter)
    merge_parser.add_argument('input', help='调用栈 JSON 文件路径 (每个元素是一个 rank 的帧列表，支持 .gz)')
    merge_parser.add_argument('--ranks', required=True,
                              help='与调用栈按位置配对的 rank 列表，支持区间\n'
                                   '示例: "0-7" 或 "0,2,4-5"')
    _add_merge_options(merge_parser)

    # fetch 命令 - 从各 rank 获取调用栈并合并
    fetch_parser = subparsers.add_parser('fetch', help='从各 rank 的 HTTP 接口获取调用栈并合并',
                                         formatter_class=argparse.RawTextHelpFormatter)
    source_group = fetch_parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument('-f', '--file',
                              help='rank 地址配置文件，格式: {"rank0": "ip:port", ...}')
    source_group.add_argument('-r', '--rank', action='append', default=[],
                              help='指定 rank 与地址，格式 RANK:IP:PORT，可重复使用')
    fetch_parser.add_argument('--timeout', type=float, default=10.0, help='单个请求超时时间，单位秒 (默认: 10)')
    fetch_parser.add_argument('--max-workers', type=int, default=None,
                              help='并发请求的最大线程数，默认为 rank 数量 (最多 32)')
    fetch_parser.add_argument('--raw-output-dir', default=None,
                              help='原始调用栈保存目录 (默认: /tmp/output_<日期>/url_stack)')
    _add_merge_options(fetch_parser)

    return parser.parse_args(argv)


def main(argv=None):
    """主函数"""
    args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    if not args.command:
        print("错误: 请指定命令 (merge, fetch)")
        print("使用 --help 查看帮助信息")
        return 1

    if args.command == 'merge':
        command = MergeCommand()
        return command.run(args)
    elif args.command == 'fetch':
        command = FetchCommand()
        return command.run(args)
    else:
        print(f"错误: 未知命令: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
