"""
获取并合并命令模块
"""

import time
from typing import List, Tuple

from ..validators import parse_summary_formats
from .common import export_extras, print_merge_report
from ...collector import fetch_stack_from_urls, load_rank_url_config, parse_rank_address, save_raw_stacks
from ...exceptions import EmptyInputError, StackMergeError
from ...merger import merge_stacks, validate_rank_list, write_merged_output
from ...parser import decode_stack_batch


class FetchCommand:
    """从各 rank 的 HTTP 接口获取调用栈并合并"""

    def _collect_rank_urls(self, args) -> List[Tuple[int, str]]:
        if args.file:
            return load_rank_url_config(args.file)
        return [parse_rank_address(spec) for spec in args.rank]

    def run(self, args) -> int:
        """运行调用栈获取与合并"""
        print(f"=== 调用栈获取与合并 ===")
        print(f"地址来源: {args.file if args.file else '命令行 -r'}")
        print(f"请求超时: {args.timeout} 秒")
        print(f"输出目录: {args.output_dir or '默认'}")
        print()

        try:
            rank_urls = self._collect_rank_urls(args)
            summary_formats = parse_summary_formats(args.summary)
        except (OSError, ValueError) as e:
            print(f"错误: 参数解析失败 - {e}")
            return 1

        if not rank_urls:
            print("错误: 没有有效的 rank 地址")
            return 1

        for rank, url in rank_urls:
            print(f"  rank {rank}: {url}")

        try:
            validate_rank_list([rank for rank, _ in rank_urls])
        except StackMergeError as e:
            print(f"错误: {e}")
            return 1

        truncate_marker = args.marker if args.truncate_private_symbols else None

        try:
            start_time = time.time()

            collected = fetch_stack_from_urls(rank_urls, timeout=args.timeout, max_workers=args.max_workers)
            if collected.failed_ranks:
                print(f"警告: 以下 rank 获取失败，将标记为缺失: {collected.failed_ranks}")
            if not collected.stacks:
                raise EmptyInputError("所有 rank 的调用栈获取均失败")

            raw_path, ranks_path = save_raw_stacks(collected, args.raw_output_dir)

            stacks = decode_stack_batch(collected.stacks)
            result = merge_stacks(stacks, collected.ordered_rank_list(), truncate_marker=truncate_marker)
            result.output_path = write_merged_output(result.lines, args.output_dir)

            print_merge_report(result)
            generated_files = [raw_path, ranks_path, result.output_path]
            generated_files.extend(export_extras(result, summary_formats, args.plot))

            total_time = time.time() - start_time
            print(f"\n获取与合并完成，总耗时: {total_time:.2f} 秒")

            print("\n生成的文件:")
            for file_path in generated_files:
                print(f"  {file_path}")

            return 0

        except StackMergeError as e:
            print(f"错误: {e}")
            return 1
        except Exception as e:
            print(f"错误: {e}")
            import traceback
            traceback.print_exc()
            return 1
