"""
合并命令模块
"""

import time

from ..validators import parse_ranks_option, parse_summary_formats, validate_file
from .common import export_extras, print_merge_report
from ...exceptions import StackMergeError
from ...merger import merge_stack_file


class MergeCommand:
    """合并命令处理器: 读取已收集的调用栈 JSON，合并后输出折叠栈文件"""

    def run(self, args) -> int:
        """运行调用栈合并"""
        print(f"=== 调用栈合并 ===")
        print(f"输入文件: {args.input}")
        print(f"rank 列表: {args.ranks}")
        print(f"私有符号截断: {args.marker if args.truncate_private_symbols else '关闭'}")
        print(f"输出目录: {args.output_dir or '默认'}")
        print()

        try:
            rank_list = parse_ranks_option(args.ranks)
            summary_formats = parse_summary_formats(args.summary)
        except ValueError as e:
            print(f"错误: 参数解析失败 - {e}")
            return 1

        if not validate_file(args.input):
            return 1

        truncate_marker = args.marker if args.truncate_private_symbols else None

        try:
            start_time = time.time()

            result = merge_stack_file(
                args.input,
                rank_list,
                output_dir=args.output_dir,
                truncate_marker=truncate_marker,
            )
            print_merge_report(result)
            generated_files = [result.output_path]
            generated_files.extend(export_extras(result, summary_formats, args.plot))

            total_time = time.time() - start_time
            print(f"\n合并完成，总耗时: {total_time:.2f} 秒")

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
