"""
命令行接口单元测试
"""

import json
import os
import tempfile
import unittest
from unittest.mock import patch

from flame_stack_tool.cli.main import main
from flame_stack_tool.cli.validators import parse_ranks_option, parse_summary_formats
from flame_stack_tool.collector import CollectResult

MAIN = {"file": "a.c", "func": "main", "ip": "0x1", "lineno": 1}
FOO = {"file": "b.c", "func": "foo", "lineno": 5, "locals": {"n": 1}}


class TestValidators(unittest.TestCase):
    def test_parse_ranks_option(self):
        self.assertEqual(parse_ranks_option("0-2,5"), [0, 1, 2, 5])
        with self.assertRaises(ValueError):
            parse_ranks_option("  ")

    def test_parse_summary_formats(self):
        self.assertEqual(parse_summary_formats(""), [])
        self.assertEqual(parse_summary_formats("xlsx, json,xlsx"), ["xlsx", "json"])
        with self.assertRaises(ValueError):
            parse_summary_formats("csv")


class TestMergeCommand(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.output_dir = os.path.join(self.temp_dir.name, "out")
        self.input_path = os.path.join(self.temp_dir.name, "stacks.json")
        with open(self.input_path, 'w', encoding='utf-8') as f:
            json.dump([[FOO, MAIN], [MAIN], [MAIN]], f)

    def tearDown(self):
        self.temp_dir.cleanup()

    def _output_files(self):
        return sorted(os.listdir(self.output_dir)) if os.path.exists(self.output_dir) else []

    def test_merge_success(self):
        code = main(["merge", self.input_path, "--ranks", "0-2", "--output-dir", self.output_dir])
        self.assertEqual(code, 0)
        files = self._output_files()
        self.assertEqual(len(files), 1)
        with open(os.path.join(self.output_dir, files[0]), encoding='utf-8') as f:
            lines = f.read().splitlines()
        self.assertEqual(lines, [
            "main (a.c:1)@0-2| @1-2|0 1",
            "main (a.c:1)@0-2|;foo (b.c:5)@0|1-2 @0|1-2 1",
        ])

    def test_merge_with_summary_and_plot(self):
        code = main(["merge", self.input_path, "--ranks", "0-3", "--output-dir", self.output_dir,
                     "--summary", "json,xlsx", "--plot"])
        self.assertEqual(code, 0)
        suffixes = sorted(os.path.splitext(name)[1] for name in self._output_files())
        self.assertEqual(suffixes, [".json", ".png", ".txt", ".xlsx"])

    def test_cardinality_error(self):
        code = main(["merge", self.input_path, "--ranks", "0-1", "--output-dir", self.output_dir])
        self.assertEqual(code, 1)
        self.assertEqual(self._output_files(), [])

    def test_invalid_ranks(self):
        code = main(["merge", self.input_path, "--ranks", "2-0", "--output-dir", self.output_dir])
        self.assertEqual(code, 1)

    def test_missing_input(self):
        code = main(["merge", os.path.join(self.temp_dir.name, "none.json"), "--ranks", "0"])
        self.assertEqual(code, 1)

    def test_no_command(self):
        self.assertEqual(main([]), 1)


class TestFetchCommand(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.output_dir = os.path.join(self.temp_dir.name, "merged")
        self.raw_dir = os.path.join(self.temp_dir.name, "raw")

    def tearDown(self):
        self.temp_dir.cleanup()

    @patch("flame_stack_tool.cli.commands.fetch.fetch_stack_from_urls")
    def test_failed_rank_shows_as_leak(self, mock_fetch):
        mock_fetch.return_value = CollectResult(stacks=[[MAIN], [MAIN]], ranks=[0, 2], failed_ranks=[1])
        code = main(["fetch", "-r", "0:h:1", "-r", "1:h:2", "-r", "2:h:3",
                     "--output-dir", self.output_dir, "--raw-output-dir", self.raw_dir])
        self.assertEqual(code, 0)

        rank_urls = mock_fetch.call_args[0][0]
        self.assertEqual([rank for rank, _ in rank_urls], [0, 1, 2])

        merged = os.listdir(self.output_dir)
        with open(os.path.join(self.output_dir, merged[0]), encoding='utf-8') as f:
            expected = f.read()
        self.assertEqual(expected, "main (a.c:1)@0/2|1 @0/2|1 1\n")

        raw_files = sorted(os.listdir(self.raw_dir))
        self.assertEqual([os.path.splitext(name)[1] for name in raw_files], [".json", ".ranks"])
        with open(os.path.join(self.raw_dir, raw_files[1]), encoding='utf-8') as f:
            ranks = f.read().strip()
        self.assertEqual(ranks, "0,2,1")

        # 用保存的批次和 rank 顺序重新合并，结果一致
        replay_dir = os.path.join(self.temp_dir.name, "replay")
        code = main(["merge", os.path.join(self.raw_dir, raw_files[0]), "--ranks", ranks,
                     "--output-dir", replay_dir])
        self.assertEqual(code, 0)
        replayed = os.listdir(replay_dir)
        with open(os.path.join(replay_dir, replayed[0]), encoding='utf-8') as f:
            self.assertEqual(f.read(), expected)

    @patch("flame_stack_tool.collector.requests.Session")
    def test_duplicate_ranks_rejected_before_fetch(self, mock_session):
        code = main(["fetch", "-r", "0:h:1", "-r", "0:h:2",
                     "--output-dir", self.output_dir, "--raw-output-dir", self.raw_dir])
        self.assertEqual(code, 1)
        mock_session.assert_not_called()
        self.assertFalse(os.path.exists(self.raw_dir))
        self.assertFalse(os.path.exists(self.output_dir))

    @patch("flame_stack_tool.cli.commands.fetch.fetch_stack_from_urls")
    def test_all_ranks_failed(self, mock_fetch):
        mock_fetch.return_value = CollectResult(failed_ranks=[0])
        code = main(["fetch", "-r", "0:h:1", "--output-dir", self.output_dir,
                     "--raw-output-dir", self.raw_dir])
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(self.output_dir))
        self.assertFalse(os.path.exists(self.raw_dir))

    @patch("flame_stack_tool.cli.commands.fetch.fetch_stack_from_urls")
    def test_url_config_file(self, mock_fetch):
        config = os.path.join(self.temp_dir.name, "urls.json")
        with open(config, 'w', encoding='utf-8') as f:
            json.dump({"rank1": "h:2", "rank0": "h:1"}, f)
        mock_fetch.return_value = CollectResult(stacks=[[MAIN], []], ranks=[0, 1])
        code = main(["fetch", "-f", config, "--output-dir", self.output_dir,
                     "--raw-output-dir", self.raw_dir])
        self.assertEqual(code, 0)
        self.assertEqual(mock_fetch.call_args[0][0][0], (0, "http://h:1/apis/pythonext/callstack"))


if __name__ == '__main__':
    unittest.main()
