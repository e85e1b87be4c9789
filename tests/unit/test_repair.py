"""
core/executor/repair.py 的单元测试。
"""

from core.executor.repair import needs_repair, repair_code_argument


class TestRepairCodeArgument:
    """测试 code 参数修复。"""

    def test_wrapped_call(self):
        assert repair_code_argument('{"code": "print(1+1)"}') == "print(1+1)"

    def test_plain_code_unchanged(self):
        code = "print('hello')\nx = {'a': 1}"
        assert repair_code_argument(code) == code

    def test_literal_newlines_converted(self):
        raw = '{"code": "import os\\nprint(os.listdir(\'data\'))"}'
        assert repair_code_argument(raw) == "import os\nprint(os.listdir('data'))"

    def test_surrounding_whitespace(self):
        raw = '  {"code": "print(3)"}\n  '
        assert repair_code_argument(raw) == "print(3)"

    def test_only_one_brace_stripped(self):
        """测试只去掉一个结尾的 `}`。"""
        raw = '{"code": "d = {}"}'
        assert repair_code_argument(raw) == "d = {}"

    def test_only_one_quote_stripped(self):
        raw = '{"code": "print(\'a\')""}'
        assert repair_code_argument(raw) == "print('a')\""

    def test_split_on_first_marker(self):
        raw = '{"code": "s = \'"code": "\'"}'
        assert repair_code_argument(raw) == 's = \'"code": "\''

    def test_unrecognized_tail_passed_through(self):
        """测试超出已知形态的结尾不做处理。"""
        raw = 'functions.python({"code": "print(5)"})'
        assert repair_code_argument(raw) == 'print(5)"})'

    def test_missing_closing(self):
        assert repair_code_argument('{"code": "print(7)') == "print(7)"


class TestNeedsRepair:
    def test_detects_marker(self):
        assert needs_repair('{"code": "x"}') is True

    def test_no_marker(self):
        assert needs_repair('{"code":"x"}') is False
        assert needs_repair("print(1)") is False
