"""text_utils 模块单元测试。"""

from utils.text_utils import describe_line_count, truncate_term_out


class TestTruncateTermOut:
    """truncate_term_out 函数测试。"""

    def test_short_output_unchanged(self):
        assert truncate_term_out("hello", max_len=100) == "hello"

    def test_empty_output(self):
        assert truncate_term_out("") == ""
        assert truncate_term_out(None) == ""

    def test_long_output_keeps_head_and_tail(self):
        text = "HEAD" + "x" * 10000 + "TAIL"
        result = truncate_term_out(text, max_len=700)

        assert result.startswith("HEAD")
        assert result.endswith("TAIL")
        assert "chars truncated" in result
        assert len(result) < 800


class TestDescribeLineCount:
    def test_all(self):
        assert describe_line_count(None) == "ALL"

    def test_number(self):
        assert describe_line_count(5) == "5"
