"""
core/executor/file_access.py 的单元测试。
"""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from core.executor.file_access import (
    SENTINELS,
    FileReader,
    ReadResult,
    ReadStatus,
    coerce_line_count,
    resolve_filename,
)
from core.executor.workspace import SessionWorkspace


@pytest.fixture
def workspace(tmp_path):
    ws = SessionWorkspace("files", tmp_path / "data")
    yield ws
    ws.close()


@pytest.fixture
def reader(workspace):
    return FileReader(workspace)


@pytest.fixture
def report(workspace) -> Path:
    """5 行的 CSV 文件。"""
    path = workspace.data_dir / "report.csv"
    path.write_text("id,value\n1,10\n2,20\n3,30\n4,40\n", encoding="utf-8")
    return path


class TestResolveFilename:
    """测试路径解析。"""

    def test_prefix_added(self, tmp_path):
        assert resolve_filename(tmp_path, "foo.csv") == tmp_path / "data" / "foo.csv"

    def test_prefix_kept(self, tmp_path):
        assert resolve_filename(tmp_path, "data/foo.csv") == tmp_path / "data" / "foo.csv"

    def test_nested_path(self, tmp_path):
        assert (
            resolve_filename(tmp_path, "plots/a.png")
            == tmp_path / "data" / "plots" / "a.png"
        )

    def test_parent_segments_not_canonicalized(self, tmp_path):
        """测试 `..` 不做规范化（已知限制）。"""
        resolved = resolve_filename(tmp_path, "../secret.txt")
        assert resolved == tmp_path / "data" / ".." / "secret.txt"


class TestReadResult:
    """测试 ReadResult 渲染。"""

    def test_ok_renders_text(self):
        assert ReadResult(ReadStatus.OK, "abc").render() == "abc"

    @pytest.mark.parametrize(
        "status, expected",
        [
            (ReadStatus.NOT_FOUND, "<file not found>"),
            (ReadStatus.UNREADABLE, "<file is not readable>"),
            (ReadStatus.IO_ERROR, "<unable to read file>"),
            (ReadStatus.EMPTY, "<file is empty>"),
        ],
    )
    def test_sentinels(self, status, expected):
        result = ReadResult(status)
        assert result.ok is False
        assert result.render() == expected

    def test_every_failure_has_sentinel(self):
        failures = [s for s in ReadStatus if s is not ReadStatus.OK]
        assert set(failures) == set(SENTINELS)


class TestFileReader:
    """测试 FileReader.read。"""

    def test_read_all(self, reader, report):
        result = reader.read("report.csv")

        assert result.status is ReadStatus.OK
        assert result.text == "id,value\n1,10\n2,20\n3,30\n4,40"

    def test_read_with_prefix(self, reader, report):
        assert reader.read("data/report.csv").text == reader.read("report.csv").text

    def test_read_first_lines(self, reader, report):
        assert reader.read("report.csv", 2).text == "id,value\n1,10"

    def test_minus_one_reads_all(self, reader, report):
        assert reader.read("report.csv", -1).text == reader.read("report.csv").text
        assert len(reader.read("report.csv", -1).text.splitlines()) == 5

    def test_line_count_larger_than_file(self, reader, report):
        assert len(reader.read("report.csv", 100).text.splitlines()) == 5

    def test_zero_lines_is_empty(self, reader, report):
        assert reader.read("report.csv", 0).status is ReadStatus.EMPTY

    def test_not_found(self, reader):
        assert reader.read("missing.txt").render() == "<file not found>"

    def test_empty_file(self, reader, workspace):
        (workspace.data_dir / "empty.txt").write_text("")
        assert reader.read("empty.txt").render() == "<file is empty>"

    def test_whitespace_only_is_empty(self, reader, workspace):
        (workspace.data_dir / "blank.txt").write_text("  \n\n\t\n")
        assert reader.read("blank.txt").status is ReadStatus.EMPTY

    def test_unreadable(self, reader, report):
        with patch("core.executor.file_access.os.access", return_value=False):
            assert reader.read("report.csv").render() == "<file is not readable>"

    def test_directory_is_io_error(self, reader, workspace):
        """测试读取目录时返回 IO 错误提示。"""
        (workspace.data_dir / "subdir").mkdir()
        assert reader.read("subdir").render() == "<unable to read file>"

    def test_io_error(self, reader, report):
        with patch.object(Path, "read_text", side_effect=OSError("disk gone")):
            assert reader.read("report.csv").status is ReadStatus.IO_ERROR

    @pytest.mark.skipif(
        sys.platform.startswith("win") or os.geteuid() == 0,
        reason="需要 POSIX 权限且非 root 用户",
    )
    def test_real_permission_denied(self, reader, report):
        report.chmod(0o000)
        try:
            assert reader.read("report.csv").status is ReadStatus.UNREADABLE
        finally:
            report.chmod(0o644)

    def test_crlf_lines(self, reader, workspace):
        (workspace.data_dir / "win.txt").write_bytes(b"a\r\nb\r\nc\r\n")
        assert reader.read("win.txt", 2).text == "a\nb"

    def test_name_too_long_returns_sentinel(self, reader):
        """测试超长文件名返回提示字符串而不是抛异常。"""
        result = reader.read("a" * 300 + ".txt")

        assert result.status in (ReadStatus.NOT_FOUND, ReadStatus.IO_ERROR)
        assert result.render() == SENTINELS[result.status]

    def test_null_byte_in_name(self, reader):
        result = reader.read("bad\x00name.txt")
        assert result.status in (ReadStatus.NOT_FOUND, ReadStatus.IO_ERROR)

    def test_exists_permission_error_is_unreadable(self, reader, report):
        with patch.object(Path, "exists", side_effect=PermissionError("denied")):
            assert reader.read("report.csv").status is ReadStatus.UNREADABLE

    def test_exists_os_error_is_io_error(self, reader, report):
        error = OSError(36, "File name too long")
        with patch.object(Path, "exists", side_effect=error):
            assert reader.read("report.csv").status is ReadStatus.IO_ERROR

    def test_string_line_count(self, reader, report):
        assert reader.read("report.csv", "2").text == "id,value\n1,10"
        assert reader.read("report.csv", "-1").text.count("\n") == 4


class TestCoerceLineCount:
    """测试行数参数转换。"""

    @pytest.mark.parametrize(
        "value, expected",
        [(None, None), (3, 3), ("3", 3), (" 4 ", 4), (2.0, 2), ("-1", -1)],
    )
    def test_valid(self, value, expected):
        assert coerce_line_count(value) == expected

    @pytest.mark.parametrize("value", ["all", "", [1], {"n": 1}])
    def test_invalid_reads_all(self, value):
        assert coerce_line_count(value) is None
