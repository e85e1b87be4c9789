"""
工作空间文件读取模块。

供 Agent 读取会话数据目录中的文本文件。所有失败都转换为带标签的
ReadResult，最终渲染为固定的提示字符串，调用方无需处理异常。

注意:
    路径解析不做 `..` 规范化，文件名被视为 Agent 生成的可信输入。
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from core.executor.workspace import SessionWorkspace
from utils.logger_system import log_msg
from utils.text_utils import describe_line_count


DATA_PREFIX = "data/"


class ReadStatus(Enum):
    """文件读取结果标签。"""

    OK = "ok"
    NOT_FOUND = "not_found"
    UNREADABLE = "unreadable"
    IO_ERROR = "io_error"
    EMPTY = "empty"


# 非 OK 状态对应的提示字符串（Agent 依赖这些固定文本）
SENTINELS = {
    ReadStatus.NOT_FOUND: "<file not found>",
    ReadStatus.UNREADABLE: "<file is not readable>",
    ReadStatus.IO_ERROR: "<unable to read file>",
    ReadStatus.EMPTY: "<file is empty>",
}


@dataclass(frozen=True)
class ReadResult:
    """文件读取结果。

    Attributes:
        status: 结果标签
        text: 读取到的内容（仅 OK 时有值）
    """

    status: ReadStatus
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ReadStatus.OK

    def render(self) -> str:
        """渲染为返回给 Agent 的字符串。"""
        if self.ok:
            return self.text
        return SENTINELS[self.status]


def resolve_filename(root_dir: Path, filename: str) -> Path:
    """把 Agent 提供的文件名解析为会话内路径。

    "foo.csv" 与 "data/foo.csv" 都解析为 <root>/data/foo.csv。

    Args:
        root_dir: 会话根目录
        filename: 文件名

    Returns:
        解析后的路径
    """
    filename = str(filename)
    if not filename.startswith(DATA_PREFIX):
        filename = DATA_PREFIX + filename
    return root_dir / filename


def coerce_line_count(line_count: Any) -> Optional[int]:
    """把 Agent 传入的行数转换为整数，无法转换时读取全部行。

    Examples:
        >>> coerce_line_count("2")
        2
        >>> coerce_line_count("all") is None
        True
    """
    if line_count is None or isinstance(line_count, int):
        return line_count
    try:
        return int(line_count)
    except (TypeError, ValueError):
        log_msg("WARNING", f"line_count 无法解析为整数: {line_count!r}，读取全部行")
        return None


class FileReader:
    """会话文件读取器。"""

    def __init__(self, workspace: SessionWorkspace):
        self.workspace = workspace

    def resolve(self, filename: str) -> Path:
        return resolve_filename(self.workspace.root_dir, filename)

    def read(self, filename: str, line_count: Optional[int] = None) -> ReadResult:
        """读取文件内容。

        Args:
            filename: 文件名（可带或不带 data/ 前缀）
            line_count: 读取行数，None 或 -1 表示全部，n >= 0 返回前 n 行
                （字符串数字会被转换）

        Returns:
            ReadResult 对象
        """
        path = self.resolve(filename)
        line_count = coerce_line_count(line_count)

        if line_count == -1:
            line_count = None

        log_msg(
            "INFO",
            f"Reading {describe_line_count(line_count)} lines from file: {path}",
        )

        try:
            if not path.exists():
                return ReadResult(ReadStatus.NOT_FOUND)
            if not os.access(path, os.R_OK):
                return ReadResult(ReadStatus.UNREADABLE)
        except PermissionError as e:
            log_msg("WARNING", f"无权访问文件: {path}: {e}")
            return ReadResult(ReadStatus.UNREADABLE)
        except (OSError, ValueError) as e:
            # 例如文件名过长或包含空字符
            log_msg("WARNING", f"检查文件失败: {path}: {e}")
            return ReadResult(ReadStatus.IO_ERROR)

        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log_msg("WARNING", f"读取文件失败: {path}: {e}")
            return ReadResult(ReadStatus.IO_ERROR)

        lines = content.splitlines()
        if line_count is not None:
            lines = lines[:line_count]

        contents = "\n".join(lines)
        if not contents.strip():
            return ReadResult(ReadStatus.EMPTY)

        return ReadResult(ReadStatus.OK, contents)
