"""
代码执行器模块。

提供会话工作空间、执行环境选择、代码执行沙箱、文件读取和参数修复功能。
"""

from .workspace import SessionWorkspace
from .environment import ExecutionEnvironment, SandboxConfigError, select_environment
from .interpreter import Interpreter, ExecutionRequest, ExecutionResult, execute
from .file_access import FileReader, ReadResult, ReadStatus
from .repair import repair_code_argument

__all__ = [
    "SessionWorkspace",
    "ExecutionEnvironment",
    "SandboxConfigError",
    "select_environment",
    "Interpreter",
    "ExecutionRequest",
    "ExecutionResult",
    "execute",
    "FileReader",
    "ReadResult",
    "ReadStatus",
    "repair_code_argument",
]
