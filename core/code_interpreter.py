"""
Code Interpreter 模块。

面向对话编排器的函数接口：每个会话一个实例，暴露
read_file_contents / python / pythoncode 三个按名调用的函数，
全部以字符串返回，编排器无需处理执行失败或文件读取失败。
"""

import json
from typing import Any, Callable, Dict, List, Optional, Union

from core.executor.file_access import FileReader
from core.executor.interpreter import Interpreter
from core.executor.repair import repair_code_argument
from core.executor.workspace import SessionWorkspace
from utils.config import Config
from utils.logger_system import log_msg


# 参数可以按原始代码处理的函数
CODE_FUNCTIONS = ("python", "pythoncode")


SYSTEM_PROMPT = (
    "You are an AI assistant that can read files and run Python code in order to "
    "answer the user's question. You can access a folder called 'data/' from the "
    "Python code to read or write files. Always save visualizations and charts "
    "into a file. When creating links to files in the data directory in your "
    "response, use the format [link text](data/filename). When the task requires "
    "to process or read user provided data from files, always read the file "
    "content first, before running Python code. Don't assume the contents of "
    "files. When processing CSV files, read the file first before writing any "
    "Python code. You can also use Python code to download files or images from "
    "URLs. Note that Python code will always be run in an isolated environment, "
    "without access to variables from previous code. You can include images in "
    "your response with the format '![image name](data/image_filename.jpg)'. "
    "Include visualizations as images in your response."
)


class CodeInterpreter:
    """会话级代码解释器。

    Attributes:
        workspace: 会话工作空间
        interpreter: 代码执行器
        reader: 文件读取器
    """

    def __init__(self, session_id: Union[str, int], config: Config):
        """初始化会话（创建工作空间目录）。

        Args:
            session_id: 会话 ID
            config: 全局配置（只读）
        """
        self.config = config
        self.workspace = SessionWorkspace(session_id, config.workspace.base_dir)
        self.interpreter = Interpreter(self.workspace, config.code_interpreter)
        self.reader = FileReader(self.workspace)

        self._functions: Dict[str, Callable[..., str]] = {
            "read_file_contents": self.read_file_contents,
            "python": self.python,
            "pythoncode": self.pythoncode,
        }

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    # ============================================================
    # 对外函数
    # ============================================================

    def read_file_contents(self, filename: str, line_count: Optional[int] = None) -> str:
        """Read the contents of a file

        Args:
            filename: The name of the file to read
            line_count: How many lines to read (-1 = all lines)
        """
        return self.reader.read(filename, line_count).render()

    def python(self, code: str) -> str:
        """Run python code

        Args:
            code: The code to run. Code must have a print statement in the end
                that prints out the relevant return value

        Returns:
            JSON 字符串 {"output": str, "result_code": int}
        """
        code = repair_code_argument(code.strip())
        result = self.interpreter.run(code)
        return json.dumps(result.to_payload(), ensure_ascii=False)

    def pythoncode(self, code: str) -> str:
        """python() 的别名（模型有时会调用这个不存在的函数名）。"""
        log_msg("WARNING", "模型调用了不存在的 'pythoncode' 函数，按 python 处理")
        return self.python(code)

    # ============================================================
    # 编排器集成
    # ============================================================

    def tool_schemas(self) -> List[Dict[str, Any]]:
        """返回 Function Calling 工具列表（不包含 pythoncode 别名）。"""
        return [
            {
                "type": "function",
                "function": {
                    "name": "read_file_contents",
                    "description": "Read the contents of a file",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "filename": {
                                "type": "string",
                                "description": "The name of the file to read",
                            },
                            "line_count": {
                                "type": "integer",
                                "description": "How many lines to read (-1 = all lines)",
                            },
                        },
                        "required": ["filename"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "python",
                    "description": "Run python code",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "code": {
                                "type": "string",
                                "description": (
                                    "The code to run. Code must have a print "
                                    "statement in the end that prints out the "
                                    "relevant return value"
                                ),
                            },
                        },
                        "required": ["code"],
                    },
                },
            },
        ]

    def call(self, name: str, arguments: Union[str, Dict[str, Any], None] = None) -> str:
        """按函数名调用。

        Args:
            name: 函数名（read_file_contents / python / pythoncode）
            arguments: JSON 字符串或参数字典

        Returns:
            函数返回的字符串

        Raises:
            KeyError: 未知函数名
            TypeError: read_file_contents 的参数不是 JSON 对象
        """
        if name not in self._functions:
            raise KeyError(f"Unknown function: {name}")

        if arguments is None:
            arguments = {}
        raw = arguments
        if isinstance(raw, str):
            try:
                arguments = json.loads(raw) if raw.strip() else {}
            except json.JSONDecodeError:
                if name not in CODE_FUNCTIONS:
                    raise
                # 交给参数修复逻辑处理
                log_msg("WARNING", f"{name} 参数不是合法 JSON，按原始代码处理")
                arguments = {"code": raw}

        if not isinstance(arguments, dict):
            if name not in CODE_FUNCTIONS:
                raise TypeError(
                    f"{name} 参数必须是 JSON 对象，收到 {type(arguments).__name__}"
                )
            # JSON 字符串字面量直接作为代码，数字、数组等按原始文本处理
            code = arguments if isinstance(arguments, str) else raw
            arguments = {"code": code if isinstance(code, str) else json.dumps(code)}

        log_msg("DEBUG", f"调用函数: {name}({', '.join(arguments)})")
        return self._functions[name](**arguments)

    # ============================================================
    # 生命周期
    # ============================================================

    def close(self) -> None:
        self.workspace.close()

    def __enter__(self) -> "CodeInterpreter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
