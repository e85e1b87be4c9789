"""日志系统模块。

提供文本日志和 JSON 日志的双通道输出功能。

- 文本日志写入 system.log 并回显到终端
- JSON 日志写入 metrics.json（每次代码执行追加一条记录）
- 未初始化时回退到 print
"""

import json
import datetime
import traceback
from threading import Lock
from typing import Dict, Any, List
from pathlib import Path


# 日志级别优先级（数值越大越重要）
LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class LoggerSystem:
    """日志系统类。

    提供文本日志（system.log）和 JSON 日志（metrics.json）的双通道输出。
    """

    def __init__(
        self,
        log_dir: str | Path,
        level: str = "INFO",
        console_output: bool = True,
        file_output: bool = True,
    ):
        """初始化日志系统。

        Args:
            log_dir: 日志目录路径
            level: 最低记录级别（低于此级别的消息被丢弃）
            console_output: 是否回显到终端
            file_output: 是否写入日志文件
        """
        self.log_dir = Path(log_dir)
        self.level = level.upper()
        self.console_output = console_output
        self.file_output = file_output

        if self.file_output:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.text_log_path = self.log_dir / "system.log"
        self.json_log_path = self.log_dir / "metrics.json"
        self._lock = Lock()

        self.json_data: List[Dict[str, Any]] = []
        if self.json_log_path.exists():
            try:
                content = self.json_log_path.read_text(encoding="utf-8")
                if content:
                    self.json_data = json.loads(content)
            except json.JSONDecodeError:
                self.json_data = []  # 损坏时重置

    def enabled_for(self, level: str) -> bool:
        """判断指定级别是否需要记录。"""
        return LEVELS.get(level.upper(), 20) >= LEVELS.get(self.level, 20)

    def text_log(self, level: str, message: str) -> None:
        """记录文本日志到 system.log 并打印到终端。

        Args:
            level: 日志级别（DEBUG, INFO, WARNING, ERROR）
            message: 日志消息
        """
        if not self.enabled_for(level):
            return

        timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] [{level}] {message}\n"

        with self._lock:
            if self.file_output:
                with open(self.text_log_path, "a", encoding="utf-8") as f:
                    f.write(log_entry)

            if self.console_output:
                print(log_entry.strip())

    def json_log(self, data: Dict[str, Any]) -> None:
        """记录字典数据到 metrics.json。

        Args:
            data: 待记录的字典数据
        """
        with self._lock:
            self.json_data.append(data)

            if self.file_output:
                with open(self.json_log_path, "w", encoding="utf-8") as f:
                    json.dump(self.json_data, f, indent=4, ensure_ascii=False)


# ============================================================
# 全局日志实例
# ============================================================

logger: LoggerSystem | None = None


def init_logger(
    log_dir: str | Path,
    level: str = "INFO",
    console_output: bool = True,
    file_output: bool = True,
) -> LoggerSystem:
    """初始化全局日志系统。

    Args:
        log_dir: 日志目录路径
        level: 最低记录级别
        console_output: 是否回显到终端
        file_output: 是否写入日志文件

    Returns:
        初始化的 LoggerSystem 实例
    """
    global logger
    logger = LoggerSystem(
        log_dir, level=level, console_output=console_output, file_output=file_output
    )
    return logger


# ============================================================
# 便捷日志函数
# ============================================================


def log_msg(level: str, message: str) -> None:
    """记录文本日志。

    Args:
        level: 日志级别（DEBUG, INFO, WARNING, ERROR）
        message: 日志消息

    注意:
        如果 logger 未初始化，回退到 print
    """
    if logger:
        logger.text_log(level, message)
    else:
        print(f"[{level}] {message}")


def log_json(data: Dict[str, Any]) -> None:
    """记录 JSON 数据。

    Args:
        data: 待记录的字典数据
    """
    if logger:
        logger.json_log(data)
    else:
        print(f"[JSON] {json.dumps(data, indent=2, ensure_ascii=False)}")


def log_exception(exc: Exception, context: str = "") -> None:
    """记录异常信息和堆栈跟踪。

    Args:
        exc: 异常对象
        context: 上下文描述（可选）

    示例:
        >>> try:
        ...     interpreter.run(code)
        ... except SandboxConfigError as e:
        ...     log_exception(e, "执行代码时")
    """
    error_msg = f"{context}: {exc}" if context else str(exc)
    traceback_str = "".join(traceback.format_tb(exc.__traceback__))
    full_msg = f"{error_msg}\n{traceback_str}"

    log_msg("ERROR", full_msg)
