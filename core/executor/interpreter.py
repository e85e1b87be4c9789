"""
代码执行引擎模块（subprocess 版本）。

以交互模式（python -i）启动解释器，通过 stdin 送入代码，支持：
- 宿主机执行（工作目录为会话根目录）
- 容器执行（一次性容器，挂载会话数据目录）
- stdout + stderr 合并捕获，退出码原样返回（未捕获异常时为 1）
"""

import os
import subprocess
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.executor.environment import ExecutionEnvironment, select_environment
from core.executor.workspace import SessionWorkspace
from utils.config import CodeInterpreterConfig
from utils.logger_system import log_json, log_msg
from utils.text_utils import truncate_term_out


# 子进程无法启动时的返回码（与 shell 的 "command not found" 一致）
LAUNCH_FAILURE_CODE = 127
# 超时被终止时的返回码
TIMEOUT_CODE = -1


@dataclass(frozen=True)
class ExecutionRequest:
    """一次代码执行请求（每次调用新建，不可变）。

    Attributes:
        code: 待执行的代码
        root_dir: 会话根目录（宿主机执行的工作目录）
        data_dir: 会话数据目录（容器执行时挂载）
    """

    code: str
    root_dir: Path
    data_dir: Path

    @classmethod
    def for_workspace(cls, code: str, workspace: SessionWorkspace) -> "ExecutionRequest":
        return cls(code=code, root_dir=workspace.root_dir, data_dir=workspace.data_dir)


@dataclass(frozen=True)
class ExecutionResult:
    """代码执行结果。

    Attributes:
        output: 终端输出（stdout + stderr 合并，按行以换行符连接）
        result_code: 进程退出码（0 表示成功，不做进一步解释）
        exec_time: 执行时间（秒）
        timeout: 是否因超时被终止
    """

    output: str
    result_code: int
    exec_time: float = 0.0
    timeout: bool = False

    @property
    def success(self) -> bool:
        return self.result_code == 0 and not self.timeout

    def to_payload(self) -> dict:
        """返回给调用方的字段（output + result_code）。"""
        return {"output": self.output, "result_code": self.result_code}


def _join_lines(stdout: Optional[str]) -> str:
    """按行切分后以换行符连接（去掉末尾换行）。"""
    if not stdout:
        return ""
    return "\n".join(stdout.splitlines())


class Interpreter:
    """Python 代码执行器。

    每次 run() 启动一个新的解释器进程，进程之间不共享变量。
    调用会阻塞直到进程退出；默认不设超时。
    """

    def __init__(self, workspace: SessionWorkspace, config: CodeInterpreterConfig):
        """初始化执行器。

        Args:
            workspace: 会话工作空间
            config: 沙箱配置
        """
        self.workspace = workspace
        self.config = config

    def run(self, code: str) -> ExecutionResult:
        """执行 Python 代码。

        Args:
            code: Python 代码字符串

        Returns:
            ExecutionResult 对象

        Raises:
            SandboxConfigError: 启用容器隔离但未配置镜像（在启动任何进程之前抛出）
        """
        # Phase 1: 选择执行环境（配置错误在此处抛出）
        env = select_environment(self.config)
        request = ExecutionRequest.for_workspace(code, self.workspace)

        # Phase 2: 执行
        result = self._execute(request, env)

        # Phase 3: 记录
        log_msg(
            "INFO" if result.success else "WARNING",
            f"代码执行完成: mode={env.mode}, result_code={result.result_code}, "
            f"耗时 {result.exec_time:.2f} 秒",
        )
        log_json(
            {
                "event": "code_execution",
                "session_id": self.workspace.session_id,
                "mode": env.mode,
                "result_code": result.result_code,
                "exec_time": round(result.exec_time, 3),
                "timeout": result.timeout,
                "output_preview": truncate_term_out(result.output, max_len=500),
            }
        )
        return result

    def _execute(
        self, request: ExecutionRequest, env: ExecutionEnvironment
    ) -> ExecutionResult:
        """启动子进程并收集合并后的输出。"""
        container_name = (
            f"chat-sandbox-{uuid.uuid4().hex[:12]}" if env.is_container else None
        )
        command = env.build_command(request.data_dir, container_name)
        # 宿主机：在会话根目录执行，代码通过 data/ 相对路径访问文件
        cwd = None if env.is_container else str(request.root_dir)

        log_msg("DEBUG", f"启动解释器: {command[0]} (mode={env.mode}, cwd={cwd})")

        start_time = time.time()
        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                env={**os.environ, "PYTHONUNBUFFERED": "1"},
            )
        except OSError as e:
            log_msg("ERROR", f"解释器启动失败: {command[0]}: {e}")
            return ExecutionResult(
                output=f"{command[0]}: {e}",
                result_code=LAUNCH_FAILURE_CODE,
                exec_time=time.time() - start_time,
            )

        try:
            stdout, _ = process.communicate(
                input=request.code, timeout=self.config.timeout
            )
        except subprocess.TimeoutExpired:
            log_msg("WARNING", f"执行超时 ({self.config.timeout}s)，终止进程")
            stdout = self._terminate(process, env, container_name)
            output = _join_lines(stdout)
            message = f"TimeoutError: 执行超过 {self.config.timeout} 秒"
            return ExecutionResult(
                output=f"{output}\n{message}" if output else message,
                result_code=TIMEOUT_CODE,
                exec_time=time.time() - start_time,
                timeout=True,
            )

        return ExecutionResult(
            output=_join_lines(stdout),
            result_code=process.returncode,
            exec_time=time.time() - start_time,
        )

    def _terminate(
        self,
        process: subprocess.Popen,
        env: ExecutionEnvironment,
        container_name: Optional[str] = None,
    ) -> str:
        """强制终止超时进程并收集已产生的输出。

        容器模式下先通过运行时停止容器。
        """
        if container_name:
            kill_command = env.kill_command(container_name)
            try:
                subprocess.run(
                    kill_command,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                    timeout=30,
                )
            except (OSError, subprocess.TimeoutExpired) as e:
                log_msg("WARNING", f"停止容器失败: {container_name}: {e}")
        process.kill()
        stdout, _ = process.communicate()
        return stdout or ""


def execute(
    code: str, workspace: SessionWorkspace, config: CodeInterpreterConfig
) -> ExecutionResult:
    """执行一段代码并返回合并输出与退出码。"""
    return Interpreter(workspace, config).run(code)
