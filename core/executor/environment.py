"""
执行环境选择模块。

根据 CodeInterpreterConfig 决定代码在宿主机还是容器中运行，并生成子进程参数列表。
纯决策逻辑，无副作用。
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Optional

from utils.config import CodeInterpreterConfig


# 容器镜像内固定使用的解释器命令
CONTAINER_PYTHON = "python3"

# 交互模式启动前执行的引导代码。
# 交互循环在未捕获异常后仍以 0 退出，这里记录异常并在退出时改为 1；
# sys.exit(n) 不经过 excepthook，退出码保持 n。
EXIT_STATUS_PRELUDE = """\
import sys as _sys
def _sandbox_excepthook(*exc_info, _hook=_sys.excepthook):
    _sandbox_excepthook.failed = True
    _hook(*exc_info)
def _sandbox_exit_status(_state=_sandbox_excepthook):
    import os, sys
    if _state.failed:
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(1)
_sandbox_excepthook.failed = False
_sys.excepthook = _sandbox_excepthook
__import__("atexit").register(_sandbox_exit_status)
del _sys
"""


class SandboxConfigError(ValueError):
    """沙箱配置错误（启用容器隔离但未指定镜像）。"""


@dataclass(frozen=True)
class ExecutionEnvironment:
    """选定的执行环境。

    Attributes:
        mode: "host" 或 "container"
        python_command: 解释器命令
        image: 容器镜像名（仅 container 模式）
        runtime: 容器运行时命令（仅 container 模式）
        mount_path: 数据目录在容器内的挂载点
        workdir: 容器内工作目录
    """

    mode: Literal["host", "container"]
    python_command: str
    image: Optional[str] = None
    runtime: str = "docker"
    mount_path: str = "/usr/src/app/data"
    workdir: str = "/usr/src/app"

    @property
    def is_container(self) -> bool:
        return self.mode == "container"

    def build_command(
        self, data_dir: Path, container_name: Optional[str] = None
    ) -> List[str]:
        """生成交互模式解释器的参数列表（不经过 shell）。

        Args:
            data_dir: 会话数据目录（容器模式下以绝对路径挂载）
            container_name: 容器名（仅 container 模式，用于超时后 kill）

        Returns:
            子进程 argv 列表
        """
        interpreter = [self.python_command, "-q", "-i", "-c", EXIT_STATUS_PRELUDE]
        if not self.is_container:
            return interpreter

        command = [self.runtime, "run", "-i", "--rm"]
        if container_name:
            command += ["--name", container_name]
        return command + [
            "-v",
            f"{Path(data_dir).resolve()}:{self.mount_path}",
            "-w",
            self.workdir,
            self.image,
            *interpreter,
        ]

    def kill_command(self, container_name: str) -> List[str]:
        """生成停止容器的参数列表。"""
        return [self.runtime, "kill", container_name]


def default_python_command(platform: Optional[str] = None) -> str:
    """按平台选择默认解释器命令：Windows 用 python，其余用 python3。"""
    platform = platform or sys.platform
    if platform.lower().startswith("win"):
        return "python"
    return "python3"


def select_environment(config: CodeInterpreterConfig) -> ExecutionEnvironment:
    """根据配置选择执行环境。

    Args:
        config: 沙箱配置

    Returns:
        ExecutionEnvironment 对象

    Raises:
        SandboxConfigError: 启用容器隔离但缺少镜像名
    """
    sandbox = config.sandbox
    if sandbox.enabled:
        if not sandbox.container:
            raise SandboxConfigError("Container name missing from settings")
        return ExecutionEnvironment(
            mode="container",
            python_command=CONTAINER_PYTHON,
            image=sandbox.container,
            runtime=sandbox.runtime,
            mount_path=sandbox.mount_path,
            workdir=sandbox.workdir,
        )

    return ExecutionEnvironment(
        mode="host",
        python_command=config.python_command or default_python_command(),
    )
