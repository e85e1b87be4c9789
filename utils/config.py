"""配置管理模块。

提供基于 OmegaConf + YAML 的统一配置加载、验证和管理功能。

配置在会话启动时加载一次，之后以不可变 dataclass 的形式传入各组件，
组件内部不读取任何全局配置。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from omegaconf import OmegaConf, DictConfig
import os
from dotenv import load_dotenv


# 注册环境变量解析器（支持 ${env:VAR} 语法）
OmegaConf.register_new_resolver(
    "env", lambda var: os.getenv(var, ""), replace=True
)


# ============================================================
# 配置数据类定义
# ============================================================


@dataclass(frozen=True)
class ProjectConfig:
    """项目基础配置。"""

    name: str = "chat-sandbox"
    version: str = "0.1.0"


@dataclass(frozen=True)
class WorkspaceConfig:
    """会话工作空间配置。"""

    base_dir: Path = Path("data")


@dataclass(frozen=True)
class SandboxConfig:
    """容器隔离配置（对应 code_interpreter.sandbox）。

    Attributes:
        enabled: 是否在容器中执行代码
        container: 容器镜像名（enabled=True 时必填）
        runtime: 容器运行时命令（docker / podman）
        mount_path: 数据目录在容器内的挂载点
        workdir: 容器内工作目录（代码以 data/ 相对路径访问文件）
    """

    enabled: bool = False
    container: Optional[str] = None
    runtime: str = "docker"
    mount_path: str = "/usr/src/app/data"
    workdir: str = "/usr/src/app"


@dataclass(frozen=True)
class CodeInterpreterConfig:
    """代码执行配置（每个会话构造一次，只读）。

    Attributes:
        python_command: 自定义 Python 命令，None 则按平台选择
        timeout: 执行超时（秒），None 表示不限时
        sandbox: 容器隔离配置
    """

    python_command: Optional[str] = None
    timeout: Optional[int] = None
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)


@dataclass(frozen=True)
class LoggingConfig:
    """日志配置。"""

    log_dir: Path = Path("logs")
    level: str = "INFO"
    console_output: bool = True
    file_output: bool = True


@dataclass(frozen=True)
class Config:
    """顶层配置类。"""

    project: ProjectConfig = field(default_factory=ProjectConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    code_interpreter: CodeInterpreterConfig = field(
        default_factory=CodeInterpreterConfig
    )
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# YAML 结构模板（struct 模式下拒绝未知字段）
_SCHEMA = {
    "project": {"name": "chat-sandbox", "version": "0.1.0"},
    "python_command": None,
    "workspace": {"base_dir": "data"},
    "code_interpreter": {
        "timeout": None,
        "sandbox": {
            "enabled": False,
            "container": None,
            "runtime": "docker",
            "mount_path": "/usr/src/app/data",
            "workdir": "/usr/src/app",
        },
    },
    "logging": {
        "log_dir": "logs",
        "level": "INFO",
        "console_output": True,
        "file_output": True,
    },
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


# ============================================================
# 配置加载与验证函数
# ============================================================


def load_config(
    config_path: Path | None = None,
    use_cli: bool = True,
    env_file: Path | None = None,
    overrides: DictConfig | None = None,
) -> Config:
    """加载 YAML 配置并合并 CLI 参数和环境变量。

    配置优先级（从高到低）:
        1. CLI 参数（key=value）/ overrides
        2. 环境变量（.env 文件或系统环境变量）
        3. YAML 配置文件

    Args:
        config_path: 配置文件路径，默认为 config/default.yaml
        use_cli: 是否合并 CLI 参数（通过 OmegaConf.from_cli()）
        env_file: .env 文件路径，默认为项目根目录的 .env 文件
        overrides: 额外的覆盖配置（如 main.py 拆分后的 CLI 参数）

    Returns:
        验证后的 Config 对象

    Raises:
        FileNotFoundError: 配置文件不存在
        ValueError: 配置验证失败

    示例:
        >>> cfg = load_config()
        >>> cfg = load_config(Path("custom.yaml"), use_cli=False)
    """
    from utils.logger_system import log_msg

    # 步骤 1: 加载 .env 文件到环境变量
    if env_file is None:
        env_file = Path(__file__).parent.parent / ".env"

    if env_file.exists():
        load_dotenv(env_file, override=False)
        log_msg("INFO", f"加载环境变量文件: {env_file}")
    else:
        log_msg("DEBUG", "未找到 .env 文件，使用系统环境变量")

    # 步骤 2: 确定配置文件路径
    if config_path is None:
        config_path = Path(__file__).parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        error_msg = f"配置文件不存在: {config_path}"
        log_msg("ERROR", error_msg)
        raise FileNotFoundError(error_msg)

    log_msg("INFO", f"加载配置文件: {config_path}")

    # 步骤 3: 加载 YAML 配置
    cfg = OmegaConf.load(config_path)

    # 步骤 4: 合并 CLI 参数 / overrides（优先级最高）
    if use_cli:
        cli_cfg = OmegaConf.from_cli()
        if cli_cfg:
            log_msg("INFO", f"合并 CLI 参数: {OmegaConf.to_yaml(cli_cfg)}")
            cfg = OmegaConf.merge(cfg, cli_cfg)

    if overrides:
        cfg = OmegaConf.merge(cfg, overrides)

    # 步骤 5: 验证配置
    validated_cfg = validate_config(cfg)
    log_msg("INFO", "配置加载并验证成功")

    return validated_cfg


def validate_config(cfg: DictConfig) -> Config:
    """验证配置完整性和合法性。

    Args:
        cfg: OmegaConf DictConfig 对象

    Returns:
        类型化的 Config 对象

    Raises:
        ValueError: 配置验证失败

    验证规则:
        1. 结构检查: 不允许出现未知字段
        2. timeout 必须为 null 或正整数
        3. workspace.base_dir 不能为空
        4. logging.level 必须是合法级别

    注意:
        sandbox.enabled=true 但缺少 container 不在此处报错，
        而是在执行代码前由 select_environment() 抛出 SandboxConfigError。
    """
    from utils.logger_system import log_msg

    # ---- 结构合并 ----
    schema = OmegaConf.create(_SCHEMA)
    OmegaConf.set_struct(schema, True)
    try:
        merged = OmegaConf.merge(schema, cfg)
    except Exception as e:
        error_msg = f"配置结构非法: {e}"
        log_msg("ERROR", error_msg)
        raise ValueError(error_msg) from e

    cfg_dict = OmegaConf.to_container(merged, resolve=True)

    # ---- 字段检查 ----
    timeout = cfg_dict["code_interpreter"]["timeout"]
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0
    ):
        error_msg = f"`code_interpreter.timeout` 必须为 null 或正整数: {timeout}"
        log_msg("ERROR", error_msg)
        raise ValueError(error_msg)

    base_dir = cfg_dict["workspace"]["base_dir"]
    if not base_dir or not str(base_dir).strip():
        error_msg = "`workspace.base_dir` 不能为空"
        log_msg("ERROR", error_msg)
        raise ValueError(error_msg)

    level = str(cfg_dict["logging"]["level"]).upper()
    if level not in VALID_LOG_LEVELS:
        error_msg = f"`logging.level` 非法: {level}（可选: {VALID_LOG_LEVELS}）"
        log_msg("ERROR", error_msg)
        raise ValueError(error_msg)

    # ${env:VAR} 未设置时解析为空字符串，视为未配置
    python_command = cfg_dict["python_command"] or None

    sandbox_dict = cfg_dict["code_interpreter"]["sandbox"]
    container = sandbox_dict["container"] or None

    if sandbox_dict["enabled"] and container is None:
        log_msg(
            "WARNING",
            "已启用容器隔离但未配置 code_interpreter.sandbox.container，执行代码时将报错",
        )

    return Config(
        project=ProjectConfig(**cfg_dict["project"]),
        workspace=WorkspaceConfig(base_dir=Path(base_dir)),
        code_interpreter=CodeInterpreterConfig(
            python_command=python_command,
            timeout=timeout,
            sandbox=SandboxConfig(
                enabled=bool(sandbox_dict["enabled"]),
                container=container,
                runtime=sandbox_dict["runtime"],
                mount_path=sandbox_dict["mount_path"],
                workdir=sandbox_dict["workdir"],
            ),
        ),
        logging=LoggingConfig(
            log_dir=Path(cfg_dict["logging"]["log_dir"]),
            level=level,
            console_output=bool(cfg_dict["logging"]["console_output"]),
            file_output=bool(cfg_dict["logging"]["file_output"]),
        ),
    )


def print_config(cfg: Config) -> None:
    """美观打印配置（用于调试）。

    Args:
        cfg: Config 对象

    实现细节:
        - 使用 rich 库高亮显示 YAML 格式
        - 使用 paraiso-dark 主题
    """
    from rich import print as rprint
    from rich.syntax import Syntax

    sandbox = cfg.code_interpreter.sandbox
    cfg_dict = {
        "project": {"name": cfg.project.name, "version": cfg.project.version},
        "python_command": cfg.code_interpreter.python_command,
        "workspace": {"base_dir": str(cfg.workspace.base_dir)},
        "code_interpreter": {
            "timeout": cfg.code_interpreter.timeout,
            "sandbox": {
                "enabled": sandbox.enabled,
                "container": sandbox.container,
                "runtime": sandbox.runtime,
                "mount_path": sandbox.mount_path,
                "workdir": sandbox.workdir,
            },
        },
        "logging": {
            "log_dir": str(cfg.logging.log_dir),
            "level": cfg.logging.level,
            "console_output": cfg.logging.console_output,
            "file_output": cfg.logging.file_output,
        },
    }

    yaml_str = OmegaConf.to_yaml(OmegaConf.create(cfg_dict))
    syntax = Syntax(yaml_str, "yaml", theme="paraiso-dark", line_numbers=True)
    rprint(syntax)
