"""chat-sandbox 命令行入口。

用法（OmegaConf dotlist 风格参数）:
    python main.py session=42 code="print(2+2)"
    python main.py session=42 file=script.py
    python main.py session=42 read=report.csv lines=5
    echo "print(1)" | python main.py session=42 code_interpreter.timeout=30

除 session / code / file / read / lines 之外的参数作为配置覆盖项。
"""

import json
import sys
from pathlib import Path

from omegaconf import OmegaConf

from core.code_interpreter import CodeInterpreter
from core.executor.environment import SandboxConfigError
from utils.config import load_config
from utils.logger_system import init_logger, log_exception, log_msg


RUN_KEYS = ("session", "code", "file", "read", "lines")


def main() -> int:
    """主执行函数。

    执行流程:
        1. 拆分 CLI 参数：运行参数 / 配置覆盖项
        2. 加载配置并初始化日志
        3. 打开会话，执行代码或读取文件
        4. 输出结果（代码执行为 JSON）并清理工作空间

    Returns:
        进程退出码（配置错误为 2，其余透传执行结果码）
    """
    # Phase 1: 拆分 CLI 参数
    cli_cfg = OmegaConf.from_cli()
    run_args = {key: cli_cfg.pop(key) for key in RUN_KEYS if key in cli_cfg}

    # Phase 2: 加载配置
    try:
        config = load_config(use_cli=False, overrides=cli_cfg)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ 配置加载失败: {e}", file=sys.stderr)
        return 2

    init_logger(
        config.logging.log_dir,
        level=config.logging.level,
        console_output=config.logging.console_output,
        file_output=config.logging.file_output,
    )
    log_msg("INFO", f"{config.project.name} v{config.project.version} 启动")

    session_id = run_args.get("session", "cli")

    # Phase 3: 执行
    with CodeInterpreter(session_id, config) as sandbox:
        if "read" in run_args:
            lines = run_args.get("lines")
            print(sandbox.read_file_contents(str(run_args["read"]), lines))
            return 0

        if "code" in run_args:
            code = str(run_args["code"])
        elif "file" in run_args:
            code = Path(str(run_args["file"])).read_text(encoding="utf-8")
        else:
            code = sys.stdin.read()

        try:
            payload = sandbox.python(code)
        except SandboxConfigError as e:
            log_exception(e, "执行代码时")
            print(f"❌ 沙箱配置错误: {e}", file=sys.stderr)
            return 2

        print(payload)
        return json.loads(payload)["result_code"]


if __name__ == "__main__":
    sys.exit(main())
