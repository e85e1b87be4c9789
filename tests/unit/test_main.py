"""main.py 命令行入口测试。"""

import json
import sys
from pathlib import Path

import pytest

import utils.logger_system as logger_system
from main import main


@pytest.fixture
def cli(tmp_path: Path, monkeypatch):
    """构造 CLI 参数（工作空间与日志写入临时目录）。"""

    def _set(*args: str) -> None:
        monkeypatch.setattr(
            sys,
            "argv",
            [
                "main.py",
                f"workspace.base_dir={tmp_path / 'data'}",
                f"logging.log_dir={tmp_path / 'logs'}",
                "logging.console_output=false",
                f"python_command={sys.executable}",
                *args,
            ],
        )

    yield _set
    logger_system.logger = None


class TestMain:
    """main() 测试类。"""

    def test_run_code(self, cli, capsys) -> None:
        cli("session=cli-test", "code=print(40+2)")

        assert main() == 0
        assert "42" in capsys.readouterr().out

    def test_run_file(self, cli, tmp_path: Path, capsys) -> None:
        script = tmp_path / "script.py"
        script.write_text("print('from-file')\n")
        cli("session=cli-file", f"file={script}")

        assert main() == 0
        assert "from-file" in capsys.readouterr().out

    def test_run_prints_json_result(self, cli, capsys) -> None:
        cli("session=cli-json", "code=print(6*7)")

        assert main() == 0
        payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["result_code"] == 0
        assert "42" in payload["output"]

    def test_exception_exit_code(self, cli, tmp_path: Path, capsys) -> None:
        script = tmp_path / "fail.py"
        script.write_text("raise ValueError('cli-failure')\n")
        cli("session=cli-fail", f"file={script}")

        assert main() == 1
        payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert "ValueError: cli-failure" in payload["output"]

    def test_wrapped_code_is_repaired(self, cli, tmp_path: Path, capsys) -> None:
        script = tmp_path / "wrapped.txt"
        script.write_text('{"code": "print(\'repaired\')"}')
        cli("session=cli-wrap", f"file={script}")

        assert main() == 0
        assert "repaired" in capsys.readouterr().out

    def test_read_file(self, cli, tmp_path: Path, capsys) -> None:
        data_dir = tmp_path / "data" / "s1" / "data"
        data_dir.mkdir(parents=True)
        (data_dir / "notes.txt").write_text("one\ntwo\nthree\n")
        cli("session=s1", "read=notes.txt", "lines=2")

        assert main() == 0
        assert capsys.readouterr().out.strip().endswith("one\ntwo")

    def test_container_without_image(self, cli, capsys) -> None:
        cli("session=bad", "code=print(1)", "code_interpreter.sandbox.enabled=true")

        assert main() == 2
        assert "Container name missing" in capsys.readouterr().err

    def test_invalid_config(self, cli) -> None:
        cli("code_interpreter.timeout=-1")
        assert main() == 2

    def test_empty_workspace_removed(self, cli, tmp_path: Path) -> None:
        cli("session=gone", "code=1+1")

        main()
        assert not (tmp_path / "data" / "gone").exists()
