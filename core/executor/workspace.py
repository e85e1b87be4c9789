"""
会话工作空间管理模块。

负责单个会话的私有目录创建与退出时的清理。
"""

import atexit
from pathlib import Path

from utils.logger_system import log_msg


class SessionWorkspace:
    """会话工作空间。

    目录结构：
    <base_dir>/
    └── <session_id>/      # 会话根目录（宿主机执行时的工作目录）
        └── data/          # 数据目录（代码执行与文件读取的唯一区域）

    数据目录在对象存活期间始终存在。退出时仅当 data/ 为空才删除
    data/ 与会话根目录；只要写入过文件，目录就会保留。
    """

    def __init__(self, session_id: str | int, base_dir: str | Path = "data"):
        """创建会话目录（含中间目录）。

        Args:
            session_id: 会话 ID
            base_dir: 所有会话目录的父目录

        Raises:
            OSError: 目录创建失败（没有工作空间就没有沙箱）
        """
        self.session_id = str(session_id)
        self._root_dir = Path(base_dir) / self.session_id
        self._data_dir = self._root_dir / "data"
        self._closed = False

        self._data_dir.mkdir(mode=0o777, parents=True, exist_ok=True)
        log_msg("INFO", f"会话工作空间已创建: {self._data_dir}")

        # 进程退出时保证执行清理
        atexit.register(self.close)

    @property
    def root_dir(self) -> Path:
        """会话根目录。"""
        return self._root_dir

    @property
    def data_dir(self) -> Path:
        """会话数据目录。"""
        return self._data_dir

    def is_empty(self) -> bool:
        """data/ 下是否没有任何条目。"""
        if not self._data_dir.is_dir():
            return True
        return next(self._data_dir.iterdir(), None) is None

    def close(self) -> None:
        """清理工作空间（可重复调用）。

        data/ 为空时依次删除 data/ 和会话根目录，否则保留。
        检查与删除之间若有其他进程写入会产生竞争，此时 rmdir 失败，
        目录保留，仅记录警告。
        """
        if self._closed:
            return
        self._closed = True
        atexit.unregister(self.close)

        if not self._data_dir.is_dir():
            return

        if not self.is_empty():
            log_msg("DEBUG", f"工作空间非空，保留: {self._data_dir}")
            return

        try:
            self._data_dir.rmdir()
            self._root_dir.rmdir()
            log_msg("DEBUG", f"已删除空工作空间: {self._root_dir}")
        except OSError as e:
            log_msg("WARNING", f"清理工作空间 {self._root_dir} 失败: {e}")

    def __enter__(self) -> "SessionWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SessionWorkspace(session_id={self.session_id!r}, root={self._root_dir})"
