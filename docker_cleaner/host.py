"""Host platform detection.

Docker Desktop on Windows runs the engine behind WSL; its build history lives
on the Windows side of the filesystem and survives ``docker buildx prune``.
``Platform`` is detected once per run and handed to the handlers that need
to reach those paths.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from .backends.base import run_cli


LOGGER = logging.getLogger("docker_cleaner")

PROC_VERSION_PATH = Path("/proc/version")


def build_windows_userprofile_cmd() -> list[str]:
    return ["cmd.exe", "/c", "echo %USERPROFILE%"]


def build_wslpath_cmd(*, windows_path: str) -> list[str]:
    return ["wslpath", windows_path]


def build_wsl_shutdown_cmd() -> list[str]:
    return ["cmd.exe", "/c", "wsl --shutdown"]


def build_stop_docker_desktop_cmd() -> list[str]:
    return ["powershell.exe", "-Command", "Stop-Process -Name 'Docker Desktop' -Force"]


def clear_directory(path: Path) -> int:
    """Remove everything inside ``path`` but keep the directory itself."""
    try:
        if not path.is_dir():
            return 0
        items = list(path.iterdir())
    except OSError:
        LOGGER.debug("[CLEANER]: Cannot read %s", path, exc_info=True)
        return 0
    removed = 0
    for item in items:
        try:
            if item.is_dir() and not item.is_symlink():
                shutil.rmtree(item)
            else:
                item.unlink(missing_ok=True)
            removed += 1
        except OSError:
            LOGGER.debug("[CLEANER]: Failed to remove %s", item, exc_info=True)
    return removed


def detect_wsl(proc_version: Path = PROC_VERSION_PATH) -> bool:
    try:
        return "microsoft" in proc_version.read_text(errors="replace").lower()
    except OSError:
        return False


@dataclass
class Platform:
    is_wsl: bool = False
    home: Path = field(default_factory=Path.home)
    _userprofile: Path | None = field(default=None, init=False, repr=False)
    _userprofile_resolved: bool = field(default=False, init=False, repr=False)

    @classmethod
    def detect(cls, proc_version: Path = PROC_VERSION_PATH) -> "Platform":
        return cls(is_wsl=detect_wsl(proc_version))

    @property
    def windows_userprofile(self) -> Path | None:
        """The Windows ``%USERPROFILE%`` as a WSL path, or None when unresolvable."""
        if not self._userprofile_resolved:
            self._userprofile_resolved = True
            self._userprofile = self._resolve_userprofile()
        return self._userprofile

    def _resolve_userprofile(self) -> Path | None:
        if not self.is_wsl:
            return None
        echoed = run_cli(build_windows_userprofile_cmd())
        windows_path = str(echoed.value or "").replace("\r", "").strip() if echoed.ok else ""
        if not windows_path or "%USERPROFILE%" in windows_path:
            return None
        converted = run_cli(build_wslpath_cmd(windows_path=windows_path))
        if not converted.ok or not str(converted.value or "").strip():
            return None
        return Path(str(converted.value).strip())

    def linux_build_cache_dir(self) -> Path:
        return self.home / ".docker" / "buildx"

    def windows_build_cache_dirs(self) -> list[Path]:
        """Docker Desktop build history on the Windows side, empty when not reachable."""
        profile = self.windows_userprofile
        if profile is None or not (profile / ".docker").is_dir():
            return []
        return [profile / ".docker" / "buildx", profile / ".docker" / "desktop" / "build"]

    def docker_desktop_data_dir(self) -> Path | None:
        profile = self.windows_userprofile
        if profile is None:
            return None
        return profile / "AppData" / "Local" / "Docker"

    def stop_docker_desktop(self) -> None:
        for cmd in (build_wsl_shutdown_cmd(), build_stop_docker_desktop_cmd()):
            result = run_cli(cmd)
            if not result.ok:
                LOGGER.debug("[CLEANER]: %s", result.error)
