from __future__ import annotations

import importlib
import sys
from pathlib import Path


REPO_ROOT = Path(__file__).parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

host = importlib.import_module("docker_cleaner.host")
base = importlib.import_module("docker_cleaner.backends.base")


def test_detect_wsl_reads_proc_version(tmp_path: Path) -> None:
    wsl = tmp_path / "version-wsl"
    wsl.write_text("Linux version 5.15.153.1-microsoft-standard-WSL2 (root@65c757a075e2)")
    native = tmp_path / "version-native"
    native.write_text("Linux version 6.8.0-45-generic (buildd@lcy02-amd64-115)")

    assert host.detect_wsl(wsl) is True
    assert host.Platform.detect(wsl).is_wsl is True
    assert host.detect_wsl(native) is False
    assert host.detect_wsl(tmp_path / "missing") is False


def test_windows_userprofile_is_resolved_once(monkeypatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []

    def fake_run_cli(cmd: list[str]):
        calls.append(cmd)
        if cmd[0] == "cmd.exe":
            return base.BackendResult.success("C:\\Users\\dev\r\n")
        return base.BackendResult.success(f"{tmp_path}\n")

    monkeypatch.setattr(host, "run_cli", fake_run_cli)
    platform = host.Platform(is_wsl=True, home=tmp_path / "home")

    assert platform.windows_userprofile == tmp_path
    assert platform.windows_userprofile == tmp_path
    assert calls == [["cmd.exe", "/c", "echo %USERPROFILE%"], ["wslpath", "C:\\Users\\dev"]]
    assert platform.docker_desktop_data_dir() == tmp_path / "AppData" / "Local" / "Docker"


def test_windows_cache_dirs_require_a_docker_folder(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(host, "run_cli", lambda cmd: base.BackendResult.success(f"{tmp_path}"))
    platform = host.Platform(is_wsl=True, home=tmp_path / "home")
    assert platform.windows_build_cache_dirs() == []

    (tmp_path / ".docker").mkdir()
    assert platform.windows_build_cache_dirs() == [
        tmp_path / ".docker" / "buildx",
        tmp_path / ".docker" / "desktop" / "build",
    ]
    assert platform.linux_build_cache_dir() == tmp_path / "home" / ".docker" / "buildx"


def test_native_linux_has_no_windows_side(monkeypatch) -> None:
    def unexpected(cmd):
        raise AssertionError(f"should not run {cmd}")

    monkeypatch.setattr(host, "run_cli", unexpected)
    platform = host.Platform(is_wsl=False)
    assert platform.windows_userprofile is None
    assert platform.docker_desktop_data_dir() is None


def test_clear_directory_keeps_the_directory(tmp_path: Path) -> None:
    target = tmp_path / "buildx"
    (target / "instances").mkdir(parents=True)
    (target / "instances" / "ci").write_text("{}")
    (target / "current").write_text("default")

    assert host.clear_directory(target) == 2
    assert target.is_dir()
    assert list(target.iterdir()) == []
    assert host.clear_directory(tmp_path / "missing") == 0


def test_clear_directory_tolerates_unreadable_directory(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "buildx"
    target.mkdir()
    (target / "current").write_text("default")

    def denied(self):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "iterdir", denied)

    assert host.clear_directory(target) == 0
    assert (target / "current").exists()
