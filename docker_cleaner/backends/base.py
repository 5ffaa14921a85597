from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..models import ResourceKey, ResourceKind


class BackendError(Exception):
    """Raised inside a backend; converted to a failed BackendResult at its edge."""


@dataclass(frozen=True)
class BackendResult:
    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "BackendResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Any) -> "BackendResult":
        return cls(ok=False, error=str(error) or type(error).__name__)


def subprocess_error_text(exc: subprocess.CalledProcessError) -> str:
    stderr = exc.stderr.decode("utf-8", errors="replace") if isinstance(exc.stderr, bytes) else str(exc.stderr or "")
    stdout = exc.stdout.decode("utf-8", errors="replace") if isinstance(exc.stdout, bytes) else str(exc.stdout or "")
    return (stderr.strip() or stdout.strip() or "").strip()


def run_cli(cmd: list[str], *, timeout: int | None = None) -> BackendResult:
    """Run an external command, returning its stdout on success."""
    try:
        completed = subprocess.run(
            cmd, check=True, capture_output=True, text=True, errors="replace", timeout=timeout
        )
    except subprocess.CalledProcessError as exc:
        detail = subprocess_error_text(exc)
        message = f"{' '.join(cmd)} failed (exit code {exc.returncode})"
        return BackendResult.failure(f"{message}: {detail}" if detail else message)
    except (OSError, subprocess.TimeoutExpired) as exc:
        return BackendResult.failure(exc)
    return BackendResult.success(str(completed.stdout or ""))


class ResourceBackend(ABC):
    """Lists and deletes one kind of resource."""

    kind: ResourceKind
    noun: str = "resource"

    def available(self) -> bool:
        return True

    @abstractmethod
    def list_resources(self) -> BackendResult:
        """Return a BackendResult whose value is a list of ResourceKey."""

    @abstractmethod
    def delete(self, resource: ResourceKey) -> BackendResult:
        """Delete one resource, forcing where the backend supports it."""
