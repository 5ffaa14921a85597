from __future__ import annotations

import shutil

from ..models import ResourceKey, ResourceKind
from .base import BackendResult, ResourceBackend, run_cli


DEFAULT_BUILDER = "default"


def build_buildx_ls_cmd() -> list[str]:
    return ["docker", "buildx", "ls"]


def build_buildx_use_cmd(*, builder: str) -> list[str]:
    return ["docker", "buildx", "use", builder]


def build_buildx_prune_cmd() -> list[str]:
    return ["docker", "buildx", "prune", "-a", "-f"]


def build_buildx_rm_cmd(*, builder: str) -> list[str]:
    return ["docker", "buildx", "rm", builder]


def parse_buildx_ls(output: str) -> list[str]:
    """Extract builder names from ``docker buildx ls`` table output.

    Node rows are indented (older buildx) or prefixed with ``\\_`` (newer
    buildx) and are skipped; the current builder carries a ``*`` marker.
    """
    names: list[str] = []
    for line in str(output or "").splitlines():
        if not line.strip() or line.startswith("NAME/NODE"):
            continue
        if line[0].isspace() or line.lstrip().startswith("\\_"):
            continue
        name = line.split()[0].rstrip("*")
        if name and name not in names:
            names.append(name)
    return names


class BuildxBackend(ResourceBackend):
    kind = ResourceKind.BUILDER
    noun = "builder"

    def available(self) -> bool:
        return shutil.which("docker") is not None

    def list_resources(self) -> BackendResult:
        result = run_cli(build_buildx_ls_cmd())
        if not result.ok:
            return result
        return BackendResult.success(
            [
                ResourceKey(id=name, display_name=name, kind=ResourceKind.BUILDER)
                for name in parse_buildx_ls(result.value)
            ]
        )

    def prune_cache(self, resource: ResourceKey) -> BackendResult:
        """Make the builder current and drop all of its build cache."""
        used = run_cli(build_buildx_use_cmd(builder=resource.id))
        pruned = run_cli(build_buildx_prune_cmd())
        return pruned if used.ok else used

    def delete(self, resource: ResourceKey) -> BackendResult:
        return run_cli(build_buildx_rm_cmd(builder=resource.id))
