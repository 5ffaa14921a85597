from __future__ import annotations

import json
import shutil

from ..models import ResourceKey, ResourceKind
from .base import BackendResult, ResourceBackend, run_cli


def build_minikube_profile_list_cmd() -> list[str]:
    return ["minikube", "profile", "list", "-o", "json"]


def build_minikube_delete_cmd(*, profile: str) -> list[str]:
    return ["minikube", "delete", "--profile", profile]


def build_kind_get_clusters_cmd() -> list[str]:
    return ["kind", "get", "clusters"]


def build_kind_delete_cmd(*, cluster: str) -> list[str]:
    return ["kind", "delete", "cluster", "--name", cluster]


def parse_minikube_profiles(output: str) -> list[str]:
    """Return profile names from ``minikube profile list -o json``, valid ones first."""
    text = str(output or "").strip()
    if not text:
        return []
    payload = json.loads(text)
    if not isinstance(payload, dict):
        return []

    names: list[str] = []
    for bucket in ("valid", "invalid"):
        for item in payload.get(bucket) or []:
            if not isinstance(item, dict):
                continue
            name = str(item.get("Name") or "").strip()
            if name and name not in names:
                names.append(name)
    return names


def parse_kind_clusters(output: str) -> list[str]:
    names: list[str] = []
    for line in str(output or "").splitlines():
        name = line.strip()
        # kind prints this on an empty host instead of an empty list.
        if not name or name.startswith("No kind clusters"):
            continue
        names.append(name)
    return names


class MinikubeBackend(ResourceBackend):
    kind = ResourceKind.CLUSTER_PROFILE
    noun = "minikube profile"

    def available(self) -> bool:
        return shutil.which("minikube") is not None

    def list_resources(self) -> BackendResult:
        result = run_cli(build_minikube_profile_list_cmd())
        if not result.ok:
            return result
        try:
            names = parse_minikube_profiles(result.value)
        except ValueError as exc:
            return BackendResult.failure(exc)
        return BackendResult.success(
            [ResourceKey(id=name, display_name=name, kind=self.kind) for name in names]
        )

    def delete(self, resource: ResourceKey) -> BackendResult:
        return run_cli(build_minikube_delete_cmd(profile=resource.id))


class KindBackend(ResourceBackend):
    kind = ResourceKind.CLUSTER
    noun = "kind cluster"

    def available(self) -> bool:
        return shutil.which("kind") is not None

    def list_resources(self) -> BackendResult:
        result = run_cli(build_kind_get_clusters_cmd())
        if not result.ok:
            return result
        return BackendResult.success(
            [ResourceKey(id=name, display_name=name, kind=self.kind) for name in parse_kind_clusters(result.value)]
        )

    def delete(self, resource: ResourceKey) -> BackendResult:
        return run_cli(build_kind_delete_cmd(cluster=resource.id))
