from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable


class ResourceKind(str, enum.Enum):
    CONTAINER = "container"
    IMAGE = "image"
    VOLUME = "volume"
    BUILDER = "builder"
    CLUSTER_PROFILE = "cluster_profile"
    CLUSTER = "cluster"
    NETWORK = "network"


class Category(str, enum.Enum):
    CONTAINERS = "containers"
    IMAGES = "images"
    VOLUMES = "volumes"
    BUILDERS = "builders"
    MINIKUBE = "minikube"
    KIND = "kind"
    DANGLING = "dangling"
    LOGS = "logs"


# Categories that accept an exclusion list, mapped to the kind they exclude.
EXCLUDABLE_CATEGORIES: dict[Category, ResourceKind] = {
    Category.CONTAINERS: ResourceKind.CONTAINER,
    Category.IMAGES: ResourceKind.IMAGE,
    Category.VOLUMES: ResourceKind.VOLUME,
    Category.BUILDERS: ResourceKind.BUILDER,
    Category.MINIKUBE: ResourceKind.CLUSTER_PROFILE,
    Category.KIND: ResourceKind.CLUSTER,
}


@dataclass(frozen=True)
class ResourceKey:
    """A listed backend resource.

    ``id`` is the stable backend key, ``display_name`` the human readable one
    (container name, space separated ``repo:tag`` list, profile name).
    """

    id: str
    display_name: str = ""
    kind: ResourceKind = ResourceKind.CONTAINER
    created_at: Any = None

    def matches(self, pattern: str, *, substring_display: bool = False) -> bool:
        if not pattern:
            return False
        if self.id == pattern:
            return True
        if not self.display_name:
            return False
        if substring_display:
            return pattern in self.display_name
        return self.display_name == pattern

    def describe(self) -> str:
        if self.display_name and self.display_name != self.id:
            return f"{self.id} ({self.display_name})"
        return self.id


@dataclass(frozen=True)
class Exclusions:
    by_kind: dict[ResourceKind, frozenset[str]] = field(default_factory=dict)

    def for_kind(self, kind: ResourceKind) -> frozenset[str]:
        return self.by_kind.get(kind, frozenset())

    def merged(self, additions: dict[ResourceKind, Iterable[str]]) -> "Exclusions":
        out = {kind: set(values) for kind, values in self.by_kind.items()}
        for kind, values in additions.items():
            out.setdefault(kind, set()).update(str(value) for value in values if str(value))
        return Exclusions(by_kind={kind: frozenset(values) for kind, values in out.items()})


def split_exclusion_list(value: Any) -> list[str]:
    """Accept a space separated string or a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    out: list[str] = []
    for item in value:
        out.extend(str(item).split())
    return out


@dataclass(frozen=True)
class CategorySelector:
    only: frozenset[Category] = frozenset()

    @property
    def run_all(self) -> bool:
        return not self.only

    def includes(self, category: Category) -> bool:
        return self.run_all or category in self.only


def _default_prompt(message: str) -> str:
    return input(message)


@dataclass
class ExecutionMode:
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False
    confirm: bool = False
    prompt: Callable[[str], str] = _default_prompt
    output: Callable[[str], None] = print

    def echo(self, message: str = "") -> None:
        if not self.quiet:
            self.output(message)

    def detail(self, message: str) -> None:
        if self.verbose:
            self.echo(message)

    def confirm_action(self, question: str) -> bool:
        if not self.confirm:
            return True
        try:
            answer = self.prompt(f"{question} [y/N]: ")
        except EOFError:
            return False
        return str(answer).strip() in {"y", "Y"}
