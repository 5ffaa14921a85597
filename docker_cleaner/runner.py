from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .backends import (
    DEFAULT_BUILDER,
    BackendResult,
    BuildxBackend,
    ContainerBackend,
    DockerEngine,
    ImageBackend,
    KindBackend,
    MinikubeBackend,
    ResourceBackend,
    VolumeBackend,
)
from .host import Platform, clear_directory
from .models import Category, CategorySelector, ExecutionMode, Exclusions, ResourceKind
from .policies import decide, sanitize_count
from .report import CLEANED, EXCLUDED, FAILED, PROCESSED, REMOVED, RunReport


LOGGER = logging.getLogger("docker_cleaner")


@dataclass
class Backends:
    engine: DockerEngine
    containers: ResourceBackend
    images: ResourceBackend
    volumes: ResourceBackend
    builders: BuildxBackend
    minikube: ResourceBackend
    kind: ResourceBackend

    @classmethod
    def from_engine(cls, engine: DockerEngine) -> "Backends":
        return cls(
            engine=engine,
            containers=ContainerBackend(engine),
            images=ImageBackend(engine),
            volumes=VolumeBackend(engine),
            builders=BuildxBackend(),
            minikube=MinikubeBackend(),
            kind=KindBackend(),
        )


@dataclass
class CleanupPlan:
    selector: CategorySelector = field(default_factory=CategorySelector)
    exclusions: Exclusions = field(default_factory=Exclusions)
    older_than_days: int | None = None
    clean_logs: bool = False
    reset_docker_desktop: bool = False


# (category, backend attribute, confirmation question, progress line)
PER_ITEM_CATEGORIES: list[tuple[Category, str, str, str | None]] = [
    (Category.CONTAINERS, "containers", "Proceed with cleaning containers?", "Cleaning containers..."),
    (Category.IMAGES, "images", "Proceed with cleaning images?", "Cleaning images..."),
    (Category.VOLUMES, "volumes", "Proceed with cleaning volumes?", "Cleaning volumes..."),
]

CLUSTER_CATEGORIES: list[tuple[Category, str, str, str | None]] = [
    (Category.MINIKUBE, "minikube", "Proceed with cleaning minikube profiles?", None),
    (Category.KIND, "kind", "Proceed with cleaning kind clusters?", None),
]

# (report category, listed kind, listing filters, prune aggressively)
DANGLING_SUBKINDS: list[tuple[str, ResourceKind, dict, bool]] = [
    ("dangling_images", ResourceKind.IMAGE, {"dangling": True}, True),
    ("dangling_containers", ResourceKind.CONTAINER, {"status": "exited"}, False),
    ("dangling_volumes", ResourceKind.VOLUME, {"dangling": True}, False),
    ("dangling_networks", ResourceKind.NETWORK, {"dangling": True}, False),
]


class CleanupRunner:
    def __init__(
        self,
        *,
        backends: Backends,
        mode: ExecutionMode,
        platform: Platform | None = None,
        report: RunReport | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._backends = backends
        self._mode = mode
        self._platform = platform or Platform()
        self._report = report or RunReport()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def report(self) -> RunReport:
        return self._report

    def run(self, plan: CleanupPlan) -> RunReport:
        selector = plan.selector

        for category, attr, question, progress in PER_ITEM_CATEGORIES:
            if selector.includes(category):
                self.run_category(
                    category,
                    getattr(self._backends, attr),
                    exclusions=plan.exclusions,
                    older_than_days=plan.older_than_days,
                    question=question,
                    progress=progress,
                )

        if selector.includes(Category.BUILDERS):
            self.run_builders(plan.exclusions)
            if self._platform.is_wsl:
                self.purge_platform_caches()

        if plan.reset_docker_desktop:
            self.reset_docker_desktop()

        for category, attr, question, progress in CLUSTER_CATEGORIES:
            if selector.includes(category):
                # Clusters expose no creation time, so no age filter.
                self.run_category(
                    category,
                    getattr(self._backends, attr),
                    exclusions=plan.exclusions,
                    older_than_days=None,
                    question=question,
                    progress=progress,
                )

        if selector.includes(Category.DANGLING):
            self.run_dangling()

        if plan.clean_logs and selector.includes(Category.LOGS):
            self.clean_logs()

        if selector.includes(Category.DANGLING):
            self.final_prune()

        return self._report

    def _attempt(self, category: str, result: BackendResult, action: str) -> None:
        """Record a backend failure; the run always carries on."""
        if result.ok:
            return
        LOGGER.debug("[CLEANER]: %s failed: %s", action, result.error)
        self._report.add(category, FAILED)

    def run_category(
        self,
        category: Category,
        backend: ResourceBackend,
        *,
        exclusions: Exclusions,
        older_than_days: int | None,
        question: str,
        progress: str | None = None,
    ) -> bool:
        if not backend.available():
            LOGGER.debug("[CLEANER]: Skipping %s, backend tool not installed", category.value)
            return False
        if not self._mode.confirm_action(question):
            return False
        if progress:
            self._mode.echo(progress)

        listed = backend.list_resources()
        if not listed.ok:
            LOGGER.debug("[CLEANER]: Listing %s failed: %s", category.value, listed.error)
        resources = list(listed.value or []) if listed.ok else []

        now = self._clock()
        for resource in resources:
            decision = decide(resource, exclusions, older_than_days, now=now)
            if decision.act:
                self._mode.detail(f"Removing {backend.noun}: {resource.describe()}")
                if not self._mode.dry_run:
                    self._attempt(category.value, backend.delete(resource), f"Removing {backend.noun} {resource.id}")
                self._report.add(category.value, REMOVED)
            else:
                if decision.reason == "excluded":
                    self._mode.detail(f"Excluding {backend.noun}: {resource.describe()}")
                self._report.add(category.value, EXCLUDED)
        return True

    def run_builders(self, exclusions: Exclusions) -> bool:
        backend = self._backends.builders
        category = Category.BUILDERS.value
        if not backend.available():
            return False
        if not self._mode.confirm_action("Proceed with cleaning builders and build history?"):
            return False
        self._mode.echo("Cleaning up build history and caches...")

        listed = backend.list_resources()
        if not listed.ok:
            LOGGER.debug("[CLEANER]: Listing builders failed: %s", listed.error)
        for builder in list(listed.value or []) if listed.ok else []:
            decision = decide(builder, exclusions)
            if not decision.act:
                self._mode.detail(f"Skipping excluded builder: {builder.id}")
                self._report.add(category, EXCLUDED)
                continue

            self._mode.detail(f"Processing builder: {builder.id}")
            if not self._mode.dry_run:
                self._attempt(category, backend.prune_cache(builder), f"Pruning builder {builder.id}")
            self._report.add(category, PROCESSED)

            if builder.id == DEFAULT_BUILDER:
                continue
            self._mode.detail(f"Removing builder: {builder.id}")
            if not self._mode.dry_run:
                self._attempt(category, backend.delete(builder), f"Removing builder {builder.id}")
            self._report.add(category, REMOVED)
        return True

    def purge_platform_caches(self) -> bool:
        if not self._mode.confirm_action("Proceed with WSL-specific cleanup?"):
            return False
        self._mode.echo("Performing WSL-specific cleanup...")
        if self._mode.dry_run:
            self._mode.echo("[Dry-run] Would clean WSL and Windows-side caches")
            return True

        clear_directory(self._platform.linux_build_cache_dir())
        windows_dirs = self._platform.windows_build_cache_dirs()
        if windows_dirs:
            self._mode.echo("Cleaning Windows-side Docker Desktop cache...")
        for directory in windows_dirs:
            clear_directory(directory)
        return True

    def reset_docker_desktop(self) -> bool:
        if not self._mode.confirm_action("Proceed with resetting Docker Desktop (destructive)?"):
            return False
        self._mode.echo("WARNING: Resetting Docker Desktop data (this removes ALL Docker data)...")
        if self._mode.dry_run:
            self._mode.echo("[Dry-run] Would reset Docker Desktop data")
            return True

        data_dir = self._platform.docker_desktop_data_dir()
        self._platform.stop_docker_desktop()
        if data_dir is None:
            LOGGER.debug("[CLEANER]: Docker Desktop data directory could not be resolved")
        else:
            clear_directory(data_dir)
        self._mode.echo("Docker Desktop data reset. You must restart Docker Desktop manually.")
        return True

    def run_dangling(self) -> bool:
        engine = self._backends.engine
        if not self._mode.confirm_action("Proceed with cleaning dangling/unused resources?"):
            return False
        self._mode.echo("Cleaning dangling/unused resources...")
        if self._mode.dry_run:
            self._mode.echo("[Dry-run] Would clean dangling images, containers, volumes, networks, build cache")

        for category, kind, filters, aggressive in DANGLING_SUBKINDS:
            counted = engine.count_resources(kind, filters=filters)
            self._report.add(category, REMOVED, sanitize_count(counted.value if counted.ok else 0))
            if not self._mode.dry_run:
                self._attempt(category, engine.prune(kind, aggressive=aggressive), f"Pruning {category}")

        if not self._mode.dry_run:
            self._attempt(
                "dangling_build_cache",
                engine.prune(ResourceKind.BUILDER, aggressive=True),
                "Pruning build cache",
            )
        # The build cache size is unknown up front; 1 marks the prune as attempted.
        self._report.add("dangling_build_cache", REMOVED)
        return True

    def clean_logs(self) -> bool:
        engine = self._backends.engine
        category = Category.LOGS.value
        if not self._mode.confirm_action("Proceed with cleaning Docker container logs?"):
            return False
        self._mode.echo("Cleaning Docker container logs...")

        listed = engine.list_containers()
        for container in list(listed.value or []) if listed.ok else []:
            inspected = engine.inspect_container(container.id)
            log_path = str(inspected.value.get("log_path") or "") if inspected.ok else ""
            if not log_path or not log_file_exists(log_path):
                continue
            self._mode.detail(f"Truncating log for container: {container.id} ({log_path})")
            if not self._mode.dry_run:
                self._attempt(category, truncate_file(log_path), f"Truncating {log_path}")
            self._report.add(category, CLEANED)
        return True

    def final_prune(self) -> None:
        if self._mode.dry_run:
            self._mode.echo("[Dry-run] Would run system prune")
            return
        self._attempt("system", self._backends.engine.system_prune(), "System prune")

    def emit_report(self) -> None:
        for line in self._report.render():
            self._mode.echo(line)

        failed = self._report.total(FAILED)
        if failed and self._mode.verbose:
            self._mode.echo(f"Note: {failed} backend operation(s) failed; counts above are attempted removals.")

        if self._platform.is_wsl:
            self._mode.echo("Please restart Docker Desktop on Windows to refresh the UI.")
            self._mode.echo(
                "If build history persists, try running with --reset-docker-desktop (WARNING: highly destructive)."
            )


def log_file_exists(path: str) -> bool:
    """False when the log is missing or its directory is not readable by this user."""
    try:
        return Path(path).is_file()
    except OSError:
        LOGGER.debug("[CLEANER]: Cannot stat log %s", path, exc_info=True)
        return False


def truncate_file(path: str) -> BackendResult:
    try:
        os.truncate(path, 0)
    except OSError as exc:
        return BackendResult.failure(exc)
    return BackendResult.success()
