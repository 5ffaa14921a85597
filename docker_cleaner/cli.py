"""Command line entry point.

Removes containers, images, volumes, build caches, builders and local
Kubernetes clusters (minikube, kind) left behind by local development, then
prints a summary table. Use with caution: without exclusions everything the
Docker engine knows about is removed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from .backends import DockerEngine
from .config import (
    ENV_DRY_RUN,
    ENV_QUIET,
    ConfigError,
    FileSettings,
    config_path_from_env,
    env_flag,
    load_config_file,
    log_level_from_env,
    older_than_from_env,
    parse_older_than,
)
from .discovery import discover_protected_resources, resolve_project_name
from .host import Platform
from .models import (
    EXCLUDABLE_CATEGORIES,
    Category,
    CategorySelector,
    ExecutionMode,
    Exclusions,
    ResourceKind,
    split_exclusion_list,
)
from .runner import Backends, CleanupPlan, CleanupRunner


LOGGER = logging.getLogger("docker_cleaner")

EXCLUDE_HELP = {
    Category.CONTAINERS: "Space-separated container IDs or names to exclude",
    Category.IMAGES: "Space-separated image IDs or repo:tags to exclude",
    Category.VOLUMES: "Space-separated volume names to exclude",
    Category.BUILDERS: "Space-separated builder names to exclude",
    Category.MINIKUBE: "Space-separated minikube profiles to exclude",
    Category.KIND: "Space-separated kind clusters to exclude",
}

ONLY_HELP = {
    Category.CONTAINERS: "Only clean containers",
    Category.IMAGES: "Only clean images",
    Category.VOLUMES: "Only clean volumes",
    Category.BUILDERS: "Only clean builders and build history",
    Category.MINIKUBE: "Only clean minikube profiles",
    Category.KIND: "Only clean kind clusters",
    Category.DANGLING: "Only clean dangling/unused resources",
    Category.LOGS: "Only clean container logs",
}


class CleanerArgumentParser(argparse.ArgumentParser):
    """Exits with status 1 on any usage error and stays silent under --quiet."""

    quiet = False

    def error(self, message: str) -> None:
        if not self.quiet:
            print(f"Invalid usage: {message}")
            print(self.format_help(), end="")
        self.exit(1)


def build_parser() -> CleanerArgumentParser:
    parser = CleanerArgumentParser(
        prog="docker-cleaner",
        description="Clean Docker and local Kubernetes resources",
        allow_abbrev=False,
    )
    for category, help_text in EXCLUDE_HELP.items():
        parser.add_argument(
            f"--exclude-{category.value}",
            dest=f"exclude_{category.value}",
            action="append",
            default=[],
            metavar='"A B"',
            help=help_text,
        )
    parser.add_argument(
        "--protect-current-dir",
        action="store_true",
        help="Protect resources associated with the current directory (docker-compose projects)",
    )
    parser.add_argument(
        "--reset-docker-desktop",
        action="store_true",
        help="Reset Docker Desktop data (WARNING: removes all Docker data)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Simulate cleanup without deleting")
    parser.add_argument("--verbose", action="store_true", help="Log detailed actions")
    parser.add_argument(
        "--older-than",
        default=None,
        metavar="DAYS",
        help="Only remove resources older than DAYS days (resolution: CLI -> DC_OLDER_THAN env var -> config file)",
    )
    for category, help_text in ONLY_HELP.items():
        parser.add_argument(
            f"--only-{category.value}",
            dest=f"only_{category.value}",
            action="store_true",
            help=help_text,
        )
    parser.add_argument("--confirm", action="store_true", help="Prompt for confirmation before major actions")
    parser.add_argument("--clean-logs", action="store_true", help="Clean (truncate) Docker container logs")
    parser.add_argument("--quiet", action="store_true", help="Suppress output (for cron jobs)")
    parser.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="YAML file with default exclusions and flags (resolution: CLI -> DC_CONFIG env var)",
    )
    return parser


def _resolve_flag(cli_value: bool, file_settings: FileSettings, key: str, env_name: str | None = None) -> bool:
    if cli_value:
        return True
    if env_name:
        from_env = env_flag(env_name)
        if from_env is not None:
            return from_env
    return bool(file_settings.flags.get(key, False))


def build_selector(args: argparse.Namespace) -> CategorySelector:
    chosen = frozenset(category for category in Category if getattr(args, f"only_{category.value}", False))
    return CategorySelector(only=chosen)


def build_exclusions(args: argparse.Namespace, file_settings: FileSettings) -> Exclusions:
    additions: dict[ResourceKind, list[str]] = {}
    for category, kind in EXCLUDABLE_CATEGORIES.items():
        values = split_exclusion_list(getattr(args, f"exclude_{category.value}", []))
        values.extend(file_settings.exclusions.get(kind, []))
        additions[kind] = values
    return Exclusions().merged(additions)


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    log_level = log_level_from_env()
    logging.basicConfig(level=getattr(logging, log_level, logging.WARNING))
    if quiet:
        LOGGER.setLevel(logging.ERROR)
    elif verbose:
        LOGGER.setLevel(logging.DEBUG)


def main(
    argv: list[str] | None = None,
    *,
    engine: Any = None,
    platform: Platform | None = None,
    cwd: Path | None = None,
) -> int:
    args_list = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    parser.quiet = "--quiet" in args_list or env_flag(ENV_QUIET) is True
    args = parser.parse_args(args_list)

    try:
        config_path = args.config or config_path_from_env()
        file_settings = load_config_file(config_path) if config_path else FileSettings()
    except ConfigError as exc:
        parser.error(str(exc))
    quiet = _resolve_flag(args.quiet, file_settings, "quiet", ENV_QUIET)
    parser.quiet = quiet

    try:
        older_than_days = parse_older_than(args.older_than)
        if args.older_than is None:
            older_than_days = older_than_from_env()
            if older_than_days is None:
                older_than_days = file_settings.older_than
    except ConfigError as exc:
        parser.error(str(exc))

    verbose = _resolve_flag(args.verbose, file_settings, "verbose")
    mode = ExecutionMode(
        dry_run=_resolve_flag(args.dry_run, file_settings, "dry_run", ENV_DRY_RUN),
        verbose=verbose,
        quiet=quiet,
        confirm=_resolve_flag(args.confirm, file_settings, "confirm"),
    )
    configure_logging(verbose=verbose, quiet=quiet)

    host = platform or Platform.detect()
    if host.is_wsl:
        mode.echo("Detected WSL environment")

    docker_engine = engine if engine is not None else DockerEngine()
    if not docker_engine.connected:
        LOGGER.debug("[CLEANER]: Docker daemon unreachable, engine categories will report nothing")
    exclusions = build_exclusions(args, file_settings)
    if _resolve_flag(args.protect_current_dir, file_settings, "protect_current_dir"):
        project_name = resolve_project_name(cwd)
        LOGGER.debug("[CLEANER]: Protecting compose project %s", project_name)
        exclusions = exclusions.merged(discover_protected_resources(docker_engine, project_name))

    plan = CleanupPlan(
        selector=build_selector(args),
        exclusions=exclusions,
        older_than_days=older_than_days,
        clean_logs=_resolve_flag(args.clean_logs, file_settings, "clean_logs"),
        reset_docker_desktop=_resolve_flag(args.reset_docker_desktop, file_settings, "reset_docker_desktop"),
    )
    runner = CleanupRunner(backends=Backends.from_engine(docker_engine), mode=mode, platform=host)
    runner.run(plan)
    runner.emit_report()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
