from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from .backends.engine import COMPOSE_PROJECT_LABEL, DockerEngine, short_id
from .models import ResourceKind


LOGGER = logging.getLogger("docker_cleaner")

ENV_COMPOSE_PROJECT_NAME = "COMPOSE_PROJECT_NAME"


def resolve_project_name(cwd: Path | None = None, env: dict[str, str] | None = None) -> str:
    """Compose project name for ``cwd``: COMPOSE_PROJECT_NAME, then ``.env``, then the directory name."""
    directory = Path(cwd or Path.cwd())
    environ = os.environ if env is None else env

    name = str(environ.get(ENV_COMPOSE_PROJECT_NAME) or "").strip()
    if name:
        return name

    dotenv_path = directory / ".env"
    if dotenv_path.is_file():
        name = str(dotenv_values(dotenv_path).get(ENV_COMPOSE_PROJECT_NAME) or "").strip()
        if name:
            return name

    return directory.resolve().name


def volume_mount_names(mounts: list[dict[str, Any]] | None) -> list[str]:
    out: list[str] = []
    for mount in mounts or []:
        if not isinstance(mount, dict):
            continue
        if str(mount.get("Type") or "") != "volume":
            continue
        name = str(mount.get("Name") or "").strip()
        if name:
            out.append(name)
    return out


def discover_protected_resources(
    engine: DockerEngine,
    project_name: str,
) -> dict[ResourceKind, list[str]]:
    """Exclusions for every container of the compose project, its image and its named volumes."""
    out: dict[ResourceKind, list[str]] = {
        ResourceKind.CONTAINER: [],
        ResourceKind.IMAGE: [],
        ResourceKind.VOLUME: [],
    }
    if not project_name:
        return out

    listed = engine.list_containers(filters={"label": f"{COMPOSE_PROJECT_LABEL}={project_name}"})
    if not listed.ok:
        LOGGER.debug("[CLEANER]: Could not list containers of project %s: %s", project_name, listed.error)
        return out

    for container in listed.value:
        out[ResourceKind.CONTAINER].append(container.id)

        inspected = engine.inspect_container(container.id)
        if not inspected.ok:
            LOGGER.debug("[CLEANER]: Could not inspect container %s: %s", container.id, inspected.error)
            continue

        image_ref = str(inspected.value.get("image_ref") or "")
        if image_ref:
            out[ResourceKind.IMAGE].append(short_id(image_ref))
        out[ResourceKind.VOLUME].extend(volume_mount_names(inspected.value.get("mounts")))

    return out
