from __future__ import annotations

import logging
from typing import Any

import docker
from docker.errors import DockerException

from ..models import ResourceKey, ResourceKind
from .base import BackendError, BackendResult, ResourceBackend


LOGGER = logging.getLogger("docker_cleaner")

COMPOSE_PROJECT_LABEL = "com.docker.compose.project"


def short_id(value: str) -> str:
    """Return the 12 character id the docker CLI prints for ``-q`` listings."""
    text = str(value or "")
    if ":" in text:
        text = text.split(":", 1)[1]
    return text[:12]


class DockerEngine:
    """Thin wrapper over the docker SDK client returning BackendResult values."""

    def __init__(self, client: Any = None):
        self._client = client
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException:
                LOGGER.warning("[CLEANER]: Docker client unavailable", exc_info=True)

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _call(self, fn, *args, **kwargs) -> BackendResult:
        try:
            if self._client is None:
                raise BackendError("docker client unavailable")
            return BackendResult.success(fn(*args, **kwargs))
        except (BackendError, DockerException, OSError) as exc:
            return BackendResult.failure(exc)

    # Listings -------------------------------------------------------------

    def list_containers(self, *, filters: dict | None = None) -> BackendResult:
        def _list() -> list[ResourceKey]:
            out: list[ResourceKey] = []
            for container in self._client.containers.list(all=True, filters=filters or {}):
                attrs = dict(container.attrs or {})
                out.append(
                    ResourceKey(
                        id=short_id(container.id),
                        display_name=str(container.name or "").lstrip("/"),
                        kind=ResourceKind.CONTAINER,
                        created_at=attrs.get("Created"),
                    )
                )
            return out

        return self._call(_list)

    def list_images(self, *, filters: dict | None = None, include_intermediate: bool = True) -> BackendResult:
        def _list() -> list[ResourceKey]:
            seen: dict[str, ResourceKey] = {}
            for image in self._client.images.list(all=include_intermediate, filters=filters or {}):
                image_id = short_id(image.id)
                if image_id in seen:
                    continue
                attrs = dict(image.attrs or {})
                seen[image_id] = ResourceKey(
                    id=image_id,
                    display_name=" ".join(str(tag) for tag in (image.tags or [])),
                    kind=ResourceKind.IMAGE,
                    created_at=attrs.get("Created"),
                )
            return list(seen.values())

        return self._call(_list)

    def list_volumes(self, *, filters: dict | None = None) -> BackendResult:
        def _list() -> list[ResourceKey]:
            return [
                ResourceKey(id=str(volume.name), display_name=str(volume.name), kind=ResourceKind.VOLUME)
                for volume in self._client.volumes.list(filters=filters or {})
            ]

        return self._call(_list)

    def list_networks(self, *, filters: dict | None = None) -> BackendResult:
        def _list() -> list[ResourceKey]:
            return [
                ResourceKey(id=short_id(network.id), display_name=str(network.name), kind=ResourceKind.NETWORK)
                for network in self._client.networks.list(filters=filters or {})
            ]

        return self._call(_list)

    def _list_top_level_images(self, *, filters: dict | None = None) -> BackendResult:
        # Counts match `docker image ls -q`, which leaves out intermediate layers.
        return self.list_images(filters=filters, include_intermediate=False)

    def count_resources(self, kind: ResourceKind, *, filters: dict | None = None) -> BackendResult:
        listings = {
            ResourceKind.CONTAINER: self.list_containers,
            ResourceKind.IMAGE: self._list_top_level_images,
            ResourceKind.VOLUME: self.list_volumes,
            ResourceKind.NETWORK: self.list_networks,
        }
        if kind not in listings:
            return BackendResult.failure(f"count is not supported for {kind.value}")
        listed = listings[kind](filters=filters)
        if not listed.ok:
            return listed
        return BackendResult.success(len(listed.value))

    def inspect_container(self, container_id: str) -> BackendResult:
        """Return ``{name, created_at, image_ref, mounts, labels, log_path}`` for a container."""

        def _inspect() -> dict[str, Any]:
            attrs = dict(self._client.containers.get(container_id).attrs or {})
            config = dict(attrs.get("Config") or {})
            return {
                "name": str(attrs.get("Name") or "").lstrip("/"),
                "created_at": attrs.get("Created"),
                "image_ref": str(attrs.get("Image") or ""),
                "mounts": list(attrs.get("Mounts") or []),
                "labels": dict(config.get("Labels") or {}),
                "log_path": str(attrs.get("LogPath") or ""),
            }

        return self._call(_inspect)

    # Deletes and prunes ----------------------------------------------------

    def remove_container(self, container_id: str) -> BackendResult:
        return self._call(lambda: self._client.api.remove_container(container_id, force=True))

    def remove_image(self, image_id: str) -> BackendResult:
        return self._call(lambda: self._client.images.remove(image_id, force=True))

    def remove_volume(self, name: str) -> BackendResult:
        return self._call(lambda: self._client.api.remove_volume(name, force=True))

    def prune(self, kind: ResourceKind, *, aggressive: bool = False) -> BackendResult:
        if kind is ResourceKind.IMAGE:
            filters = {"dangling": False} if aggressive else {"dangling": True}
            return self._call(lambda: self._client.images.prune(filters=filters))
        if kind is ResourceKind.CONTAINER:
            return self._call(lambda: self._client.containers.prune(filters={"status": "exited"}))
        if kind is ResourceKind.VOLUME:
            filters = {"all": "true"} if aggressive else None
            return self._call(lambda: self._client.volumes.prune(filters=filters))
        if kind is ResourceKind.NETWORK:
            return self._call(lambda: self._client.networks.prune())
        if kind is ResourceKind.BUILDER:
            return self._call(lambda: self._client.api.prune_builds(all=aggressive))
        return BackendResult.failure(f"prune is not supported for {kind.value}")

    def system_prune(self) -> BackendResult:
        """Equivalent of ``docker system prune -a -f --volumes``."""
        results = [
            self._call(lambda: self._client.containers.prune()),
            self.prune(ResourceKind.NETWORK),
            self.prune(ResourceKind.IMAGE, aggressive=True),
            self.prune(ResourceKind.BUILDER, aggressive=True),
            self._call(lambda: self._client.volumes.prune()),
        ]
        errors = [str(result.error) for result in results if not result.ok]
        if errors:
            return BackendResult.failure("; ".join(errors))
        return BackendResult.success()


class ContainerBackend(ResourceBackend):
    kind = ResourceKind.CONTAINER
    noun = "container"

    def __init__(self, engine: DockerEngine):
        self._engine = engine

    def list_resources(self) -> BackendResult:
        return self._engine.list_containers()

    def delete(self, resource: ResourceKey) -> BackendResult:
        return self._engine.remove_container(resource.id)


class ImageBackend(ResourceBackend):
    kind = ResourceKind.IMAGE
    noun = "image"

    def __init__(self, engine: DockerEngine):
        self._engine = engine

    def list_resources(self) -> BackendResult:
        return self._engine.list_images()

    def delete(self, resource: ResourceKey) -> BackendResult:
        return self._engine.remove_image(resource.id)


class VolumeBackend(ResourceBackend):
    kind = ResourceKind.VOLUME
    noun = "volume"

    def __init__(self, engine: DockerEngine):
        self._engine = engine

    def list_resources(self) -> BackendResult:
        return self._engine.list_volumes()

    def delete(self, resource: ResourceKey) -> BackendResult:
        return self._engine.remove_volume(resource.id)
