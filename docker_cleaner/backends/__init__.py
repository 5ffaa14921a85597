from .base import BackendError, BackendResult, ResourceBackend, run_cli
from .buildx import DEFAULT_BUILDER, BuildxBackend
from .clusters import KindBackend, MinikubeBackend
from .engine import COMPOSE_PROJECT_LABEL, ContainerBackend, DockerEngine, ImageBackend, VolumeBackend, short_id


__all__ = [
    "BackendError",
    "BackendResult",
    "BuildxBackend",
    "COMPOSE_PROJECT_LABEL",
    "ContainerBackend",
    "DEFAULT_BUILDER",
    "DockerEngine",
    "ImageBackend",
    "KindBackend",
    "MinikubeBackend",
    "ResourceBackend",
    "VolumeBackend",
    "run_cli",
    "short_id",
]
