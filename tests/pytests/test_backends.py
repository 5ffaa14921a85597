from __future__ import annotations

import importlib
import subprocess
import sys
from pathlib import Path
from types import SimpleNamespace

from docker.errors import APIError, DockerException


REPO_ROOT = Path(__file__).parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

base = importlib.import_module("docker_cleaner.backends.base")
buildx = importlib.import_module("docker_cleaner.backends.buildx")
clusters = importlib.import_module("docker_cleaner.backends.clusters")
engine_module = importlib.import_module("docker_cleaner.backends.engine")
models = importlib.import_module("docker_cleaner.models")

ResourceKey = models.ResourceKey
ResourceKind = models.ResourceKind


BUILDX_LS_LEGACY = """\
NAME/NODE       DRIVER/ENDPOINT             STATUS  BUILDKIT PLATFORMS
ci-builder *    docker-container
  ci-builder0   unix:///var/run/docker.sock running v0.12.5  linux/amd64
default         docker
  default       default                     running v0.12.5  linux/amd64
"""

BUILDX_LS_CURRENT = """\
NAME/NODE           DRIVER/ENDPOINT     STATUS    BUILDKIT   PLATFORMS
default*            docker
 \\_ default         \\_ default         running   v0.13.2    linux/amd64
desktop-linux       docker
 \\_ desktop-linux   \\_ desktop-linux   running   v0.13.2    linux/amd64
"""


def test_build_cmds_basic() -> None:
    assert buildx.build_buildx_ls_cmd() == ["docker", "buildx", "ls"]
    assert buildx.build_buildx_use_cmd(builder="ci") == ["docker", "buildx", "use", "ci"]
    assert buildx.build_buildx_prune_cmd() == ["docker", "buildx", "prune", "-a", "-f"]
    assert buildx.build_buildx_rm_cmd(builder="ci") == ["docker", "buildx", "rm", "ci"]
    assert clusters.build_minikube_delete_cmd(profile="dev") == ["minikube", "delete", "--profile", "dev"]
    assert clusters.build_kind_delete_cmd(cluster="dev") == ["kind", "delete", "cluster", "--name", "dev"]


def test_parse_buildx_ls_skips_node_rows() -> None:
    assert buildx.parse_buildx_ls(BUILDX_LS_LEGACY) == ["ci-builder", "default"]
    assert buildx.parse_buildx_ls(BUILDX_LS_CURRENT) == ["default", "desktop-linux"]
    assert buildx.parse_buildx_ls("") == []


def test_parse_kind_clusters_ignores_empty_message() -> None:
    assert clusters.parse_kind_clusters("dev\nstaging\n") == ["dev", "staging"]
    assert clusters.parse_kind_clusters("No kind clusters found.\n") == []


def test_parse_minikube_profiles_reads_valid_and_invalid() -> None:
    output = '{"invalid": [{"Name": "broken"}], "valid": [{"Name": "minikube"}, {"Name": "multinode"}]}'
    assert clusters.parse_minikube_profiles(output) == ["minikube", "multinode", "broken"]
    assert clusters.parse_minikube_profiles("") == []


def test_minikube_backend_reports_unparseable_output(monkeypatch) -> None:
    monkeypatch.setattr(clusters, "run_cli", lambda cmd: base.BackendResult.success("* Exiting due to ..."))
    result = clusters.MinikubeBackend().list_resources()
    assert result.ok is False


def test_run_cli_returns_failure_with_stderr(monkeypatch) -> None:
    def fake_run(cmd, **_: object):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr="ERROR: no builder \"x\" found")

    monkeypatch.setattr(base.subprocess, "run", fake_run)
    result = base.run_cli(["docker", "buildx", "rm", "x"])

    assert result.ok is False
    assert "exit code 1" in result.error
    assert 'no builder "x" found' in result.error


def test_run_cli_handles_missing_binary(monkeypatch) -> None:
    def fake_run(cmd, **_: object):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(base.subprocess, "run", fake_run)
    assert base.run_cli(["kind", "get", "clusters"]).ok is False


def test_buildx_backend_lists_and_prunes(monkeypatch) -> None:
    calls: list[list[str]] = []

    def fake_run_cli(cmd: list[str]):
        calls.append(cmd)
        if cmd == ["docker", "buildx", "ls"]:
            return base.BackendResult.success(BUILDX_LS_LEGACY)
        return base.BackendResult.success("")

    monkeypatch.setattr(buildx, "run_cli", fake_run_cli)
    backend = buildx.BuildxBackend()

    listed = backend.list_resources()
    assert [item.id for item in listed.value] == ["ci-builder", "default"]
    assert all(item.kind is ResourceKind.BUILDER for item in listed.value)

    assert backend.prune_cache(listed.value[0]).ok is True
    assert calls[1:] == [["docker", "buildx", "use", "ci-builder"], ["docker", "buildx", "prune", "-a", "-f"]]


def test_kind_backend_availability_follows_path(monkeypatch) -> None:
    monkeypatch.setattr(clusters.shutil, "which", lambda name: None)
    assert clusters.KindBackend().available() is False
    monkeypatch.setattr(clusters.shutil, "which", lambda name: f"/usr/local/bin/{name}")
    assert clusters.KindBackend().available() is True


class _Collection:
    def __init__(self, items=None, *, error: Exception | None = None):
        self.items = list(items or [])
        self.error = error
        self.calls: list[dict] = []
        self.removed: list[tuple] = []
        self.pruned: list = []

    def list(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return list(self.items)

    def get(self, item_id):
        for item in self.items:
            if item.id == item_id:
                return item
        raise APIError("No such container")

    def remove(self, item_id, **kwargs):
        self.removed.append((item_id, kwargs))

    def prune(self, filters=None):
        self.pruned.append(filters)
        return {}


class _Api:
    def __init__(self):
        self.removed_containers: list[tuple] = []
        self.build_prunes: list = []

    def remove_container(self, container_id, **kwargs):
        self.removed_containers.append((container_id, kwargs))

    def remove_volume(self, name, **kwargs):
        raise APIError("volume is in use")

    def prune_builds(self, **kwargs):
        self.build_prunes.append(kwargs)
        return {}


def _fake_client():
    container = SimpleNamespace(
        id="a1b2c3d4e5f6a7b8c9d0",
        name="web-app",
        attrs={
            "Name": "/web-app",
            "Created": "2024-01-01T00:00:00.000000001Z",
            "Image": "sha256:feedfacecafe0011",
            "Mounts": [{"Type": "volume", "Name": "web_data"}],
            "Config": {"Labels": {"com.docker.compose.project": "shop"}},
            "LogPath": "/var/lib/docker/containers/a1b2/a1b2-json.log",
        },
    )
    image = SimpleNamespace(
        id="sha256:0123456789abcdef",
        tags=["nginx:latest", "nginx:1.25"],
        attrs={"Created": "2023-06-01T00:00:00Z"},
    )
    volume = SimpleNamespace(name="web_data", attrs={})
    return SimpleNamespace(
        containers=_Collection([container]),
        images=_Collection([image, image]),
        volumes=_Collection([volume]),
        networks=_Collection([], error=DockerException("connection refused")),
        api=_Api(),
    )


def test_engine_lists_resources_as_resource_keys() -> None:
    client = _fake_client()
    engine = engine_module.DockerEngine(client)

    containers = engine.list_containers().value
    assert containers == [
        ResourceKey(
            id="a1b2c3d4e5f6",
            display_name="web-app",
            kind=ResourceKind.CONTAINER,
            created_at="2024-01-01T00:00:00.000000001Z",
        )
    ]
    assert client.containers.calls == [{"all": True, "filters": {}}]

    images = engine.list_images().value
    assert len(images) == 1
    assert images[0].id == "0123456789ab"
    assert images[0].display_name == "nginx:latest nginx:1.25"

    assert [item.id for item in engine.list_volumes().value] == ["web_data"]


def test_engine_inspect_container_extracts_fields() -> None:
    engine = engine_module.DockerEngine(_fake_client())
    details = engine.inspect_container("a1b2c3d4e5f6a7b8c9d0").value

    assert details["name"] == "web-app"
    assert details["image_ref"] == "sha256:feedfacecafe0011"
    assert details["mounts"] == [{"Type": "volume", "Name": "web_data"}]
    assert details["labels"] == {"com.docker.compose.project": "shop"}
    assert details["log_path"].endswith("-json.log")

    assert engine.inspect_container("missing").ok is False


def test_engine_turns_sdk_errors_into_failures() -> None:
    client = _fake_client()
    engine = engine_module.DockerEngine(client)

    assert engine.list_networks().ok is False
    assert engine.count_resources(ResourceKind.NETWORK).ok is False
    assert engine.remove_volume("web_data").ok is False

    assert engine.remove_container("a1b2c3d4e5f6").ok is True
    assert client.api.removed_containers == [("a1b2c3d4e5f6", {"force": True})]


def test_engine_count_and_prune() -> None:
    client = _fake_client()
    engine = engine_module.DockerEngine(client)

    assert engine.count_resources(ResourceKind.CONTAINER, filters={"status": "exited"}).value == 1
    assert client.containers.calls[-1] == {"all": True, "filters": {"status": "exited"}}

    assert engine.prune(ResourceKind.IMAGE, aggressive=True).ok is True
    assert client.images.pruned == [{"dangling": False}]
    assert engine.prune(ResourceKind.BUILDER, aggressive=True).ok is True
    assert client.api.build_prunes == [{"all": True}]
    assert engine.prune(ResourceKind.CLUSTER).ok is False


def test_engine_without_daemon_fails_every_call(monkeypatch) -> None:
    def no_daemon():
        raise DockerException("Error while fetching server API version")

    monkeypatch.setattr(engine_module.docker, "from_env", no_daemon)
    engine = engine_module.DockerEngine()

    assert engine.connected is False
    result = engine.list_containers()
    assert result.ok is False
    assert result.error == "docker client unavailable"
    assert engine.system_prune().ok is False


def test_short_id_matches_cli_quiet_listing() -> None:
    assert engine_module.short_id("sha256:0123456789abcdef") == "0123456789ab"
    assert engine_module.short_id("a1b2c3d4e5f6a7b8") == "a1b2c3d4e5f6"
    assert engine_module.short_id("") == ""


def test_run_cli_replaces_undecodable_output() -> None:
    # cmd.exe echoes %USERPROFILE% in the OEM code page, e.g. 0x82 for "é".
    script = "import sys; sys.stdout.buffer.write(b'C:\\\\Users\\\\Jos\\x82\\r\\n')"
    result = base.run_cli([sys.executable, "-c", script])

    assert result.ok is True
    assert result.value.startswith("C:\\Users\\Jos")
    assert "\ufffd" in result.value


def test_dangling_image_count_leaves_out_intermediate_layers() -> None:
    client = _fake_client()
    engine = engine_module.DockerEngine(client)

    assert engine.count_resources(ResourceKind.IMAGE, filters={"dangling": True}).value == 1
    assert client.images.calls[-1] == {"all": False, "filters": {"dangling": True}}

    engine.list_images()
    assert client.images.calls[-1] == {"all": True, "filters": {}}
