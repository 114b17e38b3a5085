"""Thin adapter over the Docker engine API.

Every call is one blocking round trip to the daemon. Failures of any kind,
whether the daemon answered with an error or the connection broke, come out
as :class:`~swim.errors.EngineError` tagged with the step that was running.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

import docker
import requests
import structlog
from docker.errors import DockerException
from docker.utils import parse_repository_tag

from swim.errors import EngineError
from swim.ports import HostBinding, MergedBindingSet, PortEntry, PortKey, bindings_from_engine, parse_port_key
from swim.selector import ContainerSummary

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InspectResult:
    """The parts of ``docker inspect`` a migration needs."""
    id: str
    name: str
    image: str
    auto_remove: bool = False
    exposed_ports: FrozenSet[PortKey] = frozenset()
    port_bindings: Dict[PortKey, Tuple[HostBinding, ...]] = field(default_factory=dict)


@contextmanager
def engine_step(step: str, **context):
    """Run one engine call, converting client errors into an EngineError for ``step``."""
    log.debug("Calling container engine", step=step, **context)
    try:
        yield
    except (DockerException, requests.RequestException) as e:
        log.debug("Container engine call failed", step=step, error=str(e), **context)
        raise EngineError(step, e) from e


def _display_name(names: Optional[List[str]], container_id: str) -> str:
    if not names:
        return container_id[:12]
    name = names[0]
    return name[1:] if name.startswith("/") else name


def _published_ports(ports: Optional[List[dict]]) -> Tuple[PortEntry, ...]:
    return tuple(
        PortEntry(
            host_ip=port.get("IP", ""),
            host_port=str(port["PublicPort"]),
            container_port=str(port["PrivatePort"]),
            protocol=port.get("Type", "tcp"),
        )
        for port in ports or ()
        if port.get("PublicPort")
    )


class DockerEngine:
    """Container engine backed by a single docker API client.

    :param client: a connected :class:`docker.DockerClient`
    """

    def __init__(self, client: docker.DockerClient):
        self.client = client

    @classmethod
    def from_env(cls) -> "DockerEngine":
        """Connect using ``DOCKER_HOST`` and friends, as the docker CLI does."""
        with engine_step("connect"):
            client = docker.from_env()
        return cls(client)

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def api(self) -> docker.APIClient:
        return self.client.api

    def list_running(self) -> List[ContainerSummary]:
        with engine_step("list"):
            containers = self.api.containers()
        return [
            ContainerSummary(
                id=c["Id"],
                display_name=_display_name(c.get("Names"), c["Id"]),
                published_ports=_published_ports(c.get("Ports")),
            )
            for c in containers
        ]

    def inspect(self, container_id: str) -> InspectResult:
        with engine_step("inspect", container=container_id):
            attrs = self.api.inspect_container(container_id)

        config = attrs.get("Config") or {}
        host_config = attrs.get("HostConfig") or {}
        return InspectResult(
            id=attrs["Id"],
            name=attrs.get("Name", "").lstrip("/"),
            image=attrs["Image"],
            auto_remove=bool(host_config.get("AutoRemove")),
            exposed_ports=frozenset(parse_port_key(key) for key in config.get("ExposedPorts") or {}),
            port_bindings=bindings_from_engine(host_config.get("PortBindings")),
        )

    def stop(self, container_id: str, timeout: int) -> None:
        with engine_step("stop", container=container_id, timeout=timeout):
            self.api.stop(container_id, timeout=timeout)

    def commit(self, container_id: str, image_ref: str) -> str:
        """Snapshot the container's filesystem and return the new image's id."""
        repository, tag = parse_repository_tag(image_ref)
        with engine_step("commit", container=container_id, image=image_ref):
            response = self.api.commit(container_id, repository=repository, tag=tag)
        return response["Id"]

    def remove(self, container_id: str, force: bool = True) -> None:
        with engine_step("remove", container=container_id, force=force):
            self.api.remove_container(container_id, force=force)

    def create(self, image_ref: str, bindings: MergedBindingSet, name: str) -> str:
        with engine_step("create", image=image_ref, name=name):
            host_config = self.api.create_host_config(port_bindings=bindings.engine_port_bindings())
            response = self.api.create_container(
                image_ref,
                name=name,
                ports=bindings.engine_ports(),
                host_config=host_config,
            )
        for warning in response.get("Warnings") or ():
            log.warning("Container engine warning", step="create", warning=warning)
        return response["Id"]

    def start(self, container_id: str) -> None:
        with engine_step("start", container=container_id):
            self.api.start(container_id)
