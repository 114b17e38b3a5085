"""Port mappings: parsing operator specs and merging them with existing bindings.

Docker keeps a container's bindings in two places, the exposed ports of its
config and the port bindings of its host config, both keyed by
``<containerPort>/<protocol>``. The container-side key is what old and new
bindings are joined on.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from swim.errors import InputError

PROTOCOLS = ("tcp", "udp")
DEFAULT_PROTOCOL = "tcp"

#: (containerPort, protocol)
PortKey = Tuple[str, str]
#: (hostIP, hostPort)
HostBinding = Tuple[str, str]


@dataclass(frozen=True)
class PortEntry:
    """One binding edge between a host socket and a container socket."""
    host_ip: str
    host_port: str
    container_port: str
    protocol: str = DEFAULT_PROTOCOL

    def __str__(self):
        host = f"{self.host_ip}:{self.host_port}" if self.host_ip else self.host_port
        return f"{host}->{self.container_port}/{self.protocol}"


@dataclass(frozen=True)
class PortSpec:
    """A port mapping requested by the operator."""
    host_ip: str
    host_port: str
    container_port: str
    protocol: str = DEFAULT_PROTOCOL

    @property
    def key(self) -> PortKey:
        return self.container_port, self.protocol

    @property
    def binding(self) -> HostBinding:
        return self.host_ip, self.host_port


def _check_port(value: str, what: str, raw: str) -> str:
    if not value.isdigit() or not 0 < int(value) < 65536:
        raise InputError(f"invalid {what} {value!r} in port mapping {raw!r}")
    return str(int(value))


def parse_port_spec(raw: str) -> PortSpec:
    """Parse ``hostIP:hostPort:containerPort[/protocol]`` into a PortSpec.

    The host IP may be empty (bind on all interfaces), the protocol defaults
    to tcp. Any other number of colon separated fields is rejected.

    :raises InputError: if the mapping is malformed.
    """
    fields = raw.strip().split(":")
    if len(fields) != 3:
        raise InputError(
            f"invalid port mapping {raw!r}: expected hostIP:hostPort:containerPort, got {len(fields)} field(s)"
        )
    host_ip, host_port, container = fields

    container_port, _, protocol = container.partition("/")
    protocol = (protocol or DEFAULT_PROTOCOL).lower()
    if protocol not in PROTOCOLS:
        raise InputError(f"invalid protocol {protocol!r} in port mapping {raw!r}")

    return PortSpec(
        host_ip=host_ip,
        host_port=_check_port(host_port, "host port", raw),
        container_port=_check_port(container_port, "container port", raw),
        protocol=protocol,
    )


def parse_port_specs(raw_specs: Iterable[str]) -> Tuple[PortSpec, ...]:
    """Parse every mapping, failing on the first malformed one."""
    return tuple(parse_port_spec(raw) for raw in raw_specs)


def parse_port_key(key: str) -> PortKey:
    """Split an engine key like ``80/tcp`` into ``("80", "tcp")``."""
    port, _, protocol = key.partition("/")
    return port, protocol or DEFAULT_PROTOCOL


@dataclass(frozen=True)
class MergedBindingSet:
    """Exposed ports plus host bindings of a container to be created."""
    bindings: Mapping[PortKey, Tuple[HostBinding, ...]] = field(default_factory=dict)

    @property
    def exposed_ports(self) -> FrozenSet[PortKey]:
        return frozenset(self.bindings)

    def entries(self) -> List[PortEntry]:
        return [
            PortEntry(host_ip, host_port, port, protocol)
            for (port, protocol), hosts in self.bindings.items()
            for host_ip, host_port in hosts
        ]

    def engine_ports(self) -> List[Tuple[int, str]]:
        """Exposed ports in the form docker's ``create_container`` expects."""
        return sorted((int(port), protocol) for port, protocol in self.exposed_ports)

    def engine_port_bindings(self) -> Dict[str, List[HostBinding]]:
        """Bindings keyed by ``port/protocol`` for docker's host config."""
        return {f"{port}/{protocol}": list(hosts) for (port, protocol), hosts in self.bindings.items()}


def bindings_from_engine(port_bindings: Optional[Mapping[str, Optional[Sequence[Mapping]]]]) -> Dict[PortKey, Tuple[HostBinding, ...]]:
    """Convert a ``HostConfig.PortBindings`` mapping into keyed host bindings.

    Docker reports ``null`` both for the whole mapping and for ports that are
    exposed but unbound; both come out empty.
    """
    result = {}
    for key, hosts in (port_bindings or {}).items():
        result[parse_port_key(key)] = tuple(
            (host.get("HostIp") or "", host.get("HostPort") or "") for host in hosts or ()
        )
    return {key: hosts for key, hosts in result.items() if hosts}


def merge_bindings(old: Mapping[PortKey, Sequence[HostBinding]], new: Sequence[PortSpec],
                   force_overwrite: bool = False) -> MergedBindingSet:
    """Combine a container's current bindings with the operator's new specs.

    Additive mode keeps every old key that no new spec targets. A key named
    by the new specs takes exactly the new bindings for it, in the order they
    were given. With ``force_overwrite`` the old bindings are ignored.
    """
    requested = {}
    for spec in new:
        requested.setdefault(spec.key, []).append(spec.binding)

    merged = {} if force_overwrite else {
        key: tuple(hosts) for key, hosts in old.items() if key not in requested
    }
    for key, hosts in requested.items():
        merged[key] = tuple(hosts)
    return MergedBindingSet(bindings=merged)
