"""Defaults and the immutable settings a migration runs with."""
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from swim.ports import PortSpec, parse_port_specs

DEFAULT_STOP_TIMEOUT = 10
DEFAULT_LOG_LEVEL = "WARNING"
#: Environment variable overriding the default log level.
LOG_LEVEL_ENV = "SWIM_LOG_LEVEL"


def default_log_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()


@dataclass(frozen=True)
class MigrationConfig:
    """Everything the operator asked for, besides which container to migrate.

    :param ports: new port mappings, already parsed
    :param image_name: name for the snapshot image, generated when None
    :param container_name: name for the new container, generated when None
    :param stop_timeout: seconds the engine waits before killing the source
    :param force_overwrite: drop the source's bindings instead of merging
    """
    ports: Tuple[PortSpec, ...]
    image_name: Optional[str] = None
    container_name: Optional[str] = None
    stop_timeout: int = DEFAULT_STOP_TIMEOUT
    force_overwrite: bool = False

    @classmethod
    def from_strings(cls, raw_ports: Sequence[str], **kwargs) -> "MigrationConfig":
        """Build a config from raw ``hostIP:hostPort:containerPort`` strings.

        :raises InputError: if any mapping is malformed.
        """
        return cls(ports=parse_port_specs(raw_ports), **kwargs)
