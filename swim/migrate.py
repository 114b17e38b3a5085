"""Recreate a running container under new port bindings.

A container's published ports cannot be changed in place. The migration
snapshots the container into an image, removes it, and starts a replacement
from the snapshot with the merged bindings::

    inspect -> stop -> commit -> remove -> create -> start

The snapshot is always committed before the source is removed. Nothing is
rolled back: if create or start fails, the source is already gone and the
snapshot image is what is left to recover from.
"""
from dataclasses import dataclass
from typing import List

import structlog

from swim.config import MigrationConfig
from swim.errors import EngineError
from swim.engine import InspectResult
from swim.naming import placeholder_names
from swim.ports import MergedBindingSet, PortEntry, merge_bindings

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MigrationPlan:
    source_id: str
    snapshot_ref: str
    target_name: str
    bindings: MergedBindingSet
    force_overwrite: bool = False


@dataclass(frozen=True)
class MigrationResult:
    container_id: str
    container_name: str
    image_ref: str
    bindings: MergedBindingSet

    @property
    def ports(self) -> List[PortEntry]:
        return self.bindings.entries()


class Migrator:
    """Runs migrations against a container engine.

    :param engine: anything offering ``inspect``, ``stop``, ``commit``,
        ``remove``, ``create`` and ``start`` like :class:`swim.engine.DockerEngine`
    :param config: what the new container should look like
    """

    def __init__(self, engine, config: MigrationConfig):
        self.engine = engine
        self.config = config

    def capture(self, source: InspectResult, image_name: str) -> str:
        """Return an image reference holding the source container's state.

        Containers started with ``--rm`` vanish as soon as they stop, so they
        cannot be committed. Their original image is reused instead and any
        changes made inside them are lost.
        """
        if source.auto_remove:
            log.warning("Container is auto-removed on stop, reusing its image without a snapshot",
                        container=source.id, image=source.image)
            return source.image

        self.engine.stop(source.id, self.config.stop_timeout)
        log.info("Container stopped", container=source.id, timeout=self.config.stop_timeout)
        snapshot = self.engine.commit(source.id, image_name)
        log.info("Container committed", container=source.id, image=image_name, image_id=snapshot)
        return snapshot

    def plan(self, source: InspectResult, snapshot_ref: str, target_name: str) -> MigrationPlan:
        bindings = merge_bindings(source.port_bindings, self.config.ports, self.config.force_overwrite)
        log.debug("Port bindings merged", old=source.port_bindings, new=bindings.bindings,
                  force_overwrite=self.config.force_overwrite)
        return MigrationPlan(
            source_id=source.id,
            snapshot_ref=snapshot_ref,
            target_name=target_name,
            bindings=bindings,
            force_overwrite=self.config.force_overwrite,
        )

    def run(self, container_id: str) -> MigrationResult:
        """Migrate ``container_id`` and return the replacement container.

        :raises EngineError: naming the first step that failed.
        """
        image_name, container_name = placeholder_names(self.config.image_name, self.config.container_name)
        log.info("Migrating container", container=container_id, image=image_name, name=container_name)

        source = self.engine.inspect(container_id)
        snapshot = self.capture(source, image_name)
        plan = self.plan(source, snapshot, container_name)

        self.engine.remove(plan.source_id, force=True)
        log.info("Source container removed", container=plan.source_id)

        try:
            new_id = self.engine.create(plan.snapshot_ref, plan.bindings, plan.target_name)
            self.engine.start(new_id)
        except EngineError as e:
            log.warning("Replacement failed after the source container was removed",
                        step=e.step, source=plan.source_id, snapshot=plan.snapshot_ref)
            raise

        log.info("Container started", container=new_id, name=plan.target_name)
        return MigrationResult(
            container_id=new_id,
            container_name=plan.target_name,
            image_ref=plan.snapshot_ref,
            bindings=plan.bindings,
        )
