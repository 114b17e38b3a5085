import pytest

from swim.engine import InspectResult
from swim.errors import EngineError


class FakeEngine:
    """In-memory container engine recording every call it receives."""

    def __init__(self, source=None, containers=(), fail_at=None):
        self.source = source or InspectResult(
            id="a" * 64,
            name="web",
            image="sha256:" + "1" * 64,
            port_bindings={("80", "tcp"): (("127.0.0.1", "8080"),)},
        )
        self.containers = list(containers)
        self.fail_at = fail_at
        self.calls = []
        self.present = {self.source.id}
        self.created = {}
        self.closed = False

    def _record(self, step, *args):
        self.calls.append((step, *args))
        if step == self.fail_at:
            raise EngineError(step, RuntimeError(f"{step} exploded"))

    @property
    def steps(self):
        return [call[0] for call in self.calls]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def list_running(self):
        self._record("list")
        return self.containers

    def inspect(self, container_id):
        self._record("inspect", container_id)
        return self.source

    def stop(self, container_id, timeout):
        self._record("stop", container_id, timeout)

    def commit(self, container_id, image_ref):
        self._record("commit", container_id, image_ref)
        return "sha256:snapshot-of-" + image_ref

    def remove(self, container_id, force=True):
        self._record("remove", container_id, force)
        self.present.discard(container_id)

    def create(self, image_ref, bindings, name):
        self._record("create", image_ref, bindings, name)
        new_id = "b" * 64
        self.created[new_id] = (image_ref, bindings, name)
        return new_id

    def start(self, container_id):
        self._record("start", container_id)


@pytest.fixture
def fake_engine():
    return FakeEngine()
