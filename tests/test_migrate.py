import pytest

from swim.config import MigrationConfig
from swim.engine import InspectResult
from swim.errors import EngineError, InputError
from swim.migrate import Migrator

from tests.conftest import FakeEngine


def migrate(engine, *ports, **kwargs):
    kwargs.setdefault("image_name", "snap")
    kwargs.setdefault("container_name", "replacement")
    config = MigrationConfig.from_strings(ports, **kwargs)
    return Migrator(engine, config).run(engine.source.id)


def test_steps_run_in_order(fake_engine):
    migrate(fake_engine, "0.0.0.0:9090:80")
    assert fake_engine.steps == ["inspect", "stop", "commit", "remove", "create", "start"]


def test_stop_uses_configured_timeout(fake_engine):
    migrate(fake_engine, "0.0.0.0:9090:80", stop_timeout=3)
    assert ("stop", fake_engine.source.id, 3) in fake_engine.calls


def test_additive_migration_replaces_shared_key(fake_engine):
    result = migrate(fake_engine, "0.0.0.0:9090:80")
    image_ref, bindings, name = fake_engine.created[result.container_id]
    assert image_ref == "sha256:snapshot-of-snap"
    assert name == "replacement"
    assert bindings.bindings == {("80", "tcp"): (("0.0.0.0", "9090"),)}
    assert result.image_ref == image_ref


def test_overwrite_migration_drops_old_ports(fake_engine):
    result = migrate(fake_engine, "0.0.0.0:9090:443", force_overwrite=True)
    assert result.bindings.bindings == {("443", "tcp"): (("0.0.0.0", "9090"),)}
    assert result.bindings.exposed_ports == {("443", "tcp")}


def test_source_is_removed_forcefully(fake_engine):
    migrate(fake_engine, "0.0.0.0:9090:80")
    assert ("remove", fake_engine.source.id, True) in fake_engine.calls
    assert fake_engine.source.id not in fake_engine.present


def test_auto_remove_container_reuses_its_image():
    source = InspectResult(id="c" * 64, name="scratch", image="sha256:" + "9" * 64, auto_remove=True)
    engine = FakeEngine(source=source)
    result = migrate(engine, "0.0.0.0:9090:80")
    assert "stop" not in engine.steps
    assert "commit" not in engine.steps
    assert result.image_ref == source.image


def test_malformed_ports_never_reach_the_engine(fake_engine):
    with pytest.raises(InputError):
        migrate(fake_engine, "9090:80")
    assert fake_engine.calls == []


@pytest.mark.parametrize("step", ["inspect", "stop", "commit", "remove", "create", "start"])
def test_failure_aborts_remaining_steps(step):
    engine = FakeEngine(fail_at=step)
    with pytest.raises(EngineError) as excinfo:
        migrate(engine, "0.0.0.0:9090:80")
    assert excinfo.value.step == step
    assert str(excinfo.value).startswith(f"{step} failed:")
    assert engine.steps[-1] == step


def test_commit_failure_keeps_source(fake_engine):
    fake_engine.fail_at = "commit"
    with pytest.raises(EngineError):
        migrate(fake_engine, "0.0.0.0:9090:80")
    assert fake_engine.source.id in fake_engine.present


def test_create_failure_leaves_source_removed(fake_engine):
    fake_engine.fail_at = "create"
    with pytest.raises(EngineError, match="create failed"):
        migrate(fake_engine, "0.0.0.0:9090:80")
    assert fake_engine.source.id not in fake_engine.present
    assert "start" not in fake_engine.steps


def test_missing_names_are_generated(fake_engine, monkeypatch):
    names = iter(["brave-red-fox", "brave-red-fox", "quiet-blue-owl"])
    monkeypatch.setattr("swim.naming.random_name", lambda: next(names))
    result = migrate(fake_engine, "0.0.0.0:9090:80", image_name=None, container_name=None)
    assert ("commit", fake_engine.source.id, "brave-red-fox") in fake_engine.calls
    assert result.container_name == "quiet-blue-owl"
