import json
import logging

import pytest

from lazyregistry.containers import MutableContainer
from lazyregistry.options import REGISTERED_FILE_PARAMETER, RegistryOptions
from lazyregistry.registry import Registry
from mock_services import MockRegisterService, MockService


@pytest.fixture
def service() -> MockRegisterService:
    return MockRegisterService()


def test_service_is_installed_on_first_get(registry, service):
    registry.set("registerService", service)

    assert not registry.is_service_registered("registerService")

    registry.get("registerService")
    registry.get("registerService")

    assert service.installs == 1
    assert registry.is_service_registered("registerService")
    assert registry.registered_services == ["registerService"]


def test_services_without_hooks_are_registered_too(registry):
    registry.set("plain", MockService())

    registry.get("plain")

    assert registry.is_service_registered("plain")


def test_self_reference_is_not_registered(registry):
    registry.get("serviceManager")

    assert registry.registered_services == []


def test_empty_mutable_container_is_installed_once_filled(registry, service):
    container = MutableContainer()
    registry.set("mutable", container)

    assert registry.get("mutable") is None
    assert not registry.is_service_registered("mutable")

    container.set_instance(service)
    registry.get("mutable")

    assert service.installs == 1
    assert registry.is_service_registered("mutable")


def test_unregister_calls_uninstall_once(registry, service):
    registry.set("registerService", service)
    registry.get("registerService")

    registry.unregister_service("registerService")
    registry.unregister_service("registerService")

    assert service.uninstalls == 1
    assert not registry.is_service_registered("registerService")


def test_unregister_unknown_or_unregistered_does_nothing(registry, service):
    registry.set("registerService", service)

    registry.unregister_service("registerService")
    registry.unregister_service("nonexisting")

    assert service.uninstalls == 0
    assert service.installs == 0


def test_get_after_unregister_installs_again(registry, service):
    registry.set("registerService", service)
    registry.get("registerService")
    registry.unregister_service("registerService")

    registry.get("registerService")

    assert service.installs == 2
    assert registry.is_service_registered("registerService")


def test_registered_services_survive_restart(options, registered_file):
    first = MockRegisterService()
    with Registry({"registerService": first}, options) as registry:
        registry.get("registerService")

    assert json.loads(registered_file.read_text()) == ["registerService"]

    second = MockRegisterService()
    registry = Registry({"registerService": second}, options)
    registry.get("registerService")

    assert second.installs == 0
    assert registry.is_service_registered("registerService")


def test_unregistered_services_are_removed_from_file(options, registered_file, service):
    registered_file.write_text(json.dumps(["registerService", "other"]))
    registry = Registry({"registerService": service}, options)

    registry.unregister_service("registerService")
    registry.close()

    assert service.uninstalls == 1
    assert json.loads(registered_file.read_text()) == ["other"]


def test_unchanged_list_is_not_written(options, registered_file):
    registry = Registry({"plain": MockService()}, options)

    registry.close()

    assert not registered_file.exists()


def test_malformed_file_is_treated_as_empty(options, registered_file, caplog):
    registered_file.write_text('{"not": "a list"}')

    with caplog.at_level(logging.WARNING, logger="lazyregistry.persistence"):
        registry = Registry(options=options)

    assert registry.registered_services == []
    assert "malformed" in caplog.text


def test_unreadable_file_is_treated_as_empty(options, registered_file):
    registered_file.write_text("[not json")

    assert Registry(options=options).registered_services == []


def test_unwritable_location_is_tolerated(tmp_path, caplog):
    target = tmp_path / "missing" / "registered.json"
    registry = Registry({"plain": MockService()}, RegistryOptions(registered_services_file=target))
    registry.get("plain")

    with caplog.at_level(logging.WARNING, logger="lazyregistry.persistence"):
        registry.close()

    assert not target.exists()
    assert "Could not write" in caplog.text


def test_registered_file_can_be_changed_by_parameter(registry, tmp_path):
    other = tmp_path / "elsewhere.json"
    registry.set("plain", MockService())
    registry.set_parameter(REGISTERED_FILE_PARAMETER, str(other))
    registry.get("plain")

    registry.close()

    assert json.loads(other.read_text()) == ["plain"]


def test_persistence_can_be_disabled(tmp_path):
    registry = Registry({"plain": MockService()}, RegistryOptions(registered_services_file=None))
    registry.get("plain")

    registry.close()

    assert registry.is_service_registered("plain")
    assert list(tmp_path.iterdir()) == []
