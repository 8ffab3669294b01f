import threading
import time

import pytest

from lazyregistry.classes import class_path
from lazyregistry.containers import (
    CallbackContainer,
    ConfiguredContainer,
    MutableContainer,
    StaticContainer,
)
from lazyregistry.errors import (
    BadConfigurationError,
    BadContainerError,
    InvalidServiceInstanceError,
    ServiceConstructionError,
    ServiceFileNotFoundError,
)
from mock_services import (
    ArgumentedContainer,
    MockAwareContainer,
    MockConfigService,
    MockService,
    MockServiceContainer,
)


def test_static_container_is_always_loaded():
    instance = object()
    container = StaticContainer(instance)

    assert container.is_instance_loaded()
    assert container.get_instance() is instance


def test_callback_container_calls_once():
    calls = []
    container = CallbackContainer(lambda: calls.append(1) or MockService())

    assert not container.is_instance_loaded()
    first = container.get_instance()

    assert container.is_instance_loaded()
    assert container.get_instance() is first
    assert calls == [1]


def test_failed_build_is_retried():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("first attempt fails")
        return MockService()

    container = CallbackContainer(flaky)

    with pytest.raises(RuntimeError):
        container.get_instance()
    assert not container.is_instance_loaded()

    assert isinstance(container.get_instance(), MockService)
    assert len(attempts) == 2


def test_concurrent_first_access_builds_once():
    calls = []

    def slow():
        calls.append(1)
        time.sleep(0.05)
        return MockService()

    container = CallbackContainer(slow)
    results = []
    threads = [
        threading.Thread(target=lambda: results.append(container.get_instance()))
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert all(result is results[0] for result in results)


def test_mutable_container():
    instance = object()
    container = MutableContainer()

    assert not container.is_instance_loaded()
    assert container.get_instance() is None
    assert not container.is_instance_loaded()

    container.set_instance(instance)

    assert container.is_instance_loaded()
    assert container.get_instance() is instance


def test_missing_construction_key_fails_at_creation(registry):
    config = {"irrelevant": MockService}

    with pytest.raises(BadConfigurationError, match=r"Missing class\|container\|file key") as info:
        ConfiguredContainer("myService", config, registry)

    assert info.value.configuration == config
    assert info.value.service_name == "myService"


def test_ambiguous_construction_keys_fail(registry):
    with pytest.raises(BadConfigurationError, match="Ambiguous"):
        ConfiguredContainer(
            "myService", {"class": MockService, "container": MockServiceContainer}, registry
        )


def test_non_mapping_configuration_fails(registry):
    with pytest.raises(BadConfigurationError) as info:
        ConfiguredContainer("myService", MockService, registry)

    assert info.value.configuration is MockService


def test_configured_by_class(registry):
    container = ConfiguredContainer("myService", {"class": class_path(MockService)}, registry)

    assert not container.is_instance_loaded()
    assert isinstance(container.get_instance(), MockService)


def test_configured_by_container(registry):
    container = ConfiguredContainer("myService", {"container": MockServiceContainer}, registry)

    assert isinstance(container.get_instance(), MockService)
    assert container.is_intermediate_loaded()


def test_container_receives_arguments(registry):
    registry.set_parameter("suffix", "b")
    container = ConfiguredContainer(
        "myService",
        {"container": ArgumentedContainer, "arguments": ["a", "%suffix%"]},
        registry,
    )

    assert container.get_instance().arguments == ["a", "b"]


def test_non_container_class_is_rejected(registry):
    container = ConfiguredContainer("myService", {"container": MockService}, registry)

    with pytest.raises(BadContainerError, match="not a container") as info:
        container.get_instance()

    assert isinstance(info.value.container, MockService)
    assert info.value.service_name == "myService"


def test_unbuildable_container_is_reported(registry):
    container = ConfiguredContainer(
        "myService", {"container": "no_such_module.Container"}, registry
    )

    with pytest.raises(BadContainerError) as info:
        container.get_instance()

    assert isinstance(info.value.__cause__, ServiceConstructionError)


def test_configured_by_file(registry, tmp_path):
    script = tmp_path / "service.py"
    script.write_text(
        "class FileService:\n"
        "    def __init__(self, arguments, registry):\n"
        "        self.arguments = arguments\n"
        "        self.registry = registry\n"
        "        self.config = None\n"
        "    def set_configuration(self, config):\n"
        "        self.config = config\n"
        "SERVICE = FileService(ARGUMENTS, REGISTRY)\n"
    )
    registry.set_parameter("root", str(tmp_path))
    registry.set_parameter("level", 3)
    container = ConfiguredContainer(
        "fileService",
        {
            "file": "%root%/service.py",
            "arguments": ["%level%"],
            "configuration": {"manager": "$serviceManager"},
        },
        registry,
    )

    service = container.get_instance()

    assert service.arguments == [3]
    assert service.registry is registry
    assert service.config == {"manager": registry}


def test_missing_file_is_reported_on_first_use(registry, tmp_path):
    missing = tmp_path / "missing.py"
    container = ConfiguredContainer("fileService", {"file": str(missing)}, registry)

    with pytest.raises(ServiceFileNotFoundError) as info:
        container.get_instance()

    assert info.value.filename == str(missing)
    assert info.value.service_name == "fileService"


def test_file_without_service_object_is_rejected(registry, tmp_path):
    script = tmp_path / "service.py"
    script.write_text("SERVICE = 42\n")
    container = ConfiguredContainer("fileService", {"file": str(script)}, registry)

    with pytest.raises(InvalidServiceInstanceError) as info:
        container.get_instance()

    assert info.value.service_object == 42


def test_class_detection_loads_plain_container_instance(registry):
    container = ConfiguredContainer("myService", {"container": MockServiceContainer}, registry)

    assert container.get_service_class() is MockService
    assert MockServiceContainer.did_load


def test_class_detection_asks_reporting_container(registry):
    container = ConfiguredContainer("myService", {"container": MockAwareContainer}, registry)

    assert container.get_service_class() is MockConfigService
    assert container.is_intermediate_loaded()
    assert not MockAwareContainer.did_load
    assert not container.is_instance_loaded()


def test_class_detection_prefers_declared_type(registry):
    container = ConfiguredContainer(
        "myService",
        {"container": MockServiceContainer, "type": class_path(MockService)},
        registry,
    )

    assert container.get_service_class() is MockService
    assert not MockServiceContainer.did_load
    assert not container.is_intermediate_loaded()


def test_unforced_class_detection_does_not_build(registry):
    container = ConfiguredContainer("myService", {"container": MockServiceContainer}, registry)

    assert container.get_service_class(forced=False) is None
    assert not MockServiceContainer.did_load
    assert not container.is_instance_loaded()
