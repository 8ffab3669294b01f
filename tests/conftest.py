import pytest

from lazyregistry.options import RegistryOptions
from lazyregistry.registry import Registry
from mock_services import MockAwareContainer, MockServiceContainer


@pytest.fixture
def registered_file(tmp_path):
    return tmp_path / "registered.json"


@pytest.fixture
def options(registered_file) -> RegistryOptions:
    return RegistryOptions(registered_services_file=registered_file)


@pytest.fixture
def registry(options) -> Registry:
    return Registry(options=options)


@pytest.fixture(autouse=True)
def reset_container_flags():
    MockServiceContainer.did_load = False
    MockAwareContainer.did_load = False
