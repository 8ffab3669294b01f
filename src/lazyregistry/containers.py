"""
Containers: lazy holders of exactly one service instance.

A container builds its instance on the first call to ``get_instance`` and
returns that same instance on every later call. A build that raises leaves the
container unloaded, so the next call attempts the full build again.

Variants:
    - :class:`StaticContainer` wraps an existing instance.
    - :class:`CallbackContainer` calls a zero-argument factory once.
    - :class:`MutableContainer` is loaded explicitly via ``set_instance``.
    - :class:`ConfiguredContainer` builds from a declarative service definition.
"""

import logging
import runpy
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, TYPE_CHECKING, runtime_checkable

from lazyregistry import definition_keys
from lazyregistry.capabilities import ClassReportingContainer, ConfigurationAcceptor
from lazyregistry.errors import (
    BadConfigurationError,
    BadContainerError,
    InvalidServiceInstanceError,
    ServiceFileNotFoundError,
)
from lazyregistry.factory import lookup_service_class

if TYPE_CHECKING:
    from lazyregistry.registry import Registry

__all__ = [
    "Container",
    "AbstractContainer",
    "StaticContainer",
    "CallbackContainer",
    "MutableContainer",
    "ConfiguredContainer",
    "reported_service_class",
    "is_service_object",
]

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, bytes, int, float, complex, bool)


@runtime_checkable
class Container(Protocol):
    def get_instance(self) -> Any: ...

    def is_instance_loaded(self) -> bool: ...


class AbstractContainer(ABC):
    """Memoising base class; subclasses implement :meth:`load_instance`."""

    def __init__(self):
        self._instance: Any = None
        self._loaded = False
        self._lock = threading.RLock()

    @abstractmethod
    def load_instance(self) -> Any:
        """Build and return the service instance."""

    def get_instance(self) -> Any:
        if not self._loaded:
            with self._lock:
                if not self._loaded:
                    self._instance = self.load_instance()
                    self._loaded = True
        return self._instance

    def is_instance_loaded(self) -> bool:
        return self._loaded


class StaticContainer:
    """Holds an instance that was built elsewhere."""

    def __init__(self, instance: Any):
        self._instance = instance

    def get_instance(self) -> Any:
        return self._instance

    def is_instance_loaded(self) -> bool:
        return True


class CallbackContainer(AbstractContainer):
    def __init__(self, callback: Callable[[], Any]):
        super().__init__()
        self._callback = callback

    def load_instance(self) -> Any:
        return self._callback()


class MutableContainer(AbstractContainer):
    """A container whose instance is supplied after creation."""

    def set_instance(self, instance: Any) -> None:
        with self._lock:
            self._instance = instance
            self._loaded = True

    def get_instance(self) -> Any:
        return self._instance

    def load_instance(self) -> Any:
        return self._instance


class ConfiguredContainer(AbstractContainer):
    """
    Container built from a declarative service definition.

    The definition is validated when the container is created, so misconfiguration is
    reported before any service is requested. The instance is built on first use
    from, in priority order, a ``class``, an intermediate ``container`` class, or a
    Python ``file`` whose module-level ``SERVICE`` name holds the instance.
    """

    def __init__(self, service_name: str, configuration: Mapping, registry: "Registry"):
        super().__init__()
        if not isinstance(configuration, Mapping):
            raise BadConfigurationError(
                f"Invalid configuration for service {service_name}: expected a mapping",
                service_name,
                configuration,
            )

        present = [key for key in definition_keys.CONSTRUCTION_KEYS if configuration.get(key)]
        if len(present) != 1:
            keys = "|".join(definition_keys.CONSTRUCTION_KEYS)
            problem = "Missing" if not present else "Ambiguous"
            raise BadConfigurationError(
                f"Can not instantiate service {service_name}. {problem} {keys} key",
                service_name,
                configuration,
            )

        self._service_name = service_name
        self._configuration = dict(configuration)
        self._registry = registry
        self._intermediate: Optional[Any] = None

    @property
    def service_name(self) -> str:
        return self._service_name

    @property
    def configuration(self) -> dict[str, Any]:
        return self._configuration

    @property
    def registry(self) -> "Registry":
        return self._registry

    def is_intermediate_loaded(self) -> bool:
        return self._intermediate is not None

    def load_instance(self) -> Any:
        config = self._configuration
        logger.debug("Loading service %s", self._service_name)

        if config.get(definition_keys.SERVICE_CLASS):
            return self._registry.make_service_instance(
                config[definition_keys.SERVICE_CLASS],
                config.get(definition_keys.SERVICE_ARGUMENTS),
                config.get(definition_keys.SERVICE_CONFIGURATION),
                service_name=self._service_name,
            )
        if config.get(definition_keys.SERVICE_CONTAINER):
            return self._intermediate_container().get_instance()
        return self._load_from_file(config[definition_keys.SERVICE_FILE])

    def get_service_class(self, forced: bool = True) -> Optional[type]:
        """
        Determine the class of the service, building as little as possible.

        Checked in order: the loaded instance, the definition's ``class``, the definition's
        ``type``, the class reported by an intermediate container (which is built,
        but not asked for its instance) and, only if ``forced``, the class of the
        fully built instance.

        Returns:
            The class, or None if it cannot be determined without building the
            instance and ``forced`` is false.
        """
        if self.is_instance_loaded():
            return type(self.get_instance())

        config = self._configuration
        for key in (definition_keys.SERVICE_CLASS, definition_keys.SERVICE_TYPE):
            if config.get(key):
                return lookup_service_class(config[key], self._service_name)

        if config.get(definition_keys.SERVICE_CONTAINER):
            reported = reported_service_class(self._intermediate_container(), forced=False)
            if reported is not None:
                return reported

        if forced:
            return type(self.get_instance())
        return None

    def _intermediate_container(self) -> Any:
        if self._intermediate is None:
            self._intermediate = self._make_intermediate_container(
                self._configuration[definition_keys.SERVICE_CONTAINER]
            )
        return self._intermediate

    def _make_intermediate_container(self, container_class: Any) -> Any:
        try:
            container = self._registry.make_service_instance(
                container_class,
                self._configuration.get(definition_keys.SERVICE_ARGUMENTS),
                self._configuration.get(definition_keys.SERVICE_CONFIGURATION),
                service_name=self._service_name,
            )
        except Exception as exc:
            raise BadContainerError(
                f"Cannot create container {container_class!r} for service "
                f"{self._service_name}: {exc}",
                self._service_name,
                self._configuration,
            ) from exc

        if not isinstance(container, Container):
            raise BadContainerError(
                f"Class {container_class!r} of service {self._service_name} "
                f"is not a container",
                self._service_name,
                self._configuration,
                container,
            )
        return container

    def _load_from_file(self, file_reference: Any) -> Any:
        path = Path(self._registry.map_value(file_reference))
        if not path.is_file():
            raise ServiceFileNotFoundError(
                f"File {path} of service {self._service_name} does not exist",
                self._service_name,
                str(path),
            )

        arguments = self._configuration.get(definition_keys.SERVICE_ARGUMENTS)
        if arguments is not None:
            arguments = self._registry.map_value(arguments, recursive=True)

        namespace = runpy.run_path(
            str(path),
            init_globals={
                definition_keys.FILE_ARGUMENTS_NAME: arguments,
                definition_keys.FILE_REGISTRY_NAME: self._registry,
            },
        )
        instance = namespace.get(definition_keys.FILE_RESULT_NAME)
        if not is_service_object(instance):
            raise InvalidServiceInstanceError(
                f"Execution of file {path} did not provide a service object "
                f"as {definition_keys.FILE_RESULT_NAME}",
                self._service_name,
                instance,
            )

        configuration = self._configuration.get(definition_keys.SERVICE_CONFIGURATION)
        if configuration and isinstance(instance, ConfigurationAcceptor):
            instance.set_configuration(
                self._registry.map_value(configuration, recursive=True)
            )
        return instance


def reported_service_class(container: Any, forced: bool = True) -> Optional[type]:
    """Ask a container for the class of its instance, if it can tell."""
    if isinstance(container, ConfiguredContainer):
        return container.get_service_class(forced)
    if isinstance(container, ClassReportingContainer):
        reported = container.get_service_class()
        return lookup_service_class(reported) if reported else None
    return None


def is_service_object(value: Any) -> bool:
    return value is not None and not isinstance(value, _SCALAR_TYPES)
