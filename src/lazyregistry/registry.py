"""The service registry: named, lazily built services and their install lifecycle."""

import logging
import warnings
from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Iterable, Iterator, Optional

from lazyregistry import definition_keys
from lazyregistry.capabilities import RegistryAware
from lazyregistry.classes import ClassReference
from lazyregistry.containers import (
    CallbackContainer,
    ConfiguredContainer,
    Container,
    StaticContainer,
    is_service_object,
    reported_service_class,
)
from lazyregistry.errors import (
    AlreadyRegisteredError,
    InvalidServiceInstanceError,
    ServiceError,
    ServiceReplacedWarning,
    UnknownServiceError,
)
from lazyregistry.factory import InstanceFactory, lookup_service_class
from lazyregistry.options import REGISTERED_FILE_PARAMETER, RegistryOptions
from lazyregistry.parameters import ParameterStore
from lazyregistry.persistence import RegisteredServices
from lazyregistry.promise import ServicePromise
from lazyregistry.resolver import (
    PARAMETERS_HANDLER,
    SERVICES_HANDLER,
    ArgumentHandler,
    ReferenceResolver,
    make_parameter_handler,
    make_service_handler,
)

__all__ = ["Registry"]

logger = logging.getLogger(__name__)


class Registry:
    """
    Registry of named, lazily built services.

    Services are registered from a configuration mapping or with :meth:`set`, and
    built on first :meth:`get`. A service may be given as an instance, a
    zero-argument callable, a container, or a declarative definition mapping (see
    :mod:`lazyregistry.definition_keys`).

    The first time a service is obtained, services offering ``install_service`` are
    installed, and the service name is added to a persisted list so installation is
    not repeated in later processes. The list is written by :meth:`close`.

    Example:
        >>> with Registry({"mailer": {"class": "myapp.Mailer", "arguments": ["$transport"]}}) as registry:
        ...     registry.set("transport", SmtpTransport())
        ...     registry.get("mailer").send("hello")
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        options: Optional[RegistryOptions] = None,
    ):
        options = options or RegistryOptions()

        self._containers: dict[str, Any] = {}
        self._class_cache: dict[str, type] = {}
        self._parameters = ParameterStore()
        self._replace_existing_services = options.replace_existing_services
        self._self_reference_names = list(options.self_reference_names)

        self._resolver = ReferenceResolver()
        self._resolver.add_handler(PARAMETERS_HANDLER, make_parameter_handler(self._parameters))
        self._resolver.add_handler(SERVICES_HANDLER, make_service_handler(self))
        self._factory = InstanceFactory(self, self._resolver)

        registered_file = options.registered_services_file
        if registered_file:
            self._parameters.set(REGISTERED_FILE_PARAMETER, registered_file)
        self._registered = RegisteredServices.load(registered_file)

        initialize_on_load = []
        for service_name, service in (config or {}).items():
            if isinstance(service, Mapping):
                service = ConfiguredContainer(service_name, service, self)
                if any(service.configuration.get(key) for key in definition_keys.SERVICE_INIT_ALIASES):
                    initialize_on_load.append(service_name)
            self.set(service_name, service)

        for service_name in initialize_on_load:
            self.get(service_name)

    def __enter__(self) -> "Registry":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Persist the registered services list if it changed."""
        self._registered.flush(self._parameters.get(REGISTERED_FILE_PARAMETER))

    # Service access

    def get(self, service_name: str) -> Any:
        """
        Return the instance of a service, building it on first use.

        Raises:
            UnknownServiceError: If no service of that name exists.
        """
        container = self._containers.get(service_name)
        if container is not None:
            instance = container.get_instance()
            if container.is_instance_loaded() and self._registered.add(service_name):
                logger.debug("Registered service %s", service_name)
                if isinstance(instance, RegistryAware):
                    instance.install_service(self)
            return instance

        if service_name in self._self_reference_names:
            return self

        raise UnknownServiceError(f"Service {service_name} is not registered", service_name)

    def find(self, service_name: str) -> Optional[Any]:
        """Like :meth:`get`, but return None for unknown services."""
        if not self.service_exists(service_name):
            return None
        return self.get(service_name)

    def set(self, service_name: str, service: Any) -> None:
        """
        Register a service.

        Args:
            service_name: The name to register under.
            service: A container, a definition mapping, a zero-argument callable, or an
                object to use as the instance directly.

        Raises:
            AlreadyRegisteredError: If the name is taken and replacing existing
                services is disabled.
            BadConfigurationError: If a definition mapping is invalid.
            InvalidServiceInstanceError: If ``service`` is None or a scalar.
        """
        if not service_name:
            raise ServiceError("Service name must not be empty")

        exists = self.service_exists(service_name)
        if exists and not self._replace_existing_services:
            raise AlreadyRegisteredError(
                f"Service {service_name} is already registered", service_name
            )

        container = self._make_container(service_name, service)
        if exists:
            warnings.warn(
                f"Service {service_name} is already registered",
                ServiceReplacedWarning,
                stacklevel=2,
            )
            logger.debug("Replacing service %s", service_name)

        self._containers[service_name] = container
        self._class_cache.pop(service_name, None)

    def remove(self, service_name: str) -> None:
        """Remove a service, or a self-reference name."""
        if service_name in self._self_reference_names:
            self._self_reference_names.remove(service_name)
        elif service_name in self._containers:
            del self._containers[service_name]
            self._class_cache.pop(service_name, None)

    def service_exists(self, service_name: str) -> bool:
        return service_name in self._containers or service_name in self._self_reference_names

    def is_service_loaded(self, service_name: str) -> bool:
        if service_name in self._containers:
            return self._containers[service_name].is_instance_loaded()
        return service_name in self._self_reference_names

    def available_services(self) -> list[str]:
        return list(self._containers)

    @property
    def self_reference_names(self) -> list[str]:
        return list(self._self_reference_names)

    @self_reference_names.setter
    def self_reference_names(self, names: Iterable[str]) -> None:
        self._self_reference_names = list(names)

    @property
    def replace_existing_services(self) -> bool:
        return self._replace_existing_services

    @replace_existing_services.setter
    def replace_existing_services(self, replace: bool) -> None:
        self._replace_existing_services = replace

    # Parameters

    @property
    def parameters(self) -> ParameterStore:
        return self._parameters

    def set_parameter(self, name: str, value: Any) -> None:
        self._parameters.set(name, value)

    def get_parameter(self, name: str, default: Any = None) -> Any:
        return self._parameters.get(name, default)

    def has_parameter(self, name: str) -> bool:
        return name in self._parameters

    def unset_parameter(self, name: str) -> None:
        self._parameters.unset(name)

    # Argument resolution

    def add_argument_handler(self, name: str, handler: ArgumentHandler) -> None:
        """Add a handler to the argument pipeline, after the ones already present.

        ``PARAMETERS`` and ``SERVICES`` handlers are installed by default.
        """
        self._resolver.add_handler(name, handler)

    def get_argument_handler(self, name: str) -> Optional[ArgumentHandler]:
        return self._resolver.get_handler(name)

    def remove_argument_handler(self, name: str) -> None:
        self._resolver.remove_handler(name)

    def order_argument_handlers(self, key: Callable[[str], Any], reverse: bool = False) -> None:
        self._resolver.order_handlers(key, reverse)

    def map_value(self, value: Any, recursive: bool = False) -> Any:
        """Resolve parameters and service references in a value or collection."""
        return self._resolver.resolve(value, recursive)

    def map_array(self, values: Iterable[Any], recursive: bool = False) -> Any:
        if not isinstance(values, (Mapping, list, tuple)):
            values = list(values)
        return self._resolver.resolve(values, recursive)

    def make_service_instance(
        self,
        class_reference: ClassReference,
        arguments: Any = None,
        configuration: Any = None,
        service_name: Optional[str] = None,
    ) -> Any:
        return self._factory.build(class_reference, arguments, configuration, service_name)

    # Class detection

    def get_service_class(self, service_name: str, forced: bool = True) -> Optional[type]:
        """
        Return the class of a service, building it only if unavoidable.

        Args:
            service_name: The service to inspect.
            forced: Whether the service may be built when its class cannot be
                determined otherwise.

        Returns:
            The class, or None if the service does not exist or its class is unknown
            without building it and ``forced`` is false.
        """
        cached = self._class_cache.get(service_name)
        if cached is not None:
            return cached

        if service_name in self._containers:
            container = self._containers[service_name]
            if container.is_instance_loaded():
                service_class = _instance_class(container)
            else:
                service_class = reported_service_class(container, forced)
                if service_class is None and forced:
                    service_class = _instance_class(container)
        elif service_name in self._self_reference_names:
            service_class = type(self)
        else:
            return None

        if service_class is not None:
            self._class_cache[service_name] = service_class
        return service_class

    def yield_services(
        self,
        service_names: Iterable[str],
        classes: Iterable[ClassReference] = (),
        include_subclasses: bool = True,
        force_detection: bool = True,
    ) -> Iterator[tuple[str, ServicePromise]]:
        """
        Yield promises for services matching any of the names or classes.

        Class matching uses :meth:`get_service_class`, so ``force_detection``
        decides whether services may be built just to learn their class.
        """
        service_names = list(service_names)
        classes = [lookup_service_class(cls) for cls in classes]

        if classes:
            if any(isinstance(self, cls) for cls in classes):
                yield self._primary_self_reference_name(), ServicePromise(lambda: self)
        else:
            for service_name in service_names:
                if service_name in self._self_reference_names:
                    yield service_name, ServicePromise(lambda: self)
                    break

        for service_name in list(self._containers):
            if service_name in service_names or (classes and _class_matches(
                self.get_service_class(service_name, force_detection),
                classes,
                include_subclasses,
            )):
                yield service_name, ServicePromise(partial(self.get, service_name))

    def get_services(
        self,
        service_names: Iterable[str] = (),
        classes: Iterable[ClassReference] = (),
        include_subclasses: bool = True,
        force_detection: bool = True,
        return_promises: bool = True,
    ) -> dict[str, Any]:
        """Collect :meth:`yield_services` into a dict of promises, or of instances."""
        return {
            service_name: promise if return_promises else promise.get_instance()
            for service_name, promise in self.yield_services(
                service_names, classes, include_subclasses, force_detection
            )
        }

    # Installation lifecycle

    @property
    def registered_services(self) -> list[str]:
        return list(self._registered)

    def is_service_registered(self, service_name: str) -> bool:
        return service_name in self._registered

    def unregister_service(self, service_name: str) -> None:
        """
        Uninstall a registered service.

        The service's ``uninstall_service`` hook is called and the name is removed
        from the persisted list, so the next :meth:`get` installs it again.
        Unregistering a service that is not registered does nothing.
        """
        if service_name not in self._registered or not self.service_exists(service_name):
            return

        instance = self.get(service_name)
        if isinstance(instance, RegistryAware):
            instance.uninstall_service(self)
        self._registered.discard(service_name)
        logger.debug("Unregistered service %s", service_name)

    def _make_container(self, service_name: str, service: Any) -> Any:
        if not isinstance(service, type) and isinstance(service, Container):
            return service
        if isinstance(service, Mapping):
            return ConfiguredContainer(service_name, service, self)
        if callable(service):
            return CallbackContainer(service)
        if not is_service_object(service):
            raise InvalidServiceInstanceError(
                f"Service {service_name} must be an object, got {service!r}",
                service_name,
                service,
            )
        return StaticContainer(service)

    def _primary_self_reference_name(self) -> str:
        if self._self_reference_names:
            return self._self_reference_names[0]
        return "serviceManager"


def _instance_class(container: Any) -> Optional[type]:
    instance = container.get_instance()
    return None if instance is None else type(instance)


def _class_matches(
    service_class: Optional[type], classes: list[type], include_subclasses: bool
) -> bool:
    if service_class is None:
        return False
    if service_class in classes:
        return True
    return include_subclasses and any(issubclass(service_class, cls) for cls in classes)
