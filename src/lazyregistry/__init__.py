"""Lazy service registry.

lazyregistry resolves named services to lazily constructed instances from a
declarative configuration. Constructor arguments and post-construction
configuration may refer to other services (``"$mailer"``) and to parameters
(``"%mail.sender%"``), which are resolved right before a service is built.

Basic Usage:
    >>> from lazyregistry import Registry
    >>>
    >>> registry = Registry({
    ...     "transport": {"class": "myapp.mail.SmtpTransport", "arguments": ["%smtp.host%"]},
    ...     "mailer": {"class": "myapp.mail.Mailer", "arguments": ["$transport"]},
    ... })
    >>> registry.set_parameter("smtp.host", "localhost")
    >>> mailer = registry.get("mailer")

The package consists of:
    - registry: The service registry
    - containers: Lazy holders of a single service instance
    - factory: Construction of instances from classes and arguments
    - resolver: Resolution of ``$service`` and ``%parameter%`` references
    - capabilities: Protocols and decorators services use to opt into behaviour
    - general: The process-wide general registry
    - errors: Framework-specific exceptions and warnings
"""

from lazyregistry.capabilities import UNSET, constructor_arguments, static_construction
from lazyregistry.containers import (
    AbstractContainer,
    CallbackContainer,
    ConfiguredContainer,
    MutableContainer,
    StaticContainer,
)
from lazyregistry.errors import (
    AlreadyRegisteredError,
    BadConfigurationError,
    BadContainerError,
    InvalidServiceInstanceError,
    ServiceConstructionError,
    ServiceError,
    ServiceFileNotFoundError,
    UnknownServiceError,
)
from lazyregistry.general import general_registry, reject_general_registry
from lazyregistry.options import RegistryOptions
from lazyregistry.promise import ServicePromise
from lazyregistry.registry import Registry

__all__ = [
    "UNSET",
    "constructor_arguments",
    "static_construction",
    "AbstractContainer",
    "CallbackContainer",
    "ConfiguredContainer",
    "MutableContainer",
    "StaticContainer",
    "AlreadyRegisteredError",
    "BadConfigurationError",
    "BadContainerError",
    "InvalidServiceInstanceError",
    "ServiceConstructionError",
    "ServiceError",
    "ServiceFileNotFoundError",
    "UnknownServiceError",
    "general_registry",
    "reject_general_registry",
    "RegistryOptions",
    "ServicePromise",
    "Registry",
]
