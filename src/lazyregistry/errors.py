"""Exceptions and warnings raised while registering and resolving services."""

from typing import Any, Optional

__all__ = [
    "ServiceError",
    "BadConfigurationError",
    "BadContainerError",
    "UnknownServiceError",
    "AlreadyRegisteredError",
    "InvalidServiceInstanceError",
    "ServiceFileNotFoundError",
    "ServiceConstructionError",
    "ServiceWarning",
    "UnresolvedParameterWarning",
    "ServiceReplacedWarning",
]


class ServiceError(Exception):
    """Base class for registry failures.

    Attributes:
        service_name: The service the failure relates to, if known.
    """

    def __init__(self, message: str, service_name: Optional[str] = None):
        super().__init__(message)
        self.service_name = service_name


class BadConfigurationError(ServiceError):
    """Raised when a service definition cannot describe a buildable service."""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        configuration: Any = None,
    ):
        super().__init__(message, service_name)
        self.configuration = configuration


class BadContainerError(BadConfigurationError):
    """Raised when an intermediate container fails to build or is not a container."""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        configuration: Any = None,
        container: Any = None,
    ):
        super().__init__(message, service_name, configuration)
        self.container = container


class UnknownServiceError(ServiceError):
    """Raised when a requested service name is not registered."""

    pass


class AlreadyRegisteredError(ServiceError):
    """Raised when a service name is registered twice."""

    pass


class InvalidServiceInstanceError(ServiceError):
    """Raised when a value cannot serve as a service instance."""

    def __init__(
        self,
        message: str,
        service_name: Optional[str] = None,
        service_object: Any = None,
    ):
        super().__init__(message, service_name)
        self.service_object = service_object


class ServiceFileNotFoundError(ServiceError):
    """Raised when a file-based service points at a missing file."""

    def __init__(self, message: str, service_name: Optional[str], filename: str):
        super().__init__(message, service_name)
        self.filename = filename


class ServiceConstructionError(ServiceError):
    """Raised when a service class cannot be located or called with its arguments."""

    pass


class ServiceWarning(UserWarning):
    pass


class UnresolvedParameterWarning(ServiceWarning):
    """Emitted when a ``%name%`` placeholder refers to an unset parameter."""


class ServiceReplacedWarning(ServiceWarning):
    """Emitted when an existing service is replaced in permissive mode."""
