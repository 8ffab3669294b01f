"""
Capabilities a service or container may offer the registry.

Capabilities are detected structurally: a service does not need to inherit from
anything to take part, it only has to provide the relevant methods.
"""

from typing import Any, Optional, Protocol, TYPE_CHECKING, Union, runtime_checkable

if TYPE_CHECKING:
    from lazyregistry.registry import Registry

__all__ = [
    "UNSET",
    "ConfigurationAcceptor",
    "RegistryAware",
    "ClassReportingContainer",
    "ConstructorArgumentsAware",
    "static_construction",
    "constructor_arguments",
    "is_static_construction",
]


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()
"""Marks a constructor argument slot to be filled from the service's configured arguments."""

ArgumentTemplate = Union[dict[Any, Any], list[Any], tuple[Any, ...]]


@runtime_checkable
class ConfigurationAcceptor(Protocol):
    """A service receiving its ``configuration`` mapping after construction."""

    def set_configuration(self, configuration: Any) -> None: ...


@runtime_checkable
class RegistryAware(Protocol):
    """
    A service informed about its very first and very last use.

    ``install_service`` is called the first time the service is obtained from a
    registry, and not again until the service was explicitly unregistered.
    The installed state survives process restarts through the registry's
    persisted list of registered services.
    """

    def install_service(self, registry: "Registry") -> None: ...

    def uninstall_service(self, registry: "Registry") -> None: ...


@runtime_checkable
class ClassReportingContainer(Protocol):
    """A container that knows the class of its instance before building it."""

    def get_service_class(self) -> Optional[Union[type, str]]: ...


@runtime_checkable
class ConstructorArgumentsAware(Protocol):
    """
    A service class declaring its own constructor arguments.

    ``get_constructor_arguments`` returns a mapping of slot names to values (or a
    plain sequence). Values may be literals, ``$service`` references or
    ``%parameter%`` placeholders. Slots holding :data:`UNSET` are filled with the
    configured argument of the same name.

    Example:
        class Mailer:
            @staticmethod
            def get_constructor_arguments():
                return {0: "$transport", 1: "%mail.sender%", "retries": UNSET}
    """

    @staticmethod
    def get_constructor_arguments() -> Optional[ArgumentTemplate]: ...


def static_construction(cls: type) -> type:
    """Class decorator: construct with ``cls(arguments, registry)`` instead of expanding arguments."""
    cls.__static_construction__ = True
    return cls


def constructor_arguments(*positional: Any, **named: Any):
    """Class decorator declaring a constructor argument template.

    Example:
        @constructor_arguments("$transport", retries=UNSET)
        class Mailer:
            ...
    """

    def decorator(cls: type) -> type:
        template: dict[Any, Any] = dict(enumerate(positional))
        template.update(named)
        cls.get_constructor_arguments = staticmethod(lambda: dict(template))
        return cls

    return decorator


def is_static_construction(cls: type) -> bool:
    return bool(getattr(cls, "__static_construction__", False))

