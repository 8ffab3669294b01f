"""Construction of service instances from a class, its arguments and its configuration."""

import inspect
import logging
from collections.abc import Mapping
from typing import Any, Optional, TYPE_CHECKING

from lazyregistry.capabilities import (
    UNSET,
    ConfigurationAcceptor,
    ConstructorArgumentsAware,
    is_static_construction,
)
from lazyregistry.classes import ClassReference, class_path, resolve_class
from lazyregistry.errors import ServiceConstructionError
from lazyregistry.resolver import ReferenceResolver

if TYPE_CHECKING:
    from lazyregistry.registry import Registry

__all__ = ["InstanceFactory", "lookup_service_class"]

logger = logging.getLogger(__name__)


class InstanceFactory:
    """
    Build service instances honouring the construction conventions a class opts into.

    Three conventions are supported:

        - plain classes are called with their resolved arguments expanded
          (sequence items and integer mapping keys positionally, string mapping
          keys as keywords);
        - classes decorated with :func:`~lazyregistry.capabilities.static_construction`
          are called with the whole resolved argument collection and the registry;
        - classes providing ``get_constructor_arguments`` supply their own argument
          template, into which configured arguments are merged by slot name.
    """

    def __init__(self, registry: "Registry", resolver: ReferenceResolver):
        self._registry = registry
        self._resolver = resolver

    def build(
        self,
        class_reference: ClassReference,
        arguments: Any = None,
        configuration: Any = None,
        service_name: Optional[str] = None,
    ) -> Any:
        """
        Create an instance of ``class_reference``.

        Args:
            class_reference: The class, or its import path.
            arguments: Configured constructor arguments, possibly containing
                ``$service`` references and ``%parameter%`` placeholders.
            configuration: Mapping passed to ``set_configuration`` after
                construction, if the instance accepts one.
            service_name: The service being built, used to tag errors.

        Returns:
            The new instance.

        Raises:
            ServiceConstructionError: If the class cannot be found or does not accept
                the resolved arguments.
        """
        cls = lookup_service_class(class_reference, service_name)

        if isinstance(cls, ConstructorArgumentsAware):
            template = cls.get_constructor_arguments()
            if template:
                arguments = _merge_template(template, arguments)

        if arguments:
            arguments = self._resolver.resolve(_as_collection(arguments), recursive=True)

        logger.debug("Constructing %s for service %s", class_path(cls), service_name)
        if is_static_construction(cls):
            instance = cls(arguments, self._registry)
        else:
            positional, keywords = _split_arguments(arguments)
            _check_signature(cls, positional, keywords, service_name)
            instance = cls(*positional, **keywords)

        if configuration and isinstance(instance, ConfigurationAcceptor):
            instance.set_configuration(
                self._resolver.resolve(configuration, recursive=True)
            )
        return instance


def lookup_service_class(
    reference: ClassReference, service_name: Optional[str] = None
) -> type:
    try:
        return resolve_class(reference)
    except (ImportError, TypeError) as exc:
        raise ServiceConstructionError(
            f"Cannot resolve class {reference!r}{_of_service(service_name)}: {exc}",
            service_name,
        ) from exc


def _merge_template(template: Any, arguments: Any) -> list[Any]:
    slots = template.items() if isinstance(template, Mapping) else enumerate(template)
    return [
        _configured_argument(arguments, slot) if value is UNSET else value
        for slot, value in slots
    ]


def _configured_argument(arguments: Any, slot: Any) -> Any:
    if isinstance(arguments, Mapping):
        return arguments.get(slot)
    if isinstance(arguments, (list, tuple)) and isinstance(slot, int):
        return arguments[slot] if 0 <= slot < len(arguments) else None
    return None


def _as_collection(arguments: Any) -> Any:
    if isinstance(arguments, (Mapping, list, tuple)):
        return arguments
    return [arguments]


def _split_arguments(arguments: Any) -> tuple[list[Any], dict[str, Any]]:
    if not arguments:
        return [], {}
    if isinstance(arguments, Mapping):
        positional = [value for key, value in arguments.items() if not isinstance(key, str)]
        keywords = {key: value for key, value in arguments.items() if isinstance(key, str)}
        return positional, keywords
    return list(arguments), {}


def _check_signature(
    cls: type, positional: list[Any], keywords: dict[str, Any], service_name: Optional[str]
) -> None:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return

    try:
        signature.bind(*positional, **keywords)
    except TypeError as exc:
        raise ServiceConstructionError(
            f"Cannot construct {class_path(cls)}{_of_service(service_name)}: {exc}",
            service_name,
        ) from exc


def _of_service(service_name: Optional[str]) -> str:
    return f" for service {service_name}" if service_name else ""
