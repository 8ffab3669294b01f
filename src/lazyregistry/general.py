"""
The process-wide general registry.

Applications that want a single shared registry create it with the first call
to :func:`general_registry`, which must pass the service configuration. Later
calls return the same registry. :func:`reject_general_registry` closes it and
allows a new one to be created.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from lazyregistry.errors import ServiceError
from lazyregistry.options import RegistryOptions
from lazyregistry.registry import Registry

__all__ = ["general_registry", "has_general_registry", "reject_general_registry"]

logger = logging.getLogger(__name__)

_general_registry: Optional[Registry] = None


def general_registry(
    config: Optional[Mapping[str, Any]] = None,
    self_reference_names: Iterable[str] = (),
    options: Optional[RegistryOptions] = None,
) -> Registry:
    """
    Return the general registry, creating it on the first call.

    Args:
        config: Service configuration; required when no general registry exists
            and ignored otherwise.
        self_reference_names: Additional names resolving to the registry itself.
        options: Registry settings used when creating the registry.

    Raises:
        ServiceError: If no general registry exists and no configuration is given.
    """
    global _general_registry

    if _general_registry is None:
        if config is None:
            raise ServiceError(
                "First call of general_registry() must pass a service configuration"
            )
        registry = Registry(config, options)
        registry.self_reference_names = [
            *registry.self_reference_names,
            *self_reference_names,
        ]
        _general_registry = registry
        logger.debug("Created general registry with %d services", len(config))

    return _general_registry


def has_general_registry() -> bool:
    return _general_registry is not None


def reject_general_registry() -> None:
    """Close and forget the general registry, if there is one."""
    global _general_registry

    registry, _general_registry = _general_registry, None
    if registry is not None:
        registry.close()
