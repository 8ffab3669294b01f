"""Registry settings."""

import os
from dataclasses import dataclass
from typing import Optional, Union

__all__ = [
    "RegistryOptions",
    "DEFAULT_REGISTERED_SERVICES_FILE",
    "DEFAULT_SELF_REFERENCE_NAMES",
    "REGISTERED_FILE_PARAMETER",
]

DEFAULT_REGISTERED_SERVICES_FILE = "./service-registry.registered.json"
DEFAULT_SELF_REFERENCE_NAMES = ("serviceManager", "SERVICES")

# Parameter through which the registered services file can be changed at runtime.
REGISTERED_FILE_PARAMETER = "registry.registered_file"


@dataclass(frozen=True)
class RegistryOptions:
    """
    Settings of a :class:`~lazyregistry.registry.Registry`.

    Attributes:
        registered_services_file: Where the list of installed services is persisted.
            None disables persistence.
        replace_existing_services: Whether ``set`` may replace a registered service
            (with a warning) instead of failing.
        self_reference_names: Service names that resolve to the registry itself.
    """

    registered_services_file: Optional[Union[str, os.PathLike]] = (
        DEFAULT_REGISTERED_SERVICES_FILE
    )
    replace_existing_services: bool = False
    self_reference_names: tuple[str, ...] = DEFAULT_SELF_REFERENCE_NAMES
