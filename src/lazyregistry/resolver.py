"""
Rewriting of service arguments and configuration.

Values handed to a service constructor may contain symbolic references that are
resolved right before the service is built:

    - ``"%name%"`` is replaced by the parameter ``name`` (keeping its type);
    - ``"prefix-%name%.txt"`` has each embedded placeholder replaced textually;
    - ``"$name"`` is replaced by the instance of service ``name``, if it exists.

Resolution runs as an ordered pipeline of named handlers. Each handler receives
the key of the value within its collection (``None`` for a bare scalar) and the
value produced by the previous handler.
"""

import logging
import re
import warnings
from collections.abc import Mapping
from typing import Any, Callable, Optional, TYPE_CHECKING

from lazyregistry.errors import ServiceWarning, UnresolvedParameterWarning
from lazyregistry.parameters import ParameterStore

if TYPE_CHECKING:
    from lazyregistry.registry import Registry

__all__ = [
    "ArgumentHandler",
    "ReferenceResolver",
    "PARAMETERS_HANDLER",
    "SERVICES_HANDLER",
    "make_parameter_handler",
    "make_service_handler",
]

logger = logging.getLogger(__name__)

ArgumentHandler = Callable[[Any, Any], Any]

PARAMETERS_HANDLER = "PARAMETERS"
SERVICES_HANDLER = "SERVICES"

_WHOLE_PLACEHOLDER = re.compile(r"^%([^%\s]+)%$")
_PLACEHOLDER = re.compile(r"%([^%\s]+)%")
_SERVICE_REFERENCE = re.compile(r"^\$([A-Za-z_][A-Za-z0-9_]*)$")


class ReferenceResolver:
    """Ordered pipeline of named argument handlers."""

    def __init__(self, handlers: Optional[dict[str, ArgumentHandler]] = None):
        self._handlers: dict[str, ArgumentHandler] = dict(handlers or {})

    @property
    def handler_names(self) -> list[str]:
        return list(self._handlers)

    def add_handler(self, name: str, handler: ArgumentHandler) -> None:
        """Register ``handler`` under ``name``, replacing any handler of that name.

        New handlers run after the ones already registered.
        """
        self._handlers[name] = handler

    def get_handler(self, name: str) -> Optional[ArgumentHandler]:
        return self._handlers.get(name)

    def remove_handler(self, name: str) -> None:
        self._handlers.pop(name, None)

    def order_handlers(self, key: Callable[[str], Any], reverse: bool = False) -> None:
        """Re-order the pipeline by sorting handler names with ``key``."""
        self._handlers = {
            name: self._handlers[name]
            for name in sorted(self._handlers, key=key, reverse=reverse)
        }

    def resolve(self, value: Any, recursive: bool = False) -> Any:
        """
        Resolve a scalar, or each element of a list, tuple or mapping.

        Args:
            value: The value to rewrite.
            recursive: Whether nested collections are rewritten as well. When false,
                nested collections are passed to the handlers as they are.

        Returns:
            The rewritten value. Collections are copied, never modified in place.
        """
        if _is_collection(value):
            return self._resolve_collection(value, recursive)
        return self._apply(None, value)

    def _resolve_collection(self, values: Any, recursive: bool) -> Any:
        if isinstance(values, Mapping):
            return {
                key: self._resolve_item(key, item, recursive)
                for key, item in values.items()
            }
        resolved = [
            self._resolve_item(index, item, recursive)
            for index, item in enumerate(values)
        ]
        return tuple(resolved) if isinstance(values, tuple) else resolved

    def _resolve_item(self, key: Any, value: Any, recursive: bool) -> Any:
        if recursive and _is_collection(value):
            return self._resolve_collection(value, recursive)
        return self._apply(key, value)

    def _apply(self, key: Any, value: Any) -> Any:
        for name, handler in list(self._handlers.items()):
            if not callable(handler):
                warnings.warn(
                    f"Argument handler {name} is not callable",
                    ServiceWarning,
                    stacklevel=3,
                )
                continue
            value = handler(key, value)
        return value


def make_parameter_handler(parameters: ParameterStore) -> ArgumentHandler:
    """Build the handler replacing ``%name%`` placeholders from ``parameters``.

    A value consisting of a single placeholder is replaced by the parameter value
    itself; embedded placeholders are replaced by its string form. Placeholders for
    unset parameters are left in place and reported with an
    :class:`UnresolvedParameterWarning`.
    """

    def substitute(match: re.Match) -> str:
        found, parameter = parameters.lookup(match.group(1))
        if found:
            return str(parameter)
        _warn_unresolved(match.group(0))
        return match.group(0)

    def handle(_key: Any, value: Any) -> Any:
        if not isinstance(value, str):
            return value

        whole = _WHOLE_PLACEHOLDER.match(value)
        if whole:
            found, parameter = parameters.lookup(whole.group(1))
            if found:
                return parameter
            _warn_unresolved(value)
            return value

        return _PLACEHOLDER.sub(substitute, value)

    return handle


def make_service_handler(registry: "Registry") -> ArgumentHandler:
    """Build the handler replacing ``$name`` references by service instances.

    References to services the registry does not know are returned unchanged.
    """

    def handle(_key: Any, value: Any) -> Any:
        if isinstance(value, str):
            match = _SERVICE_REFERENCE.match(value)
            if match and registry.service_exists(match.group(1)):
                return registry.get(match.group(1))
        return value

    return handle


def _warn_unresolved(placeholder: str) -> None:
    logger.debug("Parameter %s not set", placeholder)
    warnings.warn(
        f"Parameter {placeholder} not set", UnresolvedParameterWarning, stacklevel=5
    )


def _is_collection(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))
