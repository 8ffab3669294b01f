"""Named values substituted into service configuration via ``%name%`` placeholders."""

from typing import Any, Iterator

__all__ = ["ParameterStore"]

_MISSING = object()


class ParameterStore:
    """Mapping of parameter names to values.

    A parameter set to ``None`` is still set; only :meth:`unset` makes it absent.
    """

    def __init__(self, parameters: dict[str, Any] = None):
        self._parameters: dict[str, Any] = dict(parameters or {})

    def set(self, name: str, value: Any) -> None:
        if not name:
            raise ValueError("Parameter name must not be empty")
        self._parameters[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self._parameters.get(name, default)

    def lookup(self, name: str) -> tuple[bool, Any]:
        """Return ``(found, value)`` so callers can tell unset from ``None``."""
        value = self._parameters.get(name, _MISSING)
        if value is _MISSING:
            return False, None
        return True, value

    def unset(self, name: str) -> None:
        self._parameters.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._parameters

    def __iter__(self) -> Iterator[str]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)
