"""Deferred service lookups."""

from typing import Any, Callable

__all__ = ["ServicePromise"]


class ServicePromise:
    """A handle to a service that is only loaded when first read."""

    def __init__(self, loader: Callable[[], Any]):
        self._loader = loader
        self._instance: Any = None
        self._resolved = False

    def get_instance(self) -> Any:
        if not self._resolved:
            self._instance = self._loader()
            self._resolved = True
        return self._instance

    def is_resolved(self) -> bool:
        return self._resolved

    def __repr__(self) -> str:
        state = "resolved" if self._resolved else "pending"
        return f"<ServicePromise {state}>"
