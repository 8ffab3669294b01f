"""Lookup of classes referenced by dotted import paths in service definitions."""

import importlib
from typing import Union

__all__ = ["ClassReference", "resolve_class", "class_path"]

ClassReference = Union[type, str]


def resolve_class(reference: ClassReference) -> type:
    """
    Return the class a definition refers to.

    Args:
        reference: A class, or an import path such as ``"package.module.Name"`` or
            ``"package.module:Outer.Inner"``. A bare name is looked up in ``builtins``.

    Raises:
        ImportError: If the module or attribute cannot be found.
        TypeError: If the reference does not name a class.
    """
    if isinstance(reference, type):
        return reference
    if not isinstance(reference, str) or not reference:
        raise TypeError(f"Invalid class reference {reference!r}")

    if ":" in reference:
        module_name, _, qualname = reference.partition(":")
    else:
        module_name, _, qualname = reference.rpartition(".")

    module = importlib.import_module(module_name or "builtins")
    target = module
    for attribute in qualname.split("."):
        try:
            target = getattr(target, attribute)
        except AttributeError as exc:
            raise ImportError(
                f"Cannot import name {qualname!r} from {module.__name__!r}"
            ) from exc

    if not isinstance(target, type):
        raise TypeError(f"{reference!r} does not refer to a class")
    return target


def class_path(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
