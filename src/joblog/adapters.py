"""Display names for queue adapters."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

AdapterNameResolver = Callable[[Any], str]


def adapter_name(adapter: Any) -> str:
    """Resolve an opaque adapter handle to its display name.

    Strings are returned unchanged.  Objects exposing ``queue_adapter_name``
    decide for themselves; otherwise the adapter's class name (or the class
    itself, when a class is passed) is used with any ``Adapter`` suffix
    removed, so ``AsyncAdapter()`` displays as ``Async``.

    >>> class CeleryAdapter: ...
    >>> adapter_name(CeleryAdapter())
    'Celery'
    """
    if adapter is None:
        return ""
    if isinstance(adapter, str):
        return adapter
    name = getattr(adapter, "queue_adapter_name", None)
    if isinstance(name, str):
        return name
    adapter_class = adapter if isinstance(adapter, type) else type(adapter)
    return adapter_class.__name__.removesuffix("Adapter")


__all__ = ["AdapterNameResolver", "adapter_name"]
