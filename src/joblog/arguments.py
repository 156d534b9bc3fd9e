"""Recursive formatting of job arguments for log lines.

Argument values form a closed set:

- Mapping: every value is formatted, keys are left untouched
- Sequence (list or tuple): every element is formatted, type preserved
- GlobalReference: anything implementing ``GlobalIdentifiable`` becomes its
  ``GlobalId``; if conversion raises, the original value is kept
- Scalar: everything else passes through unchanged

Formatting is idempotent: a ``GlobalId`` is not itself
``GlobalIdentifiable``, so re-formatting an already formatted structure
yields the same structure.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from joblog.jobs import GlobalIdentifiable


def format_argument(value: Any) -> Any:
    """Format one argument value for display."""
    if isinstance(value, Mapping):
        return {key: format_argument(item) for key, item in value.items()}
    if isinstance(value, list):
        return [format_argument(item) for item in value]
    if isinstance(value, tuple):
        return tuple(format_argument(item) for item in value)
    if isinstance(value, GlobalIdentifiable):
        try:
            return value.to_global_id()
        except Exception:
            return value
    return value


def format_arguments(arguments: Iterable[Any]) -> str:
    """Comma-joined ``repr`` of every formatted argument."""
    return ", ".join(repr(format_argument(arg)) for arg in arguments)


__all__ = ["format_argument", "format_arguments"]
