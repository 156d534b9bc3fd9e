"""
Backtrace cleaning and enqueue source attribution.

Manifesto:
    "Enqueued ReportJob" is only half an answer when a dozen code paths can
    enqueue the same job.  With verbose enqueue logs on, every line from the
    log subscriber is followed by ``↳ app/billing/close.py:42:in `close```,
    the first frame of the call stack that belongs to the application rather
    than to this package, the job framework or installed libraries.

    Stacks are deep and cleaning is per-frame work, so the whole pipeline is
    lazy: frames are described, filtered and silenced one at a time and the
    walk stops at the first survivor.

Architecture:
    ::

        caller_frames()            lazy "path:lineno:in `func`" strings
              │
              ▼
        BacktraceCleaner.clean()   filters rewrite, silencers drop
              │
              ▼
        extract_source_location()  first survivor or None

Examples:
    >>> cleaner = BacktraceCleaner()
    >>> cleaner.add_silencer(lambda frame: "/site-packages/" in frame)
    >>> extract_source_location(caller_frames(), cleaner)
    'app/jobs/enqueue.py:12:in `schedule_reports`'

Guardrails:
    - Filters and silencers must be pure: the cleaner is shared by every
      event the subscriber handles, possibly from several threads.
    - Each subscriber holds its own cleaner; there is no process-wide one.

Tags:
    backtrace, attribution, observability, joblog
"""

from __future__ import annotations

import os
import sys
import sysconfig
import traceback
from collections.abc import Callable, Iterable, Iterator
from types import FrameType

import structlog

FrameFilter = Callable[[str], str]
FrameSilencer = Callable[[str], bool]

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class BacktraceCleaner:
    """Ordered filters and silencers applied to backtrace lines.

    Filters rewrite a line (for example to shorten paths); silencers drop a
    line when they return True.  Filters run before silencers, both in the
    order they were added.
    """

    def __init__(self) -> None:
        self._filters: list[FrameFilter] = []
        self._silencers: list[FrameSilencer] = []

    def add_filter(self, fn: FrameFilter) -> None:
        self._filters.append(fn)

    def add_silencer(self, fn: FrameSilencer) -> None:
        self._silencers.append(fn)

    def remove_filters(self) -> None:
        self._filters = []

    def remove_silencers(self) -> None:
        self._silencers = []

    def clean(self, frames: Iterable[str]) -> Iterator[str]:
        """Lazily filter and silence ``frames``."""
        for frame in frames:
            for fn in self._filters:
                frame = fn(frame)
            if not any(silenced(frame) for silenced in self._silencers):
                yield frame


def _describe(frame: FrameType, lineno: int) -> str:
    code = frame.f_code
    return f"{code.co_filename}:{lineno}:in `{code.co_qualname}`"


def caller_frames(skip: int = 0) -> Iterator[str]:
    """Lazily describe the caller's stack, innermost frame first.

    The starting frame is captured when this is called, not when the
    iterator is first advanced.
    """
    start = sys._getframe(1 + skip)
    return (_describe(frame, lineno) for frame, lineno in traceback.walk_stack(start))


def extract_source_location(frames: Iterable[str], cleaner: BacktraceCleaner) -> str | None:
    """First frame surviving ``cleaner``, or None if every frame is silenced."""
    return next(cleaner.clean(frames), None)


def _internal_paths(silenced_paths: Iterable[str]) -> list[str]:
    paths = [_PACKAGE_DIR, os.path.dirname(os.path.abspath(structlog.__file__))]
    install_paths = sysconfig.get_paths()
    for key in ("stdlib", "platstdlib", "purelib", "platlib"):
        if key in install_paths:
            paths.append(install_paths[key])
    paths.extend(os.path.abspath(path) for path in silenced_paths)
    return paths


def default_cleaner(
    root: str | os.PathLike[str] | None = None,
    silenced_paths: Iterable[str] = (),
) -> BacktraceCleaner:
    """Cleaner that keeps only application frames.

    Silences this package, structlog, the standard library, installed
    packages, interpreter-internal frames (``<frozen ...>``) and every path
    in ``silenced_paths`` (typically the job framework's own source tree).
    With ``root`` set, surviving frames are shown relative to it.
    """
    cleaner = BacktraceCleaner()
    prefixes = _internal_paths(silenced_paths)

    if root is not None:
        root_prefix = os.path.abspath(root).rstrip(os.sep) + os.sep
        # Filters run first, so silence the root-relative spelling too.
        prefixes += [p[len(root_prefix):] for p in prefixes if p.startswith(root_prefix)]

        def strip_root(frame: str) -> str:
            return frame[len(root_prefix):] if frame.startswith(root_prefix) else frame

        cleaner.add_filter(strip_root)

    internal = tuple(p.rstrip(os.sep) + os.sep for p in prefixes if p)
    cleaner.add_silencer(lambda frame: frame.startswith(internal))
    cleaner.add_silencer(lambda frame: frame.startswith("<frozen "))
    return cleaner


__all__ = [
    "BacktraceCleaner",
    "FrameFilter",
    "FrameSilencer",
    "caller_frames",
    "default_cleaner",
    "extract_source_location",
]
