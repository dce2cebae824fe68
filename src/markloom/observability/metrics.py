"""Metrics hook protocol and its no-op default.

The editing core reports counters, timings and gauges at a handful of
points.  Without a backend a :class:`NoopMetricsHook` is used; any object
satisfying :class:`MetricsHook` can be supplied through
``EditorConfig(metrics=...)`` instead.

Emitted metric names:

* ``markloom.normalize_total``             -- counter
* ``markloom.normalize_repairs_total``     -- counter
* ``markloom.document_blocks``             -- gauge
* ``markloom.serialize_duration_ms``       -- timing
* ``markloom.parse_duration_ms``           -- timing
* ``markloom.conversion_warnings_total``   -- counter
* ``markloom.commands_total``              -- counter (tag ``command``)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol every metrics backend must satisfy.

    *tags* is an optional mapping of string keys to string values that a
    backend may translate into labels or suffixes.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment counter *name* by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration of *ms* milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set gauge *name* to *value*."""
        ...


class NoopMetricsHook:
    """Backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
