"""Name-to-class plugin registry shared by the source subsystems.

Each concrete registry (entropy sources, log-probability sources) is a
subclass naming its entry-point group. Built-in classes register themselves
at import time with the subclass's ``register()`` decorator; classes from
other distributions are discovered lazily, once, from the entry-point group
the first time a name is missing or the registry is listed.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("probability_pulse")


class PluginRegistry:
    """Base class for plugin registries.

    Subclasses set ``entry_point_group`` and ``kind`` (a human-readable
    label used in messages) and get their own, independent class table.
    Decorator registration takes precedence over entry points with the
    same name.
    """

    entry_point_group: ClassVar[str] = ""
    kind: ClassVar[str] = "plugin"

    _registry: ClassVar[dict[str, type[Any]]]
    _entry_points_loaded: ClassVar[bool]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._registry = {}
        cls._entry_points_loaded = False

    @classmethod
    def register(cls, name: str) -> Callable[[type[Any]], type[Any]]:
        """Decorator registering a class under *name*.

        Returns:
            The original class, unmodified.
        """

        def decorator(klass: type[Any]) -> type[Any]:
            cls._registry[name] = klass
            return klass

        return decorator

    @classmethod
    def get(cls, name: str) -> type[Any]:
        """Look up a class by name, loading entry points on first miss.

        Raises:
            KeyError: If *name* is unknown after entry-point discovery.
        """
        if name not in cls._registry and not cls._entry_points_loaded:
            cls._load_entry_points()
        if name in cls._registry:
            return cls._registry[name]

        available = ", ".join(sorted(cls._registry)) or "(none)"
        raise KeyError(f"Unknown {cls.kind}: {name!r}. Available: {available}")

    @classmethod
    def list_available(cls) -> list[str]:
        """Return all registered names, sorted."""
        if not cls._entry_points_loaded:
            cls._load_entry_points()
        return sorted(cls._registry)

    @classmethod
    def _load_entry_points(cls) -> None:
        """Register classes advertised under ``entry_point_group``.

        A broken plugin is logged and skipped; it never blocks the others.
        """
        cls._entry_points_loaded = True
        try:
            eps = importlib.metadata.entry_points(group=cls.entry_point_group)
        except Exception:  # Intentional: broken metadata must not crash lookup
            logger.warning("Failed to read entry points for %s", cls.entry_point_group, exc_info=True)
            return

        for ep in eps:
            if ep.name in cls._registry:
                continue
            try:
                cls._registry[ep.name] = ep.load()
            except Exception:  # Intentional: third-party import errors are arbitrary
                logger.warning(
                    "Skipping %s entry point %r (%s)",
                    cls.kind,
                    ep.name,
                    ep.value,
                    exc_info=True,
                )
            else:
                logger.debug("Loaded %s %r from entry point", cls.kind, ep.name)
