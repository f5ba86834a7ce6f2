"""
Process-wide service registry.

One resolved instance per logical dependency, shared by every request.
The container is built at startup, attached by reference to each
request's ``Context.container`` and never recreated per request.

Manifesto:
    Dependency injection keeps handlers thin. Singletons are created
    once; request-time code only reads from the registry.

Tags:
    fnpipe, dependency-injection, singletons, registry

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar, overload

from fnpipe.core.errors import ServiceNotRegisteredError

T = TypeVar("T")


class Container:
    """Registry keyed by type (or string) holding shared service instances.

    Factories registered with :meth:`register_factory` are resolved lazily
    on first :meth:`get` and cached; the lock guarantees a factory runs
    at most once even under concurrent first access.
    """

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._instances: dict[Any, Any] = {}
        self._factories: dict[Any, Callable[[Container], Any]] = {}
        self._lock = threading.RLock()

    def register(self, key: Any, instance: Any) -> Container:
        """Register an already-built instance under *key*."""
        with self._lock:
            self._instances[key] = instance
            self._factories.pop(key, None)
        return self

    def register_factory(self, key: Any, factory: Callable[[Container], Any]) -> Container:
        """Register a factory called with this container on first lookup."""
        with self._lock:
            self._factories[key] = factory
            self._instances.pop(key, None)
        return self

    @overload
    def get(self, key: type[T]) -> T: ...

    @overload
    def get(self, key: str) -> Any: ...

    def get(self, key: Any) -> Any:
        """Resolve *key*, building it from its factory if needed."""
        try:
            return self._instances[key]
        except KeyError:
            pass
        with self._lock:
            if key in self._instances:
                return self._instances[key]
            factory = self._factories.get(key)
            if factory is None:
                raise ServiceNotRegisteredError(key)
            instance = factory(self)
            self._instances[key] = instance
            del self._factories[key]
            return instance

    def has(self, key: Any) -> bool:
        return key in self._instances or key in self._factories

    __contains__ = has

    def reset(self) -> None:
        """Drop every registration (tests only)."""
        with self._lock:
            self._instances.clear()
            self._factories.clear()

    def __repr__(self) -> str:
        return f"Container(name={self.name!r}, services={len(self._instances) + len(self._factories)})"


@lru_cache(maxsize=1)
def get_container() -> Container:
    """The process-wide container."""
    return Container()
