"""
Tests for the process-wide service container.
"""

from __future__ import annotations

import threading

import pytest

from fnpipe.core.container import Container, get_container
from fnpipe.core.errors import ServiceNotRegisteredError


class Greeter:
    def __init__(self, greeting: str = "hi") -> None:
        self.greeting = greeting


class TestRegistration:
    def test_register_and_get(self, container):
        g = Greeter()
        container.register(Greeter, g)
        assert container.get(Greeter) is g

    def test_string_keys(self, container):
        container.register("answer", 42)
        assert container.get("answer") == 42

    def test_missing_raises(self, container):
        with pytest.raises(ServiceNotRegisteredError, match="Greeter"):
            container.get(Greeter)

    def test_has_and_contains(self, container):
        assert not container.has(Greeter)
        container.register_factory(Greeter, lambda c: Greeter())
        assert container.has(Greeter)
        assert Greeter in container

    def test_reset(self, container):
        container.register(Greeter, Greeter())
        container.reset()
        assert Greeter not in container


class TestFactories:
    def test_factory_is_lazy_and_cached(self, container):
        calls = []

        def build(c):
            calls.append(c)
            return Greeter("hello")

        container.register_factory(Greeter, build)
        assert calls == []
        first = container.get(Greeter)
        second = container.get(Greeter)
        assert first is second
        assert calls == [container]

    def test_factory_resolves_dependencies(self, container):
        container.register("greeting", "hey")
        container.register_factory(Greeter, lambda c: Greeter(c.get("greeting")))
        assert container.get(Greeter).greeting == "hey"

    def test_factory_runs_once_under_concurrency(self, container):
        calls = []
        barrier = threading.Barrier(8)

        def build(c):
            calls.append(1)
            return Greeter()

        container.register_factory(Greeter, build)
        results = []

        def worker():
            barrier.wait()
            results.append(container.get(Greeter))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)


class TestProcessWide:
    def test_get_container_is_singleton(self):
        assert get_container() is get_container()
