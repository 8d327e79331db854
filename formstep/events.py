from __future__ import annotations
import inspect
from collections.abc import Callable


class EventEmitter:
    """Per-instance listener registry. Listeners may be plain functions or coroutines."""

    def __init__(self):
        self._listeners: dict[str, list[Callable]] = {}

    def on(self, event: str, listener: Callable | None = None):
        """Register a listener; also works as a decorator: @form.on("complete")."""
        if listener is None:
            def deco(fn):
                self.on(event, fn)
                return fn
            return deco
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Callable):
        def wrapper(*args):
            self.off(event, wrapper)
            return listener(*args)
        wrapper.listener = listener
        return self.on(event, wrapper)

    def off(self, event: str, listener: Callable):
        if event in self._listeners:
            self._listeners[event] = [
                cb for cb in self._listeners[event]
                if cb is not listener and getattr(cb, "listener", None) is not listener
            ]

    def listeners(self, event: str) -> list[Callable]:
        return list(self._listeners.get(event, []))

    async def emit(self, event: str, *args) -> bool:
        """Call every listener in registration order. Returns False if nobody listened."""
        handlers = self.listeners(event)
        for cb in handlers:
            result = cb(*args)
            if inspect.isawaitable(result):
                await result
        return bool(handlers)
