from __future__ import annotations
from collections.abc import Callable, Iterator

from .errors import ConfigurationError


class Registry:
    """Name -> function table. Lookups of unknown names fail loudly."""
    unknown = ConfigurationError
    kind = "entry"

    def __init__(self, entries: dict[str, Callable] | None = None):
        self._fns: dict[str, Callable] = dict(entries or {})

    def register(self, name: str, fn: Callable | None = None):
        # register("x", fn) or @register("x")
        if fn is None:
            def deco(f):
                self._fns[name] = f
                return f
            return deco
        self._fns[name] = fn
        return fn

    def get(self, name: str) -> Callable:
        try:
            return self._fns[name]
        except KeyError:
            raise self.unknown(f"unknown {self.kind}: {name!r}") from None

    def copy(self):
        return type(self)(self._fns)

    def __contains__(self, name) -> bool:
        return name in self._fns

    def __iter__(self) -> Iterator[str]:
        return iter(self._fns)

    def __len__(self) -> int:
        return len(self._fns)
