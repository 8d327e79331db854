from __future__ import annotations
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .errors import ConfigurationError
from .formatters import FormatterRegistry
from .validators import ValidatorRegistry


@dataclass(frozen=True)
class FormatterRef:
    name: str
    fn: Callable


@dataclass(frozen=True)
class ValidatorRef:
    type: str
    arguments: tuple
    fn: Callable

    def __call__(self, value) -> bool:
        return bool(self.fn(value, *self.arguments))


@dataclass(frozen=True)
class FieldSchema:
    name: str
    formatters: tuple[FormatterRef, ...] = ()
    validators: tuple[ValidatorRef, ...] = ()
    options: tuple | None = None

    def format(self, value):
        for f in self.formatters:
            value = f.fn(value)
        return value

    def check(self, value) -> ValidatorRef | None:
        """Return the first validator that rejects `value`, or None."""
        for v in self.validators:
            if not v(value):
                return v
        return None


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _name_of(fn: Callable) -> str:
    return getattr(fn, "__name__", None) or type(fn).__name__


def option_values(options) -> tuple:
    # options may be bare values or {"value": ..., "label": ...}
    return tuple(o["value"] if isinstance(o, Mapping) else o for o in options)


def _formatter_ref(spec, registry: FormatterRegistry) -> FormatterRef:
    if isinstance(spec, str):
        return FormatterRef(spec, registry.get(spec))
    if callable(spec):
        return FormatterRef(_name_of(spec), spec)
    raise ConfigurationError(f"bad formatter: {spec!r}")


def _validator_ref(spec, registry: ValidatorRegistry) -> ValidatorRef:
    if isinstance(spec, str):
        return ValidatorRef(spec, (), registry.get(spec))
    if callable(spec):
        return ValidatorRef(_name_of(spec), (), spec)
    if isinstance(spec, Mapping) and "type" in spec:
        kind = spec["type"]
        args = tuple(_as_list(spec.get("arguments")))
        if callable(kind):
            return ValidatorRef(_name_of(kind), args, kind)
        return ValidatorRef(kind, args, registry.get(kind))
    raise ConfigurationError(f"bad validator: {spec!r}")


def build_field(name: str, config, validators: ValidatorRegistry,
                formatters: FormatterRegistry, default_formatters=()) -> FieldSchema:
    if not isinstance(config, Mapping):
        config = {}
    fmt = config["formatter"] if "formatter" in config else default_formatters
    checks = [_validator_ref(v, validators) for v in _as_list(config.get("validate"))]
    options = config.get("options")
    if options is not None:
        options = tuple(options)
        checks.append(ValidatorRef("equal", option_values(options), validators.get("equal")))
    return FieldSchema(
        name=name,
        formatters=tuple(_formatter_ref(f, formatters) for f in _as_list(fmt)),
        validators=tuple(checks),
        options=options,
    )


def build_fields(config: Mapping | None, validators: ValidatorRegistry,
                 formatters: FormatterRegistry, default_formatters=()) -> Mapping[str, FieldSchema]:
    """Resolve the `fields` option once; unknown formatter/validator names fail here."""
    fields = {
        name: build_field(name, cfg, validators, formatters, default_formatters)
        for name, cfg in (config or {}).items()
    }
    return MappingProxyType(fields)
