from __future__ import annotations
from collections.abc import Mapping


class FormError(Exception):
    """Base class for everything raised by formstep itself."""


class ConfigurationError(FormError):
    """Bad controller configuration. Raised at construction, never per request."""


class ValidationError(FormError):
    """
    One failed check on one field.
    - key: the field name
    - type: the validator that failed ('required', 'email', ...)
    - redirect: optional path that overrides the redirect-to-self on error
    """
    def __init__(self, key: str, type: str, redirect: str | None = None, arguments=()):
        super().__init__(f"{key}: {type}")
        self.key = key
        self.type = type
        self.redirect = redirect
        self.arguments = tuple(arguments)

    def to_dict(self) -> dict:
        # JSON-safe shape stored in the flash between POST and GET
        out = {"key": self.key, "type": self.type}
        if self.redirect:
            out["redirect"] = self.redirect
        if self.arguments:
            out["arguments"] = list(self.arguments)
        return out

    @classmethod
    def from_dict(cls, data: Mapping) -> "ValidationError":
        return cls(data["key"], data["type"], data.get("redirect"), data.get("arguments", ()))

    def __eq__(self, other):
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (self.key, self.type, self.redirect, self.arguments) == \
               (other.key, other.type, other.redirect, other.arguments)

    def __hash__(self):
        return hash((self.key, self.type, self.redirect, self.arguments))

    def __repr__(self):
        return f"ValidationError(key={self.key!r}, type={self.type!r}, redirect={self.redirect!r})"


class ValidationFailed(FormError):
    """Carries the errors map (field name -> ValidationError) of a rejected submission."""
    def __init__(self, errors: Mapping[str, ValidationError]):
        super().__init__(", ".join(sorted(errors)))
        self.errors = dict(errors)

    @property
    def redirect(self) -> str | None:
        for err in self.errors.values():
            if err.redirect:
                return err.redirect
        return None


class FormLevelError(FormError):
    """A truthy form-level validation result that is not shaped like field errors."""
    def __init__(self, value):
        super().__init__(repr(value))
        self.value = value


def is_validation_error(err) -> bool:
    return isinstance(err, ValidationFailed)


def as_validation_failure(value):
    """
    Classify a truthy form-level result:
    - a single ValidationError, or a mapping whose values are all ValidationErrors -> ValidationFailed
    - any other exception -> itself
    - anything else -> FormLevelError
    """
    if isinstance(value, ValidationFailed):
        return value
    if isinstance(value, ValidationError):
        return ValidationFailed({value.key: value})
    if isinstance(value, Mapping) and value and all(isinstance(v, ValidationError) for v in value.values()):
        return ValidationFailed(value)
    if isinstance(value, BaseException):
        return value
    return FormLevelError(value)
