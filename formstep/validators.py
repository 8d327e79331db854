from __future__ import annotations
import re

from .errors import ConfigurationError
from .registry import Registry


class UnknownValidatorError(ConfigurationError):
    pass


class ValidatorRegistry(Registry):
    unknown = UnknownValidatorError
    kind = "validator"


validators = ValidatorRegistry()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)
_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][0-9A-Z]?\s?[0-9][A-Z]{2}$", re.IGNORECASE)


def _empty(value) -> bool:
    return value is None or value == "" or value == []


# Everything except `required` lets an empty value through:
# whether a field may be left blank is up to `required` alone.

@validators.register("required")
def required(value) -> bool:
    if isinstance(value, str):
        return value.strip() != ""
    return not _empty(value) and value is not False


@validators.register("email")
def email(value) -> bool:
    return _empty(value) or bool(_EMAIL_RE.match(str(value)))


@validators.register("minlength")
def minlength(value, length) -> bool:
    return _empty(value) or len(str(value)) >= int(length)


@validators.register("maxlength")
def maxlength(value, length) -> bool:
    return _empty(value) or len(str(value)) <= int(length)


@validators.register("exactlength")
def exactlength(value, length) -> bool:
    return _empty(value) or len(str(value)) == int(length)


@validators.register("numeric")
def numeric(value) -> bool:
    return _empty(value) or str(value).isdigit()


@validators.register("alpha")
def alpha(value) -> bool:
    return _empty(value) or str(value).isalpha()


@validators.register("alphanum")
def alphanum(value) -> bool:
    return _empty(value) or str(value).isalnum()


@validators.register("regex")
def regex(value, pattern) -> bool:
    return _empty(value) or re.search(pattern, str(value)) is not None


@validators.register("url")
def url(value) -> bool:
    return _empty(value) or bool(_URL_RE.match(str(value)))


@validators.register("postcode")
def postcode(value) -> bool:
    return _empty(value) or bool(_POSTCODE_RE.match(str(value).strip()))


@validators.register("equal")
def equal(value, *allowed) -> bool:
    """Value (or every item of a multi-value) must be one of `allowed`."""
    if _empty(value):
        return True
    items = value if isinstance(value, list) else [value]
    return all(item in allowed for item in items)
