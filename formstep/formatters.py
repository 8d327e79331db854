from __future__ import annotations
import re

from .errors import ConfigurationError
from .registry import Registry


class UnknownFormatterError(ConfigurationError):
    pass


class FormatterRegistry(Registry):
    unknown = UnknownFormatterError
    kind = "formatter"


formatters = FormatterRegistry()

_SPACES = re.compile(r"\s+")
# en dash, em dash, minus sign, figure dash...
_DASHES = re.compile(r"[‐-―−﹘﹣－]")
_AROUND_HYPHEN = re.compile(r"\s*-\s*")


def _strings_only(fn):
    def wrapper(value):
        return fn(value) if isinstance(value, str) else value
    wrapper.__name__ = fn.__name__
    wrapper.__doc__ = fn.__doc__
    return wrapper


@formatters.register("trim")
@_strings_only
def trim(value):
    return value.strip()


@formatters.register("singlespaces")
@_strings_only
def singlespaces(value):
    return _SPACES.sub(" ", value)


@formatters.register("hyphens")
@_strings_only
def hyphens(value):
    """Normalise dash look-alikes to '-' and drop whitespace around hyphens."""
    return _AROUND_HYPHEN.sub("-", _DASHES.sub("-", value))


@formatters.register("uppercase")
@_strings_only
def uppercase(value):
    return value.upper()


@formatters.register("lowercase")
@_strings_only
def lowercase(value):
    return value.lower()


@formatters.register("removespaces")
@_strings_only
def removespaces(value):
    return _SPACES.sub("", value)


@formatters.register("boolean")
def boolean(value):
    if value is True or value == "true":
        return True
    if value is False or value == "false":
        return False
    return None
