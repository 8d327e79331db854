from __future__ import annotations
from collections.abc import Mapping
from urllib.parse import urlsplit

from ._log import log
from .app import Response
from .errors import (
    ConfigurationError, ValidationError, ValidationFailed,
    as_validation_failure, is_validation_error,
)
from .events import EventEmitter
from .fields import build_fields
from .formatters import formatters as default_formatters
from .render import default_renderer
from .validators import validators as default_validators

DEFAULT_TEMPLATE = "index"
ALLOWED_METHODS = {"GET": "get", "POST": "post"}


class FormContext:
    """Scratch state for one POST: formatted values and the errors found in them."""
    def __init__(self):
        self.values: dict = {}
        self.errors: dict[str, ValidationError] = {}


class FormController(EventEmitter):
    """
    One step of a form wizard.

        step = FormController({
            "template": "name",
            "next": "/address",
            "fields": {
                "name": {"formatter": "trim", "validate": ["required", {"type": "maxlength", "arguments": 50}]},
                "title": {"options": ["mr", "ms", {"value": "dr", "label": "Doctor"}]},
            },
        })
        app.mount("/name", step.request_handler())

    GET renders the template with any errors/values flashed by a failed POST.
    POST formats and validates the body, then saves and redirects to `next`
    (emitting "complete"), or flashes the errors and redirects back.

    Override the async hooks `get_values`, `save_values` and `validate` to plug
    in storage and cross-field checks.
    """

    def __init__(self, options: Mapping, *, renderer=None, validators=None, formatters=None):
        super().__init__()
        if not options or options.get("template") is None:
            raise ConfigurationError("FormController needs a `template` option")
        self.options = dict(options)
        self.validators = validators if validators is not None else default_validators
        self.formatters = formatters if formatters is not None else default_formatters
        self.fields = build_fields(
            self.options.get("fields"),
            self.validators,
            self.formatters,
            tuple(self.options.get("default_formatters") or ()),
        )
        self.allowed_errors = frozenset(self.options.get("allowed_errors") or ())
        self.renderer = renderer or default_renderer()

    @property
    def template(self) -> str:
        return self.options.get("template") or DEFAULT_TEMPLATE

    @property
    def next_page(self) -> str | None:
        return self.options.get("next")

    # ----- dispatch -----
    def request_handler(self):
        async def handler(req):
            name = ALLOWED_METHODS.get(req.method.upper())
            if name is None:
                log("405", req.method, req.path)
                return Response.method_not_allowed(list(ALLOWED_METHODS))
            return await getattr(self, name)(req)
        return handler

    # ----- GET -----
    async def get(self, req) -> Response:
        payload = await self.get_values(req) or {}
        errors = self.filter_errors(self._latest_flash(req, "errors"))
        values = {**payload, **self._latest_flash(req, "values")}
        resp = self.renderer.render(req, self.template, {
            "next_page": self.next_page,
            "errors": errors,
            "values": values,
            "action": payload.get("action") or self._prefixed(req, req.path),
            "options": self.options,
        })
        if not self.fields and self.next_page:
            log("complete (no fields)", req.path)
            await self.emit("complete", req, resp)
        return resp

    def filter_errors(self, errors: Mapping) -> dict:
        """Keep only errors for this step's fields or its `allowed_errors`."""
        return {
            key: _revive(err) for key, err in errors.items()
            if key in self.fields or key in self.allowed_errors
        }

    # ----- POST -----
    async def post(self, req) -> Response:
        ctx = FormContext()
        try:
            await self._process(req, ctx)
            await self._validate(req, ctx)
        except ValidationFailed as err:
            return await self.error_handler(err, req, ctx)
        await self.save_values(req, ctx)
        return await self.success_handler(req, ctx)

    async def _process(self, req, ctx: FormContext):
        await req.load_body()
        ctx.values = {
            name: field.format(req.body[name])
            for name, field in self.fields.items()
            if name in req.body
        }

    async def _validate(self, req, ctx: FormContext):
        errors = {}
        for name, field in self.fields.items():
            failed = field.check(ctx.values.get(name))
            if failed is not None:
                errors[name] = ValidationError(name, failed.type, arguments=failed.arguments)
        if errors:
            ctx.errors = errors
            log("invalid", req.path, ", ".join(f"{k}:{e.type}" for k, e in errors.items()))
            raise ValidationFailed(errors)

        try:
            result = await self.validate(req, ctx)
        except ValidationError as err:
            result = err
        if result:
            err = as_validation_failure(result)
            if is_validation_error(err):
                ctx.errors = err.errors
            raise err

    async def success_handler(self, req, ctx: FormContext | None = None) -> Response:
        # no `next`: stay on this step
        target = self._prefixed(req, self.next_page or req.path)
        log("redirect", req.path, "->", target)
        resp = Response.redirect(target)
        await self.emit("complete", req, resp)
        return resp

    async def error_handler(self, err, req, ctx: FormContext | None = None) -> Response:
        if not is_validation_error(err):
            raise err
        req.flash("errors", {key: e.to_dict() for key, e in err.errors.items()})
        if ctx is not None:
            req.flash("values", ctx.values)
        target = self._prefixed(req, err.redirect or req.path)
        log("redirect (errors)", req.path, "->", target)
        return Response.redirect(target)

    # ----- hooks -----
    async def get_values(self, req) -> dict:
        """Values (and optionally an `action`) to show on GET."""
        return {}

    async def save_values(self, req, ctx: FormContext):
        """Persist ctx.values. Raise to abort; the error reaches the caller untouched."""

    async def validate(self, req, ctx: FormContext):
        """Cross-field checks. Return something truthy (or raise ValidationError) to reject."""
        return None

    # ----- internals -----
    @staticmethod
    def _prefixed(req, path: str) -> str:
        parts = urlsplit(path)
        if parts.scheme or parts.netloc:
            return path  # already absolute
        return (getattr(req, "base_url", "") or "") + path

    @staticmethod
    def _latest_flash(req, key) -> dict:
        entries = req.flash(key) or []
        latest = entries[-1] if entries else None
        return latest if isinstance(latest, Mapping) else {}


def _revive(err):
    # errors come back from the session as plain dicts
    if isinstance(err, Mapping) and "key" in err and "type" in err:
        return ValidationError.from_dict(err)
    return err
