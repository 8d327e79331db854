# formstep/app.py
import re, inspect, os, traceback, html
from urllib.parse import parse_qs
from http import cookies as http_cookies
from pathlib import Path

# session.py and flash.py must NOT import from app.py (no cycles).
from .session import get_session, set_session
from . import flash as _flash
from ._log import log

# ---- Config & paths ---------------------------------------------------------
def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")

DEBUG = _env_bool("FORMSTEP_DEBUG", True)  # dev default True; set FORMSTEP_DEBUG=0 in prod

_BASE = Path(os.getenv("FORMSTEP_BASE", Path.cwd()))

# Where to look for error templates
_ERROR_DIRS = [
    (_BASE / "app" / "views" / "errors").resolve(),
    (_BASE / "views" / "errors").resolve(),
]

# Steps only ever accept a form POST; other methods reach the step so it can answer 405.
CSRF_METHODS = {"POST"}


# ---- Helpers ----------------------------------------------------------------
def _read_error_template(name: str) -> str | None:
    """Return the error HTML if found (e.g., '500.html' in views/errors/)."""
    for d in _ERROR_DIRS:
        f = d / f"{name}.html"
        if f.is_file():
            try:
                return f.read_text(encoding="utf-8")
            except OSError:
                pass
    return None


def _pretty_tb_html(exc: BaseException) -> str:
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    esc = html.escape(tb)
    return f"""<!doctype html>
<html><head><meta charset="utf-8"><title>500 Internal Server Error</title>
<style>
body{{font:14px/1.45 system-ui,-apple-system,Segoe UI,Roboto,sans-serif;padding:24px;background:#0b0b0b;color:#f6f6f6}}
pre{{background:#111;color:#f6f6f6;padding:16px;border-radius:12px;overflow:auto}}
h1{{margin-top:0}}
</style>
</head><body>
<h1>500 Internal Server Error</h1>
<p>DEBUG is on (FORMSTEP_DEBUG=1). Here's the traceback:</p>
<pre>{esc}</pre>
</body></html>"""


# ---- Core -------------------------------------------------------------------
class App:
    def __init__(self, csrf: bool = True):
        self.routes = []  # list of (compiled_regex, handler)
        self.csrf = csrf

    def _compile_path(self, path: str) -> re.Pattern:
        # {slug} -> (?P<slug>[^/]+)
        def repl(m): return f"(?P<{m.group(1)}>[^/]+)"
        return re.compile("^" + re.sub(r"{(\w+)}", repl, path) + "$")

    def mount(self, path, handler):
        """Route every method on `path` to `handler`; the handler decides what it accepts."""
        self.routes.append((self._compile_path(path), handler))

    def match(self, path):
        for rx, handler in self.routes:
            mobj = rx.match(path)
            if mobj:
                return handler, mobj.groupdict()
        return None, None

    async def _call_handler(self, handler, req):
        try:
            result = handler(req)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log("unhandled", req.method, req.path, repr(exc))
            if DEBUG:
                return Response.html(_pretty_tb_html(exc), 500)
            tpl = _read_error_template("500")
            return Response.html(tpl, 500) if tpl else Response.text("Internal Server Error", 500)
        if not isinstance(result, Response):
            result = Response.html(str(result))
        if req.session_modified:
            set_session(result, req.session)
        return result

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return

        method = scope["method"].upper()
        path   = _strip_root(scope)

        handler, params = self.match(path)
        if handler is None:
            tpl = _read_error_template("404")
            return await (Response.html(tpl, 404) if tpl else Response.text("Not Found", 404))(scope, receive, send)

        req = Request(scope, receive, params)

        # CSRF guard for form posts
        if method in CSRF_METHODS:
            await req.load_body()
            if self.csrf:
                sent = req.body.get("csrf")
                if not sent or sent != req.session.get("csrf"):
                    log("csrf rejected", method, path)
                    return await Response.text("Forbidden (CSRF)", 403)(scope, receive, send)

        result = await self._call_handler(handler, req)
        return await result(scope, receive, send)


def _strip_root(scope) -> str:
    # ASGI puts the mount prefix in root_path; some servers also leave it on path.
    path, root = scope["path"], scope.get("root_path", "")
    if root and path.startswith(root):
        path = path[len(root):] or "/"
    return path


class Response:
    def __init__(self, body=b"", status=200, headers=None, content_type="text/html; charset=utf-8"):
        self.body = body if isinstance(body, bytes) else body.encode()
        self.status = status
        self.headers = headers or [(b"content-type", content_type.encode())]
        self._cookies = http_cookies.SimpleCookie()

    def set_cookie(self, name, value, *, http_only=True, samesite="Lax", path="/", max_age=None, secure=False):
        # In prod, default to Secure cookies unless caller explicitly wants otherwise
        if not DEBUG:
            secure = True
        self._cookies[name] = value
        morsel = self._cookies[name]
        morsel["path"] = path
        morsel["samesite"] = samesite
        if http_only: morsel["httponly"] = True
        if secure: morsel["secure"] = True
        if max_age is not None: morsel["max-age"] = str(max_age)

    @property
    def location(self) -> str | None:
        for k, v in self.headers:
            if k.lower() == b"location":
                return v.decode()
        return None

    async def __call__(self, scope, receive, send):
        # Default security headers in prod (add if missing)
        if not DEBUG:
            have = {k.decode().lower() for (k, _) in self.headers}
            sec = []
            if "x-content-type-options" not in have:
                sec.append((b"x-content-type-options", b"nosniff"))
            if "referrer-policy" not in have:
                sec.append((b"referrer-policy", b"no-referrer"))
            if "x-frame-options" not in have:
                sec.append((b"x-frame-options", b"DENY"))
            self.headers = list(self.headers) + sec

        headers = list(self.headers)
        for morsel in self._cookies.values():
            headers.append((b"set-cookie", morsel.OutputString().encode()))
        await send({"type": "http.response.start", "status": self.status, "headers": headers})
        await send({"type": "http.response.body", "body": self.body})

    @classmethod
    def html(cls, text, status=200):       return cls(text, status)
    @classmethod
    def text(cls, text, status=200):       return cls(text, status, content_type="text/plain; charset=utf-8")
    @classmethod
    def redirect(cls, location, status=303):
        return cls(b"", status, headers=[(b"location", location.encode())])
    @classmethod
    def method_not_allowed(cls, allow):
        resp = cls.text("Method Not Allowed", 405)
        resp.headers.append((b"allow", ", ".join(allow).encode()))
        return resp


class Request:
    def __init__(self, scope, receive, path_params=None):
        self.scope = scope
        self._receive = receive
        self.method = scope["method"].upper()
        self.base_url = scope.get("root_path", "")
        self.path = _strip_root(scope)
        self.query = {
            k: (v[0] if len(v) == 1 else v)
            for k, v in parse_qs(scope.get("query_string", b"").decode()).items()
        }
        self.params = path_params or {}
        self._raw = None
        self.body = {}
        self.cookies = {}
        self._session = None
        self.session_modified = False
        for k, v in scope.get("headers", []):
            if k.lower() == b"cookie":
                jar = http_cookies.SimpleCookie()
                jar.load(v.decode())
                self.cookies = {n: morsel.value for n, morsel in jar.items()}
                break

    @property
    def session(self) -> dict:
        if self._session is None:
            self._session = get_session(self)
        return self._session

    def flash(self, key, *payload):
        """
        flash(key)          -> list of payloads stored by the previous request (consumed)
        flash(key, payload) -> store payload for the next request
        """
        if payload:
            _flash.push(self.session, key, payload[0])
            self.session_modified = True
            return None
        out = _flash.pull(self.session, key)
        if out:
            self.session_modified = True
        return out

    async def load_body(self):
        if self._raw is not None:
            return
        chunks = []
        while True:
            event = await self._receive()
            if event["type"] == "http.request":
                if event.get("body"):
                    chunks.append(event["body"])
                if not event.get("more_body"):
                    break
            elif event["type"] == "http.disconnect":
                break
        self._raw = b"".join(chunks)
        headers = {k.decode().lower(): v.decode() for k, v in self.scope.get("headers", [])}
        ctype = headers.get("content-type", "")
        if "application/x-www-form-urlencoded" in ctype:
            self.body = {
                k: (v[0] if len(v) == 1 else v)
                for k, v in parse_qs(self._raw.decode(), keep_blank_values=True).items()
            }
