import os, base64

def _nonce(n=16): return base64.urlsafe_b64encode(os.urandom(n)).decode().rstrip("=")

def ensure_token(req) -> str:
    """Return the session's CSRF token, minting one (and marking the session dirty) if absent."""
    tok = req.session.get("csrf")
    if not tok:
        tok = _nonce()
        req.session["csrf"] = tok
        req.session_modified = True
    return tok

# <input type="hidden" name="csrf" value="{{ csrf }}">
