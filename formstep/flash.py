# Keyed one-redirect storage kept under "_flash" in the session dict.
_KEY = "_flash"

def push(session: dict, key: str, payload):
    session.setdefault(_KEY, {}).setdefault(key, []).append(payload)

def pull(session: dict, key: str) -> list:
    """Return every payload stored under `key` (oldest first) and forget them."""
    store = session.get(_KEY) or {}
    out = store.pop(key, [])
    if not store:
        session.pop(_KEY, None)
    return out
