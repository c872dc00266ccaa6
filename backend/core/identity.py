from typing import Any, Mapping, Optional

from core.config import settings


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value if value.strip() else None


def owner_from_query(owner_id: Optional[str] = None, legacy_user_id: Optional[str] = None) -> str:
    """REST callers name their owner with ?ownerId= (or the older ?userId=)."""
    return _clean(owner_id) or _clean(legacy_user_id) or settings.default_owner_id


def owner_from_envelope(body: Any, fallback: Optional[str] = None) -> str:
    """
    Voice envelopes carry the user id in session.user.userId, or in
    context.System.user.userId for requests outside a session. Envelopes
    with neither use `fallback` (the ?userId= of the call), then the
    default owner.
    """
    if isinstance(body, Mapping):
        paths = (
            ("session", "user", "userId"),
            ("context", "System", "user", "userId"),
        )
        for path in paths:
            node: Any = body
            for part in path:
                node = node.get(part) if isinstance(node, Mapping) else None
            found = _clean(node)
            if found:
                return found
    return _clean(fallback) or settings.default_owner_id
