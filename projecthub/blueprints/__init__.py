"""
ProjectHub
Blueprint registry and shared request helpers.
"""

from flask import g, request

from projecthub.core.exceptions import AuthError, ValidationError
from projecthub.services.auth_service import create_auth_provider


def auth_provider():
    """Auth provider for this request, bound to its Bearer token."""
    return create_auth_provider(token=getattr(g, "access_token", None))


async def current_session(provider=None):
    """Return ``(provider, session)`` for the signed-in caller.

    Raises:
        AuthError: 401 when nobody is signed in.
        SessionExpiredError: When the token's session has ended.
    """
    provider = provider or auth_provider()
    session = await provider.get_current_session()
    if session is None:
        raise AuthError("Authentication required", 401)
    g.user_id = session.user.id
    return provider, session


def json_body() -> dict:
    """Request JSON object, or {} when the body is empty or not an object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def id_list(data: dict, key: str = "project_ids") -> list:
    """Validate a JSON list of ids from the request body."""
    ids = data.get(key)
    if not isinstance(ids, list) or not all(isinstance(i, (str, int)) for i in ids):
        raise ValidationError(f"{key} must be a list of ids", details={key: "invalid"})
    return ids
