"""
Request Identity

The authentication layer in front of this service resolves the caller and
forwards the user id in the ``X-User-Id`` header. Anonymous requests carry
no header.
"""

from functools import wraps
from typing import Optional

from flask import request

from fileshare.domain.errors import ErrorCategory, create_error_response

USER_ID_HEADER = "X-User-Id"


def current_user_id() -> Optional[str]:
    """Return the authenticated user id, or None for anonymous requests."""
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    return user_id or None


def login_required(view):
    """Reject anonymous requests with 401."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user_id() is None:
            return create_error_response(
                ErrorCategory.UNAUTHORIZED,
                f"Missing {USER_ID_HEADER} header",
                status_code=401,
            )
        return view(*args, **kwargs)

    return wrapper


def requester_ip() -> Optional[str]:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or request.remote_addr
    return request.remote_addr
