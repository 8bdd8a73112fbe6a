"""Request context and user identification for the mbestore API."""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request

from mbestore.core.database import connect
from mbestore.errors import AuthorizationError
from mbestore.managers.base import ManagerContext


def get_context(request: Request) -> ManagerContext:
    """Return the manager context of the served project, opening it on first use."""
    state = request.app.state
    if getattr(state, "context", None) is None:
        state.context = connect(state.project_dir)
    return state.context


def get_current_user(
    x_user: Optional[str] = Header(None, alias="X-User"),
    ctx: ManagerContext = Depends(get_context),
) -> Dict[str, Any]:
    """Look up the requesting user named by the X-User header.

    Raises:
        AuthorizationError: If the header is missing or names no user
    """
    if not x_user:
        raise AuthorizationError("Requesting user is required.", "warn")

    user = ctx.store.find_one("users", {"_id": x_user})
    if user is None:
        raise AuthorizationError(f"User [{x_user}] not found.", "warn")
    return user
