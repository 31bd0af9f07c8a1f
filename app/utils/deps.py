from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.database import get_db
from app.core.exceptions import NotAuthenticatedError, PermissionDeniedError
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.schemas.user import UserContext

http_bearer = HTTPBearer(auto_error=False)

_UNRESOLVED = object()


def _user_id_from_token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[int]:
    if not credentials:
        return None
    payload = decode_access_token(credentials.credentials)
    if not payload:
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def get_current_context(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Optional[UserContext]:
    """Resolve the caller once per request from the bearer token or the session cookie."""
    cached = getattr(request.state, "user_context", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached

    context = None
    if credentials:
        token_user_id = _user_id_from_token(credentials)
        user = user_crud.get(db, id=token_user_id) if token_user_id is not None else None
        if user:
            context = UserContext.model_validate(user)
    else:
        session_user_id = request.session.get("user_id")
        if session_user_id is not None:
            user = user_crud.get(db, id=session_user_id)
            if user:
                context = UserContext.model_validate(user)
            else:
                # Account removed while the session was alive
                request.session.clear()

    request.state.user_context = context
    return context


def require_user(context: Optional[UserContext] = Depends(get_current_context)) -> UserContext:
    if context is None:
        raise NotAuthenticatedError()
    return context


def require_role(role: RoleEnum):
    """Dependency that admits callers whose role is granted ``role``."""
    def _verify_role(context: UserContext = Depends(require_user)) -> UserContext:
        if not context.has_role(role):
            raise PermissionDeniedError()
        return context
    return _verify_role


require_instructor = require_role(RoleEnum.INSTRUCTOR)
require_admin = require_role(RoleEnum.ADMIN)


async def get_form(request: Request):
    return await request.form()
