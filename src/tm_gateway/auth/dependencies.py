"""FastAPI dependencies: get_current_caller, require_admin.

Usage in any protected router:
    from src.tm_gateway.auth.dependencies import Caller, get_current_caller

    @router.get("/protected")
    async def protected(caller: Annotated[Caller, Depends(get_current_caller)]):
        ...
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.tm_common.errors import AdminRequiredError, InvalidCredentialsError
from src.tm_gateway.auth.jwt_handler import ADMIN_ROLE, decode_token

# Tokens are issued by the external identity service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


@dataclass(frozen=True)
class Caller:
    user_id: str
    is_admin: bool = False


async def get_current_caller(token: Annotated[str, Depends(oauth2_scheme)]) -> Caller:
    """Resolve the bearer token into a Caller. HTTP 401 if missing, invalid or expired."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    return Caller(user_id=user_id, is_admin=payload.get("role") == ADMIN_ROLE)


async def require_admin(caller: Annotated[Caller, Depends(get_current_caller)]) -> Caller:
    if not caller.is_admin:
        raise AdminRequiredError()
    return caller
